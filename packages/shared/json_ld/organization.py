"""Schema.org JSON-LD for the shop as an Organization."""

from typing import Any, Dict, List, Optional

AVAILABLE_LANGUAGES = ["de", "en", "ru", "uk"]


def organization_ld(
    name: str,
    url: str,
    address: Dict[str, str],
    phone: str,
    email: str,
    description: Optional[str] = None,
    logo: Optional[str] = None,
    image: Optional[str] = None,
    same_as: Optional[List[str]] = None,
    area_served: str = "AT",
) -> Dict[str, Any]:
    """``address`` uses street, city, postal_code and country_code keys."""
    out: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Organization",
        "name": name,
        "url": url,
        "address": {
            "@type": "PostalAddress",
            "streetAddress": address.get("street"),
            "addressLocality": address.get("city"),
            "postalCode": address.get("postal_code"),
            "addressCountry": address.get("country_code"),
        },
        "contactPoint": {
            "@type": "ContactPoint",
            "telephone": phone,
            "contactType": "customer service",
            "email": email,
            "areaServed": area_served,
            "availableLanguage": AVAILABLE_LANGUAGES,
        },
    }
    if description:
        out["description"] = description
    if logo:
        out["logo"] = logo
    if image:
        out["image"] = image
    if same_as:
        out["sameAs"] = [s for s in same_as if s]
    return out
