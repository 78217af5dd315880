"""Shipping address as stored on orders: street line, 'postal city' line, notes."""

import re
from dataclasses import dataclass

_POSTAL_CITY_RE = re.compile(r"^(\d{3,10})\s*(.*)$")


@dataclass
class AddressFields:
    street_address: str = ""
    city: str = ""
    postal_code: str = ""
    delivery_notes: str = ""


def parse_address(address: str, default_city: str = "") -> AddressFields:
    """Split a stored address back into form fields.

    Lines and commas both separate parts. The second part is read as
    '<postal code> <city>' when it starts with digits, otherwise as a city.
    Anything after that is delivery notes.
    """
    if not address:
        return AddressFields(city=default_city)

    tokens = [
        part.strip()
        for segment in address.split("\n")
        for part in segment.split(",")
        if part.strip()
    ]
    street = tokens[0] if tokens else ""
    second = tokens[1] if len(tokens) > 1 else ""
    rest = tokens[2:]

    postal_code = ""
    city = default_city
    if second:
        match = _POSTAL_CITY_RE.match(second)
        if match:
            postal_code = match.group(1)
            city = match.group(2).strip() or default_city
        else:
            city = second

    if not city and rest:
        city = rest.pop(0)

    return AddressFields(
        street_address=street,
        city=city or default_city,
        postal_code=postal_code,
        delivery_notes="\n".join(rest).strip(),
    )


def compose_address(fields: AddressFields) -> str:
    street_line = fields.street_address.strip()
    city_line = " ".join(
        p for p in (fields.postal_code.strip(), fields.city.strip()) if p
    ).strip()
    notes_line = fields.delivery_notes.strip()
    return "\n".join(p for p in (street_line, city_line, notes_line) if p).strip()
