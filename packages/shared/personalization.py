"""Balloon personalization (printed text, colour, number) on cart and order lines."""

import json
from typing import Any, Dict, Optional

PERSONALIZATION_NONE = "__none__"
FIELDS = ("text", "color", "number")


def normalize_personalization(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """Trim each field and drop empty ones. Returns None when nothing is left."""
    if not value:
        return None
    normalized = {}
    for field in FIELDS:
        raw = value.get(field)
        if isinstance(raw, str) and raw.strip():
            normalized[field] = raw.strip()
    return normalized or None


def personalization_signature(value: Optional[Dict[str, Any]]) -> str:
    """Stable key used to merge identical cart lines."""
    normalized = normalize_personalization(value)
    if not normalized:
        return PERSONALIZATION_NONE
    return json.dumps({f: normalized.get(f) for f in FIELDS})
