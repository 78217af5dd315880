"""Tests for balloon personalization normalisation and cart merge keys."""

from packages.shared.personalization import (
    PERSONALIZATION_NONE,
    normalize_personalization,
    personalization_signature,
)


def test_normalize_trims_and_drops_empty_fields():
    assert normalize_personalization({"text": "  Anna ", "color": "", "number": None}) == {"text": "Anna"}
    assert normalize_personalization({"text": "   "}) is None
    assert normalize_personalization(None) is None


def test_unknown_fields_are_dropped():
    assert normalize_personalization({"font": "Arial", "number": "5"}) == {"number": "5"}


def test_signature_is_stable_across_key_order_and_whitespace():
    a = personalization_signature({"color": "gold", "text": "Anna"})
    b = personalization_signature({"text": " Anna", "color": "gold "})
    assert a == b
    assert a != personalization_signature({"text": "Anna"})


def test_signature_for_no_personalization():
    assert personalization_signature(None) == PERSONALIZATION_NONE
    assert personalization_signature({"text": ""}) == PERSONALIZATION_NONE
