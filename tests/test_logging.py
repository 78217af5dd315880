"""Tests for structured JSON logging."""

import json
import logging
import sys

from packages.shared.monitoring import log_with_context
from packages.shared.monitoring.logging import StructuredFormatter


def test_structured_formatter_emits_json_with_context():
    logger = logging.getLogger("tests.structured")
    records = []

    class _Capture(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = _Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        log_with_context(logger, logging.INFO, "Order created", request_id="req-1", order_id="o-1", grand_total=56.0)
    finally:
        logger.removeHandler(handler)

    payload = json.loads(StructuredFormatter(service_name="storefront-service").format(records[0]))
    assert payload["service"] == "storefront-service"
    assert payload["level"] == "INFO"
    assert payload["message"] == "Order created"
    assert payload["request_id"] == "req-1"
    assert payload["context"] == {"order_id": "o-1", "grand_total": 56.0}
    assert payload["timestamp"].endswith("Z")


def test_formatter_includes_stack_trace():
    try:
        raise RuntimeError("smtp down")
    except RuntimeError:
        record = logging.getLogger("tests.structured").makeRecord(
            "tests.structured", logging.ERROR, __file__, 1, "Send failed", (), exc_info=sys.exc_info()
        )
    payload = json.loads(StructuredFormatter().format(record))
    assert "RuntimeError: smtp down" in payload["stack_trace"]
    assert payload["context"] == {}
