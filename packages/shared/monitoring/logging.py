"""Structured logging for the storefront service."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional


def configure_logging(
    service_name: str = "storefront",
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure root logging for the service."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    if root.handlers:
        root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(StructuredFormatter(service_name=service_name))
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
        )

    root.addHandler(handler)

    # Supabase and Stripe SDKs log every HTTP call at INFO.
    for noisy in ("httpx", "httpcore", "stripe", "hpack"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter."""

    def __init__(self, service_name: str = "storefront", *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                "%Y-%m-%dT%H:%M:%S.%f"
            )[:-3] + "Z",
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None),
            "message": record.getMessage(),
            "context": getattr(record, "context", {}),
        }
        if record.exc_info:
            log_obj["stack_trace"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    request_id: Optional[str] = None,
    **context: Any,
) -> None:
    """Log with structured context."""
    extra = {"request_id": request_id, "context": context}
    logger.log(level, message, extra=extra)
