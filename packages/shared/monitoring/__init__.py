"""Monitoring and observability utilities."""

from .health import DependencyCheck, DependencyStatus, HealthChecker, health_router
from .logging import configure_logging, log_with_context

__all__ = [
    "DependencyCheck",
    "DependencyStatus",
    "HealthChecker",
    "health_router",
    "configure_logging",
    "log_with_context",
]
