"""Retry policies for outbound calls (SMTP, Stripe)."""

import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# (attempts, first delay seconds, max delay seconds)
RETRY_POLICIES = {
    "mailer": (3, 2.0, 10.0),
    "stripe": (3, 1.0, 8.0),
    "default": (3, 1.0, 10.0),
}


def create_retry_decorator(
    dependency: str = "default",
    retryable_exceptions: tuple = (Exception,),
):
    """Retry decorator for one outbound dependency; the last error is re-raised."""
    attempts, first_delay, max_delay = RETRY_POLICIES.get(dependency, RETRY_POLICIES["default"])
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=first_delay, min=first_delay, max=max_delay),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
