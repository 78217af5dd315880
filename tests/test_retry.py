"""Tests for outbound retry policies."""

import pytest
from tenacity import wait_none

from packages.shared.retry import create_retry_decorator


def _flaky(failures, exc):
    calls = {"n": 0}

    @create_retry_decorator("stripe", retryable_exceptions=(ConnectionError,))
    def call():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise exc
        return "ok"

    return call.retry_with(wait=wait_none()), calls


def test_transient_errors_are_retried():
    call, calls = _flaky(2, ConnectionError("reset"))
    assert call() == "ok"
    assert calls["n"] == 3


def test_gives_up_after_max_attempts_and_reraises():
    call, calls = _flaky(5, ConnectionError("reset"))
    with pytest.raises(ConnectionError):
        call()
    assert calls["n"] == 3


def test_other_errors_are_not_retried():
    call, calls = _flaky(1, ValueError("bad amount"))
    with pytest.raises(ValueError):
        call()
    assert calls["n"] == 1
