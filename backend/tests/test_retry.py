"""Bounded retry helper tests."""

import pytest
from pymongo.errors import AutoReconnect

from solspore.exceptions import RetryExhausted
from solspore.utils.retry import with_retry


async def test_retries_transient_errors_until_success():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise AutoReconnect("primary stepped down")
        return "ok"

    assert await with_retry(flaky, "flaky op", max_attempts=3, delay_seconds=0) == "ok"
    assert len(calls) == 3


async def test_exhaustion_raises_with_last_error():
    calls = []

    async def down():
        calls.append(1)
        raise AutoReconnect(f"attempt {len(calls)}")

    with pytest.raises(RetryExhausted) as excinfo:
        await with_retry(down, "down op", max_attempts=4, delay_seconds=0)

    assert len(calls) == 4
    assert excinfo.value.attempts == 4
    assert isinstance(excinfo.value.last_error, AutoReconnect)
    assert "attempt 4" in str(excinfo.value.last_error)


async def test_non_transient_errors_are_not_retried():
    calls = []

    async def broken():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await with_retry(broken, "broken op", max_attempts=5, delay_seconds=0)
    assert len(calls) == 1


async def test_at_least_one_attempt():
    async def ok():
        return 42

    assert await with_retry(ok, "ok op", max_attempts=0, delay_seconds=0) == 42
