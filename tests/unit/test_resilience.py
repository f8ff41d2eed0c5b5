"""Unit tests for the retry helper."""

from __future__ import annotations

import pytest

from deepdive.core.errors import ExternalServiceError, StoreConnectionError
from deepdive.core.resilience import RetryPolicy, execute_with_retry


def fast_policy(max_attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts,
        initial_backoff=0.01,
        max_backoff=0.01,
        multiplier=1.0,
        jitter=0.0,
        retry_exceptions=(RuntimeError,),
    )


@pytest.mark.asyncio
async def test_execute_with_retry_recovers() -> None:
    attempts = 0

    async def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise RuntimeError("temporary failure")
        return "ok"

    result = await execute_with_retry(flaky, retry_policy=fast_policy(4))

    assert result == "ok"
    assert attempts == 3


@pytest.mark.asyncio
async def test_execute_with_retry_exhausts() -> None:
    async def always_fail() -> None:
        raise RuntimeError("boom")

    with pytest.raises(ExternalServiceError) as exc_info:
        await execute_with_retry(always_fail, retry_policy=fast_policy(2))

    assert exc_info.value.details["attempts"] == 2
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_execute_with_retry_uses_failure_class() -> None:
    async def always_fail() -> None:
        raise RuntimeError("boom")

    with pytest.raises(StoreConnectionError):
        await execute_with_retry(
            always_fail,
            retry_policy=fast_policy(1),
            failure_exception_cls=StoreConnectionError,
        )


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately() -> None:
    attempts = 0

    async def bad_input() -> None:
        nonlocal attempts
        attempts += 1
        raise ValueError("not retryable")

    with pytest.raises(ValueError):
        await execute_with_retry(bad_input, retry_policy=fast_policy(3))

    assert attempts == 1


@pytest.mark.asyncio
async def test_sync_callables_are_supported() -> None:
    result = await execute_with_retry(lambda x: x * 2, 21, retry_policy=fast_policy(1))

    assert result == 42


def test_backoff_grows_and_caps() -> None:
    policy = RetryPolicy(initial_backoff=2.0, max_backoff=5.0, multiplier=2.0, jitter=0.0)

    assert policy.backoff(1) == 2.0
    assert policy.backoff(2) == 4.0
    assert policy.backoff(3) == 5.0
