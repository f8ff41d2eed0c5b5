"""Bounded retries with exponential backoff."""

from __future__ import annotations

import asyncio
import inspect
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar, Union

import structlog

from .errors import DDE, ExternalServiceError

T = TypeVar("T")

_logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make and how long to wait between them.

    The wait before attempt ``n + 1`` is ``initial_backoff * multiplier ** (n - 1)``,
    capped at ``max_backoff``, plus up to ``jitter`` seconds of noise. Only
    ``retry_exceptions`` are retried.
    """

    max_attempts: int = 3
    initial_backoff: float = 2.0
    max_backoff: float = 30.0
    multiplier: float = 2.0
    jitter: float = 0.0
    retry_exceptions: Tuple[Type[BaseException], ...] = (Exception,)

    def backoff(self, attempt: int) -> float:
        delay = min(
            self.initial_backoff * self.multiplier ** max(attempt - 1, 0),
            self.max_backoff,
        )
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay


async def execute_with_retry(
    func: Callable[..., Union[Awaitable[T], T]],
    *args: Any,
    retry_policy: RetryPolicy,
    logger: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
    failure_exception_cls: Type[DDE] = ExternalServiceError,
    **kwargs: Any,
) -> T:
    """Call ``func`` until it succeeds or the policy's attempts run out.

    ``func`` may be a coroutine function or a plain callable. Errors outside
    ``retry_policy.retry_exceptions`` propagate at once. When every attempt
    fails, ``failure_exception_cls`` is raised with ``details["attempts"]`` set
    and the last error chained as ``__cause__``.
    """
    attempts = max(1, retry_policy.max_attempts)
    metadata = metadata or {}
    log = logger or _logger
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result  # type: ignore[return-value]
        except retry_policy.retry_exceptions as exc:  # type: ignore[misc]
            last_error = exc
            log.warning(
                "Attempt failed",
                attempt=attempt,
                max_attempts=attempts,
                error=repr(exc),
                **metadata,
            )
            if attempt < attempts:
                await asyncio.sleep(retry_policy.backoff(attempt))

    raise failure_exception_cls(
        f"Operation failed after {attempts} attempts.",
        details={**metadata, "attempts": attempts, "last_error": repr(last_error)},
    ) from last_error


__all__ = ["RetryPolicy", "execute_with_retry"]
