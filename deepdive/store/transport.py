"""HTTP transport to the store API with per-call timeout and bounded retries."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Dict, Optional

import httpx
import structlog

from ..core.errors import (
    StoreConnectionError,
    StoreProtocolError,
    StoreResponseError,
    StoreTimeoutError,
)
from ..core.resilience import RetryPolicy, execute_with_retry

logger = structlog.get_logger(__name__)


class RetryableStatusError(Exception):
    """A 5xx answer from the store API; worth another attempt."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", error))
        if error is not None:
            return str(error)
    return response.reason_phrase


class ResilientTransport:
    """Wraps every store API call with a timeout, retries and typed failures.

    Each attempt is bounded by ``timeout`` seconds. Network errors, timeouts
    and 5xx answers are retried with exponential backoff; 4xx answers surface
    immediately as :class:`StoreResponseError`. When attempts run out the call
    fails with :class:`StoreTimeoutError` if the last attempt timed out, or
    :class:`StoreConnectionError` otherwise. A success body that is not JSON
    raises :class:`StoreProtocolError` without a retry.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        policy = retry_policy or RetryPolicy(
            max_attempts=3,
            initial_backoff=2.0,
            max_backoff=30.0,
            multiplier=2.0,
            jitter=0.0,
        )
        # Only transport failures are retried; 4xx answers bypass the loop.
        self.retry_policy = replace(
            policy,
            retry_exceptions=(httpx.TransportError, asyncio.TimeoutError, RetryableStatusError),
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def _attempt(
        self, method: str, path: str, json: Any, params: Optional[Dict[str, Any]]
    ) -> httpx.Response:
        response = await asyncio.wait_for(
            self._client.request(method, self._url(path), json=json, params=params),
            timeout=self.timeout,
        )
        if response.status_code >= 500:
            raise RetryableStatusError(response.status_code, _error_message(response))
        if response.status_code >= 400:
            raise StoreResponseError(
                _error_message(response),
                status_code=response.status_code,
                details={"method": method, "path": path},
            )
        return response

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""
        try:
            response = await execute_with_retry(
                self._attempt,
                method,
                path,
                json,
                params,
                retry_policy=self.retry_policy,
                logger=logger,
                metadata={"method": method, "path": path},
                failure_exception_cls=StoreConnectionError,
            )
        except StoreConnectionError as exc:
            cause = exc.__cause__
            details = {**exc.details}
            if isinstance(cause, (asyncio.TimeoutError, httpx.TimeoutException)):
                logger.error("Store API timed out", method=method, path=path)
                raise StoreTimeoutError(details=details) from cause
            logger.error("Store API unreachable", method=method, path=path)
            raise StoreConnectionError(details=details) from cause

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error(
                "Store API returned a non-JSON body",
                method=method,
                path=path,
                content_type=response.headers.get("content-type"),
            )
            raise StoreProtocolError(
                details={"method": method, "path": path, "status_code": response.status_code}
            ) from exc

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["ResilientTransport", "RetryableStatusError"]
