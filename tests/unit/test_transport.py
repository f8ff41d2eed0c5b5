"""Unit tests for the resilient store transport."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from deepdive.core.errors import (
    StoreConnectionError,
    StoreProtocolError,
    StoreResponseError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from deepdive.core.resilience import RetryPolicy
from deepdive.store import ResilientTransport

BASE_URL = "http://store.test/api"


def fast_policy(max_attempts: int = 3) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts,
        initial_backoff=0.01,
        max_backoff=0.01,
        multiplier=1.0,
        jitter=0.0,
    )


def make_transport(handler, *, timeout: float = 1.0, attempts: int = 3) -> ResilientTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResilientTransport(
        BASE_URL, timeout=timeout, retry_policy=fast_policy(attempts), client=client
    )


@pytest.mark.asyncio
async def test_request_returns_json_body() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "ok"})

    transport = make_transport(handler)

    assert await transport.request("GET", "/health") == {"status": "ok"}
    assert seen == [f"{BASE_URL}/health"]


@pytest.mark.asyncio
async def test_empty_body_returns_none() -> None:
    transport = make_transport(lambda request: httpx.Response(204))

    assert await transport.request("DELETE", "/files/a") is None


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls < 3:
            return httpx.Response(500, json={"error": {"message": "Failed to get files"}})
        return httpx.Response(200, json=[])

    transport = make_transport(handler)

    assert await transport.request("GET", "/files") == []
    assert calls == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_connection_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler, attempts=3)

    with pytest.raises(StoreConnectionError) as exc_info:
        await transport.request("GET", "/files")

    assert calls == 3
    assert exc_info.value.message == "Database connection failed. Operating in offline mode."
    assert exc_info.value.details["attempts"] == 3


@pytest.mark.asyncio
async def test_slow_store_raises_timeout_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.5)
        return httpx.Response(200, json=[])

    transport = make_transport(handler, timeout=0.05, attempts=2)

    with pytest.raises(StoreTimeoutError) as exc_info:
        await transport.request("GET", "/files")

    assert exc_info.value.message == "Database connection timeout. Please check your connection."


@pytest.mark.asyncio
async def test_client_errors_are_not_retried() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404, json={"error": {"message": "File not found"}})

    transport = make_transport(handler)

    with pytest.raises(StoreResponseError) as exc_info:
        await transport.request("GET", "/files/missing")

    assert calls == 1
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "File not found"


@pytest.mark.asyncio
async def test_caller_policy_is_not_mutated() -> None:
    policy = fast_policy()
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    transport = ResilientTransport(BASE_URL, retry_policy=policy, client=client)

    assert policy.retry_exceptions == (Exception,)
    assert httpx.TransportError in transport.retry_policy.retry_exceptions


@pytest.mark.asyncio
async def test_non_json_body_raises_protocol_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, text="<html>Gateway login</html>")

    transport = make_transport(handler)

    with pytest.raises(StoreProtocolError) as exc_info:
        await transport.request("GET", "/health")

    assert calls == 1
    assert isinstance(exc_info.value, StoreUnavailableError)
    assert exc_info.value.details == {"method": "GET", "path": "/health", "status_code": 200}
