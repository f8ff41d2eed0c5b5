"""FastAPI dependency providers."""

from __future__ import annotations

from fastapi import Request

from ..core.errors import StoreUnavailableError
from ..store import PersistentStore


def get_store(request: Request) -> PersistentStore:
    """The store built at startup and kept on ``app.state``."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailableError("Store is not initialized.")
    return store


__all__ = ["get_store"]
