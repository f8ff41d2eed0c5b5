"""Persistent store adapters."""

from .base import PersistentStore, validate_new_file
from .factory import create_local_store, create_store, create_transport
from .remote import RemoteStore
from .sql import PostgresStore, SQLiteStore, SQLStore
from .transport import ResilientTransport

__all__ = [
    "PersistentStore",
    "PostgresStore",
    "RemoteStore",
    "ResilientTransport",
    "SQLStore",
    "SQLiteStore",
    "create_local_store",
    "create_store",
    "create_transport",
    "validate_new_file",
]
