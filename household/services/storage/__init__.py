"""
Storage Services Package

Provides the abstract backend interface and its two implementations:
local JSON snapshots and a remote document store (Cloud Firestore, or an
in-memory stand-in for tests).

The Firestore transport is imported lazily from
`household.services.storage.firestore` so the local backend works without
the Google client libraries being configured.
"""

from household.services.storage.interface import (
    BatchDeleteError,
    Collection,
    NotFoundError,
    Ordering,
    PermissionDeniedError,
    StorageBackend,
    StorageConnectionError,
    StorageError,
    Subscription,
)
from household.services.storage.local import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    LocalCollectionStore,
    LocalStorageBackend,
)
from household.services.storage.remote import DocumentStore, RemoteStorageBackend
from household.services.storage.memory import InMemoryDocumentStore

__all__ = [
    # Interface
    "Collection",
    "Ordering",
    "StorageBackend",
    "Subscription",
    # Exceptions
    "BatchDeleteError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageConnectionError",
    "StorageError",
    # Local implementation
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalCollectionStore",
    "LocalStorageBackend",
    # Remote implementation
    "DocumentStore",
    "InMemoryDocumentStore",
    "RemoteStorageBackend",
]
