"""Services package."""

from household.services.profile import ProfileService
from household.services.storage import (
    BatchDeleteError,
    Collection,
    DocumentStore,
    InMemoryDocumentStore,
    LocalStorageBackend,
    NotFoundError,
    PermissionDeniedError,
    RemoteStorageBackend,
    StorageBackend,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Profile service
    "ProfileService",
    # Storage services
    "BatchDeleteError",
    "Collection",
    "DocumentStore",
    "InMemoryDocumentStore",
    "LocalStorageBackend",
    "NotFoundError",
    "PermissionDeniedError",
    "RemoteStorageBackend",
    "StorageBackend",
    "StorageConnectionError",
    "StorageError",
]
