"""
Cloud Firestore Document Store

DESIGN DECISION: Firestore is the remote backend because:
1. Listeners push the full ordered query result on every change
2. Several devices signed into one account see each other's writes live
3. Per-account sub-collections give partitioning for free

TRADEOFFS:
- Listener callbacks run on the SDK's background thread
- Vendor exceptions are translated at this boundary so nothing above it
  depends on google-api-core
"""

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from tenacity import retry, stop_after_attempt, wait_exponential

from household.config import FirestoreSettings, get_settings
from household.services.storage.interface import (
    NotFoundError,
    Ordering,
    PermissionDeniedError,
    StorageConnectionError,
    StorageError,
)
from household.services.storage.remote import DocumentsCallback


FIREBASE_APP_NAME = "household"


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map google-api-core errors onto the StorageError hierarchy."""
    try:
        yield
    except google_exceptions.NotFound as e:
        raise NotFoundError(f"{action}: {e}") from e
    except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
        raise PermissionDeniedError(f"{action}: {e}") from e
    except (
        google_exceptions.ServiceUnavailable,
        google_exceptions.DeadlineExceeded,
        google_exceptions.RetryError,
    ) as e:
        raise StorageConnectionError(f"{action}: {e}") from e
    except google_exceptions.GoogleAPIError as e:
        raise StorageError(f"{action}: {e}") from e


class FirestoreDocumentStore:
    """
    DocumentStore backed by Cloud Firestore through firebase-admin.

    The client is created lazily on first use and retried on connect.
    """

    def __init__(
        self,
        settings: Optional[FirestoreSettings] = None,
        client: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().firestore
        self._client = client

    def firebase_app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            pass

        if self._settings.credentials_path:
            credential = credentials.Certificate(self._settings.credentials_path)
        else:
            credential = credentials.ApplicationDefault()
        options = {"projectId": self._settings.project_id} if self._settings.project_id else None
        return firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Any:
        """
        Establish the Firestore client.

        Uses service account credentials when configured, application
        default credentials otherwise.
        """
        if self._client is None:
            try:
                self._client = firestore.client(app=self.firebase_app())
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Firestore credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Firestore: {e}")

        return self._client

    def _document(self, collection_path: str, doc_id: str) -> Any:
        return self.connect().collection(collection_path).document(doc_id)

    def set_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        with translate_errors(f"Failed to write {collection_path}/{doc_id}"):
            self._document(collection_path, doc_id).set(data, merge=merge)

    def update_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        with translate_errors(f"Failed to update {collection_path}/{doc_id}"):
            self._document(collection_path, doc_id).update(data)

    def delete_document(self, collection_path: str, doc_id: str) -> None:
        with translate_errors(f"Failed to delete {collection_path}/{doc_id}"):
            self._document(collection_path, doc_id).delete()

    def get_document(self, collection_path: str, doc_id: str) -> Optional[dict[str, Any]]:
        with translate_errors(f"Failed to read {collection_path}/{doc_id}"):
            snapshot = self._document(collection_path, doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def watch(
        self,
        collection_path: str,
        ordering: Ordering,
        callback: DocumentsCallback,
    ) -> Callable[[], None]:
        direction = (
            firestore.Query.DESCENDING if ordering.descending else firestore.Query.ASCENDING
        )

        def on_snapshot(docs, changes, read_time) -> None:
            callback([(doc.id, doc.to_dict()) for doc in docs])

        with translate_errors(f"Failed to watch {collection_path}"):
            query = self.connect().collection(collection_path).order_by(
                ordering.field, direction=direction,
            )
            watch = query.on_snapshot(on_snapshot)
        return watch.unsubscribe

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
