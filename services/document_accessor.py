"""
Document Accessor

Single-document operations that bypass the query pipeline: read, existence
check, live watch, merge write, full replace, insert with a generated id,
and idempotent delete.
"""

from typing import Any, Mapping, Optional
import logging

from domain.errors import DocumentStoreError, NotFound
from domain.values import CollectionPath, Document, DocumentID, DocumentSnapshot
from logging_config import setup_logging
from repositories.base import StoreClient
from services.live import LiveDocument

logger = setup_logging(__name__, log_file="document_accessor.log")


class DocumentAccessor:
    """Reads and writes individual documents of one tenant store."""

    def __init__(self, store: StoreClient, logger_instance: Optional[logging.Logger] = None):
        self._store = store
        self._logger = logger_instance or logger

    def get(self, collection: CollectionPath, document_id: DocumentID) -> Document:
        """
        Return the payload of one document.

        Raises:
            NotFound: If the document does not exist
            PermissionDenied, Unavailable: As reported by the store
        """
        snapshot = self.get_snapshot(collection, document_id)
        if not snapshot.exists:
            self._logger.warning(f"Document not found: {collection}/{document_id}")
            raise NotFound("Document not found", collection=collection, document_id=document_id)
        return snapshot.data

    def get_snapshot(self, collection: CollectionPath, document_id: DocumentID) -> DocumentSnapshot:
        """Return the snapshot (id plus payload, or None) without raising NotFound."""
        try:
            return self._store.get_document(collection, document_id)
        except DocumentStoreError as e:
            self._logger.error(f"Failed to read {collection}/{document_id}: {e}")
            raise

    def exists(self, collection: CollectionPath, document_id: DocumentID) -> bool:
        """True if the document exists; absence is a result, not an error."""
        return self.get_snapshot(collection, document_id).exists

    def watch(self, collection: CollectionPath, document_id: DocumentID) -> LiveDocument:
        """Cold live channel emitting the document payload (None once deleted)."""
        return LiveDocument(self._store, collection, document_id)

    def upsert(self, collection: CollectionPath, document_id: DocumentID, partial: Mapping[str, Any]) -> None:
        """Merge partial into the document, creating it if absent."""
        self._write(collection, document_id, partial, merge=True)

    def replace(self, collection: CollectionPath, document_id: DocumentID, payload: Mapping[str, Any]) -> None:
        """Overwrite the whole document with payload."""
        self._write(collection, document_id, payload, merge=False)

    def insert(self, collection: CollectionPath, payload: Mapping[str, Any]) -> DocumentID:
        """Create a document under a store-generated id and return the id."""
        try:
            document_id = self._store.add_document(collection, payload)
        except DocumentStoreError as e:
            self._logger.error(f"Failed to insert into {collection}: {e}")
            raise
        self._logger.debug(f"Inserted {collection}/{document_id}")
        return document_id

    def delete(self, collection: CollectionPath, document_id: DocumentID) -> None:
        """Delete the document. Deleting an absent document succeeds."""
        try:
            self._store.delete_document(collection, document_id)
        except DocumentStoreError as e:
            self._logger.error(f"Failed to delete {collection}/{document_id}: {e}")
            raise

    def _write(self, collection: CollectionPath, document_id: DocumentID, data: Mapping[str, Any], merge: bool) -> None:
        try:
            self._store.set_document(collection, document_id, data, merge=merge)
        except DocumentStoreError as e:
            self._logger.error(f"Failed to write {collection}/{document_id} (merge={merge}): {e}")
            raise
