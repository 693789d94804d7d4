"""
Base Store Client

Defines the contract every tenant document store implements. The query
services, the document accessor and the facade only ever talk to a store
through this interface, so a store can be swapped (or mocked in tests)
without touching them.

Design Principles:
1. Dependency Injection - Services receive a StoreClient, they don't create it
2. Error translation lives here - Implementations raise only domain errors
   (QueryRejected, PermissionDenied, Unavailable) and never retry
3. Listeners are explicit - Every live registration returns a
   ListenerRegistration the caller must remove
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional
import logging
import threading

from domain.errors import DocumentStoreError
from domain.query import QueryDescriptor
from domain.values import CollectionPath, DocumentID, DocumentSnapshot
from logging_config import setup_logging

logger = setup_logging(__name__)

QueryCallback = Callable[[list[DocumentSnapshot]], None]
DocumentCallback = Callable[[DocumentSnapshot], None]
ErrorCallback = Callable[[DocumentStoreError], None]


class ListenerRegistration:
    """
    Handle returned by the listen_* methods.

    remove() stops delivery and releases the store-side listener. It is
    safe to call more than once.
    """

    def __init__(self, remove: Callable[[], None], description: str = ""):
        self._remove = remove
        self._lock = threading.Lock()
        self._removed = False
        self.description = description

    @property
    def removed(self) -> bool:
        return self._removed

    def remove(self) -> None:
        with self._lock:
            if self._removed:
                return
            self._removed = True
        self._remove()


class StoreClient(ABC):
    """
    Base class for all tenant document stores.

    Attributes:
        project: Alias of the tenant this store belongs to
    """

    def __init__(self, project: str = "", logger_instance: Optional[logging.Logger] = None):
        """
        Initialize the store.

        Args:
            project: Tenant alias, used in log messages
            logger_instance: Optional logger (defaults to module logger)
        """
        self.project = project
        self._logger = logger_instance or logger

    # -------------------------------------------------------------------------
    # Collection queries
    # -------------------------------------------------------------------------

    @abstractmethod
    def run_query(self, descriptor: QueryDescriptor) -> list[DocumentSnapshot]:
        """Execute descriptor once and return the matching snapshots in order."""

    @abstractmethod
    def listen_query(
        self,
        descriptor: QueryDescriptor,
        on_change: QueryCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        """
        Start delivering the result of descriptor to on_change.

        The current result is delivered first, then a new one after every
        change to the matched set. A failure is delivered once through
        on_error and ends the listener.
        """

    # -------------------------------------------------------------------------
    # Single documents
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_document(self, collection: CollectionPath, document_id: DocumentID) -> DocumentSnapshot:
        """Read one document; a missing document yields a snapshot with data=None."""

    @abstractmethod
    def listen_document(
        self,
        collection: CollectionPath,
        document_id: DocumentID,
        on_change: DocumentCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        """Deliver the current snapshot of one document, then one per change."""

    @abstractmethod
    def set_document(
        self,
        collection: CollectionPath,
        document_id: DocumentID,
        data: Mapping[str, Any],
        merge: bool = False,
    ) -> None:
        """Write a document, merging into the existing fields when merge is True."""

    @abstractmethod
    def add_document(self, collection: CollectionPath, data: Mapping[str, Any]) -> DocumentID:
        """Create a document under a freshly generated identifier and return it."""

    @abstractmethod
    def delete_document(self, collection: CollectionPath, document_id: DocumentID) -> None:
        """Delete a document; deleting an absent document is not an error."""

    def close(self) -> None:
        """Release store resources. Subclasses terminate their listeners here."""
