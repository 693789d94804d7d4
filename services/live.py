"""
Live Channels

Cancellable subscriptions over store listeners.

- LiveQuery / LiveDocument are cold: nothing touches the store until
  subscribe() is called, and every subscribe() opens its own listener.
- Subscription is the caller-owned handle. unsubscribe() releases the
  listener; once it returns no further value is delivered.
- A store failure (or a raising on_next) is delivered once to on_error
  and closes the channel. Nothing is retried.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import logging
import queue
import threading

from domain.errors import DocumentStoreError
from domain.query import QueryDescriptor, ResultSet
from domain.values import CollectionPath, Document, DocumentID, DocumentSnapshot
from logging_config import setup_logging
from repositories.base import ListenerRegistration, StoreClient

logger = setup_logging(__name__, log_file="live.log")

NextCallback = Callable[[Any], None]
ErrorHandler = Callable[[Exception], None]


class Subscription:
    """Handle for one active live channel."""

    def __init__(
        self,
        on_next: NextCallback,
        on_error: Optional[ErrorHandler] = None,
        description: str = "",
        logger_instance: Optional[logging.Logger] = None,
    ):
        self._on_next = on_next
        self._on_error = on_error
        self.description = description
        self._logger = logger_instance or logger
        self._lock = threading.RLock()
        self._registration: Optional[ListenerRegistration] = None
        self._closed = False
        self._error: Optional[Exception] = None
        self.emissions = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> Optional[Exception]:
        """The terminal error, if the channel ended with one."""
        return self._error

    def _attach(self, registration: ListenerRegistration) -> None:
        with self._lock:
            if not self._closed:
                self._registration = registration
                return
        registration.remove()

    def _emit(self, value: Any) -> None:
        registration = None
        with self._lock:
            if self._closed:
                return
            try:
                self._on_next(value)
                self.emissions += 1
            except Exception as e:
                self._logger.error(f"Subscriber callback failed for {self.description}: {e}")
                registration = self._terminate(e)
        if registration is not None:
            registration.remove()

    def _fail(self, error: Exception) -> None:
        with self._lock:
            if self._closed:
                return
            registration = self._terminate(error)
        if registration is not None:
            registration.remove()

    def _terminate(self, error: Exception) -> Optional[ListenerRegistration]:
        self._error = error
        registration = self._release()
        self._logger.error(f"Subscription to {self.description} terminated: {error}")
        if self._on_error is not None:
            self._on_error(error)
        return registration

    def _release(self) -> Optional[ListenerRegistration]:
        # Lock order is store listener, then subscription; callers remove the registration after releasing self._lock
        self._closed = True
        registration, self._registration = self._registration, None
        return registration

    def unsubscribe(self) -> None:
        """Stop delivery and release the store listener. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            registration = self._release()
        if registration is not None:
            registration.remove()
        self._logger.debug(f"Unsubscribed from {self.description} after {self.emissions} emissions")

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class _End:
    """Queue marker for a channel closed by the consumer."""


class SnapshotIterator:
    """
    Blocking iterator over the emissions of a live channel.

    next() raises the channel's terminal error, raises TimeoutError when
    nothing arrives within timeout, and stops after close().
    """

    def __init__(self, live: "LiveChannel", timeout: Optional[float] = None):
        self._queue: queue.Queue = queue.Queue()
        self._timeout = timeout
        self._done = False
        self.subscription = live.subscribe(self._queue.put, self._queue.put)

    def __iter__(self) -> "SnapshotIterator":
        return self

    def __next__(self) -> Any:
        if self._done:
            raise StopIteration
        try:
            item = self._queue.get(timeout=self._timeout)
        except queue.Empty:
            raise TimeoutError(
                f"No emission from {self.subscription.description} within {self._timeout}s"
            ) from None
        if isinstance(item, _End):
            self._done = True
            raise StopIteration
        if isinstance(item, Exception):
            self._done = True
            raise item
        return item

    def close(self) -> None:
        self.subscription.unsubscribe()
        self._queue.put(_End())

    def __enter__(self) -> "SnapshotIterator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LiveChannel(ABC):
    """Common behaviour of cold live channels."""

    description = ""

    @abstractmethod
    def _listen(self, subscription: Subscription) -> ListenerRegistration:
        """Register one store listener feeding subscription."""

    def subscribe(self, on_next: NextCallback, on_error: Optional[ErrorHandler] = None) -> Subscription:
        """Open a new store listener and deliver its emissions to on_next."""
        subscription = Subscription(on_next, on_error, self.description)
        try:
            registration = self._listen(subscription)
        except DocumentStoreError as e:
            subscription._fail(e)
            return subscription
        subscription._attach(registration)
        return subscription

    def snapshots(self, timeout: Optional[float] = None) -> SnapshotIterator:
        return SnapshotIterator(self, timeout)


class LiveQuery(LiveChannel):
    """Cold channel of ResultSets for one query descriptor."""

    def __init__(self, store: StoreClient, descriptor: QueryDescriptor):
        self._store = store
        self.descriptor = descriptor
        self.description = descriptor.describe()

    def _listen(self, subscription: Subscription) -> ListenerRegistration:
        def _on_change(snapshots: list[DocumentSnapshot]) -> None:
            subscription._emit(ResultSet(s.data for s in snapshots))

        return self._store.listen_query(self.descriptor, _on_change, subscription._fail)


class LiveDocument(LiveChannel):
    """Cold channel of one document's payload (None while it doesn't exist)."""

    def __init__(self, store: StoreClient, collection: CollectionPath, document_id: DocumentID):
        self._store = store
        self.collection = collection
        self.document_id = document_id
        self.description = f"{collection}/{document_id}"

    def _listen(self, subscription: Subscription) -> ListenerRegistration:
        def _on_change(snapshot: DocumentSnapshot) -> None:
            data: Optional[Document] = snapshot.data
            subscription._emit(data)

        return self._store.listen_document(
            self.collection, self.document_id, _on_change, subscription._fail
        )
