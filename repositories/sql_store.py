"""
SQL Document Store

StoreClient implementation over a SQLAlchemy engine. Every collection of a
tenant lives in one `documents` table keyed by (collection, doc_id), with
the payload stored as JSON text.

Design Principles:
1. Dependency Injection - Receives an Engine, doesn't create it
2. Error translation - SQLAlchemy errors become Unavailable or
   PermissionDenied; nothing is retried or swallowed
3. In-process change feed - committed writes re-evaluate the listeners
   of the written collection in the writing thread
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Callable, Iterator, Mapping, Optional
import logging
import secrets
import string
import threading

from sqlalchemy import (
    Column,
    DateTime,
    Engine,
    MetaData,
    String,
    Table,
    Text,
    and_,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from domain.errors import DocumentStoreError, PermissionDenied, Unavailable
from domain.query import QueryDescriptor
from domain.values import CollectionPath, Document, DocumentID, DocumentSnapshot
from logging_config import setup_logging
from repositories import query_engine
from repositories.base import (
    DocumentCallback,
    ErrorCallback,
    ListenerRegistration,
    QueryCallback,
    StoreClient,
)
from repositories.codec import decode_payload, encode_payload

logger = setup_logging(__name__, log_file="sql_store.log")

metadata = MetaData()

documents_table = Table(
    "documents",
    metadata,
    Column("collection", String(255), primary_key=True),
    Column("doc_id", String(255), primary_key=True),
    Column("payload", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20

# Driver messages that mean the store refused a write rather than being down
_PERMISSION_MARKERS = ("readonly database", "read-only", "permission denied", "access denied")


def generate_document_id() -> DocumentID:
    """Return a random 20-character alphanumeric identifier."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


def _fingerprint(result: Any) -> Any:
    """Type-strict identity of a read result (1, 1.0 and True differ)."""
    if isinstance(result, DocumentSnapshot):
        return (result.id, encode_payload(result.data) if result.exists else None)
    return tuple(_fingerprint(snapshot) for snapshot in result)


def _sql_limit(descriptor: QueryDescriptor) -> Optional[int]:
    """Row limit the select can apply itself: only unfiltered queries in id order."""
    if descriptor.clauses() or descriptor.order is not None:
        return None
    return descriptor.limit


# =============================================================================
# Listeners
# =============================================================================

class _Listener:
    """Store-side state of one live registration."""

    def __init__(
        self,
        store: "SqlDocumentStore",
        collection: CollectionPath,
        read: Callable[[], Any],
        deliver: Callable[[Any], None],
        on_error: ErrorCallback,
        description: str,
    ):
        self.store = store
        self.collection = collection
        self.description = description
        self._read = read
        self._deliver = deliver
        self._on_error = on_error
        self._lock = threading.RLock()
        self._active = True
        self._last: Any = None
        self._delivered = False

    @property
    def active(self) -> bool:
        return self._active

    def refresh(self) -> None:
        """Re-read and deliver if the result changed since the last delivery."""
        with self._lock:
            if not self._active:
                return
            try:
                current = self._read()
            except DocumentStoreError as e:
                self.fail(e)
                return
            fingerprint = _fingerprint(current)
            if self._delivered and fingerprint == self._last:
                return
            self._last = fingerprint
            self._delivered = True
            self._deliver(current)

    def fail(self, error: DocumentStoreError) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            self.store._discard_listener(self)
            logger.debug(f"Listener terminated: {self.description}: {error}")
            self._on_error(error)

    def remove(self) -> None:
        with self._lock:
            self._active = False
            self.store._discard_listener(self)
            logger.debug(f"Listener removed: {self.description}")


# =============================================================================
# Store
# =============================================================================

class SqlDocumentStore(StoreClient):
    """
    Tenant document store backed by a SQL database.

    Attributes:
        engine: SQLAlchemy engine for the tenant database
        read_only: If True, every write raises PermissionDenied
    """

    def __init__(
        self,
        engine: Engine,
        project: str = "",
        read_only: bool = False,
        logger_instance: Optional[logging.Logger] = None,
    ):
        super().__init__(project, logger_instance or logger)
        self.engine = engine
        self.read_only = read_only
        self._schema_ready = False
        self._schema_lock = threading.Lock()
        self._listeners: dict[CollectionPath, list[_Listener]] = {}
        self._listeners_lock = threading.Lock()
        self._closed = False

    # -------------------------------------------------------------------------
    # Infrastructure
    # -------------------------------------------------------------------------

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                metadata.create_all(self.engine)
                self._schema_ready = True

    def _translate(
        self,
        error: SQLAlchemyError,
        collection: Optional[CollectionPath],
        document_id: Optional[DocumentID],
    ) -> DocumentStoreError:
        msg = str(getattr(error, "orig", None) or error)
        if isinstance(error, OperationalError) and any(m in msg.lower() for m in _PERMISSION_MARKERS):
            return PermissionDenied(
                f"Store refused the operation: {msg}",
                collection=collection,
                document_id=document_id,
            )
        return Unavailable(
            f"Store unavailable: {msg}",
            collection=collection,
            document_id=document_id,
        )

    @contextmanager
    def _errors(
        self,
        collection: Optional[CollectionPath],
        document_id: Optional[DocumentID] = None,
    ) -> Iterator[None]:
        """Translate driver errors raised inside the block into domain errors."""
        if self._closed:
            raise Unavailable(
                f"Store for project '{self.project}' is closed",
                collection=collection,
                document_id=document_id,
            )
        try:
            self._ensure_schema()
            yield
        except DocumentStoreError:
            raise
        except SQLAlchemyError as e:
            error = self._translate(e, collection, document_id)
            self._logger.error(f"[{self.project}] {error}")
            raise error from e

    def _check_writable(self, collection: CollectionPath, document_id: Optional[DocumentID] = None) -> None:
        if self.read_only:
            raise PermissionDenied(
                f"Project '{self.project}' is read-only",
                collection=collection,
                document_id=document_id,
            )

    def _load_collection(
        self,
        conn,
        collection: CollectionPath,
        limit: Optional[int] = None,
    ) -> list[DocumentSnapshot]:
        stmt = (
            select(documents_table.c.doc_id, documents_table.c.payload)
            .where(documents_table.c.collection == collection)
            .order_by(documents_table.c.doc_id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            DocumentSnapshot(collection, row.doc_id, decode_payload(row.payload))
            for row in conn.execute(stmt)
        ]

    def _read_document(self, conn, collection: CollectionPath, document_id: DocumentID) -> Optional[Document]:
        stmt = select(documents_table.c.payload).where(
            and_(
                documents_table.c.collection == collection,
                documents_table.c.doc_id == document_id,
            )
        )
        row = conn.execute(stmt).fetchone()
        return decode_payload(row.payload) if row is not None else None

    # -------------------------------------------------------------------------
    # Collection queries
    # -------------------------------------------------------------------------

    def run_query(self, descriptor: QueryDescriptor) -> list[DocumentSnapshot]:
        query_engine.check_query(descriptor)
        start = perf_counter()
        with self._errors(descriptor.collection):
            with self.engine.connect() as conn:
                snapshots = self._load_collection(conn, descriptor.collection, _sql_limit(descriptor))
        result = query_engine.run(descriptor, snapshots)
        elapsed = round((perf_counter() - start) * 1000, 2)
        self._logger.debug(
            f"[{self.project}] run_query({descriptor.describe()}) -> {len(result)} docs in {elapsed} ms"
        )
        return result

    def listen_query(
        self,
        descriptor: QueryDescriptor,
        on_change: QueryCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        listener = _Listener(
            self,
            descriptor.collection,
            read=lambda: self.run_query(descriptor),
            deliver=on_change,
            on_error=on_error,
            description=f"query {descriptor.describe()}",
        )
        return self._register(listener)

    # -------------------------------------------------------------------------
    # Single documents
    # -------------------------------------------------------------------------

    def get_document(self, collection: CollectionPath, document_id: DocumentID) -> DocumentSnapshot:
        with self._errors(collection, document_id):
            with self.engine.connect() as conn:
                data = self._read_document(conn, collection, document_id)
        return DocumentSnapshot(collection, document_id, data)

    def listen_document(
        self,
        collection: CollectionPath,
        document_id: DocumentID,
        on_change: DocumentCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        listener = _Listener(
            self,
            collection,
            read=lambda: self.get_document(collection, document_id),
            deliver=on_change,
            on_error=on_error,
            description=f"document {collection}/{document_id}",
        )
        return self._register(listener)

    def set_document(
        self,
        collection: CollectionPath,
        document_id: DocumentID,
        data: Mapping[str, Any],
        merge: bool = False,
    ) -> None:
        self._check_writable(collection, document_id)
        document = Document(data)
        now = datetime.now(timezone.utc)
        with self._errors(collection, document_id):
            with self.engine.begin() as conn:
                existing = self._read_document(conn, collection, document_id)
                if existing is None:
                    conn.execute(
                        insert(documents_table).values(
                            collection=collection,
                            doc_id=document_id,
                            payload=encode_payload(document),
                            created_at=now,
                            updated_at=now,
                        )
                    )
                else:
                    if merge:
                        document = existing.merged(document)
                    conn.execute(
                        update(documents_table)
                        .where(
                            and_(
                                documents_table.c.collection == collection,
                                documents_table.c.doc_id == document_id,
                            )
                        )
                        .values(payload=encode_payload(document), updated_at=now)
                    )
        self._logger.info(f"[{self.project}] set {collection}/{document_id} (merge={merge})")
        self._notify(collection)

    def add_document(self, collection: CollectionPath, data: Mapping[str, Any]) -> DocumentID:
        self._check_writable(collection)
        document = Document(data)
        document_id = generate_document_id()
        now = datetime.now(timezone.utc)
        with self._errors(collection, document_id):
            with self.engine.begin() as conn:
                conn.execute(
                    insert(documents_table).values(
                        collection=collection,
                        doc_id=document_id,
                        payload=encode_payload(document),
                        created_at=now,
                        updated_at=now,
                    )
                )
        self._logger.info(f"[{self.project}] added {collection}/{document_id}")
        self._notify(collection)
        return document_id

    def delete_document(self, collection: CollectionPath, document_id: DocumentID) -> None:
        self._check_writable(collection, document_id)
        with self._errors(collection, document_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(documents_table).where(
                        and_(
                            documents_table.c.collection == collection,
                            documents_table.c.doc_id == document_id,
                        )
                    )
                )
        if result.rowcount:
            self._logger.info(f"[{self.project}] deleted {collection}/{document_id}")
            self._notify(collection)
        else:
            self._logger.debug(f"[{self.project}] delete of absent {collection}/{document_id}")

    # -------------------------------------------------------------------------
    # Change feed
    # -------------------------------------------------------------------------

    def _register(self, listener: _Listener) -> ListenerRegistration:
        with self._listeners_lock:
            self._listeners.setdefault(listener.collection, []).append(listener)
        self._logger.debug(f"[{self.project}] listener added: {listener.description}")
        registration = ListenerRegistration(listener.remove, listener.description)
        self._refresh(listener)
        return registration

    def _discard_listener(self, listener: _Listener) -> None:
        with self._listeners_lock:
            listeners = self._listeners.get(listener.collection, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(listener.collection, None)

    def _refresh(self, listener: _Listener) -> None:
        try:
            listener.refresh()
        except Exception as e:
            # A failing consumer callback ends its own listener, not the write
            self._logger.error(f"[{self.project}] listener {listener.description} failed: {e}")
            listener.fail(
                Unavailable(f"Listener callback failed: {e}", collection=listener.collection)
            )

    def _notify(self, collection: CollectionPath) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners.get(collection, ()))
        for listener in listeners:
            self._refresh(listener)

    def listener_count(self, collection: Optional[CollectionPath] = None) -> int:
        """Number of active listeners, optionally for one collection."""
        with self._listeners_lock:
            if collection is not None:
                return len(self._listeners.get(collection, ()))
            return sum(len(v) for v in self._listeners.values())

    def close(self) -> None:
        """Terminate every listener with Unavailable and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        with self._listeners_lock:
            listeners = [l for group in self._listeners.values() for l in group]
        for listener in listeners:
            listener.fail(
                Unavailable(f"Store for project '{self.project}' was closed", collection=listener.collection)
            )
        self.engine.dispose()
        self._logger.info(f"[{self.project}] store closed")
