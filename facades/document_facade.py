"""
Document Facade

Provides a simplified, unified API for application code to read, filter,
order, paginate and mutate documents in one tenant store without needing
to know about the query services underneath.

This facade orchestrates:
- PredicateChain / QueryShaper (descriptor construction)
- ResultMaterializer (fetch-once and subscribe execution)
- DocumentAccessor (single-document operations)

Design Goals:
1. One method per query shape - callers pick the combination they need
2. Explicit store - the StoreClient is passed in, nothing is looked up globally
3. Failures pass through - every store error reaches the caller unchanged,
   after being logged here

Example Usage:
```python
from facades import get_document_facade
from domain import OrderSpec, Direction

facade = get_document_facade("project_two")

# One-shot read of a whole collection
rows = facade.fetch_all("waiting-time")

# Lowest value first, one result
first = facade.fetch_filtered_sorted_limited(
    "waiting-time", [], OrderSpec("value", Direction.ASCENDING), 1
)

# Live updates
subscription = facade.subscribe_all("productivity").subscribe(print)
...
subscription.unsubscribe()
```
"""

from typing import Iterable, Optional
import logging

from domain.errors import DocumentStoreError
from domain.project import DEFAULT_PROJECT, PROJECT_ONE, PROJECT_TWO
from domain.query import OrderSpec, QueryDescriptor, RangeSpec, ResultSet
from domain.values import CollectionPath
from logging_config import setup_logging
from repositories.base import StoreClient
from services.document_accessor import DocumentAccessor
from services.live import LiveQuery
from services.materializer import ResultMaterializer
from services.query_shaper import shape_query

logger = setup_logging(__name__, log_file="document_facade.log")


class DocumentFacade:
    """
    Facade providing one method per query combination over a tenant store.

    ## Core Dependencies:
    - store: StoreClient for the tenant
    - materializer: ResultMaterializer running descriptors
    - documents: DocumentAccessor for single-document work

    ## Method Categories:

    ### Fetch-once (return a ResultSet)
    - fetch_all(collection)
    - fetch_all_sorted(collection, order)
    - fetch_all_filtered(collection, *predicates)            1-3 predicates
    - fetch_filtered_sorted(collection, predicates, order)   1-3 predicates
    - fetch_sorted_limited(collection, order, limit)
    - fetch_filtered_sorted_limited(collection, predicates, order, limit)
    - fetch_filtered_sorted_range_limited(collection, predicates, range, order, limit)
    - fetch(descriptor)

    ### Subscribe (return a cold LiveQuery)
    - subscribe_all(collection)
    - subscribe_sorted_limited(collection, order, limit)
    - subscribe_filtered_sorted(collection, predicates, order)
    - subscribe_filtered_sorted_limited(collection, predicates, order, limit)
    - subscribe_filtered_sorted_range(collection, predicates, range, order)
    - subscribe_filtered_sorted_range_limited(collection, predicates, range, order, limit)
    - subscribe(descriptor)

    ### Single documents
    - documents.get / exists / watch / upsert / replace / insert / delete
    """

    def __init__(
        self,
        store: StoreClient,
        materializer: Optional[ResultMaterializer] = None,
        documents: Optional[DocumentAccessor] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the facade around a store.

        Args:
            store: StoreClient for one tenant
            materializer: Optional ResultMaterializer (built from store if None)
            documents: Optional DocumentAccessor (built from store if None)
            logger: Optional logger instance
        """
        self.store = store
        self._logger = logger or logging.getLogger(__name__)
        self.materializer = materializer or ResultMaterializer(store, self._logger)
        self.documents = documents or DocumentAccessor(store, self._logger)

    @property
    def project(self) -> str:
        return self.store.project

    # =========================================================================
    # Generic entry points
    # =========================================================================

    def fetch(self, descriptor: QueryDescriptor) -> ResultSet:
        """
        Run any descriptor once.

        Raises:
            QueryRejected, PermissionDenied, Unavailable: As reported by the store
        """
        try:
            return self.materializer.fetch_once(descriptor)
        except DocumentStoreError as e:
            self._logger.error(f"[{self.project}] fetch failed for {descriptor.describe()}: {e}")
            raise

    def subscribe(self, descriptor: QueryDescriptor) -> LiveQuery:
        """Return a cold live channel for any descriptor."""
        return self.materializer.subscribe(descriptor)

    # =========================================================================
    # Fetch-once Operations
    # =========================================================================

    def fetch_all(self, collection: CollectionPath) -> ResultSet:
        """
        Get every document of a collection.

        Example:
            ```python
            rows = facade.fetch_all("productivity")   # [] when empty
            ```
        """
        return self.fetch(shape_query(collection))

    def fetch_all_sorted(self, collection: CollectionPath, order: OrderSpec) -> ResultSet:
        """Get every document, ordered."""
        return self.fetch(shape_query(collection, order=order))

    def fetch_all_filtered(self, collection: CollectionPath, *predicates) -> ResultSet:
        """
        Get the documents matching one to three predicates.

        Args:
            collection: Collection path
            *predicates: Predicate objects or (field, operator, value) triples

        Example:
            ```python
            open_items = facade.fetch_all_filtered(
                "waiting-time", ("status", "==", "open"), ("value", ">", 3)
            )
            ```
        """
        return self.fetch(shape_query(collection, predicates, min_predicates=1))

    def fetch_filtered_sorted(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        order: OrderSpec,
    ) -> ResultSet:
        """Get the documents matching one to three predicates, ordered."""
        return self.fetch(shape_query(collection, predicates, order=order, min_predicates=1))

    def fetch_sorted_limited(self, collection: CollectionPath, order: OrderSpec, limit: int) -> ResultSet:
        """Get the first `limit` documents of the collection in the given order."""
        return self.fetch(shape_query(collection, order=order, limit=limit))

    def fetch_filtered_sorted_limited(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        order: OrderSpec,
        limit: int,
    ) -> ResultSet:
        """
        Get up to `limit` documents matching zero to three predicates, ordered.

        Example:
            ```python
            lowest = facade.fetch_filtered_sorted_limited(
                "waiting-time", [], OrderSpec("value", Direction.ASCENDING), 1
            )
            ```
        """
        return self.fetch(shape_query(collection, predicates, order=order, limit=limit))

    def fetch_filtered_sorted_range_limited(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        range: RangeSpec,
        order: OrderSpec,
        limit: int,
    ) -> ResultSet:
        """
        Get up to `limit` documents inside a half-open window, with at most
        one extra predicate, ordered.

        The store only accepts an ordering on the range field itself.
        """
        return self.fetch(
            shape_query(collection, predicates, order=order, limit=limit, range=range, max_predicates=1)
        )

    # =========================================================================
    # Subscribe Operations
    # =========================================================================

    def subscribe_all(self, collection: CollectionPath) -> LiveQuery:
        """Live view of every document of a collection."""
        return self.subscribe(shape_query(collection))

    def subscribe_sorted_limited(self, collection: CollectionPath, order: OrderSpec, limit: int) -> LiveQuery:
        """Live view of the first `limit` documents in the given order."""
        return self.subscribe(shape_query(collection, order=order, limit=limit))

    def subscribe_filtered_sorted(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        order: OrderSpec,
    ) -> LiveQuery:
        """Live view of the documents matching one to three predicates, ordered."""
        return self.subscribe(shape_query(collection, predicates, order=order, min_predicates=1))

    def subscribe_filtered_sorted_limited(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        order: OrderSpec,
        limit: int,
    ) -> LiveQuery:
        """
        Live view of up to `limit` documents matching zero to three predicates.

        Example:
            ```python
            live = facade.subscribe_filtered_sorted_limited(
                "productivity", [("team", "==", "ops")], OrderSpec("score", "desc"), 10
            )
            subscription = live.subscribe(on_next=render, on_error=report)
            ...
            subscription.unsubscribe()
            ```
        """
        return self.subscribe(shape_query(collection, predicates, order=order, limit=limit))

    def subscribe_filtered_sorted_range(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        range: RangeSpec,
        order: OrderSpec,
    ) -> LiveQuery:
        """Live view of the documents inside a window, with at most one extra predicate."""
        return self.subscribe(
            shape_query(collection, predicates, order=order, range=range, max_predicates=1)
        )

    def subscribe_filtered_sorted_range_limited(
        self,
        collection: CollectionPath,
        predicates: Iterable,
        range: RangeSpec,
        order: OrderSpec,
        limit: int,
    ) -> LiveQuery:
        """Live view of up to `limit` documents inside a window."""
        return self.subscribe(
            shape_query(collection, predicates, order=order, limit=limit, range=range, max_predicates=1)
        )


# =============================================================================
# Factory Functions
# =============================================================================


def get_document_facade(
    project: str = DEFAULT_PROJECT,
    settings_path: str = "settings.toml",
    logger: Optional[logging.Logger] = None,
) -> DocumentFacade:
    """
    Build a DocumentFacade for a configured project.

    The store (and its engine) is shared per project alias through
    ProjectConfig, so every facade for the same project sees the same
    change feed. The facade itself is not cached.

    Args:
        project: Project alias from settings.toml [projects]
        settings_path: Path to settings.toml
        logger: Optional logger instance

    Raises:
        ValueError: If project is not configured
    """
    from config import ProjectConfig

    config = ProjectConfig(project, settings_path=settings_path)
    return DocumentFacade(config.store, logger=logger)


def get_project_one_facade(settings_path: str = "settings.toml") -> DocumentFacade:
    return get_document_facade(PROJECT_ONE, settings_path)


def get_project_two_facade(settings_path: str = "settings.toml") -> DocumentFacade:
    return get_document_facade(PROJECT_TWO, settings_path)
