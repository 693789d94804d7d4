"""
Query Shaper

Adds ordering, a result limit and/or a half-open range window on top of a
PredicateChain and produces the final, immutable QueryDescriptor.

The range window expands into two clauses on its field (``>= lower`` and
``< upper``) that stay together, immediately after the caller predicates.
An equality predicate and a range on the same field is left to the store
to interpret. A limit without an ordering returns the first N documents
in the store's own order.

Usage:
    ```python
    from services.query_shaper import QueryShaper

    descriptor = (
        QueryShaper.for_collection("waiting-time")
        .where("status", "==", "open")
        .within("createdAt", start, end)
        .order_by("createdAt", "desc")
        .limit(20)
        .build()
    )
    ```
"""

from typing import Any, Iterable, Optional

from domain.enums import Direction
from domain.errors import InvalidQuery
from domain.query import OrderSpec, QueryDescriptor, RangeSpec, validate_limit
from domain.values import MISSING, CollectionPath, FieldReference
from services.predicate_chain import PredicateChain


class QueryShaper:
    """Builder that turns a PredicateChain into a QueryDescriptor."""

    def __init__(self, chain: PredicateChain):
        self._chain = chain
        self._order: Optional[OrderSpec] = None
        self._limit: Optional[int] = None
        self._range: Optional[RangeSpec] = None

    @classmethod
    def for_collection(cls, collection: CollectionPath, predicates: Iterable = ()) -> "QueryShaper":
        return cls(PredicateChain(collection, predicates))

    @property
    def collection(self) -> CollectionPath:
        return self._chain.collection

    def where(self, field, operator=None, value: Any = MISSING) -> "QueryShaper":
        """Append a predicate to the underlying chain."""
        self._chain.where(field, operator, value)
        return self

    def order_by(
        self,
        field: "FieldReference | OrderSpec",
        direction: "Direction | str" = Direction.ASCENDING,
    ) -> "QueryShaper":
        if self._order is not None:
            raise InvalidQuery("Only one ordering is supported", collection=self.collection)
        if isinstance(field, OrderSpec):
            self._order = field
        else:
            self._order = OrderSpec(field, direction)
        return self

    def limit(self, count: int) -> "QueryShaper":
        validate_limit(count, self.collection)
        self._limit = count
        return self

    def within(
        self,
        field: "FieldReference | RangeSpec",
        lower: Any = None,
        upper: Any = None,
    ) -> "QueryShaper":
        """Bound field to the half-open window [lower, upper)."""
        if self._range is not None:
            raise InvalidQuery("Only one range is supported", collection=self.collection)
        if isinstance(field, RangeSpec):
            self._range = field
        else:
            self._range = RangeSpec(field, lower, upper)
        return self

    def build(self) -> QueryDescriptor:
        return QueryDescriptor(
            collection=self._chain.collection,
            predicates=self._chain.predicates,
            range=self._range,
            order=self._order,
            limit=self._limit,
        )


def shape_query(
    collection: CollectionPath,
    predicates: Iterable = (),
    order: "OrderSpec | FieldReference | tuple | None" = None,
    limit: Optional[int] = None,
    range: "RangeSpec | tuple | None" = None,
    max_predicates: Optional[int] = None,
    min_predicates: int = 0,
) -> QueryDescriptor:
    """
    Build a descriptor from loose parameters in one call.

    Args:
        collection: Collection path
        predicates: Predicates or (field, operator, value) triples
        order: OrderSpec, bare field, or (field, direction) pair
        limit: Optional positive result count
        range: RangeSpec or (field, lower, upper) triple
        max_predicates: Tighter predicate cap for a specific operation
        min_predicates: Minimum number of predicates the operation needs

    Raises:
        InvalidQuery: If the parameters break a construction rule
    """
    chain = PredicateChain(collection, predicates)
    if len(chain) < min_predicates:
        raise InvalidQuery(
            f"This operation needs at least {min_predicates} predicate(s), got {len(chain)}",
            collection=collection,
        )
    if max_predicates is not None and len(chain) > max_predicates:
        raise InvalidQuery(
            f"This operation accepts at most {max_predicates} predicate(s), got {len(chain)}",
            collection=collection,
        )
    shaper = QueryShaper(chain)
    if range is not None:
        shaper.within(range if isinstance(range, RangeSpec) else RangeSpec(*range))
    if order is not None:
        shaper.order_by(OrderSpec.of(order))
    if limit is not None:
        shaper.limit(limit)
    return shaper.build()
