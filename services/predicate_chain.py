"""
Predicate Chain

Accumulates zero to three filter predicates for one collection, in the
order the caller supplies them. Nothing here checks whether a field
exists or whether an operator suits a value; the store decides that and
reports QueryRejected.
"""

from typing import Any, Iterable

from domain.enums import ComparisonOperator
from domain.errors import InvalidQuery
from domain.query import MAX_PREDICATES, Predicate, QueryDescriptor
from domain.values import MISSING, CollectionPath, FieldReference


class PredicateChain:
    """Ordered predicates for a single collection."""

    def __init__(self, collection: CollectionPath, predicates: Iterable = ()):
        self.collection = collection
        self._predicates: list[Predicate] = []
        for predicate in predicates:
            self.where(predicate)

    def where(
        self,
        field: "FieldReference | Predicate | tuple",
        operator: "ComparisonOperator | str | None" = None,
        value: Any = MISSING,
    ) -> "PredicateChain":
        """
        Append one predicate.

        Accepts either ``where(field, operator, value)``, a Predicate, or a
        ``(field, operator, value)`` triple.

        Raises:
            InvalidQuery: If the chain already holds three predicates
        """
        if operator is None and value is MISSING:
            predicate = Predicate.of(field)
        else:
            if operator is None or value is MISSING:
                raise InvalidQuery(
                    "where() needs a field, an operator and a value",
                    collection=self.collection,
                )
            predicate = Predicate(field, operator, value)

        if len(self._predicates) >= MAX_PREDICATES:
            raise InvalidQuery(
                f"At most {MAX_PREDICATES} predicates are supported",
                collection=self.collection,
            )
        self._predicates.append(predicate)
        return self

    @property
    def predicates(self) -> tuple[Predicate, ...]:
        return tuple(self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)

    def build(self) -> QueryDescriptor:
        """Return a descriptor holding only these predicates."""
        return QueryDescriptor(self.collection, self.predicates)
