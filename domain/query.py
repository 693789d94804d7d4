"""
Query Domain Models

Value objects describing what to read from a collection:

- Predicate: one filter condition (field, operator, value)
- OrderSpec: ordering key and direction
- RangeSpec: half-open window [lower, upper) on one field
- QueryDescriptor: the immutable composition handed to a store
- ResultSet: the ordered documents a query produced

Design Principles:
1. Immutability (frozen=True) - descriptors are built per call and never mutated
2. Construction-time checks - predicate count and limit are validated once
3. No store knowledge - whether the store accepts a combination is the
   store's decision, surfaced as QueryRejected
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import pandas as pd

from domain.enums import ComparisonOperator, Direction
from domain.errors import InvalidQuery
from domain.values import (
    CollectionPath,
    Document,
    FieldPath,
    FieldReference,
    from_value,
    to_value,
)

MAX_PREDICATES = 3


# =============================================================================
# Clauses
# =============================================================================

@dataclass(frozen=True)
class Predicate:
    """
    A single filter condition.

    field accepts a dotted string or a FieldPath and is stored as a
    FieldPath; operator accepts a ComparisonOperator or its token.
    """
    field: FieldPath
    operator: ComparisonOperator
    value: Any

    def __post_init__(self):
        object.__setattr__(self, "field", FieldPath.parse(self.field))
        object.__setattr__(self, "operator", ComparisonOperator.parse(self.operator))
        object.__setattr__(self, "value", to_value(self.value))

    @classmethod
    def of(cls, spec: "Predicate | tuple") -> "Predicate":
        """Accept a Predicate or a (field, operator, value) triple."""
        if isinstance(spec, Predicate):
            return spec
        try:
            field_ref, operator, value = spec
        except (TypeError, ValueError):
            raise InvalidQuery(
                f"Predicate must be a Predicate or a (field, operator, value) triple, got {spec!r}"
            ) from None
        return cls(field_ref, operator, value)

    def __str__(self) -> str:
        return f"{self.field} {self.operator.value} {from_value(self.value)!r}"


@dataclass(frozen=True)
class OrderSpec:
    """Ordering key and direction."""
    field: FieldPath
    direction: Direction = Direction.ASCENDING

    def __post_init__(self):
        object.__setattr__(self, "field", FieldPath.parse(self.field))
        object.__setattr__(self, "direction", Direction.parse(self.direction))

    @classmethod
    def of(cls, spec: "OrderSpec | FieldReference | tuple") -> "OrderSpec":
        """Accept an OrderSpec, a bare field (ascending) or a (field, direction) pair."""
        if isinstance(spec, OrderSpec):
            return spec
        if isinstance(spec, (str, FieldPath)):
            return cls(spec)
        field_ref, direction = spec
        return cls(field_ref, direction)

    def __str__(self) -> str:
        return f"{self.field} {self.direction.value}"


@dataclass(frozen=True)
class RangeSpec:
    """Half-open window on one field: lower <= field < upper."""
    field: FieldPath
    lower: Any
    upper: Any

    def __post_init__(self):
        object.__setattr__(self, "field", FieldPath.parse(self.field))
        object.__setattr__(self, "lower", to_value(self.lower))
        object.__setattr__(self, "upper", to_value(self.upper))

    def bounds(self) -> tuple[Predicate, Predicate]:
        """The two inequality predicates the window stands for."""
        return (
            Predicate(self.field, ComparisonOperator.GREATER_THAN_OR_EQUAL, self.lower),
            Predicate(self.field, ComparisonOperator.LESS_THAN, self.upper),
        )

    def __str__(self) -> str:
        return f"{self.field} in [{self.lower!r}, {self.upper!r})"


# =============================================================================
# QueryDescriptor
# =============================================================================

@dataclass(frozen=True)
class QueryDescriptor:
    """
    Immutable description of a collection query.

    Attributes:
        collection: Collection path inside the tenant store
        predicates: Zero to three caller predicates, in caller order
        range: Optional half-open window, applied after the predicates
        order: Optional ordering
        limit: Optional positive maximum result count
    """
    collection: CollectionPath
    predicates: tuple[Predicate, ...] = ()
    range: Optional[RangeSpec] = None
    order: Optional[OrderSpec] = None
    limit: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.collection, str):
            raise InvalidQuery(f"Collection path must be a str, got {self.collection!r}")
        predicates = tuple(Predicate.of(p) for p in self.predicates)
        if len(predicates) > MAX_PREDICATES:
            raise InvalidQuery(
                f"At most {MAX_PREDICATES} predicates are supported, got {len(predicates)}",
                collection=self.collection,
            )
        object.__setattr__(self, "predicates", predicates)
        if self.range is not None and not isinstance(self.range, RangeSpec):
            object.__setattr__(self, "range", RangeSpec(*self.range))
        if self.order is not None:
            object.__setattr__(self, "order", OrderSpec.of(self.order))
        validate_limit(self.limit, self.collection)

    def clauses(self) -> tuple[Predicate, ...]:
        """All filter clauses in application order (range bounds last, adjacent)."""
        if self.range is None:
            return self.predicates
        return self.predicates + self.range.bounds()

    def describe(self) -> str:
        """One-line human readable form used in log messages."""
        parts = [self.collection]
        clauses = self.clauses()
        if clauses:
            parts.append("where " + " and ".join(str(c) for c in clauses))
        if self.order is not None:
            parts.append(f"order by {self.order}")
        if self.limit is not None:
            parts.append(f"limit {self.limit}")
        return " ".join(parts)


def validate_limit(limit: Optional[int], collection: Optional[str] = None) -> None:
    """Raise InvalidQuery unless limit is None or a positive int."""
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidQuery(
            f"Limit must be a positive integer, got {limit!r}",
            collection=collection,
        )


# =============================================================================
# ResultSet
# =============================================================================

class ResultSet(Sequence):
    """Ordered, immutable sequence of document payloads."""

    __slots__ = ("_documents",)

    def __init__(self, documents=()):
        self._documents = tuple(
            d if isinstance(d, Document) else Document(d) for d in documents
        )

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ResultSet(self._documents[index])
        return self._documents[index]

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __eq__(self, other) -> bool:
        if isinstance(other, (ResultSet, list, tuple)):
            return list(self._documents) == list(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"ResultSet({list(self._documents)!r})"

    def to_records(self) -> list[dict]:
        """Return the payloads as plain dicts."""
        return [d.to_dict() for d in self._documents]

    def to_frame(self) -> pd.DataFrame:
        """
        Return the payloads as a DataFrame, one row per document.

        Nested maps are flattened into dotted column names
        (``meta.owner``); documents missing a field get NaN there.
        """
        records = self.to_records()
        if not records:
            return pd.DataFrame()
        return pd.json_normalize(records)
