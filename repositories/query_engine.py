"""
Query Engine

Evaluates a QueryDescriptor against the snapshots of one collection the
way the hosted document store does, including the clause combinations
it refuses to run.

Evaluation order:
  1. check_query() - reject unsupported combinations (QueryRejected)
  2. filter       - every clause must match; values only match values of
                    the same type class (numbers with numbers, ...)
  3. order        - documents missing an ordering field are dropped;
                    mixed types sort by type rank; ties break on document id
  4. limit        - keep the first N
"""

from collections.abc import Mapping
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Iterable

from domain.enums import ComparisonOperator, Direction
from domain.errors import QueryRejected
from domain.query import OrderSpec, Predicate, QueryDescriptor
from domain.values import MISSING, DocumentSnapshot, FieldPath

# Maximum number of candidates for in / not-in / array-contains-any
MAX_DISJUNCTION_VALUES = 30

_NULL, _BOOL, _NUMBER, _TIMESTAMP, _STRING, _SEQUENCE, _MAP = range(7)


def type_rank(value: Any) -> int:
    """Cross-type ordering rank: null < bool < number < timestamp < string < sequence < map."""
    if value is None:
        return _NULL
    if isinstance(value, bool):
        return _BOOL
    if isinstance(value, (int, float)):
        return _NUMBER
    if isinstance(value, datetime):
        return _TIMESTAMP
    if isinstance(value, str):
        return _STRING
    if isinstance(value, tuple):
        return _SEQUENCE
    if isinstance(value, Mapping):
        return _MAP
    raise TypeError(f"Unsupported value in document: {value!r}")


def sort_key(value: Any) -> tuple:
    """Total ordering key for any document value."""
    rank = type_rank(value)
    if rank == _NULL:
        return (rank,)
    if rank == _SEQUENCE:
        return (rank, tuple(sort_key(item) for item in value))
    if rank == _MAP:
        return (rank, tuple((key, sort_key(value[key])) for key in sorted(value)))
    return (rank, value)


def _equal(left: Any, right: Any) -> bool:
    return sort_key(left) == sort_key(right)


def _compare(left: Any, right: Any) -> int:
    a, b = sort_key(left), sort_key(right)
    return (a > b) - (a < b)


# =============================================================================
# Validation
# =============================================================================

def check_query(descriptor: QueryDescriptor) -> None:
    """
    Raise QueryRejected if the store cannot run descriptor.

    Rules:
    - list operators need a non-empty list of at most 30 values
    - inequality filters may only target one field
    - with an inequality filter, the ordering must be on that field
    - at most one array-contains / array-contains-any clause
    - not-in cannot be combined with != or in, and appears at most once
    """
    clauses = descriptor.clauses()
    collection = descriptor.collection

    for clause in clauses:
        if clause.operator.takes_list:
            if not isinstance(clause.value, tuple) or not clause.value:
                raise QueryRejected(
                    f"'{clause.operator.value}' filters require a non-empty list of values",
                    collection=collection,
                )
            if len(clause.value) > MAX_DISJUNCTION_VALUES:
                raise QueryRejected(
                    f"'{clause.operator.value}' filters support at most "
                    f"{MAX_DISJUNCTION_VALUES} values, got {len(clause.value)}",
                    collection=collection,
                )

    inequality_fields = []
    for clause in clauses:
        if clause.operator.is_inequality and clause.field not in inequality_fields:
            inequality_fields.append(clause.field)
    if len(inequality_fields) > 1:
        names = ", ".join(str(f) for f in inequality_fields)
        raise QueryRejected(
            f"Inequality filters on multiple fields ({names}) require a composite index",
            collection=collection,
        )

    if inequality_fields and descriptor.order is not None:
        if descriptor.order.field != inequality_fields[0]:
            raise QueryRejected(
                f"Ordering on '{descriptor.order.field}' conflicts with the inequality "
                f"filter on '{inequality_fields[0]}'; the first ordering must use that field",
                collection=collection,
            )

    operators = [clause.operator for clause in clauses]
    if sum(1 for op in operators if op.is_array_membership) > 1:
        raise QueryRejected(
            "Only one array-contains or array-contains-any filter is allowed per query",
            collection=collection,
        )
    not_in_count = operators.count(ComparisonOperator.NOT_IN)
    if not_in_count > 1 or (
        not_in_count
        and (ComparisonOperator.NOT_EQUAL in operators or ComparisonOperator.IN in operators)
    ):
        raise QueryRejected(
            "'not-in' cannot be repeated or combined with '!=' or 'in'",
            collection=collection,
        )


# =============================================================================
# Matching
# =============================================================================

def matches(predicate: Predicate, snapshot: DocumentSnapshot) -> bool:
    """True if the snapshot satisfies predicate."""
    value = predicate.field.lookup(snapshot.data, snapshot.id)
    if value is MISSING:
        return False
    op = predicate.operator
    target = predicate.value

    if op is ComparisonOperator.EQUAL:
        return _equal(value, target)
    if op is ComparisonOperator.NOT_EQUAL:
        return value is not None and not _equal(value, target)
    if op is ComparisonOperator.IN:
        return any(_equal(value, candidate) for candidate in target)
    if op is ComparisonOperator.NOT_IN:
        return value is not None and not any(_equal(value, c) for c in target)
    if op is ComparisonOperator.ARRAY_CONTAINS:
        return isinstance(value, tuple) and any(_equal(item, target) for item in value)
    if op is ComparisonOperator.ARRAY_CONTAINS_ANY:
        return isinstance(value, tuple) and any(
            _equal(item, candidate) for item in value for candidate in target
        )

    # Range operators only compare within one type class
    if value is None or type_rank(value) != type_rank(target):
        return False
    result = _compare(value, target)
    if op is ComparisonOperator.LESS_THAN:
        return result < 0
    if op is ComparisonOperator.LESS_THAN_OR_EQUAL:
        return result <= 0
    if op is ComparisonOperator.GREATER_THAN:
        return result > 0
    if op is ComparisonOperator.GREATER_THAN_OR_EQUAL:
        return result >= 0
    raise QueryRejected(f"Unsupported operator {op!r}")


# =============================================================================
# Execution
# =============================================================================

def effective_ordering(descriptor: QueryDescriptor) -> list[OrderSpec]:
    """Explicit ordering, or the implicit ascending order on an inequality field."""
    if descriptor.order is not None:
        return [descriptor.order]
    for clause in descriptor.clauses():
        if clause.operator.is_inequality:
            return [OrderSpec(clause.field, Direction.ASCENDING)]
    return []


def run(descriptor: QueryDescriptor, snapshots: Iterable[DocumentSnapshot]) -> list[DocumentSnapshot]:
    """Apply descriptor to the snapshots of its collection."""
    check_query(descriptor)
    clauses = descriptor.clauses()
    matched = [
        s for s in snapshots
        if s.exists and all(matches(clause, s) for clause in clauses)
    ]

    orderings = effective_ordering(descriptor)
    matched = [
        s for s in matched
        if all(o.field.lookup(s.data, s.id) is not MISSING for o in orderings)
    ]

    # Document id is the final tie-breaker and follows the last direction
    tie_direction = orderings[-1].direction if orderings else Direction.ASCENDING
    keys = orderings + [OrderSpec(FieldPath.document_id(), tie_direction)]

    def _cmp(a: DocumentSnapshot, b: DocumentSnapshot) -> int:
        for spec in keys:
            result = _compare(
                spec.field.lookup(a.data, a.id),
                spec.field.lookup(b.data, b.id),
            )
            if result:
                return -result if spec.direction.is_descending else result
        return 0

    matched.sort(key=cmp_to_key(_cmp))
    if descriptor.limit is not None:
        matched = matched[: descriptor.limit]
    return matched

