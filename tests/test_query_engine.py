"""
Tests for the in-process query engine

Covers:
- Rejected clause combinations
- Operator semantics (type classes, nulls, arrays, in / not-in)
- Ordering (type rank, missing fields, id tie-breaker, implicit order)
- Limit
"""
from datetime import datetime, timezone

import pytest

from domain.errors import QueryRejected
from domain.query import QueryDescriptor
from domain.values import Document, DocumentSnapshot
from repositories import query_engine
from repositories.query_engine import check_query, run, sort_key, type_rank


def snap(doc_id, **fields):
    return DocumentSnapshot("items", doc_id, Document(fields))


def ids(snapshots):
    return [s.id for s in snapshots]


@pytest.fixture
def items():
    return [
        snap("a", value=5, status="open", tags=["x", "y"]),
        snap("b", value=2, status="closed", tags=["y"]),
        snap("c", value=9, status="open"),
        snap("d", value="7", status="open"),
        snap("e", status="open", value=None),
        snap("f", status="pending"),
    ]


class TestCheckQuery:
    def test_inequality_on_two_fields_rejected(self):
        d = QueryDescriptor("items", [("value", ">", 1), ("rank", "<", 3)])
        with pytest.raises(QueryRejected):
            check_query(d)

    def test_two_inequalities_same_field_allowed(self):
        check_query(QueryDescriptor("items", [("value", ">", 1), ("value", "<", 3)]))

    def test_order_must_match_inequality_field(self):
        d = QueryDescriptor("items", [("value", ">", 1)], order="status")
        with pytest.raises(QueryRejected):
            check_query(d)

    def test_range_and_order_on_same_field_allowed(self):
        check_query(QueryDescriptor("items", range=("value", 1, 5), order=("value", "desc")))

    def test_two_array_membership_filters_rejected(self):
        d = QueryDescriptor("items", [("tags", "array-contains", "x"), ("tags", "array-contains-any", ["y"])])
        with pytest.raises(QueryRejected):
            check_query(d)

    def test_not_in_with_in_rejected(self):
        d = QueryDescriptor("items", [("status", "in", ["open"]), ("value", "not-in", [1])])
        with pytest.raises(QueryRejected):
            check_query(d)

    def test_list_operator_needs_list(self):
        with pytest.raises(QueryRejected):
            check_query(QueryDescriptor("items", [("status", "in", "open")]))
        with pytest.raises(QueryRejected):
            check_query(QueryDescriptor("items", [("status", "in", [])]))

    def test_list_operator_value_cap(self):
        too_many = list(range(query_engine.MAX_DISJUNCTION_VALUES + 1))
        with pytest.raises(QueryRejected):
            check_query(QueryDescriptor("items", [("value", "in", too_many)]))


class TestMatching:
    def test_equality(self, items):
        assert ids(run(QueryDescriptor("items", [("status", "==", "open")]), items)) == ["a", "c", "d", "e"]

    def test_range_only_matches_same_type(self, items):
        result = run(QueryDescriptor("items", [("value", ">", 1)]), items)
        assert ids(result) == ["b", "a", "c"]

    def test_string_range(self, items):
        result = run(QueryDescriptor("items", [("value", ">=", "0")]), items)
        assert ids(result) == ["d"]

    def test_equality_with_null(self, items):
        assert ids(run(QueryDescriptor("items", [("value", "==", None)]), items)) == ["e"]

    def test_not_equal_excludes_null_and_missing(self, items):
        result = run(QueryDescriptor("items", [("status", "!=", "closed")]), items)
        assert ids(result) == ["a", "c", "d", "e", "f"]
        result = run(QueryDescriptor("items", [("value", "!=", 5)]), items)
        assert "e" not in ids(result) and "f" not in ids(result)

    def test_in_and_not_in(self, items):
        assert ids(run(QueryDescriptor("items", [("status", "in", ["closed", "pending"])]), items)) == ["b", "f"]
        result = run(QueryDescriptor("items", [("status", "not-in", ["open"])]), items)
        assert ids(result) == ["b", "f"]

    def test_array_contains(self, items):
        assert ids(run(QueryDescriptor("items", [("tags", "array-contains", "y")]), items)) == ["a", "b"]
        assert ids(run(QueryDescriptor("items", [("tags", "array-contains-any", ["x", "z"])]), items)) == ["a"]

    def test_int_and_float_compare_equal(self):
        docs = [snap("a", value=5.0)]
        assert ids(run(QueryDescriptor("items", [("value", "==", 5)]), docs)) == ["a"]

    def test_timestamps(self):
        early = datetime(2024, 1, 1, tzinfo=timezone.utc)
        late = datetime(2024, 6, 1, tzinfo=timezone.utc)
        docs = [snap("a", at=early), snap("b", at=late)]
        result = run(QueryDescriptor("items", range=("at", datetime(2024, 3, 1), datetime(2025, 1, 1))), docs)
        assert ids(result) == ["b"]

    def test_document_id_field(self, items):
        from domain.values import FieldPath
        d = QueryDescriptor("items", [(FieldPath.document_id(), "in", ["c", "a"])])
        assert ids(run(d, items)) == ["a", "c"]

    def test_missing_snapshots_skipped(self):
        docs = [DocumentSnapshot("items", "gone"), snap("a", value=1)]
        assert ids(run(QueryDescriptor("items"), docs)) == ["a"]


class TestOrdering:
    def test_type_rank(self):
        values = ["s", 1, None, True, (1,), Document({"a": 1}), datetime(2024, 1, 1, tzinfo=timezone.utc)]
        ranked = sorted(values, key=sort_key)
        assert [type_rank(v) for v in ranked] == [0, 1, 2, 3, 4, 5, 6]

    def test_order_drops_documents_missing_field(self, items):
        result = run(QueryDescriptor("items", order="value"), items)
        assert ids(result) == ["e", "b", "a", "c", "d"]

    def test_descending(self, items):
        result = run(QueryDescriptor("items", [("status", "==", "open")], order=("value", "desc")), items)
        assert ids(result) == ["d", "c", "a", "e"]

    def test_ties_break_on_document_id(self):
        docs = [snap("b", v=1), snap("a", v=1), snap("c", v=0)]
        assert ids(run(QueryDescriptor("items", order="v"), docs)) == ["c", "a", "b"]
        assert ids(run(QueryDescriptor("items", order=("v", "desc")), docs)) == ["b", "a", "c"]

    def test_implicit_order_on_inequality_field(self):
        docs = [snap("a", v=3), snap("b", v=1), snap("c", v=2)]
        assert ids(run(QueryDescriptor("items", [("v", ">", 0)]), docs)) == ["b", "c", "a"]

    def test_no_order_uses_document_id(self):
        docs = [snap("b"), snap("a"), snap("c")]
        assert ids(run(QueryDescriptor("items"), docs)) == ["a", "b", "c"]

    def test_limit(self, items):
        result = run(QueryDescriptor("items", order="value", limit=2), items)
        assert ids(result) == ["e", "b"]
