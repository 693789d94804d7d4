"""
Tests for the query domain models

Covers:
- Operator and direction parsing
- Predicate / OrderSpec / RangeSpec normalization
- QueryDescriptor construction rules (predicate cap, limit)
- ResultSet conversion to records and DataFrames
"""
import pandas as pd
import pytest

from domain.enums import ComparisonOperator, Direction
from domain.errors import DocumentStoreError, InvalidQuery, QueryRejected
from domain.query import (
    MAX_PREDICATES,
    OrderSpec,
    Predicate,
    QueryDescriptor,
    RangeSpec,
    ResultSet,
    validate_limit,
)
from domain.values import Document, FieldPath


class TestComparisonOperator:
    @pytest.mark.parametrize("token,expected", [
        ("==", ComparisonOperator.EQUAL),
        ("not-in", ComparisonOperator.NOT_IN),
        ("ARRAY_CONTAINS", ComparisonOperator.ARRAY_CONTAINS),
        ("array-contains-any", ComparisonOperator.ARRAY_CONTAINS_ANY),
        ("less_than_or_equal", ComparisonOperator.LESS_THAN_OR_EQUAL),
    ])
    def test_parse(self, token, expected):
        assert ComparisonOperator.parse(token) is expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            ComparisonOperator.parse("~=")

    def test_properties(self):
        assert ComparisonOperator.NOT_IN.is_inequality
        assert ComparisonOperator.NOT_IN.takes_list
        assert not ComparisonOperator.EQUAL.is_inequality
        assert ComparisonOperator.ARRAY_CONTAINS.is_array_membership
        assert not ComparisonOperator.ARRAY_CONTAINS.takes_list


class TestDirection:
    def test_parse(self):
        assert Direction.parse("desc") is Direction.DESCENDING
        assert Direction.parse("Ascending") is Direction.ASCENDING

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            Direction.parse("sideways")


class TestClauses:
    def test_predicate_normalizes(self):
        p = Predicate("meta.owner", "==", ["a"])
        assert p.field == FieldPath(("meta", "owner"))
        assert p.operator is ComparisonOperator.EQUAL
        assert p.value == ("a",)

    def test_predicate_of_triple(self):
        assert Predicate.of(("value", ">", 3)) == Predicate("value", ">", 3)

    def test_predicate_of_bad_shape(self):
        with pytest.raises(InvalidQuery):
            Predicate.of(("value", ">"))

    def test_order_spec_of(self):
        assert OrderSpec.of("value") == OrderSpec("value", Direction.ASCENDING)
        assert OrderSpec.of(("value", "desc")).direction is Direction.DESCENDING

    def test_range_bounds(self):
        low, high = RangeSpec("createdAt", 10, 20).bounds()
        assert low.operator is ComparisonOperator.GREATER_THAN_OR_EQUAL
        assert low.value == 10
        assert high.operator is ComparisonOperator.LESS_THAN
        assert high.value == 20


class TestQueryDescriptor:
    def test_defaults(self):
        d = QueryDescriptor("waiting-time")
        assert d.predicates == ()
        assert d.order is None and d.limit is None and d.range is None

    def test_predicate_cap(self):
        preds = [("f", "==", i) for i in range(MAX_PREDICATES + 1)]
        with pytest.raises(InvalidQuery):
            QueryDescriptor("c", preds)

    @pytest.mark.parametrize("limit", [0, -1, 1.5, True])
    def test_invalid_limit(self, limit):
        with pytest.raises(InvalidQuery):
            QueryDescriptor("c", limit=limit)

    def test_validate_limit_accepts_none_and_positive(self):
        validate_limit(None)
        validate_limit(5)

    def test_collection_must_be_str(self):
        with pytest.raises(InvalidQuery):
            QueryDescriptor(None)

    def test_clauses_keep_range_adjacent_and_last(self):
        d = QueryDescriptor("c", [("status", "==", "open")], range=("createdAt", 1, 5))
        clauses = d.clauses()
        assert [str(c.field) for c in clauses] == ["status", "createdAt", "createdAt"]
        assert clauses[1].operator is ComparisonOperator.GREATER_THAN_OR_EQUAL
        assert clauses[2].operator is ComparisonOperator.LESS_THAN

    def test_describe(self):
        d = QueryDescriptor("c", [("value", ">", 3)], order=("value", "desc"), limit=2)
        assert d.describe() == "c where value > 3 order by value desc limit 2"

    def test_invalid_query_is_a_rejection_and_a_value_error(self):
        assert issubclass(InvalidQuery, QueryRejected)
        assert issubclass(InvalidQuery, ValueError)
        assert issubclass(QueryRejected, DocumentStoreError)


class TestResultSet:
    def test_sequence_behaviour(self):
        rs = ResultSet([{"value": 1}, {"value": 2}])
        assert len(rs) == 2
        assert isinstance(rs[0], Document)
        assert rs[1:] == [{"value": 2}]
        assert rs == [{"value": 1}, {"value": 2}]

    def test_empty(self):
        assert ResultSet() == []
        assert ResultSet().to_frame().empty

    def test_to_records(self):
        rs = ResultSet([{"tags": ["a"], "meta": {"x": 1}}])
        assert rs.to_records() == [{"tags": ["a"], "meta": {"x": 1}}]

    def test_to_frame_flattens_nested_maps(self):
        rs = ResultSet([{"value": 1, "meta": {"owner": "ops"}}, {"value": 2}])
        df = rs.to_frame()
        assert isinstance(df, pd.DataFrame)
        assert list(df["value"]) == [1, 2]
        assert df.loc[0, "meta.owner"] == "ops"
        assert pd.isna(df.loc[1, "meta.owner"])
