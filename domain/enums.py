"""
Domain Enums

Enumerations for the operators and directions used by query descriptors.
These replace magic strings and provide type safety.
"""

from enum import Enum


class ComparisonOperator(Enum):
    """
    Filter operators understood by the document store.

    The value of each member is the token the store uses for it, so
    ``ComparisonOperator("array-contains")`` and
    ``ComparisonOperator.parse("ARRAY_CONTAINS")`` both work.
    """
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    ARRAY_CONTAINS = "array-contains"
    IN = "in"
    NOT_IN = "not-in"
    ARRAY_CONTAINS_ANY = "array-contains-any"

    @classmethod
    def parse(cls, operator: "ComparisonOperator | str") -> "ComparisonOperator":
        """
        Convert a token or member name to a ComparisonOperator.

        Args:
            operator: An existing member, a store token ("<=", "not-in")
                      or a member name (case-insensitive, "less_than")

        Returns:
            Corresponding ComparisonOperator

        Raises:
            ValueError: If operator doesn't match any operator

        Example:
            >>> ComparisonOperator.parse(">=")
            <ComparisonOperator.GREATER_THAN_OR_EQUAL: '>='>
            >>> ComparisonOperator.parse("in")
            <ComparisonOperator.IN: 'in'>
        """
        if isinstance(operator, cls):
            return operator
        token = str(operator).strip()
        try:
            return cls(token.lower())
        except ValueError:
            pass
        name = token.upper().replace("-", "_")
        if name in cls.__members__:
            return cls.__members__[name]
        raise ValueError(
            f"Invalid operator: {operator}. "
            f"Must be one of: {', '.join(op.value for op in cls)}"
        )

    @property
    def is_inequality(self) -> bool:
        """True for operators the store restricts to a single field per query."""
        return self in (
            ComparisonOperator.NOT_EQUAL,
            ComparisonOperator.LESS_THAN,
            ComparisonOperator.LESS_THAN_OR_EQUAL,
            ComparisonOperator.GREATER_THAN,
            ComparisonOperator.GREATER_THAN_OR_EQUAL,
            ComparisonOperator.NOT_IN,
        )

    @property
    def takes_list(self) -> bool:
        """True for operators whose value is a list of candidates."""
        return self in (
            ComparisonOperator.IN,
            ComparisonOperator.NOT_IN,
            ComparisonOperator.ARRAY_CONTAINS_ANY,
        )

    @property
    def is_array_membership(self) -> bool:
        return self in (
            ComparisonOperator.ARRAY_CONTAINS,
            ComparisonOperator.ARRAY_CONTAINS_ANY,
        )


class Direction(Enum):
    """Sort direction for an OrderSpec."""
    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def parse(cls, direction: "Direction | str") -> "Direction":
        """Accept a member, "asc"/"desc" or "ascending"/"descending"."""
        if isinstance(direction, cls):
            return direction
        key = str(direction).strip().lower()
        mapping = {
            "asc": cls.ASCENDING,
            "ascending": cls.ASCENDING,
            "desc": cls.DESCENDING,
            "descending": cls.DESCENDING,
        }
        if key not in mapping:
            raise ValueError(
                f"Invalid direction: {direction}. Must be 'asc' or 'desc'"
            )
        return mapping[key]

    @property
    def is_descending(self) -> bool:
        return self is Direction.DESCENDING
