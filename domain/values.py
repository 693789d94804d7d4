"""
Document Values

Typed containers for document payloads. A Document is an immutable,
ordered mapping from field name to a Value, where a Value is one of:

- None (null)
- bool
- int / float (number)
- str
- datetime (timestamp, always timezone-aware UTC once stored)
- Document (nested map)
- tuple of Values (sequence)

Anything else is rejected when the Document is built, so payloads never
travel through the codebase as untyped blobs.

Usage:
    ```python
    from domain.values import Document, FieldPath

    doc = Document({"value": 5, "meta": {"owner": "ops"}})
    FieldPath.parse("meta.owner").lookup(doc)   # "ops"
    doc.to_dict()                                # plain dicts and lists
    ```
"""

from collections.abc import Mapping, Iterator
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

CollectionPath = str
DocumentID = str

Scalar = Union[None, bool, int, float, str, datetime]


class _Missing:
    """Marker for a field that is absent from a document."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def normalize_timestamp(value: datetime) -> datetime:
    """Return value as a timezone-aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_value(value: Any) -> Any:
    """
    Convert a Python object into a document Value.

    Args:
        value: Any candidate field value

    Returns:
        The value in its canonical stored form (Document for mappings,
        tuple for sequences, UTC datetime for timestamps)

    Raises:
        TypeError: If value is not representable in a document

    Examples:
        >>> to_value([1, "a"])
        (1, 'a')
        >>> to_value({"a": 1})
        Document({'a': 1})
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, datetime):
        return normalize_timestamp(value)
    if isinstance(value, date):
        raise TypeError(
            f"Unsupported document value {value!r}: use a datetime for timestamps"
        )
    if isinstance(value, Document):
        return value
    if isinstance(value, Mapping):
        return Document(value)
    if isinstance(value, (list, tuple)):
        return tuple(to_value(item) for item in value)
    raise TypeError(
        f"Unsupported document value of type {type(value).__name__}: {value!r}"
    )


def from_value(value: Any) -> Any:
    """Inverse of to_value(): plain dicts and lists, datetimes left as-is."""
    if isinstance(value, Document):
        return value.to_dict()
    if isinstance(value, tuple):
        return [from_value(item) for item in value]
    return value


class Document(Mapping):
    """Immutable ordered mapping of field name to Value."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        data = dict(fields or {})
        data.update(kwargs)
        converted = {}
        for key, value in data.items():
            if not isinstance(key, str):
                raise TypeError(f"Document field names must be str, got {key!r}")
            converted[key] = to_value(value)
        object.__setattr__(self, "_fields", converted)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Document is immutable")

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Document({self._fields!r})"

    def to_dict(self) -> dict:
        """Return the payload as plain dicts and lists."""
        return {key: from_value(value) for key, value in self._fields.items()}

    def merged(self, partial: Mapping[str, Any]) -> "Document":
        """
        Return a new Document with the top-level fields of partial merged in.

        Nested maps are merged recursively; fields absent from partial
        are kept unchanged.
        """
        result = dict(self._fields)
        for key, value in Document(partial).items():
            current = result.get(key)
            if isinstance(current, Document) and isinstance(value, Document):
                result[key] = current.merged(value)
            else:
                result[key] = value
        return Document(result)


@dataclass(frozen=True)
class FieldPath:
    """
    Structured reference to a (possibly nested) document field.

    Plain strings are accepted wherever a field reference is expected;
    dots in them separate nested segments. Build a FieldPath explicitly
    when a segment itself contains a dot.
    """
    segments: tuple[str, ...]

    DOCUMENT_ID = "__name__"

    def __post_init__(self):
        if not self.segments or any(not s for s in self.segments):
            raise ValueError(f"Invalid field path: {self.segments!r}")

    @classmethod
    def of(cls, *segments: str) -> "FieldPath":
        return cls(tuple(segments))

    @classmethod
    def document_id(cls) -> "FieldPath":
        """Reference to the document identifier rather than a payload field."""
        return cls((cls.DOCUMENT_ID,))

    @classmethod
    def parse(cls, reference: "FieldReference") -> "FieldPath":
        if isinstance(reference, FieldPath):
            return reference
        if not isinstance(reference, str):
            raise TypeError(f"Field reference must be str or FieldPath, got {reference!r}")
        return cls(tuple(reference.split(".")))

    @property
    def is_document_id(self) -> bool:
        return self.segments == (self.DOCUMENT_ID,)

    def lookup(self, document: Mapping[str, Any], document_id: Optional[str] = None) -> Any:
        """Return the referenced value, or MISSING if any segment is absent."""
        if self.is_document_id:
            return document_id if document_id is not None else MISSING
        current: Any = document
        for segment in self.segments:
            if not isinstance(current, Mapping) or segment not in current:
                return MISSING
            current = current[segment]
        return current

    def __str__(self) -> str:
        return ".".join(self.segments)


FieldReference = Union[str, FieldPath]


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    A document read from the store together with its identifier.

    data is None when the document does not exist.
    """
    collection: CollectionPath
    id: DocumentID
    data: Optional[Document] = None

    @property
    def exists(self) -> bool:
        return self.data is not None
