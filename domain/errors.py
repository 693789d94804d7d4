"""
Domain Errors

Failure taxonomy shared by the store, the query services and the facade.
Only the store translates driver exceptions into these types; every other
layer logs and re-raises them unchanged.
"""

from typing import Optional


class DocumentStoreError(Exception):
    """Base class for every failure surfaced by a document store."""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        document_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.collection = collection
        self.document_id = document_id

    def __str__(self) -> str:
        where = []
        if self.collection is not None:
            where.append(f"collection={self.collection!r}")
        if self.document_id is not None:
            where.append(f"id={self.document_id!r}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class QueryRejected(DocumentStoreError):
    """The store refused the query (unsupported clause combination, missing index)."""


class InvalidQuery(QueryRejected, ValueError):
    """A query descriptor broke a construction rule (too many predicates, bad limit)."""


class NotFound(DocumentStoreError):
    """A single-document read targeted an absent document."""


class PermissionDenied(DocumentStoreError):
    """The store refused the operation for authorization reasons."""


class Unavailable(DocumentStoreError):
    """The store could not be reached, or a live channel was terminated."""
