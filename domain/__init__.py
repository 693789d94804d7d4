"""
Domain Models Package

This package contains the core domain models for the document store facade.
These dataclasses and value types describe documents, field references and
query descriptors independently of any storage backend.

Key Components:
- Enums: ComparisonOperator, Direction
- Values: Document, FieldPath, DocumentSnapshot
- Query: Predicate, OrderSpec, RangeSpec, QueryDescriptor, ResultSet
- Errors: DocumentStoreError and its kinds
- Project: ProjectSettings for tenant configuration
"""

from domain.enums import ComparisonOperator, Direction
from domain.errors import (
    DocumentStoreError,
    QueryRejected,
    InvalidQuery,
    NotFound,
    PermissionDenied,
    Unavailable,
)
from domain.project import ProjectSettings, PROJECT_ONE, PROJECT_TWO, DEFAULT_PROJECT
from domain.query import (
    MAX_PREDICATES,
    Predicate,
    OrderSpec,
    RangeSpec,
    QueryDescriptor,
    ResultSet,
)
from domain.values import (
    MISSING,
    Document,
    FieldPath,
    DocumentSnapshot,
)

__all__ = [
    # Enums
    "ComparisonOperator",
    "Direction",
    # Errors
    "DocumentStoreError",
    "QueryRejected",
    "InvalidQuery",
    "NotFound",
    "PermissionDenied",
    "Unavailable",
    # Project
    "ProjectSettings",
    "PROJECT_ONE",
    "PROJECT_TWO",
    "DEFAULT_PROJECT",
    # Query
    "MAX_PREDICATES",
    "Predicate",
    "OrderSpec",
    "RangeSpec",
    "QueryDescriptor",
    "ResultSet",
    # Values
    "MISSING",
    "Document",
    "FieldPath",
    "DocumentSnapshot",
]
