"""
Repository Layer Package

This package contains the store clients that encapsulate all database access.
Services only ever talk to the StoreClient contract, which keeps them
testable against a mock or a throwaway SQLite file.

Key Components:
- StoreClient: Abstract contract for one tenant document store
- ListenerRegistration: Handle returned by every listener registration
- SqlDocumentStore: SQLAlchemy implementation with an in-process change feed
"""

from repositories.base import ListenerRegistration, StoreClient
from repositories.sql_store import SqlDocumentStore, generate_document_id

__all__ = [
    "ListenerRegistration",
    "StoreClient",
    "SqlDocumentStore",
    "generate_document_id",
]
