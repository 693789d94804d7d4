"""
Facade Layer

Provides a simplified, high-level interface for application code,
hiding the orchestration of the query services and the store.

Patterns Applied:
1. Facade Pattern - Single entry point per tenant store
2. Dependency Injection - Store injected, services lazily created
3. Factory Functions - Simplified instantiation from settings.toml

Main Components:
- DocumentFacade: Unified interface for document queries and access
- get_document_facade(): Factory function keyed by project alias
"""

from facades.document_facade import (
    DocumentFacade,
    get_document_facade,
    get_project_one_facade,
    get_project_two_facade,
)

__all__ = [
    'DocumentFacade',
    'get_document_facade',
    'get_project_one_facade',
    'get_project_two_facade',
]
