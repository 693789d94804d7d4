"""
Services Package

This package contains the query pipeline and single-document services
that sit between the facade and a StoreClient.

Each service module follows these principles:
1. Single Responsibility - one concern per service
2. Dependency Injection - the store is passed in, not created
3. Immutable output - builders end in a frozen QueryDescriptor

Available Services:
- PredicateChain: up to three conjunctive predicates over one collection
- QueryShaper / shape_query: ordering, limit and range window
- ResultMaterializer: fetch-once and subscribe execution
- LiveQuery / LiveDocument / Subscription: cancellable live channels
- DocumentAccessor: get, exists, watch, upsert, replace, insert, delete
"""

from services.predicate_chain import PredicateChain
from services.query_shaper import QueryShaper, shape_query
from services.materializer import ResultMaterializer
from services.live import LiveQuery, LiveDocument, Subscription, SnapshotIterator
from services.document_accessor import DocumentAccessor

__all__ = [
    'PredicateChain',
    'QueryShaper',
    'shape_query',
    'ResultMaterializer',
    'LiveQuery',
    'LiveDocument',
    'Subscription',
    'SnapshotIterator',
    'DocumentAccessor',
]
