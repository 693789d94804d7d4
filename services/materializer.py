"""
Result Materializer

Runs a QueryDescriptor against a store in one of two modes:

- fetch_once(): a single blocking read returning a ResultSet
- subscribe(): a cold LiveQuery the caller subscribes to and must
  explicitly unsubscribe from

No caching, deduplication, batching or retry happens here. Failures from
the store propagate unchanged.
"""

from time import perf_counter
from typing import Optional
import logging

from domain.query import QueryDescriptor, ResultSet
from logging_config import setup_logging
from repositories.base import StoreClient
from services.live import LiveQuery

logger = setup_logging(__name__, log_file="materializer.log")


class ResultMaterializer:
    """Executes descriptors in fetch-once or subscribe mode."""

    def __init__(self, store: StoreClient, logger_instance: Optional[logging.Logger] = None):
        self._store = store
        self._logger = logger_instance or logger

    def fetch_once(self, descriptor: QueryDescriptor) -> ResultSet:
        """Execute descriptor once and return the documents' payloads."""
        start = perf_counter()
        snapshots = self._store.run_query(descriptor)
        result = ResultSet(s.data for s in snapshots)
        elapsed = round((perf_counter() - start) * 1000, 2)
        self._logger.info(f"TIME fetch_once({descriptor.describe()}) = {elapsed} ms, {len(result)} docs")
        return result

    def subscribe(self, descriptor: QueryDescriptor) -> LiveQuery:
        """Return a cold live channel for descriptor; no store work happens yet."""
        return LiveQuery(self._store, descriptor)
