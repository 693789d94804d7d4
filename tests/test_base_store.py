"""
Tests for the StoreClient contract

Tests the foundation classes shared by every store with:
- ListenerRegistration.remove() idempotence
- StoreClient abstractness and default close()
"""
import threading
from unittest.mock import Mock

import pytest

from repositories.base import ListenerRegistration, StoreClient


class TestListenerRegistration:
    def test_remove_calls_callback_once(self):
        callback = Mock()
        registration = ListenerRegistration(callback, "query c")

        registration.remove()
        registration.remove()

        callback.assert_called_once()
        assert registration.removed
        assert registration.description == "query c"

    def test_concurrent_remove(self):
        callback = Mock()
        registration = ListenerRegistration(callback)
        threads = [threading.Thread(target=registration.remove) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        callback.assert_called_once()


class TestStoreClient:
    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            StoreClient("p")

    def test_minimal_subclass(self):
        class NullStore(StoreClient):
            def run_query(self, descriptor):
                return []

            def listen_query(self, descriptor, on_change, on_error):
                on_change([])
                return ListenerRegistration(lambda: None)

            def get_document(self, collection, document_id):
                raise NotImplementedError

            def listen_document(self, collection, document_id, on_change, on_error):
                raise NotImplementedError

            def set_document(self, collection, document_id, data, merge=False):
                raise NotImplementedError

            def add_document(self, collection, data):
                raise NotImplementedError

            def delete_document(self, collection, document_id):
                raise NotImplementedError

        from facades.document_facade import DocumentFacade

        store = NullStore("null")
        facade = DocumentFacade(store, logger=Mock())
        assert store.project == "null"
        assert facade.fetch_all("anything") == []
        received = []
        facade.subscribe_all("anything").subscribe(received.append).unsubscribe()
        assert received == [[]]
        store.close()
