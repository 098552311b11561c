"""Tests for the in-memory vector store."""

import threading

import pytest

from drive_search.core.models.document import Chunk
from drive_search.core.models.index import IndexSnapshot
from drive_search.infrastructure.vector_stores.memory_store import InMemoryVectorStore

from conftest import make_ref, make_snapshot, unit


class TestInMemoryVectorStore:

    @pytest.fixture
    def store(self):
        return InMemoryVectorStore()

    def test_empty_store(self, store):
        assert store.snapshot is None
        assert store.is_empty
        assert store.count() == 0
        assert store.search([1.0, 0.0], top_k=5) == []

    def test_search_sorted_descending(self, store):
        store.replace(make_snapshot({"a": [unit(0.2), unit(0.9)], "b": [unit(0.5)]}))

        hits = store.search([1.0, 0.0], top_k=3)

        assert [h[0].text for h in hits] == ["a chunk 1", "b chunk 0", "a chunk 0"]
        assert [h[1] for h in hits] == pytest.approx([0.9, 0.5, 0.2])

    def test_top_k_limits_results(self, store):
        store.replace(make_snapshot({"a": [unit(0.1), unit(0.2), unit(0.3)]}))

        assert len(store.search([1.0, 0.0], top_k=2)) == 2
        assert store.search([1.0, 0.0], top_k=0) == []

    def test_ties_keep_insertion_order(self, store):
        store.replace(make_snapshot({"x": [[0.6, 0.8]], "y": [[0.6, 0.8]], "z": [[0.6, 0.8]]}))

        hits = store.search([1.0, 0.0], top_k=3)

        assert [h[0].document_id for h in hits] == ["x", "y", "z"]

    def test_zero_query_scores_zero(self, store):
        store.replace(make_snapshot({"a": [unit(0.7)]}))

        hits = store.search([0.0, 0.0], top_k=1)

        assert hits[0][1] == 0.0

    def test_query_dimension_mismatch_uses_common_prefix(self, store):
        store.replace(make_snapshot({"a": [[1.0, 0.0, 0.0]]}))

        hits = store.search([1.0, 0.0], top_k=1)

        assert hits[0][1] == pytest.approx(1.0)

    def test_rejects_inconsistent_dimensions(self, store):
        snapshot = IndexSnapshot(
            chunks=(Chunk.create("a", 0, "t", [1.0, 0.0]), Chunk.create("a", 1, "u", [1.0])),
            documents={"a": make_ref("a")},
        )

        with pytest.raises(ValueError):
            store.replace(snapshot)
        assert store.snapshot is None

    def test_replace_swaps_whole_snapshot(self, store):
        store.replace(make_snapshot({"old": [unit(0.9)]}))
        store.replace(make_snapshot({"new1": [unit(0.8)], "new2": [unit(0.3)]}))

        hits = store.search([1.0, 0.0], top_k=10)

        assert {h[0].document_id for h in hits} == {"new1", "new2"}
        assert store.count() == 2

    def test_concurrent_replace_never_mixes_snapshots(self, store):
        old = make_snapshot({f"old{i}": [unit(0.1 * (i + 1))] for i in range(5)})
        new = make_snapshot({f"new{i}": [unit(0.1 * (i + 1))] for i in range(5)})
        store.replace(old)
        stop = threading.Event()

        def writer():
            while not stop.is_set():
                store.replace(new)
                store.replace(old)

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(500):
                ids = {h[0].document_id for h in store.search([1.0, 0.0], top_k=10)}
                assert ids <= set(old.documents) or ids <= set(new.documents)
        finally:
            stop.set()
            thread.join()
