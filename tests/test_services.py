# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-16
# Description: test_services.py
# -----------------------------------------------------------------------------
import threading

import pytest

from conftest import DIM, FakeEmbedder, SlowEmbedder
from embedding.EmbeddingRecord import TaskType
from health.TestRunner import TestRunner
from services.BatchEmbeddingService import BatchEmbeddingService, BatchItem
from services.EmbeddingService import EmbeddingService
from services.EmbeddingStatsService import EmbeddingStatsService
from services.HealthService import HealthService
from services.SearchService import SearchService
from services.SourceService import SourceService
from sources.SourceCatalog import SourceCatalog
from utility.errors import (
    EmbeddingGenerationFailed,
    InsufficientData,
    NotFoundError,
    ValidationError,
)
from utility.hashing import content_hash
from vectorstore.InMemoryEmbeddingStore import InMemoryEmbeddingStore


class Wiring:
    def __init__(self, embedder=None):
        self.embedder = embedder or FakeEmbedder()
        self.store = InMemoryEmbeddingStore(dimensions=DIM)
        self.sources = SourceCatalog()
        self.embeddings = EmbeddingService(store=self.store, embedder=self.embedder, sources=self.sources)
        self.search = SearchService(store=self.store, embedding_service=self.embeddings, sources=self.sources)
        self.stats = EmbeddingStatsService(store=self.store, sources=self.sources)
        self.source_service = SourceService(sources=self.sources, store=self.store)

    def add_source(self, owner, title, content="content", source_id=None, **kwargs):
        return self.sources.create(
            owner,
            url=f"https://example.com/{title}",
            title=title,
            original_content=content,
            extraction_type=kwargs.pop("extraction_type", "webpage"),
            source_id=source_id,
            **kwargs,
        )


@pytest.fixture
def w() -> Wiring:
    return Wiring()


# --- EmbeddingService --------------------------------------------------------
def test_generate_and_store(w):
    src = w.add_source("U1", "squats")
    out = w.embeddings.generate_and_store("U1", source_ref_id=src.id, content="Squat deep.")

    assert out["source_ref_id"] == src.id
    assert out["model"] == "fake-embedding-001"
    assert out["dimensions"] == DIM
    assert out["content_hash"] == content_hash("Squat deep.")
    assert out["duplicates"] == []
    assert out["task_type"] == "SEMANTIC_SIMILARITY"

    rec = w.store.get("U1", src.id)[0]
    assert rec.id == out["embedding_id"]
    assert rec.processing_time_ms == 3


def test_unknown_or_foreign_source_is_not_found(w):
    src = w.add_source("U2", "theirs")
    with pytest.raises(NotFoundError):
        w.embeddings.generate_and_store("U1", source_ref_id="missing", content="x")
    with pytest.raises(NotFoundError):
        w.embeddings.generate_and_store("U1", source_ref_id=src.id, content="x")
    assert w.embedder.calls == []


def test_blank_content_is_rejected(w):
    src = w.add_source("U1", "a")
    with pytest.raises(ValidationError):
        w.embeddings.generate_and_store("U1", source_ref_id=src.id, content="   ")


def test_duplicates_exclude_the_source_being_embedded(w):
    a = w.add_source("U1", "a")
    b = w.add_source("U1", "b")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="same text")

    # re-embedding a does not report itself
    again = w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="same text")
    assert again["duplicates"] == []

    out = w.embeddings.generate_and_store("U1", source_ref_id=b.id, content="same text")
    assert [(d["source_ref_id"], d["is_exact_duplicate"]) for d in out["duplicates"]] == [(a.id, True)]
    assert out["duplicates"][0]["score"] == pytest.approx(1.0)


def test_provider_failure_writes_nothing():
    emb = FakeEmbedder()
    emb.failing.add("boom")
    w = Wiring(emb)
    src = w.add_source("U1", "a")
    with pytest.raises(EmbeddingGenerationFailed):
        w.embeddings.generate_and_store("U1", source_ref_id=src.id, content="boom")
    assert w.store.count("U1") == 0


def test_wrong_size_vector_from_provider_is_a_provider_failure():
    emb = FakeEmbedder()
    emb.pinned["short"] = [1.0, 0.0]
    w = Wiring(emb)
    src = w.add_source("U1", "a")
    with pytest.raises(EmbeddingGenerationFailed):
        w.embeddings.generate_and_store("U1", source_ref_id=src.id, content="short")
    assert w.store.count("U1") == 0


def test_find_duplicates_for_unstored_content(w):
    a = w.add_source("U1", "a")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="hello world")
    out = w.embeddings.find_duplicates("U1", content="hello world")
    assert out["threshold"] == 0.95
    assert out["duplicates"][0]["source_ref_id"] == a.id
    assert out["duplicates"][0]["is_exact_duplicate"] is True

    with pytest.raises(ValidationError):
        w.embeddings.find_duplicates("U1", content="hello", threshold=1.5)


def test_get_and_delete_embeddings(w):
    a = w.add_source("U1", "a")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="x", task_type="CLUSTERING")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="x")
    got = w.embeddings.get_embeddings("U1", a.id)
    assert sorted(g["task_type"] for g in got) == ["CLUSTERING", "SEMANTIC_SIMILARITY"]
    assert w.embeddings.delete_embeddings("U1", a.id) == 2
    assert w.embeddings.get_embeddings("U1", a.id) == []


# --- SearchService -----------------------------------------------------------
def test_search_enriches_results_and_reports_timings(w):
    a = w.add_source("U1", "squats", summary="Legs", key_points=["depth"])
    w.embedder.pinned["squat form"] = [1, 0, 0, 0, 0, 0, 0, 0]
    w.embedder.pinned["how to squat"] = [1, 0.05, 0, 0, 0, 0, 0, 0]
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="squat form")

    out = w.search.search("U1", query="how to squat", similarity_threshold=0.9, max_results=5)
    assert out["query"] == "how to squat"
    assert [r["source_ref_id"] for r in out["results"]] == [a.id]
    hit = out["results"][0]
    assert hit["title"] == "squats"
    assert hit["summary"] == "Legs"
    assert "original_content" not in hit

    meta = out["metadata"]
    assert meta["total_results"] == 1
    assert meta["model"] == "fake-embedding-001"
    assert meta["dimensions"] == DIM
    assert set(meta["timings"]) == {"embedding_generation_ms", "search_ms", "total_ms"}
    assert w.embedder.calls[-1] == ("how to squat", TaskType.RETRIEVAL_QUERY)

    full = w.search.search("U1", query="how to squat", similarity_threshold=0.9, include_content=True)
    assert full["results"][0]["key_points"] == ["depth"]
    assert full["results"][0]["extraction_type"] == "webpage"


def test_search_validation(w):
    with pytest.raises(ValidationError):
        w.search.search("U1", query="  ")
    with pytest.raises(ValidationError):
        w.search.search("U1", query="q", similarity_threshold=1.2)
    with pytest.raises(ValidationError):
        w.search.search("U1", query="q", max_results=51)


def test_search_never_crosses_owners(w):
    a = w.add_source("U1", "mine")
    b = w.add_source("U2", "theirs")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="shared text")
    w.embeddings.generate_and_store("U2", source_ref_id=b.id, content="shared text")

    out = w.search.search("U1", query="shared text", similarity_threshold=0.0, max_results=10)
    assert [r["source_ref_id"] for r in out["results"]] == [a.id]


def test_batch_search_tags_query_index(w):
    a = w.add_source("U1", "a")
    b = w.add_source("U1", "b")
    w.embeddings.generate_and_store("U1", source_ref_id=a.id, content="alpha")
    w.embeddings.generate_and_store("U1", source_ref_id=b.id, content="beta")

    out = w.search.batch_search("U1", queries=["alpha", "beta"], similarity_threshold=0.99)
    assert [(r["query_index"], r["source_ref_id"]) for r in out["results"]] == [(1, a.id), (2, b.id)]
    with pytest.raises(ValidationError):
        w.search.batch_search("U1", queries=[])


# --- BatchEmbeddingService ---------------------------------------------------
def test_batch_item_failures_are_isolated():
    emb = FakeEmbedder()
    emb.failing.add("bad")
    w = Wiring(emb)
    ids = [w.add_source("U1", f"s{i}").id for i in range(4)]
    svc = BatchEmbeddingService(embedding_service=w.embeddings, batch_size=2, cooldown_seconds=0)

    items = [
        BatchItem(ids[0], "good one"),
        BatchItem(ids[1], "bad"),
        BatchItem("no-such-source", "good two"),
        BatchItem(ids[3], "good three"),
    ]
    results = svc.embed_batch("U1", items)

    assert [r.source_ref_id for r in results] == [i.source_ref_id for i in items]
    assert [r.status for r in results] == ["ok", "error", "error", "ok"]
    assert results[1].status_code == 500
    assert results[2].status_code == 404
    assert w.store.count("U1") == 2


def test_batch_cancellation_between_chunks():
    w = Wiring(SlowEmbedder(delay=0.01))
    ids = [w.add_source("U1", f"s{i}").id for i in range(6)]
    cancel = threading.Event()
    svc = BatchEmbeddingService(embedding_service=w.embeddings, batch_size=2, cooldown_seconds=5.0)

    timer = threading.Timer(0.2, cancel.set)
    timer.start()
    try:
        results = svc.embed_batch("U1", [BatchItem(i, f"text {i}") for i in ids], cancel_event=cancel)
    finally:
        timer.cancel()

    assert [r.status for r in results] == ["ok", "ok", "cancelled", "cancelled", "cancelled", "cancelled"]
    assert w.store.count("U1") == 2


def test_batch_validation(w):
    svc = BatchEmbeddingService(embedding_service=w.embeddings, max_items=2, cooldown_seconds=0)
    with pytest.raises(ValidationError):
        svc.embed_batch("U1", [])
    with pytest.raises(ValidationError):
        svc.embed_batch("U1", [BatchItem("a", "x")] * 3)


# --- Stats / clusters / sources ----------------------------------------------
def test_stats_and_clusters(w):
    assert w.stats.get_stats("U1")["total_embeddings"] == 0
    with pytest.raises(InsufficientData):
        w.stats.get_clusters("U1", k=1)

    for i in range(5):
        src = w.add_source("U1", f"t{i}")
        w.embeddings.generate_and_store("U1", source_ref_id=src.id, content=f"text number {i}")

    stats = w.stats.get_stats("U1")
    assert stats["total_embeddings"] == 5
    assert stats["models_used"] == ["fake-embedding-001"]

    out = w.stats.get_clusters("U1", k=2, seed=7)
    assert len(out["assignments"]) == 5
    assert all(a["title"].startswith("t") for a in out["assignments"])
    assert {a["cluster_id"] for a in out["assignments"]} <= {1, 2}


def test_source_delete_cascades_to_embeddings(w):
    src = w.source_service.create_source(
        "U1",
        url="https://youtube.com/watch?v=abc",
        title="Leg day",
        original_content="Squats then lunges",
        extraction_type="video",
        source_metadata={
            "video_id": "abc",
            "exercises": [{"name": "Squat", "timestamp": "0:30"}],
            "playlist": "legs",
        },
    )
    assert src["source_metadata"]["exercises"][0]["name"] == "Squat"
    assert src["source_metadata"]["extra"] == {"playlist": "legs"}

    w.embeddings.generate_and_store("U1", source_ref_id=src["id"], content="Squats then lunges")
    assert w.source_service.get_source("U1", src["id"])["embedding_count"] == 1

    out = w.source_service.delete_source("U1", src["id"])
    assert out == {"source_id": src["id"], "deleted_embeddings": 1}
    assert w.store.count("U1") == 0
    with pytest.raises(NotFoundError):
        w.source_service.get_source("U1", src["id"])
    with pytest.raises(NotFoundError):
        w.source_service.delete_source("U1", src["id"])


def test_source_validation(w):
    with pytest.raises(ValidationError):
        w.add_source("U1", "x", extraction_type="podcast")
    with pytest.raises(ValidationError):
        w.add_source("U1", "x", content=" ")


# --- Health ------------------------------------------------------------------
def test_deep_health_passes_with_working_parts(w):
    svc = HealthService(test_runner=TestRunner(store=w.store, embedder=w.embedder))
    out = svc.deep_health()
    assert out.status == "ok"
    assert out.results == {"store_health": True, "embedding_health": True}
    assert w.store.count("__healthcheck__") == 0


def test_deep_health_reports_failing_provider():
    emb = FakeEmbedder(dim=3)  # wrong size for the store
    w = Wiring(emb)
    svc = HealthService(test_runner=TestRunner(store=w.store, embedder=emb))
    out = svc.deep_health()
    assert out.status == "error"
    assert out.results["embedding_health"] is False
    assert out.summary.failed == 1
