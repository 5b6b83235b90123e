# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-14
# Updated: 2026-10-18
# Description: conftest.py
# -----------------------------------------------------------------------------

import hashlib
import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from embedding.EmbeddingRecord import EmbeddingResult, TaskType  # noqa: E402
from utility.errors import EmbeddingGenerationFailed  # noqa: E402

DIM = 8


class FakeEmbedder:
    """
    Deterministic embedder: the same text always maps to the same vector.
    Specific texts can be pinned to a vector or made to fail.
    """

    def __init__(self, dim: int = DIM, model: str = "fake-embedding-001"):
        self.dim = dim
        self.model = model
        self.pinned = {}
        self.failing = set()
        self.calls = []

    def vector_for(self, text: str) -> np.ndarray:
        if text in self.pinned:
            return np.asarray(self.pinned[text], dtype=np.float64)
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:4], "big")
        return np.random.default_rng(seed).normal(size=self.dim)

    def embed(self, text: str, task_type: TaskType = TaskType.SEMANTIC_SIMILARITY) -> EmbeddingResult:
        self.calls.append((text, task_type))
        if text in self.failing:
            raise EmbeddingGenerationFailed(f"provider refused {text!r}", attempts=3)
        return EmbeddingResult(
            vector=self.vector_for(text),
            latency_ms=3,
            model=self.model,
            tokens_used=len(text.split()),
        )


class SlowEmbedder(FakeEmbedder):
    def __init__(self, delay: float = 0.05, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    def embed(self, text: str, task_type: TaskType = TaskType.SEMANTIC_SIMILARITY) -> EmbeddingResult:
        time.sleep(self.delay)
        return super().embed(text, task_type)


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


def readers_during_writers(store, *, dim, writers=3, readers=3, rounds=60, owner="U1"):
    """
    Writers put / overwrite / delete their own keys while readers keep running
    find_similar and find_duplicates on the same owner.
    Returns (errors raised in any thread, number of records that should remain).
    """
    errors = []
    writers_done = threading.Event()

    def write(n):
        rng = np.random.default_rng(n)
        try:
            for i in range(rounds):
                store.put(owner, f"W{n}-{i % 10}", TaskType.RETRIEVAL_DOCUMENT, rng.normal(size=dim), f"h{n}-{i}", "t")
                if i % 3 == 2:
                    store.delete(owner, f"W{n}-{(i - 1) % 10}")
        except Exception as e:
            errors.append(e)

    def read(n):
        rng = np.random.default_rng(1000 + n)
        try:
            while True:
                q = rng.normal(size=dim)
                scores = [m.score for m in store.find_similar(owner, q, -1.0, 10)]
                assert scores == sorted(scores, reverse=True)
                assert all(-1.0 - 1e-9 <= s <= 1.0 + 1e-9 for s in scores)
                store.find_duplicates(owner, "h0-0", q, 0.5)
                if writers_done.is_set():
                    break
        except Exception as e:
            errors.append(e)

    reader_threads = [threading.Thread(target=read, args=(n,)) for n in range(readers)]
    writer_threads = [threading.Thread(target=write, args=(n,)) for n in range(writers)]
    for t in reader_threads + writer_threads:
        t.start()
    for t in writer_threads:
        t.join()
    writers_done.set()
    for t in reader_threads:
        t.join()

    expected = 0
    for n in range(writers):
        keys = set()
        for i in range(rounds):
            keys.add(i % 10)
            if i % 3 == 2:
                keys.discard((i - 1) % 10)
        expected += len(keys)
    return errors, expected
