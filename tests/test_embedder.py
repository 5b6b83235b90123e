# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-15
# Updated: 2026-10-18
# Description: test_embedder.py
# -----------------------------------------------------------------------------
import os
from types import SimpleNamespace

import httpx
import pytest
from openai import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    RateLimitError,
)

from config.Config import Config
from embedding.EmbeddingRecord import TaskType
from embedding.TLDWEmbedder import Embedder, TLDWEmbedder
from utility.errors import EmbeddingGenerationFailed


class _FakeEmbeddings:
    def __init__(self, responses):
        self.responses = list(responses)
        self.kwargs = []

    def create(self, **kwargs):
        self.kwargs.append(kwargs)
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def _response(*vectors, total_tokens=None):
    usage = SimpleNamespace(total_tokens=total_tokens) if total_tokens is not None else None
    return SimpleNamespace(
        data=[SimpleNamespace(index=i, embedding=v) for i, v in enumerate(vectors)],
        usage=usage,
    )


def _connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://example.invalid/embeddings"))


def _status_error(cls, status):
    request = httpx.Request("POST", "https://example.invalid/embeddings")
    return cls(f"HTTP {status}", response=httpx.Response(status, request=request), body=None)


def _embedder(responses, **kwargs):
    fake = _FakeEmbeddings(responses)
    client = SimpleNamespace(embeddings=fake)
    return TLDWEmbedder(Config(), client=client, **kwargs), fake


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr("embedding.TLDWEmbedder.time.sleep", sleeps.append)
    return sleeps


def test_embed_returns_vector_and_model():
    emb, fake = _embedder([_response([0.1, 0.2, 0.3])], dimensions=3)
    assert isinstance(emb, Embedder)

    out = emb.embed("hello", TaskType.RETRIEVAL_QUERY)
    assert out.vector.tolist() == pytest.approx([0.1, 0.2, 0.3])
    assert out.model == "gemini-embedding-001"
    assert out.latency_ms >= 0
    assert fake.kwargs[0] == {"model": "gemini-embedding-001", "input": ["hello"], "dimensions": 3}


def test_retries_with_backoff_then_succeeds(no_sleep):
    emb, fake = _embedder([_connection_error(), _connection_error(), _response([1.0, 0.0])], max_retries=3)
    out = emb.embed("hello")
    assert out.vector.tolist() == [1.0, 0.0]
    assert len(fake.kwargs) == 3
    assert no_sleep == pytest.approx([0.8, 0.8 * 1.7])


def test_gives_up_after_max_retries(no_sleep):
    emb, fake = _embedder([_connection_error()] * 3, max_retries=3)
    with pytest.raises(EmbeddingGenerationFailed) as exc:
        emb.embed("hello")
    assert exc.value.attempts == 3
    assert exc.value.retryable is True
    assert len(no_sleep) == 2


def test_reports_provider_token_usage():
    emb, _ = _embedder([_response([0.1, 0.2], total_tokens=5)])
    assert emb.embed("hello world").tokens_used == 5

    emb, _ = _embedder([_response([0.1, 0.2])])
    assert emb.embed("hello world").tokens_used is None


def test_vector_is_returned_as_the_provider_sent_it():
    emb, _ = _embedder([_response([3.0, 4.0])])
    assert emb.embed("hello").vector.tolist() == [3.0, 4.0]


@pytest.mark.parametrize(
    "error",
    [
        lambda: _status_error(RateLimitError, 429),
        lambda: _status_error(InternalServerError, 503),
        lambda: APITimeoutError(request=httpx.Request("POST", "https://example.invalid/embeddings")),
    ],
)
def test_transient_errors_are_retried(error, no_sleep):
    emb, fake = _embedder([error(), _response([1.0, 0.0])], max_retries=3)
    assert emb.embed("hello").vector.tolist() == [1.0, 0.0]
    assert len(fake.kwargs) == 2
    assert len(no_sleep) == 1


@pytest.mark.parametrize("cls, status", [(AuthenticationError, 401), (BadRequestError, 400)])
def test_client_errors_fail_without_retry(cls, status, no_sleep):
    emb, fake = _embedder([_status_error(cls, status), _response([1.0, 0.0])], max_retries=3)
    with pytest.raises(EmbeddingGenerationFailed) as exc:
        emb.embed("hello")
    assert exc.value.attempts == 1
    assert exc.value.retryable is False
    assert len(fake.kwargs) == 1
    assert no_sleep == []


def test_malformed_response_is_a_failure():
    emb, _ = _embedder([_response([])] * 2, max_retries=2)
    with pytest.raises(EmbeddingGenerationFailed):
        emb.embed("hello")


def test_empty_text_rejected_without_calling_provider():
    emb, fake = _embedder([])
    with pytest.raises(EmbeddingGenerationFailed):
        emb.embed("   ")
    assert fake.kwargs == []


def test_requires_api_key_without_injected_client():
    with pytest.raises(ValueError):
        TLDWEmbedder(Config(embedding_api_key=""))


@pytest.mark.integration
def test_gemini_embedding_round_trip():
    cfg = Config.from_env()
    if cfg.missing(*Config.EMBEDDING_FIELDS):
        pytest.skip(f"Missing env vars: {cfg.missing(*Config.EMBEDDING_FIELDS)}")

    dims = int(os.getenv("TLDW_EMBEDDING_DIMENSIONS", "768"))
    emb = TLDWEmbedder(cfg, dimensions=dims)
    out = emb.embed("Squats: keep your knees behind your toes.", TaskType.SEMANTIC_SIMILARITY)
    assert len(out.vector) == dims
    assert emb.test_connection() is True
