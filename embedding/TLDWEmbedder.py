# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-07
# Updated: 2026-10-18
# Description: TLDWEmbedder
# -----------------------------------------------------------------------------
import time
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
from openai import APIConnectionError, InternalServerError, OpenAI, OpenAIError, RateLimitError

from config.Config import Config
from embedding.EmbeddingRecord import EmbeddingResult, TaskType
from utility.errors import EmbeddingGenerationFailed
from utility.logging_utils import get_class_logger

# transient provider failures; anything else (auth, bad request) fails at once
RETRYABLE_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


@runtime_checkable
class Embedder(Protocol):
    model: str

    def embed(self, text: str, task_type: TaskType = TaskType.SEMANTIC_SIMILARITY) -> EmbeddingResult:
        ...


class TLDWEmbedder(Embedder):
    """
    Text -> vector through an OpenAI-compatible embeddings endpoint.

    Defaults to Gemini's OpenAI-compatible API (gemini-embedding-001). The
    provider accepts no task hint there, so task_type is only logged.
    Dimensionality is validated by the store, not here.
    """

    def __init__(
            self,
            cfg: Config,
            *,
            dimensions: Optional[int] = None,
            max_retries: int = 3,
            timeout: float = 30.0,
            client: Optional[OpenAI] = None,
            logger=None,
    ):
        self.cfg = cfg
        self.dimensions = dimensions
        self.max_retries = max(1, max_retries)
        self.logger = logger or get_class_logger(self.__class__)

        if client is None:
            cfg.validate(*Config.EMBEDDING_FIELDS)
            # SDK-level retries off: the retry/backoff policy lives in _embed_batch
            client = OpenAI(
                api_key=cfg.embedding_api_key,
                base_url=cfg.embedding_base_url,
                timeout=timeout,
                max_retries=0,
            )
        self.client = client
        self.model = cfg.embedding_model
        self.logger.info(
            "Embedder initialized (model='%s', base_url='%s', dimensions=%s)",
            self.model,
            cfg.embedding_base_url,
            self.dimensions,
        )

    def _embed_batch(self, texts: List[str]) -> Tuple[np.ndarray, Optional[int]]:
        """Vectors for texts (input order) plus the provider's token count, when it reports one."""
        delay = 0.8
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                kwargs = {"model": self.model, "input": texts}
                if self.dimensions:
                    kwargs["dimensions"] = self.dimensions
                resp = self.client.embeddings.create(**kwargs)

                data = sorted(resp.data, key=lambda d: d.index)
                if len(data) != len(texts) or any(not d.embedding for d in data):
                    raise EmbeddingGenerationFailed(
                        f"malformed embedding response: {len(data)} vectors for {len(texts)} inputs"
                    )
                usage = getattr(resp, "usage", None)
                tokens = getattr(usage, "total_tokens", None)
                return np.asarray([d.embedding for d in data], dtype=np.float64), tokens

            except OpenAIError as e:
                if not isinstance(e, RETRYABLE_ERRORS):
                    self.logger.error("Embedding call rejected (attempt %d/%d): %s", attempt, self.max_retries, e)
                    raise EmbeddingGenerationFailed(
                        f"embedding provider rejected the request: {e}",
                        attempts=attempt,
                        retryable=False,
                    ) from e
                last_error = e
            except EmbeddingGenerationFailed as e:
                last_error = e

            self.logger.warning(
                "Embedding call failed (attempt %d/%d): %s",
                attempt,
                self.max_retries,
                last_error,
            )
            if attempt < self.max_retries:
                time.sleep(delay)
                delay *= 1.7  # backoff

        raise EmbeddingGenerationFailed(
            f"embedding provider failed after {self.max_retries} attempts: {last_error}",
            attempts=self.max_retries,
        ) from last_error

    def embed(self, text: str, task_type: TaskType = TaskType.SEMANTIC_SIMILARITY) -> EmbeddingResult:
        if not text or not text.strip():
            raise EmbeddingGenerationFailed("cannot embed empty text", retryable=False)

        self.logger.debug("Embedding %d chars (task_type=%s)", len(text), TaskType(task_type).value)
        start = time.perf_counter()
        arr, tokens = self._embed_batch([text])
        latency_ms = int((time.perf_counter() - start) * 1000)

        self.logger.info("Embedding generated in %d ms (dim=%d, tokens=%s)", latency_ms, arr.shape[1], tokens)
        return EmbeddingResult(vector=arr[0], latency_ms=latency_ms, model=self.model, tokens_used=tokens)

    def test_connection(self) -> bool:
        try:
            self.embed("TLDW embedding healthcheck")
            return True
        except EmbeddingGenerationFailed as e:
            self.logger.error("Embedding healthcheck failed: %s", e)
            return False
