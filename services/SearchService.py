# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-09
# Description: SearchService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Sequence

from embedding.EmbeddingRecord import SimilarityMatch, TaskType
from services.EmbeddingService import EmbeddingService
from sources.SourceCatalog import SourceCatalog
from utility.errors import ValidationError
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class SearchService:
    """
    Similarity search over the caller's stored embeddings.

    The query text is embedded with the RETRIEVAL_QUERY task hint; matches are
    enriched with the title/url/summary of their source content.
    """

    def __init__(
        self,
        *,
        store: EmbeddingStore,
        embedding_service: EmbeddingService,
        sources: SourceCatalog,
        max_results_limit: int = 50,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.embedding_service = embedding_service
        self.sources = sources
        self.max_results_limit = max_results_limit
        self.logger = logger or get_class_logger(self.__class__)

    def _validate(self, threshold: float, max_results: int) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError("similarity_threshold must be between 0 and 1")
        if not 1 <= max_results <= self.max_results_limit:
            raise ValidationError(f"max_results must be between 1 and {self.max_results_limit}")

    def to_results(
        self,
        owner_id: str,
        matches: Sequence[SimilarityMatch],
        *,
        include_content: bool = False,
    ) -> List[Dict[str, Any]]:
        found = self.sources.get_many(owner_id, [m.source_ref_id for m in matches])

        results: List[Dict[str, Any]] = []
        for m in matches:
            source = found.get(m.source_ref_id)
            hit: Dict[str, Any] = {
                "source_ref_id": m.source_ref_id,
                "score": m.score,
                "title": source.title if source else None,
                "url": source.url if source else None,
                "summary": source.summary if source else None,
                "created_at": m.created_at,
            }
            if include_content and source is not None:
                content = source.to_dict(include_content=True)
                for key in ("original_content", "key_points", "extraction_type", "source_metadata"):
                    hit[key] = content[key]
            results.append(hit)
        return results

    def search(
        self,
        owner_id: str,
        *,
        query: str,
        similarity_threshold: float = 0.7,
        max_results: int = 10,
        include_content: bool = False,
    ) -> Dict[str, Any]:
        query = (query or "").strip()
        if not query:
            raise ValidationError("query must not be empty")
        self._validate(similarity_threshold, max_results)

        start = time.perf_counter()
        embedded = self.embedding_service.embed_text(query, TaskType.RETRIEVAL_QUERY)
        embedding_ms = _elapsed_ms(start)

        search_start = time.perf_counter()
        matches = self.store.find_similar(owner_id, embedded.vector, similarity_threshold, max_results)
        results = self.to_results(owner_id, matches, include_content=include_content)
        search_ms = _elapsed_ms(search_start)

        self.logger.info(
            "Search owner=%s threshold=%.2f max_results=%d -> %d results (embed=%d ms, search=%d ms)",
            owner_id,
            similarity_threshold,
            max_results,
            len(results),
            embedding_ms,
            search_ms,
        )
        return {
            "query": query,
            "results": results,
            "metadata": {
                "total_results": len(results),
                "threshold": similarity_threshold,
                "max_results": max_results,
                "model": embedded.model,
                "dimensions": len(embedded.vector),
                "timings": {
                    "embedding_generation_ms": embedding_ms,
                    "search_ms": search_ms,
                    "total_ms": _elapsed_ms(start),
                },
            },
        }

    def batch_search(
        self,
        owner_id: str,
        *,
        queries: Sequence[str],
        similarity_threshold: float = 0.7,
        max_results_per_query: int = 5,
        include_content: bool = False,
    ) -> Dict[str, Any]:
        """Several queries in one call; each hit is tagged with its 1-based query_index."""
        if not queries:
            raise ValidationError("queries must not be empty")
        if any(not (q or "").strip() for q in queries):
            raise ValidationError("queries must not contain empty strings")
        self._validate(similarity_threshold, max_results_per_query)

        start = time.perf_counter()
        results: List[Dict[str, Any]] = []
        for idx, q in enumerate(queries, start=1):
            embedded = self.embedding_service.embed_text(q.strip(), TaskType.RETRIEVAL_QUERY)
            matches = self.store.find_similar(
                owner_id,
                embedded.vector,
                similarity_threshold,
                max_results_per_query,
            )
            for hit in self.to_results(owner_id, matches, include_content=include_content):
                hit["query_index"] = idx
                results.append(hit)

        self.logger.info(
            "Batch search owner=%s queries=%d -> %d results in %d ms",
            owner_id,
            len(queries),
            len(results),
            _elapsed_ms(start),
        )
        return {
            "queries": [q.strip() for q in queries],
            "results": results,
            "metadata": {
                "total_results": len(results),
                "threshold": similarity_threshold,
                "max_results_per_query": max_results_per_query,
                "total_ms": _elapsed_ms(start),
            },
        }
