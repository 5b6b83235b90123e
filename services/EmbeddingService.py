# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-09
# Description: EmbeddingService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from embedding.EmbeddingRecord import DuplicateMatch, EmbeddingRecord, EmbeddingResult, TaskType
from embedding.TLDWEmbedder import Embedder
from sources.SourceCatalog import SourceCatalog
from utility.errors import EmbeddingGenerationFailed, ValidationError
from utility.hashing import content_hash
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore, coerce_task_type, require_id


def duplicate_to_dict(match: DuplicateMatch) -> Dict[str, Any]:
    return {
        "source_ref_id": match.source_ref_id,
        "score": match.score,
        "distance": match.distance,
        "is_exact_duplicate": match.is_exact_duplicate,
        "created_at": match.created_at,
    }


def record_to_dict(record: EmbeddingRecord) -> Dict[str, Any]:
    return {
        "embedding_id": record.id,
        "source_ref_id": record.source_ref_id,
        "task_type": record.task_type.value,
        "content_hash": record.content_hash,
        "text_length": record.text_length,
        "model": record.model,
        "dimensions": int(record.vector.shape[0]),
        "processing_time_ms": record.processing_time_ms,
        "tokens_used": record.tokens_used,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


class EmbeddingService:
    """
    Owns the generate-and-store flow:
      - check the source exists for the caller
      - hash + embed the content
      - report duplicates among the caller's other sources
      - upsert into the embedding store
    Nothing is written when validation or the provider fails.
    """

    def __init__(
        self,
        *,
        store: EmbeddingStore,
        embedder: Embedder,
        sources: SourceCatalog,
        duplicate_threshold: float = 0.95,
        max_duplicate_results: int = 10,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.sources = sources
        self.duplicate_threshold = duplicate_threshold
        self.max_duplicate_results = max_duplicate_results
        self.logger = logger or get_class_logger(self.__class__)

    def embed_text(self, text: str, task_type: TaskType = TaskType.SEMANTIC_SIMILARITY) -> EmbeddingResult:
        """Embed via the provider and check the vector fits the store."""
        result = self.embedder.embed(text, task_type)
        dim = len(result.vector)
        if dim != self.store.dimensions:
            raise EmbeddingGenerationFailed(
                f"provider returned {dim} dimensions, store expects {self.store.dimensions}"
            )
        return result

    def generate_and_store(
        self,
        owner_id: str,
        *,
        source_ref_id: str,
        content: str,
        task_type: Any = TaskType.SEMANTIC_SIMILARITY,
        check_duplicates: bool = True,
    ) -> Dict[str, Any]:
        require_id("source_ref_id", source_ref_id)
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content must not be empty")
        task_type = coerce_task_type(task_type)

        # raises NotFoundError for unknown / foreign sources
        self.sources.get(owner_id, source_ref_id)

        self.logger.info(
            "Generating embedding (owner=%s, source_ref_id=%s, task_type=%s, chars=%d)",
            owner_id,
            source_ref_id,
            task_type.value,
            len(content),
        )
        digest = content_hash(content)
        result = self.embed_text(content, task_type)

        duplicates: Optional[List[Dict[str, Any]]] = None
        if check_duplicates:
            duplicates = self.find_duplicates_for_vector(
                owner_id,
                digest,
                result.vector,
                exclude_source_ref_id=source_ref_id,
            )

        record_id = self.store.put(
            owner_id,
            source_ref_id,
            task_type,
            result.vector,
            digest,
            content,
            model=result.model,
            processing_time_ms=result.latency_ms,
            tokens_used=result.tokens_used,
        )

        self.logger.info(
            "Stored embedding %s (source_ref_id=%s, duplicates=%s)",
            record_id,
            source_ref_id,
            None if duplicates is None else len(duplicates),
        )
        return {
            "embedding_id": record_id,
            "source_ref_id": source_ref_id,
            "model": result.model,
            "task_type": task_type.value,
            "dimensions": len(result.vector),
            "processing_time_ms": result.latency_ms,
            "tokens_used": result.tokens_used,
            "content_hash": digest,
            "duplicates": duplicates,
        }

    def find_duplicates_for_vector(
        self,
        owner_id: str,
        digest: str,
        vector: Any,
        *,
        threshold: Optional[float] = None,
        exclude_source_ref_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        threshold = self.duplicate_threshold if threshold is None else threshold
        # headroom for the excluded source's own task-type records
        limit = self.max_duplicate_results + (len(TaskType) if exclude_source_ref_id else 0)
        matches = self.store.find_duplicates(owner_id, digest, vector, threshold, max_results=limit)

        out: List[Dict[str, Any]] = []
        near = 0
        for m in matches:
            if m.source_ref_id == exclude_source_ref_id:
                continue
            if not m.is_exact_duplicate:
                if near >= self.max_duplicate_results:
                    continue
                near += 1
            out.append(duplicate_to_dict(m))
        return out

    def find_duplicates(
        self,
        owner_id: str,
        *,
        content: str,
        threshold: Optional[float] = None,
        exclude_source_ref_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Duplicate check for content that is not (yet) stored."""
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content must not be empty")
        if threshold is not None and not 0.0 <= threshold <= 1.0:
            raise ValidationError("similarity_threshold must be between 0 and 1")

        digest = content_hash(content)
        result = self.embed_text(content, TaskType.SEMANTIC_SIMILARITY)
        duplicates = self.find_duplicates_for_vector(
            owner_id,
            digest,
            result.vector,
            threshold=threshold,
            exclude_source_ref_id=exclude_source_ref_id,
        )
        return {
            "content_hash": digest,
            "threshold": self.duplicate_threshold if threshold is None else threshold,
            "duplicates": duplicates,
        }

    def get_embeddings(self, owner_id: str, source_ref_id: str, task_type: Any = None) -> List[Dict[str, Any]]:
        require_id("source_ref_id", source_ref_id)
        return [record_to_dict(r) for r in self.store.get(owner_id, source_ref_id, task_type)]

    def delete_embeddings(self, owner_id: str, source_ref_id: str) -> int:
        require_id("source_ref_id", source_ref_id)
        deleted = self.store.delete(owner_id, source_ref_id)
        self.logger.info("Deleted %d embeddings (owner=%s, source_ref_id=%s)", deleted, owner_id, source_ref_id)
        return deleted
