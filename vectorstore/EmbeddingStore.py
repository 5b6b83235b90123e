# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-04
# Description: EmbeddingStore
# -----------------------------------------------------------------------------

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from embedding.EmbeddingRecord import (
    ClusterAssignment,
    DuplicateMatch,
    EmbeddingRecord,
    EmbeddingStats,
    SimilarityMatch,
    TaskType,
)
from utility.errors import ValidationError


def coerce_task_type(task_type: Any) -> TaskType:
    try:
        return TaskType(task_type)
    except ValueError as e:
        raise ValidationError(f"unknown task_type {task_type!r}") from e


def require_id(name: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return value


@runtime_checkable
class EmbeddingStore(Protocol):
    """Owner-scoped embedding persistence + similarity queries. owner_id is never optional."""

    dimensions: int

    def test_connection(self) -> bool:
        ...

    def put(
            self,
            owner_id: str,
            source_ref_id: str,
            task_type: TaskType,
            vector: Sequence[float],
            content_hash: str,
            source_text: str,
            *,
            model: Optional[str] = None,
            processing_time_ms: Optional[int] = None,
            tokens_used: Optional[int] = None,
    ) -> str:
        ...

    def get(
            self,
            owner_id: str,
            source_ref_id: str,
            task_type: Optional[TaskType] = None,
    ) -> List[EmbeddingRecord]:
        ...

    def find_similar(
            self,
            owner_id: str,
            query_vector: Sequence[float],
            threshold: float,
            max_results: int,
    ) -> List[SimilarityMatch]:
        ...

    def find_duplicates(
            self,
            owner_id: str,
            content_hash: str,
            query_vector: Sequence[float],
            threshold: float,
            max_results: int = 10,
    ) -> List[DuplicateMatch]:
        ...

    def stats(self, owner_id: str) -> EmbeddingStats:
        ...

    def cluster(
            self,
            owner_id: str,
            k: int,
            *,
            seed: Optional[int] = None,
            iterations: int = 0,
    ) -> List[ClusterAssignment]:
        ...

    def delete(self, owner_id: str, source_ref_id: str) -> int:
        ...

    def count(self, owner_id: str) -> int:
        ...
