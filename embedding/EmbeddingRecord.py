# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-03
# Description: EmbeddingRecord
# -----------------------------------------------------------------------------
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np


class TaskType(str, Enum):
    """Intended use of an embedding. Informational, never used in distance maths."""
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    SEMANTIC_SIMILARITY = "SEMANTIC_SIMILARITY"
    CLASSIFICATION = "CLASSIFICATION"
    CLUSTERING = "CLUSTERING"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonotonicClock:
    """utcnow() that never repeats or goes backwards within one process (deterministic created_at ties)."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or utcnow
        self._lock = threading.Lock()
        self._last: Optional[datetime] = None

    def __call__(self) -> datetime:
        with self._lock:
            ts = self._clock()
            if self._last is not None and ts <= self._last:
                ts = self._last + timedelta(microseconds=1)
            self._last = ts
            return ts


@dataclass(frozen=True, eq=False)
class EmbeddingRecord:
    """Embedding vector + the text it was computed from, scoped to one owner."""
    id: str
    owner_id: str
    source_ref_id: str
    task_type: TaskType
    vector: np.ndarray
    content_hash: str
    source_text: str
    created_at: datetime
    updated_at: datetime
    model: Optional[str] = None
    processing_time_ms: Optional[int] = None
    tokens_used: Optional[int] = None

    @property
    def text_length(self) -> int:
        return len(self.source_text)

    @property
    def key(self) -> tuple:
        return self.source_ref_id, self.task_type

    def with_content(
            self,
            *,
            vector: np.ndarray,
            content_hash: str,
            source_text: str,
            model: Optional[str],
            processing_time_ms: Optional[int],
            updated_at: datetime,
            tokens_used: Optional[int] = None,
    ) -> "EmbeddingRecord":
        """New record for an in-place update: id and created_at are kept."""
        return replace(
            self,
            vector=vector,
            content_hash=content_hash,
            source_text=source_text,
            model=model if model is not None else self.model,
            processing_time_ms=processing_time_ms,
            tokens_used=tokens_used,
            updated_at=updated_at,
        )

    def metadata(self) -> Dict[str, Any]:
        """Searchable metadata returned next to scores (vector and text excluded)."""
        return {
            "record_id": self.id,
            "task_type": self.task_type.value,
            "content_hash": self.content_hash,
            "text_length": self.text_length,
            "model": self.model,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True, eq=False)
class EmbeddingResult:
    """What the embedding provider hands back for one text."""
    vector: np.ndarray
    latency_ms: int
    model: Optional[str] = None
    tokens_used: Optional[int] = None


@dataclass(frozen=True)
class SimilarityMatch:
    source_ref_id: str
    score: float
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DuplicateMatch:
    source_ref_id: str
    score: float
    distance: float
    is_exact_duplicate: bool
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ClusterAssignment:
    source_ref_id: str
    cluster_id: int
    distance_to_centroid: float
    record_id: str


@dataclass(frozen=True)
class EmbeddingStats:
    count: int
    distinct_task_types: List[str]
    models_used: List[str]
    avg_text_length: Optional[float]
    oldest_created_at: Optional[datetime]
    newest_created_at: Optional[datetime]
