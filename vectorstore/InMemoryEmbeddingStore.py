# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-05
# Updated: 2026-10-18
# Description: InMemoryEmbeddingStore
# -----------------------------------------------------------------------------
import random
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from embedding.EmbeddingRecord import (
    ClusterAssignment,
    DuplicateMatch,
    EmbeddingRecord,
    EmbeddingStats,
    MonotonicClock,
    SimilarityMatch,
    TaskType,
)
from utility.errors import ValidationError
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore, coerce_task_type, require_id
from vectorstore.similarity import (
    as_vector,
    assign_clusters,
    check_dimensions,
    compute_stats,
    rank_duplicates,
    rank_similar,
)


@dataclass
class _OwnerPartition:
    """Everything one owner can see. Nothing outside the partition is reachable from it."""
    owner_id: str
    records: Dict[str, EmbeddingRecord] = field(default_factory=dict)
    keys: Dict[Tuple[str, TaskType], str] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def snapshot(self) -> List[EmbeddingRecord]:
        return list(self.records.values())


class InMemoryEmbeddingStore(EmbeddingStore):
    """
    Process-local embedding store that scores every record of the owner (exact,
    no ANN index). Used by the test suite and for small local runs; the default
    backend is Chroma.

    Writes for one owner serialise on that owner's partition lock and publish a
    new records map (copy-on-write), so readers take no lock and always see a
    complete map of complete records.
    """

    def __init__(
            self,
            *,
            dimensions: int,
            clock: Optional[Callable[[], datetime]] = None,
            logger=None,
    ) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = dimensions
        self.logger = logger or get_class_logger(self.__class__)

        self._now = MonotonicClock(clock)
        self._partitions: Dict[str, _OwnerPartition] = {}
        self._partitions_lock = threading.Lock()

        self.logger.info("InMemoryEmbeddingStore initialised (dimensions=%d)", self.dimensions)

    # -------------------------------------------------------------------------
    def test_connection(self) -> bool:
        return True

    def _partition(self, owner_id: str, *, create: bool = False) -> Optional[_OwnerPartition]:
        require_id("owner_id", owner_id)
        part = self._partitions.get(owner_id)
        if part is not None or not create:
            return part
        with self._partitions_lock:
            part = self._partitions.get(owner_id)
            if part is None:
                part = _OwnerPartition(owner_id=owner_id)
                self._partitions[owner_id] = part
            return part

    # -------------------------------------------------------------------------
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
        require_id("source_ref_id", source_ref_id)
        require_id("content_hash", content_hash)
        task_type = coerce_task_type(task_type)
        vec = check_dimensions(as_vector(vector), self.dimensions)
        if not isinstance(source_text, str):
            raise ValidationError("source_text must be a string")

        part = self._partition(owner_id, create=True)
        with part.lock:
            now = self._now()
            existing_id = part.keys.get((source_ref_id, task_type))
            records = dict(part.records)

            if existing_id is not None:
                current = records[existing_id]
                same_vector = np.array_equal(current.vector, vec)
                records[existing_id] = current.with_content(
                    vector=current.vector if same_vector else vec,
                    content_hash=content_hash,
                    source_text=source_text,
                    model=model,
                    processing_time_ms=processing_time_ms,
                    tokens_used=tokens_used,
                    updated_at=now,
                )
                part.records = records

                self.logger.info(
                    "Updated embedding %s (owner=%s, source_ref_id=%s, task_type=%s, vector_changed=%s)",
                    existing_id,
                    owner_id,
                    source_ref_id,
                    task_type.value,
                    not same_vector,
                )
                return existing_id

            record = EmbeddingRecord(
                id=uuid.uuid4().hex,
                owner_id=owner_id,
                source_ref_id=source_ref_id,
                task_type=task_type,
                vector=vec,
                content_hash=content_hash,
                source_text=source_text,
                created_at=now,
                updated_at=now,
                model=model,
                processing_time_ms=processing_time_ms,
                tokens_used=tokens_used,
            )
            records[record.id] = record
            part.records = records
            part.keys[record.key] = record.id

            self.logger.info(
                "Stored embedding %s (owner=%s, source_ref_id=%s, task_type=%s)",
                record.id,
                owner_id,
                source_ref_id,
                task_type.value,
            )
            return record.id

    def get(
            self,
            owner_id: str,
            source_ref_id: str,
            task_type: Optional[TaskType] = None,
    ) -> List[EmbeddingRecord]:
        part = self._partition(owner_id)
        if part is None:
            return []
        wanted = coerce_task_type(task_type) if task_type is not None else None
        return sorted(
            (r for r in part.snapshot()
             if r.source_ref_id == source_ref_id and (wanted is None or r.task_type == wanted)),
            key=lambda r: r.created_at,
        )

    def find_similar(
            self,
            owner_id: str,
            query_vector: Sequence[float],
            threshold: float,
            max_results: int,
    ) -> List[SimilarityMatch]:
        q = check_dimensions(as_vector(query_vector), self.dimensions)
        if max_results < 1:
            raise ValidationError("max_results must be at least 1")

        part = self._partition(owner_id)
        if part is None:
            return []

        matches = rank_similar(part.snapshot(), q, threshold, max_results)
        self.logger.debug(
            "find_similar owner=%s threshold=%.3f max_results=%d -> %d matches",
            owner_id,
            threshold,
            max_results,
            len(matches),
        )
        return matches

    def find_duplicates(
            self,
            owner_id: str,
            content_hash: str,
            query_vector: Sequence[float],
            threshold: float,
            max_results: int = 10,
    ) -> List[DuplicateMatch]:
        require_id("content_hash", content_hash)
        q = check_dimensions(as_vector(query_vector), self.dimensions)
        if max_results < 1:
            raise ValidationError("max_results must be at least 1")

        part = self._partition(owner_id)
        if part is None:
            return []
        return rank_duplicates(part.snapshot(), content_hash, q, threshold, max_results)

    def stats(self, owner_id: str) -> EmbeddingStats:
        part = self._partition(owner_id)
        return compute_stats(part.snapshot() if part is not None else [])

    def cluster(
            self,
            owner_id: str,
            k: int,
            *,
            seed: Optional[int] = None,
            iterations: int = 0,
    ) -> List[ClusterAssignment]:
        part = self._partition(owner_id)
        records = sorted(part.snapshot(), key=lambda r: r.created_at) if part is not None else []
        return assign_clusters(records, k, rng=random.Random(seed), iterations=iterations)

    def delete(self, owner_id: str, source_ref_id: str) -> int:
        part = self._partition(owner_id)
        if part is None:
            return 0

        with part.lock:
            doomed = [r for r in part.snapshot() if r.source_ref_id == source_ref_id]
            if doomed:
                records = dict(part.records)
                for rec in doomed:
                    part.keys.pop(rec.key, None)
                    records.pop(rec.id, None)
                part.records = records

        if doomed:
            self.logger.info(
                "Deleted %d embeddings (owner=%s, source_ref_id=%s)",
                len(doomed),
                owner_id,
                source_ref_id,
            )
        return len(doomed)

    def count(self, owner_id: str) -> int:
        part = self._partition(owner_id)
        return len(part.records) if part is not None else 0
