# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-03
# Description: similarity.py
# -----------------------------------------------------------------------------
"""
Vector maths shared by every store backend.

Backends only decide *which* records are candidates (index lookup, hash
lookup, full scan); scores, ordering and clustering are computed here from the
stored vectors so results do not depend on the backend's internal precision.
"""
import random
from typing import Any, Iterable, List, Sequence

import numpy as np

from embedding.EmbeddingRecord import (
    ClusterAssignment,
    DuplicateMatch,
    EmbeddingRecord,
    EmbeddingStats,
    SimilarityMatch,
)
from utility.errors import DimensionMismatch, InsufficientData, ValidationError


def as_vector(values: Any) -> np.ndarray:
    """Coerce a list/array to a finite 1-D float64 vector."""
    try:
        vec = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"vector must be a sequence of numbers: {e}") from e
    if vec.ndim != 1:
        raise ValidationError(f"vector must be 1-D, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise ValidationError("vector contains NaN or infinite values")
    return vec


def check_dimensions(vec: np.ndarray, dimensions: int) -> np.ndarray:
    if vec.shape[0] != dimensions:
        raise DimensionMismatch(expected=dimensions, actual=int(vec.shape[0]))
    return vec


def unit(vec: np.ndarray) -> np.ndarray:
    """L2-normalised copy; the zero vector stays zero so it scores 0 against anything."""
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        return np.zeros_like(vec, dtype=np.float64)
    return np.asarray(vec, dtype=np.float64) / norm


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    na = float(np.linalg.norm(a))
    nb = float(np.linalg.norm(b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    score = float(np.dot(a, b)) / (na * nb)
    return max(-1.0, min(1.0, score))


def cosine_distance(a: np.ndarray, b: np.ndarray) -> float:
    return 1.0 - cosine_similarity(a, b)


def rank_similar(
        candidates: Iterable[EmbeddingRecord],
        query: np.ndarray,
        threshold: float,
        max_results: int,
) -> List[SimilarityMatch]:
    """Score candidates, drop those under threshold, order by score desc then created_at asc."""
    matches: List[SimilarityMatch] = []
    seen = set()
    for rec in candidates:
        if rec.id in seen:
            continue
        seen.add(rec.id)
        score = cosine_similarity(query, rec.vector)
        if score < threshold:
            continue
        matches.append(SimilarityMatch(
            source_ref_id=rec.source_ref_id,
            score=score,
            created_at=rec.created_at,
            metadata=rec.metadata(),
        ))

    matches.sort(key=lambda m: (-m.score, m.created_at))
    return matches[:max_results]


def rank_duplicates(
        candidates: Iterable[EmbeddingRecord],
        content_hash: str,
        query: np.ndarray,
        threshold: float,
        max_results: int,
) -> List[DuplicateMatch]:
    """
    Two-tier duplicate ordering.

    Hash matches are always kept and always come first, whatever their score.
    Near duplicates (score >= threshold) follow, capped at max_results.
    Within each tier: ascending cosine distance, then ascending created_at.
    """
    exact: List[DuplicateMatch] = []
    near: List[DuplicateMatch] = []
    seen = set()
    for rec in candidates:
        if rec.id in seen:
            continue
        seen.add(rec.id)
        score = cosine_similarity(query, rec.vector)
        is_exact = rec.content_hash == content_hash
        if not is_exact and score < threshold:
            continue
        match = DuplicateMatch(
            source_ref_id=rec.source_ref_id,
            score=score,
            distance=1.0 - score,
            is_exact_duplicate=is_exact,
            created_at=rec.created_at,
            metadata=rec.metadata(),
        )
        (exact if is_exact else near).append(match)

    order = lambda m: (m.distance, m.created_at)
    exact.sort(key=order)
    near.sort(key=order)
    return exact + near[:max_results]


def compute_stats(records: Sequence[EmbeddingRecord]) -> EmbeddingStats:
    if not records:
        return EmbeddingStats(
            count=0,
            distinct_task_types=[],
            models_used=[],
            avg_text_length=None,
            oldest_created_at=None,
            newest_created_at=None,
        )

    return EmbeddingStats(
        count=len(records),
        distinct_task_types=sorted({r.task_type.value for r in records}),
        models_used=sorted({r.model for r in records if r.model}),
        avg_text_length=sum(r.text_length for r in records) / len(records),
        oldest_created_at=min(r.created_at for r in records),
        newest_created_at=max(r.created_at for r in records),
    )


def assign_clusters(
        records: Sequence[EmbeddingRecord],
        k: int,
        *,
        rng: random.Random,
        iterations: int = 0,
) -> List[ClusterAssignment]:
    """
    Coarse k-means: k records drawn uniformly at random become the centroids and
    every record is assigned to its nearest centroid by cosine distance.

    iterations > 0 adds Lloyd refinement passes (centroid = normalised mean of
    its members); iterations == 0 is the single assignment pass.
    """
    if k < 1:
        raise ValidationError(f"k must be at least 1, got {k}")
    if len(records) < k:
        raise InsufficientData(f"need at least {k} embeddings to build {k} clusters, found {len(records)}")
    if iterations < 0:
        raise ValidationError(f"iterations must be >= 0, got {iterations}")

    units = np.vstack([unit(r.vector) for r in records])
    seeds = rng.sample(range(len(records)), k)
    centroids = units[seeds]

    labels = np.argmax(units @ centroids.T, axis=1)
    for _ in range(iterations):
        refined = centroids.copy()
        for c in range(k):
            members = units[labels == c]
            if len(members):
                refined[c] = unit(members.mean(axis=0))
        centroids = refined
        new_labels = np.argmax(units @ centroids.T, axis=1)
        if np.array_equal(new_labels, labels):
            break
        labels = new_labels

    sims = np.clip(np.sum(units * centroids[labels], axis=1), -1.0, 1.0)
    assignments = [
        ClusterAssignment(
            source_ref_id=rec.source_ref_id,
            cluster_id=int(label) + 1,
            distance_to_centroid=float(1.0 - sim),
            record_id=rec.id,
        )
        for rec, label, sim in zip(records, labels, sims)
    ]
    assignments.sort(key=lambda a: (a.cluster_id, a.distance_to_centroid))
    return assignments
