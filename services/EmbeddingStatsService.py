# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-10
# Description: EmbeddingStatsService.py
# -----------------------------------------------------------------------------

import logging
from typing import Any, Dict, Optional

from sources.SourceCatalog import SourceCatalog
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


class EmbeddingStatsService:
    """
    Stats + clustering for the /embeddings/stats and /embeddings/clusters endpoints.

    Cluster assignments are enriched with the source title/url.
    """

    def __init__(
        self,
        *,
        store: EmbeddingStore,
        sources: SourceCatalog,
        refine_iterations: int = 0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.sources = sources
        self.refine_iterations = refine_iterations
        self.logger = logger or get_class_logger(self.__class__)

    def get_stats(self, owner_id: str) -> Dict[str, Any]:
        stats = self.store.stats(owner_id)
        self.logger.info("Stats for owner=%s: count=%d", owner_id, stats.count)
        return {
            "total_embeddings": stats.count,
            "distinct_task_types": stats.distinct_task_types,
            "models_used": stats.models_used,
            "avg_text_length": stats.avg_text_length,
            "oldest_embedding": stats.oldest_created_at,
            "newest_embedding": stats.newest_created_at,
        }

    def get_clusters(self, owner_id: str, *, k: int, seed: Optional[int] = None) -> Dict[str, Any]:
        assignments = self.store.cluster(owner_id, k, seed=seed, iterations=self.refine_iterations)
        found = self.sources.get_many(owner_id, {a.source_ref_id for a in assignments})

        clusters = []
        for a in assignments:
            source = found.get(a.source_ref_id)
            clusters.append(
                {
                    "source_ref_id": a.source_ref_id,
                    "cluster_id": a.cluster_id,
                    "distance_to_centroid": a.distance_to_centroid,
                    "title": source.title if source else None,
                    "url": source.url if source else None,
                }
            )

        self.logger.info("Clustered %d embeddings into k=%d (owner=%s, seed=%s)", len(clusters), k, owner_id, seed)
        return {"k": k, "seed": seed, "assignments": clusters}
