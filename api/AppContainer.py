# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: AppContainer.py
# -----------------------------------------------------------------------------
import os
from typing import Optional

import settings
from auth.SupabaseTokenVerifier import SupabaseTokenVerifier
from config.Config import Config
from embedding.TLDWEmbedder import Embedder, TLDWEmbedder
from health.TestRunner import TestRunner
from services.BatchEmbeddingService import BatchEmbeddingService
from services.EmbeddingService import EmbeddingService
from services.EmbeddingStatsService import EmbeddingStatsService
from services.HealthService import HealthService
from services.SearchService import SearchService
from services.SourceService import SourceService
from sources.SourceCatalog import SourceCatalog
from utility.logging_utils import get_class_logger
from vectorstore.ChromaEmbeddingStore import ChromaEmbeddingStore, build_chroma_client
from vectorstore.EmbeddingStore import EmbeddingStore
from vectorstore.HnswParams import HnswParams
from vectorstore.InMemoryEmbeddingStore import InMemoryEmbeddingStore


def build_store(cfg: Config, backend: str = settings.STORE_BACKEND) -> EmbeddingStore:
    if backend == "memory":
        return InMemoryEmbeddingStore(dimensions=settings.EMBEDDING_DIMENSIONS)
    return ChromaEmbeddingStore(
        client=build_chroma_client(cfg),
        dimensions=settings.EMBEDDING_DIMENSIONS,
        hnsw_params=HnswParams(
            m=settings.HNSW_M,
            ef_construction=settings.HNSW_EF_CONSTRUCTION,
            ef_search=settings.HNSW_EF_SEARCH,
        ),
        collection_prefix=cfg.chroma_collection_prefix,
    )


def catalog_path(cfg: Config, backend: str = settings.STORE_BACKEND) -> Optional[str]:
    """Where sources are persisted: explicit TLDW_SOURCES_PATH, else next to a persistent Chroma store."""
    if cfg.sources_path:
        return cfg.sources_path
    if backend == "chroma" and (cfg.chroma_mode or "").lower() == "persistent":
        return os.path.join(cfg.chroma_path, "tldw_sources.json")
    return None


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.

    Tests pass their own store / embedder / catalog; anything not given is
    built from Config + settings.
    """

    def __init__(
        self,
        cfg: Optional[Config] = None,
        *,
        store: Optional[EmbeddingStore] = None,
        embedder: Optional[Embedder] = None,
        verifier: Optional[SupabaseTokenVerifier] = None,
        sources: Optional[SourceCatalog] = None,
    ) -> None:
        self.logger = get_class_logger(self.__class__)

        # Configuration
        self.cfg = cfg or Config.from_env()
        self.logger.info("Building container (store_backend=%s) %s", settings.STORE_BACKEND, self.cfg.summary())

        # Core infrastructure
        self.verifier = verifier or SupabaseTokenVerifier(self.cfg)
        self.embedder = embedder or TLDWEmbedder(
            self.cfg,
            dimensions=settings.EMBEDDING_DIMENSIONS,
            max_retries=settings.EMBED_MAX_RETRIES,
            timeout=settings.EMBED_TIMEOUT_SECONDS,
        )
        self.store = store or build_store(self.cfg)
        self.sources = sources or SourceCatalog(catalog_path(self.cfg))

        # Smoke tests / health
        self.health_service = HealthService(test_runner=TestRunner(store=self.store, embedder=self.embedder))

        self.embedding_service = EmbeddingService(
            store=self.store,
            embedder=self.embedder,
            sources=self.sources,
            duplicate_threshold=settings.DEFAULT_DUPLICATE_THRESHOLD,
            max_duplicate_results=settings.MAX_DUPLICATE_RESULTS,
        )

        self.batch_service = BatchEmbeddingService(
            embedding_service=self.embedding_service,
            batch_size=settings.BATCH_SIZE,
            cooldown_seconds=settings.BATCH_COOLDOWN_SECONDS,
            max_items=settings.MAX_BATCH_ITEMS,
        )

        self.search_service = SearchService(
            store=self.store,
            embedding_service=self.embedding_service,
            sources=self.sources,
            max_results_limit=settings.MAX_RESULTS_LIMIT,
        )

        self.stats_service = EmbeddingStatsService(
            store=self.store,
            sources=self.sources,
            refine_iterations=settings.CLUSTER_REFINE_ITERATIONS,
        )

        self.source_service = SourceService(sources=self.sources, store=self.store)
