# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-06
# Updated: 2026-10-18
# Description: ChromaEmbeddingStore
# -----------------------------------------------------------------------------
import hashlib
import random
import threading
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import chromadb
import numpy as np
from chromadb import ClientAPI
from chromadb.api.models.Collection import Collection
from chromadb.errors import ChromaError

from config.Config import Config
from embedding.EmbeddingRecord import (
    ClusterAssignment,
    DuplicateMatch,
    EmbeddingRecord,
    EmbeddingStats,
    MonotonicClock,
    SimilarityMatch,
    TaskType,
)
from utility.errors import StorageError, ValidationError
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore, coerce_task_type, require_id
from vectorstore.HnswParams import HnswParams
from vectorstore.similarity import (
    as_vector,
    assign_clusters,
    check_dimensions,
    rank_duplicates,
    rank_similar,
)

_INCLUDE_ALL = ["metadatas", "documents", "embeddings"]


def build_chroma_client(cfg: Config) -> ClientAPI:
    """ephemeral (in-process, default) | persistent (local path) | cloud (Chroma Cloud)."""
    mode = (cfg.chroma_mode or "ephemeral").lower()
    if mode == "cloud":
        cfg.validate(*Config.CHROMA_CLOUD_FIELDS)
        return chromadb.CloudClient(
            tenant=cfg.chroma_tenant,
            database=cfg.chroma_database,
            api_key=cfg.chroma_api_key,
        )
    if mode == "ephemeral":
        return chromadb.EphemeralClient()
    if mode == "persistent":
        return chromadb.PersistentClient(path=cfg.chroma_path)
    raise ValueError(f"Unsupported CHROMA_MODE {cfg.chroma_mode!r}")


class ChromaEmbeddingStore(EmbeddingStore):
    """
    Chroma-backed store: one collection per owner, so isolation is enforced by
    the storage layout rather than by a metadata filter.

    Chroma ids are "<source_ref_id>::<task_type>", which makes the
    (source_ref_id, task_type) uniqueness a property of the upsert itself.
    Chroma's own HNSW index supplies candidates; scores are recomputed from the
    stored vectors.
    """

    def __init__(
            self,
            *,
            client: ClientAPI,
            dimensions: int,
            hnsw_params: Optional[HnswParams] = None,
            collection_prefix: str = "tldw",
            clock: Optional[Callable[[], datetime]] = None,
            logger=None,
    ) -> None:
        self.client = client
        self.dimensions = dimensions
        self.hnsw_params = hnsw_params or HnswParams()
        self.collection_prefix = collection_prefix
        self.logger = logger or get_class_logger(self.__class__)
        self._now = MonotonicClock(clock)

        self._collections: Dict[str, Collection] = {}
        self._key_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

        self.logger.info(
            "ChromaEmbeddingStore initialised (dimensions=%d, prefix='%s', M=%d, ef_construction=%d)",
            self.dimensions,
            self.collection_prefix,
            self.hnsw_params.m,
            self.hnsw_params.ef_construction,
        )

    # -------------------------------------------------------------------------
    def test_connection(self) -> bool:
        """
        Simple health check: can we talk to Chroma at all?
        """
        try:
            self.client.heartbeat()
            return True
        except Exception as e:
            self.logger.error("Chroma connection failed: %s", e)
            return False

    def collection_name(self, owner_id: str) -> str:
        digest = hashlib.sha256(owner_id.encode("utf-8")).hexdigest()[:40]
        return f"{self.collection_prefix}-{digest}"

    def _collection(self, owner_id: str, *, create: bool = False) -> Optional[Collection]:
        require_id("owner_id", owner_id)
        cached = self._collections.get(owner_id)
        if cached is not None:
            return cached

        name = self.collection_name(owner_id)
        try:
            if create:
                collection = self.client.get_or_create_collection(
                    name=name,
                    embedding_function=None,
                    metadata=self.hnsw_params.collection_metadata(),
                )
            else:
                collection = self.client.get_collection(name=name, embedding_function=None)
        except (ValueError, ChromaError) as e:
            if create:
                self.logger.error("Failed to open collection '%s': %s", name, e)
                raise StorageError(f"failed to open collection '{name}': {e}") from e
            return None

        self._collections[owner_id] = collection
        return collection

    def _key_lock(self, owner_id: str, chroma_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._key_locks[f"{owner_id}/{chroma_id}"]

    @staticmethod
    def _chroma_id(source_ref_id: str, task_type: TaskType) -> str:
        return f"{source_ref_id}::{task_type.value}"

    # -------------------------------------------------------------------------
    @staticmethod
    def _metadata(record: EmbeddingRecord) -> Dict[str, Any]:
        meta = {
            "record_id": record.id,
            "owner_id": record.owner_id,
            "source_ref_id": record.source_ref_id,
            "task_type": record.task_type.value,
            "content_hash": record.content_hash,
            "text_length": record.text_length,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
            "model": record.model,
            "processing_time_ms": record.processing_time_ms,
            "tokens_used": record.tokens_used,
        }
        # Chroma metadata values cannot be None
        return {k: v for k, v in meta.items() if v is not None}

    @staticmethod
    def _record(embedding: Any, document: Optional[str], meta: Dict[str, Any]) -> EmbeddingRecord:
        return EmbeddingRecord(
            id=meta["record_id"],
            owner_id=meta["owner_id"],
            source_ref_id=meta["source_ref_id"],
            task_type=TaskType(meta["task_type"]),
            vector=np.asarray(embedding, dtype=np.float64),
            content_hash=meta["content_hash"],
            source_text=document or "",
            created_at=datetime.fromisoformat(meta["created_at"]),
            updated_at=datetime.fromisoformat(meta["updated_at"]),
            model=meta.get("model"),
            processing_time_ms=meta.get("processing_time_ms"),
            tokens_used=meta.get("tokens_used"),
        )

    def _records(self, res: Dict[str, Any]) -> List[EmbeddingRecord]:
        """Rows from collection.get() (flat lists) -> EmbeddingRecord list."""
        ids = res.get("ids") or []
        embeddings = res.get("embeddings")
        documents = res.get("documents")
        metadatas = res.get("metadatas")
        out = []
        for i in range(len(ids)):
            out.append(self._record(
                embeddings[i] if embeddings is not None else [],
                documents[i] if documents is not None else None,
                metadatas[i] if metadatas is not None else {},
            ))
        return out

    def _query_records(self, collection: Collection, query: np.ndarray, n_results: int) -> List[EmbeddingRecord]:
        """Nearest rows from Chroma's index; falls back to a scan for the zero vector."""
        total = collection.count()
        if total == 0:
            return []
        if not np.any(query):
            return self._records(collection.get(include=_INCLUDE_ALL))

        res = collection.query(
            query_embeddings=[query.tolist()],
            n_results=min(total, n_results),
            include=_INCLUDE_ALL,
        )
        # query() returns one list per query embedding; unwrap the single query
        flat = {}
        for key in ("ids", "embeddings", "documents", "metadatas"):
            value = res.get(key)
            flat[key] = value[0] if value is not None and len(value) else None
        return self._records(flat)

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

        collection = self._collection(owner_id, create=True)
        chroma_id = self._chroma_id(source_ref_id, task_type)

        with self._key_lock(owner_id, chroma_id):
            try:
                existing = self._records(collection.get(ids=[chroma_id], include=_INCLUDE_ALL))
                now = self._now()
                if existing:
                    record = existing[0].with_content(
                        vector=vec,
                        content_hash=content_hash,
                        source_text=source_text,
                        model=model,
                        processing_time_ms=processing_time_ms,
                        tokens_used=tokens_used,
                        updated_at=max(now, existing[0].updated_at),
                    )
                else:
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

                collection.upsert(
                    ids=[chroma_id],
                    embeddings=[vec.tolist()],
                    documents=[source_text],
                    metadatas=[self._metadata(record)],
                )
            except ChromaError as e:
                self.logger.error(
                    "Chroma upsert failed (owner=%s, source_ref_id=%s): %s",
                    owner_id,
                    source_ref_id,
                    e,
                )
                raise StorageError(f"failed to store embedding: {e}") from e

        self.logger.info(
            "Upserted embedding %s (owner=%s, source_ref_id=%s, task_type=%s) into '%s'",
            record.id,
            owner_id,
            source_ref_id,
            task_type.value,
            collection.name,
        )
        return record.id

    def get(
            self,
            owner_id: str,
            source_ref_id: str,
            task_type: Optional[TaskType] = None,
    ) -> List[EmbeddingRecord]:
        collection = self._collection(owner_id)
        if collection is None:
            return []
        if task_type is not None:
            where = {"$and": [
                {"source_ref_id": {"$eq": source_ref_id}},
                {"task_type": {"$eq": coerce_task_type(task_type).value}},
            ]}
        else:
            where = {"source_ref_id": {"$eq": source_ref_id}}
        try:
            records = self._records(collection.get(where=where, include=_INCLUDE_ALL))
        except ChromaError as e:
            self.logger.error("Chroma get failed on '%s': %s", collection.name, e)
            raise StorageError(f"failed to read embeddings: {e}") from e
        return sorted(records, key=lambda r: r.created_at)

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

        collection = self._collection(owner_id)
        if collection is None:
            return []

        n = max(max_results, self.hnsw_params.ef_search)
        self.logger.info(
            "Querying collection '%s' (threshold=%.3f, max_results=%d, candidates=%d)",
            collection.name,
            threshold,
            max_results,
            n,
        )
        try:
            candidates = self._query_records(collection, q, n)
        except ChromaError as e:
            self.logger.error("Chroma query failed on '%s': %s", collection.name, e, exc_info=True)
            raise StorageError(f"similarity query failed: {e}") from e
        return rank_similar(candidates, q, threshold, max_results)

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

        collection = self._collection(owner_id)
        if collection is None:
            return []

        try:
            exact = self._records(collection.get(
                where={"content_hash": {"$eq": content_hash}},
                include=_INCLUDE_ALL,
            ))
            near = self._query_records(collection, q, max(max_results, self.hnsw_params.ef_search))
        except ChromaError as e:
            self.logger.error("Chroma duplicate lookup failed on '%s': %s", collection.name, e, exc_info=True)
            raise StorageError(f"duplicate lookup failed: {e}") from e
        return rank_duplicates(exact + near, content_hash, q, threshold, max_results)

    def stats(self, owner_id: str) -> EmbeddingStats:
        collection = self._collection(owner_id)
        metas: List[Dict[str, Any]] = []
        if collection is not None:
            try:
                metas = collection.get(include=["metadatas"]).get("metadatas") or []
            except ChromaError as e:
                self.logger.error("Chroma stats read failed on '%s': %s", collection.name, e)
                raise StorageError(f"failed to read embeddings: {e}") from e

        if not metas:
            return EmbeddingStats(0, [], [], None, None, None)

        created = [datetime.fromisoformat(m["created_at"]) for m in metas]
        return EmbeddingStats(
            count=len(metas),
            distinct_task_types=sorted({m["task_type"] for m in metas}),
            models_used=sorted({m["model"] for m in metas if m.get("model")}),
            avg_text_length=sum(int(m.get("text_length", 0)) for m in metas) / len(metas),
            oldest_created_at=min(created),
            newest_created_at=max(created),
        )

    def cluster(
            self,
            owner_id: str,
            k: int,
            *,
            seed: Optional[int] = None,
            iterations: int = 0,
    ) -> List[ClusterAssignment]:
        collection = self._collection(owner_id)
        records: List[EmbeddingRecord] = []
        if collection is not None:
            try:
                rows = self._records(collection.get(include=_INCLUDE_ALL))
            except ChromaError as e:
                self.logger.error("Chroma cluster read failed on '%s': %s", collection.name, e)
                raise StorageError(f"failed to read embeddings: {e}") from e
            records = sorted(rows, key=lambda r: r.created_at)
        return assign_clusters(records, k, rng=random.Random(seed), iterations=iterations)

    def delete(self, owner_id: str, source_ref_id: str) -> int:
        """
        Delete every task-type embedding for source_ref_id in the owner's collection.
        Returns the number of embeddings actually deleted.
        """
        collection = self._collection(owner_id)
        if collection is None:
            return 0

        try:
            res = collection.get(where={"source_ref_id": {"$eq": source_ref_id}}, include=[])
            ids: List[str] = res.get("ids", []) or []
            if not ids:
                self.logger.info(
                    "No embeddings found for source_ref_id '%s' in '%s'",
                    source_ref_id,
                    collection.name,
                )
                return 0

            # preserves order while de-duplicating
            unique_ids = list(dict.fromkeys(ids))
            collection.delete(ids=unique_ids)
        except ChromaError as e:
            self.logger.error(
                "Failed to delete embeddings for source_ref_id '%s' from '%s': %s",
                source_ref_id,
                collection.name,
                e,
            )
            raise StorageError(f"delete failed: {e}") from e

        self.logger.info(
            "Deleted %d embeddings for source_ref_id '%s' from '%s'",
            len(unique_ids),
            source_ref_id,
            collection.name,
        )
        return len(unique_ids)

    def count(self, owner_id: str) -> int:
        collection = self._collection(owner_id)
        if collection is None:
            return 0
        try:
            return collection.count()
        except ChromaError as e:
            raise StorageError(f"failed to count embeddings: {e}") from e
