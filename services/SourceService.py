# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-10
# Description: SourceService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sources.SourceCatalog import SourceCatalog
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


class SourceService:
    """Source content CRUD. Deleting a source deletes its embeddings first."""

    def __init__(
        self,
        *,
        sources: SourceCatalog,
        store: EmbeddingStore,
        logger: logging.Logger | None = None,
    ) -> None:
        self.sources = sources
        self.store = store
        self.logger = logger or get_class_logger(self.__class__)

    def create_source(
        self,
        owner_id: str,
        *,
        url: str,
        title: str,
        original_content: str,
        extraction_type: str,
        summary: Optional[str] = None,
        key_points: Optional[List[str]] = None,
        source_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        source = self.sources.create(
            owner_id,
            url=url,
            title=title,
            original_content=original_content,
            extraction_type=extraction_type,
            summary=summary,
            key_points=key_points,
            source_metadata=source_metadata,
        )
        return source.to_dict(include_content=True)

    def get_source(self, owner_id: str, source_id: str) -> Dict[str, Any]:
        source = self.sources.get(owner_id, source_id)
        out = source.to_dict(include_content=True)
        out["embedding_count"] = len(self.store.get(owner_id, source_id))
        return out

    def delete_source(self, owner_id: str, source_id: str) -> Dict[str, Any]:
        # raises NotFoundError before anything is removed
        self.sources.get(owner_id, source_id)

        deleted_embeddings = self.store.delete(owner_id, source_id)
        self.sources.delete(owner_id, source_id)
        self.logger.info(
            "Deleted source %s with %d embeddings (owner=%s)",
            source_id,
            deleted_embeddings,
            owner_id,
        )
        return {"source_id": source_id, "deleted_embeddings": deleted_embeddings}
