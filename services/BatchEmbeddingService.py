# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-10
# Description: BatchEmbeddingService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from embedding.EmbeddingRecord import TaskType
from services.EmbeddingService import EmbeddingService
from utility.errors import TLDWError, ValidationError
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class BatchItem:
    source_ref_id: str
    content: str
    task_type: Any = TaskType.SEMANTIC_SIMILARITY


@dataclass(frozen=True)
class BatchItemResult:
    source_ref_id: str
    status: str  # ok | error | cancelled
    embedding_id: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    duplicates: Optional[List[Dict[str, Any]]] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class BatchEmbeddingService:
    """
    Generate-and-store for many items.

    Items run in chunks of ``batch_size`` on a thread pool with a cooldown
    between chunks (provider rate limits). One item failing never affects the
    others. Cancellation is checked between chunks; items not yet started are
    reported as cancelled.
    """

    def __init__(
        self,
        *,
        embedding_service: EmbeddingService,
        batch_size: int = 5,
        cooldown_seconds: float = 1.0,
        max_items: int = 100,
        logger: logging.Logger | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.embedding_service = embedding_service
        self.batch_size = batch_size
        self.cooldown_seconds = cooldown_seconds
        self.max_items = max_items
        self.logger = logger or get_class_logger(self.__class__)

    def _run_one(self, owner_id: str, item: BatchItem, check_duplicates: bool) -> BatchItemResult:
        try:
            out = self.embedding_service.generate_and_store(
                owner_id,
                source_ref_id=item.source_ref_id,
                content=item.content,
                task_type=item.task_type,
                check_duplicates=check_duplicates,
            )
            return BatchItemResult(
                source_ref_id=item.source_ref_id,
                status="ok",
                embedding_id=out["embedding_id"],
                duplicates=out["duplicates"],
            )
        except TLDWError as e:
            self.logger.warning("Batch item '%s' failed: %s", item.source_ref_id, e.message)
            return BatchItemResult(
                source_ref_id=item.source_ref_id,
                status="error",
                error=e.message,
                status_code=e.status_code,
            )
        except Exception as e:
            self.logger.error("Batch item '%s' failed: %s", item.source_ref_id, e, exc_info=True)
            return BatchItemResult(
                source_ref_id=item.source_ref_id,
                status="error",
                error=str(e),
                status_code=500,
            )

    def embed_batch(
        self,
        owner_id: str,
        items: Sequence[BatchItem],
        *,
        check_duplicates: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[BatchItemResult]:
        """Results come back in input order, one per item."""
        if not items:
            raise ValidationError("items must not be empty")
        if len(items) > self.max_items:
            raise ValidationError(f"at most {self.max_items} items per batch")

        cancel_event = cancel_event or threading.Event()
        chunks = [items[i:i + self.batch_size] for i in range(0, len(items), self.batch_size)]
        self.logger.info(
            "Batch embedding owner=%s items=%d chunks=%d (batch_size=%d)",
            owner_id,
            len(items),
            len(chunks),
            self.batch_size,
        )

        results: List[BatchItemResult] = []
        with ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="tldw-batch") as pool:
            for n, chunk in enumerate(chunks):
                if n > 0 and self.cooldown_seconds > 0:
                    # wait() returns early when cancelled
                    cancel_event.wait(self.cooldown_seconds)
                if cancel_event.is_set():
                    self.logger.info("Batch cancelled after %d/%d items", len(results), len(items))
                    break
                futures = [pool.submit(self._run_one, owner_id, item, check_duplicates) for item in chunk]
                results.extend(f.result() for f in futures)

        for item in items[len(results):]:
            results.append(BatchItemResult(source_ref_id=item.source_ref_id, status="cancelled"))

        succeeded = sum(1 for r in results if r.ok)
        self.logger.info(
            "Batch embedding complete: %d/%d succeeded, %d cancelled",
            succeeded,
            len(items),
            sum(1 for r in results if r.status == "cancelled"),
        )
        return results
