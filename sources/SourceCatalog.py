# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-08
# Updated: 2026-10-18
# Description: SourceCatalog
# -----------------------------------------------------------------------------
import json
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from embedding.EmbeddingRecord import utcnow
from sources.TLDWSource import ExtractionType, TLDWSource, build_source_metadata
from utility.errors import NotFoundError, StorageError, ValidationError
from utility.logging_utils import get_class_logger


class SourceCatalog:
    """
    Owner-scoped source content. A source owned by someone else is reported as
    not found.

    With a ``path`` the catalog is loaded from a JSON file at start-up and every
    create/delete rewrites it (temp file + rename), so sources survive a restart
    alongside a persistent embedding store. Without one it lives in memory only.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, logger=None) -> None:
        self.logger = logger or get_class_logger(self.__class__)
        self.path = Path(path) if path else None
        self._sources: Dict[str, Dict[str, TLDWSource]] = {}
        self._lock = threading.Lock()

        if self.path is not None:
            self._load()
        self.logger.info(
            "SourceCatalog initialised (path=%s, sources=%d)",
            self.path,
            sum(len(v) for v in self._sources.values()),
        )

    # -------------------------------------------------------------------------
    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            rows = json.loads(self.path.read_text(encoding="utf-8"))
            for row in rows:
                source = TLDWSource.from_record(row)
                self._sources.setdefault(source.owner_id, {})[source.id] = source
        except (OSError, ValueError, KeyError, TypeError) as e:
            self.logger.error("Failed to load source catalog '%s': %s", self.path, e)
            raise StorageError(f"failed to load source catalog '{self.path}': {e}") from e

    def _flush(self) -> None:
        """Write the whole catalog. Caller holds the lock."""
        if self.path is None:
            return
        rows = [s.to_record() for owned in self._sources.values() for s in owned.values()]
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            self.logger.error("Failed to write source catalog '%s': %s", self.path, e)
            raise StorageError(f"failed to write source catalog '{self.path}': {e}") from e

    # -------------------------------------------------------------------------
    def create(
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
            source_id: Optional[str] = None,
    ) -> TLDWSource:
        if not original_content or not original_content.strip():
            raise ValidationError("original_content must not be empty")
        try:
            kind = ExtractionType(extraction_type)
        except ValueError as e:
            raise ValidationError(f"unknown extraction_type {extraction_type!r}") from e
        try:
            metadata = build_source_metadata(kind, source_metadata)
        except TypeError as e:
            raise ValidationError(f"invalid source_metadata: {e}") from e

        now = utcnow()
        source = TLDWSource(
            id=source_id or str(uuid.uuid4()),
            owner_id=owner_id,
            url=url,
            title=title,
            original_content=original_content,
            extraction_type=kind,
            source_metadata=metadata,
            created_at=now,
            updated_at=now,
            summary=summary,
            key_points=list(key_points or []),
        )
        with self._lock:
            owned = self._sources.setdefault(owner_id, {})
            previous = owned.get(source.id)
            owned[source.id] = source
            try:
                self._flush()
            except StorageError:
                if previous is None:
                    owned.pop(source.id, None)
                else:
                    owned[source.id] = previous
                raise

        self.logger.info("Created source %s (owner=%s, type=%s)", source.id, owner_id, kind.value)
        return source

    def get(self, owner_id: str, source_id: str) -> TLDWSource:
        source = self._sources.get(owner_id, {}).get(source_id)
        if source is None:
            raise NotFoundError(f"source '{source_id}' not found")
        return source

    def exists(self, owner_id: str, source_id: str) -> bool:
        return source_id in self._sources.get(owner_id, {})

    def get_many(self, owner_id: str, source_ids: Iterable[str]) -> Dict[str, TLDWSource]:
        owned = self._sources.get(owner_id, {})
        return {sid: owned[sid] for sid in source_ids if sid in owned}

    def delete(self, owner_id: str, source_id: str) -> bool:
        with self._lock:
            removed = self._sources.get(owner_id, {}).pop(source_id, None)
            if removed is not None:
                self._flush()
        if removed is not None:
            self.logger.info("Deleted source %s (owner=%s)", source_id, owner_id)
        return removed is not None
