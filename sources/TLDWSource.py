# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-08
# Description: TLDWSource
# -----------------------------------------------------------------------------
"""
Source content ("extraction") an embedding represents.

Extraction happens upstream (browser extension); this service only needs to
know that a source exists, who owns it, and enough of its content to enrich
search results.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ExtractionType(str, Enum):
    VIDEO = "video"
    WEBPAGE = "webpage"
    PDF = "pdf"


@dataclass(frozen=True)
class Exercise:
    name: str
    timestamp: Optional[str] = None
    how_to_perform: Optional[str] = None


@dataclass(frozen=True)
class VideoMetadata:
    video_id: Optional[str] = None
    channel: Optional[str] = None
    duration_seconds: Optional[int] = None
    exercises: List[Exercise] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebpageMetadata:
    site_name: Optional[str] = None
    word_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PdfMetadata:
    page_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)


SourceMetadata = Union[VideoMetadata, WebpageMetadata, PdfMetadata]

_METADATA_TYPES = {
    ExtractionType.VIDEO: VideoMetadata,
    ExtractionType.WEBPAGE: WebpageMetadata,
    ExtractionType.PDF: PdfMetadata,
}


def build_source_metadata(extraction_type: ExtractionType, raw: Optional[Dict[str, Any]]) -> SourceMetadata:
    """
    Typed metadata for an extraction type. Keys the type does not declare are
    kept under ``extra`` rather than dropped.
    """
    cls = _METADATA_TYPES[ExtractionType(extraction_type)]
    raw = dict(raw or {})
    extra = dict(raw.pop("extra", None) or {})

    known = {k for k in cls.__dataclass_fields__ if k != "extra"}
    kwargs = {k: raw.pop(k) for k in list(raw) if k in known}
    extra.update(raw)

    if cls is VideoMetadata:
        kwargs["exercises"] = [
            ex if isinstance(ex, Exercise) else Exercise(**ex)
            for ex in kwargs.get("exercises") or []
        ]
    return cls(extra=extra, **kwargs)


@dataclass(frozen=True)
class TLDWSource:
    id: str
    owner_id: str
    url: str
    title: str
    original_content: str
    extraction_type: ExtractionType
    source_metadata: SourceMetadata
    created_at: datetime
    updated_at: datetime
    summary: Optional[str] = None
    key_points: List[str] = field(default_factory=list)

    def to_dict(self, *, include_content: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "summary": self.summary,
            "created_at": self.created_at.isoformat(),
        }
        if include_content:
            out.update(
                original_content=self.original_content,
                key_points=list(self.key_points),
                extraction_type=self.extraction_type.value,
                source_metadata=asdict(self.source_metadata),
            )
        return out

    def to_record(self) -> Dict[str, Any]:
        """Full JSON-safe form, including owner and timestamps (catalog persistence)."""
        return {
            **self.to_dict(include_content=True),
            "owner_id": self.owner_id,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "TLDWSource":
        kind = ExtractionType(data["extraction_type"])
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            url=data["url"],
            title=data["title"],
            original_content=data["original_content"],
            extraction_type=kind,
            source_metadata=build_source_metadata(kind, data.get("source_metadata")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            summary=data.get("summary"),
            key_points=list(data.get("key_points") or []),
        )
