# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: sources.py
# -----------------------------------------------------------------------------
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from sources.TLDWSource import ExtractionType


class CreateSourceRequest(BaseModel):
    url: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    original_content: str = Field(..., min_length=1)
    extraction_type: ExtractionType
    summary: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    source_metadata: Dict[str, Any] = Field(default_factory=dict)


class SourceInfo(BaseModel):
    id: str
    url: str
    title: str
    summary: Optional[str] = None
    created_at: datetime
    original_content: str
    key_points: List[str]
    extraction_type: ExtractionType
    source_metadata: Dict[str, Any]
    embedding_count: Optional[int] = None


class DeleteSourceResponse(BaseModel):
    source_id: str
    deleted_embeddings: int
