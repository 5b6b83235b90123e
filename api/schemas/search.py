# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: search.py
# -----------------------------------------------------------------------------
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

import settings


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    similarity_threshold: float = Field(settings.DEFAULT_SIMILARITY_THRESHOLD, ge=0.0, le=1.0)
    max_results: int = Field(settings.DEFAULT_MAX_RESULTS, ge=1, le=settings.MAX_RESULTS_LIMIT)
    include_content: bool = False


class SearchHit(BaseModel):
    source_ref_id: str
    score: float
    title: Optional[str] = None
    url: Optional[str] = None
    summary: Optional[str] = None
    created_at: datetime

    # include_content only
    original_content: Optional[str] = None
    key_points: Optional[List[str]] = None
    extraction_type: Optional[str] = None
    source_metadata: Optional[Dict[str, Any]] = None


class SearchTimings(BaseModel):
    embedding_generation_ms: int
    search_ms: int
    total_ms: int


class SearchMetadata(BaseModel):
    total_results: int
    threshold: float
    max_results: int
    model: Optional[str] = None
    dimensions: int
    timings: SearchTimings


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHit]
    metadata: SearchMetadata


class BatchSearchRequest(BaseModel):
    queries: List[str] = Field(..., min_length=1, max_length=20)
    similarity_threshold: float = Field(settings.DEFAULT_SIMILARITY_THRESHOLD, ge=0.0, le=1.0)
    max_results_per_query: int = Field(5, ge=1, le=settings.MAX_RESULTS_LIMIT)
    include_content: bool = False


class BatchSearchHit(SearchHit):
    query_index: int


class BatchSearchMetadata(BaseModel):
    total_results: int
    threshold: float
    max_results_per_query: int
    total_ms: int


class BatchSearchResponse(BaseModel):
    queries: List[str]
    results: List[BatchSearchHit]
    metadata: BatchSearchMetadata
