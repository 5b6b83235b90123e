# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: embeddings.py
# -----------------------------------------------------------------------------
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

import settings
from embedding.EmbeddingRecord import TaskType


class DuplicateInfo(BaseModel):
    source_ref_id: str
    score: float
    distance: float
    is_exact_duplicate: bool
    created_at: datetime


class GenerateEmbeddingRequest(BaseModel):
    source_ref_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    task_type: TaskType = TaskType.SEMANTIC_SIMILARITY
    check_duplicates: bool = True


class GenerateEmbeddingResponse(BaseModel):
    embedding_id: str
    source_ref_id: str
    model: Optional[str] = None
    task_type: TaskType
    dimensions: int
    processing_time_ms: Optional[int] = None
    tokens_used: Optional[int] = None
    content_hash: str
    duplicates: Optional[List[DuplicateInfo]] = None


class BatchEmbeddingItem(BaseModel):
    source_ref_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    task_type: TaskType = TaskType.SEMANTIC_SIMILARITY


class BatchEmbeddingRequest(BaseModel):
    items: List[BatchEmbeddingItem] = Field(..., min_length=1)
    check_duplicates: bool = False


class BatchEmbeddingItemResult(BaseModel):
    source_ref_id: str
    status: str
    embedding_id: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    duplicates: Optional[List[DuplicateInfo]] = None


class BatchEmbeddingResponse(BaseModel):
    requested: int
    succeeded: int
    failed: int
    cancelled: int
    results: List[BatchEmbeddingItemResult]


class DuplicateCheckRequest(BaseModel):
    content: str = Field(..., min_length=1)
    similarity_threshold: float = Field(settings.DEFAULT_DUPLICATE_THRESHOLD, ge=0.0, le=1.0)
    exclude_source_ref_id: Optional[str] = None


class DuplicateCheckResponse(BaseModel):
    content_hash: str
    threshold: float
    duplicates: List[DuplicateInfo]


class EmbeddingInfo(BaseModel):
    embedding_id: str
    source_ref_id: str
    task_type: TaskType
    content_hash: str
    text_length: int
    model: Optional[str] = None
    dimensions: int
    processing_time_ms: Optional[int] = None
    tokens_used: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class GetEmbeddingsResponse(BaseModel):
    source_ref_id: str
    count: int
    embeddings: List[EmbeddingInfo]


class DeleteEmbeddingsResponse(BaseModel):
    source_ref_id: str
    deleted: int


class EmbeddingStatsResponse(BaseModel):
    total_embeddings: int
    distinct_task_types: List[str]
    models_used: List[str]
    avg_text_length: Optional[float] = None
    oldest_embedding: Optional[datetime] = None
    newest_embedding: Optional[datetime] = None


class ClusterAssignmentInfo(BaseModel):
    source_ref_id: str
    cluster_id: int
    distance_to_centroid: float
    title: Optional[str] = None
    url: Optional[str] = None


class ClusterResponse(BaseModel):
    k: int
    seed: Optional[int] = None
    assignments: List[ClusterAssignmentInfo]
