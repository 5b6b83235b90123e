# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: embeddings.py
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

import settings
from api.dependencies import (
    get_batch_service,
    get_embedding_service,
    get_owner_id,
    get_stats_service,
)
from api.http_errors import to_http_exception
from api.schemas.embeddings import (
    BatchEmbeddingItemResult,
    BatchEmbeddingRequest,
    BatchEmbeddingResponse,
    ClusterResponse,
    DeleteEmbeddingsResponse,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    EmbeddingStatsResponse,
    GenerateEmbeddingRequest,
    GenerateEmbeddingResponse,
    GetEmbeddingsResponse,
)
from embedding.EmbeddingRecord import TaskType
from services.BatchEmbeddingService import BatchEmbeddingService, BatchItem
from services.EmbeddingService import EmbeddingService
from services.EmbeddingStatsService import EmbeddingStatsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("", response_model=GenerateEmbeddingResponse)
def post_embedding(
    req: GenerateEmbeddingRequest,
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> GenerateEmbeddingResponse:
    logger.info(
        "POST /embeddings (start) source_ref_id='%s' task_type=%s chars=%d",
        req.source_ref_id,
        req.task_type.value,
        len(req.content),
    )
    try:
        raw = svc.generate_and_store(
            owner_id,
            source_ref_id=req.source_ref_id.strip(),
            content=req.content,
            task_type=req.task_type,
            check_duplicates=req.check_duplicates,
        )
    except Exception as e:
        raise to_http_exception("POST /embeddings", e)

    logger.info("POST /embeddings (done) embedding_id='%s'", raw["embedding_id"])
    return GenerateEmbeddingResponse(**raw)


@router.post("/batch", response_model=BatchEmbeddingResponse)
def post_embedding_batch(
    req: BatchEmbeddingRequest,
    owner_id: str = Depends(get_owner_id),
    svc: BatchEmbeddingService = Depends(get_batch_service),
) -> BatchEmbeddingResponse:
    logger.info("POST /embeddings/batch (start) items=%d", len(req.items))
    items = [
        BatchItem(source_ref_id=i.source_ref_id.strip(), content=i.content, task_type=i.task_type)
        for i in req.items
    ]
    try:
        results = svc.embed_batch(owner_id, items, check_duplicates=req.check_duplicates)
    except Exception as e:
        raise to_http_exception("POST /embeddings/batch", e)

    out = [
        BatchEmbeddingItemResult(
            source_ref_id=r.source_ref_id,
            status=r.status,
            embedding_id=r.embedding_id,
            error=r.error,
            status_code=r.status_code,
            duplicates=r.duplicates,
        )
        for r in results
    ]
    succeeded = sum(1 for r in results if r.status == "ok")
    cancelled = sum(1 for r in results if r.status == "cancelled")
    resp = BatchEmbeddingResponse(
        requested=len(items),
        succeeded=succeeded,
        failed=len(items) - succeeded - cancelled,
        cancelled=cancelled,
        results=out,
    )
    logger.info("POST /embeddings/batch (done) succeeded=%d failed=%d", resp.succeeded, resp.failed)
    return resp


@router.post("/duplicates", response_model=DuplicateCheckResponse)
def post_duplicate_check(
    req: DuplicateCheckRequest,
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> DuplicateCheckResponse:
    logger.info("POST /embeddings/duplicates (start) threshold=%.2f", req.similarity_threshold)
    try:
        raw = svc.find_duplicates(
            owner_id,
            content=req.content,
            threshold=req.similarity_threshold,
            exclude_source_ref_id=req.exclude_source_ref_id,
        )
    except Exception as e:
        raise to_http_exception("POST /embeddings/duplicates", e)

    logger.info("POST /embeddings/duplicates (done) duplicates=%d", len(raw["duplicates"]))
    return DuplicateCheckResponse(**raw)


@router.get("/stats", response_model=EmbeddingStatsResponse)
def get_embedding_stats(
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingStatsService = Depends(get_stats_service),
) -> EmbeddingStatsResponse:
    logger.info("GET /embeddings/stats (start)")
    try:
        raw = svc.get_stats(owner_id)
    except Exception as e:
        raise to_http_exception("GET /embeddings/stats", e)
    return EmbeddingStatsResponse(**raw)


@router.get("/clusters", response_model=ClusterResponse)
def get_embedding_clusters(
    k: int = Query(settings.DEFAULT_CLUSTER_COUNT, ge=1, le=100),
    seed: Optional[int] = Query(None),
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingStatsService = Depends(get_stats_service),
) -> ClusterResponse:
    logger.info("GET /embeddings/clusters (start) k=%d seed=%s", k, seed)
    try:
        raw = svc.get_clusters(owner_id, k=k, seed=seed)
    except Exception as e:
        raise to_http_exception("GET /embeddings/clusters", e)

    logger.info("GET /embeddings/clusters (done) assignments=%d", len(raw["assignments"]))
    return ClusterResponse(**raw)


@router.get("/{source_ref_id}", response_model=GetEmbeddingsResponse)
def get_embeddings(
    source_ref_id: str,
    task_type: Optional[TaskType] = Query(None),
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> GetEmbeddingsResponse:
    source_ref_id = (source_ref_id or "").strip()
    logger.info("GET /embeddings/{source_ref_id} (start) source_ref_id='%s'", source_ref_id)
    try:
        embeddings = svc.get_embeddings(owner_id, source_ref_id, task_type)
    except Exception as e:
        raise to_http_exception("GET /embeddings/{source_ref_id}", e)

    return GetEmbeddingsResponse(
        source_ref_id=source_ref_id,
        count=len(embeddings),
        embeddings=embeddings,
    )


@router.delete("/{source_ref_id}", response_model=DeleteEmbeddingsResponse)
def delete_embeddings(
    source_ref_id: str,
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> DeleteEmbeddingsResponse:
    source_ref_id = (source_ref_id or "").strip()
    logger.info("DELETE /embeddings/{source_ref_id} (start) source_ref_id='%s'", source_ref_id)
    try:
        deleted = svc.delete_embeddings(owner_id, source_ref_id)
    except Exception as e:
        raise to_http_exception("DELETE /embeddings/{source_ref_id}", e)

    logger.info("DELETE /embeddings/{source_ref_id} (done) deleted=%d", deleted)
    return DeleteEmbeddingsResponse(source_ref_id=source_ref_id, deleted=deleted)
