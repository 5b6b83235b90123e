# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: sources.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_owner_id, get_source_service
from api.http_errors import to_http_exception
from api.schemas.sources import CreateSourceRequest, DeleteSourceResponse, SourceInfo
from services.SourceService import SourceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sources", tags=["sources"])


@router.post("", response_model=SourceInfo, status_code=201)
def post_source(
    req: CreateSourceRequest,
    owner_id: str = Depends(get_owner_id),
    svc: SourceService = Depends(get_source_service),
) -> SourceInfo:
    logger.info("POST /sources (start) extraction_type=%s url='%s'", req.extraction_type.value, req.url)
    try:
        raw = svc.create_source(
            owner_id,
            url=req.url,
            title=req.title,
            original_content=req.original_content,
            extraction_type=req.extraction_type.value,
            summary=req.summary,
            key_points=req.key_points,
            source_metadata=req.source_metadata,
        )
    except Exception as e:
        raise to_http_exception("POST /sources", e)

    logger.info("POST /sources (done) id='%s'", raw["id"])
    return SourceInfo(**raw)


@router.get("/{source_id}", response_model=SourceInfo)
def get_source(
    source_id: str,
    owner_id: str = Depends(get_owner_id),
    svc: SourceService = Depends(get_source_service),
) -> SourceInfo:
    logger.info("GET /sources/{source_id} (start) source_id='%s'", source_id)
    try:
        raw = svc.get_source(owner_id, source_id)
    except Exception as e:
        raise to_http_exception("GET /sources/{source_id}", e)
    return SourceInfo(**raw)


@router.delete("/{source_id}", response_model=DeleteSourceResponse)
def delete_source(
    source_id: str,
    owner_id: str = Depends(get_owner_id),
    svc: SourceService = Depends(get_source_service),
) -> DeleteSourceResponse:
    logger.info("DELETE /sources/{source_id} (start) source_id='%s'", source_id)
    try:
        raw = svc.delete_source(owner_id, source_id)
    except Exception as e:
        raise to_http_exception("DELETE /sources/{source_id}", e)

    logger.info("DELETE /sources/{source_id} (done) deleted_embeddings=%d", raw["deleted_embeddings"])
    return DeleteSourceResponse(**raw)
