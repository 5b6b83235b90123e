# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: search router
# -----------------------------------------------------------------------------
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_owner_id, get_search_service
from api.http_errors import to_http_exception
from api.schemas.search import (
    BatchSearchRequest,
    BatchSearchResponse,
    SearchRequest,
    SearchResponse,
)
from services.SearchService import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
def post_search(
    req: SearchRequest,
    owner_id: str = Depends(get_owner_id),
    svc: SearchService = Depends(get_search_service),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        logger.warning("POST /search -> 400 (query empty)")
        raise HTTPException(status_code=400, detail="query must not be empty")

    logger.info(
        "POST /search (start) threshold=%.2f max_results=%d include_content=%s",
        req.similarity_threshold,
        req.max_results,
        req.include_content,
    )
    try:
        raw: Dict[str, Any] = svc.search(
            owner_id,
            query=query_text,
            similarity_threshold=req.similarity_threshold,
            max_results=req.max_results,
            include_content=req.include_content,
        )
    except Exception as e:
        raise to_http_exception("POST /search", e)

    logger.info("POST /search (done) results=%d", raw["metadata"]["total_results"])
    return SearchResponse(**raw)


@router.post("/batch", response_model=BatchSearchResponse)
def post_batch_search(
    req: BatchSearchRequest,
    owner_id: str = Depends(get_owner_id),
    svc: SearchService = Depends(get_search_service),
) -> BatchSearchResponse:
    logger.info("POST /search/batch (start) queries=%d", len(req.queries))
    try:
        raw: Dict[str, Any] = svc.batch_search(
            owner_id,
            queries=req.queries,
            similarity_threshold=req.similarity_threshold,
            max_results_per_query=req.max_results_per_query,
            include_content=req.include_content,
        )
    except Exception as e:
        raise to_http_exception("POST /search/batch", e)

    logger.info("POST /search/batch (done) results=%d", raw["metadata"]["total_results"])
    return BatchSearchResponse(**raw)
