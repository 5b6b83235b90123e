# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: health.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, Query

import settings
from api.dependencies import get_health_service, get_owner_id
from api.http_errors import to_http_exception
from api.schemas.health import DeepHealthResponse, HealthResponse
from services.HealthService import HealthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", message="TLDW embeddings API running", store_backend=settings.STORE_BACKEND)


@router.get("/deep", response_model=DeepHealthResponse)
def deep_health_check(
    run_embedding: bool = Query(True, description="Include the embedding provider call"),
    owner_id: str = Depends(get_owner_id),
    svc: HealthService = Depends(get_health_service),
) -> DeepHealthResponse:
    logger.info("GET /health/deep called (run_embedding=%s)", run_embedding)
    try:
        result = svc.deep_health(run_embedding=run_embedding)
    except Exception as e:
        raise to_http_exception("GET /health/deep", e)

    logger.info("GET /health/deep completed (status=%s)", result.status)
    return result
