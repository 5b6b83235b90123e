# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: dependencies.py
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from api.AppContainer import AppContainer
from auth.SupabaseTokenVerifier import parse_bearer
from services.BatchEmbeddingService import BatchEmbeddingService
from services.EmbeddingService import EmbeddingService
from services.EmbeddingStatsService import EmbeddingStatsService
from services.HealthService import HealthService
from services.SearchService import SearchService
from services.SourceService import SourceService
from utility.errors import AuthError

logger = logging.getLogger(__name__)


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_owner_id(
    authorization: Optional[str] = Header(None),
    container: AppContainer = Depends(get_container),
) -> str:
    try:
        return container.verifier.verify_caller(parse_bearer(authorization))
    except AuthError as e:
        logger.warning("auth -> 401: %s", e.message)
        raise HTTPException(status_code=401, detail=e.message, headers={"WWW-Authenticate": "Bearer"})


def get_health_service(container: AppContainer = Depends(get_container)) -> HealthService:
    return container.health_service


def get_embedding_service(container: AppContainer = Depends(get_container)) -> EmbeddingService:
    return container.embedding_service


def get_batch_service(container: AppContainer = Depends(get_container)) -> BatchEmbeddingService:
    return container.batch_service


def get_search_service(container: AppContainer = Depends(get_container)) -> SearchService:
    return container.search_service


def get_stats_service(container: AppContainer = Depends(get_container)) -> EmbeddingStatsService:
    return container.stats_service


def get_source_service(container: AppContainer = Depends(get_container)) -> SourceService:
    return container.source_service
