# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-13
# Description: main.py
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.AppContainer import AppContainer
from api.routers import embeddings, health, search, sources
from utility.logging_utils import configure_logging

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed / out-of-range input is a 400 for this API
    logger.warning("%s %s -> 400: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=jsonable_encoder({"detail": exc.errors()}))


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """
    App factory. Run with: uvicorn api.main:create_app --factory
    """
    configure_logging()
    app = FastAPI(title="TLDW Embeddings API")
    app.state.container = container or AppContainer()

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(health.router)
    app.include_router(embeddings.router)
    app.include_router(search.router)
    app.include_router(sources.router)
    return app
