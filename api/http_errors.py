# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-12
# Description: http_errors.py
# -----------------------------------------------------------------------------
import logging

from fastapi import HTTPException

from utility.errors import TLDWError

logger = logging.getLogger(__name__)


def to_http_exception(route: str, exc: Exception) -> HTTPException:
    """Log + translate a service exception into the HTTPException a router raises."""
    if isinstance(exc, TLDWError):
        status, detail = exc.status_code, exc.message
    else:
        status, detail = 500, f"{route} failed: {exc}"

    if status >= 500:
        logger.error("%s -> %d: %s", route, status, exc, exc_info=exc)
    else:
        logger.warning("%s -> %d: %s", route, status, detail)
    return HTTPException(status_code=status, detail=detail)
