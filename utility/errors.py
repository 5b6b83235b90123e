# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: errors.py
# -----------------------------------------------------------------------------
"""
Error taxonomy shared by the store, the services and the API layer.

Every error carries the HTTP status the routers report for it, so routers can
translate with a single ``except TLDWError`` branch.
"""
from typing import Optional


class TLDWError(Exception):
    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(TLDWError):
    """Bad input shape or range. Raised before any I/O."""
    status_code = 400


class AuthError(TLDWError):
    """Missing, invalid or expired bearer credential."""
    status_code = 401


class NotFoundError(TLDWError):
    """Referenced source content is absent or not owned by the caller."""
    status_code = 404


class InsufficientData(TLDWError):
    """Not enough stored records to run the requested operation (e.g. clustering)."""
    status_code = 409


class DimensionMismatch(ValidationError):
    """Vector length does not match the store dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected vector of length {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class EmbeddingGenerationFailed(TLDWError):
    """The external embedding provider failed (timeout, quota, malformed response)."""
    status_code = 500
    retryable = True

    def __init__(self, message: str, *, attempts: Optional[int] = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.retryable = retryable


class StorageError(TLDWError):
    """Underlying persistence failure. Never retried by the store."""
    status_code = 500
