# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-08
# Description: SupabaseTokenVerifier
# -----------------------------------------------------------------------------
from typing import Any, Dict, Optional

import jwt

from config.Config import Config
from utility.errors import AuthError
from utility.logging_utils import get_class_logger


def parse_bearer(authorization: Optional[str]) -> str:
    """Token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise AuthError("missing authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("authorization header must be 'Bearer <token>'")
    return token.strip()


class SupabaseTokenVerifier:
    """
    Resolves a bearer token to the caller's owner id.

    Tokens are HS256 JWTs signed with the identity provider's secret; the
    owner id is the ``sub`` claim.
    """

    algorithms = ["HS256"]

    def __init__(self, cfg: Config, logger=None) -> None:
        cfg.validate(*Config.AUTH_FIELDS)
        self.secret = cfg.auth_jwt_secret
        self.audience = cfg.auth_jwt_audience
        self.logger = logger or get_class_logger(self.__class__)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            self.logger.warning("Rejected expired token")
            raise AuthError("token expired") from e
        except jwt.PyJWTError as e:
            self.logger.warning("Rejected invalid token: %s", e)
            raise AuthError("invalid token") from e

    def verify_caller(self, token: str) -> str:
        claims = self.decode(token)
        owner_id = claims.get("sub")
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise AuthError("token has no subject")
        return owner_id
