# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from typing import Dict, List

from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=False)


@dataclass(frozen=True)
class Config:
    # Embedding provider (OpenAI-compatible endpoint, Gemini by default)
    embedding_api_key: str = ""
    embedding_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    embedding_model: str = "gemini-embedding-001"

    # Identity provider (bearer token verification)
    auth_jwt_secret: str = ""
    auth_jwt_audience: str = "authenticated"

    # Chroma vector database (default store backend)
    chroma_mode: str = "ephemeral"  # ephemeral | persistent | cloud
    chroma_path: str = "./data/chroma"
    chroma_api_key: str = ""
    chroma_tenant: str = ""
    chroma_database: str = ""
    chroma_collection_prefix: str = "tldw"

    # Source catalog JSON file (defaults to <chroma_path>/tldw_sources.json in persistent mode)
    sources_path: str = ""

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # Embedding provider
        "embedding_api_key": "GEMINI_API_KEY",
        "embedding_base_url": "TLDW_EMBEDDING_BASE_URL",
        "embedding_model": "TLDW_EMBEDDING_MODEL",

        # Auth
        "auth_jwt_secret": "SUPABASE_JWT_SECRET",
        "auth_jwt_audience": "TLDW_AUTH_AUDIENCE",

        # Chroma
        "chroma_mode": "CHROMA_MODE",
        "chroma_path": "CHROMA_PATH",
        "chroma_api_key": "CHROMA_API_KEY",
        "chroma_tenant": "CHROMA_TENANT",
        "chroma_database": "CHROMA_DATABASE",
        "chroma_collection_prefix": "CHROMA_COLLECTION_PREFIX",

        # Sources
        "sources_path": "TLDW_SOURCES_PATH",
    }

    # Convenient *groups* for use in validate() / tests / health checks
    EMBEDDING_FIELDS = ("embedding_api_key", "embedding_base_url", "embedding_model")
    AUTH_FIELDS = ("auth_jwt_secret",)
    CHROMA_CLOUD_FIELDS = ("chroma_api_key", "chroma_tenant", "chroma_database")

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables (unset vars keep defaults)."""
        kwargs = {
            field_name: os.getenv(env_name).strip()
            for field_name, env_name in Config.ENV_VARS.items()
            if os.getenv(env_name)
        }
        return Config(**kwargs)

    def missing(self, *fields: str) -> List[str]:
        """Env var names for the given fields that resolved to empty values."""
        return [self.ENV_VARS[f] for f in fields if not getattr(self, f)]

    def validate(self, *fields: str) -> None:
        """
        Fail fast if any of the given fields is empty.

        Strictness differs per context (an in-memory test container needs no
        provider key), so callers name the groups they depend on.
        """
        missing_env_vars = self.missing(*fields)
        if missing_env_vars:
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

    def summary(self) -> Dict[str, str]:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "embedding_base_url": self.embedding_base_url,
            "embedding_model": self.embedding_model,
            "auth_jwt_audience": self.auth_jwt_audience,
            "chroma_mode": self.chroma_mode,
            "chroma_path": self.chroma_path,
            "chroma_tenant": self.chroma_tenant,
            "chroma_database": self.chroma_database,
            "sources_path": self.sources_path,
        }
