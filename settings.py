# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Updated: 2026-10-18
# Description: settings.py
# -----------------------------------------------------------------------------
import os


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
LOG_LEVEL = _env("TLDW_LOG_LEVEL", "INFO").upper()

# Optional rotating file log next to the console output
LOG_TO_FILE = _env_bool("TLDW_LOG_TO_FILE", False)
LOG_FILE = _env("TLDW_LOG_FILE", "./logs/tldw.log")
LOG_MAX_BYTES = _env_int("TLDW_LOG_MAX_BYTES", 5 * 1024 * 1024)
LOG_BACKUP_COUNT = _env_int("TLDW_LOG_BACKUP_COUNT", 5)


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------
# chroma | memory (memory is an exact scan for tests and small local runs)
STORE_BACKEND = _env("TLDW_STORE_BACKEND", "chroma").lower()

# Output dimensionality of the embedding model (gemini-embedding-001 at 768)
EMBEDDING_DIMENSIONS = _env_int("TLDW_EMBEDDING_DIMENSIONS", 768)


# -----------------------------------------------------------------------------
# Nearest-neighbour index (Chroma HNSW collection settings)
# -----------------------------------------------------------------------------
HNSW_M = _env_int("TLDW_HNSW_M", 16)
HNSW_EF_CONSTRUCTION = _env_int("TLDW_HNSW_EF_CONSTRUCTION", 64)
HNSW_EF_SEARCH = _env_int("TLDW_HNSW_EF_SEARCH", 40)


# -----------------------------------------------------------------------------
# Search / dedup defaults
# -----------------------------------------------------------------------------
DEFAULT_SIMILARITY_THRESHOLD = _env_float("TLDW_DEFAULT_SIMILARITY_THRESHOLD", 0.7)
DEFAULT_DUPLICATE_THRESHOLD = _env_float("TLDW_DEFAULT_DUPLICATE_THRESHOLD", 0.95)
DEFAULT_MAX_RESULTS = _env_int("TLDW_DEFAULT_MAX_RESULTS", 10)
MAX_RESULTS_LIMIT = _env_int("TLDW_MAX_RESULTS_LIMIT", 50)
MAX_DUPLICATE_RESULTS = _env_int("TLDW_MAX_DUPLICATE_RESULTS", 10)


# -----------------------------------------------------------------------------
# Embedding provider calls
# -----------------------------------------------------------------------------
EMBED_MAX_RETRIES = _env_int("TLDW_EMBED_MAX_RETRIES", 3)
EMBED_TIMEOUT_SECONDS = _env_float("TLDW_EMBED_TIMEOUT_SECONDS", 30.0)

# Batch embedding: degree of parallelism per chunk + pause between chunks
BATCH_SIZE = _env_int("TLDW_BATCH_SIZE", 5)
BATCH_COOLDOWN_SECONDS = _env_float("TLDW_BATCH_COOLDOWN_SECONDS", 1.0)
MAX_BATCH_ITEMS = _env_int("TLDW_MAX_BATCH_ITEMS", 100)


# -----------------------------------------------------------------------------
# Clustering
# -----------------------------------------------------------------------------
DEFAULT_CLUSTER_COUNT = _env_int("TLDW_DEFAULT_CLUSTER_COUNT", 5)

# 0 keeps the single random-centroid assignment pass
CLUSTER_REFINE_ITERATIONS = _env_int("TLDW_CLUSTER_REFINE_ITERATIONS", 0)


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if STORE_BACKEND not in ("chroma", "memory"):
    raise RuntimeError(f"TLDW_STORE_BACKEND must be 'chroma' or 'memory', got {STORE_BACKEND!r}")

if EMBEDDING_DIMENSIONS <= 0:
    raise RuntimeError("EMBEDDING_DIMENSIONS must be positive")

if HNSW_M < 2 or HNSW_EF_CONSTRUCTION < 1 or HNSW_EF_SEARCH < 1:
    raise RuntimeError("HNSW parameters out of range (M >= 2, ef_construction >= 1, ef_search >= 1)")

if BATCH_SIZE < 1:
    raise RuntimeError("BATCH_SIZE must be at least 1")
