# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Description: hashing.py
# -----------------------------------------------------------------------------
import hashlib


def content_hash(text: str) -> str:
    """SHA-256 hex digest of the exact UTF-8 text (used for exact-duplicate detection)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
