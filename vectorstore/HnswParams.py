# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-04
# Updated: 2026-10-18
# Description: HnswParams
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class HnswParams:
    """Recall/throughput knobs for Chroma's HNSW index (same meaning as pgvector / hnswlib)."""
    m: int = 16
    ef_construction: int = 64
    ef_search: int = 40

    def __post_init__(self) -> None:
        if self.m < 2 or self.ef_construction < 1 or self.ef_search < 1:
            raise ValueError("HNSW parameters out of range (m >= 2, ef_construction >= 1, ef_search >= 1)")

    def collection_metadata(self) -> Dict[str, object]:
        """Chroma collection metadata; cosine space so distances convert to similarity."""
        return {
            "hnsw:space": "cosine",
            "hnsw:M": self.m,
            "hnsw:construction_ef": self.ef_construction,
            "hnsw:search_ef": self.ef_search,
        }
