# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: StoreHealth
# -----------------------------------------------------------------------------
import logging
from typing import Optional

import numpy as np

from embedding.EmbeddingRecord import TaskType
from utility.errors import TLDWError
from utility.hashing import content_hash
from utility.logging_utils import get_logger
from vectorstore.EmbeddingStore import EmbeddingStore


class StoreHealth:
    """
    Read/write healthcheck against the embedding store:
      - put a dummy record under a dedicated healthcheck owner
      - query it back by vector
      - ensure we get the same source id back
      - clean up the dummy record
    """

    HEALTH_OWNER = "__healthcheck__"
    HEALTH_SOURCE = "healthcheck-source-1"

    def __init__(self, store: EmbeddingStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or get_logger(__name__)

    def run(self) -> bool:
        if not self.store.test_connection():
            self.logger.error("Store connection check failed.")
            return False

        text = "This is a TLDW store healthcheck document."
        vector = np.zeros(self.store.dimensions)
        vector[0] = 1.0

        try:
            self.store.put(
                self.HEALTH_OWNER,
                self.HEALTH_SOURCE,
                TaskType.SEMANTIC_SIMILARITY,
                vector,
                content_hash(text),
                text,
            )
            matches = self.store.find_similar(self.HEALTH_OWNER, vector, 0.99, 1)
            ok = bool(matches) and matches[0].source_ref_id == self.HEALTH_SOURCE
            if ok:
                self.logger.info("Store healthcheck query returned the expected record.")
            else:
                self.logger.warning("Store healthcheck query did NOT return the expected record: %s", matches)
            return ok
        except TLDWError as e:
            self.logger.error("Store healthcheck FAILED: %s", e.message)
            return False
        finally:
            self.store.delete(self.HEALTH_OWNER, self.HEALTH_SOURCE)
