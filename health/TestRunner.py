# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: TestRunner
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Dict, Optional

from embedding.TLDWEmbedder import Embedder
from health.EmbeddingHealth import EmbeddingHealth
from health.StoreHealth import StoreHealth
from utility.logging_utils import get_class_logger
from vectorstore.EmbeddingStore import EmbeddingStore


class TestRunner:
    """
    Orchestrates all smoke tests and reports a consolidated result.

    Tests included:
      - StoreHealth     (embedding store R/W round-trip)
      - EmbeddingHealth (embedding provider call, optional)
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        *,
        store: EmbeddingStore,
        embedder: Embedder,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or get_class_logger(self.__class__)
        self.logger.info("Initialising SmokeTestRunner")

        self.store_health = StoreHealth(store)
        self.embedding_health = EmbeddingHealth(embedder, expected_dim=store.dimensions)

    # -------------------------------------------------------------------------
    def run_all(self, run_embedding: bool = True) -> Dict[str, bool]:
        """
        Run all configured smoke tests.

        :param run_embedding: If False, skips the (billable) provider call.
        :return: Dict mapping test names to True/False.
        """
        self.logger.info("Starting smoke test suite (run_embedding=%s)", run_embedding)

        results: Dict[str, bool] = {}

        ok_store = self.store_health.run()
        results["store_health"] = ok_store
        self._log_result("StoreHealth", ok_store)

        if run_embedding:
            ok_embed = self.embedding_health.run()
            results["embedding_health"] = ok_embed
            self._log_result("EmbeddingHealth", ok_embed)

        self._log_summary(results)
        return results

    # -------------------------------------------------------------------------
    def _log_result(self, name: str, ok: bool) -> None:
        if ok:
            self.logger.info("%s: PASS", name)
        else:
            self.logger.error("%s: FAIL", name)

    def _log_summary(self, results: Dict[str, bool]) -> None:
        total = len(results)
        passed = sum(1 for v in results.values() if v)
        failed = total - passed

        self.logger.info("Smoke test summary: %d total, %d passed, %d failed", total, passed, failed)

        for name, ok in results.items():
            status = "PASS" if ok else "FAIL"
            self.logger.info("  %s: %s", name, status)
