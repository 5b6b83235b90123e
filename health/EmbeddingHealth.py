# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: EmbeddingHealth
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from embedding.TLDWEmbedder import Embedder
from utility.errors import TLDWError
from utility.logging_utils import get_logger


class EmbeddingHealth:
    """
    Smoke test for the embedding provider.

    Verifies:
      - The embedding call completes successfully
      - The response contains a non-empty vector
      - The vector dimension matches the expected dimension (if provided)
    """

    def __init__(
        self,
        embedder: Embedder,
        expected_dim: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.embedder = embedder
        self.expected_dim = expected_dim
        self.logger = logger or get_logger(__name__)

    def run(self) -> bool:
        test_text = "TLDW embedding healthcheck"
        self.logger.info("Running embedding healthcheck using model: %s", self.embedder.model)

        try:
            result = self.embedder.embed(test_text)
        except TLDWError as e:
            self.logger.error("Embedding healthcheck FAILED: %s", e.message)
            return False

        dim = len(result.vector)
        if dim == 0:
            self.logger.error("No embedding data returned in response.")
            return False

        self.logger.info(
            "Embedding call succeeded in %d ms. Returned dimension: %d",
            result.latency_ms,
            dim,
        )

        if self.expected_dim is not None and dim != self.expected_dim:
            self.logger.warning("Dimension mismatch: expected %d, got %d.", self.expected_dim, dim)
            return False

        self.logger.info("Embedding healthcheck PASSED.")
        return True
