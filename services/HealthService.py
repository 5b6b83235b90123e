# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: HealthService.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass

from api.schemas.health import DeepHealthResponse, SmokeTestSummary
from health.TestRunner import TestRunner


@dataclass
class HealthService:
    """
    Wraps TestRunner, which runs smoke tests against the store and the
    embedding provider. Returns DeepHealthResponse for the API layer.
    """

    test_runner: TestRunner

    def deep_health(self, run_embedding: bool = True) -> DeepHealthResponse:
        results = self.test_runner.run_all(run_embedding=run_embedding)

        total = len(results)
        passed = sum(1 for ok in results.values() if ok)
        failed = total - passed

        return DeepHealthResponse(
            status="ok" if failed == 0 else "error",
            results=results,
            summary=SmokeTestSummary(total=total, passed=passed, failed=failed),
        )
