import unittest
from datetime import timedelta

from auctionhouse.core.health_check import (
    HealthCheck,
    HealthCheckImpact,
    HealthCheckStatus,
    YellowHealthCheck,
    RedHealthCheck,
)


class ScriptedHealthCheck(HealthCheck):
    """
    Raises whatever error it is told to
    """

    error: Exception | None = None

    def __init__(self):
        super().__init__(
            name="scripted",
            impact=HealthCheckImpact.HIGH,
            description="reports whatever it is told to",
            tags={"test"},
            run_interval=timedelta(seconds=1),
        )

    def execute(self):
        if self.error:
            raise self.error


class HealthCheckTestCase(unittest.TestCase):
    def test_status(self):
        healthcheck = ScriptedHealthCheck()
        self.assertIsNone(healthcheck.last_result)

        cases = [
            (None, HealthCheckStatus.GREEN),
            (YellowHealthCheck("backlog"), HealthCheckStatus.YELLOW),
            (RedHealthCheck("down"), HealthCheckStatus.RED),
            (ConnectionError("unreachable"), HealthCheckStatus.RED),
            (None, HealthCheckStatus.GREEN),
        ]
        for error, status in cases:
            with self.subTest(error=repr(error)):
                healthcheck.error = error
                result = healthcheck()
                self.assertIs(result, healthcheck.last_result)
                self.assertEqual("scripted", result.name)
                self.assertEqual(status, result.status)
                self.assertIs(error, result.error)
                self.assertGreaterEqual(result.duration, timedelta(0))


if __name__ == "__main__":
    unittest.main()
