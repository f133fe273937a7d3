"""
Service health checks

A health check reports GREEN, YELLOW, or RED. Health checks are run on a schedule by the `Service` that owns them.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from enum import IntEnum, auto


class HealthCheckStatus(IntEnum):
    """
    GREEN: healthy

    YELLOW: functioning, but needs attention, e.g., expired auctions are waiting longer than expected to be closed

    RED: unhealthy, e.g., the database is unreachable
    """

    GREEN = auto()
    YELLOW = auto()
    RED = auto()


class HealthCheckImpact(IntEnum):
    """
    How much of the system is affected when the health check fails.
    Failures are triaged by (status, impact), e.g., (RED, HIGH) comes before (YELLOW, LOW).
    """

    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


class YellowHealthCheck(Exception):
    """
    Raised by `HealthCheck.execute()` to report YELLOW
    """


class RedHealthCheck(Exception):
    """
    Raised by `HealthCheck.execute()` to report RED
    """


@dataclass(slots=True)
class HealthCheckResult:
    """
    HealthCheckResult
    """

    # HealthCheck.name
    name: str
    status: HealthCheckStatus
    # when the health check started
    timestamp: datetime
    duration: timedelta
    # set when status is YELLOW or RED
    error: Exception | None = None


@dataclass(slots=True)
class HealthCheck(ABC):
    """
    Subclasses implement `execute()`, which reports the status by how it completes:

    - returns -> GREEN
    - raises YellowHealthCheck -> YELLOW
    - raises anything else -> RED
    """

    name: str
    # e.g., database, scheduler
    tags: set[str]
    description: str
    impact: HealthCheckImpact
    run_interval: timedelta = timedelta(seconds=30)

    last_result: HealthCheckResult | None = field(default=None, init=False)

    def __call__(self) -> HealthCheckResult:
        start = datetime.now(UTC)
        try:
            self.execute()
            status, error = HealthCheckStatus.GREEN, None
        except YellowHealthCheck as err:
            status, error = HealthCheckStatus.YELLOW, err
        except Exception as err:  # pylint: disable=broad-exception-caught
            status, error = HealthCheckStatus.RED, err

        self.last_result = HealthCheckResult(
            name=self.name,
            status=status,
            timestamp=start,
            duration=datetime.now(UTC) - start,
            error=error,
        )
        return self.last_result

    @abstractmethod
    def execute(self):
        """
        :exception YellowHealthCheck: status is YELLOW
        :exception RedHealthCheck: status is RED
        """
