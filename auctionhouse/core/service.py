"""
Long-running service framework, e.g., the auction closing scheduler runs as a `Service`
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from enum import IntEnum, auto
from threading import Timer, Event, Lock

from reactivex import Observable, Subject
from reactivex.subject import BehaviorSubject

from auctionhouse.core.health_check import (
    HealthCheck,
    HealthCheckResult,
    HealthCheckStatus,
)
from auctionhouse.core.logging import get_logger
from auctionhouse.core.rx import observe_in_background


class ServiceLifecycleState(IntEnum):
    """
    NEW -> STARTING -> RUNNING -> STOPPING -> STOPPED

    STARTING -> START_FAILED -> STOPPING -> STOPPED, when the startup hook fails

    STOPPED -> STARTING, i.e., services are restartable
    """

    NEW = auto()
    STARTING = auto()
    START_FAILED = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()


# states from which `Service.start()` may proceed
STARTABLE_STATES = frozenset((ServiceLifecycleState.NEW, ServiceLifecycleState.STOPPED))


@dataclass(slots=True)
class ServiceLifecycleEvent:
    """
    Published each time the service changes state
    """

    service_name: str
    state: ServiceLifecycleState


class ServiceCommand(IntEnum):
    """
    Remote service management commands
    """

    START = auto()
    STOP = auto()


@dataclass(slots=True)
class ServiceError(Exception):
    """
    Base class for service lifecycle errors
    """

    service_name: str
    cause: Exception | str

    def __str__(self) -> str:
        return f"[{self.service_name}] [{self.__class__.__name__}] {self.cause}"


class ServiceStartError(ServiceError):
    """
    Service failed to start
    """


class ServiceStopError(ServiceError):
    """
    Service startup or shutdown hook failed while stopping
    """


class Service(ABC):
    """
    Base class for background services, which implement the `_start()` and `_stop()` hooks.

    Features
    --------
    - lifecycle states, see `ServiceLifecycleState`
    - lifecycle events are published on `lifecycle_state_observable`
    - the service can be managed remotely by publishing `ServiceCommand`s on the Observable passed to the constructor
    - health checks are scheduled while the service is running, and their results are published on
      `healthchecks_observable`

    Lifecycle transitions are serialized, i.e., `start()` and `stop()` are safe to call from any thread.
    """

    # pylint: disable=too-many-instance-attributes

    # subclasses assign health checks, at the latest in `_start()`
    _healthchecks: list[HealthCheck] = []

    def __init__(self, commands: Observable[ServiceCommand] | None = None):
        self._state = ServiceLifecycleState.NEW
        self._logger = get_logger(self)
        self._lifecycle_lock = Lock()
        self._running_event = Event()
        self._stopped_event = Event()

        self._state_subject: BehaviorSubject[ServiceLifecycleEvent] = BehaviorSubject(
            ServiceLifecycleEvent(self.name, self._state)
        )
        self._healthchecks_subject: Subject[HealthCheckResult] = Subject()
        self._healthcheck_timers: dict[str, Timer] = {}

        if commands:
            commands.subscribe(self._on_command)

    @property
    def name(self) -> str:
        """
        Defaults to the class name
        """
        return self.__class__.__name__

    @property
    def state(self) -> ServiceLifecycleState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state == ServiceLifecycleState.RUNNING

    @property
    def stopped(self) -> bool:
        return self._state == ServiceLifecycleState.STOPPED

    @property
    def healthchecks(self) -> list[HealthCheck]:
        return self._healthchecks

    @property
    def lifecycle_state_observable(self) -> Observable[ServiceLifecycleEvent]:
        """
        New subscribers receive the current state first.
        """
        return observe_in_background(self._state_subject)

    @property
    def healthchecks_observable(self) -> Observable[HealthCheckResult]:
        return observe_in_background(self._healthchecks_subject)

    def await_running(self, timeout: timedelta | None = None):
        """
        :exception TimeoutError: if the service is not running within the timeout
        """
        self._await(self._running_event, timeout)

    def await_stopped(self, timeout: timedelta | None = None):
        """
        :exception TimeoutError: if the service is not stopped within the timeout
        """
        self._await(self._stopped_event, timeout)

    @staticmethod
    def _await(event: Event, timeout: timedelta | None):
        if not event.wait(timeout.total_seconds() if timeout else None):
            raise TimeoutError

    def start(self):
        """
        Starts the service, and then schedules its health checks.

        - noop if the service is STARTING or RUNNING
        - only NEW or STOPPED services can be started

        :exception ServiceStartError: if the service cannot be started, or the startup hook failed.
                   If the startup hook failed, then the service is stopped to release whatever was acquired.
        """
        with self._lifecycle_lock:
            if self._state in (ServiceLifecycleState.STARTING, ServiceLifecycleState.RUNNING):
                return
            if self._state not in STARTABLE_STATES:
                raise ServiceStartError(
                    self.name,
                    f"service cannot be started when state is: {self._state.name}",
                )

            self._set_state(ServiceLifecycleState.STARTING)
            try:
                self._start()
            except Exception as err:
                self._set_state(ServiceLifecycleState.START_FAILED)
                self._shutdown()
                raise ServiceStartError(self.name, "error occurred while starting") from err

            self._set_state(ServiceLifecycleState.RUNNING)
            for healthcheck in self.healthchecks:
                self._schedule_healthcheck(healthcheck)

    def stop(self):
        """
        Stops the service.

        - noop if the service is STOPPING or STOPPED
        - a NEW service goes straight to STOPPED

        :exception ServiceStopError: if the shutdown hook failed. The service is STOPPED regardless.
        """
        with self._lifecycle_lock:
            match self._state:
                case ServiceLifecycleState.STOPPING | ServiceLifecycleState.STOPPED:
                    return
                case ServiceLifecycleState.NEW:
                    self._set_state(ServiceLifecycleState.STOPPED)
                case _:
                    self._shutdown()

    def restart(self):
        self.stop()
        self.await_stopped()
        self.start()

    def _on_command(self, command: ServiceCommand):
        self._logger.info("received ServiceCommand: %s", command.name)
        try:
            if command == ServiceCommand.START:
                self.start()
            else:
                self.stop()
        except ServiceError:
            # there is no caller to raise to
            self._logger.exception("ServiceCommand failed: %s", command.name)

    def _shutdown(self):
        self._set_state(ServiceLifecycleState.STOPPING)
        for timer in list(self._healthcheck_timers.values()):
            timer.cancel()
        self._healthcheck_timers.clear()
        try:
            self._stop()
        except Exception as err:
            raise ServiceStopError(self.name, "error occurred while stopping") from err
        finally:
            self._set_state(ServiceLifecycleState.STOPPED)

    def _schedule_healthcheck(self, healthcheck: HealthCheck):
        def run():
            if not self.running:
                return
            result = healthcheck()
            if result.status != HealthCheckStatus.GREEN:
                self._logger.warning(
                    "healthcheck %s is %s: %s",
                    result.name,
                    result.status.name,
                    result.error,
                )
            self._healthchecks_subject.on_next(result)
            self._schedule_healthcheck(healthcheck)

        timer = Timer(healthcheck.run_interval.total_seconds(), run)
        timer.daemon = True
        self._healthcheck_timers[healthcheck.name] = timer
        timer.start()

    def _set_state(self, state: ServiceLifecycleState):
        self._logger.info("%s -> %s", self._state.name, state.name)
        self._state = state

        match state:
            case ServiceLifecycleState.STARTING:
                self._stopped_event.clear()
            case ServiceLifecycleState.RUNNING:
                self._running_event.set()
            case ServiceLifecycleState.STOPPING:
                self._running_event.clear()
            case ServiceLifecycleState.STOPPED:
                self._stopped_event.set()

        self._state_subject.on_next(ServiceLifecycleEvent(self.name, state))

    @abstractmethod
    def _start(self):
        """
        Startup hook
        """

    @abstractmethod
    def _stop(self):
        """
        Shutdown hook
        """
