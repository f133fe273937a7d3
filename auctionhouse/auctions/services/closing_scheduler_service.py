"""
Periodically closes expired auctions
"""
from datetime import timedelta
from threading import Event, Lock, Thread

from reactivex import Observable, Subject

from auctionhouse.auctions.commands.closing.close_expired_auctions import (
    CloseExpiredAuctions,
    SweepResult,
)
from auctionhouse.core.health_check import HealthCheck
from auctionhouse.core.rx import observe_in_background
from auctionhouse.core.service import Service, ServiceCommand


class ClosingSchedulerService(Service):
    """
    Runs `CloseExpiredAuctions` on a fixed interval in a background thread, and publishes each `SweepResult` on
    an Observable stream.

    Notes
    -----
    - Sweeps never overlap. A sweep triggered via `sweep_now()` while the background sweep is running waits for
      it to complete.
    - An error raised by a sweep is logged, and the next sweep runs on schedule.
    - Stopping the service interrupts the wait between sweeps. A sweep in progress runs to completion.
    """

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        close_expired_auctions: CloseExpiredAuctions,
        sweep_interval: timedelta = timedelta(seconds=60),
        healthchecks: list[HealthCheck] | None = None,
        commands: Observable[ServiceCommand] | None = None,
    ):
        super().__init__(commands)
        if sweep_interval <= timedelta(0):
            raise ValueError("`sweep_interval` must be positive")

        self._close_expired_auctions = close_expired_auctions
        self._sweep_interval = sweep_interval
        if healthchecks:
            self._healthchecks = list(healthchecks)

        self._sweep_lock = Lock()
        self._shutdown_event = Event()
        self._thread: Thread | None = None

        self._subject: Subject[SweepResult] = Subject()
        self._observable: Observable[SweepResult] = observe_in_background(
            self._subject
        )

    @property
    def sweep_interval(self) -> timedelta:
        """
        :return: how often expired auctions are closed
        """
        return self._sweep_interval

    @property
    def observable(self) -> Observable[SweepResult]:
        """
        :return: Observable[SweepResult]
        """
        return self._observable

    def sweep_now(self) -> SweepResult:
        """
        Runs a sweep on the caller's thread.

        Can be invoked whether the service is running or not, e.g., from the CLI.
        """
        with self._sweep_lock:
            result = self._close_expired_auctions()
        self._subject.on_next(result)
        return result

    def _start(self):
        self._shutdown_event.clear()

        def run() -> None:
            self._logger.info(
                "running: sweep_interval=%s", self._sweep_interval
            )
            while not self._shutdown_event.is_set():
                try:
                    self.sweep_now()
                except Exception:  # pylint: disable=broad-exception-caught
                    self._logger.exception("sweep failed")

                self._shutdown_event.wait(self._sweep_interval.total_seconds())

            self._logger.info("stop signalled - exiting")

        self._thread = Thread(target=run, name=self.name, daemon=True)
        self._thread.start()

    def _stop(self):
        self._shutdown_event.set()
        if self._thread:
            self._thread.join()
            self._thread = None
