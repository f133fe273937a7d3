"""
Reactive notification dispatcher
"""
from datetime import timedelta
from threading import Event
from typing import Sequence

from reactivex import Observable, Subject
from reactivex.abc import DisposableBase, SchedulerBase

from auctionhouse.auctions.domain.notification import NotificationEvent
from auctionhouse.auctions.notifications import NotificationSink
from auctionhouse.core.logging import get_logger
from auctionhouse.core.rx import observe_in_background


class ReactiveNotificationDispatcher:
    """
    Publishes notification events on an Observable stream, which is observed on a thread pool.

    Sinks subscribe to the stream. Each sink receives the events in the order they were dispatched.
    Delivery to a sink is retried up to `max_attempts` times, i.e., delivery is at-least-once until the sink
    gives up. Sinks are expected to be idempotent, using `NotificationEvent.event_id` to dedupe.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        retry_delay: timedelta = timedelta(milliseconds=100),
        scheduler: SchedulerBase | None = None,
    ):
        if max_attempts <= 0:
            raise ValueError("`max_attempts` must be greater than zero")

        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._logger = get_logger(self)

        self._subject: Subject[NotificationEvent] = Subject()
        self._observable: Observable[NotificationEvent] = observe_in_background(
            self._subject, scheduler
        )
        self._subscriptions: list[DisposableBase] = []
        self._closed = Event()

    @property
    def observable(self) -> Observable[NotificationEvent]:
        """
        :return: Observable[NotificationEvent]
        """
        return self._observable

    def subscribe(self, sink: NotificationSink) -> DisposableBase:
        """
        Registers the sink to receive all events dispatched from now on
        """

        def on_next(event: NotificationEvent):
            self._deliver(sink, event)

        subscription = self._observable.subscribe(on_next=on_next)
        self._subscriptions.append(subscription)
        return subscription

    def dispatch(self, events: Sequence[NotificationEvent]) -> None:
        if self._closed.is_set():
            self._logger.warning("dispatcher is closed - dropping %s events", len(events))
            return

        for event in events:
            try:
                self._subject.on_next(event)
            except Exception:  # pylint: disable=broad-exception-caught
                self._logger.exception("failed to dispatch event: %s", event)

    def close(self) -> None:
        """
        Disposes all subscriptions. Events dispatched after close are dropped.
        """
        self._closed.set()
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()

    def _deliver(self, sink: NotificationSink, event: NotificationEvent):
        for attempt in range(1, self._max_attempts + 1):
            try:
                sink(event)
                return
            except Exception as err:  # pylint: disable=broad-exception-caught
                self._logger.warning(
                    "delivery attempt %s/%s failed for event %s [%s]: %s",
                    attempt,
                    self._max_attempts,
                    event.event_id,
                    event.event_type.name,
                    err,
                )
                if attempt < self._max_attempts and self._closed.wait(
                    self._retry_delay.total_seconds() * attempt
                ):
                    break

        self._logger.error(
            "giving up on event %s [%s] for recipient %s",
            event.event_id,
            event.event_type.name,
            event.recipient_id,
        )
