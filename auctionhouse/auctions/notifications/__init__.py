"""
Notification dispatch

The auction engine hands lifecycle events to a `NotificationDispatcher` after the transaction that produced them
commits. Delivery is best-effort and decoupled from the auction state transition: a delivery failure never rolls
back the transaction that produced the event.
"""
from typing import Callable, Protocol, Sequence

from auctionhouse.auctions.domain.notification import NotificationEvent

NotificationSink = Callable[[NotificationEvent], None]


class NotificationDispatcher(Protocol):
    """
    Implementations must not block the caller, and must not raise.
    """

    # pylint: disable=too-few-public-methods

    def dispatch(self, events: Sequence[NotificationEvent]) -> None:
        """
        Hands off the events for async delivery
        """
