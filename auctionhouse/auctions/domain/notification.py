"""
Auction lifecycle notification events
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any

from ulid import ULID

from auctionhouse.auctions.domain import UserId


class NotificationEventType(Enum):
    """
    NotificationEventType
    """

    BID_PLACED = "BID_PLACED"
    BID_OUTBID = "BID_OUTBID"
    AUCTION_WON = "AUCTION_WON"
    PAYMENT_DUE = "PAYMENT_DUE"
    ORDER_PAID = "ORDER_PAID"


@dataclass(slots=True, frozen=True)
class NotificationEvent:
    """
    Event delivered to a user.

    Delivery is at-least-once. `event_id` is used by consumers to dedupe redeliveries.
    """

    event_type: NotificationEventType
    recipient_id: UserId
    payload: dict[str, Any]

    event_id: ULID = field(default_factory=ULID)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
