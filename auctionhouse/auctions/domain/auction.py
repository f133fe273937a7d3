"""
Auction domain model
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from auctionhouse.auctions.domain import AuctionId, UserId, Amount


class AuctionStatus(Enum):
    """
    Auction lifecycle status

    DRAFT -> PENDING -> ACTIVE -> ENDED -> SOLD

    Any non-terminal status can transition to CANCELLED.
    """

    DRAFT = "DRAFT"
    # awaiting approval
    PENDING = "PENDING"
    # approved and open for bidding within the [start_time, end_time] window
    ACTIVE = "ACTIVE"
    # closed by the closing scheduler
    ENDED = "ENDED"
    # the order for the auction has been paid
    SOLD = "SOLD"
    CANCELLED = "CANCELLED"

    @property
    def terminal(self) -> bool:
        """
        :return: True if no further transitions are allowed
        """
        return self in (AuctionStatus.SOLD, AuctionStatus.CANCELLED)

    def can_transition_to(self, status: "AuctionStatus") -> bool:
        """
        :return: True if the transition from this status to the specified status is allowed
        """
        return status in _AUCTION_TRANSITIONS[self]


_AUCTION_TRANSITIONS: dict[AuctionStatus, set[AuctionStatus]] = {
    AuctionStatus.DRAFT: {
        AuctionStatus.PENDING,
        AuctionStatus.ACTIVE,
        AuctionStatus.CANCELLED,
    },
    AuctionStatus.PENDING: {AuctionStatus.ACTIVE, AuctionStatus.CANCELLED},
    AuctionStatus.ACTIVE: {AuctionStatus.ENDED, AuctionStatus.CANCELLED},
    AuctionStatus.ENDED: {AuctionStatus.SOLD, AuctionStatus.CANCELLED},
    AuctionStatus.SOLD: set(),
    AuctionStatus.CANCELLED: set(),
}


@dataclass(slots=True)
class Auction:
    """
    Auction snapshot
    """

    # pylint: disable=too-many-instance-attributes

    id: AuctionId
    seller_id: UserId

    name: str
    description: str | None

    start_price: Amount
    # equals the highest accepted bid, or `start_price` if there are no bids
    current_price: Amount
    min_bid_increment: Amount

    start_time: datetime
    end_time: datetime

    status: AuctionStatus
    approved: bool
    # set when the auction is closed with at least 1 bid
    winner_id: UserId | None

    created_at: datetime
    updated_at: datetime

    # optimistic concurrency stamp, which is incremented on each update
    version: int

    @property
    def min_next_bid(self) -> Amount:
        """
        :return: the minimum amount the next bid must be to be accepted
        """
        return Amount(self.current_price + self.min_bid_increment)

    def is_bidding_open(self, now: datetime) -> bool:
        """
        :return: True if the auction is approved, active and `now` is within the bidding window
        """
        return (
            self.approved
            and self.status == AuctionStatus.ACTIVE
            and self.start_time <= now <= self.end_time
        )

    def is_expired(self, now: datetime) -> bool:
        """
        :return: True if the auction is eligible to be closed
        """
        return (
            self.approved
            and self.status == AuctionStatus.ACTIVE
            and self.end_time <= now
        )
