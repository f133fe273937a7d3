"""
Bid domain model
"""
from dataclasses import dataclass
from datetime import datetime

from auctionhouse.auctions.domain import BidId, AuctionId, UserId, Amount


@dataclass(slots=True, frozen=True)
class Bid:
    """
    Bids are immutable once recorded
    """

    id: BidId
    auction_id: AuctionId
    bidder_id: UserId
    amount: Amount
    created_at: datetime
