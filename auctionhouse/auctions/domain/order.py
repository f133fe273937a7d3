"""
Order domain model
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from auctionhouse.auctions.domain import OrderId, AuctionId, UserId, Amount


class OrderStatus(Enum):
    """
    PENDING -> PAID -> CANCELLED (refund)
    PENDING -> CANCELLED
    """

    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    def can_transition_to(self, status: "OrderStatus") -> bool:
        """
        :return: True if the transition from this status to the specified status is allowed
        """
        return status in _ORDER_TRANSITIONS[self]


_ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),
}


@dataclass(slots=True)
class Order:
    """
    Order created for the winner of a closed auction
    """

    id: OrderId
    # at most 1 order per auction
    auction_id: AuctionId
    buyer_id: UserId
    # copied from the winning bid when the order is created
    final_price: Amount
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
