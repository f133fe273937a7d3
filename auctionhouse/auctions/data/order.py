"""
Order database table model
"""
from datetime import datetime

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from auctionhouse.auctions.data import Base
from auctionhouse.auctions.domain import OrderId, AuctionId, UserId, Amount
from auctionhouse.auctions.domain.order import Order, OrderStatus


class TOrder(Base):
    """
    Order database table model

    The unique constraint on `auction_id` guarantees at most 1 order per auction, even when concurrent
    transactions both pass the "order exists" check.
    """

    __tablename__ = "auction_order"

    id: Mapped[int] = mapped_column(primary_key=True, init=False)
    auction_id: Mapped[int] = mapped_column(ForeignKey("auction.id"), unique=True)
    buyer_id: Mapped[int] = mapped_column(index=True)
    final_price: Mapped[int]
    status: Mapped[OrderStatus] = mapped_column(index=True)
    created_at: Mapped[datetime] = mapped_column(index=True)
    updated_at: Mapped[datetime]

    def to_domain(self) -> Order:
        """
        Converts this instance into an Order instance
        """
        return Order(
            id=OrderId(self.id),
            auction_id=AuctionId(self.auction_id),
            buyer_id=UserId(self.buyer_id),
            final_price=Amount(self.final_price),
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
