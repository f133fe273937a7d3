"""
Bid database table model
"""
from datetime import datetime

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from auctionhouse.auctions.data import Base
from auctionhouse.auctions.domain import BidId, AuctionId, UserId, Amount
from auctionhouse.auctions.domain.bid import Bid


class TBid(Base):
    """
    Bid rows are insert only
    """

    __tablename__ = "bid"
    __table_args__ = (
        # supports the highest bid query: amount desc, created_at desc
        Index("ix_bid_auction_ranking", "auction_id", "amount", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, init=False)
    auction_id: Mapped[int] = mapped_column(ForeignKey("auction.id"), index=True)
    bidder_id: Mapped[int] = mapped_column(index=True)
    amount: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(index=True)

    def to_domain(self) -> Bid:
        """
        Converts this instance into a Bid instance
        """
        return Bid(
            id=BidId(self.id),
            auction_id=AuctionId(self.auction_id),
            bidder_id=UserId(self.bidder_id),
            amount=Amount(self.amount),
            created_at=self.created_at,
        )
