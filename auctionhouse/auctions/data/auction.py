"""
Auction database table model
"""
from datetime import datetime

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from auctionhouse.auctions.data import Base
from auctionhouse.auctions.domain import AuctionId, Amount, UserId
from auctionhouse.auctions.domain.auction import Auction, AuctionStatus


class TAuction(Base):
    """
    Auction database table model

    Notes
    -----
    - `version` is managed by SQLAlchemy. Each UPDATE is guarded by the version that was read, i.e., a
      compare-and-set. If a concurrent transaction updated the row first, then the flush fails with `StaleDataError`.
    - The only columns updated after the auction is listed are: `current_price`, `status`, `approved`,
      `winner_id`, `updated_at`
    """

    # pylint: disable=too-many-instance-attributes

    __tablename__ = "auction"

    id: Mapped[int] = mapped_column(primary_key=True, init=False)

    seller_id: Mapped[int] = mapped_column(index=True)

    name: Mapped[str]

    start_price: Mapped[int]
    current_price: Mapped[int]
    min_bid_increment: Mapped[int]

    start_time: Mapped[datetime] = mapped_column(index=True)
    end_time: Mapped[datetime] = mapped_column(index=True)

    status: Mapped[AuctionStatus] = mapped_column(index=True)
    approved: Mapped[bool] = mapped_column(index=True)

    created_at: Mapped[datetime]
    updated_at: Mapped[datetime]

    description: Mapped[str | None] = mapped_column(Text, default=None)
    winner_id: Mapped[int | None] = mapped_column(index=True, default=None)

    version: Mapped[int] = mapped_column(init=False)

    __mapper_args__ = {"version_id_col": version}

    def to_domain(self) -> Auction:
        """
        Converts this instance into an Auction instance
        """
        return Auction(
            id=AuctionId(self.id),
            seller_id=UserId(self.seller_id),
            name=self.name,
            description=self.description,
            start_price=Amount(self.start_price),
            current_price=Amount(self.current_price),
            min_bid_increment=Amount(self.min_bid_increment),
            start_time=self.start_time,
            end_time=self.end_time,
            status=self.status,
            approved=self.approved,
            winner_id=UserId(self.winner_id) if self.winner_id is not None else None,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
        )

    def transition(self, status: AuctionStatus, now: datetime) -> None:
        """
        Applies the status transition.

        :exception ValueError: if the transition is not allowed
        """
        if not self.status.can_transition_to(status):
            raise ValueError(
                f"auction [{self.id}] status transition is not allowed: {self.status.name} -> {status.name}"
            )
        self.status = status
        self.updated_at = now
