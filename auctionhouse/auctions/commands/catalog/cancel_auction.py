"""
Cancels an auction
"""
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from auctionhouse.auctions.commands.catalog import ChangeAuctionStatus
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.order import OrderStatus


class CancelAuction(ChangeAuctionStatus):
    """
    Administrative action. Any non-terminal auction can be cancelled.

    Cancelling an ACTIVE auction closes bidding immediately, and the closing scheduler will never select it.
    Cancelling an ENDED auction also cancels its PENDING order in the same transaction, i.e., the order can no
    longer be paid.
    """

    target_status = AuctionStatus.CANCELLED

    def _apply(self, session: Session, auction: TAuction, now: datetime) -> None:
        if auction.status == AuctionStatus.ENDED:
            order = session.scalars(
                select(TOrder).where(TOrder.auction_id == auction.id)
            ).first()
            if order is not None and order.status == OrderStatus.PENDING:
                order.status = OrderStatus.CANCELLED
                order.updated_at = now
                self.get_logger().info(
                    "order [%s] cancelled with auction [%s]", order.id, auction.id
                )
        auction.transition(AuctionStatus.CANCELLED, now)
