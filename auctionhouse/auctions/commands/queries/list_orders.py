"""
Lists a user's purchases or sales
"""
from dataclasses import dataclass

from sqlalchemy import select

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import UserId
from auctionhouse.auctions.domain.order import Order
from auctionhouse.core.command import Command


@dataclass(slots=True)
class ListOrdersRequest:
    """
    Exactly 1 of `buyer_id` or `seller_id` is required.
    """

    buyer_id: UserId | None = None
    seller_id: UserId | None = None
    limit: int = 50

    def __post_init__(self):
        if (self.buyer_id is None) == (self.seller_id is None):
            raise ValueError("exactly 1 of `buyer_id` or `seller_id` is required")
        if self.limit <= 0:
            raise ValueError("`limit` must be greater than zero")


class ListOrders(Command[ListOrdersRequest, list[Order]], SqlAlchemySupport):
    """
    Orders are sorted by most recent first
    """

    def __call__(self, request: ListOrdersRequest) -> list[Order]:
        query = select(TOrder)
        if request.buyer_id is not None:
            query = query.where(TOrder.buyer_id == request.buyer_id)
        else:
            query = query.join(TAuction, TAuction.id == TOrder.auction_id).where(
                TAuction.seller_id == request.seller_id
            )
        query = query.order_by(TOrder.created_at.desc(), TOrder.id.desc()).limit(
            request.limit
        )

        with self._session_factory() as session:
            return [order.to_domain() for order in session.scalars(query)]
