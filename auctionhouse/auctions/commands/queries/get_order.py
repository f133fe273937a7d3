"""
Order lookup queries
"""
from sqlalchemy import select

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import AuctionId, OrderId
from auctionhouse.auctions.domain.order import Order
from auctionhouse.core.command import Command


class GetOrder(Command[OrderId, Order | None], SqlAlchemySupport):
    """
    GetOrder
    """

    def __call__(self, order_id: OrderId) -> Order | None:
        with self._session_factory() as session:
            order = session.get(TOrder, order_id)
            return order.to_domain() if order else None


class GetAuctionOrder(Command[AuctionId, Order | None], SqlAlchemySupport):
    """
    Looks up the order that was created for the auction
    """

    def __call__(self, auction_id: AuctionId) -> Order | None:
        with self._session_factory() as session:
            order = session.scalars(
                select(TOrder).where(TOrder.auction_id == auction_id)
            ).first()
            return order.to_domain() if order else None
