"""
Order factory

Creates exactly 1 order for an auction that was closed with a winner.
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.commands.catalog import get_auction_for_update
from auctionhouse.auctions.commands.queries.highest_bid import get_highest_bid
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.data.bid import TBid
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.notification import (
    NotificationEvent,
    NotificationEventType,
)
from auctionhouse.auctions.domain.order import Order, OrderStatus
from auctionhouse.auctions.errors import (
    AuctionNotEndedError,
    InvalidAuctionStateError,
    NoBidsError,
    OrderAlreadyExistsError,
)
from auctionhouse.auctions.notifications import NotificationDispatcher
from auctionhouse.core.clock import Clock
from auctionhouse.core.command import Command
from auctionhouse.core.logging import get_logger


@dataclass(slots=True)
class CreatedOrder:
    """
    Order that was added to the session, along with the events to dispatch once the transaction commits
    """

    order: TOrder
    events: list[NotificationEvent]


class CreateOrderForClosedAuction:
    """
    Adds the order for the auction's winning bid to the caller's transaction.

    The "order exists" check runs within the same transaction as the insert. The unique constraint on
    `auction_id` covers concurrent transactions that both pass the check: the first to commit wins, and the
    other fails with IntegrityError, which callers map to `OrderAlreadyExistsError`.
    """

    # pylint: disable=too-few-public-methods

    def create(
        self,
        session: Session,
        auction: TAuction,
        winning_bid: TBid,
        now: datetime,
    ) -> CreatedOrder:
        """
        :exception OrderAlreadyExistsError:
        """
        existing_order = session.scalar(
            select(TOrder.id).where(TOrder.auction_id == auction.id)
        )
        if existing_order is not None:
            raise OrderAlreadyExistsError(AuctionId(auction.id))

        order = TOrder(
            auction_id=auction.id,
            buyer_id=winning_bid.bidder_id,
            final_price=winning_bid.amount,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        session.add(order)
        session.flush()

        get_logger(self).info(
            "order [%s] created for auction [%s]: buyer=%s final_price=%s",
            order.id,
            auction.id,
            order.buyer_id,
            order.final_price,
        )

        payload = {
            "auction_id": auction.id,
            "order_id": order.id,
            "final_price": order.final_price,
        }
        return CreatedOrder(
            order=order,
            events=[
                NotificationEvent(
                    event_type=NotificationEventType.AUCTION_WON,
                    recipient_id=winning_bid.bidder_id,
                    payload=payload,
                    created_at=now,
                ),
                NotificationEvent(
                    event_type=NotificationEventType.PAYMENT_DUE,
                    recipient_id=winning_bid.bidder_id,
                    payload=payload,
                    created_at=now,
                ),
            ],
        )


class CreateOrderForWinner(Command[AuctionId, Order], SqlAlchemySupport):
    """
    Manually creates the order for the winner of a closed auction, e.g., for recovery.

    The closing scheduler creates the order when it closes the auction. If both race, then the first committed
    order stands, and the other gets `OrderAlreadyExistsError`.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        order_factory: CreateOrderForClosedAuction | None = None,
    ):
        super().__init__(session_factory, clock)
        self._dispatcher = dispatcher
        self._order_factory = (
            order_factory if order_factory else CreateOrderForClosedAuction()
        )

    def __call__(self, auction_id: AuctionId) -> Order:
        now = self._clock.now()
        try:
            with self._session_factory.begin() as session:
                auction = get_auction_for_update(session, auction_id)
                if session.scalar(select(TOrder.id).where(TOrder.auction_id == auction_id)):
                    raise OrderAlreadyExistsError(auction_id)
                if auction.status in (
                    AuctionStatus.DRAFT,
                    AuctionStatus.PENDING,
                    AuctionStatus.ACTIVE,
                ):
                    raise AuctionNotEndedError(
                        f"auction [{auction_id}] has not ended: {auction.status.name}"
                    )
                if auction.status != AuctionStatus.ENDED:
                    raise InvalidAuctionStateError(
                        f"auction [{auction_id}] is {auction.status.name}"
                    )

                winning_bid = get_highest_bid(session, auction_id)
                if winning_bid is None:
                    raise NoBidsError(f"auction [{auction_id}] has no bids")

                created = self._order_factory.create(session, auction, winning_bid, now)
                order = created.order.to_domain()
        except IntegrityError as err:
            raise OrderAlreadyExistsError(auction_id) from err

        self._dispatcher.dispatch(created.events)
        return order
