"""
Order status transitions
"""
from dataclasses import dataclass

from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.commands.catalog import get_auction_for_update
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import OrderId, AuctionId, UserId
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.notification import (
    NotificationEvent,
    NotificationEventType,
)
from auctionhouse.auctions.domain.order import Order, OrderStatus
from auctionhouse.auctions.errors import (
    ConcurrentUpdateError,
    InvalidOrderTransitionError,
    OrderNotFoundError,
)
from auctionhouse.auctions.notifications import NotificationDispatcher
from auctionhouse.core.clock import Clock
from auctionhouse.core.command import Command


@dataclass(slots=True)
class UpdateOrderStatusRequest:
    """
    UpdateOrderStatusRequest
    """

    order_id: OrderId
    status: OrderStatus


class UpdateOrderStatus(Command[UpdateOrderStatusRequest, Order], SqlAlchemySupport):
    """
    Allowed transitions:
    - PENDING -> PAID (payment confirmed)
    - PENDING -> CANCELLED
    - PAID -> CANCELLED (refund)

    Any other transition, including to the same status, raises `InvalidOrderTransitionError`.

    When the order is paid, the auction is marked SOLD in the same transaction, and ORDER_PAID is sent to the buyer.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
    ):
        super().__init__(session_factory, clock)
        self._dispatcher = dispatcher

    def __call__(self, request: UpdateOrderStatusRequest) -> Order:
        now = self._clock.now()
        try:
            with self._session_factory.begin() as session:
                order = session.get(TOrder, request.order_id)
                if order is None:
                    raise OrderNotFoundError(request.order_id)
                previous_status = order.status
                if not order.status.can_transition_to(request.status):
                    raise InvalidOrderTransitionError(
                        f"order [{order.id}] cannot transition from {order.status.name} "
                        f"to {request.status.name}"
                    )

                order.status = request.status
                order.updated_at = now
                if request.status == OrderStatus.PAID:
                    auction = get_auction_for_update(session, AuctionId(order.auction_id))
                    if auction.status == AuctionStatus.ENDED:
                        auction.transition(AuctionStatus.SOLD, now)
                    else:
                        self.get_logger().warning(
                            "order [%s] paid, but auction [%s] is %s",
                            order.id,
                            auction.id,
                            auction.status.name,
                        )
                session.flush()
                result = order.to_domain()
        except StaleDataError as err:
            raise ConcurrentUpdateError(
                f"auction for order [{request.order_id}] was updated concurrently"
            ) from err

        self.get_logger().info(
            "order [%s] status: %s -> %s",
            result.id,
            previous_status.name,
            result.status.name,
        )
        if result.status == OrderStatus.PAID:
            self._dispatcher.dispatch(
                [
                    NotificationEvent(
                        event_type=NotificationEventType.ORDER_PAID,
                        recipient_id=UserId(result.buyer_id),
                        payload={
                            "auction_id": result.auction_id,
                            "order_id": result.id,
                            "final_price": result.final_price,
                        },
                        created_at=now,
                    )
                ]
            )
        return result
