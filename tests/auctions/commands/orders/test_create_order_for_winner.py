import unittest
from threading import Barrier, Thread

from sqlalchemy import func, select

from auctionhouse.auctions.commands.catalog.cancel_auction import CancelAuction
from auctionhouse.auctions.commands.orders.create_order import (
    CreateOrderForClosedAuction,
    CreateOrderForWinner,
)
from auctionhouse.auctions.commands.queries.get_order import GetAuctionOrder
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.notification import NotificationEventType
from auctionhouse.auctions.domain.order import Order, OrderStatus
from auctionhouse.auctions.errors import (
    AuctionHouseError,
    AuctionNotEndedError,
    AuctionNotFoundError,
    ErrorCode,
    ErrorKind,
    InvalidAuctionStateError,
    NoBidsError,
    OrderAlreadyExistsError,
)
from tests.auctions.commands.orders import OrderTestCase
from tests.test_support import ALICE, BOB


class RacingOrderFactory(CreateOrderForClosedAuction):
    def __init__(self, barrier: Barrier):
        self._barrier = barrier

    def create(self, session, auction, winning_bid, now):
        self._barrier.wait(timeout=10)
        return super().create(session, auction, winning_bid, now)


class CreateOrderForWinnerTestCase(OrderTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_order_for_winner = CreateOrderForWinner(
            self.session_factory, self.dispatcher, self.clock
        )

    def order_count(self, auction_id: AuctionId) -> int:
        with self.session_factory() as session:
            return session.scalar(
                select(func.count(TOrder.id)).where(  # pylint: disable=not-callable
                    TOrder.auction_id == auction_id
                )
            )

    def test_create_order_for_ended_auction(self):
        auction = self.create_auction_with_bid(BOB, 250)
        self.end_auction_without_order(auction.id, BOB)
        self.dispatcher.clear()

        order = self.create_order_for_winner(auction.id)
        self.assertEqual(auction.id, order.auction_id)
        self.assertEqual(BOB, order.buyer_id)
        self.assertEqual(250, order.final_price)
        self.assertEqual(OrderStatus.PENDING, order.status)
        self.assertEqual(order, GetAuctionOrder(self.session_factory)(auction.id))

        self.assertEqual(
            [NotificationEventType.AUCTION_WON, NotificationEventType.PAYMENT_DUE],
            [event.event_type for event in self.dispatcher.events],
        )

        with self.subTest("order already exists"):
            with self.assertRaises(OrderAlreadyExistsError) as err:
                self.create_order_for_winner(auction.id)
            self.assertEqual(ErrorCode.ALREADY_EXISTS, err.exception.code)
            self.assertEqual(ErrorKind.CONFLICT, err.exception.kind)
            self.assertEqual(1, self.order_count(auction.id))

    def test_order_created_by_sweep_already_exists(self):
        auction = self.create_auction_with_bid(ALICE, 300)
        self.close_auction(auction)

        with self.assertRaises(OrderAlreadyExistsError):
            self.create_order_for_winner(auction.id)

    def test_rejections(self):
        with self.subTest("auction not found"):
            with self.assertRaises(AuctionNotFoundError):
                self.create_order_for_winner(AuctionId(999))

        with self.subTest("auction has not ended"):
            for auction in (
                self.create_auction(submit_for_approval=False),
                self.create_auction(),
                self.create_active_auction(),
            ):
                with self.assertRaises(AuctionNotEndedError) as err:
                    self.create_order_for_winner(auction.id)
                self.assertEqual(ErrorCode.NOT_YET_ENDED, err.exception.code)

        with self.subTest("auction was cancelled"):
            auction = self.create_active_auction()
            CancelAuction(self.session_factory, self.clock)(auction.id)
            with self.assertRaises(InvalidAuctionStateError):
                self.create_order_for_winner(auction.id)

        with self.subTest("auction ended without bids"):
            auction = self.create_active_auction()
            self.end_auction_without_order(auction.id, None)
            with self.assertRaises(NoBidsError) as err:
                self.create_order_for_winner(auction.id)
            self.assertEqual(ErrorCode.NO_BIDS, err.exception.code)

    def test_concurrent_order_creation(self):
        auction = self.create_auction_with_bid(BOB, 250)
        self.end_auction_without_order(auction.id, BOB)

        create_order_for_winner = CreateOrderForWinner(
            self.session_factory,
            self.dispatcher,
            self.clock,
            order_factory=RacingOrderFactory(Barrier(2)),
        )
        results: list[Order | AuctionHouseError] = []

        def create_order():
            try:
                results.append(create_order_for_winner(auction.id))
            except AuctionHouseError as err:
                results.append(err)

        threads = [Thread(target=create_order) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        orders = [result for result in results if isinstance(result, Order)]
        errors = [result for result in results if isinstance(result, OrderAlreadyExistsError)]
        self.assertEqual(1, len(orders))
        self.assertEqual(1, len(errors))
        # the first committed order stands
        self.assertEqual(orders[0], GetAuctionOrder(self.session_factory)(auction.id))
        self.assertEqual(1, self.order_count(auction.id))


if __name__ == "__main__":
    unittest.main()
