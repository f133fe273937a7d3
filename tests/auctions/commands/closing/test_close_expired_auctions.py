import unittest
from datetime import timedelta

from sqlalchemy import event, func, select

from auctionhouse.auctions.commands.catalog.cancel_auction import CancelAuction
from auctionhouse.auctions.commands.closing.close_expired_auctions import (
    CloseExpiredAuctions,
)
from auctionhouse.auctions.commands.ledger.place_bid import PlaceBid, PlaceBidRequest
from auctionhouse.auctions.commands.orders.create_order import (
    CreateOrderForClosedAuction,
)
from auctionhouse.auctions.commands.queries.get_auction import GetAuction
from auctionhouse.auctions.commands.queries.get_order import GetAuctionOrder
from auctionhouse.auctions.data import create_session_factory
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.auctions.domain import Amount
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.notification import NotificationEventType
from auctionhouse.auctions.domain.order import OrderStatus
from tests.test_support import AuctionHouseTestCase, ALICE, BOB


class FailingOrderFactory(CreateOrderForClosedAuction):
    """
    Fails to create the order for the specified auctions
    """

    def __init__(self, *auction_ids: int):
        self.auction_ids = set(auction_ids)

    def create(self, session, auction, winning_bid, now):
        if auction.id in self.auction_ids:
            raise RuntimeError("BOOM!")
        return super().create(session, auction, winning_bid, now)


class CloseExpiredAuctionsTestCase(AuctionHouseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.place_bid = PlaceBid(self.session_factory, self.dispatcher, self.clock)
        self.close_expired_auctions = CloseExpiredAuctions(
            self.session_factory, self.dispatcher, self.clock
        )
        self.get_auction = GetAuction(self.session_factory)
        self.get_auction_order = GetAuctionOrder(self.session_factory)

    def order_count(self) -> int:
        with self.session_factory() as session:
            return session.scalar(select(func.count(TOrder.id)))  # pylint: disable=not-callable

    def test_auction_closed_with_winner(self):
        auction = self.create_active_auction(start_price=80, min_bid_increment=5)
        self.clock.advance(timedelta(minutes=1))
        self.place_bid(PlaceBidRequest(auction.id, ALICE, Amount(90)))
        self.clock.advance(timedelta(minutes=1))
        self.place_bid(PlaceBidRequest(auction.id, BOB, Amount(95)))
        self.dispatcher.clear()

        with self.subTest("auction is not closed before it expires"):
            result = self.close_expired_auctions()
            self.assertEqual(0, result.processed_count)
            self.assertEqual(AuctionStatus.ACTIVE, self.get_auction(auction.id).status)

        self.clock.set(auction.end_time)
        result = self.close_expired_auctions()
        self.assertEqual([auction.id], result.closed)
        self.assertEqual([auction.id], result.orders_created)
        self.assertEqual([], result.closed_without_winner)
        self.assertEqual([], result.failed)

        closed = self.get_auction(auction.id)
        self.assertEqual(AuctionStatus.ENDED, closed.status)
        self.assertEqual(BOB, closed.winner_id)
        self.assertEqual(self.clock.now(), closed.updated_at)

        order = self.get_auction_order(auction.id)
        self.assertEqual(BOB, order.buyer_id)
        self.assertEqual(95, order.final_price)
        self.assertEqual(OrderStatus.PENDING, order.status)
        self.assertEqual(1, self.order_count())

        self.assertEqual(
            {NotificationEventType.AUCTION_WON, NotificationEventType.PAYMENT_DUE},
            {event.event_type for event in self.dispatcher.events},
        )
        for event in self.dispatcher.events:
            self.assertEqual(BOB, event.recipient_id)
            self.assertEqual(order.id, event.payload["order_id"])

        with self.subTest("closing is idempotent"):
            self.dispatcher.clear()
            self.clock.advance(timedelta(minutes=5))
            result = self.close_expired_auctions()
            self.assertEqual(0, result.processed_count)
            self.assertEqual(closed, self.get_auction(auction.id))
            self.assertEqual(1, self.order_count())
            self.assertEqual([], self.dispatcher.events)

    def test_auction_closed_without_bids(self):
        auction = self.create_active_auction()
        self.clock.set(auction.end_time + timedelta(seconds=1))

        result = self.close_expired_auctions()
        self.assertEqual([auction.id], result.closed_without_winner)
        self.assertEqual([], result.closed)
        self.assertEqual([], result.orders_created)

        closed = self.get_auction(auction.id)
        self.assertEqual(AuctionStatus.ENDED, closed.status)
        self.assertIsNone(closed.winner_id)
        self.assertIsNone(self.get_auction_order(auction.id))
        self.assertEqual([], self.dispatcher.events)

    def test_only_active_approved_auctions_are_closed(self):
        now = self.clock.now()
        end_time = now + timedelta(minutes=10)
        pending = self.create_auction(end_time=end_time)
        cancelled = self.create_active_auction(end_time=end_time)
        CancelAuction(self.session_factory, self.clock)(cancelled.id)
        not_expired = self.create_active_auction(end_time=end_time + timedelta(hours=1))
        expired = self.create_active_auction(end_time=end_time)

        self.clock.set(end_time)
        result = self.close_expired_auctions()
        self.assertEqual([expired.id], result.closed_without_winner)
        self.assertEqual(AuctionStatus.PENDING, self.get_auction(pending.id).status)
        self.assertEqual(AuctionStatus.CANCELLED, self.get_auction(cancelled.id).status)
        self.assertEqual(AuctionStatus.ACTIVE, self.get_auction(not_expired.id).status)

    def test_batch_size(self):
        auctions = [
            self.create_active_auction(
                end_time=self.clock.now() + timedelta(minutes=10 + i)
            )
            for i in range(5)
        ]
        self.clock.advance(timedelta(hours=1))

        close_expired_auctions = CloseExpiredAuctions(
            self.session_factory, self.dispatcher, self.clock, batch_size=2
        )
        # the auctions that expired first are closed first
        self.assertEqual(
            [auctions[0].id, auctions[1].id],
            close_expired_auctions().closed_without_winner,
        )
        self.assertEqual(
            [auctions[2].id, auctions[3].id],
            close_expired_auctions().closed_without_winner,
        )
        self.assertEqual([auctions[4].id], close_expired_auctions().closed_without_winner)
        self.assertEqual(0, close_expired_auctions().processed_count)

        with self.assertRaises(ValueError):
            CloseExpiredAuctions(self.session_factory, self.dispatcher, batch_size=0)

    def test_failure_is_isolated_to_the_auction(self):
        auctions = [self.create_active_auction() for _ in range(3)]
        for auction in auctions:
            self.place_bid(PlaceBidRequest(auction.id, ALICE, Amount(200)))
        self.dispatcher.clear()
        self.clock.advance(timedelta(hours=2))

        close_expired_auctions = CloseExpiredAuctions(
            self.session_factory,
            self.dispatcher,
            self.clock,
            order_factory=FailingOrderFactory(auctions[1].id),
        )
        result = close_expired_auctions()
        self.assertEqual([auctions[0].id, auctions[2].id], result.closed)
        self.assertEqual([auctions[1].id], result.failed)

        # the failed auction was rolled back, and is retried on the next sweep
        failed = self.get_auction(auctions[1].id)
        self.assertEqual(AuctionStatus.ACTIVE, failed.status)
        self.assertIsNone(failed.winner_id)
        self.assertIsNone(self.get_auction_order(auctions[1].id))
        self.assertEqual(2, self.order_count())
        self.assertEqual(
            {auctions[0].id, auctions[2].id},
            {event.payload["auction_id"] for event in self.dispatcher.events},
        )

        result = self.close_expired_auctions()
        self.assertEqual([auctions[1].id], result.closed)
        self.assertEqual(AuctionStatus.ENDED, self.get_auction(auctions[1].id).status)
        self.assertEqual(3, self.order_count())

    def test_existing_order_is_kept(self):
        auction = self.create_active_auction()
        self.place_bid(PlaceBidRequest(auction.id, ALICE, Amount(200)))
        self.clock.set(auction.end_time)

        # an order was created out of band, e.g., restored from a backup
        with self.session_factory.begin() as session:
            session.add(
                TOrder(
                    auction_id=auction.id,
                    buyer_id=ALICE,
                    final_price=200,
                    status=OrderStatus.PENDING,
                    created_at=self.clock.now(),
                    updated_at=self.clock.now(),
                )
            )

        result = self.close_expired_auctions()
        self.assertEqual([auction.id], result.closed)
        self.assertEqual([], result.orders_created)
        self.assertEqual(AuctionStatus.ENDED, self.get_auction(auction.id).status)
        self.assertEqual(1, self.order_count())

    def test_late_bid_racing_the_close(self):
        """
        A bid committed between the sweep reading the auction and closing it makes the close fail.
        The next sweep closes the auction with the late bid as the winner.
        """
        auction = self.create_active_auction()
        self.place_bid(PlaceBidRequest(auction.id, ALICE, Amount(200)))
        self.clock.set(auction.end_time)

        sweep_session_factory = create_session_factory(self.engine)
        bid_placed = False

        @event.listens_for(sweep_session_factory, "before_flush")
        def place_late_bid(session, flush_context, instances):
            nonlocal bid_placed
            if bid_placed:
                return
            bid_placed = True
            self.place_bid(
                PlaceBidRequest(auction.id, BOB, Amount(300), now=self.clock.now())
            )

        close_expired_auctions = CloseExpiredAuctions(
            sweep_session_factory, self.dispatcher, self.clock
        )
        with self.assertLogs("CloseExpiredAuctions", level="WARNING") as logs:
            result = close_expired_auctions()
        self.assertEqual([auction.id], result.failed)
        # losing the race is contention, not an error
        self.assertEqual({"WARNING"}, {record.levelname for record in logs.records})

        result = close_expired_auctions()
        self.assertEqual([auction.id], result.closed)
        closed = self.get_auction(auction.id)
        self.assertEqual(BOB, closed.winner_id)
        self.assertEqual(300, closed.current_price)
        self.assertEqual(300, self.get_auction_order(auction.id).final_price)


if __name__ == "__main__":
    unittest.main()
