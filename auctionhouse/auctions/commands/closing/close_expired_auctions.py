"""
Closes auctions whose bidding window has ended
"""
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.commands.orders.create_order import (
    CreateOrderForClosedAuction,
)
from auctionhouse.auctions.commands.queries.highest_bid import get_highest_bid
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.notification import NotificationEvent
from auctionhouse.auctions.errors import OrderAlreadyExistsError
from auctionhouse.auctions.notifications import NotificationDispatcher
from auctionhouse.core.clock import Clock
from auctionhouse.core.command import Command


@dataclass(slots=True)
class SweepResult:
    """
    Outcome of a single sweep
    """

    now: datetime

    # auctions closed with a winner
    closed: list[AuctionId] = field(default_factory=list)
    closed_without_winner: list[AuctionId] = field(default_factory=list)
    orders_created: list[AuctionId] = field(default_factory=list)
    # auctions that failed to close - they remain eligible and are retried on the next sweep
    failed: list[AuctionId] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        """
        :return: number of auctions the sweep attempted to close
        """
        return len(self.closed) + len(self.closed_without_winner) + len(self.failed)


def select_expired_auction_ids(now: datetime, limit: int):
    """
    The selection predicate is what makes closing idempotent: once an auction is ENDED, it is never selected again.
    """
    return (
        select(TAuction.id)
        .where(
            TAuction.status == AuctionStatus.ACTIVE,
            TAuction.approved.is_(True),
            TAuction.end_time <= now,
        )
        .order_by(TAuction.end_time, TAuction.id)
        .limit(limit)
    )


class CloseExpiredAuctions(Command[datetime | None, SweepResult], SqlAlchemySupport):
    """
    Runs one sweep:

    1. Selects auctions that are ACTIVE, approved, and whose `end_time <= now`.
    2. Closes each auction in its own transaction:
       - without bids, the auction is ENDED with no winner
       - otherwise, the highest bidder is set as the winner, the auction is ENDED, and the order is created
    3. A failure closing an auction is logged and the sweep moves on. The auction stays ACTIVE and is retried on
       the next sweep.

    The auction update is guarded by the auction version. If a bid commits between reading the auction and closing
    it, then the close fails and is retried on the next sweep with the new highest bid.

    The sweep closes at most `batch_size` auctions. Any remaining expired auctions are picked up by the next sweep.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        order_factory: CreateOrderForClosedAuction | None = None,
        batch_size: int = 100,
    ):
        super().__init__(session_factory, clock)
        if batch_size <= 0:
            raise ValueError("`batch_size` must be greater than zero")

        self._dispatcher = dispatcher
        self._order_factory = (
            order_factory if order_factory else CreateOrderForClosedAuction()
        )
        self._batch_size = batch_size
        self._logger = self.get_logger()

    def __call__(self, now: datetime | None = None) -> SweepResult:
        now = now if now else self._clock.now()
        result = SweepResult(now=now)

        with self._session_factory() as session:
            auction_ids = [
                AuctionId(auction_id)
                for auction_id in session.scalars(
                    select_expired_auction_ids(now, self._batch_size)
                )
            ]

        if auction_ids:
            self._logger.info("found %s expired auctions to close", len(auction_ids))

        for auction_id in auction_ids:
            try:
                self._close(auction_id, now, result)
            except StaleDataError:
                self._logger.warning(
                    "auction [%s] was updated concurrently - retrying next sweep", auction_id
                )
                result.failed.append(auction_id)
            except Exception:  # pylint: disable=broad-exception-caught
                self._logger.exception("failed to close auction: %s", auction_id)
                result.failed.append(auction_id)

        if auction_ids:
            self._logger.info(
                "sweep done: closed=%s closed_without_winner=%s orders_created=%s failed=%s",
                len(result.closed),
                len(result.closed_without_winner),
                len(result.orders_created),
                len(result.failed),
            )
        return result

    def _close(self, auction_id: AuctionId, now: datetime, result: SweepResult):
        events: list[NotificationEvent] = []
        order_created = False
        with self._session_factory.begin() as session:
            auction = session.get(TAuction, auction_id)
            if auction is None or not auction.to_domain().is_expired(now):
                # closed or cancelled since it was selected
                return

            winning_bid = get_highest_bid(session, auction_id)
            if winning_bid is not None:
                auction.winner_id = winning_bid.bidder_id
            auction.transition(AuctionStatus.ENDED, now)
            session.flush()

            if winning_bid is not None:
                try:
                    created = self._order_factory.create(session, auction, winning_bid, now)
                    events = created.events
                    order_created = True
                except OrderAlreadyExistsError:
                    self._logger.info("order already exists for auction: %s", auction_id)

        if winning_bid is None:
            self._logger.info("auction [%s] ended with no bids", auction_id)
            result.closed_without_winner.append(auction_id)
        else:
            self._logger.info(
                "auction [%s] ended: winner=%s amount=%s",
                auction_id,
                winning_bid.bidder_id,
                winning_bid.amount,
            )
            result.closed.append(auction_id)
            if order_created:
                result.orders_created.append(auction_id)

        self._dispatcher.dispatch(events)
