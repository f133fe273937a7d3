"""
Command to place a bid on an auction
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.commands.catalog import get_auction_for_update
from auctionhouse.auctions.commands.queries.highest_bid import get_highest_bid
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.data.bid import TBid
from auctionhouse.auctions.domain import AuctionId, UserId, Amount
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.bid import Bid
from auctionhouse.auctions.domain.notification import (
    NotificationEvent,
    NotificationEventType,
)
from auctionhouse.auctions.errors import (
    AuctionExpiredError,
    AuctionNotApprovedError,
    AuctionNotStartedError,
    BidConflictError,
    BidTooLowError,
    InvalidAuctionStateError,
    SelfBidError,
    UnknownUserError,
)
from auctionhouse.auctions.notifications import NotificationDispatcher
from auctionhouse.auctions.users import UserDirectory
from auctionhouse.core.clock import Clock
from auctionhouse.core.command import Command


@dataclass(slots=True)
class PlaceBidRequest:
    """
    PlaceBidRequest
    """

    auction_id: AuctionId
    bidder_id: UserId
    amount: Amount

    # bid time - if None, then the current time is used
    now: datetime | None = None


@dataclass(slots=True)
class PlaceBidResult:
    """
    PlaceBidResult
    """

    bid: Bid
    # the auction's current price after the bid was accepted
    current_price: Amount


class PlaceBid(Command[PlaceBidRequest, PlaceBidResult], SqlAlchemySupport):
    """
    Validates the bid against the current auction state, and if accepted, then in a single transaction:

    1. appends the bid
    2. ratchets the auction's current price up to the bid amount

    The price update is a compare-and-set on the auction version that was read. If the auction was updated
    concurrently, e.g., another bid was accepted or the auction was closed, then the transaction is rolled back
    and `BidConflictError` is raised. The command never retries on its own because the bid amount may no longer
    satisfy the min increment rule - the caller re-fetches the auction and decides.

    After the transaction commits, BID_PLACED is sent to the bidder, and BID_OUTBID is sent to the previous
    highest bidder if there was one and it is a different user.

    Notes
    -----
    If the caller abandons the request, e.g., times out, while the transaction may have committed, then the outcome
    is unknown. The bidder must re-query, e.g., `ListBids`, instead of assuming the bid failed.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        users: UserDirectory | None = None,
    ):
        super().__init__(session_factory, clock)
        self._dispatcher = dispatcher
        self._users = users
        self._logger = super().get_logger()

    def __call__(self, request: PlaceBidRequest) -> PlaceBidResult:
        now = request.now if request.now else self._clock.now()

        try:
            with self._session_factory.begin() as session:
                auction = get_auction_for_update(session, request.auction_id)
                self._validate(auction, request, now)

                previous_highest_bid = get_highest_bid(session, request.auction_id)
                # ties rank by bid time, so the accepted bid is never stamped before the current highest bid
                bid_time = (
                    max(now, previous_highest_bid.created_at)
                    if previous_highest_bid
                    else now
                )

                bid = TBid(
                    auction_id=auction.id,
                    bidder_id=request.bidder_id,
                    amount=request.amount,
                    created_at=bid_time,
                )
                session.add(bid)
                auction.current_price = request.amount
                auction.updated_at = now
                # the auction UPDATE is guarded by the version that was read
                session.flush()

                result = PlaceBidResult(
                    bid=bid.to_domain(),
                    current_price=Amount(auction.current_price),
                )
                previous_bidder_id = (
                    UserId(previous_highest_bid.bidder_id)
                    if previous_highest_bid
                    else None
                )
        except StaleDataError as err:
            self._logger.info(
                "bid conflict: auction=%s bidder=%s amount=%s",
                request.auction_id,
                request.bidder_id,
                request.amount,
            )
            raise BidConflictError(
                f"auction [{request.auction_id}] was updated concurrently - re-fetch and retry"
            ) from err

        self._logger.info(
            "bid accepted: auction=%s bidder=%s amount=%s bid=%s",
            result.bid.auction_id,
            result.bid.bidder_id,
            result.bid.amount,
            result.bid.id,
        )
        self._dispatcher.dispatch(self._events(result.bid, previous_bidder_id, now))
        return result

    def _validate(self, auction: TAuction, request: PlaceBidRequest, now: datetime):
        if self._users and not self._users.exists(request.bidder_id):
            raise UnknownUserError(request.bidder_id)
        if request.bidder_id == auction.seller_id:
            raise SelfBidError(f"seller cannot bid on own auction: {auction.id}")
        if not auction.approved:
            raise AuctionNotApprovedError(f"auction is not approved: {auction.id}")
        if auction.status != AuctionStatus.ACTIVE:
            raise InvalidAuctionStateError(
                f"auction [{auction.id}] is not active: {auction.status.name}"
            )
        if now < auction.start_time:
            raise AuctionNotStartedError(
                f"auction [{auction.id}] starts at {auction.start_time.isoformat()}"
            )
        if now > auction.end_time:
            raise AuctionExpiredError(
                f"auction [{auction.id}] ended at {auction.end_time.isoformat()}"
            )
        min_amount = Amount(auction.current_price + auction.min_bid_increment)
        if request.amount < min_amount:
            raise BidTooLowError(request.amount, min_amount)

    @staticmethod
    def _events(
        bid: Bid,
        previous_bidder_id: UserId | None,
        now: datetime,
    ) -> list[NotificationEvent]:
        payload = {"auction_id": bid.auction_id, "amount": bid.amount}
        events = [
            NotificationEvent(
                event_type=NotificationEventType.BID_PLACED,
                recipient_id=bid.bidder_id,
                payload={**payload, "bid_id": bid.id},
                created_at=now,
            )
        ]
        if previous_bidder_id is not None and previous_bidder_id != bid.bidder_id:
            events.append(
                NotificationEvent(
                    event_type=NotificationEventType.BID_OUTBID,
                    recipient_id=previous_bidder_id,
                    payload=payload,
                    created_at=now,
                )
            )
        return events
