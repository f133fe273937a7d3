"""
Command to list a new auction
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import UserId, Amount
from auctionhouse.auctions.domain.auction import Auction, AuctionStatus
from auctionhouse.auctions.errors import InvalidAuctionError, UnknownUserError
from auctionhouse.auctions.users import UserDirectory
from auctionhouse.core.clock import Clock
from auctionhouse.core.command import Command


@dataclass(slots=True)
class CreateAuctionRequest:
    """
    CreateAuctionRequest
    """

    # pylint: disable=too-many-instance-attributes

    seller_id: UserId
    name: str
    start_price: Amount
    start_time: datetime
    end_time: datetime
    min_bid_increment: Amount = Amount(0)
    description: str | None = None

    # if False, then the auction is created as a DRAFT
    submit_for_approval: bool = True


class CreateAuction(Command[CreateAuctionRequest, Auction], SqlAlchemySupport):
    """
    Creates the auction in PENDING status (or DRAFT), awaiting approval.

    The auction's current price starts at the start price.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Clock | None = None,
        users: UserDirectory | None = None,
    ):
        super().__init__(session_factory, clock)
        self._users = users

    def __call__(self, request: CreateAuctionRequest) -> Auction:
        self._validate(request)

        now = self._clock.now()
        auction = TAuction(
            seller_id=request.seller_id,
            name=request.name,
            description=request.description,
            start_price=request.start_price,
            current_price=request.start_price,
            min_bid_increment=request.min_bid_increment,
            start_time=request.start_time,
            end_time=request.end_time,
            status=AuctionStatus.PENDING
            if request.submit_for_approval
            else AuctionStatus.DRAFT,
            approved=False,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory.begin() as session:
            session.add(auction)
            session.flush()
            result = auction.to_domain()

        self.get_logger().info(
            "auction created: id=%s seller=%s status=%s",
            result.id,
            result.seller_id,
            result.status.name,
        )
        return result

    def _validate(self, request: CreateAuctionRequest):
        if not request.name.strip():
            raise InvalidAuctionError("name is required")
        if request.start_time.tzinfo is None or request.end_time.tzinfo is None:
            raise InvalidAuctionError("start_time and end_time must be timezone aware")
        if request.start_time >= request.end_time:
            raise InvalidAuctionError("start_time must be earlier than end_time")
        if request.start_price < 0:
            raise InvalidAuctionError("start_price must not be negative")
        if request.min_bid_increment < 0:
            raise InvalidAuctionError("min_bid_increment must not be negative")
        if self._users and not self._users.exists(request.seller_id):
            raise UnknownUserError(request.seller_id)
