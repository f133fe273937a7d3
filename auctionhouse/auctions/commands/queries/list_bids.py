"""
Bid queries

After an ambiguous bid outcome, e.g., the request timed out, bidders use these queries to find out whether
the bid was recorded.
"""
from dataclasses import dataclass

from sqlalchemy import select

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.commands.queries.highest_bid import BID_RANKING
from auctionhouse.auctions.data.bid import TBid
from auctionhouse.auctions.domain import AuctionId, BidId, UserId
from auctionhouse.auctions.domain.bid import Bid
from auctionhouse.core.command import Command


@dataclass(slots=True)
class ListBidsRequest:
    """
    Exactly 1 of `auction_id` or `bidder_id` is required.

    - auction bids are sorted by rank, i.e., the highest bid first
    - bidder bids are sorted by most recent first
    """

    auction_id: AuctionId | None = None
    bidder_id: UserId | None = None
    limit: int = 50

    def __post_init__(self):
        if (self.auction_id is None) == (self.bidder_id is None):
            raise ValueError("exactly 1 of `auction_id` or `bidder_id` is required")
        if self.limit <= 0:
            raise ValueError("`limit` must be greater than zero")


class ListBids(Command[ListBidsRequest, list[Bid]], SqlAlchemySupport):
    """
    ListBids
    """

    def __call__(self, request: ListBidsRequest) -> list[Bid]:
        if request.auction_id is not None:
            query = (
                select(TBid)
                .where(TBid.auction_id == request.auction_id)
                .order_by(*BID_RANKING)
            )
        else:
            query = (
                select(TBid)
                .where(TBid.bidder_id == request.bidder_id)
                .order_by(TBid.created_at.desc(), TBid.id.desc())
            )

        with self._session_factory() as session:
            return [bid.to_domain() for bid in session.scalars(query.limit(request.limit))]


class GetBid(Command[BidId, Bid | None], SqlAlchemySupport):
    """
    GetBid
    """

    def __call__(self, bid_id: BidId) -> Bid | None:
        with self._session_factory() as session:
            bid = session.get(TBid, bid_id)
            return bid.to_domain() if bid else None
