"""
Highest bid query

The winning bid is the bid with the greatest amount. Ties are broken by the latest `created_at`, i.e., the last
valid bid stands. The bid id is the final tie-breaker, which makes the answer deterministic.

Every component that needs "the winning bid" uses `select_highest_bid()`.
"""
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.bid import TBid
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.bid import Bid
from auctionhouse.core.command import Command

BID_RANKING = (TBid.amount.desc(), TBid.created_at.desc(), TBid.id.desc())


def select_highest_bid(auction_id: AuctionId) -> Select[tuple[TBid]]:
    """
    :return: query that selects the auction's highest bid
    """
    return (
        select(TBid).where(TBid.auction_id == auction_id).order_by(*BID_RANKING).limit(1)
    )


def get_highest_bid(session: Session, auction_id: AuctionId) -> TBid | None:
    """
    Looks up the highest bid within the session's transaction
    """
    return session.scalars(select_highest_bid(auction_id)).first()


class HighestBid(Command[AuctionId, Bid | None], SqlAlchemySupport):
    """
    Returns None if the auction has no bids
    """

    def __call__(self, auction_id: AuctionId) -> Bid | None:
        with self._session_factory() as session:
            bid = get_highest_bid(session, auction_id)
            return bid.to_domain() if bid else None
