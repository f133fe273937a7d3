"""
Retrieves an Auction from the database
"""
from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.auction import Auction
from auctionhouse.core.command import Command


class GetAuction(Command[AuctionId, Auction | None], SqlAlchemySupport):
    """
    Retrieves Auction from the database by its id
    """

    def __call__(self, auction_id: AuctionId) -> Auction | None:
        with self._session_factory() as session:
            auction = session.get(TAuction, auction_id)
            if auction is None:
                return None

            return auction.to_domain()
