from datetime import timedelta

from auctionhouse.auctions.commands.closing.close_expired_auctions import (
    CloseExpiredAuctions,
)
from auctionhouse.auctions.commands.ledger.place_bid import PlaceBid, PlaceBidRequest
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import Amount, AuctionId, UserId
from auctionhouse.auctions.domain.auction import Auction, AuctionStatus
from tests.test_support import AuctionHouseTestCase


class OrderTestCase(AuctionHouseTestCase):
    def create_auction_with_bid(self, bidder_id: UserId, amount: int) -> Auction:
        auction = self.create_active_auction(
            end_time=self.clock.now() + timedelta(minutes=1)
        )
        PlaceBid(self.session_factory, self.dispatcher, self.clock)(
            PlaceBidRequest(auction.id, bidder_id, Amount(amount))
        )
        return auction

    def close_auction(self, auction: Auction):
        """
        Closes the auction via the closing sweep, which creates the order
        """
        result = CloseExpiredAuctions(self.session_factory, self.dispatcher, self.clock)(
            auction.end_time
        )
        assert auction.id in result.closed

    def end_auction_without_order(self, auction_id: AuctionId, winner_id: UserId | None):
        """
        Simulates an auction that was ended, but its order was never created
        """
        with self.session_factory.begin() as session:
            auction = session.get(TAuction, auction_id)
            auction.winner_id = winner_id
            auction.transition(AuctionStatus.ENDED, self.clock.now())
