"""
Approves an auction for bidding
"""
from datetime import datetime

from sqlalchemy.orm import Session

from auctionhouse.auctions.commands.catalog import ChangeAuctionStatus
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.errors import InvalidAuctionStateError


class ApproveAuction(ChangeAuctionStatus):
    """
    Approval is the only way an auction becomes ACTIVE.

    Approval is granted by the moderation workflow, which is external to the auction engine.
    """

    target_status = AuctionStatus.ACTIVE

    def _apply(self, session: Session, auction: TAuction, now: datetime) -> None:
        if auction.approved:
            raise InvalidAuctionStateError(f"auction is already approved: {auction.id}")
        auction.approved = True
        auction.transition(AuctionStatus.ACTIVE, now)
