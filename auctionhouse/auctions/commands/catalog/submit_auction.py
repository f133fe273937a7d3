"""
Submits a draft auction for approval
"""
from datetime import datetime

from sqlalchemy.orm import Session

from auctionhouse.auctions.commands.catalog import ChangeAuctionStatus
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.errors import InvalidAuctionStateError


class SubmitAuction(ChangeAuctionStatus):
    """
    DRAFT -> PENDING
    """

    target_status = AuctionStatus.PENDING

    def _apply(self, session: Session, auction: TAuction, now: datetime) -> None:
        if auction.status != AuctionStatus.DRAFT:
            raise InvalidAuctionStateError(
                f"only draft auctions can be submitted: {auction.status.name}"
            )
        auction.transition(AuctionStatus.PENDING, now)
