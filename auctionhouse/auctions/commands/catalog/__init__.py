"""
Auction catalog commands, which manage the auction listing status
"""
from abc import abstractmethod
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import AuctionId
from auctionhouse.auctions.domain.auction import Auction, AuctionStatus
from auctionhouse.auctions.errors import (
    AuctionNotFoundError,
    ConcurrentUpdateError,
    InvalidAuctionStateError,
)
from auctionhouse.core.command import Command


def get_auction_for_update(session: Session, auction_id: AuctionId) -> TAuction:
    """
    :exception AuctionNotFoundError:
    """
    auction = session.get(TAuction, auction_id)
    if auction is None:
        raise AuctionNotFoundError(auction_id)
    return auction


class ChangeAuctionStatus(Command[AuctionId, Auction], SqlAlchemySupport):
    """
    Base class for catalog commands that transition the auction status.

    The update is guarded by the auction version. If the auction was concurrently updated, e.g., a bid was placed,
    then ConcurrentUpdateError is raised.
    """

    target_status: AuctionStatus

    def __call__(self, auction_id: AuctionId) -> Auction:
        now = self._clock.now()
        try:
            with self._session_factory.begin() as session:
                auction = get_auction_for_update(session, auction_id)
                previous_status = auction.status
                if not auction.status.can_transition_to(self.target_status):
                    raise InvalidAuctionStateError(
                        f"auction [{auction_id}] cannot transition from {auction.status.name} "
                        f"to {self.target_status.name}"
                    )
                self._apply(session, auction, now)
                session.flush()
                result = auction.to_domain()
        except StaleDataError as err:
            raise ConcurrentUpdateError(
                f"auction [{auction_id}] was updated concurrently"
            ) from err

        self.get_logger().info(
            "auction [%s] status: %s -> %s",
            auction_id,
            previous_status.name,
            result.status.name,
        )
        return result

    @abstractmethod
    def _apply(self, session: Session, auction: TAuction, now: datetime) -> None:
        """
        Applies the transition to the auction
        """
