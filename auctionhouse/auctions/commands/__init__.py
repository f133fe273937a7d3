"""
Auction commands

Each command runs in its own transaction, which re-reads the state it needs. Notification events produced by a
command are dispatched only after its transaction commits.
"""
from abc import ABC

from sqlalchemy.orm import sessionmaker

from auctionhouse.core.clock import Clock, SystemClock


class SqlAlchemySupport(ABC):
    """
    SqlAlchemySupport
    """

    # pylint: disable=too-few-public-methods

    def __init__(self, session_factory: sessionmaker, clock: Clock | None = None):
        self._session_factory = session_factory
        self._clock: Clock = clock if clock else SystemClock()
