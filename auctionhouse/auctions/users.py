"""
Identity service integration

User accounts are owned by an external identity service. The auction engine only needs to check that a user exists.
"""
from typing import Protocol

from auctionhouse.auctions.domain import UserId


class UserDirectory(Protocol):
    """
    UserDirectory
    """

    # pylint: disable=too-few-public-methods

    def exists(self, user_id: UserId) -> bool:
        """
        :return: True if the user is registered
        """
