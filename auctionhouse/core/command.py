"""
Command pattern

Each unit of application behavior, e.g., placing a bid or closing expired auctions, is a command object.
Dependencies are injected through the constructor, and the command is invoked as a function.
"""
from abc import ABC, abstractmethod
from logging import Logger
from typing import TypeVar, Generic

from auctionhouse.core.logging import get_logger

Args = TypeVar("Args")

Result = TypeVar("Result")


class Command(Generic[Args, Result], ABC):
    """
    Callable command
    """

    @abstractmethod
    def __call__(self, args: Args) -> Result:
        ...

    def get_logger(self, name: str | None = None) -> Logger:
        """
        :return: logger named after the command class, see `auctionhouse.core.logging.get_logger()`
        """
        return get_logger(self, name)
