"""
Closing backlog healthcheck
"""
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.core.clock import Clock, SystemClock
from auctionhouse.core.health_check import (
    HealthCheck,
    HealthCheckImpact,
    YellowHealthCheck,
)


class ClosingBacklogHealthCheck(HealthCheck):
    """
    YELLOW when expired auctions are still ACTIVE longer than expected, i.e., their end time is more than
    `2 * sweep_interval` in the past. Bids are rejected for those auctions, but no order has been created.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        sweep_interval: timedelta,
        clock: Clock | None = None,
    ):
        super().__init__(
            name="auction_closing_backlog",
            impact=HealthCheckImpact.MEDIUM,
            description="Checks that expired auctions are being closed",
            tags={"database", "scheduler"},
        )

        self.__session_factory = session_factory
        self.__max_delay = sweep_interval * 2
        self.__clock = clock if clock else SystemClock()

    def execute(self):
        overdue = self.__clock.now() - self.__max_delay
        with self.__session_factory() as session:
            count = session.scalar(
                select(func.count(TAuction.id)).where(
                    TAuction.status == AuctionStatus.ACTIVE,
                    TAuction.approved.is_(True),
                    TAuction.end_time < overdue,
                )
            )
        if count:
            raise YellowHealthCheck(
                f"{count} expired auctions have not been closed within {self.__max_delay}"
            )
