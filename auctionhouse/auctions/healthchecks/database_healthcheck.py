"""
Auction database healthcheck
"""
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.data.bid import TBid
from auctionhouse.auctions.data.notification import TNotification
from auctionhouse.auctions.data.order import TOrder
from auctionhouse.core.health_check import HealthCheck, HealthCheckImpact


class DatabaseHealthCheck(HealthCheck):
    def __init__(self, session_factory: sessionmaker):
        super().__init__(
            name="auction_database",
            impact=HealthCheckImpact.HIGH,
            description="Queries each of the auction database tables",
            tags={"database"},
        )

        self.__session_factory = session_factory

    def execute(self):
        with self.__session_factory() as session:
            session.scalar(select(TAuction).limit(1))
            session.scalar(select(TBid).limit(1))
            session.scalar(select(TOrder).limit(1))
            session.scalar(select(TNotification).limit(1))
