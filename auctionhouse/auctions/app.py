"""
Auction house application

Wires the commands and services together from the config.
"""
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from auctionhouse.auctions.commands.catalog.approve_auction import ApproveAuction
from auctionhouse.auctions.commands.catalog.cancel_auction import CancelAuction
from auctionhouse.auctions.commands.catalog.create_auction import CreateAuction
from auctionhouse.auctions.commands.catalog.submit_auction import SubmitAuction
from auctionhouse.auctions.commands.closing.close_expired_auctions import (
    CloseExpiredAuctions,
)
from auctionhouse.auctions.commands.ledger.place_bid import PlaceBid
from auctionhouse.auctions.commands.orders.create_order import (
    CreateOrderForClosedAuction,
    CreateOrderForWinner,
)
from auctionhouse.auctions.commands.orders.update_order_status import (
    UpdateOrderStatus,
)
from auctionhouse.auctions.commands.queries.get_auction import GetAuction
from auctionhouse.auctions.commands.queries.get_order import (
    GetAuctionOrder,
    GetOrder,
)
from auctionhouse.auctions.commands.queries.highest_bid import HighestBid
from auctionhouse.auctions.commands.queries.list_bids import GetBid, ListBids
from auctionhouse.auctions.commands.queries.list_orders import ListOrders
from auctionhouse.auctions.commands.queries.search_auctions import SearchAuctions
from auctionhouse.auctions.config import AuctionHouseConfig
from auctionhouse.auctions.data import (
    create_database_engine,
    create_schema,
    create_session_factory,
)
from auctionhouse.auctions.healthchecks.closing_backlog_healthcheck import (
    ClosingBacklogHealthCheck,
)
from auctionhouse.auctions.healthchecks.database_healthcheck import (
    DatabaseHealthCheck,
)
from auctionhouse.auctions.notifications.dispatcher import (
    ReactiveNotificationDispatcher,
)
from auctionhouse.auctions.notifications.in_app import (
    CountUnreadNotifications,
    DeleteNotification,
    GetNotifications,
    InAppNotificationSink,
    MarkNotificationsRead,
)
from auctionhouse.auctions.services.closing_scheduler_service import (
    ClosingSchedulerService,
)
from auctionhouse.auctions.users import UserDirectory
from auctionhouse.core.clock import Clock, SystemClock
from auctionhouse.core.logging import configure_logging, get_logger
from auctionhouse.core.rx import threadpool_scheduler


class App:
    """
    Auction house app

    Commands are exposed as attributes, e.g., `app.place_bid(PlaceBidRequest(...))`.
    """

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        config: AuctionHouseConfig,
        clock: Clock | None = None,
        users: UserDirectory | None = None,
        engine: Engine | None = None,
    ):
        """
        :param engine: if not specified, then the engine is created from the database config
        """
        self.config = config
        self.clock: Clock = clock if clock else SystemClock()

        self.engine = (
            engine
            if engine
            else create_database_engine(
                url=config.database.url,
                lock_timeout=config.database.lock_timeout,
                echo=config.database.echo,
            )
        )
        self.session_factory: sessionmaker = create_session_factory(self.engine)

        self.dispatcher = ReactiveNotificationDispatcher(
            max_attempts=config.notifications.max_attempts,
            scheduler=threadpool_scheduler(),
        )
        self.dispatcher.subscribe(InAppNotificationSink(self.session_factory, self.clock))

        # catalog
        self.create_auction = CreateAuction(self.session_factory, self.clock, users)
        self.submit_auction = SubmitAuction(self.session_factory, self.clock)
        self.approve_auction = ApproveAuction(self.session_factory, self.clock)
        self.cancel_auction = CancelAuction(self.session_factory, self.clock)
        self.get_auction = GetAuction(self.session_factory)
        self.search_auctions = SearchAuctions(self.session_factory)

        # ledger
        self.place_bid = PlaceBid(self.session_factory, self.dispatcher, self.clock, users)
        self.highest_bid = HighestBid(self.session_factory)
        self.list_bids = ListBids(self.session_factory)
        self.get_bid = GetBid(self.session_factory)

        # orders
        order_factory = CreateOrderForClosedAuction()
        self.create_order_for_winner = CreateOrderForWinner(
            self.session_factory, self.dispatcher, self.clock, order_factory
        )
        self.update_order_status = UpdateOrderStatus(
            self.session_factory, self.dispatcher, self.clock
        )
        self.get_order = GetOrder(self.session_factory)
        self.get_auction_order = GetAuctionOrder(self.session_factory)
        self.list_orders = ListOrders(self.session_factory)

        # notifications
        self.get_notifications = GetNotifications(self.session_factory)
        self.mark_notifications_read = MarkNotificationsRead(self.session_factory)
        self.count_unread_notifications = CountUnreadNotifications(self.session_factory)
        self.delete_notification = DeleteNotification(self.session_factory)

        # closing
        self.close_expired_auctions = CloseExpiredAuctions(
            self.session_factory,
            self.dispatcher,
            self.clock,
            order_factory,
            batch_size=config.scheduler.batch_size,
        )
        self.closing_scheduler = ClosingSchedulerService(
            close_expired_auctions=self.close_expired_auctions,
            sweep_interval=config.scheduler.sweep_interval_timedelta,
            healthchecks=[
                DatabaseHealthCheck(self.session_factory),
                ClosingBacklogHealthCheck(
                    self.session_factory,
                    config.scheduler.sweep_interval_timedelta,
                    self.clock,
                ),
            ],
        )

    @classmethod
    def from_config_file(cls, file: Path) -> "App":
        """
        Constructs a new app instance from the specified TOML config file.

        Logging is configured from the config.
        """
        config = AuctionHouseConfig.from_toml(file)
        configure_logging(level=config.logging.level, loggers=config.logging.loggers)
        return cls(config)

    def init_db(self):
        """
        Creates any tables that do not exist
        """
        create_schema(self.engine)
        get_logger(self).info("database schema initialized: %s", self.engine.url)

    def shutdown(self):
        """
        Stops the closing scheduler, closes the notification dispatcher, and disposes the database engine
        """
        self.closing_scheduler.stop()
        self.closing_scheduler.await_stopped()
        self.dispatcher.close()
        self.engine.dispose()
