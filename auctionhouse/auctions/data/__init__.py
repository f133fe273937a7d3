"""
Auction data model

Notes
-----
Data model class names are prefixed with a 'T', which identifies them as classes that map to database tables.
This naming convention also avoids name collision with similarly named domain model classes, e.g.,

`TAuction` is a data model class vs `Auction` is a domain model class

"""
import sqlite3
from datetime import datetime, UTC
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Engine,
    Enum,
    String,
    TypeDecorator,
    create_engine,
    event,
)
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass, sessionmaker

from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.domain.notification import NotificationEventType
from auctionhouse.auctions.domain.order import OrderStatus


class UTCDateTime(TypeDecorator):
    """
    Stores timezone aware datetimes as naive UTC, and loads them back as timezone aware UTC.

    Some databases, e.g., sqlite, do not preserve the timezone.
    """

    # pylint: disable=too-many-ancestors

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"timezone aware datetime is required: {value}")
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(MappedAsDataclass, DeclarativeBase):
    """
    Data model base class.

    All data model classes should extend Base.
    """

    # pylint: disable=too-few-public-methods

    type_annotation_map = {
        datetime: UTCDateTime(),
        dict[str, Any]: JSON,
        AuctionStatus: Enum(AuctionStatus, length=16),
        OrderStatus: Enum(OrderStatus, length=16),
        NotificationEventType: Enum(NotificationEventType, length=32),
        str: String(255),
    }


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    """
    Enables foreign keys in sqlite
    """
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(
    url: str,
    lock_timeout: float = 5.0,
    echo: bool = False,
) -> Engine:
    """
    :param url: SQLAlchemy database URL
    :param lock_timeout: max number of seconds a sqlite connection waits for a lock held by another transaction
    """
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        # the closing scheduler and request handlers share the database across threads
        connect_args = {"timeout": lock_timeout, "check_same_thread": False}
    return create_engine(url, echo=echo, connect_args=connect_args)


def create_schema(engine: Engine) -> None:
    """
    Creates any tables that do not exist
    """
    # pylint: disable=import-outside-toplevel,unused-import
    from auctionhouse.auctions.data import auction, bid, order, notification

    Base.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Objects are not expired on commit because snapshots are converted to domain objects after the transaction
    """
    return sessionmaker(engine, expire_on_commit=False)
