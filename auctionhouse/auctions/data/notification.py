"""
In-app notification database table model
"""
from datetime import datetime
from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from auctionhouse.auctions.data import Base
from auctionhouse.auctions.domain.notification import NotificationEventType


class TNotification(Base):
    """
    Stores notification events delivered to users
    """

    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(primary_key=True, init=False)
    # unique to make redelivery of the same event a noop
    event_id: Mapped[str] = mapped_column(String(26), unique=True)
    recipient_id: Mapped[int] = mapped_column(index=True)
    event_type: Mapped[NotificationEventType]
    payload: Mapped[dict[str, Any]]
    created_at: Mapped[datetime] = mapped_column(index=True)
    is_read: Mapped[bool] = mapped_column(default=False)
