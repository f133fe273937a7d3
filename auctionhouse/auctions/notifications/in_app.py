"""
In-app notifications

Stores delivered notification events in the database, where users read them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.notification import TNotification
from auctionhouse.auctions.domain import UserId
from auctionhouse.auctions.domain.notification import (
    NotificationEvent,
    NotificationEventType,
)
from auctionhouse.core.command import Command
from auctionhouse.core.logging import get_logger


class InAppNotificationSink(SqlAlchemySupport):
    """
    Notification sink that stores events in the `notification` table.

    Redelivered events are ignored, i.e., the sink is idempotent.
    """

    # pylint: disable=too-few-public-methods

    def __call__(self, event: NotificationEvent) -> None:
        event_id = str(event.event_id)
        try:
            with self._session_factory.begin() as session:
                exists = session.scalar(
                    select(TNotification.id).where(TNotification.event_id == event_id)
                )
                if exists:
                    return
                session.add(
                    TNotification(
                        event_id=event_id,
                        recipient_id=event.recipient_id,
                        event_type=event.event_type,
                        payload=event.payload,
                        created_at=event.created_at,
                    )
                )
        except IntegrityError:
            get_logger(self).debug("event was already stored: %s", event_id)


@dataclass(slots=True)
class Notification:
    """
    In-app notification
    """

    id: int
    event_id: str
    recipient_id: UserId
    event_type: NotificationEventType
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    is_read: bool = False


@dataclass(slots=True)
class GetNotificationsRequest:
    """
    GetNotificationsRequest
    """

    user_id: UserId
    unread_only: bool = False
    limit: int = 50


class GetNotifications(
    Command[GetNotificationsRequest, list[Notification]], SqlAlchemySupport
):
    """
    Returns the user's notifications, most recent first
    """

    def __call__(self, request: GetNotificationsRequest) -> list[Notification]:
        query = select(TNotification).where(
            TNotification.recipient_id == request.user_id
        )
        if request.unread_only:
            query = query.where(TNotification.is_read.is_(False))
        query = query.order_by(
            TNotification.created_at.desc(), TNotification.id.desc()
        ).limit(request.limit)

        with self._session_factory() as session:
            return [
                Notification(
                    id=row.id,
                    event_id=row.event_id,
                    recipient_id=UserId(row.recipient_id),
                    event_type=row.event_type,
                    payload=row.payload,
                    created_at=row.created_at,
                    is_read=row.is_read,
                )
                for row in session.scalars(query)
            ]


@dataclass(slots=True)
class MarkNotificationsReadRequest:
    """
    If `notification_ids` is empty, then all the user's notifications are marked read
    """

    user_id: UserId
    notification_ids: set[int] = field(default_factory=set)


class MarkNotificationsRead(Command[MarkNotificationsReadRequest, int], SqlAlchemySupport):
    """
    Returns the number of notifications that were marked read
    """

    def __call__(self, request: MarkNotificationsReadRequest) -> int:
        statement = (
            update(TNotification)
            .where(
                TNotification.recipient_id == request.user_id,
                TNotification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        if request.notification_ids:
            statement = statement.where(TNotification.id.in_(request.notification_ids))

        with self._session_factory.begin() as session:
            return session.execute(statement).rowcount


class CountUnreadNotifications(Command[UserId, int], SqlAlchemySupport):
    """
    Returns the number of the user's unread notifications
    """

    def __call__(self, user_id: UserId) -> int:
        # pylint: disable=not-callable
        query = select(func.count(TNotification.id)).where(
            TNotification.recipient_id == user_id,
            TNotification.is_read.is_(False),
        )
        with self._session_factory() as session:
            return session.scalar(query) or 0


@dataclass(slots=True)
class DeleteNotificationRequest:
    """
    DeleteNotificationRequest
    """

    user_id: UserId
    notification_id: int


class DeleteNotification(Command[DeleteNotificationRequest, bool], SqlAlchemySupport):
    """
    Users can only delete their own notifications.

    Returns False if the user has no such notification.
    """

    def __call__(self, request: DeleteNotificationRequest) -> bool:
        statement = delete(TNotification).where(
            TNotification.id == request.notification_id,
            TNotification.recipient_id == request.user_id,
        )
        with self._session_factory.begin() as session:
            return session.execute(statement).rowcount > 0
