import unittest
from datetime import timedelta

from auctionhouse.auctions.domain import UserId
from auctionhouse.auctions.domain.notification import (
    NotificationEvent,
    NotificationEventType,
)
from auctionhouse.auctions.notifications.in_app import (
    CountUnreadNotifications,
    DeleteNotification,
    DeleteNotificationRequest,
    GetNotifications,
    GetNotificationsRequest,
    InAppNotificationSink,
    MarkNotificationsRead,
    MarkNotificationsReadRequest,
)
from tests.test_support import AuctionHouseTestCase, ALICE, BOB


class InAppNotificationsTestCase(AuctionHouseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sink = InAppNotificationSink(self.session_factory, self.clock)
        self.get_notifications = GetNotifications(self.session_factory)
        self.mark_notifications_read = MarkNotificationsRead(self.session_factory)
        self.count_unread_notifications = CountUnreadNotifications(self.session_factory)
        self.delete_notification = DeleteNotification(self.session_factory)

    def event(self, recipient_id: UserId, offset: timedelta) -> NotificationEvent:
        return NotificationEvent(
            event_type=NotificationEventType.BID_OUTBID,
            recipient_id=recipient_id,
            payload={"auction_id": 1, "amount": 150},
            created_at=self.clock.now() + offset,
        )

    def test_store_notifications(self):
        first = self.event(ALICE, timedelta(seconds=1))
        second = self.event(ALICE, timedelta(seconds=2))
        self.sink(first)
        self.sink(second)
        self.sink(self.event(BOB, timedelta(seconds=3)))

        notifications = self.get_notifications(GetNotificationsRequest(ALICE))
        self.assertEqual(
            [str(second.event_id), str(first.event_id)],
            [notification.event_id for notification in notifications],
        )
        notification = notifications[0]
        self.assertEqual(ALICE, notification.recipient_id)
        self.assertEqual(NotificationEventType.BID_OUTBID, notification.event_type)
        self.assertEqual({"auction_id": 1, "amount": 150}, notification.payload)
        self.assertEqual(second.created_at, notification.created_at)
        self.assertFalse(notification.is_read)

    def test_redelivery_is_ignored(self):
        event = self.event(ALICE, timedelta(seconds=1))
        for _ in range(3):
            self.sink(event)
        self.assertEqual(1, len(self.get_notifications(GetNotificationsRequest(ALICE))))

    def test_mark_read(self):
        events = [self.event(ALICE, timedelta(seconds=i)) for i in range(3)]
        for event in events:
            self.sink(event)
        self.sink(self.event(BOB, timedelta(seconds=1)))
        notifications = self.get_notifications(GetNotificationsRequest(ALICE))

        marked = self.mark_notifications_read(
            MarkNotificationsReadRequest(ALICE, {notifications[0].id})
        )
        self.assertEqual(1, marked)
        unread = self.get_notifications(GetNotificationsRequest(ALICE, unread_only=True))
        self.assertEqual(
            [notification.id for notification in notifications[1:]],
            [notification.id for notification in unread],
        )

        with self.subTest("users can only mark their own notifications"):
            self.assertEqual(
                0,
                self.mark_notifications_read(
                    MarkNotificationsReadRequest(BOB, {notifications[1].id})
                ),
            )

        with self.subTest("mark all read"):
            self.assertEqual(
                2, self.mark_notifications_read(MarkNotificationsReadRequest(ALICE))
            )
            self.assertEqual(
                [], self.get_notifications(GetNotificationsRequest(ALICE, unread_only=True))
            )
            self.assertEqual(
                1,
                len(self.get_notifications(GetNotificationsRequest(BOB, unread_only=True))),
            )

    def test_count_unread(self):
        self.assertEqual(0, self.count_unread_notifications(ALICE))
        for i in range(3):
            self.sink(self.event(ALICE, timedelta(seconds=i)))
        self.sink(self.event(BOB, timedelta(seconds=1)))
        self.assertEqual(3, self.count_unread_notifications(ALICE))

        newest = self.get_notifications(GetNotificationsRequest(ALICE))[0]
        self.mark_notifications_read(MarkNotificationsReadRequest(ALICE, {newest.id}))
        self.assertEqual(2, self.count_unread_notifications(ALICE))
        self.assertEqual(1, self.count_unread_notifications(BOB))

    def test_delete(self):
        self.sink(self.event(ALICE, timedelta(seconds=1)))
        self.sink(self.event(BOB, timedelta(seconds=1)))
        alice_notification = self.get_notifications(GetNotificationsRequest(ALICE))[0]

        with self.subTest("users can only delete their own notifications"):
            self.assertFalse(
                self.delete_notification(
                    DeleteNotificationRequest(BOB, alice_notification.id)
                )
            )
            self.assertEqual(1, len(self.get_notifications(GetNotificationsRequest(ALICE))))

        self.assertTrue(
            self.delete_notification(DeleteNotificationRequest(ALICE, alice_notification.id))
        )
        self.assertEqual([], self.get_notifications(GetNotificationsRequest(ALICE)))
        self.assertEqual(1, len(self.get_notifications(GetNotificationsRequest(BOB))))

        with self.subTest("unknown notification"):
            self.assertFalse(
                self.delete_notification(
                    DeleteNotificationRequest(ALICE, alice_notification.id)
                )
            )


if __name__ == "__main__":
    unittest.main()
