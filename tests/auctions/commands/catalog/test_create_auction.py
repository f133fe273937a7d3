import unittest
from datetime import timedelta

from auctionhouse.auctions.commands.catalog.create_auction import (
    CreateAuction,
    CreateAuctionRequest,
)
from auctionhouse.auctions.commands.queries.get_auction import GetAuction
from auctionhouse.auctions.domain import Amount, UserId
from auctionhouse.auctions.domain.auction import AuctionStatus
from auctionhouse.auctions.errors import (
    ErrorCode,
    InvalidAuctionError,
    UnknownUserError,
)
from tests.test_support import AuctionHouseTestCase, SELLER


class KnownUsers:
    def __init__(self, *user_ids: UserId):
        self.user_ids = set(user_ids)

    def exists(self, user_id: UserId) -> bool:
        return user_id in self.user_ids


class CreateAuctionTestCase(AuctionHouseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_auction_command = CreateAuction(self.session_factory, self.clock)
        self.get_auction = GetAuction(self.session_factory)

    def request(self, **kwargs) -> CreateAuctionRequest:
        now = self.clock.now()
        args = {
            "seller_id": SELLER,
            "name": "Vintage Camera",
            "start_price": Amount(100),
            "start_time": now,
            "end_time": now + timedelta(hours=1),
        }
        args.update(kwargs)
        return CreateAuctionRequest(**args)

    def test_create_auction(self):
        auction = self.create_auction_command(
            self.request(description="Leica M3", min_bid_increment=Amount(5))
        )

        self.assertEqual(AuctionStatus.PENDING, auction.status)
        self.assertFalse(auction.approved)
        self.assertEqual(auction.start_price, auction.current_price)
        self.assertEqual(Amount(105), auction.min_next_bid)
        self.assertIsNone(auction.winner_id)
        self.assertEqual(self.clock.now(), auction.created_at)
        self.assertEqual(auction, self.get_auction(auction.id))

    def test_create_draft_auction(self):
        auction = self.create_auction_command(self.request(submit_for_approval=False))
        self.assertEqual(AuctionStatus.DRAFT, auction.status)

    def test_invalid_auction(self):
        now = self.clock.now()
        invalid_requests = {
            "blank name": self.request(name="  "),
            "start_time == end_time": self.request(end_time=now),
            "start_time > end_time": self.request(end_time=now - timedelta(minutes=1)),
            "negative start price": self.request(start_price=Amount(-1)),
            "negative min bid increment": self.request(min_bid_increment=Amount(-1)),
            "naive times": self.request(
                start_time=now.replace(tzinfo=None),
                end_time=(now + timedelta(hours=1)).replace(tzinfo=None),
            ),
        }
        for name, request in invalid_requests.items():
            with self.subTest(name):
                with self.assertRaises(InvalidAuctionError) as err:
                    self.create_auction_command(request)
                self.assertEqual(ErrorCode.INVALID_ARGUMENT, err.exception.code)

    def test_zero_start_price(self):
        auction = self.create_auction_command(self.request(start_price=Amount(0)))
        self.assertEqual(0, auction.current_price)

    def test_unknown_seller(self):
        create_auction = CreateAuction(
            self.session_factory, self.clock, users=KnownUsers(SELLER)
        )
        create_auction(self.request())

        with self.assertRaises(UnknownUserError) as err:
            create_auction(self.request(seller_id=UserId(999)))
        self.assertEqual(ErrorCode.UNKNOWN_USER, err.exception.code)


if __name__ == "__main__":
    unittest.main()
