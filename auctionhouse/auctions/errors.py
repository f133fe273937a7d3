"""
Auction errors

Every rejection carries a stable `ErrorCode`, and is classified by `ErrorKind`:

- VALIDATION: the request is not acceptable in the current state. The caller corrects the request and retries.
- CONFLICT: the request lost a race against a concurrent update. The caller re-fetches current state and decides
  whether to retry.
- NOT_FOUND: terminal for the call.

Storage failures are not wrapped. They surface as `sqlalchemy.exc.SQLAlchemyError`.
"""
from enum import Enum

from auctionhouse.auctions.domain import AuctionId, Amount, OrderId, UserId


class ErrorKind(Enum):
    """
    ErrorKind
    """

    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"


class ErrorCode(Enum):
    """
    Stable error reason codes
    """

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    NOT_APPROVED = "NOT_APPROVED"
    INVALID_STATE = "INVALID_STATE"
    NOT_STARTED = "NOT_STARTED"
    EXPIRED = "EXPIRED"
    BID_TOO_LOW = "BID_TOO_LOW"
    CONFLICT = "CONFLICT"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    NO_BIDS = "NO_BIDS"
    NOT_YET_ENDED = "NOT_YET_ENDED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    UNKNOWN_USER = "UNKNOWN_USER"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"


class AuctionHouseError(Exception):
    """
    Base class for all auction rejections
    """

    code: ErrorCode
    kind: ErrorKind = ErrorKind.VALIDATION


class AuctionNotFoundError(AuctionHouseError):
    """
    Auction does not exist
    """

    code = ErrorCode.NOT_FOUND
    kind = ErrorKind.NOT_FOUND

    def __init__(self, auction_id: AuctionId):
        super().__init__(f"auction not found: {auction_id}")
        self.auction_id = auction_id


class OrderNotFoundError(AuctionHouseError):
    """
    Order does not exist
    """

    code = ErrorCode.NOT_FOUND
    kind = ErrorKind.NOT_FOUND

    def __init__(self, order_id: OrderId):
        super().__init__(f"order not found: {order_id}")
        self.order_id = order_id


class UnknownUserError(AuctionHouseError):
    """
    The user is not registered with the identity service
    """

    code = ErrorCode.UNKNOWN_USER

    def __init__(self, user_id: UserId):
        super().__init__(f"user does not exist: {user_id}")
        self.user_id = user_id


class InvalidAuctionError(AuctionHouseError):
    """
    Auction listing is invalid, e.g., start time is not before end time
    """

    code = ErrorCode.INVALID_ARGUMENT


class SelfBidError(AuctionHouseError):
    """
    Sellers cannot bid on their own auctions
    """

    code = ErrorCode.FORBIDDEN


class AuctionNotApprovedError(AuctionHouseError):
    """
    Auction has not been approved for bidding
    """

    code = ErrorCode.NOT_APPROVED


class InvalidAuctionStateError(AuctionHouseError):
    """
    The auction status does not allow the requested operation
    """

    code = ErrorCode.INVALID_STATE


class AuctionNotStartedError(AuctionHouseError):
    """
    Bidding window has not opened yet
    """

    code = ErrorCode.NOT_STARTED


class AuctionExpiredError(AuctionHouseError):
    """
    Bidding window has closed
    """

    code = ErrorCode.EXPIRED


class BidTooLowError(AuctionHouseError):
    """
    Bid amount is less than `current_price + min_bid_increment`
    """

    code = ErrorCode.BID_TOO_LOW

    def __init__(self, amount: Amount, min_amount: Amount):
        super().__init__(f"bid amount {amount} is too low: min amount is {min_amount}")
        self.amount = amount
        self.min_amount = min_amount


class ConcurrentUpdateError(AuctionHouseError):
    """
    The auction was updated by a concurrent transaction after it was read
    """

    code = ErrorCode.CONFLICT
    kind = ErrorKind.CONFLICT


class BidConflictError(ConcurrentUpdateError):
    """
    The bid was validated against a stale current price.

    Re-fetch the auction and re-validate the bid before retrying.
    """


class OrderAlreadyExistsError(AuctionHouseError):
    """
    An order has already been created for the auction
    """

    code = ErrorCode.ALREADY_EXISTS
    kind = ErrorKind.CONFLICT

    def __init__(self, auction_id: AuctionId):
        super().__init__(f"order already exists for auction: {auction_id}")
        self.auction_id = auction_id


class NoBidsError(AuctionHouseError):
    """
    Auction has no bids
    """

    code = ErrorCode.NO_BIDS


class AuctionNotEndedError(AuctionHouseError):
    """
    Auction has not been closed yet
    """

    code = ErrorCode.NOT_YET_ENDED


class InvalidOrderTransitionError(AuctionHouseError):
    """
    Order status transition is not allowed
    """

    code = ErrorCode.INVALID_TRANSITION
