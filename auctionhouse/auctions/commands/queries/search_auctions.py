"""
Command for auction database search
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum, auto
from typing import Optional

from sqlalchemy import ColumnElement, select, func

from auctionhouse.auctions.commands import SqlAlchemySupport
from auctionhouse.auctions.data.auction import TAuction
from auctionhouse.auctions.domain import AuctionId, UserId
from auctionhouse.auctions.domain.auction import Auction, AuctionStatus
from auctionhouse.core.command import Command


class AuctionSortField(IntEnum):
    """
    Auction query sort fields
    """

    AUCTION_ID = auto()
    STATUS = auto()
    SELLER = auto()
    CURRENT_PRICE = auto()
    START_TIME = auto()
    END_TIME = auto()
    CREATED_AT = auto()


@dataclass(slots=True)
class AuctionSort:
    """
    Auction.id is always appended to the sort, which makes paging stable.
    """

    field: AuctionSortField
    asc: bool = True  # sort order, i.e., ascending or descending


@dataclass(slots=True)
class AuctionSearchFilters:
    """
    Auction search filters
    """

    auction_id: set[AuctionId] = field(default_factory=set)
    status: set[AuctionStatus] = field(default_factory=set)
    seller_id: set[UserId] = field(default_factory=set)
    winner_id: set[UserId] = field(default_factory=set)
    approved: bool | None = None

    end_time_from: datetime | None = None  # Auction.end_time >= end_time_from
    end_time_to: datetime | None = None  # Auction.end_time <= end_time_to

    # bidding is open at the specified time: approved, ACTIVE, and start_time <= open_at <= end_time
    open_at: datetime | None = None


@dataclass(slots=True)
class AuctionSearchResult:
    """
    Auction search result
    """

    auctions: list[Auction]

    total_count: int


@dataclass(slots=True)
class AuctionSearchRequest:
    """
    Auction search request
    """

    filters: AuctionSearchFilters | None = None

    sort: AuctionSort = field(
        default_factory=lambda: AuctionSort(AuctionSortField.AUCTION_ID)
    )

    # used for paging
    limit: int = 100
    offset: int = 0

    def next_page(
        self, search_result: AuctionSearchResult
    ) -> Optional["AuctionSearchRequest"]:
        """
        :return: None if there are no more results to retrieve
        """
        offset = self.offset + self.limit
        if offset >= search_result.total_count:
            return None
        return replace(self, offset=offset)

    def previous_page(self) -> Optional["AuctionSearchRequest"]:
        """
        :return: None if this is the first page
        """
        if self.offset == 0:
            return None
        return replace(self, offset=max(self.offset - self.limit, 0))


_SORT_COLUMNS = {
    AuctionSortField.AUCTION_ID: TAuction.id,
    AuctionSortField.STATUS: TAuction.status,
    AuctionSortField.SELLER: TAuction.seller_id,
    AuctionSortField.CURRENT_PRICE: TAuction.current_price,
    AuctionSortField.START_TIME: TAuction.start_time,
    AuctionSortField.END_TIME: TAuction.end_time,
    AuctionSortField.CREATED_AT: TAuction.created_at,
}


def search_conditions(filters: AuctionSearchFilters | None) -> list[ColumnElement[bool]]:
    """
    :return: SQL conditions, which are AND'ed together
    """
    if filters is None:
        return []

    conditions: list[ColumnElement[bool]] = []
    if filters.auction_id:
        conditions.append(TAuction.id.in_(filters.auction_id))
    if filters.status:
        conditions.append(TAuction.status.in_(filters.status))
    if filters.seller_id:
        conditions.append(TAuction.seller_id.in_(filters.seller_id))
    if filters.winner_id:
        conditions.append(TAuction.winner_id.in_(filters.winner_id))
    if filters.approved is not None:
        conditions.append(TAuction.approved == filters.approved)
    if filters.end_time_from:
        conditions.append(TAuction.end_time >= filters.end_time_from)
    if filters.end_time_to:
        conditions.append(TAuction.end_time <= filters.end_time_to)
    if filters.open_at:
        conditions += [
            TAuction.approved.is_(True),
            TAuction.status == AuctionStatus.ACTIVE,
            TAuction.start_time <= filters.open_at,
            TAuction.end_time >= filters.open_at,
        ]
    return conditions


class SearchAuctions(
    Command[AuctionSearchRequest, AuctionSearchResult],
    SqlAlchemySupport,
):
    """
    Pages through auctions matching the search filters
    """

    def __call__(self, request: AuctionSearchRequest) -> AuctionSearchResult:
        if request.limit <= 0:
            raise ValueError("`limit` must be greater than zero")
        if request.offset < 0:
            raise ValueError("`offset` must not be negative")

        conditions = search_conditions(request.filters)
        column = _SORT_COLUMNS[request.sort.field]
        order_by = (
            (column, TAuction.id)
            if request.sort.asc
            else (column.desc(), TAuction.id.desc())
        )

        # pylint: disable=not-callable
        count_query = select(func.count(TAuction.id)).where(*conditions)
        query = (
            select(TAuction)
            .where(*conditions)
            .order_by(*order_by)
            .limit(request.limit)
            .offset(request.offset)
        )
        self.get_logger().debug("query: %s", query)

        with self._session_factory() as session:
            return AuctionSearchResult(
                total_count=session.scalar(count_query) or 0,
                auctions=[auction.to_domain() for auction in session.scalars(query)],
            )
