"""
Auction house shell
"""
import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import click
from click_shell import shell  # type: ignore

from auctionhouse.auctions.app import App
from auctionhouse.auctions.commands.ledger.place_bid import PlaceBidRequest
from auctionhouse.auctions.commands.orders.update_order_status import (
    UpdateOrderStatusRequest,
)
from auctionhouse.auctions.domain import AuctionId, UserId, Amount, OrderId
from auctionhouse.auctions.domain.order import OrderStatus
from auctionhouse.auctions.errors import AuctionHouseError

__app: App | None = None
__config_file: Path | None = None


class AppNotInitialized(Exception):
    pass


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.name
    return str(value)


def _echo_json(obj: Any):
    click.echo(json.dumps(obj, indent=3, default=_json_default))


def _get_app() -> App:
    if __app is None:
        raise AppNotInitialized
    return __app


def _rejected(err: AuctionHouseError) -> click.ClickException:
    return click.ClickException(f"[{err.code.name}] {err}")


@shell(
    prompt="auctionhouse > ",
    intro="Auction House Shell",
)
@click.option(
    "--config-file",
    required=True,
    prompt="Config File",
    type=click.Path(exists=True, resolve_path=True, readable=True, path_type=Path),
)
def app(config_file: Path | None = None):
    if config_file is None:
        return

    global __app
    global __config_file

    __app = App.from_config_file(config_file)
    __config_file = config_file


@app.command
def show_config():
    """
    Displays the application config as JSON
    """

    click.echo(__config_file)
    _echo_json(_get_app().config.to_dict())


@app.command
def init_db():
    """
    Creates the database tables
    """

    _get_app().init_db()
    click.echo("Database has been initialized")


@app.command
def sweep():
    """
    Closes expired auctions now
    """

    result = _get_app().closing_scheduler.sweep_now()
    _echo_json(asdict(result))


@app.command
def run():
    """
    Runs the closing scheduler until interrupted
    """

    auction_house = _get_app()
    auction_house.closing_scheduler.start()
    click.echo(
        f"Closing scheduler is running: sweep_interval={auction_house.closing_scheduler.sweep_interval}"
    )
    click.echo("Press Ctrl+C to stop")
    try:
        auction_house.closing_scheduler.await_stopped()
    except KeyboardInterrupt:
        click.echo("Stopping ...")
    finally:
        auction_house.shutdown()


@app.command
@click.option("--auction-id", required=True, prompt="Auction ID", type=click.INT)
@click.option("--bidder-id", required=True, prompt="Bidder ID", type=click.INT)
@click.option(
    "--amount",
    required=True,
    prompt="Amount (minor units)",
    help="bid amount in the currency's minor unit, e.g., cents",
    type=click.INT,
)
def place_bid(auction_id: int, bidder_id: int, amount: int):
    """
    Places a bid on an auction
    """

    try:
        result = _get_app().place_bid(
            PlaceBidRequest(
                auction_id=AuctionId(auction_id),
                bidder_id=UserId(bidder_id),
                amount=Amount(amount),
            )
        )
    except AuctionHouseError as err:
        raise _rejected(err) from err

    click.echo("Bid was accepted")
    _echo_json(asdict(result))


@app.command
@click.option("--auction-id", required=True, prompt="Auction ID", type=click.INT)
def highest_bid(auction_id: int):
    """
    Displays the auction's highest bid
    """

    bid = _get_app().highest_bid(AuctionId(auction_id))
    if bid is None:
        click.echo("There are no bids")
    else:
        _echo_json(asdict(bid))


@app.command
@click.option("--auction-id", required=True, prompt="Auction ID", type=click.INT)
def create_order(auction_id: int):
    """
    Creates the order for the winner of a closed auction
    """

    try:
        order = _get_app().create_order_for_winner(AuctionId(auction_id))
    except AuctionHouseError as err:
        raise _rejected(err) from err

    click.echo("Order was created")
    _echo_json(asdict(order))


@app.command
@click.option("--order-id", required=True, prompt="Order ID", type=click.INT)
@click.option(
    "--status",
    type=click.Choice([status.name for status in OrderStatus], case_sensitive=False),
    default=None,
    help="if specified, then the order is transitioned to the status",
)
def order_status(order_id: int, status: str | None):
    """
    Displays the order, or updates its status
    """

    auction_house = _get_app()
    if status is None:
        order = auction_house.get_order(OrderId(order_id))
        if order is None:
            raise click.ClickException(f"order not found: {order_id}")
    else:
        try:
            order = auction_house.update_order_status(
                UpdateOrderStatusRequest(
                    order_id=OrderId(order_id),
                    status=OrderStatus[status.upper()],
                )
            )
        except AuctionHouseError as err:
            raise _rejected(err) from err

    _echo_json(asdict(order))


if __name__ == "__main__":
    app()
