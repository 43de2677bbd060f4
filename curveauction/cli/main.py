"""
Curve Auction CLI - Command Line Interface for the auction engine

Main entry point for all CLI commands.
"""

import logging

import click
from pydantic import ValidationError

from curveauction import __version__
from curveauction.core.config import load_config
from curveauction.core.errors import ContractError
from curveauction.utils.logger import setup_logging
from curveauction.utils.units import format_units, parse_ether

LOGIC_CHOICES = ["linear", "quadratic", "polynomial"]


def _parse_amount(ctx, param, value):
    """click callback: decimal token amount -> base units"""
    try:
        return parse_ether(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _curve(logic: str, degree):
    from curveauction.core.auction.pricing import PricingLogic, curve_for

    return curve_for(PricingLogic[logic.upper()], degree)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", type=click.Path(dir_okay=False), default=None, help="Read CURVEAUCTION_* settings from a .env file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, env_file):
    """Curve Auction - bonding-curve token sales on a simulated chain"""
    try:
        cfg = load_config(env_file)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    level = logging.DEBUG if debug else getattr(logging, cfg.log_level)
    setup_logging(level=level, log_dir=cfg.log_dir, log_to_file=cfg.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


# =============================================================================
# Pricing Commands
# =============================================================================


@cli.command("quote")
@click.option("--logic", type=click.Choice(LOGIC_CHOICES), default="linear", show_default=True)
@click.option("--starting-price", default="0", callback=_parse_amount, help="Price of the first unit")
@click.option("--slope", default="0", callback=_parse_amount, help="Charge per unit token")
@click.option("--sold", type=click.IntRange(min=0), default=0, show_default=True, help="Units already sold")
@click.option("--quantity", type=click.IntRange(min=0), required=True, help="Units to buy")
@click.option("--degree", type=int, default=None, help="Polynomial degree")
@click.pass_context
def quote(ctx, logic, starting_price, slope, sold, quantity, degree):
    """Cost of buying QUANTITY units after SOLD units"""
    if degree is None:
        degree = ctx.obj["config"].default_polynomial_degree
    try:
        curve = _curve(logic, degree)
        cost = curve.cost(sold, quantity, starting_price, slope)
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Curve:    {curve!r}")
    click.echo(f"Sold:     {sold}")
    click.echo(f"Quantity: {quantity}")
    click.echo(f"Cost:     {format_units(cost)}")


@cli.command("curve")
@click.option("--logic", type=click.Choice(LOGIC_CHOICES), default="linear", show_default=True)
@click.option("--starting-price", default="0", callback=_parse_amount, help="Price of the first unit")
@click.option("--slope", default="0", callback=_parse_amount, help="Charge per unit token")
@click.option("--units", type=click.IntRange(min=1), default=10, show_default=True, help="Units to list")
@click.option("--degree", type=int, default=None, help="Polynomial degree")
@click.pass_context
def curve(ctx, logic, starting_price, slope, units, degree):
    """Per-unit price schedule of a curve"""
    if degree is None:
        degree = ctx.obj["config"].default_polynomial_degree
    try:
        pricing = _curve(logic, degree)
        rows = [
            (i, pricing.unit_price(i, starting_price, slope), pricing.cost(0, i + 1, starting_price, slope))
            for i in range(units)
        ]
    except ContractError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"{pricing!r}")
    click.echo(f"{'unit':>6}  {'price':>16}  {'cumulative':>16}")
    click.echo("-" * 42)
    for index, price, total in rows:
        click.echo(f"{index:>6}  {format_units(price):>16}  {format_units(total):>16}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--supply", type=click.IntRange(min=1), default=500, show_default=True, help="Units offered")
@click.option("--slope", default="0.25", callback=_parse_amount, help="Charge per unit token")
@click.option("--quantity", type=click.IntRange(min=1), default=20, show_default=True, help="Units bought")
def demo(supply, slope, quantity):
    """Run an end-to-end auction on a fresh simulated chain"""
    from curveauction.core.auction import AuctionEntrypoint, AuctionParameters, PricingLogic
    from curveauction.core.chain import Chain
    from curveauction.core.factory import AuctionFactory
    from curveauction.core.token import ERC20
    from curveauction.utils.units import to_base_units

    if quantity > supply:
        raise click.BadParameter("quantity cannot exceed supply", param_hint="--quantity")

    click.echo("=" * 60)
    click.echo("  CURVE AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    # Setup
    click.echo("📦 Deploying contracts...")
    chain = Chain()
    operator = chain.new_account("operator")
    creator = chain.new_account("creator")
    buyer = chain.new_account("buyer")

    token = chain.deploy(ERC20, creator, "Asset", "AST", initial_supply=to_base_units(supply))
    stable = chain.deploy(ERC20, operator, "Stable", "USD")
    stable.mint(buyer, to_base_units(1_000_000))

    master = chain.deploy(AuctionEntrypoint, operator)
    factory = chain.deploy(AuctionFactory, operator, master.address)
    click.echo(f"  ✓ Asset token:  {token.address}")
    click.echo(f"  ✓ Stablecoin:   {stable.address}")
    click.echo(f"  ✓ Factory:      {factory.address}")
    click.echo()

    # Create
    click.echo("🏛️  Creating auction...")
    start = chain.timestamp + 60
    params = AuctionParameters(
        token_address=token.address,
        number_of_tokens=to_base_units(supply),
        starting_price=0,
        accepted_stable=stable.address,
        creator=creator,
        auction_start_time=start,
        auction_end_time=start + 3600,
        logic=PricingLogic.LINEAR,
    )
    predicted = factory.connect(creator).static_call("create_auction", params)
    address = factory.connect(creator).create_auction(params)
    auction = chain.at(address, creator)
    click.echo(f"  ✓ Predicted:    {predicted}")
    click.echo(f"  ✓ Deployed:     {address}")
    click.echo()

    # Fund
    click.echo("💰 Funding and pricing...")
    token.connect(creator).approve(address, params.number_of_tokens)
    auction.fund_auction()
    auction.set_slope(slope)
    click.echo(f"  ✓ Escrow:       {format_units(auction.escrow_balance())} AST")
    click.echo(f"  ✓ Slope:        {format_units(auction.charge_per_unit_token())}")
    click.echo()

    # Buy
    click.echo(f"🛒 Buyer purchases {quantity} units...")
    chain.increase_to(start)
    cost = auction.amount_due_for_purchase(quantity)
    stable.connect(buyer).approve(address, cost)
    auction.connect(buyer).buy_tokens_with_stable_coin(quantity)
    click.echo(f"  ✓ Cost:         {format_units(cost)} USD")
    click.echo(f"  ✓ Credited:     {format_units(auction.balances(buyer))} AST")
    click.echo()

    # Settle
    click.echo("⚖️  Settling after the window...")
    chain.increase_to(params.auction_end_time)
    auction.connect(buyer).claim_purchased_tokens()
    auction.withdraw_unsold_tokens()
    auction.withdraw_proceeds()
    click.echo(f"  ✓ Buyer:        {format_units(token.balance_of(buyer))} AST")
    click.echo(f"  ✓ Creator:      {format_units(token.balance_of(creator))} AST, "
               f"{format_units(stable.balance_of(creator))} USD")
    click.echo(f"  ✓ Escrow:       {format_units(auction.escrow_balance())} AST")
    click.echo()

    click.echo("📊 Final Statistics:")
    click.echo(f"  Auction: {auction.stats()}")
    click.echo(f"  Factory: {factory.stats()}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
