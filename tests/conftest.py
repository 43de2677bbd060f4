"""
Shared fixtures: a fresh chain with tokens, a master template, a factory
and auctions at each lifecycle stage.
"""

import pytest

from curveauction.core.auction import AuctionEntrypoint, AuctionParameters, PricingLogic
from curveauction.core.chain import Chain
from curveauction.core.factory import AuctionFactory
from curveauction.core.token import ERC20
from curveauction.utils.units import parse_ether, to_base_units

# Default auction parameters
GENESIS_TIME = 1_700_000_000
DEFAULT_START_DELAY = 100
DEFAULT_DURATION = 3600  # 1 hour
DEFAULT_SUPPLY = 500  # units
DEFAULT_SLOPE = parse_ether("0.25")
STABLE_FAUCET = to_base_units(1_000_000)


@pytest.fixture
def chain():
    return Chain(timestamp=GENESIS_TIME)


@pytest.fixture
def operator(chain):
    return chain.new_account("operator")


@pytest.fixture
def creator(chain):
    return chain.new_account("creator")


@pytest.fixture
def buyer(chain):
    return chain.new_account("buyer")


@pytest.fixture
def other_buyer(chain):
    return chain.new_account("other_buyer")


@pytest.fixture
def token(chain, creator):
    """Asset token; the creator holds 1000 units."""
    return chain.deploy(ERC20, creator, "Asset", "AST", initial_supply=to_base_units(1000))


@pytest.fixture
def stable(chain, operator, buyer, other_buyer):
    """Stablecoin; both buyers hold plenty."""
    stable = chain.deploy(ERC20, operator, "Stable", "USD")
    stable.mint(buyer, STABLE_FAUCET)
    stable.mint(other_buyer, STABLE_FAUCET)
    return stable


@pytest.fixture
def master(chain, operator):
    return chain.deploy(AuctionEntrypoint, operator)


@pytest.fixture
def factory(chain, operator, master):
    return chain.deploy(AuctionFactory, operator, master.address)


@pytest.fixture
def make_params(chain, token, stable, creator):
    """Build AuctionParameters with defaults, overridable per field."""

    def _make(**overrides):
        start = chain.timestamp + DEFAULT_START_DELAY
        fields = dict(
            token_address=token.address,
            number_of_tokens=to_base_units(DEFAULT_SUPPLY),
            starting_price=0,
            accepted_stable=stable.address,
            creator=creator,
            auction_start_time=start,
            auction_end_time=start + DEFAULT_DURATION,
            logic=PricingLogic.LINEAR,
        )
        fields.update(overrides)
        return AuctionParameters(**fields)

    return _make


@pytest.fixture
def params(make_params):
    return make_params()


@pytest.fixture
def auction(chain, factory, creator, params):
    """Created but unfunded auction, handle bound to the creator."""
    address = factory.connect(creator).create_auction(params)
    return chain.at(address, creator)


@pytest.fixture
def funded_auction(auction, token, params):
    token.approve(auction.address, params.number_of_tokens)
    auction.fund_auction()
    return auction


@pytest.fixture
def active_auction(chain, funded_auction, params):
    """Funded, slope 0.25, clock at the start of the window."""
    funded_auction.set_slope(DEFAULT_SLOPE)
    chain.increase_to(params.auction_start_time)
    return funded_auction


@pytest.fixture
def buy(stable):
    """Approve the exact cost and buy `quantity` units as `who`."""

    def _buy(auction, who, quantity):
        cost = auction.amount_due_for_purchase(quantity)
        stable.connect(who).approve(auction.address, cost)
        auction.connect(who).buy_tokens_with_stable_coin(quantity)
        return cost

    return _buy
