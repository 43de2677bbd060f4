"""
Unit tests for the auction instance contract.

Tests cover:
1. Initialisation of clones and the master template
2. Funding (single shot, transfer failures)
3. Slope guard
4. Quotes and purchases
5. Claims, unsold withdrawal and proceeds
6. Lifecycle states
"""

import pytest

from curveauction.core.auction import AuctionParameters, AuctionState, PricingLogic
from curveauction.core.errors import (
    AlreadyFunded,
    AlreadyInitialized,
    AlreadyWithdrawn,
    AuctionAlreadyActive,
    AuctionNotActive,
    AuctionNotEnded,
    InsufficientSupply,
    InvalidParameters,
    NotFunded,
    NothingToClaim,
    TransferFailed,
    Unauthorized,
)
from curveauction.core.token import ERC20
from curveauction.utils.units import WAD, parse_ether, to_base_units

SUPPLY = to_base_units(500)


# =============================================================================
# Initialisation
# =============================================================================


class TestInitialisation:
    """Tests for clone initialisation."""

    def test_master_cannot_be_initialised(self, master, operator, params):
        with pytest.raises(InvalidParameters):
            master.connect(operator).initialize(params)

    def test_clone_initialised_once(self, auction, params):
        with pytest.raises(AlreadyInitialized):
            auction.initialize(params)

    def test_getters(self, auction, params, creator, factory, master, token, stable):
        assert auction.creator() == creator
        assert auction.auction_start_time() == params.auction_start_time
        assert auction.auction_end_time() == params.auction_end_time
        assert auction.starting_bid_price() == 0
        assert auction.charge_per_unit_token() == 0
        assert auction.token_address() == token.address
        assert auction.accepted_stable() == stable.address
        assert auction.number_of_tokens() == SUPPLY
        assert auction.logic() == PricingLogic.LINEAR
        assert auction.factory() == factory.address
        assert auction.template() == master.address

    def test_created_state(self, auction):
        assert auction.state() == AuctionState.CREATED
        assert auction.funded() is False
        assert auction.escrow_balance() == 0

    def test_master_views_fail(self, master):
        with pytest.raises(InvalidParameters):
            master.creator()


# =============================================================================
# Funding
# =============================================================================


class TestFunding:
    """Tests for fund_auction()."""

    def test_fund_pulls_supply(self, auction, token, creator):
        before = token.balance_of(creator)
        token.approve(auction.address, SUPPLY)
        auction.fund_auction()
        assert auction.escrow_balance() == SUPPLY
        assert token.balance_of(creator) == before - SUPPLY
        assert auction.state() == AuctionState.FUNDED

    def test_anyone_can_trigger_funds_come_from_creator(self, auction, token, buyer):
        token.approve(auction.address, SUPPLY)
        auction.connect(buyer).fund_auction()
        assert auction.funded() is True
        assert token.balance_of(buyer) == 0

    def test_second_funding_rejected(self, funded_auction, token):
        token.approve(funded_auction.address, SUPPLY)
        with pytest.raises(AlreadyFunded):
            funded_auction.fund_auction()
        assert funded_auction.escrow_balance() == SUPPLY

    def test_without_allowance_fails(self, auction):
        with pytest.raises(TransferFailed):
            auction.fund_auction()
        assert auction.funded() is False

    def test_false_returning_token_fails(self, chain, factory, creator, make_params):
        lenient = chain.deploy(ERC20, creator, "Lenient", "LNT", initial_supply=SUPPLY, strict=False)
        address = factory.connect(creator).create_auction(make_params(token_address=lenient.address))
        auction = chain.at(address, creator)
        with pytest.raises(TransferFailed):
            auction.fund_auction()
        assert auction.funded() is False

    def test_funded_event(self, chain, funded_auction, creator):
        (event,) = chain.get_logs(funded_auction.address, "AuctionFunded")
        assert event.args == {"funder": creator, "amount": SUPPLY}


# =============================================================================
# Slope
# =============================================================================


class TestSetSlope:
    """Tests for set_slope()."""

    def test_creator_sets_slope(self, chain, auction):
        auction.set_slope(parse_ether("0.25"))
        assert auction.charge_per_unit_token() == parse_ether("0.25")
        assert chain.get_logs(auction.address, "SlopeSet")[-1].args == {"rate": parse_ether("0.25")}

    def test_non_creator_rejected(self, auction, buyer):
        with pytest.raises(Unauthorized):
            auction.connect(buyer).set_slope(1)

    def test_allowed_in_window_before_first_purchase(self, active_auction):
        active_auction.set_slope(WAD)
        assert active_auction.charge_per_unit_token() == WAD

    def test_locked_after_first_purchase(self, active_auction, buyer, buy):
        buy(active_auction, buyer, 1)
        with pytest.raises(AuctionAlreadyActive):
            active_auction.set_slope(WAD)

    def test_rejected_after_end(self, chain, funded_auction, params):
        chain.increase_to(params.auction_end_time)
        with pytest.raises(AuctionNotActive):
            funded_auction.set_slope(WAD)

    def test_negative_rate_rejected(self, auction):
        with pytest.raises(InvalidParameters):
            auction.set_slope(-1)


# =============================================================================
# Purchases
# =============================================================================


class TestPurchase:
    """Tests for quoting and buying."""

    def test_quote_before_funding(self, auction):
        auction.set_slope(parse_ether("0.25"))
        assert auction.amount_due_for_purchase(20) == parse_ether("47.5")

    def test_quote_rejects_negative(self, auction):
        with pytest.raises(InvalidParameters):
            auction.amount_due_for_purchase(-1)

    def test_buy(self, chain, active_auction, stable, buyer, buy):
        before = stable.balance_of(buyer)
        cost = buy(active_auction, buyer, 20)

        assert cost == parse_ether("47.5")
        assert active_auction.balances(buyer) == to_base_units(20)
        assert active_auction.total_units_sold() == 20
        assert active_auction.units_available() == 480
        assert active_auction.proceeds() == cost
        assert stable.balance_of(buyer) == before - cost

        (event,) = chain.get_logs(active_auction.address, "TokensPurchased")
        assert event.args == {"buyer": buyer, "quantity": 20, "cost": cost}

    def test_price_continues_from_units_sold(self, active_auction, buyer, other_buyer, buy):
        buy(active_auction, buyer, 20)
        assert active_auction.spot_price() == parse_ether("5")
        # 0.25 * (10*20 + 45)
        assert active_auction.amount_due_for_purchase(10) == parse_ether("61.25")
        assert buy(active_auction, other_buyer, 10) == parse_ether("61.25")

    def test_before_start_rejected(self, funded_auction, buyer):
        with pytest.raises(AuctionNotActive):
            funded_auction.connect(buyer).buy_tokens_with_stable_coin(1)

    def test_at_end_rejected(self, chain, active_auction, params, buyer):
        chain.increase_to(params.auction_end_time)
        with pytest.raises(AuctionNotActive):
            active_auction.connect(buyer).buy_tokens_with_stable_coin(1)

    def test_unfunded_rejected(self, chain, auction, params, buyer):
        chain.increase_to(params.auction_start_time)
        with pytest.raises(AuctionNotActive):
            auction.connect(buyer).buy_tokens_with_stable_coin(1)

    def test_zero_quantity_rejected(self, active_auction, buyer):
        with pytest.raises(InvalidParameters):
            active_auction.connect(buyer).buy_tokens_with_stable_coin(0)

    def test_beyond_supply_rejected(self, active_auction, buyer):
        with pytest.raises(InsufficientSupply):
            active_auction.connect(buyer).buy_tokens_with_stable_coin(501)

    def test_unpaid_purchase_reverts(self, active_auction, buyer):
        with pytest.raises(TransferFailed):
            active_auction.connect(buyer).buy_tokens_with_stable_coin(20)
        assert active_auction.total_units_sold() == 0
        assert active_auction.balances(buyer) == 0

    def test_whole_supply(self, active_auction, buyer, buy):
        buy(active_auction, buyer, 500)
        assert active_auction.units_available() == 0
        with pytest.raises(InsufficientSupply):
            active_auction.connect(buyer).buy_tokens_with_stable_coin(1)


# =============================================================================
# Settlement
# =============================================================================


@pytest.fixture
def ended_auction(chain, active_auction, params, buyer, buy):
    """20 units bought by `buyer`, clock at the end of the window."""
    buy(active_auction, buyer, 20)
    chain.increase_to(params.auction_end_time)
    return active_auction


class TestClaim:
    """Tests for claim_purchased_tokens()."""

    def test_claim_before_end_rejected(self, active_auction, buyer, buy):
        buy(active_auction, buyer, 20)
        with pytest.raises(AuctionNotEnded):
            active_auction.connect(buyer).claim_purchased_tokens()

    def test_claim(self, ended_auction, token, buyer):
        ended_auction.connect(buyer).claim_purchased_tokens()
        assert token.balance_of(buyer) == to_base_units(20)
        assert ended_auction.escrow_balance() == to_base_units(480)
        assert ended_auction.balances(buyer) == 0
        assert ended_auction.total_claimed() == 20

    def test_second_claim_rejected(self, ended_auction, token, buyer):
        ended_auction.connect(buyer).claim_purchased_tokens()
        with pytest.raises(NothingToClaim):
            ended_auction.connect(buyer).claim_purchased_tokens()
        assert token.balance_of(buyer) == to_base_units(20)

    def test_non_buyer_has_nothing(self, ended_auction, other_buyer):
        with pytest.raises(NothingToClaim):
            ended_auction.connect(other_buyer).claim_purchased_tokens()


class TestWithdrawUnsold:
    """Tests for withdraw_unsold_tokens()."""

    def test_non_creator_rejected(self, ended_auction, buyer):
        with pytest.raises(Unauthorized):
            ended_auction.connect(buyer).withdraw_unsold_tokens()

    def test_before_end_rejected(self, active_auction):
        with pytest.raises(AuctionNotEnded):
            active_auction.withdraw_unsold_tokens()

    def test_withdraw(self, ended_auction, token, creator):
        before = token.balance_of(creator)
        assert ended_auction.withdraw_unsold_tokens() == to_base_units(480)
        assert token.balance_of(creator) == before + to_base_units(480)
        assert ended_auction.unsold_withdrawn() is True

    def test_second_withdraw_rejected(self, ended_auction):
        ended_auction.withdraw_unsold_tokens()
        with pytest.raises(AlreadyWithdrawn):
            ended_auction.withdraw_unsold_tokens()

    def test_never_funded(self, chain, auction, params):
        chain.increase_to(params.auction_end_time)
        with pytest.raises(NotFunded):
            auction.withdraw_unsold_tokens()

    def test_buyers_can_still_claim_after_withdrawal(self, ended_auction, token, buyer):
        ended_auction.withdraw_unsold_tokens()
        ended_auction.connect(buyer).claim_purchased_tokens()
        assert token.balance_of(buyer) == to_base_units(20)
        assert ended_auction.escrow_balance() == 0


class TestWithdrawProceeds:
    """Tests for withdraw_proceeds()."""

    def test_withdraw(self, ended_auction, stable, creator):
        assert ended_auction.withdraw_proceeds() == parse_ether("47.5")
        assert stable.balance_of(creator) == parse_ether("47.5")
        assert ended_auction.proceeds() == 0

    def test_rules(self, ended_auction, buyer):
        with pytest.raises(Unauthorized):
            ended_auction.connect(buyer).withdraw_proceeds()
        ended_auction.withdraw_proceeds()
        with pytest.raises(AlreadyWithdrawn):
            ended_auction.withdraw_proceeds()

    def test_before_end_rejected(self, active_auction):
        with pytest.raises(AuctionNotEnded):
            active_auction.withdraw_proceeds()


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Tests for state() and stats()."""

    def test_states(self, chain, auction, token, params, buyer, buy):
        assert auction.state() == AuctionState.CREATED
        token.approve(auction.address, SUPPLY)
        auction.fund_auction()
        assert auction.state() == AuctionState.FUNDED
        chain.increase_to(params.auction_start_time)
        assert auction.state() == AuctionState.ACTIVE
        buy(auction, buyer, 20)
        chain.increase_to(params.auction_end_time)
        assert auction.state() == AuctionState.ENDED
        auction.connect(buyer).claim_purchased_tokens()
        assert auction.state() == AuctionState.ENDED
        auction.withdraw_unsold_tokens()
        assert auction.state() == AuctionState.SETTLED

    def test_expected_escrow_matches_balance(self, ended_auction, buyer):
        assert ended_auction.expected_escrow() == ended_auction.escrow_balance()
        ended_auction.connect(buyer).claim_purchased_tokens()
        assert ended_auction.expected_escrow() == ended_auction.escrow_balance()
        ended_auction.withdraw_unsold_tokens()
        assert ended_auction.expected_escrow() == ended_auction.escrow_balance() == 0

    def test_stats(self, ended_auction):
        stats = ended_auction.stats()
        assert stats["state"] == "ENDED"
        assert stats["units_sold"] == 20
        assert stats["buyers_pending"] == 1
        assert stats["spot_price"] == parse_ether("5")

    def test_quadratic_auction(self, chain, factory, creator, token, make_params, buyer, buy):
        params = make_params(logic=PricingLogic.QUADRATIC, starting_price=WAD)
        auction = chain.at(factory.connect(creator).create_auction(params), creator)
        token.approve(auction.address, SUPPLY)
        auction.fund_auction()
        auction.set_slope(WAD)
        chain.increase_to(params.auction_start_time)
        # 3*1 + (0 + 1 + 4)
        assert buy(auction, buyer, 3) == 8 * WAD


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
