"""
Auction Entrypoint - One bonding-curve token sale.

Lifecycle:
----------
    CREATED --fund_auction--> FUNDED --(start)--> ACTIVE --(end)--> ENDED ~~> SETTLED

1. The factory clones the master template and initialises the clone with
   frozen AuctionParameters.
2. fund_auction() pulls exactly `number_of_tokens` of the asset token from
   the creator into escrow (single shot).
3. While start <= now < end, buyers quote with amount_due_for_purchase()
   and buy with buy_tokens_with_stable_coin(); payment is collected
   immediately, purchased units are credited to the escrow ledger.
4. Once now >= end, buyers claim their units and the creator withdraws the
   unsold remainder and the proceeds. SETTLED is reached when the escrow
   no longer holds any asset tokens; there is no explicit terminal call.

Custody:
--------
Every method that makes an external token call is @nonreentrant and applies
its own state changes before the call (checks-effects-interactions). A
failed or False-returning token call raises TransferFailed, which reverts
the whole transaction, effects included.

Units:
------
`quantity` arguments are whole units. Balances, prices and costs are
18-decimal base units: balances(buyer) == units * 10**18.
"""

from typing import Optional

from curveauction.core.auction.ledger import EscrowLedger
from curveauction.core.auction.parameters import AuctionParameters, AuctionState
from curveauction.core.auction.pricing import PricingCurve, PricingLogic, curve_for
from curveauction.core.chain.contract import Contract, external, nonreentrant, view
from curveauction.core.config import config
from curveauction.core.errors import (
    AlreadyFunded,
    AlreadyInitialized,
    AlreadyWithdrawn,
    AuctionAlreadyActive,
    AuctionNotActive,
    AuctionNotEnded,
    ContractError,
    InsufficientSupply,
    InvalidParameters,
    NotFunded,
    TransferFailed,
    Unauthorized,
)
from curveauction.utils.logger import get_logger
from curveauction.utils.validation import validate_amount, validate_positive

logger = get_logger("auction")


class AuctionEntrypoint(Contract):
    """
    Auction instance: escrow, pricing and settlement for one sale.

    Deployed directly it acts as the master template and cannot be
    initialised; the factory deploys initialisable clones of it.
    """

    def __init__(self, chain, address: str):
        super().__init__(chain, address)
        self._initialized = False
        self._factory: Optional[str] = None
        self._params: Optional[AuctionParameters] = None

        self._funded = False
        self._slope = 0
        self._units_sold = 0
        self._ledger = EscrowLedger()
        self._unsold_withdrawn = False
        self._proceeds_withdrawn = False

    # =========================================================================
    # Initialisation
    # =========================================================================

    @external
    def initialize(self, params: AuctionParameters) -> None:
        """
        Bind this clone to its creation parameters (once).

        The caller is recorded as the factory.
        """
        if self.implementation is None:
            raise InvalidParameters("Master template cannot be initialised")
        if self._initialized:
            raise AlreadyInitialized(f"Auction {self.address} already initialised")

        params.validate(now=self.now)

        self._params = params.normalized()
        self._factory = self.msg_sender
        self._initialized = True

        logger.info(
            f"Auction {self.address[:10]}... initialised: "
            f"{self._params.supply_units} units, logic={self._params.logic.name}, "
            f"window=[{self._params.auction_start_time}, {self._params.auction_end_time})"
        )

    @property
    def params(self) -> AuctionParameters:
        if self._params is None:
            raise InvalidParameters(f"Auction {self.address} is not initialised")
        return self._params

    @property
    def curve(self) -> PricingCurve:
        return curve_for(self.params.logic, self.params.polynomial_degree)

    # =========================================================================
    # Funding and Configuration
    # =========================================================================

    @external
    @nonreentrant
    def fund_auction(self) -> None:
        """
        Escrow the full supply, pulled from the creator's approved balance.

        Anyone may trigger it; the tokens always come from the creator.

        Raises:
            AlreadyFunded: supply already escrowed
            TransferFailed: allowance/balance insufficient or short delivery
        """
        params = self.params
        if self._funded:
            raise AlreadyFunded(f"Auction {self.address} already funded")

        self._funded = True

        before = self._balance_of(params.token_address)
        self._safe_transfer_from(params.token_address, params.creator, params.number_of_tokens)
        received = self._balance_of(params.token_address) - before
        if received != params.number_of_tokens:
            raise TransferFailed(f"Escrow received {received}, expected {params.number_of_tokens}")

        self._emit("AuctionFunded", funder=self.msg_sender, amount=params.number_of_tokens)
        logger.info(f"Auction {self.address[:10]}... funded with {params.number_of_tokens} base units")

    @external
    def set_slope(self, rate: int) -> None:
        """
        Set the curve coefficient (charge per unit token).

        Allowed until the first purchase; afterwards the price path of
        units already sold is locked.

        Raises:
            Unauthorized: caller is not the creator
            AuctionNotActive: the window has closed
            AuctionAlreadyActive: units have already been sold
        """
        self._require_creator()

        valid, err = validate_amount(rate, "rate")
        if not valid:
            raise InvalidParameters(err)
        if self.now >= self.params.auction_end_time:
            raise AuctionNotActive("Auction has ended")
        if self._units_sold > 0:
            raise AuctionAlreadyActive("Slope is locked after the first purchase")

        self._slope = rate
        self._emit("SlopeSet", rate=rate)
        logger.info(f"Auction {self.address[:10]}... slope set to {rate}")

    # =========================================================================
    # Trading
    # =========================================================================

    @view
    def amount_due_for_purchase(self, quantity: int) -> int:
        """
        Stablecoin cost of buying `quantity` more units right now.

        Pure function of the current state; callable before funding.
        """
        valid, err = validate_amount(quantity, "quantity")
        if not valid:
            raise InvalidParameters(err)

        params = self.params
        return self.curve.cost(self._units_sold, quantity, params.starting_price, self._slope)

    @external
    @nonreentrant
    def buy_tokens_with_stable_coin(self, quantity: int) -> int:
        """
        Buy `quantity` units at the current curve price.

        Returns:
            Cost paid, in stablecoin base units

        Raises:
            AuctionNotActive: not funded, or outside [start, end)
            InsufficientSupply: fewer than `quantity` units remain
            TransferFailed: payment could not be collected
        """
        self._require_active()

        valid, err = validate_positive(quantity, "quantity")
        if not valid:
            raise InvalidParameters(err)

        params = self.params
        remaining = params.supply_units - self._units_sold
        if quantity > remaining:
            raise InsufficientSupply(f"Requested {quantity} units, only {remaining} left")

        buyer = self.msg_sender
        cost = self.amount_due_for_purchase(quantity)

        self._ledger.credit(buyer, quantity)
        self._units_sold += quantity

        self._safe_transfer_from(params.accepted_stable, buyer, cost)

        self._emit("TokensPurchased", buyer=buyer, quantity=quantity, cost=cost)
        logger.info(
            f"Auction {self.address[:10]}... {self.chain.label(buyer)} bought {quantity} units "
            f"for {cost} ({self._units_sold}/{params.supply_units} sold)"
        )
        return cost

    # =========================================================================
    # Settlement
    # =========================================================================

    @external
    @nonreentrant
    def claim_purchased_tokens(self) -> int:
        """
        Transfer the caller's purchased units after the window closes.

        Returns:
            Asset-token base units transferred

        Raises:
            AuctionNotEnded: window still open
            NothingToClaim: no unclaimed purchase
        """
        self._require_ended()

        buyer = self.msg_sender
        units = self._ledger.drain(buyer)
        amount = units * config.scale

        self._safe_transfer(self.params.token_address, buyer, amount)

        self._emit("TokensClaimed", buyer=buyer, amount=amount)
        logger.info(f"Auction {self.address[:10]}... {self.chain.label(buyer)} claimed {units} units")
        return amount

    @external
    @nonreentrant
    def withdraw_unsold_tokens(self) -> int:
        """
        Return the unsold supply to the creator (once).

        Returns:
            Asset-token base units transferred

        Raises:
            Unauthorized: caller is not the creator
            AuctionNotEnded: window still open
            NotFunded: nothing was ever escrowed
            AlreadyWithdrawn: unsold supply already returned
        """
        self._require_creator()
        self._require_ended()

        if not self._funded:
            raise NotFunded(f"Auction {self.address} was never funded")
        if self._unsold_withdrawn:
            raise AlreadyWithdrawn("Unsold tokens already withdrawn")

        params = self.params
        self._unsold_withdrawn = True
        amount = params.number_of_tokens - self._units_sold * config.scale

        if amount > 0:
            self._safe_transfer(params.token_address, params.creator, amount)

        self._emit("UnsoldTokensWithdrawn", creator=params.creator, amount=amount)
        logger.info(f"Auction {self.address[:10]}... creator withdrew {amount} unsold base units")
        return amount

    @external
    @nonreentrant
    def withdraw_proceeds(self) -> int:
        """
        Send all collected stablecoin to the creator (once, after the window).

        Returns:
            Stablecoin base units transferred
        """
        self._require_creator()
        self._require_ended()

        if self._proceeds_withdrawn:
            raise AlreadyWithdrawn("Proceeds already withdrawn")

        params = self.params
        self._proceeds_withdrawn = True
        amount = self._balance_of(params.accepted_stable)

        if amount > 0:
            self._safe_transfer(params.accepted_stable, params.creator, amount)

        self._emit("ProceedsWithdrawn", creator=params.creator, amount=amount)
        logger.info(f"Auction {self.address[:10]}... creator withdrew {amount} proceeds")
        return amount

    # =========================================================================
    # Views
    # =========================================================================

    @view
    def creator(self) -> str:
        return self.params.creator

    @view
    def factory(self) -> Optional[str]:
        return self._factory

    @view
    def template(self) -> Optional[str]:
        """Master template this instance was cloned from."""
        return self.implementation

    @view
    def token_address(self) -> str:
        return self.params.token_address

    @view
    def accepted_stable(self) -> str:
        return self.params.accepted_stable

    @view
    def number_of_tokens(self) -> int:
        return self.params.number_of_tokens

    @view
    def auction_start_time(self) -> int:
        return self.params.auction_start_time

    @view
    def auction_end_time(self) -> int:
        return self.params.auction_end_time

    @view
    def starting_bid_price(self) -> int:
        return self.params.starting_price

    @view
    def logic(self) -> PricingLogic:
        return self.params.logic

    @view
    def charge_per_unit_token(self) -> int:
        return self._slope

    @view
    def funded(self) -> bool:
        return self._funded

    @view
    def unsold_withdrawn(self) -> bool:
        return self._unsold_withdrawn

    @view
    def proceeds_withdrawn(self) -> bool:
        return self._proceeds_withdrawn

    @view
    def total_units_sold(self) -> int:
        return self._units_sold

    @view
    def total_claimed(self) -> int:
        """Units claimed so far."""
        return self._ledger.total_claimed

    @view
    def units_available(self) -> int:
        return self.params.supply_units - self._units_sold

    @view
    def balances(self, buyer: str) -> int:
        """Unclaimed purchased tokens of `buyer`, in base units."""
        return self._ledger.balance_of(buyer.lower()) * config.scale

    @view
    def spot_price(self) -> int:
        """Price of the next unit."""
        return self.curve.unit_price(self._units_sold, self.params.starting_price, self._slope)

    @view
    def escrow_balance(self) -> int:
        """Asset tokens actually held by this instance."""
        return self._balance_of(self.params.token_address)

    @view
    def expected_escrow(self) -> int:
        """Asset tokens this instance should hold according to its bookkeeping."""
        if not self._funded:
            return 0
        params = self.params
        claimed = self._ledger.total_claimed * config.scale
        unsold = params.number_of_tokens - self._units_sold * config.scale
        return params.number_of_tokens - claimed - (unsold if self._unsold_withdrawn else 0)

    @view
    def proceeds(self) -> int:
        """Stablecoin held by this instance."""
        return self._balance_of(self.params.accepted_stable)

    @view
    def state(self) -> AuctionState:
        params = self.params
        if not self._funded:
            return AuctionState.CREATED
        if self.now < params.auction_start_time:
            return AuctionState.FUNDED
        if self.now < params.auction_end_time:
            return AuctionState.ACTIVE
        if self.expected_escrow() == 0:
            return AuctionState.SETTLED
        return AuctionState.ENDED

    @view
    def stats(self) -> dict:
        """Snapshot of the sale for display."""
        params = self.params
        return {
            "address": self.address,
            "state": self.state().name,
            "logic": params.logic.name,
            "supply_units": params.supply_units,
            "units_sold": self._units_sold,
            "units_claimed": self._ledger.total_claimed,
            "buyers_pending": len(self._ledger.holders()),
            "starting_price": params.starting_price,
            "slope": self._slope,
            "spot_price": self.spot_price(),
        }

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_creator(self) -> None:
        if self.msg_sender != self.params.creator:
            raise Unauthorized(f"Only the creator can call this on {self.address}")

    def _require_active(self) -> None:
        params = self.params
        if not self._funded:
            raise AuctionNotActive("Auction is not funded")
        if not params.auction_start_time <= self.now < params.auction_end_time:
            raise AuctionNotActive(
                f"Outside auction window [{params.auction_start_time}, {params.auction_end_time}) "
                f"at {self.now}"
            )

    def _require_ended(self) -> None:
        if self.now < self.params.auction_end_time:
            raise AuctionNotEnded(f"Auction ends at {self.params.auction_end_time}, now {self.now}")

    def _balance_of(self, token: str) -> int:
        return self._call(token, "balance_of", self.address)

    def _safe_transfer(self, token: str, to: str, amount: int) -> None:
        try:
            ok = self._call(token, "transfer", to, amount)
        except ContractError as exc:
            raise TransferFailed(f"transfer of {amount} to {to} failed: {exc}") from exc
        if not ok:
            raise TransferFailed(f"transfer of {amount} to {to} returned False")

    def _safe_transfer_from(self, token: str, owner: str, amount: int) -> None:
        try:
            ok = self._call(token, "transfer_from", owner, self.address, amount)
        except ContractError as exc:
            raise TransferFailed(f"transfer_from {owner} of {amount} failed: {exc}") from exc
        if not ok:
            raise TransferFailed(f"transfer_from {owner} of {amount} returned False")
