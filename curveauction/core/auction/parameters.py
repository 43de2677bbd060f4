"""
Auction parameters and lifecycle states.

AuctionParameters are supplied by the creator at creation time and frozen
for the life of the instance.

Units:
------
`number_of_tokens` and `starting_price` are 18-decimal base units;
`number_of_tokens` must be a whole number of tokens, since purchases are
made in whole units.
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional

from curveauction.core.auction.pricing import PricingLogic, curve_for
from curveauction.core.config import config
from curveauction.core.errors import InvalidParameters
from curveauction.crypto import hex_to_bytes, normalize_address
from curveauction.utils.validation import (
    validate_address,
    validate_amount,
    validate_integer,
    validate_positive,
    validate_window,
)


# =============================================================================
# Enums
# =============================================================================


class AuctionState(IntEnum):
    """Lifecycle state of an auction instance."""
    CREATED = 0   # Initialised, supply not yet escrowed
    FUNDED = 1    # Supply escrowed, window not yet open
    ACTIVE = 2    # Funded and start <= now < end
    ENDED = 3     # Window closed, settlement in progress
    SETTLED = 4   # Window closed and escrow fully drained


# =============================================================================
# Parameters
# =============================================================================


@dataclass(frozen=True)
class AuctionParameters:
    """
    Immutable creation parameters of one auction.

    Attributes:
        token_address: Asset token being sold
        number_of_tokens: Total supply offered (base units)
        starting_price: Price of the first unit (base units of the stablecoin)
        accepted_stable: Payment token
        creator: Owner of the sale (funding, slope, unsold withdrawal)
        auction_start_time: First second of the active window (inclusive)
        auction_end_time: End of the active window (exclusive)
        logic: Pricing curve family
        polynomial_degree: Exponent of the Polynomial curve
    """
    token_address: str
    number_of_tokens: int
    starting_price: int
    accepted_stable: str
    creator: str
    auction_start_time: int
    auction_end_time: int
    logic: PricingLogic = PricingLogic.LINEAR
    polynomial_degree: int = config.default_polynomial_degree

    @property
    def supply_units(self) -> int:
        """Whole units on offer."""
        return self.number_of_tokens // config.scale

    def normalized(self) -> "AuctionParameters":
        """Copy with lowercase addresses and the logic coerced to PricingLogic."""
        return replace(
            self,
            token_address=normalize_address(self.token_address),
            accepted_stable=normalize_address(self.accepted_stable),
            creator=normalize_address(self.creator),
            logic=PricingLogic(self.logic),
        )

    def validate(self, now: Optional[int] = None) -> None:
        """
        Check the parameters describe a sale that can run.

        Args:
            now: Current timestamp; the window may not start before it

        Raises:
            InvalidParameters: first violated constraint
        """
        checks = (
            validate_address(self.token_address, "token_address"),
            validate_address(self.accepted_stable, "accepted_stable"),
            validate_address(self.creator, "creator"),
            validate_positive(self.number_of_tokens, "number_of_tokens"),
            validate_amount(self.starting_price, "starting_price"),
            validate_window(self.auction_start_time, self.auction_end_time, now),
            validate_integer(self.polynomial_degree, "polynomial_degree", 1, config.max_polynomial_degree),
        )
        for valid, err in checks:
            if not valid:
                raise InvalidParameters(err)

        if self.token_address.lower() == self.accepted_stable.lower():
            raise InvalidParameters("token_address and accepted_stable must differ")

        if self.number_of_tokens % config.scale != 0:
            raise InvalidParameters(
                f"number_of_tokens must be a whole number of tokens, got {self.number_of_tokens}"
            )

        # raises InvalidParameters for unknown logic or out-of-range degree
        curve_for(self.logic, self.polynomial_degree)

    def to_bytes(self) -> bytes:
        """Canonical encoding: one 32-byte big-endian word per field."""
        words = (
            int.from_bytes(hex_to_bytes(self.token_address), "big"),
            self.number_of_tokens,
            self.starting_price,
            int.from_bytes(hex_to_bytes(self.accepted_stable), "big"),
            int.from_bytes(hex_to_bytes(self.creator), "big"),
            self.auction_start_time,
            self.auction_end_time,
            int(self.logic),
            self.polynomial_degree,
        )
        return b"".join(word.to_bytes(32, byteorder="big") for word in words)
