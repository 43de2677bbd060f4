"""
Auction Module.

This module provides the per-sale auction instance:
- Bonding-curve pricing (linear, quadratic, polynomial)
- Escrow ledger of purchased-but-unclaimed units
- Creation parameters and lifecycle states
- The AuctionEntrypoint contract
"""

from curveauction.core.auction.pricing import (
    PricingLogic,
    PricingCurve,
    LinearCurve,
    QuadraticCurve,
    PolynomialCurve,
    curve_for,
    power_sum,
)

from curveauction.core.auction.parameters import (
    AuctionParameters,
    AuctionState,
)

from curveauction.core.auction.ledger import EscrowLedger

from curveauction.core.auction.entrypoint import AuctionEntrypoint

__all__ = [
    # Pricing
    "PricingLogic",
    "PricingCurve",
    "LinearCurve",
    "QuadraticCurve",
    "PolynomialCurve",
    "curve_for",
    "power_sum",
    # Parameters
    "AuctionParameters",
    "AuctionState",
    # Escrow
    "EscrowLedger",
    # Contract
    "AuctionEntrypoint",
]
