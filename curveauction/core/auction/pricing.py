"""
Pricing - Bonding-curve cost computation for token sales.

Every curve prices unit number i (0-based, counted over the whole sale) as

    price(i) = p0 + m * i**k

with p0 the starting price, m the slope ("charge per unit token") and k the
curve degree. Buying q units when s units are already sold costs the
discrete sum of those unit prices:

    cost(s, q) = q*p0 + m * (P_k(s+q) - P_k(s)),    P_k(n) = sum_{i<n} i**k

Curves:
-------
- Linear (k=1):     P_1(n) = n(n-1)/2
- Quadratic (k=2):  P_2(n) = (n-1)n(2n-1)/6
- Polynomial (k):   P_k(n) via Faulhaber's formula, exact in integers

Because the cost is a difference of prefix sums, a purchase split in two
costs exactly the same as the combined purchase:

    cost(s, q1 + q2) == cost(s, q1) + cost(s + q1, q2)

All arithmetic is integer fixed point (p0 and m are 18-decimal base units
per unit); results leaving the uint256 range raise ArithmeticOverflow.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
from fractions import Fraction
from functools import lru_cache
from math import comb
from typing import List

from curveauction.core.config import config
from curveauction.core.errors import ArithmeticOverflow, InvalidParameters
from curveauction.utils.logger import get_logger
from curveauction.utils.validation import MAX_UINT256

logger = get_logger("pricing")


# =============================================================================
# Enums
# =============================================================================


class PricingLogic(IntEnum):
    """Curve family selected at auction creation."""
    LINEAR = 0
    QUADRATIC = 1
    POLYNOMIAL = 2


# =============================================================================
# Checked Arithmetic
# =============================================================================


def _check(value: int) -> int:
    if value > MAX_UINT256:
        raise ArithmeticOverflow(f"Result {value} exceeds uint256")
    return value


def checked_add(a: int, b: int) -> int:
    """a + b, raising ArithmeticOverflow beyond uint256."""
    return _check(a + b)


def checked_mul(a: int, b: int) -> int:
    """a * b, raising ArithmeticOverflow beyond uint256."""
    return _check(a * b)


# =============================================================================
# Power Sums
# =============================================================================


@lru_cache(maxsize=None)
def bernoulli_numbers(count: int) -> List[Fraction]:
    """
    B_0 .. B_{count-1} with the B_1 = -1/2 convention.

    B_m = -1/(m+1) * sum_{j<m} C(m+1, j) * B_j
    """
    numbers: List[Fraction] = []
    for m in range(count):
        if m == 0:
            numbers.append(Fraction(1))
            continue
        total = sum(comb(m + 1, j) * numbers[j] for j in range(m))
        numbers.append(-total / (m + 1))
    return numbers


def power_sum(n: int, k: int) -> int:
    """
    Sum of i**k for i in [0, n).

    Faulhaber: P_k(n) = 1/(k+1) * sum_{j=0..k} C(k+1, j) * B_j * n**(k+1-j)
    """
    if n <= 0:
        return 0
    if k == 0:
        return n

    bernoulli = bernoulli_numbers(k + 1)
    total = sum(
        comb(k + 1, j) * bernoulli[j] * n ** (k + 1 - j)
        for j in range(k + 1)
    )
    # Faulhaber sums of integers are integers, so the Fraction is whole
    return int(total / (k + 1))


# =============================================================================
# Curves
# =============================================================================


class PricingCurve(ABC):
    """Pure cost function over (units_sold, quantity, starting_price, slope)."""

    logic: PricingLogic
    degree: int

    @abstractmethod
    def prefix_sum(self, n: int) -> int:
        """sum of i**degree for i in [0, n)."""

    def unit_price(self, index: int, starting_price: int, slope: int) -> int:
        """Price of unit number `index` (0-based across the sale)."""
        return checked_add(starting_price, checked_mul(slope, index ** self.degree))

    def cost(self, units_sold: int, quantity: int, starting_price: int, slope: int) -> int:
        """
        Total cost of buying `quantity` units after `units_sold` units.

        Args:
            units_sold: Units sold before this purchase
            quantity: Units requested
            starting_price: Base price per unit (base units)
            slope: Curve coefficient (base units)

        Returns:
            Cost in payment-token base units
        """
        if units_sold < 0 or quantity < 0 or starting_price < 0 or slope < 0:
            raise InvalidParameters("Pricing inputs must be non-negative")
        if quantity == 0:
            return 0

        increment = self.prefix_sum(units_sold + quantity) - self.prefix_sum(units_sold)
        base = checked_mul(quantity, starting_price)
        return checked_add(base, checked_mul(slope, increment))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(degree={self.degree})"


class LinearCurve(PricingCurve):
    """price(i) = p0 + m*i"""

    logic = PricingLogic.LINEAR
    degree = 1

    def prefix_sum(self, n: int) -> int:
        if n <= 0:
            return 0
        return n * (n - 1) // 2


class QuadraticCurve(PricingCurve):
    """price(i) = p0 + m*i**2"""

    logic = PricingLogic.QUADRATIC
    degree = 2

    def prefix_sum(self, n: int) -> int:
        if n <= 0:
            return 0
        return (n - 1) * n * (2 * n - 1) // 6


class PolynomialCurve(PricingCurve):
    """price(i) = p0 + m*i**degree"""

    logic = PricingLogic.POLYNOMIAL

    def __init__(self, degree: int = config.default_polynomial_degree):
        if isinstance(degree, bool) or not isinstance(degree, int):
            raise InvalidParameters(f"Polynomial degree must be int, got {type(degree).__name__}")
        if not 1 <= degree <= config.max_polynomial_degree:
            raise InvalidParameters(
                f"Polynomial degree must be in [1, {config.max_polynomial_degree}], got {degree}"
            )
        self.degree = degree

    def prefix_sum(self, n: int) -> int:
        return power_sum(n, self.degree)


def curve_for(logic: PricingLogic, degree: int = config.default_polynomial_degree) -> PricingCurve:
    """
    Curve strategy for a pricing logic.

    `degree` is only consulted for PricingLogic.POLYNOMIAL.
    """
    try:
        logic = PricingLogic(logic)
    except ValueError as exc:
        raise InvalidParameters(f"Unknown pricing logic: {logic!r}") from exc

    if logic == PricingLogic.LINEAR:
        curve = LinearCurve()
    elif logic == PricingLogic.QUADRATIC:
        curve = QuadraticCurve()
    elif logic == PricingLogic.POLYNOMIAL:
        curve = PolynomialCurve(degree)
    else:
        raise InvalidParameters(f"Unknown pricing logic: {logic!r}")

    logger.debug(f"{logic.name} -> {curve!r}")
    return curve


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "PricingLogic",
    "PricingCurve",
    "LinearCurve",
    "QuadraticCurve",
    "PolynomialCurve",
    "curve_for",
    "power_sum",
    "checked_add",
    "checked_mul",
]
