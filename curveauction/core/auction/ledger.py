"""
Escrow Ledger - Purchased-but-unclaimed units per buyer.

Purchases credit the ledger; claims drain a buyer's entry completely.
The ledger counts whole units; the auction converts to token base units
when it moves tokens.

Invariant:
    outstanding + total_claimed == total_credited
"""

from dataclasses import dataclass, field
from typing import Dict, List

from curveauction.core.errors import InvalidParameters, NothingToClaim


@dataclass
class EscrowLedger:
    """
    Buyer -> unclaimed unit count.

    Attributes:
        balances: Unclaimed units per buyer (zero entries are removed)
        total_credited: Units ever credited
        total_claimed: Units ever drained
    """
    balances: Dict[str, int] = field(default_factory=dict)
    total_credited: int = 0
    total_claimed: int = 0

    def balance_of(self, buyer: str) -> int:
        return self.balances.get(buyer, 0)

    @property
    def outstanding(self) -> int:
        """Units purchased but not yet claimed."""
        return self.total_credited - self.total_claimed

    def holders(self) -> List[str]:
        """Buyers with an unclaimed balance."""
        return list(self.balances)

    def credit(self, buyer: str, units: int) -> int:
        """Add `units` to a buyer's entry and return the new balance."""
        if units <= 0:
            raise InvalidParameters(f"Credit must be positive, got {units}")
        self.balances[buyer] = self.balance_of(buyer) + units
        self.total_credited += units
        return self.balances[buyer]

    def drain(self, buyer: str) -> int:
        """
        Zero a buyer's entry and return what it held.

        Raises:
            NothingToClaim: the buyer has no unclaimed units
        """
        units = self.balances.pop(buyer, 0)
        if units == 0:
            raise NothingToClaim(f"No purchased tokens to claim for {buyer}")
        self.total_claimed += units
        return units

    def check_invariants(self, total_units_sold: int) -> bool:
        """Entries sum to the outstanding total, which never exceeds units sold."""
        return (
            sum(self.balances.values()) == self.outstanding
            and self.outstanding + self.total_claimed <= total_units_sold
            and all(units > 0 for units in self.balances.values())
        )
