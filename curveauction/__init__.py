"""
Curve Auction

A token-sale auction engine simulated on an in-process host ledger:
- Factory deploying auction instances from a swappable master template
- Bonding-curve pricing (linear, quadratic, polynomial)
- Escrowed supply with post-window claims and unsold withdrawal
"""

__version__ = "0.1.0"
