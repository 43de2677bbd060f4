"""
ERC20 - Reference fungible token for the simulated chain.

The auction engine only consumes the standard token interface:

    transfer(to, amount) -> bool
    transfer_from(owner, to, amount) -> bool
    approve(spender, amount) -> bool
    balance_of(address) -> int

This module supplies a plain implementation of it for the asset token and
the stablecoin, with 18-decimal base units.

Failure modes:
-------------
- strict=True (default): failures revert with InsufficientBalance /
  InsufficientAllowance
- strict=False: failures return False and leave state untouched, like
  tokens that do not revert
"""

from typing import Dict

from curveauction.core.chain.contract import Contract, external, view
from curveauction.core.config import config
from curveauction.core.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidParameters,
    Unauthorized,
)
from curveauction.crypto import ZERO_ADDRESS, normalize_address
from curveauction.utils.logger import get_logger
from curveauction.utils.validation import validate_address, validate_amount

logger = get_logger("token")


class ERC20(Contract):
    """
    Standard fungible token.

    Attributes:
        name: Token name
        symbol: Ticker symbol
        owner: Deployer, the only account allowed to mint
        strict: Revert on failure (True) or return False (False)
    """

    decimals = config.token_decimals

    def __init__(
        self,
        chain,
        address: str,
        name: str = "Token",
        symbol: str = "TKN",
        initial_supply: int = 0,
        strict: bool = True,
    ):
        super().__init__(chain, address)
        self.name = name
        self.symbol = symbol
        self.owner = self.msg_sender
        self.strict = strict

        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[str, Dict[str, int]] = {}

        if initial_supply:
            self._mint(self.owner, initial_supply)

    # =========================================================================
    # Views
    # =========================================================================

    @view
    def total_supply(self) -> int:
        return self._total_supply

    @view
    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    @view
    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(normalize_address(owner), {}).get(normalize_address(spender), 0)

    # =========================================================================
    # Transfers
    # =========================================================================

    @external
    def transfer(self, to: str, amount: int) -> bool:
        """Move `amount` from the caller to `to`."""
        return self._transfer(self.msg_sender, to, amount)

    @external
    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        """Move `amount` from `owner` to `to` using the caller's allowance."""
        spender = self.msg_sender
        owner = normalize_address(owner)

        allowed = self.allowance(owner, spender)
        if allowed < amount:
            if self.strict:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance {allowed} < {amount} for spender {spender}"
                )
            return False

        if self.balance_of(owner) < amount:
            if self.strict:
                raise InsufficientBalance(f"{self.symbol}: balance {self.balance_of(owner)} < {amount}")
            return False

        self._allowances.setdefault(owner, {})[spender] = allowed - amount
        return self._transfer(owner, to, amount)

    @external
    def approve(self, spender: str, amount: int) -> bool:
        """Allow `spender` to move up to `amount` of the caller's tokens."""
        valid, err = validate_amount(amount)
        if not valid:
            raise InvalidParameters(err)

        owner = self.msg_sender
        spender = normalize_address(spender)
        self._allowances.setdefault(owner, {})[spender] = amount
        self._emit("Approval", owner=owner, spender=spender, amount=amount)
        return True

    @external
    def mint(self, to: str, amount: int) -> bool:
        """Create `amount` new tokens for `to` (owner only)."""
        if self.msg_sender != self.owner:
            raise Unauthorized(f"{self.symbol}: only owner can mint")
        self._mint(to, amount)
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _transfer(self, sender: str, to: str, amount: int) -> bool:
        valid, err = validate_amount(amount)
        if not valid:
            raise InvalidParameters(err)
        valid, err = validate_address(to, "to")
        if not valid:
            raise InvalidParameters(err)

        sender = normalize_address(sender)
        to = normalize_address(to)

        balance = self._balances.get(sender, 0)
        if balance < amount:
            if self.strict:
                raise InsufficientBalance(f"{self.symbol}: balance {balance} < {amount}")
            return False

        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount

        self._emit("Transfer", sender=sender, to=to, amount=amount)
        logger.debug(f"{self.symbol} transfer {amount} {self.chain.label(sender)} -> {self.chain.label(to)}")
        return True

    def _mint(self, to: str, amount: int) -> None:
        valid, err = validate_amount(amount)
        if not valid:
            raise InvalidParameters(err)

        to = normalize_address(to)
        self._total_supply += amount
        self._balances[to] = self._balances.get(to, 0) + amount
        self._emit("Transfer", sender=ZERO_ADDRESS, to=to, amount=amount)
