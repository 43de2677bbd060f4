"""
Chain - In-process host ledger for auction contracts.

Conceptual Background:
---------------------
The auction engine is written against a ledger with the usual smart-contract
execution model. The Chain reproduces the parts of that model the engine
relies on:

1. **Serial ordering**: transactions execute one at a time, in call order.
   There is no internal parallelism; a later transaction always observes
   the effects of every earlier one.
2. **Atomicity**: a transaction either commits all of its effects or none.
   Before executing, the complete chain state is snapshotted; if anything
   raises, contract storage, deployments, nonces and events are restored.
3. **Message calls**: contracts call each other through the chain, which
   tracks the call stack so `msg_sender` is always the immediate caller.
4. **Block time**: a single timestamp shared by all contracts, moved only
   by explicit time travel.

Dry runs:
--------
static_call() executes a transaction normally and then unconditionally
restores the snapshot, returning the result. This is how a caller learns
e.g. a to-be-created auction's address before committing.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from curveauction.core.chain.contract import Contract, ContractHandle, call_kind
from curveauction.core.errors import ExecutionError
from curveauction.crypto import (
    ZERO_ADDRESS,
    compute_contract_address,
    generate_keypair,
    normalize_address,
)
from curveauction.utils.logger import get_logger

logger = get_logger("chain")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class Event:
    """A log entry emitted by a contract."""
    name: str
    address: str
    args: Dict[str, Any] = field(default_factory=dict)
    block_number: int = 0
    timestamp: int = 0


@dataclass
class Frame:
    """One level of the message-call stack."""
    sender: str
    address: str


# =============================================================================
# Chain
# =============================================================================


class Chain:
    """
    Serial, atomic execution environment for contracts.

    Attributes:
        timestamp: Current block timestamp (seconds)
        block_number: Number of committed transactions
        contracts: Address -> deployed contract
        nonces: Deployer address -> deployment counter
        events: Committed event log
    """

    def __init__(self, timestamp: Optional[int] = None):
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self.block_number = 0

        self.contracts: Dict[str, Contract] = {}
        self.nonces: Dict[str, int] = {}
        self.events: List[Event] = []
        self.accounts: Dict[str, str] = {}  # address -> label

        self._frames: List[Frame] = []

    # =========================================================================
    # Accounts
    # =========================================================================

    def new_account(self, label: str = "") -> str:
        """Create a fresh externally-owned account and return its address."""
        address = generate_keypair().address
        self.accounts[address] = label or f"account{len(self.accounts)}"
        logger.debug(f"New account {self.accounts[address]}: {address}")
        return address

    def label(self, address: str) -> str:
        """Human-readable name for an address."""
        if address in self.accounts:
            return self.accounts[address]
        if address in self.contracts:
            return type(self.contracts[address]).__name__
        return address

    # =========================================================================
    # Execution Context
    # =========================================================================

    @property
    def msg_sender(self) -> str:
        """Immediate caller of the currently executing method."""
        if not self._frames:
            return ZERO_ADDRESS
        return self._frames[-1].sender

    # =========================================================================
    # Code Lookup
    # =========================================================================

    def get_code(self, address: str) -> Optional[Contract]:
        """Contract at `address`, or None for accounts / empty addresses."""
        return self.contracts.get(normalize_address(address))

    def has_code(self, address: str) -> bool:
        return self.get_code(address) is not None

    def get_contract(self, address: str) -> Contract:
        contract = self.get_code(address)
        if contract is None:
            raise ExecutionError(f"No contract at {address}")
        return contract

    def at(self, address: str, sender: Optional[str] = None) -> ContractHandle:
        """Handle for the contract at `address`."""
        self.get_contract(address)
        return ContractHandle(self, normalize_address(address), sender)

    # =========================================================================
    # Deployment
    # =========================================================================

    def deploy(self, contract_cls: Type[Contract], deployer: str, *args, **kwargs) -> ContractHandle:
        """
        Deploy a contract in its own transaction.

        The constructor runs with `deployer` as msg_sender.

        Returns:
            Handle bound to `deployer`
        """
        if self._frames:
            raise ExecutionError("deploy() is a top-level transaction")

        deployer = normalize_address(deployer)
        snapshot = self._snapshot()
        try:
            nonce = self.nonces.get(deployer, 0)
            address = compute_contract_address(deployer, nonce)
            self.nonces[deployer] = nonce + 1

            self._frames.append(Frame(sender=deployer, address=address))
            try:
                contract = contract_cls(self, address, *args, **kwargs)
            finally:
                self._frames.pop()

            self.contracts[address] = contract
        except Exception:
            self._restore(snapshot)
            raise

        self.block_number += 1
        logger.info(f"Deployed {contract_cls.__name__} at {address} (deployer={self.label(deployer)})")
        return ContractHandle(self, address, deployer)

    def deploy_clone(self, template: str, address: str) -> Contract:
        """
        Install a clone of the contract at `template` at `address`.

        The clone has the template's code but fresh storage, and is pinned
        to the template address for its whole life. Only valid inside a
        running transaction.
        """
        if not self._frames:
            raise ExecutionError("deploy_clone() must run inside a transaction")
        if address in self.contracts:
            raise ExecutionError(f"Address {address} already has code")

        template_contract = self.get_contract(template)
        clone = type(template_contract).clone_of(self, address, template_contract.address)
        self.contracts[address] = clone

        logger.debug(f"Cloned {type(clone).__name__} {template_contract.address} -> {address}")
        return clone

    # =========================================================================
    # Calls
    # =========================================================================

    def transact(self, sender: str, address: str, method: str, *args, **kwargs) -> Any:
        """
        Execute a state-mutating transaction.

        Any exception reverts every effect of the transaction and is re-raised.
        """
        if self._frames:
            raise ExecutionError("transact() cannot be nested; contracts use call()")

        snapshot = self._snapshot()
        try:
            result = self.call(sender, address, method, *args, **kwargs)
        except Exception as exc:
            self._restore(snapshot)
            logger.debug(f"Reverted {method} on {self.label(normalize_address(address))}: "
                         f"{type(exc).__name__}: {exc}")
            raise

        self.block_number += 1
        return result

    def static_call(self, sender: str, address: str, method: str, *args, **kwargs) -> Any:
        """Execute a transaction, return its result, and discard all its effects."""
        if self._frames:
            raise ExecutionError("static_call() cannot be nested")

        snapshot = self._snapshot()
        try:
            return self.call(sender, address, method, *args, **kwargs)
        finally:
            self._restore(snapshot)

    def view(self, sender: Optional[str], address: str, method: str, *args, **kwargs) -> Any:
        """Execute a read-only method."""
        contract = self.get_contract(address)
        if call_kind(contract, method) != "view":
            raise ExecutionError(f"{type(contract).__name__}.{method} is not a view")
        return self.call(sender or ZERO_ADDRESS, address, method, *args, **kwargs)

    def call(self, sender: str, address: str, method: str, *args, **kwargs) -> Any:
        """
        Message call: run `method` on the contract at `address` as `sender`.

        Used directly by contracts for nested calls; rollback is handled by
        the enclosing transaction.
        """
        address = normalize_address(address)
        contract = self.get_contract(address)
        if call_kind(contract, method) is None:
            raise ExecutionError(f"{type(contract).__name__} has no callable method {method!r}")

        self._frames.append(Frame(sender=normalize_address(sender), address=address))
        try:
            return getattr(contract, method)(*args, **kwargs)
        finally:
            self._frames.pop()

    # =========================================================================
    # Events
    # =========================================================================

    def emit(self, name: str, address: str, **args) -> None:
        """Append an event to the log of the running transaction."""
        self.events.append(Event(
            name=name,
            address=address,
            args=args,
            block_number=self.block_number,
            timestamp=self.timestamp,
        ))

    def get_logs(self, address: Optional[str] = None, name: Optional[str] = None) -> List[Event]:
        """Committed events, optionally filtered by emitter and name."""
        if address is not None:
            address = normalize_address(address)
        return [
            event for event in self.events
            if (address is None or event.address == address)
            and (name is None or event.name == name)
        ]

    # =========================================================================
    # Time
    # =========================================================================

    def sleep(self, seconds: int) -> int:
        """Advance block time by `seconds`."""
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self.timestamp += seconds
        return self.timestamp

    def increase_to(self, timestamp: int) -> int:
        """Advance block time to an absolute timestamp."""
        if timestamp < self.timestamp:
            raise ValueError(f"Time cannot move backwards: {timestamp} < {self.timestamp}")
        self.timestamp = timestamp
        return self.timestamp

    # =========================================================================
    # Revert Support
    # =========================================================================

    def _snapshot(self) -> Tuple[Dict[str, Contract], Dict[str, int], Dict[str, dict], int]:
        return (
            dict(self.contracts),
            dict(self.nonces),
            {address: contract.snapshot() for address, contract in self.contracts.items()},
            len(self.events),
        )

    def _restore(self, snapshot) -> None:
        contracts, nonces, states, event_count = snapshot
        self.contracts = contracts
        self.nonces = nonces
        for address, state in states.items():
            contracts[address].restore(state)
        del self.events[event_count:]

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"Chain(block={self.block_number}, timestamp={self.timestamp}, contracts={len(self.contracts)})"
