"""
Contract - Base class for objects living on the simulated chain.

A contract is an owned aggregate: all of its mutation is funneled through
methods marked @external, executed by the Chain inside a transaction that
is rolled back as a whole if any ContractError escapes.

Call kinds:
-----------
- @external: state-mutating entry point, reachable via Chain.transact/call
- @view: read-only entry point, reachable via Chain.view/call

Reentrancy:
-----------
@nonreentrant holds a boolean lock for the duration of the call. A nested
call back into any guarded method of the same contract raises ReentrantCall.
"""

import copy
import functools
from typing import TYPE_CHECKING, Any, Dict, Optional

from curveauction.core.errors import ReentrantCall

if TYPE_CHECKING:
    from curveauction.core.chain.chain import Chain


# =============================================================================
# Decorators
# =============================================================================


def external(fn):
    """Mark a method as a state-mutating entry point."""
    fn._call_kind = "external"
    return fn


def view(fn):
    """Mark a method as a read-only entry point."""
    fn._call_kind = "view"
    return fn


def nonreentrant(fn):
    """Reject re-entry into guarded methods while one is executing."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        if self._entered:
            raise ReentrantCall(f"Reentrant call to {type(self).__name__}.{fn.__name__}")
        self._entered = True
        try:
            return fn(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper


def call_kind(contract: "Contract", method: str) -> Optional[str]:
    """Return 'external', 'view' or None for a method name."""
    fn = getattr(type(contract), method, None)
    return getattr(fn, "_call_kind", None)


# =============================================================================
# Contract
# =============================================================================


class Contract:
    """
    Base class for chain-resident contracts.

    Attributes:
        chain: Chain the contract is deployed on
        address: Contract address
        implementation: Template address when deployed as a clone
    """

    def __init__(self, chain: "Chain", address: str):
        self.chain = chain
        self.address = address
        self.implementation: Optional[str] = None
        self._entered = False

    @classmethod
    def clone_of(cls, chain: "Chain", address: str, template: str) -> "Contract":
        """Create an uninitialised clone pinned to `template`."""
        clone = cls(chain, address)
        clone.implementation = template
        return clone

    # =========================================================================
    # Execution Context
    # =========================================================================

    @property
    def msg_sender(self) -> str:
        """Immediate caller of the executing method."""
        return self.chain.msg_sender

    @property
    def now(self) -> int:
        """Current block timestamp."""
        return self.chain.timestamp

    def _call(self, target: str, method: str, *args, **kwargs) -> Any:
        """Message call to another contract with this contract as sender."""
        return self.chain.call(self.address, target, method, *args, **kwargs)

    def _emit(self, name: str, **args) -> None:
        self.chain.emit(name, self.address, **args)

    # =========================================================================
    # Revert Support
    # =========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the contract's state (everything but the chain)."""
        return {
            key: copy.deepcopy(value)
            for key, value in vars(self).items()
            if key != "chain"
        }

    def restore(self, state: Dict[str, Any]) -> None:
        """Reset the contract's state to a previous snapshot."""
        for key in list(vars(self)):
            if key != "chain" and key not in state:
                delattr(self, key)
        vars(self).update(copy.deepcopy(state))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"


# =============================================================================
# Handles
# =============================================================================


class ContractHandle:
    """
    Caller-bound view of a deployed contract.

    External methods become transactions from `sender`, view methods
    become read-only calls:

        auction.connect(buyer).buy_tokens_with_stable_coin(20)
        auction.amount_due_for_purchase(20)
    """

    def __init__(self, chain: "Chain", address: str, sender: Optional[str] = None):
        self.chain = chain
        self.address = address
        self.sender = sender

    @property
    def contract(self) -> Contract:
        """The underlying contract object (for inspection)."""
        return self.chain.get_contract(self.address)

    def connect(self, sender: str) -> "ContractHandle":
        """Return a handle that sends calls from `sender`."""
        return ContractHandle(self.chain, self.address, sender)

    def static_call(self, method: str, *args, **kwargs) -> Any:
        """Dry-run an external method and return its result without committing."""
        return self.chain.static_call(self._require_sender(), self.address, method, *args, **kwargs)

    def _require_sender(self) -> str:
        if self.sender is None:
            raise ValueError(f"No sender bound to {self.address}; use connect(sender)")
        return self.sender

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        contract = self.chain.get_contract(self.address)
        kind = call_kind(contract, name)
        if kind == "external":
            return functools.partial(self.chain.transact, self._require_sender(), self.address, name)
        if kind == "view":
            return functools.partial(self.chain.view, self.sender, self.address, name)
        raise AttributeError(f"{type(contract).__name__} has no callable method {name!r}")

    def __eq__(self, other) -> bool:
        if isinstance(other, ContractHandle):
            return self.address == other.address
        if isinstance(other, str):
            return self.address == other.lower()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.address)

    def __repr__(self) -> str:
        return f"ContractHandle({self.address}, sender={self.sender})"
