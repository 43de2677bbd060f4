"""
Error taxonomy for contract calls.

Every exception derived from ContractError reverts the transaction that
raised it: the chain restores all state touched by the call.
"""


class ContractError(Exception):
    """A contract call failed and its transaction is reverted."""


class ExecutionError(ContractError):
    """No contract at the target address, or no such external method."""


class ReentrantCall(ContractError):
    """A guarded method was entered again before it returned."""


# =============================================================================
# Token errors
# =============================================================================


class TokenError(ContractError):
    """Failure inside a fungible-token contract."""


class InsufficientBalance(TokenError):
    pass


class InsufficientAllowance(TokenError):
    pass


# =============================================================================
# Auction and factory errors
# =============================================================================


class AuctionError(ContractError):
    """Failure inside an auction instance or the factory."""


class Unauthorized(AuctionError):
    """Caller is not allowed to invoke a restricted operation."""


class InvalidParameters(AuctionError):
    """Malformed construction parameters or call arguments."""


class InvalidTemplate(AuctionError):
    """Address holds no auction template code."""


class AlreadyInitialized(AuctionError):
    pass


class AlreadyFunded(AuctionError):
    pass


class AlreadyWithdrawn(AuctionError):
    pass


class NotFunded(AuctionError):
    pass


class AuctionNotActive(AuctionError):
    """Call requires the active window [start, end)."""


class AuctionAlreadyActive(AuctionError):
    """Call is only allowed before trading has begun."""


class AuctionNotEnded(AuctionError):
    """Call requires the window to have closed."""


class InsufficientSupply(AuctionError):
    pass


class NothingToClaim(AuctionError):
    pass


class TransferFailed(AuctionError):
    """An underlying token transfer returned False or reverted."""


class ArithmeticOverflow(AuctionError):
    """A pricing computation left the uint256 range."""
