"""Exception types for the pool engine.

Every error carries a stable ``category`` so callers can branch on the failure
class without matching on message text. Input-shaped errors also subclass
``ValueError``, matching the kernel layer.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for all pool engine failures."""

    category = "pool_error"


class InvalidAmountError(PoolError, ValueError):
    """Raised when an amount is zero, negative or not an int."""

    category = "invalid_input"


class AmountOverflowError(InvalidAmountError):
    """Raised when an amount or a resulting reserve leaves the integer domain."""


class RatioMismatchError(PoolError, ValueError):
    """Raised when a non-initial deposit is not at the pool's current ratio."""

    category = "ratio_mismatch"

    def __init__(self, amount_b: int, amount_b_required: int) -> None:
        self.amount_b = amount_b
        self.amount_b_required = amount_b_required
        super().__init__(f"ratio mismatch: amount_b must be {amount_b_required}, got {amount_b}")


class InsufficientSharesError(PoolError):
    """Raised when a holder tries to burn more shares than they hold."""

    category = "insufficient_shares"

    def __init__(self, holder: str, requested: int, available: int) -> None:
        self.holder = holder
        self.requested = requested
        self.available = available
        super().__init__(f"insufficient shares for {holder}: requested {requested}, holds {available}")


class PoolNotInitializedError(PoolError):
    """Raised when an operation needs reserves but the pool is empty."""

    category = "uninitialized_pool"


class DegenerateResultError(PoolError):
    """Raised when an operation would execute as a zero-value no-op."""

    category = "degenerate_result"


class AmountTooSmallError(DegenerateResultError):
    """Raised when a deposit mints zero shares or a withdrawal returns zero."""


class InsufficientOutputError(DegenerateResultError):
    """Raised when a swap would pay out nothing."""


class TransferFailedError(PoolError):
    """Raised when the asset ledger declines or fails a transfer."""

    category = "collaborator_failure"

    def __init__(self, message: str, *, leg: str) -> None:
        self.leg = leg
        super().__init__(message)


class RollbackFailedError(TransferFailedError):
    """Raised when compensating a partially executed operation also fails.

    Pool state has been restored; ``pending`` describes the ledger movement
    that still needs manual reconciliation.
    """

    def __init__(self, message: str, *, leg: str, pending: str) -> None:
        self.pending = pending
        super().__init__(f"{message}; unreconciled: {pending}", leg=leg)


class ReentrancyError(PoolError):
    """Raised when pool state changed underneath an in-flight ledger transfer."""

    category = "reentrancy"


class PoolInvariantError(PoolError):
    """Raised when a post-state violates one or more invariants."""

    category = "invariant_violation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class ConfigError(ValueError):
    """Raised for malformed pool configuration."""
