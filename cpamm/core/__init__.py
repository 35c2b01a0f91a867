"""
Core pool algorithms and the stateful engine
"""

from .config import PoolConfig, load_pool_config
from .cpmm import (
    compute_share_burn,
    compute_share_mint,
    get_amount_out,
    isqrt,
    swap_exact_in,
)
from .errors import (
    AmountOverflowError,
    AmountTooSmallError,
    ConfigError,
    DegenerateResultError,
    InsufficientOutputError,
    InsufficientSharesError,
    InvalidAmountError,
    PoolError,
    PoolInvariantError,
    PoolNotInitializedError,
    RatioMismatchError,
    ReentrancyError,
    RollbackFailedError,
    TransferFailedError,
)
from .events import DepositEvent, EventKind, PoolEvent, SwapEvent, WithdrawalEvent
from .invariants import check_all
from .pool import Pool

__all__ = [
    "PoolConfig",
    "load_pool_config",
    "compute_share_burn",
    "compute_share_mint",
    "get_amount_out",
    "isqrt",
    "swap_exact_in",
    "AmountOverflowError",
    "AmountTooSmallError",
    "ConfigError",
    "DegenerateResultError",
    "InsufficientOutputError",
    "InsufficientSharesError",
    "InvalidAmountError",
    "PoolError",
    "PoolInvariantError",
    "PoolNotInitializedError",
    "RatioMismatchError",
    "ReentrancyError",
    "RollbackFailedError",
    "TransferFailedError",
    "DepositEvent",
    "EventKind",
    "PoolEvent",
    "SwapEvent",
    "WithdrawalEvent",
    "check_all",
    "Pool",
]
