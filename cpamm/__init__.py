"""
cpamm: a two-asset constant-product AMM pool engine.

Public API:
- `Pool(asset_a, asset_b, ledger=..., sink=..., config=...)`
- `PoolConfig`, `load_pool_config(path)`
- `InMemoryAssetLedger`, `CollectingSink`, `LoggingSink`, `JsonLinesSink`
- `get_amount_out`, `isqrt` (pure math)
"""

from .core import (
    AmountTooSmallError,
    InsufficientOutputError,
    InsufficientSharesError,
    InvalidAmountError,
    Pool,
    PoolConfig,
    PoolError,
    PoolNotInitializedError,
    RatioMismatchError,
    TransferFailedError,
    get_amount_out,
    isqrt,
    load_pool_config,
)
from .integration import CollectingSink, InMemoryAssetLedger, JsonLinesSink, LoggingSink

__version__ = "0.1.0"

__all__ = [
    "Pool",
    "PoolConfig",
    "load_pool_config",
    "get_amount_out",
    "isqrt",
    "InMemoryAssetLedger",
    "CollectingSink",
    "LoggingSink",
    "JsonLinesSink",
    "PoolError",
    "InvalidAmountError",
    "RatioMismatchError",
    "InsufficientSharesError",
    "PoolNotInitializedError",
    "AmountTooSmallError",
    "InsufficientOutputError",
    "TransferFailedError",
]
