"""
State management for cpamm pools
"""

from .balances import BalanceTable
from .pools import PoolState, compute_pool_id
from .shares import ShareTable

__all__ = [
    "BalanceTable",
    "PoolState",
    "compute_pool_id",
    "ShareTable",
]
