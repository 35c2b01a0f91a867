"""Invariant checkers for pool state.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).
"""

from __future__ import annotations

from typing import Callable, Optional

from ..state.pools import PoolState
from ..state.shares import ShareTable


def inv_reserve_a_zero_iff_shares_zero(s: PoolState) -> bool:
    return (s.reserve_a == 0) == (s.total_shares == 0)


def inv_reserve_b_zero_iff_shares_zero(s: PoolState) -> bool:
    return (s.reserve_b == 0) == (s.total_shares == 0)


def inv_seeded_reserves_positive(s: PoolState) -> bool:
    if s.total_shares == 0:
        return True
    return s.reserve_a > 0 and s.reserve_b > 0


INVARIANTS: dict[str, Callable[[PoolState], bool]] = {
    "reserve_a_zero_iff_shares_zero": inv_reserve_a_zero_iff_shares_zero,
    "reserve_b_zero_iff_shares_zero": inv_reserve_b_zero_iff_shares_zero,
    "seeded_reserves_positive": inv_seeded_reserves_positive,
}


def check_all(s: PoolState, shares: Optional[ShareTable] = None, *, max_amount: Optional[int] = None) -> list[str]:
    """Return the IDs of all violated invariants (empty list = all pass).

    `shares` adds the share-ledger checks; `max_amount` adds the integer-domain
    bound on reserves and total shares.
    """
    violations = [name for name, fn in INVARIANTS.items() if not fn(s)]
    if shares is not None:
        if shares.total != s.total_shares:
            violations.append("share_total_matches_pool")
        if not shares.verify_total():
            violations.append("share_sum_matches_total")
    if max_amount is not None:
        if s.reserve_a > max_amount or s.reserve_b > max_amount or s.total_shares > max_amount:
            violations.append("amounts_within_domain")
    return violations
