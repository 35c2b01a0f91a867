"""
Pool share balance tracking.

Shares are an internal ownership ledger; they are not a transferable asset and
never leave the pool.
"""

from __future__ import annotations

from typing import Dict

from .balances import Account, Amount


class ShareTable:
    """
    Share balance table mapping holder -> share amount.

    Notes:
    - Share balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    - A running total is kept next to the table; `verify_total()` recomputes it.
    """

    def __init__(self) -> None:
        self._balances: Dict[Account, Amount] = {}
        self._total: Amount = 0

    @property
    def total(self) -> Amount:
        return self._total

    def get(self, holder: Account) -> Amount:
        """Get share balance for holder. Returns 0 if not found."""
        return self._balances.get(holder, 0)

    def add(self, holder: Account, delta: int) -> None:
        """Add delta to a share balance (delta may be negative)."""
        current = self.get(holder)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient share balance: {current} + {delta} = {new_balance} < 0"
            )
        if new_balance == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = new_balance
        self._total += delta

    def copy(self) -> "ShareTable":
        """Independent table with the same balances and total."""
        dup = ShareTable()
        dup._balances = dict(self._balances)
        dup._total = self._total
        return dup

    def get_all_balances(self) -> Dict[Account, Amount]:
        """Return all share balances, sorted by holder."""
        return {holder: self._balances[holder] for holder in sorted(self._balances)}

    def verify_total(self) -> bool:
        """True when the running total equals the sum of stored balances."""
        return sum(self._balances.values()) == self._total

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"ShareTable({len(self._balances)} holders, total={self._total})"
