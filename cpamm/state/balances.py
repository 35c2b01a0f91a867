"""
Multi-asset balance tracking.

Implements BalanceTable[Account, AssetId] -> Amount, the storage behind the
in-memory asset ledger.
"""

from typing import Dict, Tuple


# Type aliases
Account = str  # Holder, trader or custody account identifier
AssetId = str  # Asset identifier
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Zero balances are dropped to keep the table sparse; a missing entry reads
    as zero.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Account, AssetId], Amount] = {}

    def get(self, account: Account, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Account, asset: AssetId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, asset, new_balance)

    def move(self, asset: AssetId, sender: Account, recipient: Account, amount: Amount) -> None:
        """
        Move `amount` of `asset` between two accounts. Either both sides change
        or neither does.
        """
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        if self.get(sender, asset) < amount:
            raise ValueError(
                f"Insufficient balance: {sender} holds {self.get(sender, asset)} < {amount}"
            )
        self.add(sender, asset, -amount)
        self.add(recipient, asset, amount)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
