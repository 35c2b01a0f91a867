"""
Asset ledger collaborator.

The pool never stores asset balances itself; it asks an `AssetLedger` to move
units between a holder's account and the pool's custody account. A transfer
either moves the full amount or nothing. A `False` return and a raised
exception are both treated as a failed transfer by the engine.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from ..state.balances import Account, Amount, AssetId, BalanceTable


logger = logging.getLogger(__name__)

# (direction, asset, account, amount) -> True to make the transfer fail.
FailureHook = Callable[[str, AssetId, Account, Amount], bool]


@runtime_checkable
class AssetLedger(Protocol):
    def transfer_in(self, asset: AssetId, sender: Account, recipient: Account, amount: Amount) -> bool:
        """Move `amount` of `asset` from `sender` into `recipient` (the pool's custody)."""
        ...

    def transfer_out(self, asset: AssetId, recipient: Account, amount: Amount) -> bool:
        """Move `amount` of `asset` from the pool's custody to `recipient`."""
        ...


class InMemoryAssetLedger:
    """
    Ledger over a `BalanceTable`, bound to one custody account.

    `fail_when` is an optional hook for tests: it sees every transfer before it
    is applied and can veto it by returning True.
    """

    def __init__(self, custody_account: Account, *, fail_when: Optional[FailureHook] = None) -> None:
        if not isinstance(custody_account, str) or not custody_account:
            raise ValueError("custody_account must be a non-empty string")
        self.custody_account = custody_account
        self.balances = BalanceTable()
        self.fail_when = fail_when
        self.transfer_count = 0

    def mint(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """Credit `amount` of `asset` to `account` out of thin air (test/demo funding)."""
        if amount < 0:
            raise ValueError(f"mint amount must be non-negative: {amount}")
        self.balances.add(account, asset, amount)

    def balance_of(self, account: Account, asset: AssetId) -> Amount:
        return self.balances.get(account, asset)

    def custody_balance(self, asset: AssetId) -> Amount:
        return self.balances.get(self.custody_account, asset)

    def transfer_in(self, asset: AssetId, sender: Account, recipient: Account, amount: Amount) -> bool:
        if self.fail_when is not None and self.fail_when("in", asset, sender, amount):
            logger.debug("transfer_in vetoed: %s %s from %s", amount, asset, sender)
            return False
        if amount < 0 or self.balances.get(sender, asset) < amount:
            logger.debug("transfer_in declined: %s holds %s %s < %s", sender, self.balances.get(sender, asset), asset, amount)
            return False
        self.balances.move(asset, sender, recipient, amount)
        self.transfer_count += 1
        return True

    def transfer_out(self, asset: AssetId, recipient: Account, amount: Amount) -> bool:
        if self.fail_when is not None and self.fail_when("out", asset, recipient, amount):
            logger.debug("transfer_out vetoed: %s %s to %s", amount, asset, recipient)
            return False
        if amount < 0 or self.custody_balance(asset) < amount:
            logger.debug("transfer_out declined: custody holds %s %s < %s", self.custody_balance(asset), asset, amount)
            return False
        self.balances.move(asset, self.custody_account, recipient, amount)
        self.transfer_count += 1
        return True

    def __repr__(self) -> str:
        return f"InMemoryAssetLedger(custody={self.custody_account}, {self.balances!r})"
