"""
Pool engine: the stateful shell around the CPMM kernels.

Each mutating operation runs under one re-entrant lock per pool and follows the
same shape:

1. Validate inputs and compute the transition against the current snapshot (pure).
2. Move funds through the asset ledger and publish the new snapshot, ordered so
   that payouts happen only after the state change (withdraw, swap).
3. On any ledger failure, undo the state change with inverse deltas and
   compensate any leg that already moved, then re-raise.
4. Notify the sink; sink failures are logged and never roll back.

Readers take no lock. The immutable `PoolState` and a copy-on-write share table
are published together as one snapshot, so `get_reserves()` always returns a
coherent pair and `snapshot()` returns reserves and share balances that agree.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from ..integration.ledger import AssetLedger
from ..integration.sinks import NotificationSink
from ..state.balances import Account, Amount, AssetId
from ..state.pools import PoolState, compute_pool_id
from ..state.shares import ShareTable
from .config import PoolConfig
from .cpmm import compute_share_burn, compute_share_mint, get_amount_out, require_amount, swap_exact_in
from .errors import (
    AmountOverflowError,
    InsufficientSharesError,
    PoolInvariantError,
    PoolNotInitializedError,
    ReentrancyError,
    RollbackFailedError,
    TransferFailedError,
)
from .events import DepositEvent, PoolEvent, SwapEvent, WithdrawalEvent
from .invariants import check_all


logger = logging.getLogger(__name__)


class _Snapshot(NamedTuple):
    """Published view of a pool. Neither field is mutated after publication."""
    state: PoolState
    shares: ShareTable


class Pool:
    """
    A two-asset constant-product pool with an internal share ledger.

    Args:
        asset_a: First asset (prices are quoted as B per A)
        asset_b: Second asset
        ledger: Asset ledger that custodies the reserves
        sink: Optional observer for completed operations
        config: Fee, price scale and integer-domain parameters
        custody_account: Ledger account holding the reserves (defaults to pool_id)
    """

    def __init__(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        *,
        ledger: AssetLedger,
        sink: Optional[NotificationSink] = None,
        config: Optional[PoolConfig] = None,
        custody_account: Optional[Account] = None,
    ) -> None:
        self.config = config if config is not None else PoolConfig()
        self.pool_id = compute_pool_id(
            asset_a,
            asset_b,
            fee_numerator=self.config.fee_numerator,
            fee_denominator=self.config.fee_denominator,
        )
        self.custody_account = custody_account if custody_account is not None else self.pool_id
        self._ledger = ledger
        self._sink = sink
        self._snap = _Snapshot(PoolState(asset_a=asset_a, asset_b=asset_b), ShareTable())
        self._lock = threading.RLock()
        self._sequence = 0

    # -- Read-only queries ---------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._snap.state

    @property
    def asset_a(self) -> AssetId:
        return self._snap.state.asset_a

    @property
    def asset_b(self) -> AssetId:
        return self._snap.state.asset_b

    @property
    def total_shares(self) -> Amount:
        return self._snap.state.total_shares

    def get_reserves(self) -> Tuple[Amount, Amount]:
        s = self._snap.state
        return s.reserve_a, s.reserve_b

    def get_price(self) -> Amount:
        """B per A, scaled by `config.price_scale` and rounded down."""
        s = self._snap.state
        if s.reserve_a == 0:
            raise PoolNotInitializedError("reserve A is zero")
        return (s.reserve_b * self.config.price_scale) // s.reserve_a

    def share_of(self, holder: Account) -> Amount:
        return self._snap.shares.get(holder)

    def share_holders(self) -> Dict[Account, Amount]:
        return self._snap.shares.get_all_balances()

    def snapshot(self) -> Tuple[PoolState, Dict[Account, Amount]]:
        """Pool state and sorted share balances, taken from the same transition."""
        snap = self._snap
        return snap.state, snap.shares.get_all_balances()

    def get_amount_out(self, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        """Pure quote against caller-supplied reserves, using this pool's fee."""
        return get_amount_out(amount_in, reserve_in, reserve_out, self.config)

    def quote(self, amount_in: Amount, *, a_to_b: bool = True) -> Amount:
        """Quote a swap against the current reserves without executing it."""
        s = self._snap.state
        if not s.is_seeded:
            raise PoolNotInitializedError("pool has no reserves to quote against")
        _, _, reserve_in, reserve_out = s.swap_sides(a_to_b)
        return get_amount_out(amount_in, reserve_in, reserve_out, self.config)

    # -- Mutating operations -------------------------------------------------

    def deposit(self, holder: Account, amount_a: Amount, amount_b: Amount) -> Amount:
        """
        Deposit both assets and mint shares to `holder`.

        The first deposit sets the price and mints isqrt(amount_a * amount_b).
        Later deposits must match the current ratio exactly.
        """
        with self._lock:
            pre = self._snap.state
            shares = compute_share_mint(
                pre.reserve_a, pre.reserve_b, pre.total_shares, amount_a, amount_b, self.config
            )
            self._require_within_domain("reserve_a", pre.reserve_a + amount_a)
            self._require_within_domain("reserve_b", pre.reserve_b + amount_b)

            self._transfer_in(pre.asset_a, holder, amount_a, leg="deposit.in_a")
            try:
                self._transfer_in(pre.asset_b, holder, amount_b, leg="deposit.in_b")
            except TransferFailedError:
                self._compensate_out(pre.asset_a, holder, amount_a, leg="deposit.refund_a")
                raise

            if self._snap.state is not pre:
                self._compensate_out(pre.asset_a, holder, amount_a, leg="deposit.refund_a")
                self._compensate_out(pre.asset_b, holder, amount_b, leg="deposit.refund_b")
                raise ReentrancyError("pool state changed while deposit transfers were in flight")

            self._commit(delta_a=amount_a, delta_b=amount_b, holder=holder, delta_shares=shares)
            event = DepositEvent(
                pool_id=self.pool_id,
                sequence=self._next_sequence(),
                holder=holder,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_minted=shares,
            )
            logger.debug("deposit holder=%s amounts=(%s, %s) shares=%s", holder, amount_a, amount_b, shares)
            self._emit(event)
            return shares

    def withdraw(self, holder: Account, share_amount: Amount) -> Tuple[Amount, Amount]:
        """
        Burn `share_amount` of `holder`'s shares for a proportional slice of both reserves.

        Shares and reserves are debited before any payout, so a re-entrant call
        from the ledger finds the shares already gone.
        """
        with self._lock:
            require_amount("share_amount", share_amount, self.config)
            held = self._snap.shares.get(holder)
            if held < share_amount:
                raise InsufficientSharesError(holder, share_amount, held)

            pre = self._snap.state
            amount_a, amount_b = compute_share_burn(
                share_amount, pre.reserve_a, pre.reserve_b, pre.total_shares, self.config
            )

            self._commit(delta_a=-amount_a, delta_b=-amount_b, holder=holder, delta_shares=-share_amount)
            try:
                self._transfer_out(pre.asset_a, holder, amount_a, leg="withdraw.out_a")
            except TransferFailedError:
                self._rollback(delta_a=amount_a, delta_b=amount_b, holder=holder, delta_shares=share_amount)
                raise
            try:
                self._transfer_out(pre.asset_b, holder, amount_b, leg="withdraw.out_b")
            except TransferFailedError:
                self._rollback(delta_a=amount_a, delta_b=amount_b, holder=holder, delta_shares=share_amount)
                self._compensate_in(pre.asset_a, holder, amount_a, leg="withdraw.clawback_a")
                raise

            event = WithdrawalEvent(
                pool_id=self.pool_id,
                sequence=self._next_sequence(),
                holder=holder,
                amount_a=amount_a,
                amount_b=amount_b,
                shares_burned=share_amount,
            )
            logger.debug("withdraw holder=%s shares=%s amounts=(%s, %s)", holder, share_amount, amount_a, amount_b)
            self._emit(event)
            return amount_a, amount_b

    def swap(self, trader: Account, a_to_b: bool, amount_in: Amount) -> Amount:
        """
        Swap `amount_in` of one asset for the other along the constant-product curve.

        The output is priced against the reserves as they were before this
        swap's input lands; the 0.3% fee stays in the pool.
        """
        with self._lock:
            require_amount("amount_in", amount_in, self.config)
            pre = self._snap.state
            if pre.reserve_a == 0 or pre.reserve_b == 0:
                raise PoolNotInitializedError("cannot swap against an empty pool")

            asset_in, asset_out, reserve_in, reserve_out = pre.swap_sides(a_to_b)
            res = swap_exact_in(reserve_in, reserve_out, amount_in, self.config)
            self._require_within_domain("reserve_in", res.new_reserve_in)
            amount_out = res.amount_out

            self._transfer_in(asset_in, trader, amount_in, leg="swap.in")
            if self._snap.state is not pre:
                self._compensate_out(asset_in, trader, amount_in, leg="swap.refund_in")
                raise ReentrancyError("pool state changed while swap input was in flight")

            delta_a, delta_b = (amount_in, -amount_out) if a_to_b else (-amount_out, amount_in)
            self._commit(delta_a=delta_a, delta_b=delta_b)
            try:
                self._transfer_out(asset_out, trader, amount_out, leg="swap.out")
            except TransferFailedError:
                self._rollback(delta_a=-delta_a, delta_b=-delta_b)
                self._compensate_out(asset_in, trader, amount_in, leg="swap.refund_in")
                raise

            event = SwapEvent(
                pool_id=self.pool_id,
                sequence=self._next_sequence(),
                trader=trader,
                asset_in=asset_in,
                asset_out=asset_out,
                amount_in=amount_in,
                amount_out=amount_out,
            )
            logger.debug("swap trader=%s %s->%s in=%s out=%s", trader, asset_in, asset_out, amount_in, amount_out)
            self._emit(event)
            return amount_out

    def swap_a_for_b(self, trader: Account, amount_in: Amount) -> Amount:
        return self.swap(trader, True, amount_in)

    def swap_b_for_a(self, trader: Account, amount_in: Amount) -> Amount:
        return self.swap(trader, False, amount_in)

    # -- Internals -----------------------------------------------------------

    def _require_within_domain(self, name: str, value: Amount) -> None:
        if value > self.config.max_amount:
            raise AmountOverflowError(f"{name} would exceed max_amount: {value} > {self.config.max_amount}")

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _commit(
        self,
        *,
        delta_a: int,
        delta_b: int,
        holder: Optional[Account] = None,
        delta_shares: int = 0,
    ) -> None:
        """Apply signed deltas to copies, check invariants, then publish both as one snapshot."""
        snap = self._snap
        try:
            nxt = snap.state.with_deltas(delta_a=delta_a, delta_b=delta_b, delta_shares=delta_shares)
        except ValueError as exc:
            raise PoolInvariantError(["reserves_non_negative"]) from exc

        shares = snap.shares
        if holder is not None and delta_shares:
            shares = snap.shares.copy()
            try:
                shares.add(holder, delta_shares)
            except ValueError as exc:
                raise PoolInvariantError(["share_balance_non_negative"]) from exc

        violations = check_all(nxt, shares, max_amount=self.config.max_amount)
        if violations:
            raise PoolInvariantError(violations)
        self._snap = _Snapshot(nxt, shares)

    def _rollback(
        self,
        *,
        delta_a: int,
        delta_b: int,
        holder: Optional[Account] = None,
        delta_shares: int = 0,
    ) -> None:
        logger.warning(
            "rolling back pool %s: delta_a=%s delta_b=%s holder=%s delta_shares=%s",
            self.pool_id, delta_a, delta_b, holder, delta_shares,
        )
        self._commit(delta_a=delta_a, delta_b=delta_b, holder=holder, delta_shares=delta_shares)

    def _call_ledger(self, leg: str, fn: Callable[..., bool], *args: object) -> None:
        try:
            ok = fn(*args)
        except Exception as exc:
            raise TransferFailedError(f"ledger transfer failed on {leg}: {exc}", leg=leg) from exc
        if not ok:
            raise TransferFailedError(f"ledger declined transfer on {leg}", leg=leg)

    def _transfer_in(self, asset: AssetId, sender: Account, amount: Amount, *, leg: str) -> None:
        self._call_ledger(leg, self._ledger.transfer_in, asset, sender, self.custody_account, amount)

    def _transfer_out(self, asset: AssetId, recipient: Account, amount: Amount, *, leg: str) -> None:
        self._call_ledger(leg, self._ledger.transfer_out, asset, recipient, amount)

    def _compensate_out(self, asset: AssetId, recipient: Account, amount: Amount, *, leg: str) -> None:
        """Return funds that already reached custody for an operation that is being aborted."""
        try:
            self._transfer_out(asset, recipient, amount, leg=leg)
        except TransferFailedError as exc:
            logger.error("compensation %s failed for pool %s: %s", leg, self.pool_id, exc)
            raise RollbackFailedError(
                str(exc), leg=leg, pending=f"custody owes {amount} {asset} to {recipient}"
            ) from exc

    def _compensate_in(self, asset: AssetId, sender: Account, amount: Amount, *, leg: str) -> None:
        """Recover funds already paid out for an operation that is being aborted."""
        try:
            self._transfer_in(asset, sender, amount, leg=leg)
        except TransferFailedError as exc:
            logger.error("compensation %s failed for pool %s: %s", leg, self.pool_id, exc)
            raise RollbackFailedError(
                str(exc), leg=leg, pending=f"{sender} owes {amount} {asset} to custody"
            ) from exc

    def _emit(self, event: PoolEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink.emit(event)
        except Exception:
            logger.exception("notification sink failed for %s #%s", event.kind.value, event.sequence)

    def __repr__(self) -> str:
        return f"Pool(pool_id={self.pool_id[:18]}..., {self._snap.state!r})"
