# [TESTER] v1

from __future__ import annotations

import math
from typing import Optional, Tuple

import pytest

from cpamm.core.config import PoolConfig
from cpamm.core.errors import (
    AmountOverflowError,
    InsufficientOutputError,
    InsufficientSharesError,
    InvalidAmountError,
    PoolNotInitializedError,
    RatioMismatchError,
)
from cpamm.core.events import DepositEvent, EventKind, SwapEvent, WithdrawalEvent
from cpamm.core.pool import Pool
from cpamm.integration.ledger import InMemoryAssetLedger
from cpamm.integration.sinks import CollectingSink
from cpamm.state.pools import compute_pool_id

A = "TKA"
B = "TKB"
CUSTODY = "pool"
E18 = 10**18
SEED_SHARES = 141421356237309504880  # isqrt(100e18 * 200e18)


def _make_pool(config: Optional[PoolConfig] = None) -> Tuple[Pool, InMemoryAssetLedger, CollectingSink]:
    ledger = InMemoryAssetLedger(CUSTODY)
    sink = CollectingSink()
    pool = Pool(A, B, ledger=ledger, sink=sink, config=config, custody_account=CUSTODY)
    for who in ("alice", "bob", "trader"):
        ledger.mint(who, A, 10**9 * E18)
        ledger.mint(who, B, 10**9 * E18)
    return pool, ledger, sink


def _assert_custody_matches(pool: Pool, ledger: InMemoryAssetLedger) -> None:
    assert (ledger.custody_balance(A), ledger.custody_balance(B)) == pool.get_reserves()


def test_new_pool_is_empty() -> None:
    pool, _, _ = _make_pool()
    assert pool.get_reserves() == (0, 0)
    assert pool.total_shares == 0
    assert pool.share_holders() == {}
    assert pool.pool_id == compute_pool_id(A, B, fee_numerator=997, fee_denominator=1000)
    assert (pool.asset_a, pool.asset_b) == (A, B)


def test_custody_defaults_to_pool_id() -> None:
    pool = Pool(A, B, ledger=InMemoryAssetLedger("x"))
    assert pool.custody_account == pool.pool_id


def test_initial_deposit_small_integers() -> None:
    pool, ledger, _ = _make_pool()
    shares = pool.deposit("alice", 100, 200)
    assert shares == 141
    assert pool.get_reserves() == (100, 200)
    assert pool.total_shares == 141
    assert pool.share_of("alice") == 141
    _assert_custody_matches(pool, ledger)


def test_initial_deposit_at_token_scale() -> None:
    pool, ledger, sink = _make_pool()
    shares = pool.deposit("alice", 100 * E18, 200 * E18)
    assert shares == SEED_SHARES
    assert pool.get_price() == 2 * E18
    assert ledger.balance_of("alice", A) == 10**9 * E18 - 100 * E18

    (event,) = sink.events
    assert isinstance(event, DepositEvent)
    assert event.shares_minted == SEED_SHARES
    assert event.sequence == 1
    assert event.pool_id == pool.pool_id


def test_swap_at_token_scale() -> None:
    pool, ledger, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200_000 * E18)
    assert pool.get_price() == 2000 * E18

    quoted = pool.quote(10 * E18)
    amount_out = pool.swap_a_for_b("trader", 10 * E18)
    after_fee = 10 * E18 * 997 // 1000
    assert amount_out == quoted == after_fee * 200_000 * E18 // (100 * E18 * 1000 + after_fee)
    assert pool.get_reserves() == (110 * E18, 200_000 * E18 - amount_out)
    assert ledger.balance_of("trader", B) == 10**9 * E18 + amount_out
    assert pool.get_price() < 2000 * E18
    _assert_custody_matches(pool, ledger)

    swap = sink.of_kind(EventKind.SWAP)
    assert len(swap) == 1
    ev = swap[0]
    assert isinstance(ev, SwapEvent)
    assert (ev.trader, ev.asset_in, ev.asset_out, ev.amount_in, ev.amount_out) == (
        "trader", A, B, 10 * E18, amount_out
    )
    assert ev.sequence == 2


def test_swap_small_integer_example() -> None:
    pool, _, _ = _make_pool()
    pool.deposit("alice", 100, 200_000)
    assert pool.swap_a_for_b("trader", 10) == 17
    assert pool.get_reserves() == (110, 200_000 - 17)


def test_swap_b_for_a_direction() -> None:
    pool, ledger, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    out = pool.swap_b_for_a("trader", 20 * E18)
    assert out == pool.get_amount_out(20 * E18, 200 * E18, 100 * E18)
    assert pool.get_reserves() == (100 * E18 - out, 220 * E18)
    assert sink.events[-1].asset_in == B
    _assert_custody_matches(pool, ledger)


def test_proportional_deposit_and_withdraw() -> None:
    pool, ledger, _ = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    bob_shares = pool.deposit("bob", 50 * E18, 100 * E18)
    assert bob_shares == SEED_SHARES // 2
    assert pool.get_reserves() == (150 * E18, 300 * E18)
    assert pool.get_price() == 2 * E18

    assert pool.withdraw("bob", bob_shares) == (50 * E18, 100 * E18)
    assert pool.share_of("bob") == 0
    assert "bob" not in pool.share_holders()
    _assert_custody_matches(pool, ledger)


def test_partial_withdraw_returns_exact_half() -> None:
    pool, ledger, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    amounts = pool.withdraw("alice", SEED_SHARES // 2)
    assert amounts == (50 * E18, 100 * E18)
    assert pool.get_reserves() == (50 * E18, 100 * E18)
    assert pool.share_of("alice") == SEED_SHARES // 2

    ev = sink.of_kind(EventKind.WITHDRAWAL)[0]
    assert isinstance(ev, WithdrawalEvent)
    assert ev.shares_burned == SEED_SHARES // 2
    _assert_custody_matches(pool, ledger)


def test_withdraw_more_than_held_leaves_state_unchanged() -> None:
    pool, ledger, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    transfers = ledger.transfer_count
    with pytest.raises(InsufficientSharesError) as ei:
        pool.withdraw("alice", SEED_SHARES + 1)
    assert ei.value.available == SEED_SHARES
    assert pool.get_reserves() == (100 * E18, 200 * E18)
    assert ledger.transfer_count == transfers
    assert len(sink.events) == 1

    with pytest.raises(InsufficientSharesError):
        pool.withdraw("bob", 1)


def test_ratio_mismatch_performs_no_transfers() -> None:
    pool, ledger, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    transfers = ledger.transfer_count
    with pytest.raises(RatioMismatchError):
        pool.deposit("bob", 10 * E18, 21 * E18)
    assert ledger.transfer_count == transfers
    assert ledger.balance_of("bob", A) == 10**9 * E18
    assert pool.get_reserves() == (100 * E18, 200 * E18)
    assert pool.share_of("bob") == 0
    assert len(sink.events) == 1


def test_full_drain_then_reseed_at_new_price() -> None:
    pool, ledger, _ = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    pool.swap_a_for_b("trader", 1 * E18)
    a, b = pool.withdraw("alice", pool.share_of("alice"))
    assert (a, b) == (101 * E18, 200 * E18 - pool.get_amount_out(1 * E18, 100 * E18, 200 * E18))
    assert pool.get_reserves() == (0, 0)
    assert pool.total_shares == 0
    with pytest.raises(PoolNotInitializedError):
        pool.get_price()

    shares = pool.deposit("bob", 4 * E18, 9 * E18)
    assert shares == 6 * E18
    assert pool.get_price() == 9 * E18 // 4
    _assert_custody_matches(pool, ledger)


def test_empty_pool_rejects_swaps_and_quotes() -> None:
    pool, _, _ = _make_pool()
    with pytest.raises(PoolNotInitializedError):
        pool.swap_a_for_b("trader", E18)
    with pytest.raises(PoolNotInitializedError):
        pool.quote(E18)
    with pytest.raises(PoolNotInitializedError):
        pool.get_price()


def test_dust_swap_is_rejected() -> None:
    pool, ledger, _ = _make_pool()
    pool.deposit("alice", 100, 200_000)
    transfers = ledger.transfer_count
    with pytest.raises(InsufficientOutputError):
        pool.swap_a_for_b("trader", 1)
    assert ledger.transfer_count == transfers
    assert pool.get_reserves() == (100, 200_000)


def test_invalid_amounts() -> None:
    pool, _, _ = _make_pool()
    with pytest.raises(InvalidAmountError):
        pool.deposit("alice", 0, 10)
    with pytest.raises(InvalidAmountError):
        pool.deposit("alice", 10, -1)
    pool.deposit("alice", 100, 200)
    with pytest.raises(InvalidAmountError):
        pool.swap_a_for_b("trader", 0)
    with pytest.raises(InvalidAmountError):
        pool.withdraw("alice", 0)


def test_reserve_domain_bound() -> None:
    pool, ledger, _ = _make_pool(PoolConfig(max_amount=1000))
    with pytest.raises(AmountOverflowError):
        pool.deposit("alice", 1001, 1)
    pool.deposit("alice", 600, 600)
    transfers = ledger.transfer_count
    with pytest.raises(AmountOverflowError):
        pool.deposit("bob", 600, 600)
    assert ledger.transfer_count == transfers
    assert pool.get_reserves() == (600, 600)


def test_swap_domain_bound() -> None:
    pool, ledger, _ = _make_pool(PoolConfig(max_amount=10**6))
    pool.deposit("alice", 999_000, 10**6)
    transfers = ledger.transfer_count
    with pytest.raises(AmountOverflowError):
        pool.swap_a_for_b("trader", 2000)
    assert ledger.transfer_count == transfers
    assert pool.get_reserves() == (999_000, 10**6)


def test_fees_accrue_to_share_holders() -> None:
    pool, ledger, _ = _make_pool()
    pool.deposit("alice", 100 * E18, 200_000 * E18)
    out = pool.swap_a_for_b("trader", 10 * E18)
    pool.swap_b_for_a("trader", out)
    reserve_a, reserve_b = pool.get_reserves()
    assert reserve_a > 100 * E18
    assert reserve_b == 200_000 * E18

    a, b = pool.withdraw("alice", pool.share_of("alice"))
    assert a > 100 * E18
    assert b == 200_000 * E18
    _assert_custody_matches(pool, ledger)


def test_sequence_numbers_are_monotonic() -> None:
    pool, _, sink = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    pool.swap_a_for_b("trader", E18)
    pool.withdraw("alice", 1000)
    assert [e.sequence for e in sink.events] == [1, 2, 3]
    assert [e.kind for e in sink.events] == [EventKind.DEPOSIT, EventKind.SWAP, EventKind.WITHDRAWAL]


def test_pool_without_sink() -> None:
    ledger = InMemoryAssetLedger(CUSTODY)
    ledger.mint("alice", A, 1000)
    ledger.mint("alice", B, 1000)
    pool = Pool(A, B, ledger=ledger, custody_account=CUSTODY)
    assert pool.deposit("alice", 400, 900) == 600


def test_state_snapshot_is_immutable_between_operations() -> None:
    pool, _, _ = _make_pool()
    pool.deposit("alice", 100, 200_000)
    before = pool.state
    assert pool.swap_a_for_b("trader", 10) == 17
    assert before.get_reserve(A) == 100
    assert pool.state is not before
    assert pool.state.reserve_a == 110


def test_fees_split_in_proportion_to_shares() -> None:
    pool, ledger, _ = _make_pool()
    alice_shares = pool.deposit("alice", 100 * E18, 200_000 * E18)
    bob_shares = pool.deposit("bob", 50 * E18, 100_000 * E18)
    assert bob_shares == alice_shares // 2

    pool.swap_a_for_b("trader", 10 * E18)
    alice_a, alice_b = pool.withdraw("alice", alice_shares)
    bob_a, bob_b = pool.withdraw("bob", bob_shares)

    # 160e18 of A splits 2:1 between the two providers.
    assert alice_a + bob_a == 160 * E18
    assert alice_a >= bob_a
    assert abs(alice_a - 2 * bob_a) <= 3
    assert alice_a > 100 * E18 and bob_a > 50 * E18
    assert abs(alice_b - 2 * bob_b) <= 3
    assert pool.get_reserves() == (0, 0)
    _assert_custody_matches(pool, ledger)


def test_very_small_liquidity() -> None:
    pool, ledger, _ = _make_pool()
    shares = pool.deposit("alice", 10**14, 2 * 10**14)
    assert shares == math.isqrt(2 * 10**28)

    out = pool.swap_a_for_b("trader", 10**13)
    assert out > 0
    assert out == pool.get_amount_out(10**13, 10**14, 2 * 10**14)
    assert pool.get_reserves() == (11 * 10**13, 2 * 10**14 - out)
    _assert_custody_matches(pool, ledger)


def test_very_large_liquidity() -> None:
    pool, ledger, _ = _make_pool()
    shares = pool.deposit("alice", 10**24, 2 * 10**24)
    assert shares == math.isqrt(2 * 10**48)
    assert pool.get_reserves() == (10**24, 2 * 10**24)
    assert pool.get_price() == 2 * E18

    out = pool.swap_a_for_b("trader", 10**21)
    assert out > 0
    assert pool.withdraw("alice", shares) == (10**24 + 10**21, 2 * 10**24 - out)
    _assert_custody_matches(pool, ledger)


def test_snapshot_pairs_state_with_share_balances() -> None:
    pool, _, _ = _make_pool()
    pool.deposit("alice", 100 * E18, 200 * E18)
    pool.deposit("bob", 50 * E18, 100 * E18)
    state, balances = pool.snapshot()
    assert state is pool.state
    assert balances == {"alice": SEED_SHARES, "bob": SEED_SHARES // 2}
    assert sum(balances.values()) == state.total_shares

    held = pool.share_holders()
    pool.withdraw("bob", SEED_SHARES // 2)
    # Earlier results are not mutated by later operations.
    assert held == balances
    assert pool.share_holders() == {"alice": SEED_SHARES}
