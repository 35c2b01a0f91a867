# [TESTER] v1

from __future__ import annotations

import sys
import threading
from typing import List

from cpamm.core.events import EventKind
from cpamm.core.pool import Pool
from cpamm.integration.ledger import InMemoryAssetLedger
from cpamm.integration.sinks import CollectingSink

A = "TKA"
B = "TKB"
CUSTODY = "pool"
E18 = 10**18


def test_concurrent_swaps_serialize_and_keep_k() -> None:
    ledger = InMemoryAssetLedger(CUSTODY)
    sink = CollectingSink()
    pool = Pool(A, B, ledger=ledger, sink=sink, custody_account=CUSTODY)
    ledger.mint("lp", A, 1000 * E18)
    ledger.mint("lp", B, 1000 * E18)
    pool.deposit("lp", 1000 * E18, 1000 * E18)
    k0 = pool.state.get_constant_product()

    traders = [f"t{i}" for i in range(8)]
    for t in traders:
        ledger.mint(t, A, 100 * E18)
        ledger.mint(t, B, 100 * E18)

    errors: List[BaseException] = []
    torn: List[tuple] = []
    stop = threading.Event()

    def trade(who: str, a_to_b: bool) -> None:
        try:
            for _ in range(25):
                pool.swap(who, a_to_b, E18)
        except BaseException as exc:  # surfaced through `errors`
            errors.append(exc)

    def read() -> None:
        while not stop.is_set():
            s = pool.state
            if (s.reserve_a == 0) != (s.reserve_b == 0):
                torn.append((s.reserve_a, s.reserve_b))

    reader = threading.Thread(target=read)
    reader.start()
    workers = [threading.Thread(target=trade, args=(t, i % 2 == 0)) for i, t in enumerate(traders)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    stop.set()
    reader.join()

    assert errors == []
    assert torn == []
    assert len(sink.of_kind(EventKind.SWAP)) == len(traders) * 25
    assert [e.sequence for e in sink.events] == list(range(1, len(sink.events) + 1))
    assert pool.state.get_constant_product() >= k0
    assert (ledger.custody_balance(A), ledger.custody_balance(B)) == pool.get_reserves()


def test_concurrent_deposits_and_withdrawals_keep_share_totals() -> None:
    ledger = InMemoryAssetLedger(CUSTODY)
    pool = Pool(A, B, ledger=ledger, custody_account=CUSTODY)
    ledger.mint("lp", A, 100 * E18)
    ledger.mint("lp", B, 100 * E18)
    pool.deposit("lp", 100 * E18, 100 * E18)

    holders = [f"h{i}" for i in range(6)]
    for h in holders:
        ledger.mint(h, A, 10 * E18)
        ledger.mint(h, B, 10 * E18)

    errors: List[BaseException] = []

    def cycle(who: str) -> None:
        try:
            for _ in range(10):
                shares = pool.deposit(who, E18, E18)
                pool.withdraw(who, shares)
        except BaseException as exc:
            errors.append(exc)

    workers = [threading.Thread(target=cycle, args=(h,)) for h in holders]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    assert errors == []
    assert sum(pool.share_holders().values()) == pool.total_shares
    assert pool.share_holders() == {"lp": 100 * E18}
    assert pool.get_reserves() == (100 * E18, 100 * E18)
    assert (ledger.custody_balance(A), ledger.custody_balance(B)) == pool.get_reserves()


def test_share_queries_stay_consistent_under_churn() -> None:
    ledger = InMemoryAssetLedger(CUSTODY)
    pool = Pool(A, B, ledger=ledger, custody_account=CUSTODY)
    ledger.mint("lp", A, 100 * E18)
    ledger.mint("lp", B, 100 * E18)
    pool.deposit("lp", 100 * E18, 100 * E18)

    holders = [f"h{i:03d}" for i in range(200)]
    for h in holders:
        ledger.mint(h, A, E18)
        ledger.mint(h, B, E18)

    errors: List[BaseException] = []
    mismatches: List[tuple] = []
    stop = threading.Event()
    old_interval = sys.getswitchinterval()

    def churn() -> None:
        try:
            for _ in range(3):
                for h in holders:
                    pool.deposit(h, E18, E18)
                for h in holders:
                    pool.withdraw(h, pool.share_of(h))
        except BaseException as exc:
            errors.append(exc)
        finally:
            stop.set()

    def read() -> None:
        try:
            while not stop.is_set():
                pool.share_holders()
                for h in holders[::37]:
                    pool.share_of(h)
                state, balances = pool.snapshot()
                if sum(balances.values()) != state.total_shares:
                    mismatches.append((sum(balances.values()), state.total_shares))
        except BaseException as exc:
            errors.append(exc)

    sys.setswitchinterval(1e-6)
    try:
        threads = [threading.Thread(target=churn), threading.Thread(target=read), threading.Thread(target=read)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
    finally:
        sys.setswitchinterval(old_interval)

    assert errors == []
    assert mismatches == []
    assert pool.share_holders() == {"lp": 100 * E18}
