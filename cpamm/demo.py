#!/usr/bin/env python3
"""
Offline pool demo: seed a pool on an in-memory ledger, swap, then withdraw.

    cpamm-demo --seed-a 100 --seed-b 200000 --swap-in 10
    cpamm-demo --config pool.yaml --json
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .core.config import PoolConfig, load_pool_config
from .core.errors import ConfigError, PoolError
from .core.pool import Pool
from .integration.ledger import InMemoryAssetLedger
from .integration.sinks import CollectingSink, JsonLinesSink


ASSET_A = "TKA"
ASSET_B = "TKB"
PROVIDER = "provider"
TRADER = "trader"
UNIT = 10**18


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run an offline constant-product pool scenario.")
    parser.add_argument("--config", help="YAML pool config (fee_numerator, fee_denominator, price_scale, max_amount)")
    parser.add_argument("--seed-a", type=int, default=100, help="initial asset A deposit, in whole tokens")
    parser.add_argument("--seed-b", type=int, default=200_000, help="initial asset B deposit, in whole tokens")
    parser.add_argument("--swap-in", type=int, default=10, help="asset A swapped for B, in whole tokens")
    parser.add_argument("--json", action="store_true", help="print events as JSON lines instead of a summary")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_pool_config(args.config) if args.config else PoolConfig()
    except (ConfigError, OSError) as exc:
        print(f"[cpamm-demo] FAIL (config): {exc}", file=sys.stderr)
        return 2
    sink = JsonLinesSink(sys.stdout) if args.json else CollectingSink()

    ledger = InMemoryAssetLedger(custody_account="pool")
    pool = Pool(ASSET_A, ASSET_B, ledger=ledger, sink=sink, config=config, custody_account="pool")

    seed_a = args.seed_a * UNIT
    seed_b = args.seed_b * UNIT
    swap_in = args.swap_in * UNIT
    for account in (PROVIDER, TRADER):
        ledger.mint(account, ASSET_A, seed_a + swap_in)
        ledger.mint(account, ASSET_B, seed_b)

    def say(msg: str) -> None:
        if not args.json:
            print(f"[cpamm-demo] {msg}")

    say(f"pool_id={pool.pool_id}")
    try:
        shares = pool.deposit(PROVIDER, seed_a, seed_b)
        say(f"seeded reserves={pool.get_reserves()} shares={shares} price={pool.get_price()}")

        amount_out = pool.swap_a_for_b(TRADER, swap_in)
        say(f"swapped {swap_in} {ASSET_A} -> {amount_out} {ASSET_B}; reserves={pool.get_reserves()}")
        say(f"price after swap={pool.get_price()}")

        amount_a, amount_b = pool.withdraw(PROVIDER, pool.share_of(PROVIDER))
        say(f"withdrew ({amount_a}, {amount_b}); reserves={pool.get_reserves()}")
    except PoolError as exc:
        print(f"[cpamm-demo] FAIL ({exc.category}): {exc}", file=sys.stderr)
        return 1

    say("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
