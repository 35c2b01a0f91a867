"""
Share math kernel (v1 semantics).

Pure functions for minting and burning pool shares:
- the first deposit mints `isqrt(amount_a * amount_b)` shares, with no locked minimum,
- later deposits must match the pool ratio exactly and mint proportionally,
- burns return a floor-rounded proportional slice of each reserve.

Rounding always favours the pool: shares minted and assets returned round down.
"""

from __future__ import annotations

from dataclasses import dataclass


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def isqrt_newton(y: int) -> int:
    """
    Floor square root by Newton's method.

    For y > 3 the iteration starts at `z = y`, `x = y // 2 + 1` and runs while
    `x < z`; each step lowers z, so it converges in O(log y) steps. The loop is
    bounded by `y.bit_length() + 8` iterations and raises RuntimeError if the
    bound is ever hit.
    """
    _require_int("y", y)
    if y < 0:
        raise ValueError("isqrt of a negative number")
    if y == 0:
        return 0
    if y <= 3:
        return 1

    z = y
    x = y // 2 + 1
    max_iterations = y.bit_length() + 8
    iterations = 0
    while x < z:
        iterations += 1
        if iterations > max_iterations:
            raise RuntimeError(f"isqrt did not converge within {max_iterations} iterations")
        z = x
        x = (y // x + x) // 2
    return z


@dataclass(frozen=True)
class MintSharesResult:
    shares_minted: int
    amount_b_required: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int
    initial: bool


@dataclass(frozen=True)
class BurnSharesResult:
    amount_a_out: int
    amount_b_out: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int


def required_amount_b(*, amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """
    `floor(amount_a * reserve_b / reserve_a)`: the B leg that matches `amount_a`
    at the current pool ratio.
    """
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_int(name, v)
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError("reserves must be positive")
    if amount_a < 0:
        raise ValueError("amount_a must be non-negative")
    return (amount_a * reserve_b) // reserve_a


def mint_shares(
    *,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    amount_a: int,
    amount_b: int,
) -> MintSharesResult:
    """
    Compute the shares minted for a deposit.

    Raises ValueError if the deposit is off-ratio. A zero mint is returned as-is
    (`shares_minted == 0`); the caller owns the zero-mint policy.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
        ("amount_a", amount_a),
        ("amount_b", amount_b),
    ):
        _require_int(name, v)

    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if total_shares < 0:
        raise ValueError("total_shares must be non-negative")
    if amount_a <= 0 or amount_b <= 0:
        raise ValueError("deposit amounts must be positive")

    if total_shares == 0:
        if reserve_a != 0 or reserve_b != 0:
            raise ValueError("cannot seed a pool whose reserves are non-zero")
        minted = isqrt_newton(amount_a * amount_b)
        return MintSharesResult(
            shares_minted=minted,
            amount_b_required=amount_b,
            new_reserve_a=amount_a,
            new_reserve_b=amount_b,
            new_total_shares=minted,
            initial=True,
        )

    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("cannot mint into an empty pool when total_shares > 0")

    amount_b_required = required_amount_b(amount_a=amount_a, reserve_a=reserve_a, reserve_b=reserve_b)
    if amount_b_required != amount_b:
        raise ValueError(f"ratio mismatch: amount_b must be {amount_b_required}, got {amount_b}")

    minted = (amount_a * total_shares) // reserve_a
    return MintSharesResult(
        shares_minted=minted,
        amount_b_required=amount_b_required,
        new_reserve_a=reserve_a + amount_a,
        new_reserve_b=reserve_b + amount_b,
        new_total_shares=total_shares + minted,
        initial=False,
    )


def burn_shares(*, share_amount: int, reserve_a: int, reserve_b: int, total_shares: int) -> BurnSharesResult:
    """
    Burn shares for underlying assets (floor rounding).
    """
    for name, v in (
        ("share_amount", share_amount),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        _require_int(name, v)

    if share_amount <= 0:
        raise ValueError("share_amount must be positive")
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError("reserves must be non-negative")
    if total_shares <= 0:
        raise ValueError("total_shares must be positive")
    if share_amount > total_shares:
        raise ValueError("cannot burn more than total_shares")

    amount_a_out = (share_amount * reserve_a) // total_shares
    amount_b_out = (share_amount * reserve_b) // total_shares
    return BurnSharesResult(
        amount_a_out=amount_a_out,
        amount_b_out=amount_b_out,
        new_reserve_a=reserve_a - amount_a_out,
        new_reserve_b=reserve_b - amount_b_out,
        new_total_shares=total_shares - share_amount,
    )
