"""
Constant-product quote kernel (v1 semantics).

- The fee is taken from the input leg with floor rounding:
  `amount_in_after_fee = floor(amount_in * fee_numerator / fee_denominator)`.
- The output is priced against the pre-swap reserves:
  `amount_out = floor(after_fee * reserve_out / (reserve_in * fee_denominator + after_fee))`.
- The whole `amount_in` (fee included) stays in the pool, so `k` never decreases.

All arithmetic is on Python ints, which are arbitrary precision: products of
two reserve-scale values cannot wrap.
"""

from __future__ import annotations

from dataclasses import dataclass


FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_fee(fee_numerator: int, fee_denominator: int) -> None:
    _require_int("fee_numerator", fee_numerator)
    _require_int("fee_denominator", fee_denominator)
    if fee_denominator <= 0:
        raise ValueError("fee_denominator must be positive")
    if not (0 < fee_numerator <= fee_denominator):
        raise ValueError(f"fee_numerator must be in (0, {fee_denominator}]")


def floor_mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute `floor(a * b / denominator)` for non-negative `a`, `b`.
    """
    _require_int("a", a)
    _require_int("b", b)
    _require_int("denominator", denominator)
    if a < 0 or b < 0:
        raise ValueError("operands must be non-negative")
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (a * b) // denominator


def amount_after_fee(
    *,
    amount_in: int,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """
    Compute `floor(amount_in * fee_numerator / fee_denominator)`.
    """
    _require_int("amount_in", amount_in)
    _require_fee(fee_numerator, fee_denominator)
    if amount_in < 0:
        raise ValueError("amount_in must be non-negative")
    return floor_mul_div(amount_in, fee_numerator, fee_denominator)


@dataclass(frozen=True)
class QuoteResult:
    amount_in: int
    amount_in_after_fee: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def get_amount_out(
    *,
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """
    Pure exact-in quote. May return 0 for dust trades; callers decide whether
    a zero output is acceptable.
    """
    for name, v in (
        ("amount_in", amount_in),
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
    ):
        _require_int(name, v)
    _require_fee(fee_numerator, fee_denominator)

    if amount_in <= 0:
        raise ValueError("amount_in must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("reserves must be positive")

    after_fee = amount_after_fee(
        amount_in=amount_in,
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
    )
    numerator = after_fee * reserve_out
    denominator = reserve_in * fee_denominator + after_fee
    return numerator // denominator


def quote_exact_in(
    *,
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> QuoteResult:
    """
    Exact-in quote plus the post-swap reserves.

    Raises ValueError on invalid inputs or if the output would drain the pool.
    """
    amount_out = get_amount_out(
        amount_in=amount_in,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
    )
    if amount_out >= reserve_out:
        raise ValueError("amount_out would drain reserve_out")

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out

    return QuoteResult(
        amount_in=amount_in,
        amount_in_after_fee=amount_after_fee(
            amount_in=amount_in,
            fee_numerator=fee_numerator,
            fee_denominator=fee_denominator,
        ),
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
