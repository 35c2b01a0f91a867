"""
Constant Product Market Maker (CPMM) operations with typed failures.

This module wraps the pure kernels in `cpamm.kernels.python` and turns their
domain errors into the engine's error taxonomy.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per swap/mint/burn, O(log y) for isqrt
- Invariant: After each swap, x' * y' >= x * y (fee stays in the pool)
"""

from typing import Tuple

from ..kernels.python.cpmm_quote_v1 import QuoteResult
from ..kernels.python.cpmm_quote_v1 import get_amount_out as _kernel_get_amount_out
from ..kernels.python.cpmm_quote_v1 import quote_exact_in as _kernel_quote_exact_in
from ..kernels.python.share_math_v1 import burn_shares as _kernel_burn_shares
from ..kernels.python.share_math_v1 import isqrt_newton as _kernel_isqrt
from ..kernels.python.share_math_v1 import mint_shares as _kernel_mint_shares
from ..kernels.python.share_math_v1 import required_amount_b
from ..state.balances import Amount
from .config import PoolConfig
from .errors import (
    AmountOverflowError,
    AmountTooSmallError,
    InsufficientOutputError,
    InvalidAmountError,
    PoolInvariantError,
    PoolNotInitializedError,
    RatioMismatchError,
)

DEFAULT_CONFIG = PoolConfig()


def require_amount(name: str, value: Amount, config: PoolConfig = DEFAULT_CONFIG) -> None:
    """Reject non-int, non-positive and out-of-domain amounts."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmountError(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise InvalidAmountError(f"{name} must be positive: {value}")
    if value > config.max_amount:
        raise AmountOverflowError(f"{name} exceeds max_amount: {value} > {config.max_amount}")


def isqrt(y: int) -> int:
    """
    Floor integer square root (Newton's method, bounded).

    Non-convergence would be a bug in the iteration, so it surfaces as an
    invariant violation rather than a plain RuntimeError.
    """
    if not isinstance(y, int) or isinstance(y, bool):
        raise InvalidAmountError(f"isqrt argument must be an int, got {type(y).__name__}")
    if y < 0:
        raise InvalidAmountError(f"isqrt argument must be non-negative: {y}")
    try:
        return _kernel_isqrt(y)
    except RuntimeError as exc:
        raise PoolInvariantError(["isqrt_converges"]) from exc


def get_amount_out(
    amount_in: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    config: PoolConfig = DEFAULT_CONFIG,
) -> Amount:
    """
    Quote an exact-in swap against the given reserves.

    Formula (fee = 1 - fee_numerator / fee_denominator, 0.3% by default):
        after_fee  = floor(amount_in * 997 / 1000)
        amount_out = floor(after_fee * reserve_out / (reserve_in * 1000 + after_fee))

    Pure: no state is read or written. May return 0 for dust trades.
    """
    require_amount("amount_in", amount_in, config)
    if reserve_in <= 0 or reserve_out <= 0:
        raise PoolNotInitializedError(
            f"reserves must be positive to quote: ({reserve_in}, {reserve_out})"
        )
    return _kernel_get_amount_out(
        amount_in=amount_in,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        fee_numerator=config.fee_numerator,
        fee_denominator=config.fee_denominator,
    )


def swap_exact_in(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    config: PoolConfig = DEFAULT_CONFIG,
) -> QuoteResult:
    """
    Compute an exact-in swap and its post-swap reserves.

    Post-swap reserves:
        new_reserve_in = reserve_in + amount_in  (fee stays in pool)
        new_reserve_out = reserve_out - amount_out

    Raises:
        InsufficientOutputError: If the swap would pay out nothing
        PoolInvariantError: If k would decrease
    """
    amount_out = get_amount_out(amount_in, reserve_in, reserve_out, config)
    if amount_out == 0:
        raise InsufficientOutputError(
            f"insufficient output: amount_in {amount_in} quotes to zero against ({reserve_in}, {reserve_out})"
        )

    try:
        res = _kernel_quote_exact_in(
            amount_in=amount_in,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
            fee_numerator=config.fee_numerator,
            fee_denominator=config.fee_denominator,
        )
    except ValueError as exc:
        raise PoolInvariantError(["swap_keeps_reserve_out_positive"]) from exc

    if res.k_after < res.k_before:
        raise PoolInvariantError(["k_non_decreasing_across_swap"])
    return res


def compute_share_mint(
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
    amount_a: Amount,
    amount_b: Amount,
    config: PoolConfig = DEFAULT_CONFIG,
) -> Amount:
    """
    Compute shares to mint for a deposit.

    For the first deposit (total_shares == 0):
        shares = isqrt(amount_a * amount_b)

    For subsequent deposits, amount_b must equal floor(amount_a * reserve_b / reserve_a) and:
        shares = floor(amount_a * total_shares / reserve_a)

    A zero mint is rejected with AmountTooSmallError rather than executed as a no-op.
    """
    require_amount("amount_a", amount_a, config)
    require_amount("amount_b", amount_b, config)

    if (reserve_a == 0) != (total_shares == 0) or (reserve_b == 0) != (total_shares == 0):
        raise PoolInvariantError(["reserves_zero_iff_shares_zero"])

    if total_shares > 0:
        amount_b_required = required_amount_b(amount_a=amount_a, reserve_a=reserve_a, reserve_b=reserve_b)
        if amount_b_required != amount_b:
            raise RatioMismatchError(amount_b=amount_b, amount_b_required=amount_b_required)

    try:
        res = _kernel_mint_shares(
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            total_shares=total_shares,
            amount_a=amount_a,
            amount_b=amount_b,
        )
    except RuntimeError as exc:
        raise PoolInvariantError(["isqrt_converges"]) from exc

    if res.shares_minted <= 0:
        raise AmountTooSmallError(
            f"amount too small: deposit ({amount_a}, {amount_b}) mints zero shares"
        )
    return res.shares_minted


def compute_share_burn(
    share_amount: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
    config: PoolConfig = DEFAULT_CONFIG,
) -> Tuple[Amount, Amount]:
    """
    Compute asset amounts returned for burning shares.

    Formula:
        amount_a = floor(share_amount * reserve_a / total_shares)
        amount_b = floor(share_amount * reserve_b / total_shares)

    Raises AmountTooSmallError if either amount is zero.
    """
    require_amount("share_amount", share_amount, config)
    if total_shares <= 0:
        raise PoolNotInitializedError("pool has no outstanding shares")
    if share_amount > total_shares:
        raise InvalidAmountError(f"cannot burn more than total_shares: {share_amount} > {total_shares}")

    res = _kernel_burn_shares(
        share_amount=share_amount,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=total_shares,
    )
    if res.amount_a_out == 0 or res.amount_b_out == 0:
        raise AmountTooSmallError(
            f"amount too small: burning {share_amount} shares returns ({res.amount_a_out}, {res.amount_b_out})"
        )
    return res.amount_a_out, res.amount_b_out
