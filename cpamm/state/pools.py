"""
Pool state for a two-asset constant-product pool.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Tuple

from .balances import AssetId, Amount
from .canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex


def compute_pool_id(
    asset_a: AssetId,
    asset_b: AssetId,
    *,
    fee_numerator: int,
    fee_denominator: int,
) -> str:
    """
    Deterministically compute a pool_id for the given pool parameters:

        pool_id = H("cpamm:pool:v1|" || canonical_json({asset_a, asset_b, fee_numerator, fee_denominator}))

    Asset order is significant: (A, B) and (B, A) are different pools because
    prices are quoted as B per A.
    """
    if not isinstance(asset_a, str) or not asset_a:
        raise ValueError("asset_a must be a non-empty string")
    if not isinstance(asset_b, str) or not asset_b:
        raise ValueError("asset_b must be a non-empty string")
    if asset_a == asset_b:
        raise ValueError(f"Pool assets must be distinct: {asset_a}")

    payload = {
        "asset_a": asset_a,
        "asset_b": asset_b,
        "fee_denominator": int(fee_denominator),
        "fee_numerator": int(fee_numerator),
    }
    return sha256_hex(domain_sep_bytes("pool", version=CANONICAL_ENCODING_VERSION) + canonical_json_bytes(payload))


@dataclass(frozen=True)
class PoolState:
    """
    Immutable snapshot of a pool.

    The engine publishes a fresh PoolState on every transition, so a reader
    holding one instance always sees a coherent reserve pair.

    Attributes:
        asset_a: First asset identifier (prices are quoted in B per A)
        asset_b: Second asset identifier
        reserve_a: Reserve amount for asset_a
        reserve_b: Reserve amount for asset_b
        total_shares: Total outstanding pool shares
    """
    asset_a: AssetId
    asset_b: AssetId
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_shares: Amount = 0

    def __post_init__(self):
        if self.asset_a == self.asset_b:
            raise ValueError(f"Pool assets must be distinct: {self.asset_a}")
        for name in ("reserve_a", "reserve_b", "total_shares"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            if value < 0:
                raise ValueError(f"{name} must be non-negative: {value}")

    @property
    def is_seeded(self) -> bool:
        return self.total_shares > 0

    def get_reserve(self, asset: AssetId) -> Amount:
        """
        Get reserve for a specific asset.

        Raises:
            ValueError: If asset is not in this pool
        """
        if asset == self.asset_a:
            return self.reserve_a
        elif asset == self.asset_b:
            return self.reserve_b
        else:
            raise ValueError(f"Asset {asset} not in pool ({self.asset_a}, {self.asset_b})")

    def swap_sides(self, a_to_b: bool) -> Tuple[AssetId, AssetId, Amount, Amount]:
        """Return (asset_in, asset_out, reserve_in, reserve_out) for a swap direction."""
        if a_to_b:
            return self.asset_a, self.asset_b, self.reserve_a, self.reserve_b
        return self.asset_b, self.asset_a, self.reserve_b, self.reserve_a

    def get_constant_product(self) -> int:
        """k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def with_deltas(self, *, delta_a: int = 0, delta_b: int = 0, delta_shares: int = 0) -> "PoolState":
        """Return a new snapshot with the given signed deltas applied."""
        return replace(
            self,
            reserve_a=self.reserve_a + delta_a,
            reserve_b=self.reserve_b + delta_b,
            total_shares=self.total_shares + delta_shares,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_a": self.asset_a,
            "asset_b": self.asset_b,
            "reserve_a": self.reserve_a,
            "reserve_b": self.reserve_b,
            "total_shares": self.total_shares,
        }

    def __repr__(self) -> str:
        return (
            f"PoolState(assets=({self.asset_a}, {self.asset_b}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"total_shares={self.total_shares})"
        )
