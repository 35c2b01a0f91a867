"""
Pool configuration.

`PoolConfig` is a frozen dataclass validated on construction. It can be built
from a plain mapping or loaded from a YAML document:

    pool:
      fee_numerator: 997
      fee_denominator: 1000
      price_scale: 1000000000000000000
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..kernels.python.cpmm_quote_v1 import FEE_DENOMINATOR, FEE_NUMERATOR
from .errors import ConfigError


PRICE_SCALE = 10**18
MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class PoolConfig:
    """Runtime parameters for one pool."""

    # The swap fee is (fee_denominator - fee_numerator) / fee_denominator of the input (0.3% by default).
    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR

    # Fixed-point unit for get_price().
    price_scale: int = PRICE_SCALE

    # Upper bound for any amount or reserve; leaving it raises AmountOverflowError.
    max_amount: int = MAX_UINT256

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{f.name} must be an int, got {type(value).__name__}")
        if self.fee_denominator <= 0:
            raise ConfigError(f"fee_denominator must be positive: {self.fee_denominator}")
        if not (0 < self.fee_numerator <= self.fee_denominator):
            raise ConfigError(
                f"fee_numerator must be in (0, {self.fee_denominator}]: {self.fee_numerator}"
            )
        if self.price_scale <= 0:
            raise ConfigError(f"price_scale must be positive: {self.price_scale}")
        if self.max_amount <= 0:
            raise ConfigError(f"max_amount must be positive: {self.max_amount}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PoolConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("pool config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown pool config keys: {', '.join(map(str, unknown))}")
        return cls(**dict(data))

    def to_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_pool_config(path: Union[str, Path]) -> PoolConfig:
    """
    Load a PoolConfig from a YAML file.

    The document may either be the config mapping itself or nest it under a
    top-level `pool:` key. An empty document yields the defaults.
    """
    p = Path(path)
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {p}: {exc}") from exc
    if obj is None:
        return PoolConfig()
    if isinstance(obj, Mapping) and "pool" in obj:
        obj = obj["pool"]
        if obj is None:
            return PoolConfig()
    return PoolConfig.from_mapping(obj)
