"""Event records emitted after each completed pool operation.

All records are frozen dataclasses. `to_dict()` produces the structured record
handed to observers; it is canonical-JSON safe (ints and strings only).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, unique
from typing import Any, ClassVar, Dict, Union


@unique
class EventKind(Enum):
    """One member per completed operation type."""
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    SWAP = "Swap"


@dataclass(frozen=True)
class DepositEvent:
    kind: ClassVar[EventKind] = EventKind.DEPOSIT

    pool_id: str
    sequence: int
    holder: str
    amount_a: int
    amount_b: int
    shares_minted: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.kind.value, **asdict(self)}


@dataclass(frozen=True)
class WithdrawalEvent:
    kind: ClassVar[EventKind] = EventKind.WITHDRAWAL

    pool_id: str
    sequence: int
    holder: str
    amount_a: int
    amount_b: int
    shares_burned: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.kind.value, **asdict(self)}


@dataclass(frozen=True)
class SwapEvent:
    kind: ClassVar[EventKind] = EventKind.SWAP

    pool_id: str
    sequence: int
    trader: str
    asset_in: str
    asset_out: str
    amount_in: int
    amount_out: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.kind.value, **asdict(self)}


PoolEvent = Union[DepositEvent, WithdrawalEvent, SwapEvent]
