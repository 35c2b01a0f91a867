"""
Notification sinks.

A sink receives one event per completed pool operation. Sinks are observers
only: the engine logs and drops any exception a sink raises, so a broken sink
can never roll back or block a state change.
"""

from __future__ import annotations

import logging
from typing import List, Protocol, TextIO, runtime_checkable

from ..core.events import EventKind, PoolEvent
from ..state.canonical import canonical_json_bytes


logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    def emit(self, event: PoolEvent) -> None:
        ...


class CollectingSink:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[PoolEvent] = []

    def emit(self, event: PoolEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> List[PoolEvent]:
        return [e for e in self.events if e.kind is kind]

    def clear(self) -> None:
        self.events.clear()


class LoggingSink:
    """Writes each event to a `logging.Logger` as canonical JSON."""

    def __init__(self, log: logging.Logger = logger, level: int = logging.INFO) -> None:
        self.log = log
        self.level = level

    def emit(self, event: PoolEvent) -> None:
        self.log.log(self.level, "%s %s", event.kind.value, canonical_json_bytes(event.to_dict()).decode("utf-8"))


class JsonLinesSink:
    """Writes one canonical JSON line per event to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def emit(self, event: PoolEvent) -> None:
        self.stream.write(canonical_json_bytes(event.to_dict()).decode("utf-8") + "\n")
        self.stream.flush()
