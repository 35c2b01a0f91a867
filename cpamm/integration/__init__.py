"""
Collaborator interfaces and in-process implementations
"""

from .ledger import AssetLedger, InMemoryAssetLedger
from .sinks import CollectingSink, JsonLinesSink, LoggingSink, NotificationSink

__all__ = [
    "AssetLedger",
    "InMemoryAssetLedger",
    "NotificationSink",
    "CollectingSink",
    "LoggingSink",
    "JsonLinesSink",
]
