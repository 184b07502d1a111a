"""
Remote state reading for the trading client.

Contains:
- RemoteStateReader: versioned latest-value cache over ledger queries
- QueryPoller: optional fixed-interval refresh driver
- QueryStore: versioned latest value of one query
"""

from .reader import RemoteStateReader
from .poller import QueryPoller
from .store import QueryStore

__all__ = [
    "RemoteStateReader",
    "QueryPoller",
    "QueryStore",
]
