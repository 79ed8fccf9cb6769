from __future__ import annotations

from ._store import COUNTDOWNS_NAMESPACE, SESSIONS_NAMESPACE, RecordStore
from .types import StoredRecord

__all__ = [
    "COUNTDOWNS_NAMESPACE",
    "SESSIONS_NAMESPACE",
    "RecordStore",
    "StoredRecord",
]
