from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StoredRecord:
    record_id: str
    attributes: dict[str, Any]
    created_at: str
    updated_at: str
