from __future__ import annotations

import datetime as dt
import json
from typing import Any


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def encode_attributes(attributes: dict[str, Any]) -> str:
    return json.dumps(attributes, ensure_ascii=False, sort_keys=True)


def decode_attributes(value: str | None) -> dict[str, Any] | None:
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed
