from __future__ import annotations

import datetime as dt
import json
import os
import warnings
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .agenda import parse_room_fragment
from .db import DEFAULT_DB_PATH

DEFAULT_CONFIG_PATH = Path("~/.config/roomboard/config.json").expanduser()
DEFAULT_AGENDA_URL = "data/agenda.json"

CONFIG_ENV_OVERRIDES = {
    "db_path": "ROOMBOARD_DB",
    "agenda_url": "ROOMBOARD_AGENDA_URL",
    "agenda_day_one": "ROOMBOARD_DAY_ONE",
    "room": "ROOMBOARD_ROOM",
    "fetch_timeout_s": "ROOMBOARD_FETCH_TIMEOUT_S",
    "note_interval_s": "ROOMBOARD_NOTE_INTERVAL_S",
    "viewer_host": "ROOMBOARD_VIEWER_HOST",
    "viewer_port": "ROOMBOARD_VIEWER_PORT",
    "log_level": "ROOMBOARD_LOG_LEVEL",
}

_INT_KEYS = {"viewer_port"}
_FLOAT_KEYS = {"fetch_timeout_s", "note_interval_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("ROOMBOARD_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class RoomboardConfig:
    db_path: str = str(DEFAULT_DB_PATH)
    agenda_url: str = DEFAULT_AGENDA_URL
    # First calendar day of the agenda; numeric `onDay` values count from it.
    agenda_day_one: str | None = None
    room: int | None = None
    fetch_timeout_s: float = 5.0
    note_interval_s: float = 60.0
    viewer_host: str = "127.0.0.1"
    viewer_port: int = 38900
    log_level: str = "WARNING"

    def day_one(self) -> dt.date | None:
        return _parse_date(self.agenda_day_one, key="agenda_day_one")


_FIELD_NAMES = {f.name for f in fields(RoomboardConfig)}


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_date(value: object, *, key: str) -> dt.date | None:
    if value is None or value == "":
        return None
    try:
        return dt.date.fromisoformat(str(value))
    except ValueError:
        warnings.warn(f"Invalid date for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return None


def _parse_room(value: object) -> int | None:
    if value is None or value == "":
        return None
    room = parse_room_fragment(value)  # type: ignore[arg-type]
    if room is None:
        warnings.warn(f"Invalid room: {value!r}", RuntimeWarning, stacklevel=2)
    return room


def load_config(path: Path | None = None) -> RoomboardConfig:
    cfg = RoomboardConfig()
    config_path = get_config_path(path)
    try:
        data = read_config_file(config_path)
    except ValueError as exc:
        warnings.warn(f"Invalid config file {config_path}: {exc}", RuntimeWarning, stacklevel=2)
        data = {}
    cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: RoomboardConfig, data: dict[str, Any]) -> RoomboardConfig:
    for key, value in data.items():
        if key not in _FIELD_NAMES:
            continue
        if key in _INT_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in _FLOAT_KEYS:
            setattr(cfg, key, _parse_float(value, getattr(cfg, key), key=key))
            continue
        if key == "room":
            cfg.room = _parse_room(value)
            continue
        setattr(cfg, key, value)
    return cfg


def _apply_env(cfg: RoomboardConfig) -> RoomboardConfig:
    cfg.db_path = os.getenv("ROOMBOARD_DB", cfg.db_path)
    cfg.agenda_url = os.getenv("ROOMBOARD_AGENDA_URL", cfg.agenda_url)
    cfg.agenda_day_one = os.getenv("ROOMBOARD_DAY_ONE", cfg.agenda_day_one)
    room = os.getenv("ROOMBOARD_ROOM")
    if room is not None:
        cfg.room = _parse_room(room)
    cfg.fetch_timeout_s = _parse_float(
        os.getenv("ROOMBOARD_FETCH_TIMEOUT_S"), cfg.fetch_timeout_s, key="fetch_timeout_s"
    )
    cfg.note_interval_s = _parse_float(
        os.getenv("ROOMBOARD_NOTE_INTERVAL_S"), cfg.note_interval_s, key="note_interval_s"
    )
    cfg.viewer_host = os.getenv("ROOMBOARD_VIEWER_HOST", cfg.viewer_host)
    cfg.viewer_port = _parse_int(
        os.getenv("ROOMBOARD_VIEWER_PORT"), cfg.viewer_port, key="viewer_port"
    )
    cfg.log_level = os.getenv("ROOMBOARD_LOG_LEVEL", cfg.log_level)
    return cfg
