from __future__ import annotations

import datetime as dt
from collections.abc import Iterator
from pathlib import Path

import pytest

from roomboard.app import AppContext
from roomboard.config import CONFIG_ENV_OVERRIDES, RoomboardConfig

TODAY = dt.date(2026, 10, 18)


@pytest.fixture(autouse=True)
def _isolate_roomboard_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("ROOMBOARD_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("ROOMBOARD_DB", str(tmp_path / "board.sqlite"))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "board.sqlite"


@pytest.fixture
def context(db_path: Path) -> Iterator[AppContext]:
    cfg = RoomboardConfig(db_path=str(db_path), room=3, agenda_url="http://agenda.test/agenda.json")
    ctx = AppContext.from_config(cfg, today=TODAY)
    try:
        yield ctx
    finally:
        ctx.close()
