from __future__ import annotations

import logging
from typing import Any

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from roomboard.agenda import parse_room_fragment
from roomboard.app import AppContext
from roomboard.config import RoomboardConfig, load_config, read_config_file
from roomboard.errors import RoomboardError


def configure_logging(level: str | None) -> None:
    root = logging.getLogger()
    if any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.setLevel((level or "WARNING").upper())
        return
    logging.basicConfig(
        level=(level or "WARNING").upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def config_from_options(
    *,
    db_path: str | None = None,
    room: str | None = None,
    agenda_url: str | None = None,
) -> RoomboardConfig:
    read_config_or_exit()
    cfg = load_config()
    if db_path:
        cfg.db_path = db_path
    if agenda_url:
        cfg.agenda_url = agenda_url
    if room is not None:
        cfg.room = parse_room_fragment(room)
    configure_logging(cfg.log_level)
    return cfg


def context_from_options(
    *,
    db_path: str | None = None,
    room: str | None = None,
    agenda_url: str | None = None,
    today: Any = None,
) -> AppContext:
    cfg = config_from_options(db_path=db_path, room=room, agenda_url=agenda_url)
    try:
        return AppContext.from_config(cfg, today=today)
    except RoomboardError as exc:
        raise fail(exc) from exc


def fail(exc: RoomboardError | KeyError | ValueError) -> typer.Exit:
    message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
    print(f"[red]{escape(str(message))}[/red]")
    return typer.Exit(code=1)
