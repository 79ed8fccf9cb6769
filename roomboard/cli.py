from __future__ import annotations

import datetime as dt
from functools import partial

import typer
from rich import print

from . import __version__
from .commands import countdown_cmds, session_cmds
from .commands.common import config_from_options, context_from_options
from .commands.viewer_cmds import serve as _serve

app = typer.Typer(help="roomboard: countdown and room agenda boards")
countdowns_app = typer.Typer(help="Manage countdown items")
sessions_app = typer.Typer(help="Today's sessions for this room")
app.add_typer(countdowns_app, name="countdowns")
app.add_typer(sessions_app, name="sessions")

DB_PATH_HELP = "Path to SQLite database"


def _parse_today(value: str | None) -> dt.date | None:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


@countdowns_app.command("add")
def countdowns_add(
    text: str = typer.Argument(..., help="Countdown text"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Create a countdown."""

    countdown_cmds.add_cmd(context_factory=partial(context_from_options, db_path=db_path), text=text)


@countdowns_app.command("list")
def countdowns_list(
    pending: bool = typer.Option(False, "--pending", help="Only show countdowns not done"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """List countdowns in order."""

    countdown_cmds.list_cmd(
        context_factory=partial(context_from_options, db_path=db_path), pending_only=pending
    )


@countdowns_app.command("toggle")
def countdowns_toggle(
    record_id: str = typer.Argument(..., help="Countdown id or unique prefix"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Flip a countdown between done and not done."""

    countdown_cmds.toggle_cmd(
        context_factory=partial(context_from_options, db_path=db_path), record_id=record_id
    )


@countdowns_app.command("edit")
def countdowns_edit(
    record_id: str = typer.Argument(..., help="Countdown id or unique prefix"),
    text: str = typer.Argument(..., help="New text"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Replace a countdown's text."""

    countdown_cmds.edit_cmd(
        context_factory=partial(context_from_options, db_path=db_path),
        record_id=record_id,
        text=text,
    )


@countdowns_app.command("rm")
def countdowns_rm(
    record_id: str = typer.Argument(..., help="Countdown id or unique prefix"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Delete a countdown."""

    countdown_cmds.remove_cmd(
        context_factory=partial(context_from_options, db_path=db_path), record_id=record_id
    )


@countdowns_app.command("clear-completed")
def countdowns_clear_completed(db_path: str = typer.Option(None, help=DB_PATH_HELP)) -> None:
    """Delete every countdown marked done."""

    countdown_cmds.clear_completed_cmd(
        context_factory=partial(context_from_options, db_path=db_path)
    )


@countdowns_app.command("stats")
def countdowns_stats(db_path: str = typer.Option(None, help=DB_PATH_HELP)) -> None:
    """Show total, done and remaining counts."""

    countdown_cmds.stats_cmd(context_factory=partial(context_from_options, db_path=db_path))


@sessions_app.command("load")
def sessions_load(
    room: str = typer.Option(None, help="Room number, e.g. 3 or '#3'"),
    url: str = typer.Option(None, help="Agenda JSON URL or file path"),
    today: str = typer.Option(None, help="Treat this date (YYYY-MM-DD) as today"),
    timeout: float = typer.Option(10.0, help="Seconds to wait for the agenda"),
    html: bool = typer.Option(False, "--html", help="Print the board as HTML"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Replace stored sessions with today's sessions from the agenda."""

    session_cmds.load_cmd(
        context_factory=partial(
            context_from_options,
            db_path=db_path,
            room=room,
            agenda_url=url,
            today=_parse_today(today),
        ),
        timeout_s=timeout,
        render=html,
    )


@sessions_app.command("list")
def sessions_list(
    room: str = typer.Option(None, help="Room number, e.g. 3 or '#3'"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Show the sessions kept from the last load."""

    session_cmds.list_cmd(
        context_factory=partial(context_from_options, db_path=db_path, room=room)
    )


@app.command("render")
def render(
    board: str = typer.Argument("countdowns", help="Board to print: countdowns or sessions"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Print a board document as HTML."""

    factory = partial(context_from_options, db_path=db_path)
    if board == "countdowns":
        countdown_cmds.render_cmd(context_factory=factory)
    elif board == "sessions":
        session_cmds.render_cmd(context_factory=factory)
    else:
        raise typer.BadParameter(f"expected 'countdowns' or 'sessions', got {board!r}")


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind viewer"),
    port: int = typer.Option(None, help="Port to bind viewer"),
    db_path: str = typer.Option(None, help=DB_PATH_HELP),
) -> None:
    """Serve the boards over HTTP."""

    cfg = config_from_options(db_path=db_path)
    _serve(host=host or cfg.viewer_host, port=port or cfg.viewer_port, config=cfg)


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
