from __future__ import annotations

from collections.abc import Callable, Iterable

import typer
from rich import print
from rich.markup import escape

from roomboard.agenda import FetchJson
from roomboard.app import AppContext, SessionApp
from roomboard.errors import RoomboardError
from roomboard.models import Session

from .common import fail


def _print_sessions(sessions: Iterable[Session], room: int | None) -> None:
    shown = 0
    for session in sessions:
        here = "[bold green]here[/bold green]" if session.is_this_room else "    "
        print(
            f"{here}  room {escape(str(session.get('inRoom')))}  "
            f"{escape(str(session.get('startsAt')))}  "
            f"{escape(str(session.get('topic')))} "
            f"[dim]({escape(str(session.get('speaker')))})[/dim]"
        )
        shown += 1
    if not shown:
        print("[yellow]No sessions today[/yellow]")
        return
    room_text = f"room {room}" if room is not None else "no room set"
    print(f"{shown} session{'s' if shown != 1 else ''} today ({room_text})")


def load_cmd(
    *,
    context_factory: Callable[[], AppContext],
    timeout_s: float,
    render: bool,
    fetch: FetchJson | None = None,
) -> None:
    """Fetch the agenda, keep today's sessions and print them."""

    context = context_factory()
    app: SessionApp | None = None
    try:
        app = SessionApp(context, fetch=fetch).start()
        if not context.loop.run_until_idle(timeout_s=timeout_s):
            print(f"[yellow]Agenda fetch did not finish within {timeout_s:.0f}s[/yellow]")
        for error in app.loader.errors:
            print(f"[red]{escape(error)}[/red]")
        if render:
            typer.echo(app.document.to_html(), nl=False)
        else:
            _print_sessions(context.sessions, context.room)
    except RoomboardError as exc:
        raise fail(exc) from exc
    finally:
        if app is not None:
            app.stop()
        context.close()


def list_cmd(*, context_factory: Callable[[], AppContext]) -> None:
    """Show sessions kept from the last load."""

    context = context_factory()
    try:
        context.sessions.fetch()
        _print_sessions(context.sessions, context.room)
    finally:
        context.close()


def render_cmd(*, context_factory: Callable[[], AppContext]) -> None:
    """Print the stored session board as HTML without fetching."""

    context = context_factory()
    app = SessionApp(context)
    try:
        app.attach()
        typer.echo(app.document.to_html(), nl=False)
    finally:
        app.stop()
        context.close()
