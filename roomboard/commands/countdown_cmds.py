from __future__ import annotations

from collections.abc import Callable

import typer
from rich import print
from rich.markup import escape

from roomboard.app import AppContext, CountdownApp
from roomboard.errors import RoomboardError
from roomboard.models import Countdown

from .common import fail


def resolve_countdown(app: CountdownApp, prefix: str) -> Countdown:
    matches = app.collection.find(prefix)
    if not matches:
        raise KeyError(f"No countdown matches {prefix!r}")
    if len(matches) > 1:
        raise KeyError(f"Countdown id {prefix!r} is ambiguous ({len(matches)} matches)")
    return matches[0]


def _print_countdown(countdown: Countdown) -> None:
    status = "[green]done[/green]" if countdown.done else "todo"
    print(f"{status}  #{countdown.order or 0:<3} {countdown.id[:8]}  {escape(countdown.content)}")


def _print_stats(app: CountdownApp) -> None:
    stats = app.stats
    print(f"{stats['total']} total, {stats['done']} done, {stats['remaining']} remaining")


def _run(context_factory: Callable[[], AppContext], action: Callable[[CountdownApp], None]) -> None:
    context = context_factory()
    try:
        app = CountdownApp(context).start()
        action(app)
    except (RoomboardError, KeyError) as exc:
        raise fail(exc) from exc
    finally:
        context.close()


def add_cmd(*, context_factory: Callable[[], AppContext], text: str) -> None:
    """Create a countdown from TEXT."""

    def action(app: CountdownApp) -> None:
        countdown = app.create_on_enter("Enter", text)
        assert countdown is not None
        print(f"[green]Added countdown {countdown.id[:8]} (#{countdown.order})[/green]")

    _run(context_factory, action)


def list_cmd(*, context_factory: Callable[[], AppContext], pending_only: bool) -> None:
    def action(app: CountdownApp) -> None:
        countdowns = app.collection.remaining() if pending_only else list(app.collection)
        if not countdowns:
            print("[yellow]No countdowns yet[/yellow]")
            return
        for countdown in countdowns:
            _print_countdown(countdown)
        _print_stats(app)

    _run(context_factory, action)


def toggle_cmd(*, context_factory: Callable[[], AppContext], record_id: str) -> None:
    def action(app: CountdownApp) -> None:
        countdown = app.toggle(resolve_countdown(app, record_id).id)
        state = "done" if countdown.done else "not done"
        print(f"Countdown {countdown.id[:8]} marked {state}")
        _print_stats(app)

    _run(context_factory, action)


def edit_cmd(*, context_factory: Callable[[], AppContext], record_id: str, text: str) -> None:
    def action(app: CountdownApp) -> None:
        countdown = app.edit(resolve_countdown(app, record_id).id, text)
        print(f"Countdown {countdown.id[:8]} now reads: {escape(countdown.content)}")

    _run(context_factory, action)


def remove_cmd(*, context_factory: Callable[[], AppContext], record_id: str) -> None:
    def action(app: CountdownApp) -> None:
        countdown = resolve_countdown(app, record_id)
        app.clear(countdown.id)
        print(f"Removed countdown {countdown.id[:8]}")
        _print_stats(app)

    _run(context_factory, action)


def clear_completed_cmd(*, context_factory: Callable[[], AppContext]) -> None:
    def action(app: CountdownApp) -> None:
        removed = app.clear_completed()
        print(f"Cleared {removed} completed countdown{'s' if removed != 1 else ''}")

    _run(context_factory, action)


def stats_cmd(*, context_factory: Callable[[], AppContext]) -> None:
    _run(context_factory, _print_stats)


def render_cmd(*, context_factory: Callable[[], AppContext]) -> None:
    def action(app: CountdownApp) -> None:
        typer.echo(app.document.to_html(), nl=False)

    _run(context_factory, action)
