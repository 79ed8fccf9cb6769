from __future__ import annotations

from html import escape
from typing import Any


def escape_text(value: Any) -> str:
    if value is None:
        return ""
    return escape(str(value))


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


def countdown_item(attributes: dict[str, Any], *, input_value: str | None = None) -> str:
    done = bool(attributes.get("done"))
    content = attributes.get("content", "")
    value = content if input_value is None else input_value
    checked = " checked" if done else ""
    done_class = " done" if done else ""
    return (
        f'<div class="countdown{done_class}">'
        '<div class="display">'
        f'<input class="check" type="checkbox"{checked}>'
        f'<div class="countdown-content">{escape_text(content)}</div>'
        '<span class="countdown-destroy"></span>'
        "</div>"
        '<div class="edit">'
        f'<input class="countdown-input" type="text" value="{escape_text(value)}">'
        "</div>"
        "</div>"
    )


def countdown_stats(*, total: int, done: int, remaining: int) -> str:
    if not total:
        return ""
    parts = [
        '<span class="countdown-count">'
        f'<span class="number">{remaining}</span> '
        f'<span class="word">{_plural(remaining, "item")}</span> left.'
        "</span>"
    ]
    if done:
        parts.append(
            '<span class="countdown-clear"><a href="#">'
            f'Clear <span class="number-done">{done}</span> completed '
            f'<span class="word-done">{_plural(done, "item")}</span>'
            "</a></span>"
        )
    return "".join(parts)


def session_item(attributes: dict[str, Any]) -> str:
    return (
        '<div class="session">'
        f'<span class="session-time">{escape_text(attributes.get("startsAt"))}</span>'
        f'<span class="session-room">Room {escape_text(attributes.get("inRoom"))}</span>'
        f'<span class="session-topic">{escape_text(attributes.get("topic"))}</span>'
        f'<span class="session-speaker">{escape_text(attributes.get("speaker"))}</span>'
        "</div>"
    )


def session_header(*, total: int, in_room: int, room: int | None) -> str:
    room_text = f"Room {room}" if room is not None else "No room set"
    return (
        f'<span class="session-room-label">{escape_text(room_text)}</span> '
        f'<span class="session-count">{total} {_plural(total, "session")} today, '
        f"{in_room} here</span>"
    )
