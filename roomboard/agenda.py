from __future__ import annotations

import datetime as dt
import json
import logging
import random
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from . import http_client
from .collection import SessionList
from .errors import AgendaError
from .loop import EventLoop
from .models import Session

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("onDay", "startsAt", "inRoom", "speaker", "topic")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")

FetchJson = Callable[[str], Any]


def parse_room_fragment(value: str | int | None) -> int | None:
    """Room number from `#3`, `http://host/board#3` or `3`.

    Only the leading digits count (`#3-east` is room 3). Anything else is None.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value)
    if "#" in text:
        text = text.split("#", 1)[1]
    match = _LEADING_INT_RE.match(text)
    if not match:
        return None
    return int(match.group(1))


def room_matches(in_room: Any, room: int | None) -> bool:
    if room is None or in_room is None or isinstance(in_room, bool):
        return False
    if isinstance(in_room, (int, float)):
        return in_room == room
    try:
        return float(str(in_room).strip()) == room
    except ValueError:
        return False


def parse_session_day(value: Any, *, day_one: dt.date) -> dt.date | None:
    """Calendar day of a session's `onDay` field.

    Accepts ISO dates, ISO datetimes (date part) and 1-based day indexes
    counted from `day_one`.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, int):
        if value < 1:
            return None
        return day_one + dt.timedelta(days=value - 1)
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return parse_session_day(int(text), day_one=day_one)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text).date()
    except ValueError:
        return None


def is_well_formed(candidate: Any) -> bool:
    if not isinstance(candidate, dict):
        return False
    return all(candidate.get(key) is not None for key in REQUIRED_FIELDS)


def load_document(url: str, *, timeout_s: float = 5.0) -> Any:
    parsed = urlparse(url)
    if parsed.scheme in {"http", "https"}:
        return http_client.fetch_json(url, timeout_s=timeout_s)
    path = Path(parsed.path if parsed.scheme == "file" else url.split("?", 1)[0])
    return json.loads(path.expanduser().read_text())


class AgendaLoader:
    """Fetches the agenda once and creates today's sessions."""

    def __init__(
        self,
        sessions: SessionList,
        *,
        url: str,
        room: int | None,
        today: dt.date | None = None,
        day_one: dt.date | None = None,
        fetch: FetchJson | None = None,
        loop: EventLoop | None = None,
        timeout_s: float = 5.0,
        rng: random.Random | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self.sessions = sessions
        self.url = url
        self.room = room
        self.today = today or dt.date.today()
        self.day_one = day_one or self.today
        self.timeout_s = timeout_s
        self.fetch = fetch or (lambda target: load_document(target, timeout_s=self.timeout_s))
        self.loop = loop
        self.rng = rng or random.Random()
        self.on_error = on_error
        self.errors: list[str] = []
        self.ingested: list[Session] = []

    def agenda_url(self) -> str:
        if urlparse(self.url).scheme not in {"http", "https"}:
            return self.url
        return http_client.add_query_param(self.url, "nocache", repr(self.rng.random()))

    def load(self) -> None:
        target = self.agenda_url()
        logger.info("fetching agenda from %s", target)
        if self.loop is None:
            try:
                document = self.fetch(target)
            except Exception as exc:
                self._failed(target, exc)
                return
            self._loaded(target, document)
            return
        self.loop.run_in_background(
            lambda: self.fetch(target),
            lambda document: self._loaded(target, document),
            lambda exc: self._failed(target, exc),
            name="roomboard-agenda",
        )

    def _loaded(self, target: str, document: Any) -> None:
        try:
            self.ingest(document)
        except AgendaError as exc:
            self._failed(target, exc)

    def _failed(self, target: str, exc: BaseException) -> None:
        logger.warning("agenda request to %s failed", target, exc_info=exc)
        message = f"Error requesting page {target}: {exc}"
        self.errors.append(message)
        if self.on_error is not None:
            self.on_error(message)

    def accepts(self, candidate: Any) -> bool:
        if not is_well_formed(candidate):
            logger.debug("skipping malformed session %r", candidate)
            return False
        day = parse_session_day(candidate["onDay"], day_one=self.day_one)
        if day is None:
            logger.debug("skipping session with unreadable day %r", candidate.get("onDay"))
            return False
        return day == self.today

    def ingest(self, document: Any) -> list[Session]:
        if not isinstance(document, dict):
            raise AgendaError("agenda document must be an object")
        candidates = document.get("agenda")
        if not isinstance(candidates, list):
            raise AgendaError("agenda document has no 'agenda' list")
        created: list[Session] = []
        for candidate in candidates:
            if not self.accepts(candidate):
                continue
            attributes = dict(candidate)
            attributes.pop("id", None)
            attributes["isThisRoom"] = room_matches(candidate.get("inRoom"), self.room)
            logger.info(
                "saving today's session %r by %s", candidate.get("topic"), candidate.get("speaker")
            )
            created.append(self.sessions.create(attributes))
        self.ingested.extend(created)
        return created
