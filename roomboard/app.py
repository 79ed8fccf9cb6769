"""Board controllers.

`AppContext` is the explicitly constructed root object: it owns the stores,
collections, view registries and the event loop, and is handed to the
controllers instead of living in module globals. `CountdownApp` and
`SessionApp` wire collection events to view creation and keep the derived
header/stats markup current.
"""

from __future__ import annotations

import datetime as dt
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from . import templates
from .agenda import AgendaLoader, FetchJson
from .collection import CountdownList, SessionList
from .config import RoomboardConfig, load_config
from .document import Container, Document, Element
from .events import ADD, CHANGE, REFRESH, Event, Subscription
from .loop import EventLoop
from .models import Countdown, Session
from .notes import NoteTicker
from .store import COUNTDOWNS_NAMESPACE, SESSIONS_NAMESPACE, RecordStore
from .views import ENTER_KEYS, BoundView, CountdownView, SessionView, ViewRegistry

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: RoomboardConfig
    loop: EventLoop
    countdown_store: RecordStore
    session_store: RecordStore
    countdowns: CountdownList
    sessions: SessionList
    countdown_views: ViewRegistry = field(default_factory=ViewRegistry)
    session_views: ViewRegistry = field(default_factory=ViewRegistry)
    today: dt.date = field(default_factory=dt.date.today)

    @classmethod
    def from_config(
        cls,
        config: RoomboardConfig | None = None,
        *,
        today: dt.date | None = None,
        loop: EventLoop | None = None,
    ) -> AppContext:
        cfg = config or load_config()
        countdown_store = RecordStore(cfg.db_path, COUNTDOWNS_NAMESPACE)
        try:
            session_store = RecordStore(cfg.db_path, SESSIONS_NAMESPACE)
        except Exception:
            countdown_store.close()
            raise
        return cls(
            config=cfg,
            loop=loop or EventLoop(),
            countdown_store=countdown_store,
            session_store=session_store,
            countdowns=CountdownList(countdown_store),
            sessions=SessionList(session_store),
            today=today or dt.date.today(),
        )

    @property
    def room(self) -> int | None:
        return self.config.room

    def close(self) -> None:
        self.countdown_views.detach_all()
        self.session_views.detach_all()
        self.countdown_store.close()
        self.session_store.close()

    def __enter__(self) -> AppContext:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class _BoardApp:
    title = ""
    list_id = ""
    stats_id = ""

    def __init__(self, context: AppContext) -> None:
        self.context = context
        self.document = Document(
            title=self.title,
            list_container=Container(element_id=self.list_id),
            stats=Element(tag="div", element_id=self.stats_id),
        )
        self._subscriptions: list[Subscription] = []

    @property
    def collection(self) -> Any:
        raise NotImplementedError

    @property
    def views(self) -> ViewRegistry:
        raise NotImplementedError

    def make_view(self, record: Any) -> BoundView[Any]:
        raise NotImplementedError

    def render(self) -> None:
        raise NotImplementedError

    def _subscribe(self) -> None:
        if self._subscriptions:
            return
        self._subscriptions = [
            self.collection.on(ADD, self._on_add),
            self.collection.on(REFRESH, self._on_refresh),
            self.collection.on(CHANGE, self._on_change),
        ]

    def attach(self) -> _BoardApp:
        """Subscribe and load the persisted records without other side effects."""

        self._subscribe()
        self.collection.fetch()
        return self

    def stop(self) -> None:
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions = []
        self.views.detach_all()

    def add_one(self, record: Any) -> BoundView[Any]:
        view = self.make_view(record)
        self.document.list_container.append(view.render().el)
        self._sync_order()
        return view

    def add_all(self) -> None:
        self.views.detach_all()
        for record in self.collection:
            self.add_one(record)

    def _sync_order(self) -> None:
        container = self.document.list_container
        ordered: list[Element] = []
        for record in self.collection:
            view = self.views.get(record.id)
            if view is not None and view.el.parent is container:
                ordered.append(view.el)
        leftovers = [child for child in container.children if child not in ordered]
        container.children = ordered + leftovers

    def view_for(self, record_id: str) -> BoundView[Any] | None:
        return self.views.get(record_id)

    def _on_add(self, event: Event) -> None:
        if event.record is not None:
            self.add_one(event.record)

    def _on_refresh(self, event: Event) -> None:
        self.add_all()

    def _on_change(self, event: Event) -> None:
        self._sync_order()
        self.render()


class CountdownApp(_BoardApp):
    title = "Countdowns"
    list_id = "countdown-list"
    stats_id = "countdown-stats"

    def __init__(self, context: AppContext) -> None:
        super().__init__(context)
        self.input_value = ""
        self.stats = {"total": 0, "done": 0, "remaining": 0}

    @property
    def collection(self) -> CountdownList:
        return self.context.countdowns

    @property
    def views(self) -> ViewRegistry:
        return self.context.countdown_views

    def make_view(self, record: Countdown) -> CountdownView:
        return CountdownView(record, registry=self.views)

    def start(self) -> CountdownApp:
        self.attach()
        return self

    def render(self) -> None:
        done = len(self.collection.done())
        total = len(self.collection)
        self.stats = {"total": total, "done": done, "remaining": total - done}
        self.document.stats.html = templates.countdown_stats(**self.stats)

    def new_attributes(self, text: str | None = None) -> dict[str, Any]:
        return {
            "content": self.input_value if text is None else text,
            "order": self.collection.next_order(),
            "done": False,
        }

    def create_on_enter(self, key: str | int, text: str | None = None) -> Countdown | None:
        if key not in ENTER_KEYS:
            return None
        countdown = self.collection.create(self.new_attributes(text))
        self.input_value = ""
        return countdown

    def _view(self, record_id: str) -> CountdownView:
        view = self.views.get(record_id)
        if not isinstance(view, CountdownView):
            raise KeyError(record_id)
        return view

    def toggle(self, record_id: str) -> Countdown:
        view = self._view(record_id)
        view.toggle_done()
        return view.record

    def edit(self, record_id: str, text: str) -> Countdown:
        view = self._view(record_id)
        view.edit()
        view.set_input(text)
        view.update_on_key("Enter")
        return view.record

    def clear(self, record_id: str) -> None:
        self._view(record_id).clear()

    def clear_completed(self) -> int:
        return self.collection.clear_completed()


class SessionApp(_BoardApp):
    title = "Today's sessions"
    list_id = "session-list"
    stats_id = "session-header"

    def __init__(
        self,
        context: AppContext,
        *,
        fetch: FetchJson | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(context)
        cfg = context.config
        self.loader = AgendaLoader(
            context.sessions,
            url=cfg.agenda_url,
            room=context.room,
            today=context.today,
            day_one=cfg.day_one(),
            fetch=fetch,
            loop=context.loop,
            timeout_s=cfg.fetch_timeout_s,
            rng=rng,
            on_error=self.document.log_error,
        )
        self.ticker = NoteTicker(self._show_note, rng=rng)

    @property
    def collection(self) -> SessionList:
        return self.context.sessions

    @property
    def views(self) -> ViewRegistry:
        return self.context.session_views

    def make_view(self, record: Session) -> SessionView:
        return SessionView(record, registry=self.views)

    def start(self) -> SessionApp:
        self.attach()
        cleared = self.collection.clear_all()
        if cleared:
            logger.info("cleared %d sessions from a previous run", cleared)
        logger.info("this room's number is: %s", self.context.room)
        self.loader.load()
        self.ticker.start(self.context.loop, self.context.config.note_interval_s)
        return self

    def stop(self) -> None:
        self.ticker.stop(self.context.loop)
        super().stop()

    def render(self) -> None:
        self.document.stats.html = templates.session_header(
            total=len(self.collection),
            in_room=len(self.collection.in_room()),
            room=self.context.room,
        )

    def _show_note(self, note: str) -> None:
        self.document.note.html = templates.escape_text(note)

    def today_sessions(self) -> list[Session]:
        return list(self.collection)
