from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, ClassVar, Generic, TypeVar

from .events import ADD, CHANGE, DESTROY, REFRESH, REMOVE, Emitter, Event, Handler, Subscription
from .models import Countdown, Record, Session
from .store import COUNTDOWNS_NAMESPACE, SESSIONS_NAMESPACE, RecordStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class Collection(Generic[R]):
    """Ordered, observable set of records backed by one store namespace.

    Iteration follows `comparator`, with ties kept in insertion order.
    """

    model: ClassVar[type[Record]] = Record
    namespace: ClassVar[str] = ""
    sequenced: ClassVar[bool] = False

    def __init__(self, store: RecordStore | None = None) -> None:
        self.store = store
        self._events = Emitter()
        self._records: list[R] = []
        self._by_id: dict[str, R] = {}
        self._inserted_at: dict[str, int] = {}
        self._record_subs: dict[str, list[Subscription]] = {}
        self._insert_counter = 0

    def comparator(self, record: R) -> Any:
        return 0

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[R]:
        return iter(list(self._records))

    def __contains__(self, record: object) -> bool:
        if isinstance(record, Record):
            return record.id in self._by_id
        if isinstance(record, str):
            return record in self._by_id
        return False

    def get(self, record_id: str) -> R | None:
        return self._by_id.get(record_id)

    def find(self, prefix: str) -> list[R]:
        return [record for record in self._records if record.id.startswith(prefix)]

    def first(self) -> R | None:
        return self._records[0] if self._records else None

    def last(self) -> R | None:
        return self._records[-1] if self._records else None

    def filter(self, predicate: Callable[[R], bool]) -> Iterator[R]:
        return (record for record in list(self._records) if predicate(record))

    def on(self, kind: str, handler: Handler) -> Subscription:
        return self._events.on(kind, handler)

    def off(self, subscription: Subscription) -> None:
        self._events.off(subscription)

    def next_order(self) -> int:
        orders = [
            value
            for value in (record.get("order") for record in self._records)
            if isinstance(value, int) and not isinstance(value, bool)
        ]
        if not orders:
            return 1
        return max(orders) + 1

    def _sort(self) -> None:
        self._records.sort(
            key=lambda record: (self.comparator(record), self._inserted_at[record.id])
        )

    def _attach(self, record: R) -> None:
        record.store = self.store
        self._records.append(record)
        self._by_id[record.id] = record
        self._inserted_at[record.id] = self._insert_counter
        self._insert_counter += 1
        self._record_subs[record.id] = [
            record.on(CHANGE, self._on_record_change),
            record.on(DESTROY, self._on_record_destroy),
        ]

    def _detach(self, record: R) -> None:
        self._records = [r for r in self._records if r.id != record.id]
        self._by_id.pop(record.id, None)
        self._inserted_at.pop(record.id, None)
        for sub in self._record_subs.pop(record.id, []):
            sub.cancel()

    def add(self, record: R) -> R:
        existing = self._by_id.get(record.id)
        if existing is not None:
            return existing
        self._attach(record)
        self._sort()
        self._events.emit(Event(ADD, record_id=record.id, record=record))
        self._events.emit(Event(CHANGE, record_id=record.id, record=record))
        return record

    def build(self, attributes: dict[str, Any] | None = None) -> R:
        attrs = dict(attributes or {})
        if self.sequenced and "order" not in attrs:
            attrs["order"] = self.next_order()
        return self.model(attrs, store=self.store)  # type: ignore[return-value]

    def create(self, attributes: dict[str, Any] | None = None) -> R:
        record = self.build(attributes)
        record.save()
        return self.add(record)

    def remove(self, record: R) -> R | None:
        existing = self._by_id.get(record.id)
        if existing is None:
            return None
        self._detach(existing)
        self._sort()
        self._events.emit(Event(REMOVE, record_id=existing.id, record=existing))
        self._events.emit(Event(CHANGE, record_id=existing.id, record=existing))
        return existing

    def fetch(self) -> list[R]:
        for record in list(self._records):
            self._detach(record)
        self._insert_counter = 0
        if self.store is not None:
            for stored in self.store.load_all():
                record = self.model(
                    stored.attributes,
                    record_id=stored.record_id,
                    store=self.store,
                    persisted=True,
                )
                if record.id in self._by_id:
                    continue
                self._attach(record)  # type: ignore[arg-type]
        self._sort()
        logger.debug("fetched %d %s records", len(self._records), self.namespace)
        self._events.emit(Event(REFRESH))
        self._events.emit(Event(CHANGE))
        return list(self._records)

    def clear_all(self) -> int:
        removed = 0
        for record in list(self._records):
            record.destroy()
            removed += 1
        return removed

    def _on_record_change(self, event: Event) -> None:
        if event.record_id not in self._by_id:
            return
        self._sort()
        self._events.emit(
            Event(
                CHANGE,
                record_id=event.record_id,
                record=event.record,
                previous=event.previous,
                current=event.current,
            )
        )

    def _on_record_destroy(self, event: Event) -> None:
        record = self._by_id.get(event.record_id or "")
        if record is not None:
            self.remove(record)


class CountdownList(Collection[Countdown]):
    model = Countdown
    namespace = COUNTDOWNS_NAMESPACE
    sequenced = True

    def comparator(self, record: Countdown) -> Any:
        order = record.order
        return order if order is not None else 0

    def done(self) -> list[Countdown]:
        return list(self.filter(lambda countdown: countdown.done))

    def remaining(self) -> list[Countdown]:
        return list(self.filter(lambda countdown: not countdown.done))

    def clear_completed(self) -> int:
        completed = self.done()
        for countdown in completed:
            countdown.destroy()
        return len(completed)


def room_sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return (1, str(value))
    if isinstance(value, int):
        return (0, value)
    text = str(value).strip()
    try:
        return (0, int(text))
    except ValueError:
        return (1, text)


class SessionList(Collection[Session]):
    model = Session
    namespace = SESSIONS_NAMESPACE

    def comparator(self, record: Session) -> Any:
        return room_sort_key(record.get("inRoom"))

    def in_room(self) -> list[Session]:
        return list(self.filter(lambda session: session.is_this_room))
