from __future__ import annotations


class RoomboardError(Exception):
    """Base class for errors surfaced to callers."""


class PersistenceError(RoomboardError):
    pass


class RecordNotFoundError(PersistenceError):
    def __init__(self, namespace: str, record_id: str) -> None:
        super().__init__(f"no {namespace} record with id {record_id!r}")
        self.namespace = namespace
        self.record_id = record_id


class DuplicateRecordError(PersistenceError):
    def __init__(self, namespace: str, record_id: str) -> None:
        super().__init__(f"{namespace} record {record_id!r} already exists")
        self.namespace = namespace
        self.record_id = record_id


class RecordDestroyedError(RoomboardError):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"record {record_id!r} has been destroyed")
        self.record_id = record_id


class AgendaError(RoomboardError):
    pass
