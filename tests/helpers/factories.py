"""Document factories and an in-memory remote transport for todobi tests."""

import threading
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from todobi.models import Category, Document, Priority, Task
from todobi.services.transport import RemoteAbsentError, RemoteTransport, TransportError


BASE_TIME = datetime(2025, 11, 2, 14, 0, 0, tzinfo=timezone.utc)


def at(minutes: int = 0, days: int = 0) -> datetime:
    """A fixed timestamp offset from BASE_TIME."""
    return BASE_TIME + timedelta(days=days, minutes=minutes)


def make_category(category_id: str = "work", name: Optional[str] = None) -> Category:
    return Category(id=category_id, name=name or category_id.title())


def make_task(
    task_id: str = "1",
    content: Optional[str] = None,
    category_id: str = "work",
    priority: Priority = Priority.P1,
    done: bool = False,
    created_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
    notes: str = "",
) -> Task:
    return Task(
        id=task_id,
        content=content or f"Task {task_id}",
        category_id=category_id,
        priority=priority,
        done=done,
        created_at=created_at or BASE_TIME,
        completed_at=completed_at,
        notes=notes,
    )


def make_document(
    categories: Optional[List[Category]] = None,
    tasks: Optional[List[Task]] = None,
    last_update: Optional[datetime] = None,
    github_setup_complete: bool = True,
) -> Document:
    return Document(
        categories=categories if categories is not None else [make_category("work")],
        tasks=tasks if tasks is not None else [],
        last_update=last_update or BASE_TIME,
        github_setup_complete=github_setup_complete,
    )


class FakeTransport(RemoteTransport):
    """
    In-memory remote store.

    Records every call. ``fail_with`` makes the next fetch/publish raise;
    ``gate`` (a threading.Event) blocks fetch/publish until it is set, so
    tests can observe an operation while it is in flight.
    """

    def __init__(self, data: Optional[bytes] = None, exists: bool = True):
        self.data = data
        self.exists = exists
        self.calls: List[str] = []
        self.fail_with: Optional[TransportError] = None
        self.gate: Optional[threading.Event] = None

    def _wait(self) -> None:
        if self.gate is not None:
            self.gate.wait(timeout=5)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def remote_exists(self) -> bool:
        self.calls.append("remote_exists")
        return self.exists

    def create_remote(self) -> None:
        self.calls.append("create_remote")
        self.exists = True

    def fetch_remote(self) -> bytes:
        self.calls.append("fetch_remote")
        self._wait()
        self._maybe_fail()
        if self.data is None:
            raise RemoteAbsentError("Remote has no document")
        return self.data

    def publish_remote(self, data: bytes) -> None:
        self.calls.append("publish_remote")
        self._wait()
        self._maybe_fail()
        self.data = data

    def describe(self) -> str:
        return "fake remote"

    def set_document(self, document: Document) -> None:
        self.data = document.to_json_bytes()
        self.exists = True

    def document(self) -> Document:
        return Document.from_json_bytes(self.data)
