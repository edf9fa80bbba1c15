# tests/conftest.py

from __future__ import annotations

import itertools
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdesk.core.preferences import Preferences
from taskdesk.core.state import AppState
from taskdesk.sync.dispatcher import SyncDispatcher
from taskdesk.tasks.task_store import TaskDraft, TaskStore

from .fakes import FakeClipboard, FakeLLMClient, FakeOpener, FakeTransport, MemoryStorage

TODAY = date(2026, 10, 18)
ENDPOINT = "https://script.google.com/macros/s/abc/exec"


class FixedClock:
    """Injectable "today" that tests can move."""

    def __init__(self, today: date = TODAY) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


def make_draft(content: str = "Publish drawings", **kw) -> TaskDraft:
    fields = dict(
        content=content,
        system="HVAC",
        category="Drawing",
        assigner="Sun",
        assignee="Liao",
        assigned_date=TODAY.isoformat(),
    )
    fields.update(kw)
    return TaskDraft(**fields)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(storage: MemoryStorage, clock: FixedClock) -> TaskStore:
    counter = itertools.count(1)
    ticks = itertools.count(1000)
    return TaskStore(
        storage,
        clock=clock,
        id_factory=lambda: f"id{next(counter):04d}",
        time_source=lambda: float(next(ticks)),
    )


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the command handlers.

    A SimpleNamespace keeps unit tests independent of the process environment.
    """
    return SimpleNamespace(
        data_dir=tmp_path / "data",
        storage_path=tmp_path / "data" / "storage.json",
        export_dir=tmp_path / "exports",
        auto_sync_sheet=True,
        endpoint_host="script.google.com",
    )


@pytest.fixture()
def preferences(storage: MemoryStorage) -> Preferences:
    return Preferences(storage, endpoint_host="script.google.com", default_sheet_url="https://sheet.example/1")


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture()
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture()
def dispatcher(store, preferences, transport, clipboard, opener) -> SyncDispatcher:
    return SyncDispatcher(store, preferences, transport, clipboard, opener)


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings, llm, store, preferences, dispatcher) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(
        settings=settings,
        llm=llm,
        task_store=store,
        preferences=preferences,
        dispatcher=dispatcher,
    )
