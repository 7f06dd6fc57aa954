"""Pytest fixtures for the task list tests."""

import sys
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from loguru import logger
from rich.console import Console

from tasklist.config import get_settings
from tasklist.models import StateChange
from tasklist.storage import MemoryStorage
from tasklist.store import TaskStore
from tasklist.view import ViewModel, ViewRenderer


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore loguru's default sink after tests that reconfigure it."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    """Keep tests away from the user's data directory and .env."""
    monkeypatch.setenv("TASKLIST_DATA_DIR", str(tmp_path_factory.mktemp("data")))
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2024, 5, 1, 9, 30, 0, 125000, tzinfo=UTC))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage, clock: TickingClock) -> TaskStore:
    """A loaded, empty store on memory storage."""
    task_store = TaskStore(storage, clock=clock)
    task_store.load()
    return task_store


@pytest.fixture
def changes(store: TaskStore) -> list[StateChange]:
    """Every change the store publishes after the fixture is requested."""
    received: list[StateChange] = []
    store.subscribe(received.append)
    return received


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=80, color_system=None, force_terminal=False)


@pytest.fixture
def renderer(console: Console) -> ViewRenderer:
    return ViewRenderer(console)


@pytest.fixture
def views(store: TaskStore, renderer: ViewRenderer) -> list[ViewModel]:
    """Views drawn by a renderer subscribed to the store."""
    drawn: list[ViewModel] = []
    store.subscribe(lambda change: drawn.append(renderer.render(change.tasks)))
    return drawn


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru output as "LEVEL message" strings."""
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(str(message).rstrip("\n")), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(sink_id)
