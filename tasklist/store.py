"""In-memory task list with write-through persistence.

The store owns the authoritative ordered list. Every effective mutation
persists the whole list and then notifies subscribers once.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from loguru import logger

from tasklist.codec import decode_tasks, encode_tasks
from tasklist.errors import StorageReadFailure, StorageWriteFailure
from tasklist.models import StateChange, Task, TaskSnapshot
from tasklist.storage import KeyValueStorage

STORAGE_KEY = "tasks"

Listener = Callable[[StateChange], None]


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds, the precision that is stored."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class TaskStore:
    """Ordered task list backed by a key-value storage."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize an empty store; call load() to hydrate it."""
        self._storage = storage
        self._key = key
        self._clock = clock
        self._tasks: list[Task] = []
        self._listeners: list[Listener] = []
        self._last_id = 0

    @property
    def tasks(self) -> TaskSnapshot:
        """Read-only snapshot of the list in display order."""
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        """Get a task by its ID, or None if not found."""
        return next((task for task in self._tasks if task.id == task_id), None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self) -> TaskSnapshot:
        """Replace the list with the persisted one; unreadable data yields an empty list."""
        try:
            raw = self._storage.get_item(self._key)
            tasks = [] if raw is None else decode_tasks(raw)
        except StorageReadFailure as exc:
            logger.error("Error loading tasks from storage: {}", exc)
            tasks = []
        self._tasks = tasks
        self._last_id = max([self._last_id, *(int(t.id) for t in tasks if t.id.isdecimal())])
        logger.debug("Loaded {} task(s) from {!r}", len(tasks), self._key)
        self._notify(count_changed=True)
        return self.tasks

    def add(self, text: str) -> Task | None:
        """Append a new task. Blank text is ignored and returns None."""
        text = text.strip()
        if not text:
            return None
        now = self._clock()
        task = Task(id=self._new_id(now), text=text, created_at=now, completed=False)
        self._tasks.append(task)
        logger.debug("Added task {}", task.id)
        self._commit(count_changed=True)
        return task

    def remove(self, task_id: str) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        remaining = [task for task in self._tasks if task.id != task_id]
        if len(remaining) == len(self._tasks):
            return False
        self._tasks = remaining
        logger.debug("Removed task {}", task_id)
        self._commit(count_changed=True)
        return True

    def toggle(self, task_id: str) -> Task | None:
        """Flip a task's completion flag. Returns None if not found."""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                updated = task.model_copy(update={"completed": not task.completed})
                self._tasks[index] = updated
                logger.debug("Task {} completed={}", task_id, updated.completed)
                self._commit(count_changed=False)
                return updated
        return None

    def clear(self) -> bool:
        """Delete all tasks. Returns False if there was nothing to delete."""
        if not self._tasks:
            return False
        removed = len(self._tasks)
        self._tasks = []
        logger.debug("Cleared {} task(s)", removed)
        self._commit(count_changed=True)
        return True

    def _new_id(self, now: datetime) -> str:
        candidate = max(int(now.timestamp() * 1000), self._last_id + 1)
        existing = {task.id for task in self._tasks}
        while str(candidate) in existing:
            candidate += 1
        self._last_id = candidate
        return str(candidate)

    def _commit(self, count_changed: bool) -> None:
        self._save()
        self._notify(count_changed)

    def _save(self) -> None:
        try:
            self._storage.set_item(self._key, encode_tasks(self._tasks))
        except StorageWriteFailure as exc:
            logger.error("Error saving tasks to storage: {}", exc)

    def _notify(self, count_changed: bool) -> None:
        change = StateChange(tasks=self.tasks, count_changed=count_changed)
        for listener in list(self._listeners):
            listener(change)
