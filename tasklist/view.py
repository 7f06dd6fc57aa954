"""Terminal rendering of the task list.

``build_view`` projects a task snapshot onto a ``ViewModel``;
``ViewRenderer`` draws that model with rich, replacing whatever it drew
before. Nothing is carried over from one render to the next.
"""

import time
from collections.abc import Callable

from loguru import logger
from pydantic import BaseModel, Field
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from tasklist.models import Task
from tasklist.store import TaskStore

EMPTY_MESSAGE = "No tasks yet. Add one above!"
CLEAR_HINT = ":clear  Delete all"


def format_count(count: int) -> str:
    """Human-readable task count: "1 task", "N tasks"."""
    return f"{count} {'task' if count == 1 else 'tasks'}"


class TaskRow(BaseModel):
    """One visual row, bound to a task by id."""

    position: int = Field(..., ge=1, description="1-based row number shown to the user")
    id: str
    text: str
    completed: bool
    fading: bool = Field(default=False, description="Row is being removed by a staged clear")


class ViewModel(BaseModel):
    """Everything a render shows."""

    rows: list[TaskRow]
    count_label: str
    clear_visible: bool
    empty: bool


def build_view(tasks: tuple[Task, ...] | list[Task], fading: int = 0) -> ViewModel:
    """Project tasks onto rows; the first ``fading`` rows are marked as fading."""
    rows = [
        TaskRow(
            position=position,
            id=task.id,
            text=task.text,
            completed=task.completed,
            fading=position <= fading,
        )
        for position, task in enumerate(tasks, start=1)
    ]
    return ViewModel(
        rows=rows,
        count_label=format_count(len(rows)),
        clear_visible=bool(rows),
        empty=not rows,
    )


class ViewRenderer:
    """Draws the task list to a rich console, fully replacing the previous frame."""

    def __init__(self, console: Console, clear_screen: bool = False) -> None:
        """Draw to ``console``; with ``clear_screen`` each frame starts on a blank screen."""
        self.console = console
        self.clear_screen = clear_screen

    def render(self, tasks: tuple[Task, ...] | list[Task], fading: int = 0) -> ViewModel:
        """Redraw the whole list and count, returning the view that was drawn."""
        view = build_view(tasks, fading=fading)
        if self.clear_screen:
            self.console.clear()
        self.console.print(self._draw(view))
        return view

    def _draw(self, view: ViewModel) -> Group:
        if view.empty:
            body = Text(EMPTY_MESSAGE, style="dim italic")
        else:
            body = Table(show_header=False, box=None, pad_edge=False)
            body.add_column(justify="right", style="cyan", no_wrap=True)
            body.add_column(no_wrap=True)
            body.add_column(ratio=1)
            body.add_column(style="red", no_wrap=True)
            for row in view.rows:
                style = "dim strike" if row.completed else ""
                if row.fading:
                    style = "bright_black"
                body.add_row(
                    f"{row.position}.",
                    Text("[x]" if row.completed else "[ ]"),
                    Text(row.text, style=style),
                    "×",
                )

        footer = Text(view.count_label, style="bold")
        if view.clear_visible:
            footer.append("    ")
            footer.append(CLEAR_HINT, style="red")
        return Group(body, Text(""), footer)


class ClearSequence:
    """Staged "delete all": fade rows one at a time, then clear the store.

    Each step re-reads the store's current tasks, so a mutation that lands
    between steps is drawn from live state. With both delays at zero the
    store is cleared without intermediate frames.
    """

    def __init__(
        self,
        store: TaskStore,
        renderer: ViewRenderer,
        stagger_ms: int = 50,
        settle_ms: int = 300,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Delays are in milliseconds; ``sleep`` is injectable for tests."""
        self._store = store
        self._renderer = renderer
        self._stagger = stagger_ms / 1000
        self._settle = settle_ms / 1000
        self._sleep = sleep

    def run(self) -> bool:
        """Returns False when there was nothing to clear."""
        if not len(self._store):
            return False
        if self._stagger or self._settle:
            step = 0
            while step < len(self._store):
                step += 1
                self._renderer.render(self._store.tasks, fading=step)
                if self._stagger:
                    self._sleep(self._stagger)
            if self._settle:
                self._sleep(self._settle)
            logger.debug("Staged clear faded {} row(s)", step)
        return self._store.clear()
