"""
Command-line interface for the task list.

One-shot commands (``add``, ``toggle``, ``rm``, ``clear``, ``list``) load
the stored list, apply a single operation and print the resulting view.
``shell`` keeps the list on screen and reads commands until quit.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from tasklist.config import Settings, get_settings
from tasklist.logging_setup import setup_logging
from tasklist.models import StateChange, Task
from tasklist.storage import FileStorage
from tasklist.store import TaskStore
from tasklist.view import ClearSequence, ViewRenderer

app = typer.Typer(
    name="tasklist",
    help="A local task list: add tasks, tick them off, delete them.",
    no_args_is_help=True,
)

console = Console()

CONFIRM_CLEAR = "Are you sure you want to delete all tasks?"

SHELL_HELP = """\
Type a task and press Enter to add it.
Start it with :: to add a task beginning with a colon.
  :x N      toggle task N (or :done N)
  :rm N     delete task N
  :clear    delete all tasks
  :list     redraw the list
  :help     show this help
  :q        quit"""


def open_store(settings: Settings) -> TaskStore:
    """Create a TaskStore on the configured origin. Not yet loaded."""
    storage = FileStorage(settings.data_dir, origin=settings.origin, quota_bytes=settings.quota_bytes)
    return TaskStore(storage, key=settings.storage_key)


def resolve_ref(tasks: tuple[Task, ...], ref: str) -> str | None:
    """Map a task id or a 1-based row number to a task id."""
    ref = ref.strip().rstrip(".")
    for task in tasks:
        if task.id == ref:
            return task.id
    if ref.isdecimal() and 1 <= int(ref) <= len(tasks):
        return tasks[int(ref) - 1].id
    return None


class Shell:
    """Interactive loop: the view is redrawn from every store change."""

    def __init__(
        self,
        store: TaskStore,
        renderer: ViewRenderer,
        clear_sequence: ClearSequence,
        read_line: Callable[[str], str],
        confirm: Callable[[str], bool],
    ) -> None:
        """Subscribe the renderer; ``read_line`` and ``confirm`` are the input side."""
        self.store = store
        self.renderer = renderer
        self.clear_sequence = clear_sequence
        self.read_line = read_line
        self.confirm = confirm
        self._unsubscribe = store.subscribe(self._on_change)

    def _on_change(self, change: StateChange) -> None:
        self.renderer.render(change.tasks)

    def _warn(self, message: str) -> None:
        self.renderer.console.print(f"[yellow]{escape(message)}[/]")

    def run(self) -> None:
        """Load the list and read lines until quit or end of input."""
        self.store.load()
        try:
            while True:
                try:
                    line = self.read_line("› ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not self.handle(line):
                    break
        finally:
            self._unsubscribe()

    def handle(self, line: str) -> bool:
        """Process one input line. Returns False when the user quits."""
        stripped = line.strip()
        if not stripped.startswith(":") or stripped.startswith("::"):
            # "::" escapes a leading colon. Blank input is ignored.
            self.store.add(stripped[1:] if stripped.startswith("::") else stripped)
            return True

        command, _, arg = stripped[1:].partition(" ")
        command = command.lower()
        if command in {"q", "quit", "exit"}:
            return False
        if command in {"h", "help"}:
            self.renderer.console.print(SHELL_HELP)
        elif command in {"l", "list"}:
            self.renderer.render(self.store.tasks)
        elif command in {"x", "done", "toggle"}:
            self._with_ref(arg, self.store.toggle)
        elif command in {"rm", "del", "delete"}:
            self._with_ref(arg, self.store.remove)
        elif command == "clear":
            if len(self.store) and self.confirm(CONFIRM_CLEAR):
                self.clear_sequence.run()
        else:
            self._warn(f"Unknown command :{command}. Type :help for instructions.")
        return True

    def _with_ref(self, ref: str, operation: Callable[[str], Any]) -> None:
        if not ref.strip():
            self._warn("Usage: :x N, :rm N")
            return
        task_id = resolve_ref(self.store.tasks, ref)
        if task_id is None:
            self._warn(f"No task {ref.strip()!r}.")
            return
        operation(task_id)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _run_once(ctx: typer.Context, operation: Callable[[TaskStore], Any]) -> Any:
    """Load, subscribe the view, run one operation; draw once even if nothing changed."""
    store = open_store(_settings(ctx))
    store.load()
    renderer = ViewRenderer(console)
    drawn = False

    def on_change(change: StateChange) -> None:
        nonlocal drawn
        renderer.render(change.tasks)
        drawn = True

    store.subscribe(on_change)
    result = operation(store)
    if not drawn:
        renderer.render(store.tasks)
    return result


def _by_ref(ref: str, operation: Callable[[TaskStore, str], Any]) -> Callable[[TaskStore], Any]:
    def run(store: TaskStore) -> Any:
        task_id = resolve_ref(store.tasks, ref)
        if task_id is None:
            return None
        return operation(store, task_id)

    return run


@app.callback()
def common(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory holding the storage files",
    ),
    origin: str | None = typer.Option(
        None,
        "--origin",
        "-o",
        help="Storage scope; each origin keeps its own task list",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Console log level (DEBUG, INFO, WARNING, ...)",
    ),
) -> None:
    """
    Common parameters for all commands.
    """
    overrides: dict[str, Any] = {}
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if origin is not None:
        overrides["origin"] = origin
    if log_level is not None:
        overrides["log_level"] = log_level
    try:
        # Explicit options take priority over TASKLIST_* variables and .env.
        settings = Settings(**overrides) if overrides else get_settings()
    except ValueError as e:
        console.print(f"[red]Invalid setting:[/red] {escape(str(e))}", style="bold red")
        raise typer.Exit(code=2)
    setup_logging(settings.log_level, settings.log_file)
    logger.debug("Using storage {}/{}.json", settings.data_dir, settings.origin)
    ctx.obj = {"settings": settings}


@app.command()
def add(
    ctx: typer.Context,
    text: list[str] = typer.Argument(..., help="Task text"),
) -> None:
    """
    Add a task. Blank text is ignored.
    """
    _run_once(ctx, lambda store: store.add(" ".join(text)))


@app.command()
def toggle(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Task id or row number"),
) -> None:
    """
    Mark a task complete, or not complete again.
    """
    if _run_once(ctx, _by_ref(ref, TaskStore.toggle)) is None:
        console.print(f"[yellow]No task {escape(repr(ref))}.[/]")
        raise typer.Exit(code=1)


@app.command("rm")
def remove(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Task id or row number"),
) -> None:
    """
    Delete a task.
    """
    if not _run_once(ctx, _by_ref(ref, TaskStore.remove)):
        console.print(f"[yellow]No task {escape(repr(ref))}.[/]")
        raise typer.Exit(code=1)


@app.command()
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """
    Delete all tasks.
    """

    def run(store: TaskStore) -> bool:
        if not len(store):
            return False
        if not yes and not typer.confirm(CONFIRM_CLEAR, default=False):
            return False
        return store.clear()

    _run_once(ctx, run)


@app.command("list")
def list_tasks(ctx: typer.Context) -> None:
    """
    Show all tasks.
    """
    _run_once(ctx, lambda store: None)


@app.command()
def shell(ctx: typer.Context) -> None:
    """
    Interactive task list. Type :help for commands.
    """
    settings = _settings(ctx)
    store = open_store(settings)
    renderer = ViewRenderer(console, clear_screen=True)
    sequence = ClearSequence(
        store,
        renderer,
        stagger_ms=settings.clear_stagger_ms,
        settle_ms=settings.clear_settle_ms,
    )
    Shell(
        store,
        renderer,
        sequence,
        read_line=console.input,
        confirm=lambda question: typer.confirm(question, default=False),
    ).run()


def main() -> None:
    app(prog_name="tasklist")
