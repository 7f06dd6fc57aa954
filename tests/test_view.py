"""Tests for the view projection, rendering and the staged clear."""

import pytest
from rich.console import Console

from tasklist.store import TaskStore
from tasklist.view import CLEAR_HINT, EMPTY_MESSAGE, ClearSequence, ViewModel, ViewRenderer, build_view, format_count


@pytest.mark.parametrize("count, label", [(0, "0 tasks"), (1, "1 task"), (2, "2 tasks"), (11, "11 tasks")])
def test_format_count(count: int, label: str) -> None:
    assert format_count(count) == label


def test_build_view_empty() -> None:
    """Test the empty state hides the bulk-clear control."""
    view = build_view(())
    assert view == ViewModel(rows=[], count_label="0 tasks", clear_visible=False, empty=True)


def test_build_view_rows_follow_list_order(store: TaskStore) -> None:
    """Test one row per task, in order, bound by id."""
    a = store.add("a")
    b = store.add("b")
    assert a is not None and b is not None
    store.toggle(b.id)

    view = build_view(store.tasks)
    assert [(r.position, r.id, r.text, r.completed) for r in view.rows] == [
        (1, a.id, "a", False),
        (2, b.id, "b", True),
    ]
    assert view.count_label == "2 tasks"
    assert view.clear_visible is True
    assert view.empty is False


def test_build_view_marks_fading_rows(store: TaskStore) -> None:
    for text in ["a", "b", "c"]:
        store.add(text)
    view = build_view(store.tasks, fading=2)
    assert [r.fading for r in view.rows] == [True, True, False]


def test_render_draws_rows_and_count(store: TaskStore, renderer: ViewRenderer, console: Console) -> None:
    """Test rendered output contains each task, its checkbox and the count."""
    milk = store.add("buy milk")
    store.add("walk [bold]dog[/bold]")
    assert milk is not None
    store.toggle(milk.id)

    renderer.render(store.tasks)
    output = console.export_text()
    assert "1." in output and "2." in output
    assert "[x]" in output and "[ ]" in output
    assert "buy milk" in output
    assert "walk [bold]dog[/bold]" in output
    assert "2 tasks" in output
    assert CLEAR_HINT in output


def test_render_empty(renderer: ViewRenderer, console: Console) -> None:
    """Test the empty list shows the empty-state message and no clear control."""
    view = renderer.render(())
    output = console.export_text()
    assert EMPTY_MESSAGE in output
    assert "0 tasks" in output
    assert CLEAR_HINT not in output
    assert view.clear_visible is False


def test_render_is_full_replacement(store: TaskStore, renderer: ViewRenderer) -> None:
    """Test that each render reflects only the tasks passed in."""
    task = store.add("gone soon")
    assert task is not None
    first = renderer.render(store.tasks)
    store.remove(task.id)
    second = renderer.render(store.tasks)
    assert len(first.rows) == 1
    assert second.rows == []


class RecordingRenderer(ViewRenderer):
    def __init__(self, console: Console) -> None:
        super().__init__(console)
        self.frames: list[ViewModel] = []

    def render(self, tasks, fading: int = 0) -> ViewModel:
        view = super().render(tasks, fading=fading)
        self.frames.append(view)
        return view


def test_clear_sequence_fades_rows_then_clears(store: TaskStore, console: Console) -> None:
    """Test staged clear fades one more row per step before clearing."""
    for text in ["a", "b", "c"]:
        store.add(text)
    renderer = RecordingRenderer(console)
    sleeps: list[float] = []

    assert ClearSequence(store, renderer, stagger_ms=50, settle_ms=300, sleep=sleeps.append).run() is True
    assert [sum(r.fading for r in f.rows) for f in renderer.frames] == [1, 2, 3]
    assert sleeps == [0.05, 0.05, 0.05, 0.3]
    assert len(store) == 0


def test_clear_sequence_without_delays(store: TaskStore, console: Console) -> None:
    """Test that zero delays clear at once without intermediate frames."""
    store.add("a")
    renderer = RecordingRenderer(console)
    assert ClearSequence(store, renderer, stagger_ms=0, settle_ms=0).run() is True
    assert renderer.frames == []
    assert len(store) == 0


def test_clear_sequence_empty_store(store: TaskStore, console: Console) -> None:
    """Test that an empty list is left alone."""
    assert ClearSequence(store, RecordingRenderer(console), sleep=lambda _: None).run() is False


def test_clear_sequence_draws_from_live_state(store: TaskStore, console: Console) -> None:
    """Test a task added mid-sequence shows up in later frames and is cleared."""
    store.add("a")
    store.add("b")
    renderer = RecordingRenderer(console)
    added: list[str] = []

    def sleep(_: float) -> None:
        if not added:
            task = store.add("late arrival")
            assert task is not None
            added.append(task.id)

    ClearSequence(store, renderer, stagger_ms=10, settle_ms=0, sleep=sleep).run()
    assert [len(f.rows) for f in renderer.frames] == [2, 3, 3]
    assert renderer.frames[-1].rows[-1].text == "late arrival"
    assert len(store) == 0


def test_clear_sequence_tolerates_removal_mid_sequence(store: TaskStore, console: Console) -> None:
    """Test a removal mid-sequence shortens the fade instead of drawing stale rows."""
    for text in ["a", "b", "c"]:
        store.add(text)
    renderer = RecordingRenderer(console)

    def sleep(_: float) -> None:
        if len(store) == 3:
            store.remove(store.tasks[-1].id)

    ClearSequence(store, renderer, stagger_ms=10, settle_ms=0, sleep=sleep).run()
    assert [len(f.rows) for f in renderer.frames] == [3, 2]
    assert len(store) == 0
