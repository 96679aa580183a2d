"""Row widgets for the task and category panes.

This module provides one-line widgets rendered as Rich Text:
- TaskRow: checkbox, priority, content, category and age/completion time
- CategoryRow: category name with its pending/total task counts
"""

from datetime import datetime
from typing import Optional

from rich.text import Text
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget

from todobi.models import Category, Task
from todobi.ui.theme import (
    COMMENT,
    COMPLETE_COLOR,
    FOREGROUND,
    HOVER_OPACITY,
    INFO,
    SELECTION,
    SUCCESS,
    get_priority_style,
    with_alpha,
)
from todobi.utils.datetime_utils import format_completed_at


def row_css(name: str) -> str:
    """CSS shared by all row widgets, scoped to the widget class name."""
    return f"""
    {name} {{
        height: 1;
        width: 100%;
        background: transparent;
    }}

    {name}:hover {{
        background: {with_alpha(SELECTION, HOVER_OPACITY)};
    }}

    {name}.selected {{
        background: {SELECTION};
    }}
    """


class SelectableRow(Widget):
    """A single selectable line in a pane."""

    selected: reactive[bool] = reactive(False)

    def __init__(self, item_id: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.item_id = item_id

    def watch_selected(self, selected: bool) -> None:
        """React to selection state changes."""
        self.set_class(selected, "selected")
        self.refresh()

    def on_click(self) -> None:
        """Handle click event on the row."""
        self.post_message(self.Clicked(self.item_id))

    class Clicked(Message):
        """Message emitted when a row is clicked."""

        def __init__(self, item_id: str) -> None:
            super().__init__()
            self.item_id = item_id


class TaskRow(SelectableRow):
    """A widget representing a single task.

    Displays:
    - Completion checkbox ([ ] / [✓])
    - Priority label in its priority color
    - Task content (struck through when done)
    - Category name
    - Age for pending tasks, completion time for done tasks
    """

    DEFAULT_CSS = row_css("TaskRow")

    def __init__(
        self,
        task: Task,
        category_name: str,
        now: Optional[datetime] = None,
        **kwargs
    ) -> None:
        """Initialize a TaskRow widget.

        Args:
            task: The Task model to display
            category_name: Display name of the task's category
            now: Reference time for the age description
            **kwargs: Additional keyword arguments for Widget
        """
        super().__init__(task.id, **kwargs)
        self._task_model = task
        self._category_name = category_name
        self._now = now

    @property
    def task(self) -> Task:
        return self._task_model

    def render(self) -> Text:
        """Render the task line as Rich Text."""
        task = self._task_model
        text = Text(no_wrap=True, overflow="ellipsis")

        if task.done:
            text.append("[✓] ", style=FOREGROUND if self.selected else SUCCESS)
        else:
            text.append("[ ] ", style=FOREGROUND)

        text.append(f"{task.priority.label} ", style=get_priority_style(task.priority))

        if task.done:
            text.append(task.content, style=f"strike {FOREGROUND if self.selected else COMPLETE_COLOR}")
        else:
            text.append(task.content, style=FOREGROUND)

        text.append(f"  {self._category_name}", style=INFO)

        if task.done and task.completed_at is not None:
            detail = f"Completed {format_completed_at(task.completed_at)}"
        else:
            detail = task.age_description(self._now)
        text.append(f"  {detail}", style=COMMENT)

        if task.notes:
            text.append("  ✎", style=COMMENT)

        if self.selected:
            text.stylize(f"on {SELECTION}")
        return text


class CategoryRow(SelectableRow):
    """A widget representing a category with its task counts."""

    DEFAULT_CSS = row_css("CategoryRow")

    def __init__(self, category: Category, pending: int, total: int, **kwargs) -> None:
        super().__init__(category.id, **kwargs)
        self._category = category
        self._pending = pending
        self._total = total

    @property
    def category(self) -> Category:
        return self._category

    def render(self) -> Text:
        text = Text(no_wrap=True, overflow="ellipsis")
        text.append(self._category.name, style=FOREGROUND)
        text.append(f"  {self._pending}/{self._total}", style=COMMENT)
        if self.selected:
            text.stylize(f"on {SELECTION}")
        return text
