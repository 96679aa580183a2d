"""Pane widgets for displaying selectable lists of tasks or categories.

This module provides:
- ItemList: scrollable list of rows with a title, an empty-state message,
  keyboard selection and focus styling
- TaskList: the task pane (active or completed tasks)
- CategoryList: the category pane (categories with task counts)
"""

from datetime import datetime
from typing import Any, List, Optional

from textual.containers import VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from todobi.logging_config import get_logger
from todobi.models import Category, Document, Task
from todobi.ui.components.list_items import CategoryRow, SelectableRow, TaskRow
from todobi.ui.theme import ACCENT, BORDER, COMMENT

# Initialize logger for this module
logger = get_logger(__name__)


class ItemList(Widget):
    """A focusable pane showing one row per item.

    Manages:
    - Row widgets inside a scrollable container
    - Selection state and up/down navigation
    - Empty-state message
    - Focus/unfocus visual feedback
    """

    can_focus = True

    DEFAULT_CSS = f"""
    ItemList {{
        border: round {BORDER};
        border-title-color: {COMMENT};
        padding: 0 1;
    }}

    ItemList:focus {{
        border: round {ACCENT};
        border-title-color: {ACCENT};
    }}

    ItemList .list-content {{
        width: 100%;
        height: 1fr;
    }}

    ItemList .empty-message {{
        width: 100%;
        color: {COMMENT};
        text-align: center;
        padding: 2;
    }}
    """

    header_title: reactive[str] = reactive("")

    def __init__(self, title: str, empty_message: str, **kwargs) -> None:
        """Initialize an ItemList widget.

        Args:
            title: Pane title shown in the border
            empty_message: Message to show when the list is empty
            **kwargs: Additional keyword arguments for Widget
        """
        super().__init__(**kwargs)
        self.empty_message = empty_message
        self._items: List[Any] = []
        self._rows: List[SelectableRow] = []
        self._selected_index: int = -1
        self.header_title = title

    def compose(self):
        with VerticalScroll(classes="list-content"):
            yield Static(self.empty_message, classes="empty-message")

    def watch_header_title(self, title: str) -> None:
        self.border_title = title

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def _item_id(self, item: Any) -> str:
        raise NotImplementedError

    def _make_row(self, item: Any) -> SelectableRow:
        raise NotImplementedError

    def _selected_message(self, item: Any) -> Message:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    def set_items(self, items: List[Any]) -> None:
        """Replace the displayed items, keeping the selection by id when possible."""
        previously_selected = self.get_selected_item()
        previous_id = self._item_id(previously_selected) if previously_selected is not None else None
        previous_index = self._selected_index

        self._items = list(items)

        self._selected_index = -1
        if previous_id is not None:
            for i, item in enumerate(self._items):
                if self._item_id(item) == previous_id:
                    self._selected_index = i
                    break
        if self._selected_index == -1 and self._items:
            # Selected item is gone: stay at the same position if possible
            self._selected_index = min(max(previous_index, 0), len(self._items) - 1)

        self._render_rows()

    def _render_rows(self) -> None:
        try:
            content = self.query_one(".list-content", VerticalScroll)
            empty = self.query_one(".empty-message", Static)
        except Exception as e:
            # Not mounted yet; on_mount renders again
            logger.debug(f"{self.id}: Container not ready - {e}")
            return

        for row in self._rows:
            row.remove()
        self._rows = [self._make_row(item) for item in self._items]

        empty.display = not self._rows
        if not self._rows:
            return

        for i, row in enumerate(self._rows):
            row.selected = i == self._selected_index
        content.mount_all(self._rows)
        logger.debug(f"{self.id}: Rendered {len(self._rows)} rows")

    def on_mount(self) -> None:
        self._render_rows()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def get_selected_item(self) -> Optional[Any]:
        """Currently selected item, or None."""
        if 0 <= self._selected_index < len(self._items):
            return self._items[self._selected_index]
        return None

    @property
    def selected_index(self) -> int:
        return self._selected_index

    def select_index(self, index: int) -> None:
        """Move the selection to ``index`` (ignored when out of range)."""
        if not self._items or index < 0 or index >= len(self._items):
            return

        if 0 <= self._selected_index < len(self._rows):
            self._rows[self._selected_index].selected = False

        self._selected_index = index
        if index < len(self._rows):
            row = self._rows[index]
            row.selected = True
            if row.is_mounted:
                row.scroll_visible()

        self.post_message(self._selected_message(self._items[index]))

    def navigate_up(self) -> None:
        if self._selected_index > 0:
            self.select_index(self._selected_index - 1)

    def navigate_down(self) -> None:
        if self._selected_index < len(self._items) - 1:
            self.select_index(self._selected_index + 1)

    def on_selectable_row_clicked(self, message: SelectableRow.Clicked) -> None:
        """Select the clicked row and take focus."""
        message.stop()
        for i, item in enumerate(self._items):
            if self._item_id(item) == message.item_id:
                self.select_index(i)
                break
        self.focus()


class TaskList(ItemList):
    """The task pane."""

    def __init__(self, **kwargs) -> None:
        super().__init__(
            title="Tasks",
            empty_message="No tasks\nPress T to create a task",
            **kwargs
        )
        self._document: Optional[Document] = None
        self._now: Optional[datetime] = None

    def show_tasks(
        self,
        tasks: List[Task],
        document: Document,
        title: str = "Tasks",
        now: Optional[datetime] = None,
    ) -> None:
        """Display tasks, resolving category names from ``document``.

        Args:
            tasks: Tasks in display order
            document: Document the tasks belong to
            title: Pane title (e.g. "Active Tasks" / "Completed Tasks")
            now: Reference time for task ages
        """
        self._document = document
        self._now = now
        self.header_title = title
        self.set_items(tasks)

    def _item_id(self, item: Task) -> str:
        return item.id

    def _make_row(self, item: Task) -> TaskRow:
        name = self._document.category_name(item.category_id) if self._document else ""
        return TaskRow(item, name, now=self._now)

    def _selected_message(self, item: Task) -> Message:
        return self.TaskSelected(item)

    def get_selected_task(self) -> Optional[Task]:
        return self.get_selected_item()

    class TaskSelected(Message):
        """Message emitted when a task is selected in the pane."""

        def __init__(self, task: Task) -> None:
            super().__init__()
            self.task = task


class CategoryList(ItemList):
    """The category pane."""

    def __init__(self, **kwargs) -> None:
        super().__init__(
            title="Categories",
            empty_message="No categories\nPress C to create one",
            **kwargs
        )
        self._document: Optional[Document] = None

    def show_categories(self, document: Document) -> None:
        """Display all categories of ``document`` with their task counts."""
        self._document = document
        self.set_items(list(document.categories))

    def _item_id(self, item: Category) -> str:
        return item.id

    def _make_row(self, item: Category) -> CategoryRow:
        tasks = self._document.tasks_in_category(item.id) if self._document else []
        pending = sum(1 for task in tasks if not task.done)
        return CategoryRow(item, pending=pending, total=len(tasks))

    def _selected_message(self, item: Category) -> Message:
        return self.CategorySelected(item)

    def get_selected_category(self) -> Optional[Category]:
        return self.get_selected_item()

    class CategorySelected(Message):
        """Message emitted when a category is selected in the pane."""

        def __init__(self, category: Category) -> None:
            super().__init__()
            self.category = category
