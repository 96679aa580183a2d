"""Focused-item selection for the main screen.

The item under the cursor is either a task or a category, depending on the
focused pane. Actions such as edit and delete dispatch on the selection type
instead of on which list widget happens to have focus.
"""

from dataclasses import dataclass
from typing import Union

from todobi.models import Category, Task


@dataclass(frozen=True)
class TaskSelection:
    """A task is selected in the task pane."""

    task: Task

    @property
    def item_id(self) -> str:
        return self.task.id

    def describe(self) -> str:
        return f"task '{self.task.content}'"


@dataclass(frozen=True)
class CategorySelection:
    """A category is selected in the category pane."""

    category: Category

    @property
    def item_id(self) -> str:
        return self.category.id

    def describe(self) -> str:
        return f"category '{self.category.name}'"


Selection = Union[TaskSelection, CategorySelection]
