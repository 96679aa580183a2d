"""Task creation/editing modal for todobi.

This module provides a modal dialog for creating and editing tasks with:
- Content input (required)
- Priority selection (P0-P3)
- Category selection (optional)
- Notes input (optional)
- Keyboard shortcuts (Enter in content to save, Ctrl+S to save, Escape to cancel)
"""

from typing import List, Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static, TextArea

from todobi.logging_config import get_logger
from todobi.models import Category, Priority, Task
from todobi.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS

# Initialize logger for this module
logger = get_logger(__name__)


PRIORITY_OPTIONS = [
    ("P0 - Critical", int(Priority.P0)),
    ("P1 - High", int(Priority.P1)),
    ("P2 - Medium", int(Priority.P2)),
    ("P3 - Low", int(Priority.P3)),
]


class TaskFormModal(ModalScreen):
    """Modal screen for creating or editing a task.

    Messages:
        TaskSaved: Emitted when the form is saved with valid input
        TaskCancelled: Emitted when the modal is cancelled
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + """
    TaskFormModal > Container {
        width: 80;
        overflow-y: auto;
    }

    TaskFormModal Select {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("ctrl+s", "save", "Save", priority=True),
    ]

    def __init__(
        self,
        categories: List[Category],
        edit_task: Optional[Task] = None,
        default_category_id: str = "",
        **kwargs
    ) -> None:
        """Initialize the task form.

        Args:
            categories: Categories offered in the category selector
            edit_task: Task to edit; None creates a new task
            default_category_id: Category preselected for a new task
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(**kwargs)
        self.categories = categories
        self.edit_task = edit_task
        self.default_category_id = default_category_id

    @property
    def mode(self) -> str:
        return "edit" if self.edit_task else "create"

    def compose(self) -> ComposeResult:
        task = self.edit_task
        category_ids = {category.id for category in self.categories}

        if task and task.category_id in category_ids:
            category_value = task.category_id
        elif not task and self.default_category_id in category_ids:
            category_value = self.default_category_id
        else:
            category_value = Select.BLANK

        with Container():
            yield Static("Edit Task" if task else "New Task", classes="modal-header")

            yield Label("Task:", classes="field-label")
            yield Input(
                placeholder="What needs to be done?",
                value=task.content if task else "",
                id="content-input",
            )

            yield Label("Priority:", classes="field-label")
            yield Select(
                PRIORITY_OPTIONS,
                value=int(task.priority) if task else int(Priority.P1),
                allow_blank=False,
                id="priority-select",
            )

            yield Label("Category:", classes="field-label")
            yield Select(
                [(category.name, category.id) for category in self.categories],
                value=category_value,
                prompt="No category",
                id="category-select",
            )

            yield Label("Notes (optional):", classes="field-label")
            yield TextArea(task.notes if task else "", id="notes-input")

            yield Static("", classes="error-message", id="form-error")

            with Container(classes="button-container"):
                yield Button("Save [Ctrl+S]", id="save-button", classes="success")
                yield Button("Cancel [Esc]", id="cancel-button", classes="error")

    def on_mount(self) -> None:
        edit_info = f", task_id={self.edit_task.id}" if self.edit_task else ""
        logger.info(f"TaskFormModal: Opened in {self.mode} mode{edit_info}")
        self.query_one("#content-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-button":
            self.action_save()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in the content field saves."""
        if event.input.id == "content-input":
            self.action_save()

    def action_save(self) -> None:
        """Validate the form, post TaskSaved and dismiss."""
        content = self.query_one("#content-input", Input).value.strip()
        if not content:
            logger.warning(f"TaskFormModal: Save validation failed - empty content (mode={self.mode})")
            self.query_one("#form-error", Static).update("⚠ Task content is required")
            return

        priority = Priority(self.query_one("#priority-select", Select).value)
        category_value = self.query_one("#category-select", Select).value
        category_id = category_value if isinstance(category_value, str) else ""
        notes = self.query_one("#notes-input", TextArea).text.strip()

        logger.info(
            f"TaskFormModal: Task {self.mode} saved - content='{content[:50]}', "
            f"priority={priority.label}, category='{category_id}', has_notes={bool(notes)}"
        )

        self.app.post_message(
            self.TaskSaved(
                content=content,
                priority=priority,
                category_id=category_id,
                notes=notes,
                edit_task=self.edit_task,
            )
        )
        self.dismiss()

    def action_cancel(self) -> None:
        logger.info(f"TaskFormModal: Cancelled (mode={self.mode})")
        self.app.post_message(self.TaskCancelled())
        self.dismiss()

    class TaskSaved(Message):
        """Message emitted when a task is created or edited."""

        def __init__(
            self,
            content: str,
            priority: Priority,
            category_id: str,
            notes: str,
            edit_task: Optional[Task] = None,
        ) -> None:
            """Initialize the TaskSaved message.

            Args:
                content: Task text
                priority: Selected priority
                category_id: Selected category ('' for none)
                notes: Notes text ('' for none)
                edit_task: Task being edited (None when creating)
            """
            super().__init__()
            self.content = content
            self.priority = priority
            self.category_id = category_id
            self.notes = notes
            self.edit_task = edit_task

    class TaskCancelled(Message):
        """Message emitted when the task form is cancelled."""
        pass
