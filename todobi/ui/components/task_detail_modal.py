"""Read-only task detail modal for todobi."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from todobi.logging_config import get_logger
from todobi.models import Task
from todobi.ui.base_styles import MODAL_BASE_CSS
from todobi.ui.theme import COMMENT, FOREGROUND
from todobi.utils.datetime_utils import format_completed_at

logger = get_logger(__name__)


class TaskDetailModal(ModalScreen):
    """Shows every field of a task. ``e`` switches to the edit form."""

    DEFAULT_CSS = MODAL_BASE_CSS + f"""
    TaskDetailModal > Container {{
        width: 80;
    }}

    TaskDetailModal .field-value {{
        color: {FOREGROUND};
        margin: 0 0 1 2;
    }}

    TaskDetailModal .notes-value {{
        color: {COMMENT};
        margin: 0 0 1 2;
    }}
    """

    BINDINGS = [
        Binding("escape,enter,i", "close", "Close", priority=True),
        Binding("e", "edit", "Edit", priority=True),
    ]

    def __init__(self, task: Task, category_name: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.task_item = task
        self.category_name = category_name

    def compose(self) -> ComposeResult:
        task = self.task_item
        status = "Done" if task.done else "Pending"
        if task.done and task.completed_at:
            status += f" (completed {format_completed_at(task.completed_at)})"

        with Container():
            yield Static("Task Details", classes="modal-header")
            yield Label("Task:", classes="field-label")
            yield Static(task.content, classes="field-value", id="detail-content")
            yield Label("Priority:", classes="field-label")
            yield Static(task.priority.label, classes="field-value")
            yield Label("Category:", classes="field-label")
            yield Static(self.category_name or "None", classes="field-value")
            yield Label("Status:", classes="field-label")
            yield Static(status, classes="field-value", id="detail-status")
            yield Label("Created:", classes="field-label")
            yield Static(
                f"{format_completed_at(task.created_at)} ({task.age_description()})",
                classes="field-value",
            )
            yield Label("Notes:", classes="field-label")
            yield Static(task.notes or "No notes", classes="notes-value", id="detail-notes")
            yield Static("e: edit   esc: close", classes="help-text")

    def on_mount(self) -> None:
        logger.debug(f"TaskDetailModal: Opened for task {self.task_item.id}")

    def action_close(self) -> None:
        self.dismiss()

    def action_edit(self) -> None:
        self.app.post_message(self.EditRequested(self.task_item))
        self.dismiss()

    class EditRequested(Message):
        """Message emitted when the user asks to edit the shown task."""

        def __init__(self, task: Task) -> None:
            super().__init__()
            self.task = task
