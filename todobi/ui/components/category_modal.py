"""Category creation/renaming modal for todobi."""

from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from todobi.logging_config import get_logger
from todobi.models import Category
from todobi.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS

logger = get_logger(__name__)


class CategoryFormModal(ModalScreen):
    """Modal screen for creating or renaming a category.

    Messages:
        CategorySaved: Emitted with the entered name
        CategoryCancelled: Emitted when the modal is cancelled
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + """
    CategoryFormModal > Container {
        width: 60;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
    ]

    def __init__(self, edit_category: Optional[Category] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.edit_category = edit_category

    def compose(self) -> ComposeResult:
        with Container():
            yield Static(
                "Rename Category" if self.edit_category else "New Category",
                classes="modal-header",
            )
            yield Label("Name:", classes="field-label")
            yield Input(
                placeholder="Category name",
                value=self.edit_category.name if self.edit_category else "",
                id="name-input",
            )
            yield Static("", classes="error-message", id="form-error")
            with Container(classes="button-container"):
                yield Button("Save [Enter]", id="save-button", classes="success")
                yield Button("Cancel [Esc]", id="cancel-button", classes="error")

    def on_mount(self) -> None:
        logger.info(
            f"CategoryFormModal: Opened "
            f"({'rename ' + self.edit_category.id if self.edit_category else 'create'})"
        )
        self.query_one("#name-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-button":
            self.action_save()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_save()

    def action_save(self) -> None:
        name = self.query_one("#name-input", Input).value.strip()
        if not name:
            self.query_one("#form-error", Static).update("⚠ Category name is required")
            return

        self.app.post_message(self.CategorySaved(name, self.edit_category))
        self.dismiss()

    def action_cancel(self) -> None:
        logger.info("CategoryFormModal: Cancelled")
        self.app.post_message(self.CategoryCancelled())
        self.dismiss()

    class CategorySaved(Message):
        """Message emitted when a category name is saved."""

        def __init__(self, category_name: str, edit_category: Optional[Category] = None) -> None:
            super().__init__()
            self.category_name = category_name
            self.edit_category = edit_category

    class CategoryCancelled(Message):
        """Message emitted when the category form is cancelled."""
        pass
