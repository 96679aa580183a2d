"""Yes/no confirmation modal for todobi.

Used before destructive or outward-facing actions: deleting a task or a
category, and pushing the local document to GitHub.
"""

from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from todobi.logging_config import get_logger
from todobi.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS
from todobi.ui.theme import DANGER

logger = get_logger(__name__)


class ConfirmModal(ModalScreen):
    """Modal screen asking the user to confirm an action.

    The modal does not act by itself; it reports which ``action`` (and
    ``target_id``) was confirmed so the app can carry it out.

    Messages:
        Confirmed: Emitted on y / confirm button
        Cancelled: Emitted on n / Escape / cancel button
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f"""
    ConfirmModal > Container {{
        width: 60;
    }}

    ConfirmModal.danger > Container {{
        border: thick {DANGER};
    }}

    ConfirmModal.danger .modal-header {{
        color: {DANGER};
    }}
    """

    BINDINGS = [
        Binding("y", "confirm", "Yes", priority=True),
        Binding("n,escape", "cancel", "No", priority=True),
    ]

    def __init__(
        self,
        title: str,
        message: str,
        action: str,
        target_id: Optional[str] = None,
        danger: bool = False,
        **kwargs
    ) -> None:
        """Initialize the confirmation modal.

        Args:
            title: Header text
            message: Question shown to the user
            action: Identifier of the action being confirmed (e.g. "push")
            target_id: Id of the item the action applies to, if any
            danger: Style the dialog as destructive
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(classes="danger" if danger else None, **kwargs)
        self.title_text = title
        self.message_text = message
        self.action = action
        self.target_id = target_id

    def compose(self) -> ComposeResult:
        with Container():
            yield Static(self.title_text, classes="modal-header")
            yield Static(self.message_text, classes="info-text")
            with Container(classes="button-container"):
                yield Button("Yes [y]", id="confirm-button", classes="success")
                yield Button("No [n]", id="cancel-button", classes="error")

    def on_mount(self) -> None:
        logger.info(f"ConfirmModal: Opened for action '{self.action}' (target={self.target_id})")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "confirm-button":
            self.action_confirm()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def action_confirm(self) -> None:
        logger.info(f"ConfirmModal: Confirmed '{self.action}'")
        self.app.post_message(self.Confirmed(self.action, self.target_id))
        self.dismiss()

    def action_cancel(self) -> None:
        logger.info(f"ConfirmModal: Cancelled '{self.action}'")
        self.app.post_message(self.Cancelled(self.action))
        self.dismiss()

    class Confirmed(Message):
        """Message emitted when the action is confirmed."""

        def __init__(self, action: str, target_id: Optional[str] = None) -> None:
            super().__init__()
            self.action = action
            self.target_id = target_id

    class Cancelled(Message):
        """Message emitted when the action is declined."""

        def __init__(self, action: str) -> None:
            super().__init__()
            self.action = action
