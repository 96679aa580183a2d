"""Conflict resolution modal for todobi.

Shown when a pull finds that the local document was saved after the remote
one. The user picks exactly one strategy:

    l  keep local    (discard the remote snapshot)
    r  take remote   (overwrite local tasks)
    m  merge         (union of both by id)
    esc cancel       (decide later; local stays as it is)
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from todobi.logging_config import get_logger
from todobi.models import Document
from todobi.services.conflict import ResolutionStrategy, strategy_for_key
from todobi.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS
from todobi.ui.theme import BORDER, COMMENT, FOREGROUND, WARNING
from todobi.utils.datetime_utils import format_completed_at

logger = get_logger(__name__)


def summarize(document: Document) -> str:
    """Short multi-line description of a document for side-by-side display."""
    return (
        f"Last update: {format_completed_at(document.last_update)}\n"
        f"Categories:  {len(document.categories)}\n"
        f"Tasks:       {document.pending_count} active, {document.completed_count} done"
    )


class ConflictModal(ModalScreen):
    """Modal screen for choosing a conflict resolution strategy.

    Messages:
        Resolved: Emitted with the chosen ResolutionStrategy (CANCEL on Escape)
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f"""
    ConflictModal > Container {{
        width: 80;
        border: thick {WARNING};
    }}

    ConflictModal .modal-header {{
        color: {WARNING};
    }}

    ConflictModal .sides {{
        width: 100%;
        height: auto;
    }}

    ConflictModal .side {{
        width: 1fr;
        height: auto;
        border: solid {BORDER};
        padding: 0 1;
        margin: 0 1;
    }}

    ConflictModal .side-title {{
        color: {FOREGROUND};
        text-style: bold;
    }}

    ConflictModal .side-body {{
        color: {COMMENT};
    }}
    """

    BINDINGS = [
        Binding("l", "choose('l')", "Keep Local", priority=True),
        Binding("r", "choose('r')", "Take Remote", priority=True),
        Binding("m", "choose('m')", "Merge", priority=True),
        Binding("escape", "choose('escape')", "Cancel", priority=True),
    ]

    def __init__(self, local: Document, remote: Document, **kwargs) -> None:
        """Initialize the conflict modal.

        Args:
            local: Current local document
            remote: Remote snapshot retained by the pull
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(**kwargs)
        self.local = local
        self.remote = remote

    def compose(self) -> ComposeResult:
        with Container():
            yield Static("⚠ Sync Conflict", classes="modal-header")
            yield Static(
                "Your local tasks changed after the last push. Choose which version to keep:",
                classes="info-text",
            )
            with Horizontal(classes="sides"):
                with Vertical(classes="side"):
                    yield Static("Local", classes="side-title")
                    yield Static(summarize(self.local), classes="side-body")
                with Vertical(classes="side"):
                    yield Static("GitHub", classes="side-title")
                    yield Static(summarize(self.remote), classes="side-body")
            with Container(classes="button-container"):
                yield Button("Keep local [l]", id="keep_local", classes="success")
                yield Button("Take remote [r]", id="take_remote", classes="warning")
                yield Button("Merge [m]", id="merge", classes="warning")
            yield Static("esc: decide later", classes="help-text")

    def on_mount(self) -> None:
        logger.info(
            f"ConflictModal: Opened - local tasks={len(self.local.tasks)}, "
            f"remote tasks={len(self.remote.tasks)}"
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.choose_strategy(ResolutionStrategy(event.button.id))

    def action_choose(self, key: str) -> None:
        strategy = strategy_for_key(key)
        if strategy is not None:
            self.choose_strategy(strategy)

    def choose_strategy(self, chosen: ResolutionStrategy) -> None:
        """Report the chosen strategy and close the dialog."""
        logger.info(f"ConflictModal: Chose {chosen.value}")
        self.app.post_message(self.Resolved(chosen))
        self.dismiss()

    class Resolved(Message):
        """Message emitted when the user picks a strategy."""

        def __init__(self, strategy: ResolutionStrategy) -> None:
            super().__init__()
            self.strategy = strategy
