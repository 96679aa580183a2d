"""First-run GitHub setup modal for todobi.

Shown once, when the local document has not completed sync onboarding.
The dialog walks through two questions:

1. "Do you already have a todobi-sync repo?"  y -> pull it, n -> next question
2. "Create a private repo and push?"           y -> push, n -> skip

Escape skips setup at any point. Whatever the outcome, the app records the
setup as complete so the dialog is not shown again.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from todobi.logging_config import get_logger
from todobi.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS
from todobi.ui.theme import ACCENT

logger = get_logger(__name__)


CHOICE_PULL = "pull"
CHOICE_PUSH = "push"
CHOICE_SKIP = "skip"

STEP_EXISTING = "existing"
STEP_CREATE = "create"


class FirstRunModal(ModalScreen):
    """Welcome dialog offering to connect the GitHub sync repository.

    Messages:
        ChoiceMade: Emitted with "pull", "push" or "skip"
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f"""
    FirstRunModal > Container {{
        width: 70;
        border: thick {ACCENT};
    }}

    FirstRunModal .modal-header {{
        color: {ACCENT};
    }}

    FirstRunModal #question {{
        text-style: bold;
        margin: 1 0;
    }}
    """

    BINDINGS = [
        Binding("y", "answer(True)", "Yes", priority=True),
        Binding("n", "answer(False)", "No", priority=True),
        Binding("escape", "skip", "Skip", priority=True),
    ]

    step: reactive[str] = reactive(STEP_EXISTING)

    def __init__(self, repo_name: str = "todobi-sync", **kwargs) -> None:
        super().__init__(**kwargs)
        self.repo_name = repo_name

    def compose(self) -> ComposeResult:
        with Container():
            yield Static("Welcome to todobi!", classes="modal-header")
            yield Static(
                "todobi can sync your tasks to a private GitHub repository "
                "using the gh and git command-line tools.",
                classes="info-text",
            )
            yield Static(self._question(), id="question")
            yield Static("y: yes   n: no   esc: skip setup", classes="help-text")

    def _question(self) -> str:
        if self.step == STEP_EXISTING:
            return f"Do you already have a '{self.repo_name}' repository on GitHub? (y/n)"
        return f"Create a private '{self.repo_name}' repository and push your tasks? (y/n)"

    def watch_step(self, step: str) -> None:
        if self.is_mounted:
            self.query_one("#question", Static).update(self._question())

    def on_mount(self) -> None:
        logger.info("FirstRunModal: Opened")

    def action_answer(self, yes: bool) -> None:
        if self.step == STEP_EXISTING:
            if yes:
                self._choose(CHOICE_PULL)
            else:
                self.step = STEP_CREATE
            return

        self._choose(CHOICE_PUSH if yes else CHOICE_SKIP)

    def action_skip(self) -> None:
        self._choose(CHOICE_SKIP)

    def _choose(self, choice: str) -> None:
        logger.info(f"FirstRunModal: Chose {choice}")
        self.app.post_message(self.ChoiceMade(choice))
        self.dismiss()

    class ChoiceMade(Message):
        """Message emitted when onboarding finishes."""

        def __init__(self, choice: str) -> None:
            super().__init__()
            self.choice = choice
