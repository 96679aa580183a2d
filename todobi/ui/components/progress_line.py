"""Progress line shown at the top of the main screen.

Renders the application name, the current view, the completed/total task
counts and a small progress bar.
"""

from rich.text import Text
from textual.reactive import reactive
from textual.widget import Widget

from todobi.ui.theme import ACCENT, BORDER, COMMENT, FOREGROUND, SUCCESS

BAR_WIDTH = 20


def progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    """Render ``percent`` (0-100) as a block bar, e.g. '█████░░░░░'."""
    percent = max(0, min(100, percent))
    filled = (percent * width) // 100
    return "█" * filled + "░" * (width - filled)


class ProgressLine(Widget):
    """One-line header with view name and completion progress."""

    DEFAULT_CSS = f"""
    ProgressLine {{
        dock: top;
        height: 1;
        background: {BORDER};
        padding: 0 1;
    }}
    """

    view_name: reactive[str] = reactive("Active")
    completed: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)
    percent: reactive[int] = reactive(0)

    def render(self) -> Text:
        text = Text(no_wrap=True)
        text.append("todobi", style=f"bold {ACCENT}")
        text.append(f"  {self.view_name}", style=FOREGROUND)
        text.append(f"  {progress_bar(self.percent)} ", style=SUCCESS)
        text.append(f"{self.completed}/{self.total} done ({self.percent}%)", style=COMMENT)
        return text

    def update_progress(self, completed: int, total: int, percent: int) -> None:
        """Set the counts shown in the header."""
        self.completed = completed
        self.total = total
        self.percent = percent
