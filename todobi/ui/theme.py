"""Color theme for todobi.

All UI components reference these constants via f-string interpolation in
their CSS definitions, so this module is the single source of truth for the
application's visual styling.

Usage in Components
-------------------
    from todobi.ui.theme import BACKGROUND, ACCENT, with_alpha

    class MyWidget(Widget):
        DEFAULT_CSS = f'''
        MyWidget {{
            background: {BACKGROUND};
            border: thick {ACCENT};
        }}
        '''

Priority colors live on the model (``Priority.color``) because they are
part of how a task is described, not of the chrome around it.
"""

from rich.style import Style
from rich.theme import Theme

from todobi.models import Priority


# ============================================================================
# BASE COLORS
# ============================================================================

BACKGROUND = "#1e1e1e"  # Main application background
FOREGROUND = "#d4d4d4"  # Primary text color
SELECTION = "#264f78"   # Selected row background
COMMENT = "#666666"     # Secondary/dimmed text (help lines, ages)
BORDER = "#3c3c3c"      # Borders and dividers


# ============================================================================
# ACCENT COLORS
# ============================================================================

ACCENT = "#4ec9b0"      # Titles, focused pane, highlighted keys
SUCCESS = "#4caf50"     # Completed tasks, successful sync
DANGER = "#d73a4a"      # Errors, delete confirmation
WARNING = "#fb8500"     # Conflicts, unsynced changes
INFO = "#569cd6"        # Informational text, categories


# ============================================================================
# INTERACTION STATES
# ============================================================================

MODAL_OVERLAY_BG = "#1e1e1e80"  # Semi-transparent dark overlay (50% opacity)
HOVER_OPACITY = "20"            # Hover effect transparency (hex: ~12% opacity)
COMPLETE_COLOR = COMMENT        # Text color for completed tasks


# ============================================================================
# RICH THEME OBJECT
# ============================================================================

TODOBI_THEME = Theme({
    "foreground": FOREGROUND,
    "selection": f"on {SELECTION}",
    "accent": ACCENT,
    "success": SUCCESS,
    "danger": DANGER,
    "warning": WARNING,
    "info": INFO,
    "dimmed": COMMENT,
})


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_priority_style(priority: Priority) -> Style:
    """Rich Style for a priority label."""
    return Style(color=Priority(priority).color, bold=priority == Priority.P0)


def with_alpha(color: str, alpha: str) -> str:
    """Add alpha transparency to a hex color.

    Args:
        color: Base hex color string (e.g., '#1e1e1e')
        alpha: Alpha value as 2-digit hex string ('00'-'FF')

    Returns:
        Color with alpha channel appended (8-digit hex color code).

    Examples:
        >>> with_alpha(SELECTION, HOVER_OPACITY)
        '#264f7820'
    """
    return f"{color}{alpha}"
