"""Keyboard bindings for todobi.

This module defines all keyboard shortcuts of the main screen:
- Navigation within a pane (Up/Down, j/k) and between panes (Tab)
- Task and category actions (T, C, x/space, e, enter/i, d)
- View and sync controls (v, r, G, g)
- Application controls (q)
"""

from typing import Optional

from textual.binding import Binding

from todobi.logging_config import get_logger

# Initialize logger for this module
logger = get_logger(__name__)


# Navigation keybindings
NAVIGATION_BINDINGS = [
    Binding("up,k", "navigate_up", "Navigate Up", show=False),
    Binding("down,j", "navigate_down", "Navigate Down", show=False),
    Binding("tab", "navigate_next_pane", "Next Pane", show=False),
    Binding("shift+tab", "navigate_next_pane", "Previous Pane", show=False),
    Binding("c", "focus_categories", "Categories", show=True),
]

# Task action keybindings
TASK_ACTION_BINDINGS = [
    Binding("T", "new_task", "New Task", show=True),
    Binding("C", "new_category", "New Category", show=True),
    Binding("x,space", "toggle_task", "Toggle Done", show=True),
    Binding("e", "edit_selection", "Edit", show=True),
    Binding("enter,i", "show_details", "Details", show=False),
    Binding("d", "delete_selection", "Delete", show=True),
]

# View keybindings
VIEW_BINDINGS = [
    Binding("v", "toggle_view", "Active/Completed", show=True),
    Binding("r", "reload", "Reload", show=False),
]

# Sync keybindings
SYNC_BINDINGS = [
    Binding("G", "push", "Push", show=True),
    Binding("g", "pull", "Pull", show=True),
]

# Application control keybindings
APP_CONTROL_BINDINGS = [
    Binding("q", "quit", "Quit", show=True),
]

# Actions disabled while a modal is open
MAIN_SCREEN_ACTIONS = {
    binding.action
    for binding in (
        NAVIGATION_BINDINGS + TASK_ACTION_BINDINGS + VIEW_BINDINGS +
        SYNC_BINDINGS + APP_CONTROL_BINDINGS
    )
}

# Pane identifiers
CATEGORY_PANE_ID = "category-pane"
TASK_PANE_ID = "task-pane"

# Focusable panes in navigation order
FOCUSABLE_PANES = [CATEGORY_PANE_ID, TASK_PANE_ID]


def get_next_pane(current_pane_id: Optional[str]) -> str:
    """Get the pane that Tab moves focus to.

    There are only two panes, so Tab and Shift+Tab both toggle between them.

    Args:
        current_pane_id: ID of the focused pane (None if nothing is focused)

    Returns:
        ID of the pane to focus next
    """
    if current_pane_id == TASK_PANE_ID:
        next_pane = CATEGORY_PANE_ID
    else:
        next_pane = TASK_PANE_ID

    logger.debug(f"Keybindings: Navigate pane - from {current_pane_id} to {next_pane}")
    return next_pane


def get_all_bindings() -> list[Binding]:
    """Get all main screen keybindings.

    Returns:
        List of all Binding objects
    """
    return (
        NAVIGATION_BINDINGS +
        TASK_ACTION_BINDINGS +
        VIEW_BINDINGS +
        SYNC_BINDINGS +
        APP_CONTROL_BINDINGS
    )
