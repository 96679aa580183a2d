"""
Sync status widget for displaying sync state in the UI.

Shows the operation in flight, a pending conflict, unsynced local changes
and the time of the last successful sync.
"""

from datetime import datetime
from typing import Optional

from textual.reactive import reactive
from textual.widgets import Static

from todobi.logging_config import get_logger
from todobi.services.sync_engine import SyncOperation, SyncResult
from todobi.ui.theme import BORDER, COMMENT

logger = get_logger(__name__)


class SyncStatus(Static):
    """
    Shows sync status in the UI.

    Displays (highest precedence first):
    - Push/pull in progress
    - Conflict waiting for a decision
    - Last failure
    - Unsynced local changes
    - Last sync time
    """

    DEFAULT_CSS = f"""
    SyncStatus {{
        dock: bottom;
        height: 1;
        background: {BORDER};
        color: {COMMENT};
        text-align: right;
        padding: 0 1;
    }}
    """

    # Reactive properties auto-refresh on change
    operation: reactive[Optional[str]] = reactive(None)
    pending_conflict: reactive[bool] = reactive(False)
    unsynced: reactive[bool] = reactive(False)
    last_sync: reactive[Optional[datetime]] = reactive(None)
    last_error: reactive[Optional[str]] = reactive(None)

    def render(self) -> str:
        """Render the sync status text."""
        if self.operation == SyncOperation.PUSH.value:
            return "⏳ Syncing to GitHub..."

        if self.operation == SyncOperation.PULL.value:
            return "⏳ Pulling from GitHub..."

        if self.pending_conflict:
            return "⚠ Conflict: l keep local / r take remote / m merge"

        if self.last_error:
            return f"✗ {self.last_error}"

        if self.unsynced:
            return "● Unsynced changes (G to push)"

        if self.last_sync:
            time_str = self.last_sync.strftime("%I:%M %p")
            return f"✓ Synced: {time_str}"

        return "○ Not synced yet"

    def watch_operation(self, operation: Optional[str]) -> None:
        logger.debug(f"Sync status: operation changed to {operation}")
        self.refresh()

    def watch_pending_conflict(self, pending: bool) -> None:
        logger.debug(f"Sync status: pending conflict changed to {pending}")
        self.refresh()

    def watch_unsynced(self, unsynced: bool) -> None:
        self.refresh()

    def start_sync(self, operation: SyncOperation) -> None:
        """Mark an operation as in progress."""
        self.last_error = None
        self.operation = operation.value

    def set_result(self, result: SyncResult) -> None:
        """
        Update status after an operation completes.

        Args:
            result: Completion result from the sync engine
        """
        self.operation = None
        if result.rejected:
            return
        if result.ok:
            self.last_error = None
            self.last_sync = datetime.now()
        else:
            self.last_error = result.message
        self.refresh()

    def set_conflict(self, pending: bool) -> None:
        self.pending_conflict = pending

    def set_unsynced(self, unsynced: bool) -> None:
        self.unsynced = unsynced
