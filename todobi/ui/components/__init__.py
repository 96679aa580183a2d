"""todobi UI components - Reusable widgets, panes and modals."""

from todobi.ui.components.item_list import CategoryList, TaskList
from todobi.ui.components.progress_line import ProgressLine
from todobi.ui.components.sync_status import SyncStatus

__all__ = ["CategoryList", "TaskList", "ProgressLine", "SyncStatus"]
