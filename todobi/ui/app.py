"""Main Textual application for todobi.

Layout:
- Progress line (view name and completion progress)
- Category pane | Task pane
- Sync status bar
- Footer with keybindings

Every edit is saved immediately through the DocumentService. Push and pull
run as Textual workers in the "sync" group; their results are applied back
on the app's event loop, so the document has a single writer.
"""

import asyncio
from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.events import Key
from textual.widgets import Footer

from todobi.config import Config
from todobi.logging_config import get_logger
from todobi.models import Document
from todobi.services.document_service import DocumentService, DocumentServiceError
from todobi.services.sync_engine import (
    NoPendingConflictError,
    PullResult,
    SyncEngine,
    SyncOperation,
    SyncResult,
)
from todobi.services.transport import GitHubSyncConfig, GitHubTransport
from todobi.store import LocalStore, StoreError
from todobi.ui.components.category_modal import CategoryFormModal
from todobi.ui.components.confirm_modal import ConfirmModal
from todobi.ui.components.conflict_modal import ConflictModal
from todobi.ui.components.first_run_modal import (
    CHOICE_PULL,
    CHOICE_PUSH,
    CHOICE_SKIP,
    FirstRunModal,
)
from todobi.ui.components.item_list import CategoryList, ItemList, TaskList
from todobi.ui.components.progress_line import ProgressLine
from todobi.ui.components.sync_status import SyncStatus
from todobi.ui.components.task_detail_modal import TaskDetailModal
from todobi.ui.components.task_modal import TaskFormModal
from todobi.ui.constants import (
    MAX_CONTENT_LENGTH_IN_NOTIFICATION,
    NOTIFICATION_TIMEOUT_LONG,
    NOTIFICATION_TIMEOUT_MEDIUM,
    SCREEN_STACK_SIZE_MAIN_APP,
    SYNC_CONTINUE_LOCAL_MESSAGE,
    SYNC_SKIPPED_MESSAGE,
    SYNC_WORKER_GROUP,
)
from todobi.ui.keybindings import (
    CATEGORY_PANE_ID,
    FOCUSABLE_PANES,
    MAIN_SCREEN_ACTIONS,
    TASK_PANE_ID,
    get_all_bindings,
    get_next_pane,
)
from todobi.ui.selection import CategorySelection, Selection, TaskSelection
from todobi.ui.theme import BACKGROUND, SELECTION

# Initialize logger for this module
logger = get_logger(__name__)


ACTION_PUSH = "push"
ACTION_DELETE_TASK = "delete_task"
ACTION_DELETE_CATEGORY = "delete_category"


class TodobiApp(App):
    """Main todobi application with category and task panes."""

    CSS = f"""
    Screen {{
        background: {BACKGROUND};
        layout: vertical;
    }}

    #panes {{
        width: 100%;
        height: 1fr;
    }}

    #{CATEGORY_PANE_ID} {{
        width: 1fr;
        max-width: 40;
        height: 100%;
    }}

    #{TASK_PANE_ID} {{
        width: 3fr;
        height: 100%;
    }}

    Footer {{
        background: {SELECTION};
    }}
    """

    BINDINGS = get_all_bindings()

    # ==============================================================================
    # LIFECYCLE METHODS
    # ==============================================================================

    def __init__(
        self,
        config_path: Optional[Path] = None,
        store: Optional[LocalStore] = None,
        engine: Optional[SyncEngine] = None,
        **kwargs
    ) -> None:
        """Initialize the todobi application.

        Args:
            config_path: Path to config.ini (defaults to ~/.todobi/config.ini)
            store: Local store to use instead of the configured one
            engine: Sync engine to use instead of the GitHub-backed one
            **kwargs: Additional keyword arguments for App
        """
        super().__init__(**kwargs)
        self.title = "todobi"

        config = Config(config_path)
        self._status_timeout = config.get_display_config()['status_timeout']
        self._repo_name = config.get_sync_config()['repo_name']

        self._store = store or LocalStore(config.get_store_config()['path'])
        if engine is None:
            transport = GitHubTransport(GitHubSyncConfig.from_config_file(config_path))
            engine = SyncEngine(transport, self._store)
        self._engine = engine

        self._service: Optional[DocumentService] = None
        self._show_completed = False
        self._last_pane_id = TASK_PANE_ID

    def compose(self) -> ComposeResult:
        yield ProgressLine()
        with Horizontal(id="panes"):
            yield CategoryList(id=CATEGORY_PANE_ID)
            yield TaskList(id=TASK_PANE_ID)
        yield SyncStatus()
        yield Footer()

    def on_mount(self) -> None:
        """Load the document and show onboarding if needed."""
        logger.info("todobi application mounted, loading tasks...")

        try:
            document = self._store.load_or_default()
        except StoreError as e:
            logger.error(f"Could not load tasks: {e}")
            self.exit(return_code=1, message=f"Error loading tasks: {e}")
            return

        self._service = DocumentService(document, self._store, on_change=self._on_document_changed)
        self._refresh_view()
        self._set_pane_focus(TASK_PANE_ID)

        if not document.github_setup_complete:
            logger.info("GitHub setup not complete, showing first-run dialog")
            self.push_screen(FirstRunModal(repo_name=self._repo_name))

        logger.info(
            f"todobi ready: {len(document.categories)} categories, {len(document.tasks)} tasks"
        )

    def on_unmount(self) -> None:
        logger.info("todobi application shutting down")

    @property
    def document(self) -> Optional[Document]:
        """The document currently shown (None before mount)."""
        return self._service.document if self._service else None

    @property
    def engine(self) -> SyncEngine:
        return self._engine

    def check_action(self, action: str, parameters: tuple) -> Optional[bool]:
        """Disable main screen bindings while a modal is open."""
        if action in MAIN_SCREEN_ACTIONS and len(self.screen_stack) > SCREEN_STACK_SIZE_MAIN_APP:
            return False
        return True

    # ==============================================================================
    # EVENT HANDLERS
    # ==============================================================================

    def on_key(self, event: Key) -> None:
        """Use Tab/Shift+Tab for pane switching on the main screen."""
        if len(self.screen_stack) != SCREEN_STACK_SIZE_MAIN_APP:
            return
        if event.key in ("tab", "shift+tab"):
            event.prevent_default()
            event.stop()
            self.action_navigate_next_pane()

    def _on_document_changed(self) -> None:
        self._engine.mark_unsynced()
        self._main_query(SyncStatus).set_unsynced(True)

    def on_task_form_modal_task_saved(self, message: TaskFormModal.TaskSaved) -> None:
        if not self._service:
            return

        try:
            if message.edit_task is not None:
                self._service.update_task(
                    message.edit_task.id,
                    content=message.content,
                    category_id=message.category_id,
                    priority=message.priority,
                    notes=message.notes,
                )
                self._notify_status("Task updated")
            else:
                self._service.add_task(
                    message.content,
                    category_id=message.category_id,
                    priority=message.priority,
                    notes=message.notes,
                )
                self._notify_status("Task created")
        except (DocumentServiceError, StoreError, ValueError) as e:
            logger.error(f"Error saving task: {e}")
            self._notify_error(f"Failed to save task: {e}")

        self._refresh_view()

    def on_task_form_modal_task_cancelled(self, message: TaskFormModal.TaskCancelled) -> None:
        pass

    def on_category_form_modal_category_saved(self, message: CategoryFormModal.CategorySaved) -> None:
        if not self._service:
            return

        try:
            if message.edit_category is not None:
                self._service.rename_category(message.edit_category.id, message.category_name)
                self._notify_status("Category updated")
            else:
                self._service.add_category(message.category_name)
                self._notify_status("Category created")
        except (DocumentServiceError, StoreError, ValueError) as e:
            logger.error(f"Error saving category: {e}")
            self._notify_error(f"Failed to save category: {e}")

        self._refresh_view()

    def on_category_form_modal_category_cancelled(
        self, message: CategoryFormModal.CategoryCancelled
    ) -> None:
        pass

    def on_task_detail_modal_edit_requested(self, message: TaskDetailModal.EditRequested) -> None:
        self._open_task_form(message.task)

    def on_confirm_modal_confirmed(self, message: ConfirmModal.Confirmed) -> None:
        if message.action == ACTION_PUSH:
            self._start_push()
        elif message.action == ACTION_DELETE_TASK:
            self._delete_task(message.target_id)
        elif message.action == ACTION_DELETE_CATEGORY:
            self._delete_category(message.target_id)
        else:
            logger.warning(f"Unknown confirmed action: {message.action}")

    def on_confirm_modal_cancelled(self, message: ConfirmModal.Cancelled) -> None:
        logger.debug(f"Action '{message.action}' cancelled")

    def on_conflict_modal_resolved(self, message: ConflictModal.Resolved) -> None:
        """Apply the strategy chosen in the conflict dialog."""
        if not self._service:
            return

        status = self._main_query(SyncStatus)
        try:
            resolution = self._engine.resolve(message.strategy, self._service.document)
        except NoPendingConflictError:
            logger.warning("Conflict already resolved, ignoring")
            status.set_conflict(False)
            return
        except StoreError as e:
            logger.error(f"Could not save resolved document: {e}")
            status.set_conflict(False)
            self._notify_error(f"Failed to save: {e}")
            return

        status.set_conflict(False)
        if resolution.replaced:
            self._adopt(resolution.document)
        status.set_unsynced(self._engine.has_unsynced_changes)
        self._notify_status(resolution.message)

    def on_first_run_modal_choice_made(self, message: FirstRunModal.ChoiceMade) -> None:
        """Finish onboarding with the chosen action."""
        if message.choice == CHOICE_PULL:
            self._start_pull(first_run=True)
        elif message.choice == CHOICE_PUSH:
            self._finish_setup()
            self._start_push(first_run=True)
        else:
            self._finish_setup()
            self._notify_status(SYNC_SKIPPED_MESSAGE)
        logger.info(f"First-run choice: {message.choice}")

    # ==============================================================================
    # ACTION HANDLERS - NAVIGATION
    # ==============================================================================

    def action_navigate_up(self) -> None:
        """Navigate up within the focused pane."""
        pane = self._get_focused_pane()
        if pane:
            pane.navigate_up()

    def action_navigate_down(self) -> None:
        """Navigate down within the focused pane."""
        pane = self._get_focused_pane()
        if pane:
            pane.navigate_down()

    def action_navigate_next_pane(self) -> None:
        """Switch focus between the category and task panes (Tab)."""
        self._set_pane_focus(get_next_pane(self._current_pane_id()))

    def action_focus_categories(self) -> None:
        self._set_pane_focus(CATEGORY_PANE_ID)

    # ==============================================================================
    # ACTION HANDLERS - TASK OPERATIONS
    # ==============================================================================

    def action_new_task(self) -> None:
        """Open the task form (T key), preselecting the highlighted category."""
        self._open_task_form(None)

    def action_new_category(self) -> None:
        self.push_screen(CategoryFormModal())

    def action_toggle_task(self) -> None:
        """Toggle completion of the highlighted task (x/Space)."""
        if not self._service:
            return

        task = self._main_query(f"#{TASK_PANE_ID}", TaskList).get_selected_task()
        if not task:
            logger.debug("No task selected for completion toggle")
            return

        try:
            updated = self._service.toggle_task(task.id)
        except (DocumentServiceError, StoreError) as e:
            logger.error(f"Error toggling task: {e}")
            self._notify_error(f"Failed to toggle task: {e}")
            return

        self._notify_status("Task completed" if updated.done else "Task reopened")
        self._refresh_view()

    def action_edit_selection(self) -> None:
        """Edit the focused task or rename the focused category (e)."""
        selection = self._current_selection()
        if isinstance(selection, TaskSelection):
            self._open_task_form(selection.task)
        elif isinstance(selection, CategorySelection):
            self.push_screen(CategoryFormModal(edit_category=selection.category))

    def action_show_details(self) -> None:
        selection = self._current_selection()
        if not isinstance(selection, TaskSelection) or not self._service:
            return
        task = selection.task
        name = self._service.document.category_name(task.category_id) if task.category_id else ""
        self.push_screen(TaskDetailModal(task, name))

    def action_delete_selection(self) -> None:
        """Ask before deleting the focused task or category (d)."""
        selection = self._current_selection()
        if selection is None:
            return

        if isinstance(selection, TaskSelection):
            action = ACTION_DELETE_TASK
            title = "Delete Task"
        else:
            action = ACTION_DELETE_CATEGORY
            title = "Delete Category"

        self.push_screen(ConfirmModal(
            title,
            f"Delete {selection.describe()}? This cannot be undone.",
            action=action,
            target_id=selection.item_id,
            danger=True,
        ))

    # ==============================================================================
    # ACTION HANDLERS - VIEW
    # ==============================================================================

    def action_toggle_view(self) -> None:
        """Switch between active and completed tasks (v)."""
        self._show_completed = not self._show_completed
        logger.debug(f"View switched to {'completed' if self._show_completed else 'active'}")
        self._refresh_view()

    def action_reload(self) -> None:
        """Re-read the document from disk (r)."""
        if not self._service:
            return
        try:
            self._service.reload()
        except StoreError as e:
            logger.error(f"Error reloading tasks: {e}")
            self._notify_error("Error reloading tasks")
            return
        self._refresh_view()
        self._notify_status("Tasks reloaded")

    # ==============================================================================
    # ACTION HANDLERS - SYNC
    # ==============================================================================

    def action_push(self) -> None:
        """Confirm, then publish the local document to GitHub (G)."""
        if self._reject_if_busy():
            return
        self.push_screen(ConfirmModal(
            "Sync to GitHub",
            f"Push your tasks to the private '{self._repo_name}' repository? "
            "This replaces the copy on GitHub.",
            action=ACTION_PUSH,
        ))

    def action_pull(self) -> None:
        """Fetch the document from GitHub (g)."""
        self._start_pull()

    # ==============================================================================
    # PRIVATE HELPERS - SYNC
    # ==============================================================================

    def _reject_if_busy(self) -> bool:
        if self._engine.has_pending_conflict:
            self._notify_warning("Resolve the pending conflict first")
            return True
        if self._engine.is_busy:
            self._notify_warning("A sync is already in progress")
            return True
        return False

    def _start_push(self, first_run: bool = False) -> None:
        if not self._service or self._reject_if_busy():
            return
        # Claims the in-flight slot before the worker is scheduled
        running = self._engine.start_push(self._service.document)
        if running is None:
            return
        self._main_query(SyncStatus).start_sync(SyncOperation.PUSH)
        self.run_worker(self._push(running, first_run), group=SYNC_WORKER_GROUP)

    def _start_pull(self, first_run: bool = False) -> None:
        if not self._service or self._reject_if_busy():
            return
        # First run has no local state worth protecting
        local = None if first_run else self._service.document
        running = self._engine.start_pull(local)
        if running is None:
            return
        self._main_query(SyncStatus).start_sync(SyncOperation.PULL)
        self.run_worker(self._pull(running, first_run), group=SYNC_WORKER_GROUP)

    async def _push(
        self, running: "asyncio.Task[SyncResult]", first_run: bool = False
    ) -> SyncResult:
        result = await running
        self._show_sync_result(result)
        if not result.ok and first_run:
            self._notify_status(SYNC_CONTINUE_LOCAL_MESSAGE)
        return result

    async def _pull(
        self, running: "asyncio.Task[PullResult]", first_run: bool = False
    ) -> PullResult:
        result = await running
        self._show_sync_result(result)

        if result.ok and result.has_conflict:
            self._main_query(SyncStatus).set_conflict(True)
            self.push_screen(ConflictModal(self._service.document, result.remote_document))
        elif result.ok:
            self._adopt(result.remote_document)

        if first_run:
            self._finish_setup()
            if not result.ok:
                self._notify_status(SYNC_CONTINUE_LOCAL_MESSAGE)
        return result

    def _show_sync_result(self, result: SyncResult) -> None:
        status = self._main_query(SyncStatus)
        status.set_result(result)
        status.set_unsynced(self._engine.has_unsynced_changes)

        if result.rejected:
            self._notify_warning(result.message)
        elif not result.ok:
            self._notify_error(result.message)
        elif isinstance(result, PullResult) and result.has_conflict:
            self._notify_warning(result.message)
        else:
            self._notify_status(result.message)

    def _adopt(self, document: Document) -> None:
        """Switch to a document that the sync engine has already persisted."""
        if self._service.document.github_setup_complete and not document.github_setup_complete:
            document.github_setup_complete = True
            try:
                self._store.save(document, touch=False)
            except StoreError as e:
                logger.error(f"Could not save setup flag: {e}")
        self._service.replace(document)
        self._refresh_view()
        logger.info(
            f"Adopted document: {len(document.categories)} categories, {len(document.tasks)} tasks"
        )

    def _finish_setup(self) -> None:
        try:
            self._service.mark_setup_complete()
        except StoreError as e:
            logger.error(f"Could not record setup completion: {e}")
            self._notify_error(f"Failed to save: {e}")

    # ==============================================================================
    # PRIVATE HELPERS - EDITING
    # ==============================================================================

    def _open_task_form(self, task=None) -> None:
        if not self._service:
            return
        category = self._main_query(f"#{CATEGORY_PANE_ID}", CategoryList).get_selected_category()
        self.push_screen(TaskFormModal(
            categories=list(self._service.document.categories),
            edit_task=task,
            default_category_id=category.id if category else "",
        ))

    def _delete_task(self, task_id: Optional[str]) -> None:
        if not self._service or not task_id:
            return
        try:
            task = self._service.delete_task(task_id)
        except (DocumentServiceError, StoreError) as e:
            logger.error(f"Error deleting task: {e}")
            self._notify_error(f"Failed to delete task: {e}")
            return
        truncated = task.content[:MAX_CONTENT_LENGTH_IN_NOTIFICATION]
        self._notify_status(f"Task deleted: {truncated}")
        self._refresh_view()

    def _delete_category(self, category_id: Optional[str]) -> None:
        if not self._service or not category_id:
            return
        try:
            self._service.delete_category(category_id)
        except DocumentServiceError as e:
            # Includes CategoryInUseError ("Cannot delete: N tasks in category")
            logger.info(f"Category {category_id} not deleted: {e}")
            self._notify_warning(str(e))
            return
        except StoreError as e:
            logger.error(f"Error deleting category: {e}")
            self._notify_error(f"Failed to delete category: {e}")
            return
        self._notify_status("Category deleted")
        self._refresh_view()

    # ==============================================================================
    # PRIVATE HELPERS - VIEW
    # ==============================================================================

    def _refresh_view(self) -> None:
        """Redraw both panes and the progress line from the current document."""
        if not self._service:
            return
        document = self._service.document

        if self._show_completed:
            tasks, title, view_name = document.completed_tasks(), "Completed Tasks", "Completed"
        else:
            tasks, title, view_name = document.active_tasks(), "Active Tasks", "Active"

        self._main_query(f"#{TASK_PANE_ID}", TaskList).show_tasks(tasks, document, title=title)
        self._main_query(f"#{CATEGORY_PANE_ID}", CategoryList).show_categories(document)

        progress = self._main_query(ProgressLine)
        progress.view_name = view_name
        progress.update_progress(document.completed_count, len(document.tasks), document.progress)

    def _main_query(self, selector, expect_type=None):
        """query_one on the main screen, even while a modal is on top."""
        main_screen = self.screen_stack[0]
        if expect_type is None:
            return main_screen.query_one(selector)
        return main_screen.query_one(selector, expect_type)

    def _current_pane_id(self) -> str:
        focused = self.focused
        if focused is not None and focused.id in FOCUSABLE_PANES:
            self._last_pane_id = focused.id
        return self._last_pane_id

    def _set_pane_focus(self, pane_id: str) -> None:
        try:
            self._main_query(f"#{pane_id}", ItemList).focus()
            self._last_pane_id = pane_id
            logger.debug(f"Focus changed to pane: {pane_id}")
        except Exception as e:
            logger.debug(f"Could not set focus to pane {pane_id}: {e}")

    def _get_focused_pane(self) -> Optional[ItemList]:
        try:
            return self._main_query(f"#{self._current_pane_id()}", ItemList)
        except Exception as e:
            logger.debug(f"Could not get focused pane: {e}")
            return None

    def _current_selection(self) -> Optional[Selection]:
        """The item under the cursor in the focused pane."""
        if self._current_pane_id() == CATEGORY_PANE_ID:
            category = self._main_query(f"#{CATEGORY_PANE_ID}", CategoryList).get_selected_category()
            return CategorySelection(category) if category else None

        task = self._main_query(f"#{TASK_PANE_ID}", TaskList).get_selected_task()
        return TaskSelection(task) if task else None

    # ==============================================================================
    # PRIVATE HELPERS - NOTIFICATIONS
    # ==============================================================================

    def _notify_status(self, message: str) -> None:
        self.notify(message, severity="information", timeout=self._status_timeout)

    def _notify_warning(self, message: str) -> None:
        self.notify(message, severity="warning", timeout=NOTIFICATION_TIMEOUT_MEDIUM)

    def _notify_error(self, message: str) -> None:
        self.notify(message, severity="error", timeout=NOTIFICATION_TIMEOUT_LONG)
