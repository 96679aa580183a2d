"""
Document service for todobi.

Implements task and category editing on the in-memory document. Every edit
is persisted immediately through the local store and reported to an
``on_change`` callback so the sync layer knows there are unsynced changes.
"""

import re
import uuid
from typing import Callable, Iterable, Optional

from todobi.logging_config import get_logger
from todobi.models import Category, Document, Priority, Task
from todobi.store import LocalStore

logger = get_logger(__name__)


class DocumentServiceError(Exception):
    """Base exception for document service errors."""
    pass


class TaskNotFoundError(DocumentServiceError):
    """Raised when a task is not found."""
    pass


class CategoryNotFoundError(DocumentServiceError):
    """Raised when a category is not found."""
    pass


class CategoryInUseError(DocumentServiceError):
    """Raised when deleting a category that still has tasks."""

    def __init__(self, category_id: str, task_count: int):
        self.category_id = category_id
        self.task_count = task_count
        super().__init__(f"Cannot delete: {task_count} tasks in category")


def generate_id() -> str:
    """Short random id for a new task."""
    return uuid.uuid4().hex[:8]


def slugify(name: str) -> str:
    """Lowercase, dash separated form of a name ("Home Lab" -> "home-lab")."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or generate_id()


def unique_category_id(name: str, existing: Iterable[str]) -> str:
    """Slug of ``name``, suffixed with a counter if already taken."""
    taken = set(existing)
    base = slugify(name)
    candidate = base
    counter = 2
    while candidate in taken:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


class DocumentService:
    """
    Service layer for editing the local document.

    Example:
        >>> service = DocumentService(store.load_or_default(), store, engine.mark_unsynced)
        >>> task = service.add_task("Buy milk", category_id="personal")
        >>> service.toggle_task(task.id)
    """

    def __init__(
        self,
        document: Document,
        store: LocalStore,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            document: Current document; each edit replaces it with the saved copy
            store: Store used to persist every edit
            on_change: Called after each persisted edit
        """
        self.document = document
        self.store = store
        self.on_change = on_change

    def _commit(self, draft: Document, description: str) -> None:
        """
        Persist an edited copy, then make it the current document.

        A failed save leaves ``self.document`` as it was.

        Raises:
            StoreError: If the copy cannot be written
        """
        self.store.save(draft)
        self.document = draft
        logger.debug(f"Document saved after {description}")
        if self.on_change:
            self.on_change()

    # ==============================================================================
    # TASKS
    # ==============================================================================

    def _require_task(self, document: Document, task_id: str) -> Task:
        task = document.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def _require_category_reference(self, document: Document, category_id: str) -> None:
        if category_id and document.get_category(category_id) is None:
            raise CategoryNotFoundError(f"Category {category_id} not found")

    def add_task(
        self,
        content: str,
        category_id: str = "",
        priority: Priority = Priority.P1,
        notes: str = "",
    ) -> Task:
        """
        Create a new task.

        Args:
            content: Task text (required)
            category_id: Owning category ('' for none)
            priority: Task priority
            notes: Optional notes

        Returns:
            The created Task

        Raises:
            ValueError: If content is empty
            CategoryNotFoundError: If category_id does not exist
        """
        content = content.strip()
        if not content:
            raise ValueError("Task content is required")
        draft = self.document.clone()
        self._require_category_reference(draft, category_id)

        existing = {task.id for task in draft.tasks}
        task_id = generate_id()
        while task_id in existing:
            task_id = generate_id()

        task = Task(
            id=task_id,
            content=content,
            category_id=category_id,
            priority=Priority(priority),
            notes=notes.strip(),
        )
        draft.tasks.append(task)
        self._commit(draft, f"creating task {task.id}")
        logger.info(f"Created task {task.id}")
        return task

    def update_task(
        self,
        task_id: str,
        content: Optional[str] = None,
        category_id: Optional[str] = None,
        priority: Optional[Priority] = None,
        notes: Optional[str] = None,
    ) -> Task:
        """
        Update task fields; None leaves a field unchanged.

        Raises:
            TaskNotFoundError: If the task does not exist
            ValueError: If content is given but empty
            CategoryNotFoundError: If category_id does not exist
        """
        draft = self.document.clone()
        task = self._require_task(draft, task_id)

        if content is not None:
            content = content.strip()
            if not content:
                raise ValueError("Task content is required")
            task.content = content
        if category_id is not None:
            self._require_category_reference(draft, category_id)
            task.category_id = category_id
        if priority is not None:
            task.priority = Priority(priority)
        if notes is not None:
            task.notes = notes.strip()

        self._commit(draft, f"updating task {task_id}")
        return task

    def toggle_task(self, task_id: str) -> Task:
        """
        Flip a task between done and pending.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        draft = self.document.clone()
        task = self._require_task(draft, task_id)
        task.toggle()
        self._commit(draft, f"toggling task {task_id}")
        logger.info(f"Task {task_id} marked {'done' if task.done else 'pending'}")
        return task

    def delete_task(self, task_id: str) -> Task:
        """
        Remove a task.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        draft = self.document.clone()
        task = self._require_task(draft, task_id)
        draft.tasks = [t for t in draft.tasks if t.id != task_id]
        self._commit(draft, f"deleting task {task_id}")
        logger.info(f"Deleted task {task_id}")
        return task

    # ==============================================================================
    # CATEGORIES
    # ==============================================================================

    def _require_category(self, document: Document, category_id: str) -> Category:
        category = document.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(f"Category {category_id} not found")
        return category

    def add_category(self, name: str) -> Category:
        """
        Create a new category with an id derived from its name.

        Raises:
            ValueError: If name is empty
        """
        name = name.strip()
        if not name:
            raise ValueError("Category name is required")

        draft = self.document.clone()
        category = Category(
            id=unique_category_id(name, (c.id for c in draft.categories)),
            name=name,
        )
        draft.categories.append(category)
        self._commit(draft, f"creating category {category.id}")
        logger.info(f"Created category {category.id}")
        return category

    def rename_category(self, category_id: str, name: str) -> Category:
        """
        Change a category's display name; its id never changes.

        Raises:
            CategoryNotFoundError: If the category does not exist
            ValueError: If name is empty
        """
        draft = self.document.clone()
        category = self._require_category(draft, category_id)
        name = name.strip()
        if not name:
            raise ValueError("Category name is required")
        category.name = name
        self._commit(draft, f"renaming category {category_id}")
        return category

    def delete_category(self, category_id: str) -> Category:
        """
        Remove a category that no task references.

        Raises:
            CategoryNotFoundError: If the category does not exist
            CategoryInUseError: If tasks still reference it
        """
        draft = self.document.clone()
        category = self._require_category(draft, category_id)
        in_use = len(draft.tasks_in_category(category_id))
        if in_use:
            raise CategoryInUseError(category_id, in_use)

        draft.categories = [c for c in draft.categories if c.id != category_id]
        self._commit(draft, f"deleting category {category_id}")
        logger.info(f"Deleted category {category_id}")
        return category

    # ==============================================================================
    # DOCUMENT
    # ==============================================================================

    def mark_setup_complete(self) -> None:
        """
        Record that first-run sync onboarding has been handled.

        The flag is not a user edit: ``last_update`` is left alone and no
        unsynced change is reported.
        """
        if self.document.github_setup_complete:
            return
        draft = self.document.clone()
        draft.github_setup_complete = True
        self.store.save(draft, touch=False)
        self.document = draft
        logger.info("GitHub setup marked complete")

    def replace(self, document: Document) -> None:
        """Switch to a document that has already been persisted (e.g. after a pull)."""
        self.document = document

    def reload(self) -> Document:
        """
        Re-read the document from disk, discarding in-memory state.

        Raises:
            StoreError: If the file cannot be loaded
        """
        self.document = self.store.load()
        logger.info("Reloaded document from disk")
        return self.document
