"""
Pydantic models for todobi.

Defines the synchronizable document (categories, tasks and metadata) with
validation, JSON (de)serialization compatible with the on-disk format, and
the pure helper functions the UI and sync layers use.
"""

import hashlib
import json
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_serializer,
    model_validator,
)

from todobi.utils.datetime_utils import (
    describe_age,
    format_timestamp,
    is_zero_time,
    parse_timestamp,
    utc_now,
)


DEFAULT_VERSION = "1.3.0"

UNKNOWN_CATEGORY_NAME = "Unknown"


class DocumentDecodeError(ValueError):
    """Serialized data could not be turned into a Document."""
    pass


class Priority(IntEnum):
    """Task priority, serialized as its integer value (0 is most urgent)."""

    P0 = 0  # Critical
    P1 = 1  # High
    P2 = 2  # Medium
    P3 = 3  # Low

    @property
    def label(self) -> str:
        """Short display label, e.g. "P0"."""
        return f"P{self.value}"

    @property
    def color(self) -> str:
        """Display color for this priority."""
        return _PRIORITY_COLORS[self]

    @classmethod
    def parse(cls, value: Any, default: "Priority" = None) -> "Priority":
        """
        Parse user input ("0".."3", "P2", 1) into a Priority.

        Args:
            value: Raw value to parse
            default: Returned when the value is not a valid priority;
                     if None, a ValueError is raised instead

        Returns:
            The parsed Priority
        """
        text = str(value).strip().upper().lstrip("P")
        try:
            return cls(int(text))
        except ValueError:
            if default is not None:
                return default
            raise ValueError(f"Invalid priority: {value!r} (expected 0-3)")


_PRIORITY_COLORS = {
    Priority.P0: "#d73a4a",
    Priority.P1: "#fb8500",
    Priority.P2: "#ffc107",
    Priority.P3: "#4caf50",
}


class Category(BaseModel):
    """
    A named group of tasks (e.g., Work, Personal).

    The id is immutable once created; the name may be edited.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1, description="Unique, immutable identifier")
    name: str = Field(..., description="Display name")


class Task(BaseModel):
    """
    A single todo item.

    ``category_id`` and ``notes`` use the empty string for "not set", which
    matches the persisted format. ``completed_at`` is set when the task is
    marked done and cleared when it is reopened.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1, description="Unique, immutable identifier")
    content: str = Field(..., description="Task text")
    category_id: str = Field(default="", description="Owning category id ('' if none)")
    priority: Priority = Field(default=Priority.P1, description="Priority P0-P3")
    done: bool = Field(default=False, description="Completion status")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp")
    notes: str = Field(default="", description="Free-form notes ('' if none)")

    @field_validator("category_id", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, v: Any) -> Any:
        if isinstance(v, (str, datetime)):
            return parse_timestamp(v)
        return v

    @field_validator("completed_at", mode="before")
    @classmethod
    def _parse_completed_at(cls, v: Any) -> Any:
        """Treat missing, empty and zero timestamps as unset."""
        if v is None or v == "":
            return None
        if isinstance(v, (str, datetime)):
            parsed = parse_timestamp(v)
            return None if is_zero_time(parsed) else parsed
        return v

    @field_serializer("created_at")
    def _serialize_created_at(self, dt: datetime) -> str:
        return format_timestamp(dt)

    @field_serializer("completed_at")
    def _serialize_completed_at(self, dt: Optional[datetime]) -> Optional[str]:
        return format_timestamp(dt) if dt is not None else None

    @model_serializer(mode="wrap")
    def _omit_unset(self, handler) -> Dict[str, Any]:
        data = handler(self)
        if self.completed_at is None:
            data.pop("completed_at", None)
        if not self.notes:
            data.pop("notes", None)
        return data

    @property
    def has_category(self) -> bool:
        """Whether the task references a category."""
        return bool(self.category_id)

    def mark_completed(self, now: Optional[datetime] = None) -> None:
        """Mark the task as completed with timestamp."""
        self.done = True
        self.completed_at = now or utc_now()

    def mark_incomplete(self) -> None:
        """Mark the task as incomplete, removing completion timestamp."""
        self.done = False
        self.completed_at = None

    def toggle(self, now: Optional[datetime] = None) -> bool:
        """
        Flip the completion state.

        Returns:
            The new ``done`` value
        """
        if self.done:
            self.mark_incomplete()
        else:
            self.mark_completed(now)
        return self.done

    def age_description(self, now: Optional[datetime] = None) -> str:
        """Human readable age, e.g. "3 days old"."""
        return describe_age(self.created_at, now)


def migrate_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize raw document data before validation.

    Rules:
    - ``null`` collections (written by older versions) become empty lists
    - Missing version gets the current default
    - Unknown fields are ignored by validation

    Args:
        data: Raw JSON data from disk or from the remote store

    Returns:
        Data compatible with the current Document model
    """
    if data.get("categories") is None:
        data["categories"] = []
    if data.get("tasks") is None:
        data["tasks"] = []
    if not data.get("version"):
        data["version"] = DEFAULT_VERSION
    return data


class Document(BaseModel):
    """
    The complete synchronizable unit: categories, tasks and metadata.

    ``last_update`` is stamped whenever an edit is saved and is the only
    signal the sync engine uses to detect divergence.
    """

    model_config = ConfigDict(validate_assignment=True)

    categories: List[Category] = Field(default_factory=list, description="All categories")
    tasks: List[Task] = Field(default_factory=list, description="All tasks")
    last_update: datetime = Field(default_factory=utc_now, description="Last save timestamp")
    version: str = Field(default=DEFAULT_VERSION, description="Schema compatibility marker")
    github_setup_complete: bool = Field(default=False, description="First-run onboarding done")

    @field_validator("last_update", mode="before")
    @classmethod
    def _parse_last_update(cls, v: Any) -> Any:
        if isinstance(v, (str, datetime)):
            return parse_timestamp(v)
        return v

    @model_validator(mode="after")
    def _validate_unique_ids(self) -> "Document":
        """
        Reject documents with duplicate category or task ids.

        Raises:
            ValueError: If an id appears more than once
        """
        for label, items in (("category", self.categories), ("task", self.tasks)):
            seen = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {label} id: {item.id}")
                seen.add(item.id)
        return self

    @field_serializer("last_update")
    def _serialize_last_update(self, dt: datetime) -> str:
        return format_timestamp(dt)

    @model_serializer(mode="wrap")
    def _omit_unset(self, handler) -> Dict[str, Any]:
        data = handler(self)
        if not self.github_setup_complete:
            data.pop("github_setup_complete", None)
        return data

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_task(self, task_id: str) -> Optional[Task]:
        """Find a task by id."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_category(self, category_id: str) -> Optional[Category]:
        """Find a category by id."""
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def category_name(self, category_id: str) -> str:
        """Name of a category, or "Unknown" for dangling references."""
        category = self.get_category(category_id)
        return category.name if category else UNKNOWN_CATEGORY_NAME

    def tasks_in_category(self, category_id: str) -> List[Task]:
        """All tasks referencing the given category."""
        return [task for task in self.tasks if task.category_id == category_id]

    def active_tasks(self) -> List[Task]:
        """Pending tasks ordered by category name, then priority."""
        pending = [task for task in self.tasks if not task.done]
        return sorted(
            pending,
            key=lambda task: (self.category_name(task.category_id), task.priority),
        )

    def completed_tasks(self) -> List[Task]:
        """Completed tasks ordered by category name, most recently completed first."""
        completed = [task for task in self.tasks if task.done]
        # Two stable passes: secondary key first, primary key last
        completed.sort(
            key=lambda task: task.completed_at.timestamp() if task.completed_at else 0.0,
            reverse=True,
        )
        completed.sort(key=lambda task: self.category_name(task.category_id))
        return completed

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @property
    def pending_count(self) -> int:
        """Number of tasks not yet done."""
        return sum(1 for task in self.tasks if not task.done)

    @property
    def completed_count(self) -> int:
        """Number of tasks done."""
        return sum(1 for task in self.tasks if task.done)

    @property
    def progress(self) -> int:
        """Completion percentage (0-100, integer division)."""
        if not self.tasks:
            return 0
        return (self.completed_count * 100) // len(self.tasks)

    # =========================================================================
    # IDENTITY
    # =========================================================================

    def content_equals(self, other: "Document") -> bool:
        """Compare two documents ignoring ``last_update``."""
        exclude = {"last_update"}
        return self.model_dump(mode="json", exclude=exclude) == other.model_dump(
            mode="json", exclude=exclude
        )

    def fingerprint(self) -> str:
        """Stable SHA-256 over the canonical serialization."""
        canonical = json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def clone(self) -> "Document":
        """Deep copy of this document."""
        return self.model_copy(deep=True)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_json_bytes(self) -> bytes:
        """Serialize to the persisted format (2-space indented UTF-8 JSON)."""
        return json.dumps(
            self.model_dump(mode="json"), indent=2, ensure_ascii=False
        ).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, data: bytes) -> "Document":
        """
        Deserialize a document from bytes.

        Args:
            data: Serialized document (UTF-8 JSON)

        Returns:
            The decoded Document

        Raises:
            DocumentDecodeError: If the data is not valid document JSON
        """
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DocumentDecodeError(f"Invalid JSON: {e}") from e

        if not isinstance(raw, dict):
            raise DocumentDecodeError("Document must be a JSON object")

        try:
            return cls.model_validate(migrate_data(raw))
        except ValidationError as e:
            raise DocumentDecodeError(f"Invalid document: {e}") from e
