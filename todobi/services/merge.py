"""
Merge of two divergent documents.

Used only when the user picks "merge" to resolve a pull conflict. The merge
is a union by id with winner-take-all records, not a field-level merge:

- Categories: the remote record wins when both sides have the same id.
- Tasks: the record with the strictly later ``created_at`` wins; on an exact
  tie the local record is kept.

Output order is deterministic: local items in local order, then remote-only
items in remote order.
"""

from datetime import datetime
from typing import Dict, Optional

from todobi.logging_config import get_logger
from todobi.models import Category, Document, Task
from todobi.utils.datetime_utils import utc_now

logger = get_logger(__name__)


def merge_categories(local: Document, remote: Document) -> Dict[str, Category]:
    """Union categories by id, remote taking precedence on collision."""
    merged: Dict[str, Category] = {}
    for category in local.categories:
        merged[category.id] = category
    for category in remote.categories:
        # Reassigning an existing key keeps its original insertion position
        merged[category.id] = category
    return merged


def merge_tasks(local: Document, remote: Document) -> Dict[str, Task]:
    """Union tasks by id, keeping the record created later on collision."""
    merged: Dict[str, Task] = {}
    for task in local.tasks:
        merged[task.id] = task
    for task in remote.tasks:
        existing = merged.get(task.id)
        if existing is None or task.created_at > existing.created_at:
            merged[task.id] = task
    return merged


def merge_documents(
    local: Document,
    remote: Document,
    now: Optional[datetime] = None,
) -> Document:
    """
    Combine a local and a remote document into a new document.

    Neither input is modified; every record in the result is a copy.

    Args:
        local: The document on this machine
        remote: The document fetched from the remote store
        now: Timestamp for the merged ``last_update`` (defaults to current time)

    Returns:
        The merged Document, carrying the local ``version``
    """
    categories = merge_categories(local, remote)
    tasks = merge_tasks(local, remote)

    merged = Document(
        categories=[category.model_copy(deep=True) for category in categories.values()],
        tasks=[task.model_copy(deep=True) for task in tasks.values()],
        last_update=now or utc_now(),
        version=local.version,
        github_setup_complete=local.github_setup_complete or remote.github_setup_complete,
    )

    logger.info(
        f"Merged documents: {len(merged.categories)} categories "
        f"(local={len(local.categories)}, remote={len(remote.categories)}), "
        f"{len(merged.tasks)} tasks (local={len(local.tasks)}, remote={len(remote.tasks)})"
    )
    return merged
