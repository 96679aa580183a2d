"""
Conflict resolution policy for pulls that found a diverged local document.

A human picks exactly one strategy; this module turns that choice into the
document the application should use next. It never decides on its own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from todobi.models import Document
from todobi.services.merge import merge_documents


class ResolutionStrategy(str, Enum):
    """Strategy for resolving a pull conflict."""

    KEEP_LOCAL = "keep_local"    # Discard remote, still needs a push later
    TAKE_REMOTE = "take_remote"  # Overwrite local with remote
    MERGE = "merge"              # Union by id (see merge.py)
    CANCEL = "cancel"            # Same as keep-local, but no decision was made


RESOLUTION_MESSAGES = {
    ResolutionStrategy.KEEP_LOCAL: "Kept local version",
    ResolutionStrategy.TAKE_REMOTE: "Applied remote version",
    ResolutionStrategy.MERGE: "Merged local and remote",
    ResolutionStrategy.CANCEL: "Conflict resolution cancelled",
}


@dataclass
class Resolution:
    """
    Outcome of applying a strategy.

    Attributes:
        strategy: The strategy that was applied
        document: Document the application should use from now on
        message: Status text for the user
        replaced: True when ``document`` is new and must be persisted
        clears_unsynced: True when local and remote are considered in sync
    """

    strategy: ResolutionStrategy
    document: Document
    message: str
    replaced: bool
    clears_unsynced: bool


def resolve_conflict(
    strategy: ResolutionStrategy,
    local: Document,
    remote: Document,
) -> Resolution:
    """
    Apply a resolution strategy to a local/remote pair.

    Args:
        strategy: The user's choice
        local: Current local document
        remote: Remote snapshot retained by the pull

    Returns:
        Resolution describing the document to use next
    """
    strategy = ResolutionStrategy(strategy)
    message = RESOLUTION_MESSAGES[strategy]

    if strategy == ResolutionStrategy.TAKE_REMOTE:
        return Resolution(strategy, remote, message, replaced=True, clears_unsynced=True)

    if strategy == ResolutionStrategy.MERGE:
        merged = merge_documents(local, remote)
        return Resolution(strategy, merged, message, replaced=True, clears_unsynced=True)

    # KEEP_LOCAL and CANCEL leave everything as it was
    return Resolution(strategy, local, message, replaced=False, clears_unsynced=False)


def strategy_for_key(key: str) -> Optional[ResolutionStrategy]:
    """
    Map a conflict dialog key to a strategy.

    ``l`` keep local, ``r`` take remote, ``m`` merge, ``escape`` cancel.
    """
    return {
        "l": ResolutionStrategy.KEEP_LOCAL,
        "r": ResolutionStrategy.TAKE_REMOTE,
        "m": ResolutionStrategy.MERGE,
        "escape": ResolutionStrategy.CANCEL,
    }.get(key.lower() if len(key) == 1 else key)
