"""
Sync engine: push the local document to the remote store, pull it back.

Operations:
- push(): serialize local document → publish to remote (creating it if absent)
- pull(): fetch remote → decode → adopt it, or hold it for conflict resolution
- resolve(): apply the user's conflict resolution choice

At most one operation is in flight at a time. A request that arrives while
another push/pull is running, or while a pulled snapshot is waiting for a
resolution, is rejected; the running operation is left alone.

Transport work runs in a worker thread (``asyncio.to_thread``). Everything
else, including persisting an adopted document, happens back on the event
loop, so the caller's document has a single writer.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from todobi.logging_config import get_logger
from todobi.models import Document, DocumentDecodeError
from todobi.services.conflict import Resolution, ResolutionStrategy, resolve_conflict
from todobi.services.transport import RemoteAbsentError, RemoteTransport, TransportError
from todobi.store import LocalStore, StoreError

logger = get_logger(__name__)


PUSH_SUCCESS_MESSAGE = "Synced to GitHub successfully!"
PULL_SUCCESS_MESSAGE = "Pulled from GitHub successfully!"
CONFLICT_MESSAGE = "Conflict detected - choose merge strategy"


class SyncError(Exception):
    """Base exception for sync engine errors."""
    pass


class NoPendingConflictError(SyncError):
    """resolve() was called without a conflict waiting for a decision."""
    pass


class SyncOperation(str, Enum):
    """Kind of sync operation."""

    PUSH = "push"
    PULL = "pull"


@dataclass
class SyncResult:
    """
    Completion message of a sync operation.

    Failures are reported here, never raised: ``ok`` is False and ``error``
    holds the reason. ``rejected`` marks requests refused because another
    operation was in progress.
    """

    operation: SyncOperation
    ok: bool
    message: str
    error: Optional[str] = None
    rejected: bool = False


@dataclass
class PullResult(SyncResult):
    """
    Completion message of a pull.

    On success ``remote_document`` is the fetched document. Without a
    conflict it has already been adopted and persisted; with a conflict it
    is retained by the engine until resolve() is called.
    """

    remote_document: Optional[Document] = None
    has_conflict: bool = False


@dataclass
class SyncState:
    """Ephemeral, in-memory sync bookkeeping (never persisted)."""

    in_flight: Optional[SyncOperation] = None
    pending_remote: Optional[Document] = None
    last_outcome: str = ""
    has_unsynced_changes: bool = False
    # Bumped by every local edit; a push only clears the flag if no edit
    # happened after its snapshot was serialized
    edit_count: int = 0

    @property
    def has_pending_conflict(self) -> bool:
        return self.pending_remote is not None

    @property
    def is_busy(self) -> bool:
        return self.in_flight is not None or self.pending_remote is not None


def detect_conflict(local: Document, remote: Document) -> bool:
    """
    Decide whether pulling ``remote`` over ``local`` needs a human decision.

    A conflict exists only when the local document was saved after the
    remote one. Equal timestamps, or a local document that is older, are
    always safe to overwrite.
    """
    return local.last_update > remote.last_update and local.last_update != remote.last_update


class SyncEngine:
    """
    Drives push/pull between the local store and a remote transport.

    Example:
        >>> engine = SyncEngine(GitHubTransport(GitHubSyncConfig()), store)
        >>> result = await engine.pull(document)
        >>> if result.has_conflict:
        ...     resolution = engine.resolve(ResolutionStrategy.MERGE, document)
        ...     document = resolution.document
        ... elif result.ok:
        ...     document = result.remote_document
    """

    def __init__(self, transport: RemoteTransport, store: LocalStore):
        """
        Initialize the sync engine.

        Args:
            transport: Remote store access
            store: Local store used to persist adopted documents
        """
        self.transport = transport
        self.store = store
        self._state = SyncState()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> SyncState:
        """Current sync state."""
        return self._state

    @property
    def is_busy(self) -> bool:
        """True while an operation runs or a conflict awaits resolution."""
        return self._state.is_busy

    @property
    def has_pending_conflict(self) -> bool:
        return self._state.has_pending_conflict

    @property
    def pending_remote(self) -> Optional[Document]:
        """Remote snapshot retained for conflict resolution, if any."""
        return self._state.pending_remote

    @property
    def has_unsynced_changes(self) -> bool:
        return self._state.has_unsynced_changes

    def mark_unsynced(self) -> None:
        """Record that the local document changed since the last sync."""
        self._state.has_unsynced_changes = True
        self._state.edit_count += 1

    def _begin(self, operation: SyncOperation) -> Optional[str]:
        """
        Claim the single in-flight slot.

        Returns:
            None if the operation may start, otherwise the rejection reason
        """
        if self._state.in_flight is not None:
            reason = f"A {self._state.in_flight.value} is already in progress"
        elif self._state.pending_remote is not None:
            reason = "Resolve the pending conflict first"
        else:
            self._state.in_flight = operation
            return None

        logger.warning(f"[SYNC] Rejected {operation.value}: {reason}")
        return reason

    def _finish(self, result: SyncResult) -> SyncResult:
        self._state.last_outcome = result.message
        if result.ok:
            logger.info(f"[SYNC] {result.operation.value} complete: {result.message}")
        else:
            logger.error(f"[SYNC] {result.operation.value} failed: {result.error}")
        return result

    # =========================================================================
    # PUSH (Local → Remote)
    # =========================================================================

    async def push(self, document: Document) -> SyncResult:
        """
        Publish the local document, overwriting whatever the remote holds.

        Args:
            document: Document to publish as-is

        Returns:
            SyncResult; failures are reported, not raised
        """
        reason = self._begin(SyncOperation.PUSH)
        if reason:
            return SyncResult(SyncOperation.PUSH, False, reason, error=reason, rejected=True)
        return await self._run_push(document.to_json_bytes(), self._state.edit_count)

    def start_push(self, document: Document) -> Optional["asyncio.Task[SyncResult]"]:
        """
        Start a push in the background.

        Returns:
            Task resolving to the SyncResult, or None if rejected
        """
        if self._begin(SyncOperation.PUSH):
            return None
        data = document.to_json_bytes()
        return asyncio.create_task(
            self._run_push(data, self._state.edit_count), name="todobi-push"
        )

    def _publish(self, data: bytes) -> None:
        """Blocking push body, run in a worker thread."""
        if not self.transport.remote_exists():
            logger.info(f"{self.transport.describe()} does not exist, creating it")
            self.transport.create_remote()
        self.transport.publish_remote(data)

    async def _run_push(self, data: bytes, edit_count: int) -> SyncResult:
        logger.info(f"[SYNC] Push started ({len(data)} bytes)")
        try:
            await asyncio.to_thread(self._publish, data)
        except TransportError as e:
            return self._finish(SyncResult(
                SyncOperation.PUSH, False, f"Sync failed: {e}", error=str(e)
            ))
        except Exception as e:
            logger.error(f"Unexpected push error: {e}", exc_info=True)
            return self._finish(SyncResult(
                SyncOperation.PUSH, False, f"Sync failed: {e}", error=str(e)
            ))
        finally:
            self._state.in_flight = None

        if self._state.edit_count == edit_count:
            self._state.has_unsynced_changes = False
        else:
            logger.info("[SYNC] Local edits made during the push are still unsynced")
        return self._finish(SyncResult(SyncOperation.PUSH, True, PUSH_SUCCESS_MESSAGE))

    # =========================================================================
    # PULL (Remote → Local)
    # =========================================================================

    async def pull(self, document: Optional[Document]) -> PullResult:
        """
        Fetch the remote document and adopt it or hold it for resolution.

        Args:
            document: Current local document, or None when there is no local
                      state to protect (first-time setup); then the remote
                      is always adopted.

        Returns:
            PullResult; failures are reported, not raised
        """
        reason = self._begin(SyncOperation.PULL)
        if reason:
            return PullResult(SyncOperation.PULL, False, reason, error=reason, rejected=True)
        return await self._run_pull(document)

    def start_pull(self, document: Optional[Document]) -> Optional["asyncio.Task[PullResult]"]:
        """
        Start a pull in the background.

        Returns:
            Task resolving to the PullResult, or None if rejected
        """
        if self._begin(SyncOperation.PULL):
            return None
        return asyncio.create_task(self._run_pull(document), name="todobi-pull")

    def _fetch(self) -> bytes:
        """Blocking pull body, run in a worker thread."""
        if not self.transport.remote_exists():
            raise RemoteAbsentError(
                f"{self.transport.describe()} does not exist. Push to GitHub first with 'G'"
            )
        return self.transport.fetch_remote()

    def _pull_failed(self, error: str) -> PullResult:
        return self._finish(PullResult(
            SyncOperation.PULL, False, f"Pull failed: {error}", error=error
        ))

    async def _run_pull(self, document: Optional[Document]) -> PullResult:
        logger.info("[SYNC] Pull started")
        try:
            try:
                data = await asyncio.to_thread(self._fetch)
                remote = Document.from_json_bytes(data)
            except (TransportError, DocumentDecodeError) as e:
                return self._pull_failed(str(e))
            except Exception as e:
                logger.error(f"Unexpected pull error: {e}", exc_info=True)
                return self._pull_failed(str(e))

            if document is not None and detect_conflict(document, remote):
                logger.info(
                    f"[SYNC] Conflict: local last_update={document.last_update.isoformat()} "
                    f"is after remote last_update={remote.last_update.isoformat()}"
                )
                self._state.pending_remote = remote
                return self._finish(PullResult(
                    SyncOperation.PULL, True, CONFLICT_MESSAGE,
                    remote_document=remote, has_conflict=True,
                ))

            try:
                self.store.save(remote, touch=False)
            except StoreError as e:
                return self._pull_failed(str(e))

            self._state.has_unsynced_changes = False
            return self._finish(PullResult(
                SyncOperation.PULL, True, PULL_SUCCESS_MESSAGE, remote_document=remote
            ))
        finally:
            self._state.in_flight = None

    # =========================================================================
    # CONFLICT RESOLUTION
    # =========================================================================

    def resolve(self, strategy: ResolutionStrategy, local: Document) -> Resolution:
        """
        Apply the user's choice to the pending conflict.

        The retained remote snapshot is released whatever the outcome.

        Args:
            strategy: keep-local, take-remote, merge or cancel
            local: Current local document

        Returns:
            Resolution with the document to use from now on

        Raises:
            NoPendingConflictError: If no conflict is waiting (e.g. already resolved)
            StoreError: If the resolved document cannot be persisted
        """
        remote = self._state.pending_remote
        if remote is None:
            raise NoPendingConflictError("No pending conflict to resolve")

        self._state.pending_remote = None

        resolution = resolve_conflict(strategy, local, remote)
        if resolution.replaced:
            self.store.save(resolution.document, touch=False)
        if resolution.clears_unsynced:
            self._state.has_unsynced_changes = False
        elif strategy == ResolutionStrategy.KEEP_LOCAL:
            # Local is newer than the remote, so it still has to be pushed
            self.mark_unsynced()

        self._state.last_outcome = resolution.message
        logger.info(f"[SYNC] Conflict resolved: {resolution.strategy.value}")
        return resolution

    def cancel_conflict(self, local: Document) -> Resolution:
        """Dismiss the pending conflict without choosing a side."""
        return self.resolve(ResolutionStrategy.CANCEL, local)
