"""
Tests for the sync engine.

Covers push/pull semantics, conflict detection, conflict resolution, failure
reporting and the single in-flight operation rule.
"""

import threading
from unittest.mock import patch

import pytest

from tests.helpers.factories import at, make_category, make_document, make_task
from todobi.services.conflict import ResolutionStrategy
from todobi.services.sync_engine import (
    CONFLICT_MESSAGE,
    PULL_SUCCESS_MESSAGE,
    PUSH_SUCCESS_MESSAGE,
    NoPendingConflictError,
    SyncOperation,
    SyncState,
    detect_conflict,
)
from todobi.services.transport import AuthenticationError, RemoteCommandError
from todobi.store import StoreError


@pytest.fixture
def local():
    return make_document(
        categories=[make_category("work")],
        tasks=[make_task("local-task")],
        last_update=at(minutes=10),
    )


@pytest.fixture
def remote():
    return make_document(
        categories=[make_category("work", "Job")],
        tasks=[make_task("remote-task")],
        last_update=at(minutes=5),
    )


class TestDetectConflict:

    def test_local_newer_is_conflict(self, local, remote):
        assert detect_conflict(local, remote) is True

    def test_equal_timestamps_not_conflict(self, local, remote):
        remote.last_update = local.last_update
        assert detect_conflict(local, remote) is False

    def test_local_older_not_conflict(self, local, remote):
        local.last_update = at(minutes=1)
        assert detect_conflict(local, remote) is False


class TestSyncState:

    def test_idle_state(self):
        state = SyncState()
        assert not state.is_busy
        assert not state.has_pending_conflict

    def test_pending_remote_counts_as_busy(self, remote):
        state = SyncState(pending_remote=remote)
        assert state.is_busy
        assert state.has_pending_conflict


class TestPush:

    async def test_push_overwrites_remote_exactly(self, engine, transport, local, remote):
        transport.set_document(remote)

        result = await engine.push(local)

        assert result.ok
        assert result.operation == SyncOperation.PUSH
        assert result.message == PUSH_SUCCESS_MESSAGE
        assert transport.data == local.to_json_bytes()
        assert transport.document() == local

    async def test_push_never_reads_remote(self, engine, transport, local, remote):
        transport.set_document(remote)
        await engine.push(local)
        assert "fetch_remote" not in transport.calls

    async def test_push_creates_missing_remote(self, engine, transport, local):
        transport.exists = False

        result = await engine.push(local)

        assert result.ok
        assert transport.calls == ["remote_exists", "create_remote", "publish_remote"]

    async def test_push_clears_unsynced_flag(self, engine, local):
        engine.mark_unsynced()
        await engine.push(local)
        assert not engine.has_unsynced_changes
        assert engine.state.last_outcome == PUSH_SUCCESS_MESSAGE

    async def test_push_failure_is_reported_not_raised(self, engine, transport, store, local, remote):
        transport.set_document(remote)
        transport.fail_with = RemoteCommandError("Error pushing to GitHub", "permission denied")
        engine.mark_unsynced()
        before = local.fingerprint()

        result = await engine.push(local)

        assert not result.ok
        assert result.message == "Sync failed: Error pushing to GitHub - permission denied"
        assert engine.has_unsynced_changes
        assert not engine.is_busy
        assert local.fingerprint() == before
        assert not store.exists()

    async def test_unexpected_error_is_reported(self, engine, transport, local):
        transport.fail_with = RuntimeError("boom")

        result = await engine.push(local)

        assert not result.ok
        assert result.error == "boom"
        assert not engine.is_busy

    async def test_start_push_returns_task(self, engine, transport, local):
        task = engine.start_push(local)
        assert task is not None
        result = await task
        assert result.ok
        assert transport.document() == local


class TestPull:

    async def test_remote_adopted_when_local_older(self, engine, transport, store, local, remote):
        local.last_update = at(minutes=1)
        transport.set_document(remote)
        engine.mark_unsynced()

        result = await engine.pull(local)

        assert result.ok
        assert not result.has_conflict
        assert result.message == PULL_SUCCESS_MESSAGE
        assert result.remote_document == remote
        assert store.load() == remote
        assert not engine.has_unsynced_changes

    async def test_adoption_keeps_remote_timestamp(self, engine, transport, store, local, remote):
        local.last_update = at(minutes=1)
        transport.set_document(remote)

        await engine.pull(local)

        assert store.load().last_update == remote.last_update

    async def test_equal_timestamps_adopt_remote(self, engine, transport, local, remote):
        remote.last_update = local.last_update
        transport.set_document(remote)

        result = await engine.pull(local)

        assert result.ok
        assert not result.has_conflict
        assert result.remote_document == remote

    async def test_conflict_leaves_local_untouched(self, engine, transport, store, local, remote):
        transport.set_document(remote)
        before = local.to_json_bytes()

        result = await engine.pull(local)

        assert result.ok
        assert result.has_conflict
        assert result.message == CONFLICT_MESSAGE
        assert local.to_json_bytes() == before
        assert not store.exists()
        assert engine.has_pending_conflict
        assert engine.pending_remote == remote

    async def test_pull_without_local_always_adopts(self, engine, transport, store, remote):
        transport.set_document(remote)

        result = await engine.pull(None)

        assert result.ok
        assert not result.has_conflict
        assert store.load() == remote

    async def test_missing_remote_gives_guidance(self, engine, transport, local):
        transport.exists = False

        result = await engine.pull(local)

        assert not result.ok
        assert result.message.startswith("Pull failed: ")
        assert "Push to GitHub first with 'G'" in result.message
        assert "fetch_remote" not in transport.calls

    async def test_undecodable_remote_is_fetch_failure(self, engine, transport, store, local):
        transport.data = b"{ not json"

        result = await engine.pull(local)

        assert not result.ok
        assert result.message.startswith("Pull failed: ")
        assert not store.exists()
        assert not engine.is_busy

    async def test_transport_error_reported(self, engine, transport, local):
        transport.fail_with = AuthenticationError("gh CLI is not authenticated")

        result = await engine.pull(local)

        assert not result.ok
        assert result.message == "Pull failed: gh CLI is not authenticated"

    async def test_store_failure_on_adoption_reported(self, engine, transport, store, local, remote):
        local.last_update = at(minutes=1)
        transport.set_document(remote)
        engine.mark_unsynced()

        with patch.object(store, "save", side_effect=StoreError("read-only")):
            result = await engine.pull(local)

        assert not result.ok
        assert result.message == "Pull failed: read-only"
        assert engine.has_unsynced_changes


class TestResolve:

    @pytest.fixture
    async def conflicted(self, engine, transport, local, remote):
        transport.set_document(remote)
        result = await engine.pull(local)
        assert result.has_conflict
        return engine

    async def test_take_remote(self, conflicted, store, local, remote):
        conflicted.mark_unsynced()
        resolution = conflicted.resolve(ResolutionStrategy.TAKE_REMOTE, local)

        assert resolution.document == remote
        assert store.load() == remote
        assert not conflicted.has_unsynced_changes
        assert not conflicted.has_pending_conflict

    async def test_merge(self, conflicted, store, local):
        conflicted.mark_unsynced()
        resolution = conflicted.resolve(ResolutionStrategy.MERGE, local)

        assert {t.id for t in resolution.document.tasks} == {"local-task", "remote-task"}
        assert store.load().content_equals(resolution.document)
        assert store.load().last_update == resolution.document.last_update
        assert not conflicted.has_unsynced_changes

    async def test_keep_local(self, conflicted, store, local):
        assert not conflicted.has_unsynced_changes
        before = local.to_json_bytes()

        resolution = conflicted.resolve(ResolutionStrategy.KEEP_LOCAL, local)

        assert resolution.document is local
        assert local.to_json_bytes() == before
        assert not store.exists()
        assert conflicted.has_unsynced_changes
        assert not conflicted.has_pending_conflict

    async def test_cancel(self, conflicted, local):
        resolution = conflicted.cancel_conflict(local)

        assert resolution.strategy == ResolutionStrategy.CANCEL
        assert resolution.document is local
        assert not conflicted.is_busy
        assert conflicted.state.last_outcome == "Conflict resolution cancelled"

    async def test_second_resolution_raises(self, conflicted, local):
        conflicted.resolve(ResolutionStrategy.MERGE, local)

        with pytest.raises(NoPendingConflictError):
            conflicted.resolve(ResolutionStrategy.TAKE_REMOTE, local)

    def test_resolve_without_conflict_raises(self, engine, local):
        with pytest.raises(NoPendingConflictError):
            engine.resolve(ResolutionStrategy.KEEP_LOCAL, local)


class TestSingleInFlight:

    async def test_second_push_rejected_while_running(self, engine, transport, local):
        transport.gate = threading.Event()

        running = engine.start_push(local)
        assert engine.is_busy

        second = await engine.push(local)
        transport.gate.set()
        first = await running

        assert second.rejected
        assert not second.ok
        assert second.message == "A push is already in progress"
        assert first.ok
        assert transport.calls.count("publish_remote") == 1

    async def test_pull_rejected_while_push_running(self, engine, transport, local, remote):
        transport.set_document(remote)
        transport.gate = threading.Event()

        running = engine.start_push(local)
        rejected_task = engine.start_pull(local)
        second = await engine.pull(local)
        transport.gate.set()
        await running

        assert rejected_task is None
        assert second.rejected
        assert "fetch_remote" not in transport.calls

    async def test_edit_during_push_stays_unsynced(self, engine, transport, local):
        engine.mark_unsynced()
        transport.gate = threading.Event()

        running = engine.start_push(local)
        engine.mark_unsynced()
        transport.gate.set()
        result = await running

        assert result.ok
        assert engine.has_unsynced_changes

    async def test_operations_rejected_while_conflict_pending(self, engine, transport, local, remote):
        transport.set_document(remote)
        await engine.pull(local)
        calls_before = list(transport.calls)

        push = await engine.push(local)
        pull = await engine.pull(local)

        assert push.rejected and pull.rejected
        assert push.message == "Resolve the pending conflict first"
        assert transport.calls == calls_before

    async def test_slot_released_after_completion(self, engine, transport, local):
        await engine.push(local)
        assert not engine.is_busy
        result = await engine.push(local)
        assert result.ok
        assert transport.calls.count("publish_remote") == 2
