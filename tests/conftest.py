"""
Pytest configuration and fixtures for todobi tests.

Provides a temporary local store, an in-memory remote transport and a sync
engine wired to both.
"""

import pytest

from tests.helpers.factories import FakeTransport
from todobi.services.sync_engine import SyncEngine
from todobi.store import LocalStore


@pytest.fixture
def store(tmp_path):
    """
    LocalStore writing to a temporary file.

    Example:
        def test_something(store):
            store.save(make_document())
    """
    return LocalStore(tmp_path / ".todobi.conf")


@pytest.fixture
def transport():
    """Empty in-memory remote store."""
    return FakeTransport()


@pytest.fixture
def engine(transport, store):
    """SyncEngine using the fake transport and the temporary store."""
    return SyncEngine(transport, store)


@pytest.fixture
def config_path(tmp_path):
    """Path of a config.ini that does not exist (all defaults)."""
    return tmp_path / "config.ini"
