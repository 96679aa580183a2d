"""
Local store for the todobi document.

Reads and writes the JSON document file (``~/.todobi.conf`` by default).
Writes are atomic: the document is written to a temporary file in the same
directory and then moved into place.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from todobi.logging_config import get_logger
from todobi.models import (
    DEFAULT_VERSION,
    Category,
    Document,
    DocumentDecodeError,
    Priority,
    Task,
)
from todobi.utils.datetime_utils import utc_now

logger = get_logger(__name__)


class StoreError(Exception):
    """The local document could not be read or written."""
    pass


class StoreNotFoundError(StoreError):
    """The local document file does not exist."""
    pass


def default_document() -> Document:
    """Starter document shown on a fresh install."""
    now = utc_now()
    return Document(
        version=DEFAULT_VERSION,
        last_update=now,
        categories=[
            Category(id="work", name="Work"),
            Category(id="personal", name="Personal"),
        ],
        tasks=[
            Task(id="1", content="Press 'C' to create category", category_id="work",
                 priority=Priority.P1, created_at=now),
            Task(id="2", content="Press 'T' to create task", category_id="work",
                 priority=Priority.P2, created_at=now),
            Task(id="3", content="Press 'v' to view completed tasks", category_id="personal",
                 priority=Priority.P3, created_at=now),
        ],
    )


def seed_document() -> Document:
    """Sample weekend document written by ``todobi seed``."""
    now = utc_now()
    return Document(
        version=DEFAULT_VERSION,
        last_update=now,
        categories=[
            Category(id="gummy-agents", name="Gummy Agents"),
            Category(id="master-claude", name="Master Claude"),
            Category(id="eldercare", name="Eldercare"),
            Category(id="homelab", name="Homelab"),
            Category(id="tailscale", name="File Sharing"),
        ],
        tasks=[
            Task(id="1", content="Pull down gummy-agents repo and review codebase",
                 category_id="gummy-agents", priority=Priority.P1, created_at=now),
            Task(id="2", content="Review and organize master-claude-work projects",
                 category_id="master-claude", priority=Priority.P1, created_at=now),
            Task(id="3", content="Address eldercare issues and documentation",
                 category_id="eldercare", priority=Priority.P0, created_at=now),
            Task(id="4", content="Homelab infrastructure maintenance and updates",
                 category_id="homelab", priority=Priority.P2, created_at=now),
            Task(id="5", content="Setup file sharing across tailscale network",
                 category_id="tailscale", priority=Priority.P2, created_at=now),
        ],
    )


class LocalStore:
    """
    Load/save gateway for the document file.

    Example:
        >>> store = LocalStore(Path.home() / ".todobi.conf")
        >>> document = store.load_or_default()
        >>> store.save(document)
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document file
        """
        self.path = Path(path)

    @classmethod
    def from_config_file(cls, config_path: Optional[Path] = None) -> "LocalStore":
        """
        Build a store from the application configuration.

        Args:
            config_path: Path to config file, defaults to ~/.todobi/config.ini

        Returns:
            LocalStore for the configured document path
        """
        from todobi.config import Config

        config = Config(config_path)
        return cls(config.get_store_config()['path'])

    def exists(self) -> bool:
        """Whether the document file exists."""
        return self.path.exists()

    def load(self) -> Document:
        """
        Read the document from disk.

        Returns:
            The stored Document

        Raises:
            StoreNotFoundError: If the file does not exist
            StoreError: If the file cannot be read or is not a valid document
        """
        try:
            data = self.path.read_bytes()
        except FileNotFoundError as e:
            raise StoreNotFoundError(f"No document at {self.path}") from e
        except OSError as e:
            raise StoreError(f"Error reading {self.path}: {e}") from e

        try:
            document = Document.from_json_bytes(data)
        except DocumentDecodeError as e:
            raise StoreError(f"Error parsing {self.path}: {e}") from e

        logger.debug(
            f"Loaded document from {self.path}: {len(document.categories)} categories, "
            f"{len(document.tasks)} tasks"
        )
        return document

    def load_or_default(self) -> Document:
        """
        Load the document, creating the default one if the file is missing.

        An existing but unreadable file is never overwritten.

        Raises:
            StoreError: If an existing file cannot be read or parsed
        """
        try:
            return self.load()
        except StoreNotFoundError:
            logger.info(f"No document at {self.path}, creating default")
            document = default_document()
            self.save(document)
            return document

    def save(self, document: Document, touch: bool = True) -> None:
        """
        Persist the document atomically.

        Args:
            document: Document to write
            touch: Stamp ``last_update`` with the current time before writing.
                   Pass False when storing a snapshot adopted from the remote
                   so its timestamp stays the shared sync point.

        Raises:
            StoreError: If the file cannot be written
        """
        if touch:
            document.last_update = utc_now()

        self.write_bytes(document.to_json_bytes())
        logger.debug(f"Saved document to {self.path} (touch={touch})")

    def write_bytes(self, data: bytes) -> None:
        """
        Atomically replace the document file with raw bytes.

        Raises:
            StoreError: If the file cannot be written
        """
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreError(f"Error writing {self.path}: {e}") from e
