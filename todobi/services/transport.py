"""
Remote transport for document sync.

Defines the transport contract used by the sync engine and a GitHub
implementation that shells out to the ``gh`` and ``git`` command line
tools. The remote store is a private repository holding a single file with
the serialized document.
"""

import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from todobi.logging_config import get_logger

logger = get_logger(__name__)


GH_INSTALL_URL = "https://cli.github.com"


class TransportError(Exception):
    """Base exception for remote transport errors."""
    pass


class TransportUnavailableError(TransportError):
    """A required external tool is not installed."""
    pass


class AuthenticationError(TransportError):
    """The external tool is installed but not authenticated."""
    pass


class RemoteAbsentError(TransportError):
    """The remote store (or the document inside it) does not exist."""
    pass


class RemoteCommandError(TransportError):
    """A clone, commit or push step failed; carries the tool's output."""

    def __init__(self, message: str, output: str = ""):
        self.output = output.strip()
        if self.output:
            message = f"{message} - {self.output}"
        super().__init__(message)


class RemoteTransport(ABC):
    """
    Contract for fetching and publishing the serialized document.

    All methods are blocking and may be retried by the caller. Failures are
    reported as TransportError subclasses.
    """

    @abstractmethod
    def remote_exists(self) -> bool:
        """Whether the remote store already exists."""

    @abstractmethod
    def create_remote(self) -> None:
        """Provision a new private remote store."""

    @abstractmethod
    def fetch_remote(self) -> bytes:
        """Retrieve the serialized document currently stored remotely."""

    @abstractmethod
    def publish_remote(self, data: bytes) -> None:
        """Overwrite the remote store's serialized document."""

    def describe(self) -> str:
        """Short human readable name of the remote."""
        return type(self).__name__


class GitHubSyncConfig:
    """Configuration for the GitHub transport."""

    def __init__(
        self,
        repo_name: str = "todobi-sync",
        remote_file: str = ".todobi.conf",
        gh_command: str = "gh",
        git_command: str = "git",
        command_timeout: int = 120,
    ):
        self.repo_name = repo_name
        self.remote_file = remote_file
        self.gh_command = gh_command
        self.git_command = git_command
        self.command_timeout = command_timeout

        if not self.repo_name:
            raise ValueError("repo_name must not be empty")
        if not self.remote_file:
            raise ValueError("remote_file must not be empty")

    @classmethod
    def from_config_file(cls, config_path: Optional[Path] = None) -> "GitHubSyncConfig":
        """
        Load sync configuration from config.ini file.

        Args:
            config_path: Path to config file, defaults to ~/.todobi/config.ini

        Returns:
            GitHubSyncConfig instance with loaded settings
        """
        from todobi.config import Config

        config = Config(config_path)
        sync_config = config.get_sync_config()

        return cls(
            repo_name=sync_config['repo_name'],
            remote_file=sync_config['remote_file'],
            gh_command=sync_config['gh_command'],
            git_command=sync_config['git_command'],
            command_timeout=sync_config['command_timeout'],
        )


class GitHubTransport(RemoteTransport):
    """
    Remote transport backed by a private GitHub repository.

    Requires the GitHub CLI (``gh``) to be installed and authenticated, and
    ``git`` to be able to push with the credentials ``gh`` configured.

    Example:
        >>> transport = GitHubTransport(GitHubSyncConfig())
        >>> if not transport.remote_exists():
        ...     transport.create_remote()
        >>> transport.publish_remote(document.to_json_bytes())
    """

    def __init__(self, config: GitHubSyncConfig):
        """
        Initialize the transport.

        Args:
            config: GitHubSyncConfig with repository and tool settings
        """
        self.config = config
        self._ready = False

    def describe(self) -> str:
        return f"GitHub repo '{self.config.repo_name}'"

    # =========================================================================
    # COMMAND EXECUTION
    # =========================================================================

    def _run(self, args: List[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
        """
        Run an external command without a terminal for credential prompts.

        Args:
            args: Command and arguments
            cwd: Working directory

        Returns:
            The completed process (never raises on non-zero exit)

        Raises:
            TransportUnavailableError: If the executable is not found
            RemoteCommandError: If the command times out
        """
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["GH_PROMPT_DISABLED"] = "1"

        logger.debug(f"Running: {' '.join(args)}" + (f" (cwd={cwd})" if cwd else ""))
        try:
            return subprocess.run(
                args,
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.config.command_timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise TransportUnavailableError(f"{args[0]} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise RemoteCommandError(
                f"'{' '.join(args[:3])}' timed out after {self.config.command_timeout}s"
            ) from e

    @staticmethod
    def _output(result: subprocess.CompletedProcess) -> str:
        return ((result.stdout or "") + (result.stderr or "")).strip()

    def ensure_ready(self) -> None:
        """
        Check that ``gh`` is installed and authenticated.

        Raises:
            TransportUnavailableError: If gh is not installed
            AuthenticationError: If gh is not logged in
        """
        if self._ready:
            return

        try:
            version = self._run([self.config.gh_command, "--version"])
        except TransportUnavailableError:
            raise TransportUnavailableError(
                f"gh CLI not installed. Install from {GH_INSTALL_URL}"
            )
        if version.returncode != 0:
            raise TransportUnavailableError(
                f"gh CLI not installed. Install from {GH_INSTALL_URL}"
            )

        status = self._run([self.config.gh_command, "auth", "status"])
        if status.returncode != 0:
            raise AuthenticationError(
                "gh CLI is not authenticated. Run 'gh auth login' first"
            )

        self._ready = True

    def _clone(self, destination: Path) -> None:
        """
        Clone the sync repository into ``destination``.

        Raises:
            RemoteCommandError: If the clone fails
        """
        result = self._run([
            self.config.gh_command, "repo", "clone", self.config.repo_name, str(destination)
        ])
        if result.returncode != 0:
            raise RemoteCommandError("Error cloning repo", self._output(result))

    # =========================================================================
    # TRANSPORT CONTRACT
    # =========================================================================

    def remote_exists(self) -> bool:
        self.ensure_ready()
        result = self._run([
            self.config.gh_command, "repo", "view", self.config.repo_name, "--json", "name"
        ])
        exists = result.returncode == 0
        logger.debug(f"Remote repo '{self.config.repo_name}' exists: {exists}")
        return exists

    def create_remote(self) -> None:
        self.ensure_ready()
        logger.info(f"Creating private repo '{self.config.repo_name}'")
        result = self._run([
            self.config.gh_command, "repo", "create", self.config.repo_name,
            "--private", "--clone=false",
        ])
        if result.returncode != 0:
            raise RemoteCommandError("Error creating repo", self._output(result))

    def fetch_remote(self) -> bytes:
        self.ensure_ready()
        with tempfile.TemporaryDirectory(prefix="todobi-pull-") as tmp:
            repo_dir = Path(tmp) / "repo"
            self._clone(repo_dir)

            remote_path = repo_dir / self.config.remote_file
            if not remote_path.exists():
                raise RemoteAbsentError(
                    f"Remote repo '{self.config.repo_name}' has no {self.config.remote_file}. "
                    f"Push to GitHub first with 'G'"
                )
            try:
                data = remote_path.read_bytes()
            except OSError as e:
                raise TransportError(f"Error reading remote config: {e}") from e

        logger.info(f"Fetched {len(data)} bytes from '{self.config.repo_name}'")
        return data

    def publish_remote(self, data: bytes) -> None:
        self.ensure_ready()
        with tempfile.TemporaryDirectory(prefix="todobi-sync-") as tmp:
            repo_dir = Path(tmp) / "repo"
            self._clone(repo_dir)

            try:
                (repo_dir / self.config.remote_file).write_bytes(data)
            except OSError as e:
                raise TransportError(f"Error writing config to repo: {e}") from e

            git = self.config.git_command
            add = self._run([git, "add", self.config.remote_file], cwd=repo_dir)
            if add.returncode != 0:
                raise RemoteCommandError("Error adding file", self._output(add))

            message = f"Update tasks - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
            commit = self._run([git, "commit", "-m", message], cwd=repo_dir)
            if commit.returncode != 0:
                output = self._output(commit)
                if "nothing to commit" not in output:
                    raise RemoteCommandError("Error committing", output)
                logger.info("Remote already up to date, nothing to commit")

            push = self._run([git, "push", "-u", "origin", "HEAD"], cwd=repo_dir)
            if push.returncode != 0:
                raise RemoteCommandError("Error pushing to GitHub", self._output(push))

        logger.info(f"Published {len(data)} bytes to '{self.config.repo_name}'")
