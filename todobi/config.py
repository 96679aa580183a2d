"""
Configuration for todobi.

Settings come from ~/.todobi/config.ini; every setting can be overridden by
a TODOBI_* environment variable. Example config.ini:

    [store]
    path = ~/.todobi.conf

    [sync]
    repo_name = todobi-sync
    command_timeout = 120

    [display]
    status_timeout = 3
"""

import configparser
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from todobi.logging_config import get_logger

logger = get_logger(__name__)


DEFAULT_STORE_FILE = ".todobi.conf"
DEFAULT_REPO_NAME = "todobi-sync"
DEFAULT_CONFIG_PATH = Path.home() / ".todobi" / "config.ini"


class Config:
    """Reads config.ini once and answers per-section settings."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Load configuration.

        Args:
            config_path: Path to config.ini, defaults to ~/.todobi/config.ini.
                         A missing or unreadable file means all defaults.
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._parser = configparser.ConfigParser()

        if not self.config_path.exists():
            logger.debug(f"No config file at {self.config_path}, using defaults")
            return
        try:
            self._parser.read(self.config_path)
            logger.info(f"Configuration read from {self.config_path}")
        except configparser.Error as e:
            self._parser = configparser.ConfigParser()
            logger.warning(f"Ignoring unreadable config file {self.config_path}: {e}")

    def _setting(self, section: str, key: str, env_var: str, default: str) -> str:
        """Environment variable, else config file value, else default."""
        return os.getenv(env_var) or self._parser.get(section, key, fallback=default)

    def get_store_config(self) -> Dict[str, Any]:
        """
        Local store settings.

        - path (TODOBI_STORE_PATH): document file, default ~/.todobi.conf
        """
        raw_path = self._setting('store', 'path', 'TODOBI_STORE_PATH', '')
        path = Path(raw_path).expanduser() if raw_path else Path.home() / DEFAULT_STORE_FILE

        logger.debug(f"Store config: path={path}")
        return {'path': path}

    def get_sync_config(self) -> Dict[str, Any]:
        """
        GitHub sync settings.

        - repo_name (TODOBI_SYNC_REPO)
        - remote_file (TODOBI_SYNC_REMOTE_FILE)
        - gh_command (TODOBI_GH_COMMAND)
        - git_command (TODOBI_GIT_COMMAND)
        - command_timeout (TODOBI_SYNC_TIMEOUT), seconds per gh/git call
        """
        config = {
            'repo_name': self._setting('sync', 'repo_name', 'TODOBI_SYNC_REPO', DEFAULT_REPO_NAME),
            'remote_file': self._setting(
                'sync', 'remote_file', 'TODOBI_SYNC_REMOTE_FILE', DEFAULT_STORE_FILE
            ),
            'gh_command': self._setting('sync', 'gh_command', 'TODOBI_GH_COMMAND', 'gh'),
            'git_command': self._setting('sync', 'git_command', 'TODOBI_GIT_COMMAND', 'git'),
            'command_timeout': int(
                self._setting('sync', 'command_timeout', 'TODOBI_SYNC_TIMEOUT', '120')
            ),
        }

        logger.debug(f"Sync config: repo={config['repo_name']}, "
                     f"remote_file={config['remote_file']}, "
                     f"timeout={config['command_timeout']}")
        return config

    def get_display_config(self) -> Dict[str, Any]:
        """
        Display settings.

        - status_timeout (TODOBI_STATUS_TIMEOUT): seconds a status
          notification stays on screen
        """
        return {
            'status_timeout': int(
                self._setting('display', 'status_timeout', 'TODOBI_STATUS_TIMEOUT', '3')
            ),
        }

    # Raw access for settings without a dedicated section helper

    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        return self._parser.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        return self._parser.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        return self._parser.getint(section, key, fallback=fallback)

    def has_section(self, section: str) -> bool:
        return self._parser.has_section(section)

    def sections(self) -> List[str]:
        return self._parser.sections()
