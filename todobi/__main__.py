"""Entry point for todobi.

This module allows running todobi as a module:
    python -m todobi

Or as an installed command:
    todobi              launch the terminal UI
    todobi --pull       adopt the remote document (first-time machine setup)
    todobi push         publish the local document and exit
    todobi pull         pull the remote document and exit
    todobi seed         overwrite the local document with sample data
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from todobi.logging_config import setup_logging, get_logger
from todobi.ui.theme import TODOBI_THEME

# Initialize logger for this module
logger = get_logger(__name__)

console = Console(highlight=False, theme=TODOBI_THEME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todobi",
        description="Terminal task manager with GitHub sync",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.ini (default: ~/.todobi/config.ini)",
    )
    parser.add_argument(
        "--pull",
        action="store_true",
        help="Pull the document from GitHub, replacing the local one, and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: TODOBI_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("push", help="Publish the local document to GitHub")
    subparsers.add_parser("pull", help="Pull the document from GitHub")
    subparsers.add_parser("seed", help="Overwrite the local document with sample data")
    return parser


def _build_engine(config_path: Optional[Path]):
    from todobi.services.sync_engine import SyncEngine
    from todobi.services.transport import GitHubSyncConfig, GitHubTransport
    from todobi.store import LocalStore

    store = LocalStore.from_config_file(config_path)
    transport = GitHubTransport(GitHubSyncConfig.from_config_file(config_path))
    return store, SyncEngine(transport, store)


def run_push(config_path: Optional[Path] = None) -> int:
    """Publish the local document once."""
    from todobi.store import StoreError

    store, engine = _build_engine(config_path)
    try:
        document = store.load()
    except StoreError as e:
        console.print(f"[danger]Sync failed:[/danger] {e}")
        return 1

    console.print("Syncing to GitHub...")
    result = asyncio.run(engine.push(document))
    if not result.ok:
        console.print(f"[danger]{result.message}[/danger]")
        return 1
    console.print(f"[success]{result.message}[/success]")
    return 0


def run_pull(config_path: Optional[Path] = None, force: bool = False) -> int:
    """
    Pull the remote document once.

    Args:
        config_path: Path to config.ini
        force: Adopt the remote document even if the local one is newer

    Returns:
        Exit code (1 on failure or unresolved conflict)
    """
    from todobi.store import StoreError

    store, engine = _build_engine(config_path)

    local = None
    if not force and store.exists():
        try:
            local = store.load()
        except StoreError as e:
            console.print(f"[danger]Pull failed:[/danger] {e}")
            return 1

    console.print("Pulling from GitHub...")
    result = asyncio.run(engine.pull(local))
    if not result.ok:
        console.print(f"[danger]{result.message}[/danger]")
        return 1
    if result.has_conflict:
        console.print(
            f"[warning]{result.message}[/warning]\n"
            "Local changes are newer than GitHub. Local file left unchanged; "
            "open todobi and press 'g' to resolve, or run 'todobi --pull' to take the remote."
        )
        return 1

    remote = result.remote_document
    console.print(
        f"[success]{result.message}[/success] "
        f"({len(remote.categories)} categories, {len(remote.tasks)} tasks)"
    )
    return 0


def run_seed(config_path: Optional[Path] = None) -> int:
    """Write the sample document over the local one."""
    from todobi.store import LocalStore, StoreError, seed_document

    store = LocalStore.from_config_file(config_path)
    try:
        store.save(seed_document())
    except StoreError as e:
        console.print(f"[danger]Error:[/danger] {e}")
        return 1
    console.print(f"Seeded {store.path} with weekend tasks")
    return 0


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for todobi.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    options = build_parser().parse_args(args)

    # Initialize logging before any other operations
    setup_logging(options.log_level)

    if options.pull:
        return run_pull(options.config, force=True)
    if options.command == "push":
        return run_push(options.config)
    if options.command == "pull":
        return run_pull(options.config)
    if options.command == "seed":
        return run_seed(options.config)

    # Import here to keep one-shot commands fast
    from todobi.ui.app import TodobiApp

    try:
        app = TodobiApp(config_path=options.config)
        app.run()
        logger.info("todobi exited normally")
        return app.return_code or 0
    except KeyboardInterrupt:
        logger.info("todobi closed by user (Ctrl+C)")
        return 0
    except Exception:
        logger.error("Error running todobi", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
