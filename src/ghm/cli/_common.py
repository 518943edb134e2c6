"""Shared utilities for all CLI command modules.

Provides the Rich console instance, logging setup, and the helpers
that turn a ``--home`` option into a ready SyncEngine.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from .. import GHM_HOME
from ..config import GHMConfig, load_config, save_config
from ..engine import SyncEngine
from ..errors import GHMError
from ..store import LocalStateStore

console = Console()
logger = logging.getLogger("ghm.cli")


def setup_logging(verbose: bool = False) -> None:
    """Route ghm logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def home_path(home: str) -> Path:
    return Path(home).expanduser()


def ensure_token(home: Path, config: GHMConfig) -> GHMConfig:
    """Prompt for a GitHub token once and persist it if none is configured."""
    if config.github_token:
        return config
    token = ""
    while not token:
        token = click.prompt("Enter your GitHub token", hide_input=True).strip()
        if not token:
            console.print("  [red]Token cannot be blank.[/]")
    config.github_token = token
    save_config(config, home)
    console.print("  [yellow]Token saved to config.yaml[/]")
    return config


def open_engine(home: str, need_token: bool = True) -> SyncEngine:
    """Load config and store for ``home`` and build the engine.

    Exits with status 1 on configuration errors.
    """
    path = home_path(home)
    try:
        config = load_config(path)
    except GHMError as exc:
        fail(exc)
    if need_token:
        config = ensure_token(path, config)
    return SyncEngine(config, LocalStateStore(path))


def fail(exc: Exception) -> None:
    """Print an error in red and exit 1."""
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(1)


def print_batch(kind: str, repo: str, results: dict[str, bool]) -> None:
    """Summarize a best-effort batch run."""
    for name, ok in results.items():
        if ok:
            console.print(f"  [green]✓[/] {kind} [cyan]{name}[/] -> {repo}")
        else:
            console.print(f"  [red]✗[/] {kind} [cyan]{name}[/] skipped")
    applied = sum(1 for ok in results.values() if ok)
    console.print(f"\n  {applied}/{len(results)} {kind}(s) applied to [bold]{repo}[/]\n")


__all__ = [
    "GHM_HOME",
    "console",
    "ensure_token",
    "fail",
    "home_path",
    "logger",
    "open_engine",
    "print_batch",
    "setup_logging",
]
