"""Config commands: store-config."""

from __future__ import annotations

import click

from ._common import GHM_HOME, console, fail, home_path
from ..config import store_config
from ..errors import GHMError


def register_config_commands(main: click.Group) -> None:
    """Register the configuration commands."""

    @main.command("store-config")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--key", "-k", required=True, help="Configuration key.")
    @click.option("--value", "-v", required=True, help="Configuration value.")
    def store_config_cmd(home, key, value):
        """Store a configuration key-value pair in config.yaml."""
        try:
            store_config(home_path(home), key, value)
        except GHMError as exc:
            fail(exc)
        console.print(f"[yellow]Configuration '{key}' saved successfully.[/]")
