"""Repository commands: list-repos."""

from __future__ import annotations

import json

import click
from rich.table import Table

from ._common import GHM_HOME, console, fail, home_path
from ..errors import GHMError
from ..store import LocalStateStore


def register_repos_commands(main: click.Group) -> None:
    """Register the repository commands."""

    @main.command("list-repos")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--json-out", is_flag=True, help="Print repos.json content as JSON.")
    def list_repos(home, json_out):
        """List repositories and the secrets/workflows applied to them."""
        try:
            state = LocalStateStore(home_path(home)).repositories.load()
        except GHMError as exc:
            fail(exc)

        if json_out:
            click.echo(json.dumps(state.model_dump(mode="json"), indent=2))
            return

        if not state.repositories:
            console.print("[dim]No repositories yet.[/]")
            return

        table = Table(title="Repositories")
        table.add_column("Repository", style="cyan")
        table.add_column("Secrets")
        table.add_column("Workflows")
        table.add_column("Last update", style="dim")
        for repo, record in sorted(state.repositories.items()):
            table.add_row(
                repo,
                ", ".join(record.secrets) or "-",
                ", ".join(record.workflows) or "-",
                record.last_update.isoformat(timespec="seconds"),
            )
        console.print(table)
