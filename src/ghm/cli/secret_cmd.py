"""Secret commands: add-secret, add-saved-secrets, list-secrets, forget-secret."""

from __future__ import annotations

import click

from ._common import GHM_HOME, console, fail, home_path, open_engine, print_batch
from ..errors import GHMError
from ..store import LocalStateStore


def register_secret_commands(main: click.Group) -> None:
    """Register the secret commands."""

    @main.command("add-secret")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--repo", "-r", required=True, help="Repository as owner/name.")
    @click.option("--name", "-n", required=True, help="Secret name.")
    @click.option("--value", "-v", default=None, help="Secret value (prompted if omitted).")
    def add_secret(home, repo, name, value):
        """Encrypt a secret and add it to a repository."""
        if value is None:
            value = click.prompt("Secret value", hide_input=True)

        engine = open_engine(home)
        try:
            with console.status(f"[bold cyan]Adding secret {name} to {repo}...[/]"):
                engine.add_secret(repo, name, value)
        except GHMError as exc:
            fail(exc)

        console.print(f"[green]Secret '{name}' added to repository '{repo}'.[/]")
        console.print(f"[yellow]Secret '{name}' saved locally.[/]")

    @main.command("add-saved-secrets")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--repo", "-r", required=True, help="Repository as owner/name.")
    @click.option("--all", "apply_all", is_flag=True, help="Apply every saved secret.")
    @click.argument("names", nargs=-1)
    def add_saved_secrets(home, repo, apply_all, names):
        """Apply previously saved secrets to a repository."""
        engine = open_engine(home)
        if apply_all:
            try:
                names = engine.store.secrets.names()
            except GHMError as exc:
                fail(exc)
        if not names:
            console.print("[yellow]No secrets selected.[/]")
            return

        with console.status(f"[bold cyan]Applying {len(names)} secret(s) to {repo}...[/]"):
            results = engine.add_secrets_to_repo(repo, list(names))
        print_batch("secret", repo, results)

    @main.command("list-secrets")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    def list_secrets(home):
        """List saved secret names. Values are never shown."""
        try:
            names = LocalStateStore(home_path(home)).secrets.names()
        except GHMError as exc:
            fail(exc)
        if not names:
            console.print("[dim]No saved secrets.[/]")
            return
        for name in names:
            console.print(f"  {name}")

    @main.command("forget-secret")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.argument("name")
    def forget_secret(home, name):
        """Remove a saved secret locally. Repositories keep their copy."""
        try:
            removed = LocalStateStore(home_path(home)).secrets.remove(name)
        except GHMError as exc:
            fail(exc)
        if removed:
            console.print(f"[green]Secret '{name}' removed from local store.[/]")
        else:
            console.print(f"[yellow]Secret '{name}' is not saved.[/]")
