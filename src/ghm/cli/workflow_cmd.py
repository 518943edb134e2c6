"""Workflow commands: add-workflow, add-saved-workflows, list-workflows, forget-workflow."""

from __future__ import annotations

from pathlib import Path

import click

from ._common import GHM_HOME, console, fail, home_path, open_engine, print_batch
from ..errors import GHMError
from ..store import LocalStateStore


def register_workflow_commands(main: click.Group) -> None:
    """Register the workflow commands."""

    @main.command("add-workflow")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--repo", "-r", required=True, help="Repository as owner/name.")
    @click.option("--name", "-n", default=None, help="Workflow file name (defaults to the file's name).")
    @click.option("--file", "-f", "workflow_file", type=click.Path(exists=True, dir_okay=False), help="Workflow file to commit.")
    @click.option("--content", "-c", default=None, help="Workflow content inline.")
    def add_workflow(home, repo, name, workflow_file, content):
        """Commit a GitHub Actions workflow to a repository and push it."""
        if bool(workflow_file) == (content is not None):
            console.print("[red]Give exactly one of --file or --content.[/]")
            raise SystemExit(1)

        if workflow_file:
            path = Path(workflow_file)
            content = path.read_text(encoding="utf-8")
            name = name or path.name
        if not name:
            console.print("[red]--name is required with --content.[/]")
            raise SystemExit(1)

        engine = open_engine(home)
        try:
            with console.status(f"[bold cyan]Pushing workflow {name} to {repo}...[/]"):
                result = engine.add_workflow(repo, name, content)
        except GHMError as exc:
            fail(exc)

        if result.commit:
            console.print(f"[green]Committed changes: {result.commit}[/]")
        else:
            console.print("[dim]Workflow unchanged, nothing to commit.[/]")
        console.print(f"[green]Workflow '{name}' added to repository '{repo}'.[/]")

    @main.command("add-saved-workflows")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.option("--repo", "-r", required=True, help="Repository as owner/name.")
    @click.option("--all", "apply_all", is_flag=True, help="Apply every saved workflow.")
    @click.argument("names", nargs=-1)
    def add_saved_workflows(home, repo, apply_all, names):
        """Apply previously saved workflows to a repository."""
        engine = open_engine(home)
        if apply_all:
            try:
                names = engine.store.workflows.names()
            except GHMError as exc:
                fail(exc)
        if not names:
            console.print("[yellow]No workflows selected.[/]")
            return

        with console.status(f"[bold cyan]Applying {len(names)} workflow(s) to {repo}...[/]"):
            results = engine.add_workflows_to_repo(repo, list(names))
        print_batch("workflow", repo, results)

    @main.command("list-workflows")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    def list_workflows(home):
        """List saved workflow names."""
        try:
            names = LocalStateStore(home_path(home)).workflows.names()
        except GHMError as exc:
            fail(exc)
        if not names:
            console.print("[dim]No saved workflows.[/]")
            return
        for name in names:
            console.print(f"  {name}")

    @main.command("forget-workflow")
    @click.option("--home", default=GHM_HOME, type=click.Path())
    @click.argument("name")
    def forget_workflow(home, name):
        """Remove a saved workflow locally. Repositories keep their copy."""
        try:
            removed = LocalStateStore(home_path(home)).workflows.remove(name)
        except GHMError as exc:
            fail(exc)
        if removed:
            console.print(f"[green]Workflow '{name}' removed from local store.[/]")
        else:
            console.print(f"[yellow]Workflow '{name}' is not saved.[/]")
