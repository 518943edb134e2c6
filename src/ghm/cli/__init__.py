"""
ghm CLI — push secrets and workflows to GitHub repositories.

Each command group lives in its own module and is registered on the
main Click group through a register function.

Entry point: ghm.cli:main
"""

from __future__ import annotations

import click

from .. import __version__
from ._common import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="ghm")
@click.option("--verbose", "-V", is_flag=True, help="Show debug logging.")
def main(verbose):
    """ghm — GitHub secret and workflow manager.

    Encrypts secrets for the Actions secrets API, commits workflow
    files, and remembers what was applied to which repository.
    """
    setup_logging(verbose)


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .secret_cmd import register_secret_commands
from .workflow_cmd import register_workflow_commands
from .repos_cmd import register_repos_commands
from .config_cmd import register_config_commands

register_secret_commands(main)
register_workflow_commands(main)
register_repos_commands(main)
register_config_commands(main)
