"""CLI main entry point."""

import click
from rich.console import Console

from cli.commands.accounts import delete_account, list_accounts, set_limits, show_usage
from cli.commands.content import delete_content, show_content
from cli.commands.maintenance import init_database, sweep_inactive
from src import __version__

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli():
    """Reactlyve - content, reaction and quota administration"""
    pass


# Add commands to CLI
cli.add_command(list_accounts)
cli.add_command(show_usage)
cli.add_command(set_limits)
cli.add_command(delete_account)
cli.add_command(show_content)
cli.add_command(delete_content)
cli.add_command(sweep_inactive)
cli.add_command(init_database)


if __name__ == "__main__":
    cli()
