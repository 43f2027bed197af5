"""Account management CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from src.config.constants import ACCOUNT_ROLES
from src.exceptions import NotFoundError, StorageError
from src.repositories.account_repository import AccountRepository
from src.services.core.cascading_deletion import CascadingDeletionService
from src.services.core.quota import QuotaService

console = Console()


def _format_limit(limit):
    if limit is None or limit < 0:
        return "unlimited"
    return str(limit)


@click.command(name="list-accounts")
@click.option("--role", type=click.Choice(ACCOUNT_ROLES), help="Filter by role")
def list_accounts(role):
    """List all accounts."""
    repo = AccountRepository()
    accounts = repo.get_all(role=role)

    if not accounts:
        console.print("[yellow]No accounts found[/yellow]")
        return

    table = Table(title=f"Accounts ({len(accounts)})")
    table.add_column("ID", style="dim")
    table.add_column("Email", style="cyan")
    table.add_column("Role")
    table.add_column("Content (month)", justify="right")
    table.add_column("Reactions (month)", justify="right")
    table.add_column("Last Login")

    for account in accounts:
        last_login = (
            account.last_login_at.strftime("%Y-%m-%d %H:%M")
            if account.last_login_at
            else "never"
        )
        table.add_row(
            str(account.id),
            account.email or "-",
            account.role,
            f"{account.content_count_this_month or 0}/{_format_limit(account.max_content_per_month)}",
            f"{account.reactions_received_this_month or 0}/"
            f"{_format_limit(account.max_reactions_received_per_month)}",
            last_login,
        )

    console.print(table)


@click.command(name="show-usage")
@click.argument("account_id", type=click.UUID)
def show_usage(account_id):
    """Show an account's monthly usage block."""
    service = QuotaService()

    try:
        usage = service.get_usage(account_id)
    except NotFoundError:
        console.print(f"[bold red]✗ Account not found: {account_id}[/bold red]")
        raise click.Abort()

    table = Table(title=f"Usage for {account_id}")
    table.add_column("Counter", style="cyan")
    table.add_column("This Month", justify="right")
    table.add_column("Limit", justify="right")

    table.add_row(
        "Content items",
        str(usage.content_count_this_month),
        _format_limit(usage.max_content_per_month),
    )
    table.add_row(
        "Reactions received",
        str(usage.reactions_received_this_month),
        _format_limit(usage.max_reactions_received_per_month),
    )
    table.add_row("Reactions per item", "-", _format_limit(usage.max_reactions_per_item))

    console.print(table)

    last_reset = (
        usage.last_usage_reset_at.strftime("%Y-%m-%d %H:%M UTC")
        if usage.last_usage_reset_at
        else "never"
    )
    console.print(f"Last reset: {last_reset}")


@click.command(name="set-limits")
@click.argument("account_id", type=click.UUID)
@click.option("--max-content", type=int, help="Content items per month (-1 = unlimited)")
@click.option("--max-received", type=int, help="Reactions received per month (-1 = unlimited)")
@click.option("--max-per-item", type=int, help="Default reaction cap for new items (-1 = unlimited)")
def set_limits(account_id, max_content, max_received, max_per_item):
    """Change an account's quota limits."""
    limits = {
        "max_content_per_month": max_content,
        "max_reactions_received_per_month": max_received,
        "max_reactions_per_item": max_per_item,
    }
    # Negative values are stored as NULL (unlimited)
    limits = {
        field: (None if value < 0 else value)
        for field, value in limits.items()
        if value is not None
    }

    if not limits:
        console.print("[yellow]No limits given - nothing to update[/yellow]")
        return

    repo = AccountRepository()
    account = repo.update_limits(account_id, **limits)

    if not account:
        console.print(f"[bold red]✗ Account not found: {account_id}[/bold red]")
        raise click.Abort()

    for field, value in limits.items():
        console.print(f"  {field}: {_format_limit(value)}")
    console.print(f"[bold green]✓ Updated limits for {account.email or account_id}[/bold green]")


@click.command(name="delete-account")
@click.argument("account_id", type=click.UUID)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def delete_account(account_id, yes):
    """Delete an account with all its content, reactions and media."""
    if not yes:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] This permanently deletes account "
            f"{account_id} and everything it owns."
        )
        if not click.confirm("Do you want to continue?"):
            console.print("[dim]Cancelled[/dim]")
            return

    service = CascadingDeletionService()

    try:
        result = service.delete_account(account_id, triggered_by="cli")
    except NotFoundError:
        console.print(f"[bold red]✗ Account not found: {account_id}[/bold red]")
        raise click.Abort()
    except StorageError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()

    console.print(
        f"[bold green]✓ Deleted account {account_id}[/bold green] "
        f"({result.items_deleted} items, {result.reactions_deleted} reactions, "
        f"{result.replies_deleted} replies)"
    )
    if result.media_failed:
        console.print(
            f"[yellow]⚠ {result.media_failed} media objects could not be purged "
            f"({result.media_purged} purged)[/yellow]"
        )
