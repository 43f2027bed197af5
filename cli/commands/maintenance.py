"""Maintenance CLI commands (database setup, inactive-account sweep)."""

from datetime import datetime

import click
from dateutil.relativedelta import relativedelta
from rich.console import Console
from rich.table import Table

from src.config.database import init_db
from src.config.settings import settings
from src.repositories.account_repository import AccountRepository
from src.services.core.cascading_deletion import CascadingDeletionService

console = Console()


@click.command(name="init-db")
def init_database():
    """Create all database tables."""
    try:
        init_db()
    except Exception as e:
        console.print(f"[bold red]✗ Database initialization failed:[/bold red] {str(e)}")
        raise click.Abort()

    console.print("[bold green]✓ Database initialized[/bold green]")


@click.command(name="sweep-inactive")
@click.option(
    "--months",
    type=int,
    default=None,
    help="Inactivity threshold in months (default: INACTIVE_ACCOUNT_MONTHS)",
)
@click.option("--limit", type=int, default=None, help="Maximum accounts to delete")
@click.option("--dry-run", is_flag=True, help="Only list the accounts that would be deleted")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def sweep_inactive(months, limit, dry_run, yes):
    """Delete accounts inactive for longer than the threshold."""
    if months is None:
        months = settings.INACTIVE_ACCOUNT_MONTHS
    threshold = relativedelta(months=months)
    cutoff = datetime.utcnow() - threshold

    candidates = AccountRepository().get_inactive_ids(cutoff, limit=limit)

    if not candidates:
        console.print(f"[green]No accounts inactive since {cutoff:%Y-%m-%d}[/green]")
        return

    if dry_run:
        console.print(
            f"[bold]{len(candidates)} accounts inactive since {cutoff:%Y-%m-%d}:[/bold]"
        )
        for account_id in candidates:
            console.print(f"  {account_id}")
        return

    if not yes:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] This permanently deletes "
            f"{len(candidates)} accounts inactive for {months}+ months."
        )
        if not click.confirm("Do you want to continue?"):
            console.print("[dim]Cancelled[/dim]")
            return

    service = CascadingDeletionService()
    outcomes = service.sweep_inactive_accounts(threshold, limit=limit, triggered_by="cli")

    table = Table(title=f"Sweep Results ({len(outcomes)})")
    table.add_column("Account", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Details")

    for outcome in outcomes:
        if outcome.success:
            details = (
                f"{outcome.result.items_deleted} items, "
                f"{outcome.result.reactions_deleted} reactions"
            )
            table.add_row(str(outcome.account_id), "[green]✓[/green]", details)
        else:
            table.add_row(str(outcome.account_id), "[red]✗[/red]", outcome.error or "")

    console.print(table)

    failed = sum(1 for outcome in outcomes if not outcome.success)
    if failed:
        console.print(f"[bold yellow]⚠ {failed} accounts could not be deleted[/bold yellow]")
    else:
        console.print(f"[bold green]✓ Deleted {len(outcomes)} accounts[/bold green]")
