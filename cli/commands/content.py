"""Content item CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from src.exceptions import NotFoundError, StorageError
from src.repositories.content_item_repository import ContentItemRepository
from src.repositories.reaction_repository import ReactionRepository
from src.services.core.cascading_deletion import CascadingDeletionService

console = Console()


@click.command(name="show-content")
@click.argument("item_id", type=click.UUID)
def show_content(item_id):
    """Show a content item and its reactions."""
    content_repo = ContentItemRepository()
    item = content_repo.get_by_id(item_id)

    if not item:
        console.print(f"[bold red]✗ Content item not found: {item_id}[/bold red]")
        raise click.Abort()

    cap = item.max_reactions_allowed
    console.print(f"[bold]Share path:[/bold] {item.share_path}")
    console.print(f"[bold]Media:[/bold] {item.media_url or '-'} ({item.media_type or 'none'})")
    console.print(f"[bold]Moderation:[/bold] {item.moderation_status}")
    console.print(
        f"[bold]Reaction cap:[/bold] {cap if cap is not None and cap >= 0 else 'unlimited'}"
    )

    reactions = ReactionRepository().list_for_item(item_id)

    if not reactions:
        console.print("[yellow]No reactions yet[/yellow]")
        return

    table = Table(title=f"Reactions ({len(reactions)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Moderation")
    table.add_column("Created")

    for reaction in reactions:
        status_color = "green" if reaction.status == "complete" else "yellow"
        table.add_row(
            str(reaction.id),
            reaction.name or "-",
            f"[{status_color}]{reaction.status}[/{status_color}]",
            reaction.moderation_status,
            reaction.created_at.strftime("%Y-%m-%d %H:%M") if reaction.created_at else "-",
        )

    console.print(table)


@click.command(name="delete-content")
@click.argument("item_id", type=click.UUID)
@click.option(
    "--reactions-only",
    is_flag=True,
    help="Delete the item's reactions but keep the item",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def delete_content(item_id, reactions_only, yes):
    """Delete a content item (or only its reactions) and the attached media."""
    target = "all reactions on" if reactions_only else "content item"

    if not yes:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] This permanently deletes {target} {item_id}."
        )
        if not click.confirm("Do you want to continue?"):
            console.print("[dim]Cancelled[/dim]")
            return

    service = CascadingDeletionService()

    try:
        if reactions_only:
            result = service.delete_reactions_for_item(item_id, triggered_by="cli")
        else:
            result = service.delete_content_item(item_id, triggered_by="cli")
    except NotFoundError:
        console.print(f"[bold red]✗ Content item not found: {item_id}[/bold red]")
        raise click.Abort()
    except StorageError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {str(e)}")
        raise click.Abort()

    console.print(
        f"[bold green]✓ Deleted {target} {item_id}[/bold green] "
        f"({result.reactions_deleted} reactions, {result.replies_deleted} replies, "
        f"{result.media_purged} media purged)"
    )
    if result.media_failed:
        console.print(f"[yellow]⚠ {result.media_failed} media objects could not be purged[/yellow]")
