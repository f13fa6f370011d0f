"""System status command."""

import click

from sitemap.cli import console
from sitemap.utils import format_size, lastmod


@click.command()
@click.pass_obj
def status(ctx_obj):
    """Show index status"""
    with ctx_obj.session() as sitemap:
        stats = sitemap.stats()
        top = sitemap.sitemap_index()

    from rich.table import Table

    table = Table(title="Index Status", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Database", ctx_obj.config.db_path)
    table.add_row("Index size", format_size(stats["db_size"]))
    table.add_row("Pages", str(stats["documents"]))
    table.add_row("Categories", str(stats["categories"]))
    if stats["last_updated"]:
        table.add_row("Last update", lastmod(stats["last_updated"]))

    console.print(table)

    if top:
        cat_table = Table(title="Categories Break-down", box=None)
        cat_table.add_column("Category", style="cyan")
        cat_table.add_column("Pages", style="magenta")
        for entry in top:
            cat_table.add_row(entry["name"], str(entry["count"]))
        console.print(cat_table)

    if stats["deleted"]:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] {stats['deleted']} pages are flagged for removal. "
            f"Run '[bold]sitemap remove[/bold]' to purge them."
        )
