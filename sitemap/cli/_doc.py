"""Listing and sitemap output commands (ls, sitemap)."""

from datetime import datetime, timezone

import click

from sitemap.cli import console
from sitemap.index.xml import classify, index_xml, leaf_xml


@click.command()
@click.argument("category", required=False, default="")
@click.option("--limit", "-n", default=-1, type=int, help="Maximum number of paths")
@click.pass_obj
def ls(ctx_obj, category, limit):
    """List indexed paths, optionally under CATEGORY.

    Usage:
    sitemap ls
    sitemap ls pages
    sitemap ls pages/articles
    """
    with ctx_obj.session() as sitemap:
        links = sitemap.links(category, limit)

    if not links:
        console.print("[yellow]No pages found.[/yellow]")
        return

    from rich.table import Table

    table = Table(box=None)
    table.add_column("Date", style="blue")
    table.add_column("Path", style="white")

    for link in links:
        dt = datetime.fromtimestamp(link["updated"], tz=timezone.utc)
        table.add_row(dt.strftime("%Y-%m-%d %H:%M"), "/" + link["path"])

    console.print(table)


@click.command(name="sitemap")
@click.argument("name", default="sitemap.xml")
@click.option("--limit", type=int, help="Links per sitemap page")
@click.option("--base", help="Base URL for links (default: config base_url)")
@click.pass_obj
def sitemap_cmd(ctx_obj, name, limit, base):
    """Print sitemap.xml or sitemap-<category>[-<n>].xml"""
    wanted = classify(name)
    if wanted is None:
        raise click.BadParameter(f"'{name}' is not a sitemap name", param_hint="NAME")

    config = ctx_obj.config
    limit = limit or config.sitemap_limit
    base = base if base is not None else config.base_url

    with ctx_obj.session() as sitemap:
        if wanted.kind == "leaf":
            rows = sitemap.links(wanted.category, limit, (wanted.num - 1) * limit)
            generated = leaf_xml(rows, base, config.url_suffix)
        else:
            generated = index_xml(sitemap.sitemap_index(), base, limit)

    if generated is None:
        console.print(f"[red]Not found:[/red] {wanted.name}")
        raise SystemExit(1)
    click.echo(generated[0])
