"""Index maintenance commands (index, add, remove, reset)."""

import click

from sitemap.cli import console, _index_source


@click.command()
@click.pass_obj
def index(ctx_obj):
    """Re-index every source defined in config (reset, upsert, sweep)"""
    if not ctx_obj.config.sources:
        console.print("[yellow]No sources to index.[/yellow]")
        return

    total = 0
    with ctx_obj.session() as sitemap:
        for source in ctx_obj.config.sources:
            console.print(
                f"Indexing [cyan]{source.category}[/cyan] "
                f"[dim]({source.path}/{source.glob_pattern})[/dim]..."
            )
            counts = _index_source(source, sitemap)
            console.print(
                f"  [green]{counts['inserted']}[/green] new, "
                f"[green]{counts['updated']}[/green] updated, "
                f"{counts['unchanged'] + counts['revived']} unchanged, "
                f"[red]{counts['deleted']}[/red] removed"
            )
            total += counts["inserted"] + counts["updated"] + counts["revived"] + counts["unchanged"]

    console.print(f"\n[bold green]Total indexed:[/bold green] {total} pages")


def _parse_extra(values):
    extra = {}
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"expected key=value, got '{item}'", param_hint="--set")
        key, value = item.split("=", 1)
        extra[key.strip()] = value
    return extra


@click.command()
@click.argument("category")
@click.argument("path")
@click.option("--title", default="", help="Page title")
@click.option("--description", default="", help="Meta description")
@click.option("--keywords", default="", help="Comma-separated tags")
@click.option("--image", default="", help="Image URL")
@click.option("--content", default="", help="Page content (may contain HTML)")
@click.option("--file", "content_file", type=click.File("r", encoding="utf-8"), help="Read content from a file")
@click.option("--updated", type=int, help="Last-modified timestamp (epoch seconds)")
@click.option("--set", "extra", multiple=True, help="Extra field returned with search results (key=value)")
@click.pass_obj
def add(ctx_obj, category, path, title, description, keywords, image, content, content_file, updated, extra):
    """Upsert a single page into CATEGORY"""
    fields = _parse_extra(extra)
    fields.update(
        path=path,
        title=title,
        description=description,
        keywords=keywords,
        image=image,
        content=content_file.read() if content_file else content,
    )
    if updated is not None:
        fields["updated"] = updated

    with ctx_obj.session() as sitemap:
        result = sitemap.upsert(category, fields)
    console.print(f"[green]{result.value.capitalize()}:[/green] {path or '/'}")


@click.command()
@click.argument("path", required=False)
@click.pass_obj
def remove(ctx_obj, path):
    """Delete PATH, or every page still flagged by 'reset'"""
    with ctx_obj.session() as sitemap:
        removed = sitemap.delete(path)
    if path is not None and not removed:
        console.print(f"[yellow]Not indexed:[/yellow] {path}")
        return
    console.print(f"[green]Removed {removed} page(s)[/green]")


@click.command()
@click.argument("category")
@click.pass_obj
def reset(ctx_obj, category):
    """Flag every page in CATEGORY for removal by 'remove'"""
    with ctx_obj.session() as sitemap:
        flagged = sitemap.reset(category)
    console.print(f"Flagged [cyan]{flagged}[/cyan] page(s) under '{category}'")
