"""Search commands."""

import click
import json

from sitemap.cli import console


def _weights(value):
    if not value:
        return None
    try:
        return [float(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter("expected comma-separated numbers", param_hint="--weights")


@click.command()
@click.argument("query")
@click.option("--limit", "-n", default=None, type=int, help="Maximum number of results")
@click.option("--category", "-c", multiple=True, help="Restrict to a category (repeatable)")
@click.option(
    "--weights",
    help="Importance of path,title,description,keywords,content (default 1,1,1,1,1)",
)
@click.option("--where", default="", help="Extra SQL condition (s.=search, m.=sitemap fields)")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["cli", "json"]),
    default="cli",
    help="Output format (default: cli)",
)
@click.pass_obj
def search(ctx_obj, query, limit, category, weights, where, output_format):
    """Ranked full-text search over indexed pages.

    Features:
    - Porter-stemmed BM25 ranking with per-field weights
    - "quoted phrases", prefix* terms, AND between terms
    - Snippets highlighted with <b>
    """
    weights = _weights(weights)
    limit = limit or ctx_obj.config.search_limit
    base = ctx_obj.config.base_url
    with ctx_obj.session() as sitemap:
        total = sitemap.count(query, list(category), where, weights)
        results = sitemap.search(
            query, list(category), limit, weights, where,
            base_url=base, suffix=ctx_obj.config.url_suffix,
        )

    if output_format == "json":
        click.echo(json.dumps(
            {"total": total, "results": [r.to_dict() for r in results]},
            ensure_ascii=False, indent=2,
        ))
        return

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return

    _output_cli(results, query, total)


def _output_cli(results, query, total):
    """Output results as CLI table (default)."""
    from rich.table import Table
    from rich.text import Text

    table = Table(title=f"Search Results for: {query} ({total} total)")
    table.add_column("Rank", style="green", width=8)
    table.add_column("Id", style="dim", width=6)
    table.add_column("Title", style="cyan")
    table.add_column("URL", style="blue")
    table.add_column("Snippet")

    for r in results:
        snippet = Text.from_markup(
            r.snippet.replace("[", "\\[").replace("<b>", "[bold yellow]").replace("</b>", "[/bold yellow]")
        )
        table.add_row(f"{r.rank:.3f}", str(r.doc_id), r.title, r.url, snippet)

    console.print(table)


@click.command()
@click.argument("query")
@click.argument("doc_id", type=int)
@click.pass_obj
def words(ctx_obj, query, doc_id):
    """Show which words made DOC_ID relevant to QUERY"""
    with ctx_obj.session() as sitemap:
        found = sitemap.words(query, doc_id)
    if not found:
        console.print("[yellow]No matching words.[/yellow]")
        return
    console.print(", ".join(sorted(found)))
