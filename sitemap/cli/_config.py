"""Config command group."""

import click
from pydantic import ValidationError

from sitemap.cli import console


@click.group(name="config")
def config_group():
    """Manage configuration"""
    pass


@config_group.command(name="show")
@click.pass_obj
def config_show(ctx_obj):
    """Show current configuration"""
    from rich.table import Table

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="magenta")

    for key, value in ctx_obj.config.model_dump(exclude={"sources"}).items():
        table.add_row(key, str(value))
    table.add_row("sources", str(len(ctx_obj.config.sources)))

    console.print(table)


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(ctx_obj, key, value):
    """Set a configuration value"""
    if key == "sources" or key not in type(ctx_obj.config).model_fields:
        console.print(f"[red]Error:[/red] Unknown key '{key}'")
        raise SystemExit(1)

    data = ctx_obj.config.model_dump()
    data[key] = value
    try:
        ctx_obj.config = type(ctx_obj.config).model_validate(data)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise SystemExit(1)
    ctx_obj.config.save(ctx_obj.config_path)
    console.print(f"[green]Set {key} to:[/green] {value}")
