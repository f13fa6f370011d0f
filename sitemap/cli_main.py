"""Sitemap CLI - Entry point for command line interface.

This module provides the main CLI entry point and imports all commands
from the modular cli subpackage.
"""

import logging
from pathlib import Path

import click

from sitemap.cli import Context
from sitemap.cli._config import config_group
from sitemap.cli._doc import ls, sitemap_cmd
from sitemap.cli._index import index, add, remove, reset
from sitemap.cli._search import search, words
from sitemap.cli._server import serve
from sitemap.cli._system import status


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.sitemap/config.yml)",
)
@click.option("--log-level", default="warning", help="Log level")
@click.pass_context
def cli(ctx, config_path, log_level):
    """Sitemap - searchable, categorized page index"""
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.WARNING))
    ctx.obj = Context(config_path)


# Register commands
cli.add_command(config_group)
cli.add_command(index)
cli.add_command(add)
cli.add_command(remove)
cli.add_command(reset)
cli.add_command(search)
cli.add_command(words)
cli.add_command(ls)
cli.add_command(sitemap_cmd)
cli.add_command(status)
cli.add_command(serve)


if __name__ == "__main__":
    cli()
