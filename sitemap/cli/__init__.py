"""CLI module - contains all CLI command implementations.

This module exports:
- Context: CLI context class
- _index_source: Helper function for bulk indexing
- console: Rich console for output
"""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from sitemap.index.crawler import Crawler
from sitemap.index.sitemap import Sitemap
from sitemap.models.config import AppConfig, SourceConfig

console = Console()


class Context:
    """CLI context that holds config and opens index sessions."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.config = AppConfig.load(config_path)

    def session(self) -> Sitemap:
        return Sitemap.open(self.config)


def _index_source(source: SourceConfig, sitemap: Sitemap) -> dict:
    """Reset, re-upsert and sweep one source. Returns counts per outcome."""
    counts = {"inserted": 0, "updated": 0, "revived": 0, "unchanged": 0}
    sitemap.reset(source.category)
    for page in Crawler(source.path, source.glob_pattern).scan():
        result = sitemap.upsert(source.category, page)
        counts[result.value] += 1
    counts["deleted"] = sitemap.delete()
    return counts


def print_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a table with given columns."""
    table = Table(title=title)
    for col_name, style in columns:
        table.add_column(col_name, style=style)
    return table
