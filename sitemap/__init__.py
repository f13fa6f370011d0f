"""Sitemap - searchable, categorized page index with XML sitemaps."""

from sitemap.index.sitemap import Sitemap
from sitemap.models.document import SearchResult, UpsertResult

__all__ = ["Sitemap", "SearchResult", "UpsertResult"]
