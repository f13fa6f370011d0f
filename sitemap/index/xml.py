"""
sitemaps.org 0.9 documents and the sitemap request names they answer to.

``sitemap.xml`` is the index of every top-level category, and
``sitemap-<category>[-<n>].xml`` is page ``n`` of the links in one category.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape

from ..utils import lastmod

logger = logging.getLogger(__name__)

XMLNS = "http://www.sitemaps.org/schemas/sitemap/0.9"

_SITEMAP_PATH = re.compile(
    r"^sitemap(-(?P<category>[a-z0-9_.-]+?)(-(?P<num>[0-9]+))?)?\.xml$", re.IGNORECASE
)


@dataclass(frozen=True)
class SitemapRequest:
    kind: str  # "index" or "leaf"
    category: str = ""
    num: int = 1

    @property
    def name(self) -> str:
        """Canonical file name of this request."""
        if self.kind == "index":
            return "sitemap.xml"
        return sitemap_name(self.category, self.num)


def sitemap_name(category: str, num: int = 1) -> str:
    return f"sitemap-{category.lower()}" + (f"-{num}" if num > 1 else "") + ".xml"


def classify(path: str) -> Optional[SitemapRequest]:
    """Which sitemap document ``path`` asks for, or None if it isn't one."""
    match = _SITEMAP_PATH.match(path.lstrip("/"))
    if not match:
        return None
    if not match.group("category"):
        return SitemapRequest("index")
    num = int(match.group("num")) if match.group("num") else 1
    return SitemapRequest("leaf", match.group("category").lower(), max(num, 1))


def servable(category: str, num: int = 1) -> bool:
    """Whether ``sitemap_name(category, num)`` is classified back to the same page."""
    return classify(sitemap_name(category, num)) == SitemapRequest("leaf", category.lower(), num)


def leaf_xml(
    rows: Iterable[Dict], base: str = "", suffix: str = ""
) -> Optional[Tuple[str, int]]:
    """``urlset`` for ``rows`` of (path, updated), with the latest update."""
    last_modified = 0
    xml: List[str] = []
    for row in rows:
        path, updated = row["path"], row["updated"] or 0
        last_modified = max(last_modified, updated)
        if path:
            path += suffix
        xml.append("\t<url>")
        xml.append(f"\t\t<loc>{escape(base + path)}</loc>")
        xml.append(f"\t\t<lastmod>{lastmod(updated)}</lastmod>")
        xml.append("\t</url>")
    if not xml:
        return None
    document = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{XMLNS}">',
        "\n".join(xml),
        "</urlset>",
    ]
    return "\n".join(document), last_modified


def index_xml(
    entries: Iterable[Dict], base: str = "", limit: int = 10000
) -> Optional[Tuple[str, int]]:
    """``sitemapindex`` with one entry per leaf page needed for each category."""
    last_modified = 0
    xml: List[str] = []
    for entry in entries:
        if not entry["count"]:
            continue
        if not servable(entry["name"]):
            logger.warning(f"Category '{entry['name']}' has no sitemap page name, left out of the index")
            continue
        last_modified = max(last_modified, entry["updated"])
        updated = lastmod(entry["updated"])
        for num in range(1, math.ceil(entry["count"] / limit) + 1):
            xml.append("\t<sitemap>")
            xml.append(f"\t\t<loc>{escape(base + sitemap_name(entry['name'], num))}</loc>")
            xml.append(f"\t\t<lastmod>{updated}</lastmod>")
            xml.append("\t</sitemap>")
    if not xml:
        return None
    document = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<sitemapindex xmlns="{XMLNS}">',
        "\n".join(xml),
        "</sitemapindex>",
    ]
    return "\n".join(document), last_modified
