"""
Markup and timestamp helpers shared by the index, the server and the CLI.
"""

import math
import re
import time
from datetime import datetime, timezone
from typing import Any, Iterable

from bs4 import BeautifulSoup

# Tags whose text never belongs in a search index
_DROP_TAGS = ("script", "style", "noscript", "template")

_WHITESPACE = re.compile(r"[ \t\r\f\v]+")


def strip_tags(html: str, allowed: Iterable[str] = ()) -> str:
    """
    Remove markup from ``html``, keeping only the ``allowed`` tag names.

    Text inside script/style blocks is dropped entirely, everything else keeps
    its text content.  Allowed tags keep their name but lose their attributes.
    Entities come back decoded when no tag is allowed, and re-escaped
    otherwise, whether or not ``html`` held any markup.

    Example:
        >>> strip_tags('<p>It was <b class="x">amazing</b>.</p>', allowed=("b",))
        'It was <b>amazing</b>.'
    """
    if not html:
        return ""

    allowed = {name.lower() for name in allowed}
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(_DROP_TAGS):
        tag.decompose()

    for tag in soup.find_all(True):
        if tag.name in allowed:
            tag.attrs = {}
        else:
            tag.unwrap()

    if not allowed:
        return _WHITESPACE.sub(" ", soup.get_text()).strip()
    return _WHITESPACE.sub(" ", str(soup)).strip()


def resolve_timestamp(value: Any) -> int:
    """Absolute integer epoch seconds from ``value``, or now if it isn't numeric."""
    if isinstance(value, bool):
        return int(time.time())
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return int(time.time())
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(abs(value))
    return int(time.time())


def lastmod(timestamp: int) -> str:
    """UTC ``YYYY-MM-DD`` of an epoch timestamp, as sitemaps expect."""
    return datetime.fromtimestamp(int(timestamp or 0), tz=timezone.utc).strftime("%Y-%m-%d")


def format_size(size: int) -> str:
    """Format file size in human-readable format."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    else:
        return f"{size / (1024 * 1024):.1f} MB"
