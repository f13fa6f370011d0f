import logging
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterator, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_INDEX_NAMES = {"index", "default"}
_EXTENSIONS = {".html", ".htm"}


class Crawler:
    def __init__(self, root_path: str, glob_pattern: str = "**/*.html"):
        self.root_path = Path(root_path)
        self.glob_pattern = glob_pattern

    def scan(self) -> Iterator[Dict[str, Any]]:
        """
        Scans the directory for files matching the glob pattern.
        Returns an iterator of page field dicts ready for ``Sitemap.upsert``.
        """
        if not self.root_path.exists():
            return

        for file_path in sorted(self.root_path.glob(self.glob_pattern)):
            if not file_path.is_file():
                continue

            data = self._read_file(file_path)
            if data is not None:
                yield data

    def _read_file(self, file_path: Path) -> Optional[Dict[str, Any]]:
        try:
            html = file_path.read_text(encoding="utf-8")
            updated = int(file_path.stat().st_mtime)
        except (IOError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {file_path}: {e}")
            return None

        page = self.parse(html)
        page["path"] = self.url_path(file_path.relative_to(self.root_path))
        page["title"] = page["title"] or file_path.stem
        page["updated"] = updated
        return page

    @staticmethod
    def url_path(relative: Path) -> str:
        """'blog/storm.html' -> 'blog/storm', 'blog/index.html' -> 'blog'"""
        path = PurePosixPath(relative.as_posix())
        if path.suffix.lower() in _EXTENSIONS:
            path = path.with_suffix("")
        if path.name.lower() in _INDEX_NAMES:
            path = path.parent
        text = str(path)
        return "" if text == "." else text

    @staticmethod
    def parse(html: str) -> Dict[str, Any]:
        """Title, meta description/keywords, og:image and main content of a page."""
        soup = BeautifulSoup(html, "html.parser")

        title = ""
        if soup.title and soup.title.get_text(strip=True):
            title = soup.title.get_text(" ", strip=True)
        else:
            h1 = soup.find("h1")
            if h1 and h1.get_text(strip=True):
                title = h1.get_text(" ", strip=True)

        def meta(**attrs) -> str:
            tag = soup.find("meta", attrs=attrs)
            return (tag.get("content") or "").strip() if tag else ""

        main = soup.find("main") or soup.body
        content = main.decode_contents().strip() if main else str(soup).strip()

        return {
            "title": title,
            "description": meta(name="description"),
            "keywords": meta(name="keywords"),
            "image": meta(property="og:image"),
            "content": content,
        }
