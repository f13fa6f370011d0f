"""What the index needs to know about the current request."""

import dataclasses
import posixpath
from typing import Optional

from starlette.requests import Request

from sitemap.models.config import AppConfig


@dataclasses.dataclass
class PageContext:
    path: str
    query: str = ""
    base: str = "/"
    suffix: str = ""
    format: str = "html"

    @classmethod
    def from_request(cls, request: Request, config: Optional[AppConfig] = None) -> "PageContext":
        config = config or AppConfig()
        base = config.base_url or str(request.base_url)
        if not base.endswith("/"):
            base += "/"

        path = request.url.path.lstrip("/")
        suffix = config.url_suffix
        if suffix and path.endswith(suffix):
            path = path[: -len(suffix)]
            fmt = "html"
        else:
            ext = posixpath.splitext(path)[1].lower().lstrip(".")
            fmt = "html" if ext in ("", "html", "htm") else ext

        return cls(
            path=path,
            query=request.url.query,
            base=base,
            suffix=suffix,
            format=fmt,
        )
