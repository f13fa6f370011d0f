"""Conditional, cacheable delivery of generated documents."""

import time
from email.utils import formatdate, parsedate_to_datetime
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response


def _if_modified_since(request: Optional[Request]) -> Optional[int]:
    if request is None:
        return None
    header = request.headers.get("if-modified-since")
    if not header:
        return None
    try:
        return int(parsedate_to_datetime(header).timestamp())
    except (TypeError, ValueError):
        return None


def dispatch(
    content: str,
    last_modified: int,
    media_type: str = "application/xml",
    expires: int = 0,
    request: Optional[Request] = None,
) -> Response:
    """
    Wrap ``content`` in a response keyed by its last-modified time.

    ``expires`` is the cache lifetime in seconds (0 = always revalidate).  A
    request whose ``If-Modified-Since`` is not older than ``last_modified``
    gets an empty 304.
    """
    headers = {"Last-Modified": formatdate(last_modified, usegmt=True)}
    if expires > 0:
        headers["Cache-Control"] = f"public, max-age={expires}"
        headers["Expires"] = formatdate(time.time() + expires, usegmt=True)
    else:
        headers["Cache-Control"] = "no-cache"

    since = _if_modified_since(request)
    if since is not None and last_modified <= since:
        return Response(status_code=304, headers=headers)

    return Response(
        content=content.encode("utf-8"),
        status_code=200,
        headers=headers,
        media_type=f"{media_type}; charset=utf-8",
    )
