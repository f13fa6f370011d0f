"""
Sitemap pages and on-the-fly page indexing for a hosting app.

``page()`` answers ``sitemap.xml`` / ``sitemap-<category>[-<n>].xml``
requests.  ``add()`` marks the current HTML page for indexing; the
:class:`~sitemap.server._middleware.SitemapMiddleware` does the upsert once
the response turns out to be a plain 200.
"""

import logging
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from sitemap.index.sitemap import Sitemap
from sitemap.index.xml import classify, index_xml, leaf_xml
from sitemap.models.config import AppConfig
from sitemap.server.context import PageContext
from sitemap.server.dispatch import dispatch

logger = logging.getLogger(__name__)

PENDING_KEY = "sitemap_add"


def page(
    request: Request,
    config: AppConfig,
    limit: Optional[int] = None,
    expires: Optional[int] = None,
) -> Optional[Response]:
    """
    Generate the sitemap document requested, if it is one.

    Returns None when the path is not a sitemap name, a 301 to the canonical
    name when it is spelled differently, a 404 when there is nothing to list,
    and otherwise the XML with Last-Modified / cache headers.
    """
    limit = limit or config.sitemap_limit
    expires = config.sitemap_expires if expires is None else expires
    context = PageContext.from_request(request, config)
    wanted = classify(request.url.path)
    if wanted is None:
        return None

    if request.url.path.lstrip("/") != wanted.name:
        return RedirectResponse(context.base + wanted.name, status_code=301)

    with Sitemap.open(config) as sitemap:
        if wanted.kind == "leaf":
            rows = sitemap.links(wanted.category, limit, (wanted.num - 1) * limit)
            generated = leaf_xml(rows, context.base, context.suffix)
        else:
            generated = index_xml(sitemap.sitemap_index(), context.base, limit)

    if generated is None:
        return Response("", status_code=404)
    xml, last_modified = generated
    return dispatch(xml, last_modified, "application/xml", expires, request)


def add(request: Request, category: str, content: str, **save: Any):
    """
    Index the current page once its response is a 200 HTML page without a
    query string.  ``save`` may carry title, description, keywords, image and
    any extra fields to return with search results.
    """
    pending: Dict[str, Any] = dict(save)
    pending["content"] = content
    setattr(request.state, PENDING_KEY, (category, pending))


def index_response(request: Request, status_code: int, content_type: str, config: AppConfig) -> Optional[str]:
    """
    Keep the index in step with an HTML response that was just sent.

    A 200 with pending ``add()`` data (and no query string) is upserted, a
    404 drops the path from the index.  Returns the action taken, if any.
    """
    if not content_type.startswith("text/html"):
        return None
    context = PageContext.from_request(request, config)
    if status_code == 404:
        with Sitemap.open(config) as sitemap:
            removed = sitemap.delete(context.path)
        if removed:
            logger.info(f"Removed dead link '{context.path}' from the sitemap")
        return "deleted" if removed else None

    pending = getattr(request.state, PENDING_KEY, None)
    if status_code != 200 or pending is None or context.query:
        return None
    category, fields = pending
    fields = {"path": context.path, **fields}
    with Sitemap.open(config) as sitemap:
        result = sitemap.upsert(category, fields)
    return result.value
