"""HTTP middleware for the sitemap server."""

import logging
import time

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from sitemap.models.config import AppConfig
from sitemap.server.pages import index_response

logger = logging.getLogger(__name__)


class SitemapMiddleware(BaseHTTPMiddleware):
    """
    Upserts pages marked with ``add()`` after a 200 HTML response, and
    removes the requested path from the index after a 404 HTML response.
    """

    def __init__(self, app: ASGIApp, config: AppConfig):
        super().__init__(app)
        self.config = config

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        t_start = time.time()
        action = await run_in_threadpool(
            index_response,
            request,
            response.status_code,
            response.headers.get("content-type", ""),
            self.config,
        )
        if action:
            elapsed = (time.time() - t_start) * 1000
            logger.info(f"sitemap {action}: {request.url.path} ({elapsed:.1f}ms)")
        return response
