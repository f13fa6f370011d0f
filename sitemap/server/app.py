"""
FastAPI application for the sitemap index.

Serves the generated ``sitemap.xml`` / ``sitemap-<category>[-<n>].xml``
documents, full-text search over the indexed pages, and keeps the index in
step with the HTML pages it serves (see :class:`SitemapMiddleware`).
"""

from fastapi import FastAPI, HTTPException, Query, Request
from starlette.responses import Response
import time
from typing import List, Optional
import logging

from sitemap.index.sitemap import Sitemap
from sitemap.models.config import AppConfig
from sitemap.server._middleware import SitemapMiddleware
from sitemap.server.context import PageContext
from sitemap.server.models import HealthResponse, SearchResponse, WordsResponse
from sitemap.server.pages import page

logger = logging.getLogger(__name__)


def parse_weights(value: Optional[str]) -> Optional[List[float]]:
    """'0,0,0,1' -> [0.0, 0.0, 0.0, 1.0]"""
    if not value:
        return None
    try:
        return [float(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid weights: {value!r}")


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    config = config or AppConfig.load()

    app = FastAPI(
        title="Sitemap Server",
        description="XML sitemaps and full-text search over indexed pages",
        version="1.0.0",
    )
    app.state.config = config

    app.add_middleware(SitemapMiddleware, config=config)

    # ------------------------------------------------------------------
    # Request log: method, path, status and elapsed time of every request
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path}"
            f" → {response.status_code}"
            f" ({elapsed_ms:.1f} ms)"
            f" client={request.client.host if request.client else '-'}"
        )
        return response

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"Serving sitemap index from {config.db_path}")

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint."""
        with Sitemap.open(config) as sitemap:
            documents = sitemap.stats()["documents"]
        return HealthResponse(status="healthy", documents=documents)

    @app.get("/search", response_model=SearchResponse)
    def search(
        request: Request,
        q: str,
        category: List[str] = Query(default=[]),
        limit: Optional[int] = Query(default=None, gt=0),
        offset: int = Query(default=0, ge=0),
        weights: Optional[str] = None,
    ):
        """Ranked search results with snippets, most relevant first."""
        context = PageContext.from_request(request, config)
        limit = limit or config.search_limit
        weights = parse_weights(weights)
        with Sitemap.open(config) as sitemap:
            total = sitemap.count(q, category, weights=weights)
            results = sitemap.search(
                q,
                category,
                f"{offset}, {limit}",
                weights,
                base_url=context.base,
                suffix=context.suffix,
            )
        return SearchResponse(total=total, results=[r.to_dict() for r in results])

    @app.get("/words", response_model=WordsResponse)
    def words(q: str, doc_id: int):
        """The words that made ``doc_id`` relevant to ``q``."""
        with Sitemap.open(config) as sitemap:
            found = sitemap.words(q, doc_id)
        return WordsResponse(words=sorted(found))

    @app.get("/sitemap{name:path}")
    def sitemap_xml(request: Request, name: str):
        """sitemap.xml and sitemap-<category>[-<n>].xml"""
        response = page(request, config)
        if response is None:
            return Response("", status_code=404)
        return response

    return app


app = create_app()
