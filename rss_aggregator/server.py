"""
HTTP surface for rss_aggregator.

Usage:
    python -m rss_aggregator                                          # default port 8000
    uvicorn --factory rss_aggregator.server:create_app --port 3000    # production

Responses are cached by full request URI; the aggregator itself never caches.
"""
from __future__ import annotations

import html
import json
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from .cache import CacheClient, MemoryCache
from .config import Settings, load_settings
from .context import FetchContext
from .core import NewsAggregator
from .exceptions import ArgumentError, NewsError
from .models import Article
from .validation import ListNewsParams

logger = logging.getLogger(__name__)

ARTICLE_TEMPLATE = """<html>
<head>
<title>{title}</title>
</head>
<body>
<h1>{title}</h1>
<p>{description}</p>
<hr>
{content}
</body>
</html>"""


def render_article(article: Article) -> str:
    return ARTICLE_TEMPLATE.format(
        title=html.escape(article.title),
        description=html.escape(article.description),
        content=html.escape(article.content),
    )


def split_multi(values: Optional[List[str]]) -> Optional[List[str]]:
    """
    Accept both `?providers=bbc&providers=sky` and `?providers=bbc,sky`.

    An absent parameter stays None; a present but blank one (`?providers=`) becomes [].
    """
    if values is None:
        return None
    return [v.strip() for raw in values for v in raw.split(",") if v.strip()]


def _cache_key(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def create_app(
    aggregator: Optional[NewsAggregator] = None,
    cache: Optional[CacheClient] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or load_settings()
    aggregator = aggregator or NewsAggregator.from_settings(settings)
    cache = cache or MemoryCache(settings.cache_ttl, settings.cache_max_entries)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("rss_aggregator HTTP server starting...")
        yield
        logger.info("rss_aggregator HTTP server shutting down...")

    app = FastAPI(
        title="rss_aggregator",
        description="Aggregated, date-sorted news from RSS feeds",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(ArgumentError)
    async def argument_error_handler(request: Request, exc: ArgumentError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NewsError)
    async def news_error_handler(request: Request, exc: NewsError) -> JSONResponse:
        logger.error("Request %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/news")
    def list_news(
        request: Request,
        providers: Optional[List[str]] = Query(None),
        categories: Optional[List[str]] = Query(None),
        news_source_url: Optional[str] = None,
        sort_by_publish_date: Optional[str] = None,
    ) -> Response:
        key = _cache_key(request)
        cached = cache.get(key)
        if cached is not None:
            return Response(content=cached, media_type="application/json")

        items = aggregator.list_news(
            ListNewsParams(
                providers=split_multi(providers),
                categories=split_multi(categories),
                source_url=news_source_url,
                sort=sort_by_publish_date,
            ),
            FetchContext(timeout=settings.request_timeout),
        )
        body = json.dumps({"news": [item.to_dict() for item in items]}).encode("utf-8")
        cache.set(key, body)
        return Response(content=body, media_type="application/json")

    @app.get("/article", response_class=HTMLResponse)
    def get_article(request: Request, url: str = "") -> HTMLResponse:
        key = _cache_key(request)
        cached = cache.get(key)
        if cached is not None:
            article = Article.from_dict(json.loads(cached))
        else:
            article = aggregator.get_article(url)
            cache.set(key, json.dumps(article.to_dict()).encode("utf-8"))
        return HTMLResponse(render_article(article))

    return app
