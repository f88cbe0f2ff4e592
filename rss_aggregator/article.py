from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .exceptions import ArgumentError, TransportError
from .fetcher import DEFAULT_TIMEOUT, build_session
from .models import Article

logger = logging.getLogger(__name__)


def _last_text(soup: BeautifulSoup, selector: str) -> str:
    # Later matches overwrite earlier ones: the last element wins.
    text = ""
    for elem in soup.select(selector):
        text = elem.get_text().strip()
    return text


def extract_article(html: bytes, link: str) -> Article:
    """
    Pull title (h1), meta description and `article` text out of an HTML page.

    Missing sections come back as empty strings rather than errors.
    """
    soup = BeautifulSoup(html, "html.parser")

    description = ""
    for meta in soup.select("meta[name=description]"):
        description = meta.get("content") or ""

    return Article(
        title=_last_text(soup, "h1"),
        description=description,
        content=_last_text(soup, "article"),
        link=link,
    )


class ArticleScraper:
    """Fetch one article page and extract its content. One request, no retries."""

    def __init__(self, session: Optional[requests.Session] = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._session = session or build_session()
        self._timeout = timeout

    def get_article(self, url: str) -> Article:
        u = urlparse(url or "")
        if u.scheme not in ("http", "https") or not u.netloc:
            raise ArgumentError(f"invalid URL: {url!r}")

        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise TransportError(f"Failed to fetch article: {url} ({e})") from e

        try:
            if response.status_code != 200:
                raise TransportError(
                    f"failed to fetch article status code {response.status_code}",
                    status_code=response.status_code,
                )
            body = response.content
        finally:
            response.close()

        article = extract_article(body, url)
        logger.debug("Scraped article %s, content length: %d", url, len(article.content))
        return article
