from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Optional, Protocol

import requests

from .context import FetchContext
from .exceptions import FetchCancelled, RetriableError, TransportError
from .models import RawFeed
from .parser import parse_feed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
CHUNK_SIZE = 8192
USER_AGENT = "rss-aggregator/1.0"


class FeedFetcher(Protocol):
    def fetch(self, ctx: FetchContext, url: str) -> RawFeed:  # pragma: no cover - interface
        ...


def build_session(user_agent: str = USER_AGENT) -> requests.Session:
    """A pooled session; retries are handled by RetryPolicy, never by the adapter."""
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "application/rss+xml, application/xml, text/xml, */*",
    })
    adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=20, max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """
    Seconds from a `Retry-After` header, or None when the server gave no usable wait.

    Only integer seconds are honoured; zero or less means "do not retry".
    """
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    if seconds <= 0:
        return None
    return seconds


def abort_response(response: requests.Response) -> None:
    """
    Stop an in-flight body read from another thread.

    `response.close()` would wait for the pending read to finish; shutting the socket
    down wakes the reader immediately, and the reader closes the response itself.
    """
    conn = getattr(response.raw, "connection", None)
    sock = getattr(conn, "sock", None)
    if not isinstance(sock, socket.socket):
        threading.Thread(target=response.close, name="feed-abort", daemon=True).start()
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass  # already closed by the reader


class HTTPFeedFetcher:
    """Fetch one feed URL over HTTP and decode it into a RawFeed."""

    def __init__(self, session: Optional[requests.Session] = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._session = session or build_session()
        self._timeout = timeout

    def _request_timeout(self, ctx: FetchContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self._timeout
        if remaining <= 0:
            raise FetchCancelled("deadline exceeded")
        return min(self._timeout, remaining)

    def _read_body(self, ctx: FetchContext, response: requests.Response, url: str) -> bytes:
        # Chunked so cancellation is noticed between reads; each read is bounded by the socket timeout.
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if ctx.cancelled:
                    raise FetchCancelled(ctx.reason)
                chunks.append(chunk)
        except (requests.RequestException, OSError, AttributeError, ValueError) as e:
            if ctx.cancelled:
                raise FetchCancelled(ctx.reason) from e
            raise TransportError(f"Failed to read feed body: {url} ({e})") from e
        ctx.raise_if_cancelled()
        return b"".join(chunks)

    def fetch(self, ctx: FetchContext, url: str) -> RawFeed:
        ctx.raise_if_cancelled()
        start = time.monotonic()

        try:
            response = self._session.get(url, timeout=self._request_timeout(ctx), stream=True)
        except requests.RequestException as e:
            if ctx.cancelled:
                raise FetchCancelled(ctx.reason) from e
            raise TransportError(f"Failed to fetch feed: {url} ({e})") from e

        unregister = ctx.on_cancel(lambda: abort_response(response))
        try:
            # Always drained, error responses included, so the connection goes back to the pool.
            body = self._read_body(ctx, response, url)
            status = response.status_code
            if status == 429:
                cause = TransportError(f"HTTP 429 from {url}: rate limited", status_code=status)
                wait = parse_retry_after(response.headers.get("Retry-After"))
                if wait is None:
                    raise cause
                raise RetriableError(cause, wait)
            if not 200 <= status < 300:
                raise TransportError(f"HTTP {status} from {url}", status_code=status)
        finally:
            unregister()
            response.close()

        feed = parse_feed(body, url=url)
        logger.debug(
            "Fetched %s in %.1fms", url, (time.monotonic() - start) * 1000,
            extra={"url": url, "item_count": len(feed.channel.items)},
        )
        return feed
