from __future__ import annotations

from typing import Any, Dict

import feedparser

from .exceptions import ParseError
from .models import Guid, RawChannel, RawFeed, RawItem


def _text(entry: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        val = entry.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _image_url(channel: Dict[str, Any]) -> str:
    image = channel.get("image") or {}
    if isinstance(image, dict):
        return _text(image, "href", "url")
    return ""


def _ttl(channel: Dict[str, Any]) -> int:
    try:
        return int(channel.get("ttl") or 0)
    except (TypeError, ValueError):
        return 0


def parse_item(entry: Dict[str, Any]) -> RawItem:
    """
    Map a raw feed entry (from feedparser) to a RawItem.

    The publish date is kept verbatim; turning it into a timestamp is the normalizer's job.
    """
    guid = Guid(
        value=_text(entry, "id", "guid"),
        is_permalink=bool(entry.get("guidislink")),
    )
    return RawItem(
        title=_text(entry, "title"),
        link=_text(entry, "link"),
        description=_text(entry, "summary", "description"),
        pub_date=_text(entry, "published", "pubdate"),
        guid=guid,
    )


def parse_feed(content: bytes, *, url: str = "") -> RawFeed:
    """
    Decode an RSS document into a RawFeed.

    Raises ParseError when the document is malformed (bozo) or is not a feed at all.
    """
    feed = feedparser.parse(content)

    if getattr(feed, "bozo", 0):
        # bozo_exception may exist; include a short message for diagnostics
        exc = getattr(feed, "bozo_exception", None)
        msg = f"Invalid RSS feed: {url}"
        if exc:
            msg += f" ({exc})"
        raise ParseError(msg)
    if not getattr(feed, "version", ""):
        raise ParseError(f"Not an RSS document: {url}")

    channel = feed.get("feed", {}) or {}
    items = [parse_item(e) for e in feed.get("entries", [])]
    return RawFeed(
        channel=RawChannel(
            title=_text(channel, "title"),
            description=_text(channel, "subtitle", "description"),
            link=_text(channel, "link"),
            image_url=_image_url(channel),
            language=_text(channel, "language"),
            ttl=_ttl(channel),
            items=items,
        )
    )
