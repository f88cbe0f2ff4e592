from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from .config import FeedTable
from .exceptions import ArgumentError
from .models import Category, FeedWorkItem, NewsProvider, SortOrder


@dataclass
class ListNewsParams:
    """Raw request as received from the routing layer; nothing is trusted yet."""
    providers: Optional[Sequence[str]] = None
    categories: Optional[Sequence[str]] = None
    source_url: Optional[str] = None
    sort: Optional[str] = None


@dataclass(frozen=True)
class NewsRequest:
    """A validated request: typed values only."""
    providers: Tuple[NewsProvider, ...] = ()
    categories: Tuple[Category, ...] = (Category.GENERAL,)
    source_url: Optional[str] = None
    sort: SortOrder = SortOrder.DESC


def parse_sort(value: Optional[str]) -> SortOrder:
    if not value:
        return SortOrder.DESC
    try:
        return SortOrder(value)
    except ValueError:
        raise ArgumentError("please provide a valid sort by publish date ASC or DESC") from None


def parse_provider(value: str) -> NewsProvider:
    try:
        provider = NewsProvider(value)
    except ValueError:
        raise ArgumentError(f"provider: {value} is invalid must be `sky`, `bbc`") from None
    if provider is NewsProvider.OTHER:
        raise ArgumentError("provider: other has no known feeds, use news_source_url instead")
    return provider


def parse_category(value: str) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise ArgumentError(f"category: {value} is invalid must be `general`, `technology`") from None


def is_valid_feed_url(value: str) -> bool:
    """An absolute http(s) URL whose path ends with `.xml`."""
    try:
        u = urlparse(value)
    except ValueError:
        return False
    if u.scheme not in ("http", "https") or not u.netloc:
        return False
    return u.path.endswith(".xml")


def validate(params: ListNewsParams) -> NewsRequest:
    """
    Check every field of a request before any fetch is launched.

    Raises ArgumentError on the first invalid field; has no side effects.
    """
    sort = parse_sort(params.sort)

    # Presence counts, not content: an empty providers list still conflicts with a source URL.
    if params.source_url is not None and (params.providers is not None or params.categories is not None):
        raise ArgumentError(
            "please provide one of value for providers or news_source_url can not proceed both"
        )

    if params.source_url is not None:
        if not is_valid_feed_url(params.source_url):
            raise ArgumentError(
                f"url: {params.source_url} not valid, please provide a valid url ending with `.xml`"
            )
        return NewsRequest(providers=(), categories=(), source_url=params.source_url, sort=sort)

    providers = tuple(parse_provider(p) for p in params.providers or ())
    categories = tuple(parse_category(c) for c in params.categories or ()) or (Category.GENERAL,)
    return NewsRequest(providers=providers, categories=categories, sort=sort)


def resolve_work_items(request: NewsRequest, feed_urls: FeedTable) -> List[FeedWorkItem]:
    """
    Expand a validated request into feeds to fetch.

    Without providers or a source URL, every provider of the feed table is used.
    A provider missing a category falls back to its `general` feed.
    """
    if request.source_url is not None:
        return [FeedWorkItem(provider=NewsProvider.OTHER, url=request.source_url)]

    providers = request.providers or tuple(feed_urls.keys())
    items: List[FeedWorkItem] = []
    for provider in providers:
        feeds = feed_urls.get(provider)
        if not feeds:
            raise ArgumentError(f"provider: {provider.value} has no configured feeds")
        for category in request.categories:
            url = feeds.get(category) or feeds[Category.GENERAL]
            items.append(FeedWorkItem(provider=provider, url=url))
    return items
