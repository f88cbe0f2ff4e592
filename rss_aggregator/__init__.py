"""
rss_aggregator

Aggregates news from several RSS providers (or one ad-hoc feed URL) into a single,
date-sorted list, and scrapes single articles on demand.

Core ideas:
- Input: providers × categories, or one feed URL
- Process: validate → resolve feeds → fetch in parallel (with retries) → normalize → merge → sort
- Output: List[NewsItem]; the first failing feed fails the whole request

Example
-------
from rss_aggregator import ListNewsParams, NewsAggregator

aggregator = NewsAggregator()

news = aggregator.list_news(ListNewsParams(
    providers=["bbc", "sky"],
    categories=["technology"],
    sort="DESC",
))

for item in news:
    print(item.published_at, item.provider.value, item.title)
"""
from .context import FetchContext
from .core import NewsAggregator
from .exceptions import (
    ArgumentError,
    FetchCancelled,
    NewsError,
    ParseError,
    RetriableError,
    TransportError,
)
from .models import Article, Category, NewsItem, NewsProvider, SortOrder
from .validation import ListNewsParams

__all__ = [
    "Article",
    "ArgumentError",
    "Category",
    "FetchCancelled",
    "FetchContext",
    "ListNewsParams",
    "NewsAggregator",
    "NewsError",
    "NewsItem",
    "NewsProvider",
    "ParseError",
    "RetriableError",
    "SortOrder",
    "TransportError",
]
