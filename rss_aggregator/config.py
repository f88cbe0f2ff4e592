from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .models import Category, NewsProvider

ENV_PREFIX = "RSS_AGGREGATOR_"

FeedTable = Mapping[NewsProvider, Mapping[Category, str]]

DEFAULT_FEED_URLS: FeedTable = MappingProxyType({
    NewsProvider.BBC: MappingProxyType({
        Category.GENERAL: "http://feeds.bbci.co.uk/news/uk/rss.xml",
        Category.TECHNOLOGY: "http://feeds.bbci.co.uk/news/technology/rss.xml",
    }),
    NewsProvider.SKY: MappingProxyType({
        Category.GENERAL: "http://feeds.skynews.com/feeds/rss/uk.xml",
        Category.TECHNOLOGY: "http://feeds.skynews.com/feeds/rss/technology.xml",
    }),
})


def build_feed_table(raw: Mapping[str, Mapping[str, str]]) -> FeedTable:
    """
    Validate a {provider: {category: url}} mapping and freeze it.

    Every provider needs a `general` feed: it is the fallback for missing categories.
    """
    table: Dict[NewsProvider, Mapping[Category, str]] = {}
    for provider_name, feeds in raw.items():
        try:
            provider = NewsProvider(provider_name)
            by_category = {Category(c): str(u) for c, u in feeds.items()}
        except ValueError as e:
            raise ValueError(f"Invalid feed table entry for {provider_name!r}: {e}") from e
        if provider is NewsProvider.OTHER:
            raise ValueError("`other` is reserved for ad-hoc source URLs")
        if Category.GENERAL not in by_category:
            raise ValueError(f"Provider {provider_name!r} has no `general` feed")
        table[provider] = MappingProxyType(by_category)
    if not table:
        raise ValueError("Feed table is empty")
    return MappingProxyType(table)


def load_feed_table(path: str) -> FeedTable:
    with open(path, "r", encoding="utf-8") as fh:
        return build_feed_table(json.load(fh))


def _env(name: str, default: Any) -> Any:
    return os.getenv(ENV_PREFIX + name, default)


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    http_timeout: float = 60.0
    request_timeout: float = 90.0
    retry_attempts: int = 5
    retry_base_delay: float = 0.1
    retry_max_delay: float = 10.0
    max_workers: Optional[int] = None
    cache_ttl: int = 300
    cache_max_entries: int = 1000
    feed_urls: FeedTable = field(default_factory=lambda: DEFAULT_FEED_URLS)


def load_settings() -> Settings:
    """Read settings from the environment (a local .env file is honoured)."""
    load_dotenv()

    max_workers = _env("MAX_WORKERS", "")
    feeds_file = _env("FEEDS_FILE", "")
    return Settings(
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        http_timeout=float(_env("HTTP_TIMEOUT", "60")),
        request_timeout=float(_env("REQUEST_TIMEOUT", "90")),
        retry_attempts=int(_env("RETRY_ATTEMPTS", "5")),
        retry_base_delay=float(_env("RETRY_BASE_DELAY", "0.1")),
        retry_max_delay=float(_env("RETRY_MAX_DELAY", "10")),
        max_workers=int(max_workers) if max_workers else None,
        cache_ttl=int(_env("CACHE_TTL", "300")),
        cache_max_entries=int(_env("CACHE_MAX_ENTRIES", "1000")),
        feed_urls=load_feed_table(feeds_file) if feeds_file else DEFAULT_FEED_URLS,
    )
