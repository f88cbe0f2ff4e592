from __future__ import annotations

from typing import List

from .models import NewsItem, NewsProvider, RawFeed
from .timeparse import parse_publish_date


def normalize(feed: RawFeed, provider: NewsProvider) -> List[NewsItem]:
    """
    Convert a decoded feed into NewsItems, in document order.

    Every item carries `provider` and the channel image as its logo.
    A single unparseable publish date fails the whole feed (ParseError).
    """
    logo = feed.channel.image_url
    items: List[NewsItem] = []
    for raw in feed.channel.items:
        items.append(NewsItem(
            title=raw.title,
            description=raw.description,
            link=raw.link,
            published_at=parse_publish_date(raw.pub_date),
            provider=provider,
            provider_logo_url=logo,
        ))
    return items
