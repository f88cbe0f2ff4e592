from __future__ import annotations

from typing import Iterable, List

from .models import NewsItem, SortOrder


def sort_news(items: Iterable[NewsItem], order: SortOrder = SortOrder.DESC) -> List[NewsItem]:
    """
    Order items by publish time (newest first by default).

    Stable in both directions: items sharing a timestamp keep their merge order.
    """
    return sorted(items, key=lambda x: x.published_at, reverse=order is SortOrder.DESC)
