from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from .article import ArticleScraper
from .config import DEFAULT_FEED_URLS, FeedTable, Settings
from .context import FetchContext
from .exceptions import FetchCancelled
from .fetcher import FeedFetcher, HTTPFeedFetcher
from .models import Article, FeedWorkItem, NewsItem
from .normalizer import normalize
from .retry import RetryPolicy
from .sorting import sort_news
from .validation import ListNewsParams, resolve_work_items, validate

logger = logging.getLogger(__name__)

# (work item index, items, error); index -1 marks cancellation of the caller's context.
_Outcome = Tuple[int, Optional[List[NewsItem]], Optional[BaseException]]


class NewsAggregator:
    """
    High-level API: aggregate news from known providers or from one ad-hoc feed URL.

    Pipeline: validate → resolve feeds → (fetch with retries → normalize) per feed, in parallel
    → merge in feed order → sort by publish date.

    The first failing feed fails the whole request; partial results are never returned.
    """

    def __init__(
        self,
        *,
        fetcher: Optional[FeedFetcher] = None,
        feed_urls: FeedTable = DEFAULT_FEED_URLS,
        retry_policy: Optional[RetryPolicy] = None,
        max_workers: Optional[int] = None,
        scraper: Optional[ArticleScraper] = None,
    ) -> None:
        self.fetcher = fetcher or HTTPFeedFetcher()
        self.feed_urls = feed_urls
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_workers = max_workers
        self.scraper = scraper or ArticleScraper()

    @classmethod
    def from_settings(cls, settings: Settings) -> "NewsAggregator":
        return cls(
            fetcher=HTTPFeedFetcher(timeout=settings.http_timeout),
            feed_urls=settings.feed_urls,
            retry_policy=RetryPolicy(
                max_attempts=settings.retry_attempts,
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
            ),
            max_workers=settings.max_workers,
            scraper=ArticleScraper(timeout=settings.http_timeout),
        )

    def list_news(self, params: ListNewsParams, ctx: Optional[FetchContext] = None) -> List[NewsItem]:
        request = validate(params)
        work_items = resolve_work_items(request, self.feed_urls)

        start = time.monotonic()
        items = self._aggregate(work_items, ctx or FetchContext())
        logger.info(
            "Aggregated %d items from %d feeds in %.1fms",
            len(items), len(work_items), (time.monotonic() - start) * 1000,
            extra={"item_count": len(items), "duration_ms": (time.monotonic() - start) * 1000},
        )
        return sort_news(items, request.sort)

    def get_article(self, url: str) -> Article:
        return self.scraper.get_article(url)

    def _fetch_feed(self, ctx: FetchContext, item: FeedWorkItem) -> List[NewsItem]:
        feed = self.retry_policy.run(lambda: self.fetcher.fetch(ctx, item.url), ctx)
        return normalize(feed, item.provider)

    def _aggregate(self, work_items: List[FeedWorkItem], ctx: FetchContext) -> List[NewsItem]:
        # Tasks share a child context: failing fast cancels siblings without touching the caller's.
        task_ctx = ctx.child()
        outcomes: "queue.Queue[_Outcome]" = queue.Queue()

        def run(index: int, item: FeedWorkItem) -> None:
            try:
                outcomes.put((index, self._fetch_feed(task_ctx, item), None))
            except Exception as e:
                outcomes.put((index, None, e))

        unregister = ctx.on_cancel(lambda: outcomes.put((-1, None, FetchCancelled(ctx.reason))))
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers or len(work_items),
            thread_name_prefix="feed-fetch",
        )
        try:
            for index, item in enumerate(work_items):
                logger.debug("Dispatching %s feed %s", item.provider.value, item.url,
                             extra={"provider": item.provider.value, "url": item.url})
                executor.submit(run, index, item)

            results: List[Optional[List[NewsItem]]] = [None] * len(work_items)
            pending = len(work_items)
            while pending:
                try:
                    index, items, err = outcomes.get(timeout=ctx.remaining())
                except queue.Empty:
                    raise FetchCancelled("deadline exceeded") from None
                if err is not None:
                    if index >= 0:
                        failed = work_items[index]
                        logger.warning("Feed %s failed: %s", failed.url, err,
                                       extra={"provider": failed.provider.value, "url": failed.url})
                    raise err
                results[index] = items
                pending -= 1
        finally:
            unregister()
            # Stragglers are aborted and their outcomes ignored.
            task_ctx.cancel("aggregation finished")
            executor.shutdown(wait=False, cancel_futures=True)

        merged: List[NewsItem] = []
        for chunk in results:
            merged.extend(chunk or [])
        return merged
