import threading
from typing import Dict, List, Union
from unittest.mock import Mock

import pytest

from rss_aggregator.context import FetchContext
from rss_aggregator.models import RawChannel, RawFeed, RawItem

SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title><![CDATA[BBC News - Technology]]></title>
    <description><![CDATA[BBC News - Technology]]></description>
    <link>https://www.bbc.co.uk/news/technology</link>
    <image>
      <url>https://news.bbcimg.co.uk/nol/shared/img/bbc_news_120x60.gif</url>
      <title>BBC News - Technology</title>
      <link>https://www.bbc.co.uk/news/technology</link>
    </image>
    <language><![CDATA[en-gb]]></language>
    <ttl>15</ttl>
    <item>
      <title><![CDATA[Item 1 Title]]></title>
      <description><![CDATA[This is the description of item 1.]]></description>
      <link>https://www.example.com/item1</link>
      <guid isPermaLink="true">https://www.example.com/item1</guid>
      <pubDate>Wed, 04 Jan 2023 15:04:05 GMT</pubDate>
    </item>
    <item>
      <title><![CDATA[Item 2 Title]]></title>
      <description><![CDATA[This is the description of item 2.]]></description>
      <link>https://www.example.com/item2</link>
      <guid isPermaLink="false">item-2</guid>
      <pubDate>Mon, 02 Jan 2023 15:04:05 +0100</pubDate>
    </item>
  </channel>
</rss>
"""


def make_feed(*pub_dates: str, logo: str = "https://www.example.com/image.jpg", prefix: str = "Item") -> RawFeed:
    items = [
        RawItem(
            title=f"{prefix} {i + 1} Title",
            link=f"https://www.example.com/{prefix.lower()}{i + 1}",
            description=f"This is the description of {prefix.lower()} {i + 1}.",
            pub_date=d,
        )
        for i, d in enumerate(pub_dates)
    ]
    return RawFeed(channel=RawChannel(title="Sample RSS Feed", image_url=logo, items=items))


class StubFetcher:
    """Canned feeds (or exceptions) per URL; records every call."""

    def __init__(self, responses: Dict[str, Union[RawFeed, Exception, List[Union[RawFeed, Exception]]]]):
        self._responses = responses
        self._lock = threading.Lock()
        self.calls: List[str] = []

    def fetch(self, ctx: FetchContext, url: str) -> RawFeed:
        with self._lock:
            self.calls.append(url)
            resp = self._responses[url]
            if isinstance(resp, list):
                resp = resp.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class RecordingContext(FetchContext):
    """A context whose waits return immediately but are recorded."""

    def __init__(self):
        super().__init__()
        self.waits: List[float] = []

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        return self.cancelled


def make_response(status_code=200, content=b"", headers=None):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.iter_content.side_effect = lambda chunk_size=1, **kwargs: iter([content] if content else [])
    response.headers = headers or {}
    return response


@pytest.fixture
def sample_rss():
    return SAMPLE_RSS
