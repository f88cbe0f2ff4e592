from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from rss_aggregator.cache import MemoryCache
from rss_aggregator.config import Settings
from rss_aggregator.core import NewsAggregator
from rss_aggregator.exceptions import ArgumentError, TransportError
from rss_aggregator.models import Article
from rss_aggregator.retry import RetryPolicy
from rss_aggregator.server import create_app, render_article, split_multi

from conftest import StubFetcher, make_feed

BBC_GENERAL = "http://feeds.bbci.co.uk/news/uk/rss.xml"
SKY_GENERAL = "http://feeds.skynews.com/feeds/rss/uk.xml"


@pytest.fixture
def fetcher():
    return StubFetcher({
        BBC_GENERAL: make_feed("2023-01-01", prefix="Bbc"),
        SKY_GENERAL: make_feed("2023-01-02", prefix="Sky"),
    })


@pytest.fixture
def scraper():
    scraper = Mock()
    scraper.get_article.return_value = Article(
        title="Headline <b>", description="Summary", content="Body text", link="https://example.com/a",
    )
    return scraper


@pytest.fixture
def client(fetcher, scraper):
    aggregator = NewsAggregator(fetcher=fetcher, retry_policy=RetryPolicy(base_delay=0.01), scraper=scraper)
    app = create_app(aggregator=aggregator, cache=MemoryCache(), settings=Settings())
    return TestClient(app)


class TestSplitMulti:

    def test_values(self):
        assert split_multi(None) is None
        assert split_multi([]) == []
        assert split_multi(["bbc,sky"]) == ["bbc", "sky"]
        assert split_multi(["bbc", " sky "]) == ["bbc", "sky"]
        assert split_multi([","]) == []
        assert split_multi([""]) == []


class TestNewsEndpoint:

    def test_list_news(self, client):
        response = client.get("/news")

        assert response.status_code == 200
        news = response.json()["news"]
        assert [n["title"] for n in news] == ["Sky 1 Title", "Bbc 1 Title"]
        assert news[0]["provider"] == "sky"
        assert news[0]["publish_date"] == "2023-01-02T00:00:00+00:00"

    def test_query_params(self, client, fetcher):
        response = client.get("/news", params={"providers": "bbc", "sort_by_publish_date": "ASC"})

        assert response.status_code == 200
        assert [n["provider"] for n in response.json()["news"]] == ["bbc"]
        assert fetcher.calls == [BBC_GENERAL]

    def test_cached(self, client, fetcher):
        first = client.get("/news?providers=bbc")
        second = client.get("/news?providers=bbc")

        assert first.json() == second.json()
        assert fetcher.calls == [BBC_GENERAL]

    def test_argument_error_is_400(self, client, fetcher):
        response = client.get("/news", params={"providers": "bbc", "news_source_url": "https://x.com/a.xml"})

        assert response.status_code == 400
        assert "invalid argument" in response.json()["error"]
        assert fetcher.calls == []

    def test_blank_providers_with_source_url_is_400(self, client, fetcher):
        response = client.get("/news?providers=&news_source_url=https://x.com/a.xml")

        assert response.status_code == 400
        assert fetcher.calls == []

    def test_upstream_error_is_502_and_not_cached(self, scraper):
        fetcher = StubFetcher({BBC_GENERAL: [TransportError("HTTP 500"), make_feed("2023-01-01")]})
        aggregator = NewsAggregator(fetcher=fetcher, scraper=scraper)
        client = TestClient(create_app(aggregator=aggregator, cache=MemoryCache(), settings=Settings()))

        assert client.get("/news?providers=bbc").status_code == 502
        assert client.get("/news?providers=bbc").status_code == 200


class TestArticleEndpoint:

    def test_renders_html(self, client, scraper):
        response = client.get("/article", params={"url": "https://example.com/a"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<h1>Headline &lt;b&gt;</h1>" in response.text
        scraper.get_article.assert_called_once_with("https://example.com/a")

    def test_cached(self, client, scraper):
        client.get("/article", params={"url": "https://example.com/a"})
        response = client.get("/article", params={"url": "https://example.com/a"})

        assert response.status_code == 200
        assert scraper.get_article.call_count == 1

    def test_invalid_url(self, client, scraper):
        scraper.get_article.side_effect = ArgumentError("invalid URL: ''")
        assert client.get("/article").status_code == 400


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


def test_render_article_escapes():
    page = render_article(Article(title="A & B", description="<i>d</i>", content="c", link="l"))
    assert "<title>A &amp; B</title>" in page
    assert "&lt;i&gt;d&lt;/i&gt;" in page
