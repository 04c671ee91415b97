from typing import Callable, Dict, Optional, Union

import httpx
import pytest

from newsdesk.config import FeedConfig
from newsdesk.db import MemoryStore
from newsdesk.models import Category, User

ADMIN_EMAIL = "admin@abqhotspot.com"


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def no_sleep() -> Callable:
    return _no_sleep


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        users=[User(email=ADMIN_EMAIL, name="Admin", role="ADMIN")],
        categories=[Category(name="News", slug="news")],
    )


@pytest.fixture
def make_feed() -> Callable[..., FeedConfig]:
    def _make(name: str = "KRQE News", url: str = "https://feeds.test/krqe", **overrides) -> FeedConfig:
        return FeedConfig(name=name, url=url, **overrides)

    return _make


def rss_item(
    title: str,
    link: str,
    description: str = "",
    content: Optional[str] = None,
    pub_date: str = "Tue, 14 Oct 2025 15:00:00 GMT",
    categories=(),
) -> str:
    parts = [
        f"<title>{title}</title>",
        f"<link>{link}</link>",
        f"<description><![CDATA[{description}]]></description>",
        f"<pubDate>{pub_date}</pubDate>",
    ]
    if content is not None:
        parts.append(f"<content:encoded><![CDATA[{content}]]></content:encoded>")
    parts.extend(f"<category>{c}</category>" for c in categories)
    return "<item>" + "".join(parts) + "</item>"


def rss_document(*items: str, title: str = "Test Feed") -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel><title>{title}</title><link>https://feeds.test/</link>"
        "<description>Test</description>" + "".join(items) + "</channel></rss>"
    ).encode("utf-8")


@pytest.fixture
def rss() -> Callable:
    return rss_document


@pytest.fixture
def item_xml() -> Callable:
    return rss_item


@pytest.fixture
def feed_transport() -> Callable[[Dict[str, Union[bytes, int]]], httpx.MockTransport]:
    """Mock transport serving ``{url: body or status code}``; records hits per URL."""

    def _make(routes: Dict[str, Union[bytes, int]]) -> httpx.MockTransport:
        hits: Dict[str, int] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            hits[url] = hits.get(url, 0) + 1
            body = routes.get(url, 404)
            if isinstance(body, int):
                return httpx.Response(body)
            return httpx.Response(200, content=body, headers={"Content-Type": "application/rss+xml"})

        transport = httpx.MockTransport(handler)
        transport.hits = hits
        return transport

    return _make
