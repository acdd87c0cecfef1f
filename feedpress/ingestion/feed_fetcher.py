"""
Feed Fetcher
============

Retrieves one syndication feed over HTTP and returns its raw items, after
identifying which of the supported document shapes it uses.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

import aiohttp
import certifi
import feedparser

from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FetchError, ErrorCode


class FeedShape(str, Enum):
    """Raw document shapes the fetcher accepts."""

    RSS = "rss"  # <rss><channel><item>
    CHANNEL = "channel"  # bare <channel> with sibling <item>s (RSS 0.90 / 1.0 RDF)
    ATOM = "atom"  # <feed><entry>
    UNKNOWN = "unknown"


def detect_shape(parsed: Mapping[str, Any]) -> FeedShape:
    """Map the parser's detected format version onto a FeedShape."""
    version = parsed.get("version") or ""
    if version.startswith("atom"):
        shape = FeedShape.ATOM
    elif version in ("rss090", "rss10"):
        shape = FeedShape.CHANNEL
    elif version.startswith("rss"):
        shape = FeedShape.RSS
    else:
        shape = FeedShape.UNKNOWN
    return shape


@dataclass
class FetchedFeed:
    """Raw items of one feed in document order."""

    url: str
    shape: FeedShape
    items: List[Mapping[str, Any]] = field(default_factory=list)
    title: Optional[str] = None

    @property
    def item_count(self) -> int:
        return len(self.items)


class FeedFetcher:
    """Fetches and parses one feed per call."""

    def __init__(self, timeout: float = 10.0, user_agent: str = "Mozilla/5.0 (compatible; RSSBot/1.0)"):
        self.timeout = timeout
        self.user_agent = user_agent
        self.logger = get_logger_for_component("feed_fetcher")
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @classmethod
    def from_settings(cls, settings) -> "FeedFetcher":
        return cls(timeout=settings.fetch.request_timeout, user_agent=settings.fetch.user_agent)

    @asynccontextmanager
    async def get_session(self):
        """Get a configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit_per_host=5)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }
        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch(self, feed_url: str, session: Optional[aiohttp.ClientSession] = None) -> FetchedFeed:
        """Fetch ``feed_url`` and return its raw items.

        Raises:
            FetchError: non-2xx status, transport failure, timeout or a
                payload that is not a recognizable feed
        """
        if session is None:
            async with self.get_session() as own_session:
                return await self.fetch(feed_url, own_session)

        self.logger.debug(f"Fetching feed: {feed_url}")
        try:
            async with session.get(feed_url) as response:
                if not 200 <= response.status < 300:
                    raise FetchError(
                        f"HTTP error! status: {response.status}",
                        feed_url=feed_url,
                        status_code=response.status,
                        error_code=ErrorCode.FEED_HTTP_STATUS,
                    )
                payload = await response.read()

        except asyncio.TimeoutError as e:
            raise FetchError(
                f"Request timeout after {self.timeout}s",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.ClientError as e:
            raise FetchError(
                f"Network error: {e}",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

        return self.parse(payload, feed_url)

    def parse(self, payload: bytes, feed_url: str) -> FetchedFeed:
        """Parse a fetched document into raw items."""
        # Raw markup is kept so lazy-load and inline-style images stay discoverable
        parsed = feedparser.parse(payload, sanitize_html=False, resolve_relative_uris=False)
        entries = list(parsed.get("entries") or [])
        shape = detect_shape(parsed)

        if shape is FeedShape.UNKNOWN and not entries:
            reason = parsed.get("bozo_exception") or "not an RSS or Atom document"
            raise FetchError(
                f"Feed parse error: {reason}",
                feed_url=feed_url,
                error_code=ErrorCode.FEED_PARSE_ERROR,
            )

        if parsed.get("bozo") and entries:
            self.logger.info(f"Feed has parse warnings but contains entries: {feed_url}")

        title = (parsed.get("feed") or {}).get("title")
        self.logger.info(
            f"Fetched {len(entries)} items from {feed_url}",
            extra={"shape": shape.value},
        )
        return FetchedFeed(url=feed_url, shape=shape, items=entries, title=title)
