"""
Content Extractor
=================

Turns one raw feed item into a normalized CandidateItem.

Image discovery runs a fixed cascade and stops at the first hit:

1. explicit media fields (media content, thumbnail, group, enclosure, image)
2. first ``<img src>`` in the body
3. first bare image URL in the body
4. first ``data-src`` lazy-load attribute
5. CSS ``background-image: url(...)``
6. the original article page: ``og:image``, ``twitter:image``, first ``<img>``

When nothing is found the configured placeholder is assigned and the item is
flagged as having no real image.
"""

import asyncio
import re
import ssl
from typing import Any, Mapping, Optional
from urllib.parse import urljoin, urlparse

import aiohttp
import certifi
from bs4 import BeautifulSoup

from ..database.models import CandidateItem
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ValidationError, ErrorCode
from .content_cleaner import clean_text
from .field_adapters import text_value, link_value, image_value, date_value, first_present
from .text_replacement import TextReplacer

TITLE_FIELDS = ("title",)
LINK_FIELDS = ("link", "links")
DATE_FIELDS = ("pubDate", "published", "updated")
BODY_FIELDS = ("content:encoded", "content", "description", "summary")
IMAGE_FIELDS = (
    "media:content",
    "media_content",
    "media:thumbnail",
    "media_thumbnail",
    "media:group",
    "media_group",
    "enclosure",
    "enclosures",
    "image",
)

BARE_IMAGE_URL_RE = re.compile(
    r"https?://[^\s\"'<>()]+?\.(?:jpe?g|png|gif|webp|avif|bmp|svg)(?:\?[^\s\"'<>()]*)?",
    re.IGNORECASE,
)
CSS_BACKGROUND_RE = re.compile(
    r"background(?:-image)?\s*:\s*[^;\"']*?url\(\s*(?:&quot;|[\"'])?([^\"')]+?)(?:&quot;|[\"'])?\s*\)",
    re.IGNORECASE,
)


class ContentExtractor:
    """Normalizes raw feed items into candidate articles."""

    def __init__(
        self,
        placeholder_image_url: str,
        text_replacer: Optional[TextReplacer] = None,
        page_timeout: float = 10.0,
        user_agent: str = "Mozilla/5.0 (compatible; RSSBot/1.0)",
    ):
        self.placeholder_image_url = placeholder_image_url
        self.text_replacer = text_replacer or TextReplacer(enabled=False)
        self.page_timeout = page_timeout
        self.user_agent = user_agent
        self.logger = get_logger_for_component("content_extractor")
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @classmethod
    def from_settings(cls, settings) -> "ContentExtractor":
        return cls(
            placeholder_image_url=settings.fetch.placeholder_image_url,
            text_replacer=TextReplacer.from_settings(settings),
            page_timeout=settings.fetch.request_timeout,
            user_agent=settings.fetch.user_agent,
        )

    async def extract(self, item: Mapping[str, Any], feed_url: str) -> CandidateItem:
        """Extract a candidate from one raw item.

        Raises:
            ValidationError: when the item has no title or no link
        """
        title = first_present(item, TITLE_FIELDS, text_value) or ""
        link = first_present(item, LINK_FIELDS, link_value) or ""
        published = self._extract_date(item)
        raw_body = first_present(item, BODY_FIELDS, text_value) or ""

        image = await self.find_image(item, raw_body, link)
        has_real_image = bool(image)
        if image:
            image = self.absolutize(image, feed_url)
        else:
            image = self.placeholder_image_url

        title = self.text_replacer.apply(clean_text(title))
        content = self.text_replacer.apply(clean_text(raw_body))

        if not title:
            raise ValidationError("Feed item has no title", field_name="title",
                                  error_code=ErrorCode.VALIDATION_REQUIRED_FIELD)
        if not link:
            raise ValidationError(f"Feed item '{title[:80]}' has no link", field_name="link",
                                  error_code=ErrorCode.VALIDATION_REQUIRED_FIELD)

        return CandidateItem(
            title=title,
            link=link,
            content=content,
            published_date=published,
            image=image,
            has_real_image=has_real_image,
            raw_content=raw_body,
        )

    def _extract_date(self, item: Mapping[str, Any]):
        for key in DATE_FIELDS:
            # feedparser exposes a pre-parsed struct_time next to the string
            for candidate in (item.get(f"{key}_parsed"), item.get(key)):
                if candidate is None:
                    continue
                parsed = date_value(candidate)
                if parsed:
                    return parsed
        return None

    async def find_image(self, item: Mapping[str, Any], raw_body: str, link: str) -> Optional[str]:
        """Run the image cascade; None when nothing was found."""
        image = first_present(item, IMAGE_FIELDS, image_value)
        if image:
            return image

        image = self.image_from_body(raw_body)
        if image:
            return image

        if link:
            return await self.image_from_article_page(link)
        return None

    def image_from_body(self, raw_body: str) -> Optional[str]:
        if not raw_body:
            return None

        soup = BeautifulSoup(raw_body, "html.parser")

        img = soup.find("img", src=True)
        if img and img["src"].strip():
            return img["src"].strip()

        match = BARE_IMAGE_URL_RE.search(raw_body)
        if match:
            return match.group(0)

        lazy = soup.find(attrs={"data-src": True})
        if lazy and lazy["data-src"].strip():
            return lazy["data-src"].strip()

        match = CSS_BACKGROUND_RE.search(raw_body)
        if match:
            return match.group(1).strip()

        return None

    async def image_from_article_page(self, link: str) -> Optional[str]:
        """Scan the original article page; any failure means no image."""
        html = await self._fetch_page_html(link)
        if not html:
            return None

        soup = BeautifulSoup(html, "html.parser")
        for attrs in ({"property": "og:image"}, {"name": "twitter:image"}, {"property": "twitter:image"}):
            meta = soup.find("meta", attrs=attrs)
            if meta and meta.get("content"):
                return self.absolutize(meta["content"].strip(), link)

        img = soup.find("img", src=True)
        if img and img["src"].strip():
            return self.absolutize(img["src"].strip(), link)
        return None

    async def _fetch_page_html(self, url: str) -> Optional[str]:
        timeout = aiohttp.ClientTimeout(total=self.page_timeout)
        headers = {"User-Agent": self.user_agent}
        try:
            connector = aiohttp.TCPConnector(ssl=self.ssl_context)
            async with aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        self.logger.debug(f"Article page returned {response.status}: {url}")
                        return None
                    return await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.debug(f"Could not fetch article page {url}: {e}")
            return None

    @staticmethod
    def absolutize(image_url: str, base_url: str) -> str:
        """Resolve a relative image URL against the host of ``base_url``."""
        parsed_image = urlparse(image_url)
        if parsed_image.scheme in ("http", "https"):
            return image_url

        base = urlparse(base_url)
        if not base.scheme or not base.netloc:
            return image_url
        return urljoin(f"{base.scheme}://{base.netloc}/", image_url)
