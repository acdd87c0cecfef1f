"""
Tests for feed field adapters and the content extractor image cascade.
"""

import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from feedpress.ingestion.field_adapters import (
    date_value,
    first_present,
    image_value,
    link_value,
    text_value,
)
from feedpress.utils.exceptions import ValidationError

FEED_URL = "https://feeds.example.com/news/rss.xml"
BODY_PADDING = " Lorem ipsum dolor sit amet, consectetur adipiscing elit." * 3


class TestFieldAdapters:
    def test_text_value_shapes(self):
        assert text_value("plain") == "plain"
        assert text_value({"value": "from value"}) == "from value"
        assert text_value({"#text": "from text node"}) == "from text node"
        assert text_value(None) == ""

    def test_text_value_prefers_html_representation(self):
        value = [
            {"type": "text/plain", "value": "plain body"},
            {"type": "text/html", "value": "<p>html body</p>"},
        ]
        assert text_value(value) == "<p>html body</p>"

    def test_link_value_prefers_alternate(self):
        links = [
            {"rel": "enclosure", "href": "https://cdn.example.com/audio.mp3"},
            {"rel": "alternate", "href": "https://example.com/story"},
        ]
        assert link_value(links) == "https://example.com/story"
        assert link_value({"@_href": " https://example.com/a "}) == "https://example.com/a"

    def test_image_value_skips_non_image_media(self):
        assert image_value({"type": "video/mp4", "url": "https://cdn.example.com/v.mp4"}) == ""
        assert image_value({"medium": "image", "url": "https://cdn.example.com/p"}) == "https://cdn.example.com/p"
        assert image_value([{"type": "audio/mpeg", "url": "x"}, {"url": "https://cdn.example.com/i.jpg"}]) == \
            "https://cdn.example.com/i.jpg"

    def test_image_value_reads_nested_group(self):
        group = {"media:content": [{"url": "https://cdn.example.com/nested.jpg", "type": "image/jpeg"}]}
        assert image_value(group) == "https://cdn.example.com/nested.jpg"

    def test_date_value_formats(self):
        expected = datetime(2025, 6, 10, 8, 30, tzinfo=timezone.utc)
        assert date_value("Tue, 10 Jun 2025 08:30:00 GMT") == expected
        assert date_value("2025-06-10T08:30:00Z") == expected
        assert date_value(time.strptime("2025-06-10 08:30:00", "%Y-%m-%d %H:%M:%S")) == expected
        assert date_value("not a date") is None

    def test_first_present_skips_empty_results(self):
        item = {"title": "", "summary": "fallback"}
        assert first_present(item, ("title", "summary"), text_value) == "fallback"
        assert first_present({}, ("title",), text_value) is None


class TestContentExtractor:
    """Test suite for ContentExtractor."""

    @pytest.mark.asyncio
    async def test_extracts_clean_fields(self, extractor):
        item = {
            "title": "<b>Budget</b> &amp; taxes",
            "link": "https://source.example.com/budget",
            "published": "Tue, 10 Jun 2025 08:30:00 GMT",
            "content": [{"type": "text/html", "value": "<p>The budget passed.</p>" + BODY_PADDING}],
            "media_thumbnail": [{"url": "https://cdn.example.com/thumb.jpg"}],
        }

        candidate = await extractor.extract(item, FEED_URL)

        assert candidate.title == "Budget & taxes"
        assert candidate.link == "https://source.example.com/budget"
        assert candidate.content.startswith("The budget passed.")
        assert "<p>" not in candidate.content
        assert candidate.published_date == datetime(2025, 6, 10, 8, 30, tzinfo=timezone.utc)
        assert candidate.image == "https://cdn.example.com/thumb.jpg"
        assert candidate.has_real_image

    @pytest.mark.asyncio
    async def test_media_field_wins_over_body_image(self, extractor):
        item = {
            "title": "Story",
            "link": "https://source.example.com/story",
            "description": '<img src="https://cdn.example.com/body.jpg">' + BODY_PADDING,
            "enclosures": [{"href": "https://cdn.example.com/enclosure.jpg", "type": "image/jpeg"}],
        }
        candidate = await extractor.extract(item, FEED_URL)
        assert candidate.image == "https://cdn.example.com/enclosure.jpg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, expected",
        [
            ('<p>Lead</p><img alt="x" src="https://cdn.example.com/inline.png">', "https://cdn.example.com/inline.png"),
            ("See https://cdn.example.com/bare/photo.webp?w=800 for details", "https://cdn.example.com/bare/photo.webp?w=800"),
            ('<div data-src="https://cdn.example.com/lazy/photo"></div>', "https://cdn.example.com/lazy/photo"),
            ("<div style=\"background-image: url('https://cdn.example.com/render/bg')\"></div>",
             "https://cdn.example.com/render/bg"),
        ],
    )
    async def test_body_image_cascade(self, extractor, body, expected):
        item = {"title": "Story", "link": "https://source.example.com/story", "description": body}
        candidate = await extractor.extract(item, FEED_URL)
        assert candidate.image == expected
        assert candidate.has_real_image

    @pytest.mark.asyncio
    async def test_relative_image_resolved_against_feed_host(self, extractor):
        item = {
            "title": "Story",
            "link": "https://source.example.com/story",
            "description": '<img src="/images/local.jpg">',
        }
        candidate = await extractor.extract(item, FEED_URL)
        assert candidate.image == "https://feeds.example.com/images/local.jpg"

    @pytest.mark.asyncio
    async def test_article_page_og_image(self, extractor):
        extractor._fetch_page_html = AsyncMock(
            return_value='<html><head><meta property="og:image" content="/og/cover.jpg"></head></html>'
        )
        item = {"title": "Story", "link": "https://source.example.com/story", "description": "No images here"}

        candidate = await extractor.extract(item, FEED_URL)

        extractor._fetch_page_html.assert_awaited_once_with("https://source.example.com/story")
        assert candidate.image == "https://source.example.com/og/cover.jpg"
        assert candidate.has_real_image

    @pytest.mark.asyncio
    async def test_placeholder_when_no_image(self, extractor):
        item = {"title": "Story", "link": "https://source.example.com/story", "description": "Text only"}
        candidate = await extractor.extract(item, FEED_URL)
        assert candidate.image == extractor.placeholder_image_url
        assert not candidate.has_real_image

    @pytest.mark.asyncio
    async def test_missing_title_is_rejected(self, extractor):
        with pytest.raises(ValidationError, match="no title"):
            await extractor.extract({"link": "https://source.example.com/x", "description": "body"}, FEED_URL)

    @pytest.mark.asyncio
    async def test_missing_link_is_rejected(self, extractor):
        with pytest.raises(ValidationError, match="no link"):
            await extractor.extract({"title": "Orphan", "description": "body"}, FEED_URL)
