"""
SEO field builders for created articles.
"""

from typing import List

from ..ingestion.content_cleaner import clean_text, strip_source_attribution

SEO_TITLE_MAX = 60
SEO_TITLE_CUT = 57
SEO_DESCRIPTION_CUT = 157
EXCERPT_LENGTH = 300
MAX_TAGS = 5

COMMON_TAGS = (
    "news", "breaking", "update", "latest", "technology", "politics",
    "business", "sports", "entertainment", "health", "science", "world",
)


def seo_title(title: str) -> str:
    """Title capped at 60 characters, ellipsized when cut."""
    if len(title) > SEO_TITLE_MAX:
        return title[:SEO_TITLE_CUT] + "..."
    return title


def seo_description(content: str) -> str:
    """Plain-text description capped at 160 characters.

    The source attribution suffix is dropped before cleaning so it never
    eats into the description.
    """
    text = clean_text(strip_source_attribution(content))
    if len(text) > SEO_DESCRIPTION_CUT:
        return text[:SEO_DESCRIPTION_CUT] + "..."
    return text


def extract_tags(title: str, content: str) -> List[str]:
    text = f"{title} {content}".lower()
    return [tag for tag in COMMON_TAGS if tag in text][:MAX_TAGS]


def build_excerpt(content: str) -> str:
    return clean_text(strip_source_attribution(content))[:EXCERPT_LENGTH]
