"""
Content Cleaner
===============

Plain-text normalization for feed titles and bodies: drops script and style
blocks, strips the remaining tags, decodes the common HTML entities and
collapses whitespace.
"""

import re

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

ENTITY_REPLACEMENTS = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
)

SOURCE_SUFFIX_RE = re.compile(r"\n\nSource:.*$", re.DOTALL)


def clean_text(text: str) -> str:
    """Return ``text`` as single-spaced plain text."""
    if not text:
        return ""
    if not isinstance(text, str):
        text = str(text)

    text = _SCRIPT_RE.sub("", text)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    for entity, replacement in ENTITY_REPLACEMENTS:
        text = text.replace(entity, replacement)
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_source_attribution(text: str) -> str:
    """Remove a trailing ``\\n\\nSource: ...`` attribution block."""
    return SOURCE_SUFFIX_RE.sub("", text or "")


def source_attribution(link: str) -> str:
    return f"\n\nSource: [{link}]({link})"
