"""
FeedPress Input Validators
==========================

Validation helpers for feed URLs, article URLs and feed source limits.
"""

import re
from urllib.parse import urlparse, urlunparse
from typing import Optional

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = {"http", "https"}

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate and normalize a feed endpoint URL.

        Args:
            url: URL to validate

        Returns:
            Normalized URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url",
            )

        url = url.strip()
        parsed = urlparse(url)

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                "URL scheme must be http or https",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url",
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url",
            )

        if cls._has_suspicious_patterns(url):
            raise ValidationError(
                "URL contains suspicious patterns",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url",
            )

        return urlunparse(
            parsed._replace(
                scheme=parsed.scheme.lower(),
                netloc=parsed.netloc.lower(),
                path=parsed.path or "/",
                fragment="",
            )
        )

    @classmethod
    def _has_suspicious_patterns(cls, url: str) -> bool:
        suspicious_patterns = [
            r"javascript:",
            r"data:",
            r"file:",
            r"ftp:",
        ]
        url_lower = url.lower()
        return any(re.search(pattern, url_lower) for pattern in suspicious_patterns)


def validate_url(url: Optional[str]) -> bool:
    """Syntactic check: absolute http(s) URL with a host and no whitespace."""
    if not url or not isinstance(url, str):
        return False
    if any(ch.isspace() for ch in url):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in URLValidator.ALLOWED_SCHEMES and bool(parsed.netloc)
