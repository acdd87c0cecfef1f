"""
Feed Field Adapters
===================

Feed items carry the same field in several shapes depending on the format
and parser: a plain string, a structured mapping (``{"value": ...}``,
``{"#text": ...}``, ``{"href": ...}``, ``{"url": ...}``) or a list of either.
Each adapter below is dispatched on the runtime type of the value and reduces
it to a plain string.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from functools import singledispatch
from typing import Any, Iterable, Mapping, Optional
import calendar
import time

TEXT_KEYS = ("value", "#text", "_")
LINK_KEYS = ("href", "@_href", "url", "@_url")
IMAGE_KEYS = ("url", "@_url", "href", "@_href", "src")


# --- text (titles, bodies) ---------------------------------------------------


@singledispatch
def text_value(value: Any) -> str:
    return ""


@text_value.register(str)
def _text_from_str(value: str) -> str:
    return value


@text_value.register(dict)
def _text_from_mapping(value: Mapping) -> str:
    for key in TEXT_KEYS:
        candidate = value.get(key)
        if isinstance(candidate, str) and candidate:
            return candidate
    return ""


@text_value.register(list)
def _text_from_list(value: list) -> str:
    # Prefer HTML bodies when the parser offers several representations
    html_first = sorted(
        value,
        key=lambda v: 0 if isinstance(v, dict) and "html" in str(v.get("type", "")) else 1,
    )
    for candidate in html_first:
        text = text_value(candidate)
        if text:
            return text
    return ""


# --- links -------------------------------------------------------------------


@singledispatch
def link_value(value: Any) -> str:
    return ""


@link_value.register(str)
def _link_from_str(value: str) -> str:
    return value.strip()


@link_value.register(dict)
def _link_from_mapping(value: Mapping) -> str:
    for key in LINK_KEYS:
        candidate = value.get(key)
        if isinstance(candidate, str) and candidate:
            return candidate.strip()
    return text_value(value).strip()


@link_value.register(list)
def _link_from_list(value: list) -> str:
    alternates = [
        v for v in value if isinstance(v, dict) and v.get("rel", "alternate") == "alternate"
    ]
    for candidate in alternates or value:
        link = link_value(candidate)
        if link:
            return link
    return ""


# --- images ------------------------------------------------------------------


@singledispatch
def image_value(value: Any) -> str:
    return ""


@image_value.register(str)
def _image_from_str(value: str) -> str:
    return value.strip()


@image_value.register(dict)
def _image_from_mapping(value: Mapping) -> str:
    media_type = str(value.get("type") or value.get("@_type") or "")
    medium = str(value.get("medium") or value.get("@_medium") or "")
    if media_type and not media_type.startswith("image") and medium != "image":
        return ""

    for key in IMAGE_KEYS:
        candidate = value.get(key)
        if isinstance(candidate, str) and candidate:
            return candidate.strip()

    # media:group nests media:content / media:thumbnail
    for nested_key in ("media:content", "media_content", "media:thumbnail", "media_thumbnail"):
        if nested_key in value:
            nested = image_value(value[nested_key])
            if nested:
                return nested
    return ""


@image_value.register(list)
def _image_from_list(value: list) -> str:
    for candidate in value:
        url = image_value(candidate)
        if url:
            return url
    return ""


# --- dates -------------------------------------------------------------------


@singledispatch
def date_value(value: Any) -> Optional[datetime]:
    return None


@date_value.register(datetime)
def _date_from_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@date_value.register(time.struct_time)
def _date_from_struct_time(value: time.struct_time) -> datetime:
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


@date_value.register(str)
def _date_from_str(value: str) -> Optional[datetime]:
    value = value.strip()
    if not value:
        return None
    try:
        return _date_from_datetime(parsedate_to_datetime(value))
    except (TypeError, ValueError):
        pass
    try:
        return _date_from_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


@date_value.register(dict)
def _date_from_mapping(value: Mapping) -> Optional[datetime]:
    return date_value(text_value(value))


# --- item helpers ------------------------------------------------------------


def first_present(item: Mapping, keys: Iterable[str], adapter) -> Any:
    """Apply ``adapter`` to each present key in order; return the first truthy result."""
    for key in keys:
        raw = item.get(key)
        if raw is None:
            continue
        result = adapter(raw)
        if result:
            return result
    return None
