"""
FeedPress Data Models
=====================

Pydantic data models for feed sources, categories, articles and indexing
queue items. These correspond to the database schema and provide validation,
serialization and type hints.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass
from pydantic import BaseModel, Field, field_validator
import json

MAX_ERROR_LOG_ENTRIES = 50


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps read back from SQLite as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RewriteStyle(str, Enum):
    """AI rewrite styles."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    FORMAL = "formal"
    CREATIVE = "creative"


class LogEntryType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class NotificationType(str, Enum):
    """Indexing notification types."""

    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def api_value(self) -> str:
        """Value expected by the indexing API."""
        return "URL_UPDATED" if self is NotificationType.UPDATED else "URL_DELETED"


class QueueStatus(str, Enum):
    """Indexing queue item states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (QueueStatus.COMPLETED, QueueStatus.FAILED)


class FeedSourceSettings(BaseModel):
    """Per-feed processing settings."""

    enable_ai_rewrite: bool = Field(default=True, description="Rewrite bodies with AI")
    ai_rewrite_style: RewriteStyle = Field(default=RewriteStyle.PROFESSIONAL, description="Rewrite style")
    include_original_source: bool = Field(default=True, description="Append source attribution")
    auto_publish: bool = Field(default=True, description="Publish instead of saving drafts")
    publish_delay: int = Field(default=0, ge=0, description="Minutes to pause between publishes")
    enable_auto_category: bool = Field(default=True, description="Classify category automatically")
    require_image: bool = Field(default=True, description="Skip items without a real image")


class FeedLogEntry(BaseModel):
    """One entry in a feed's rolling error log."""

    message: str
    timestamp: datetime = Field(default_factory=utc_now)
    type: LogEntryType = LogEntryType.ERROR

    model_config = {"json_encoders": {datetime: lambda v: v.isoformat() if v else None}}


class FeedSource(BaseModel):
    """Subscribed feed with its configuration and runtime counters."""

    id: Optional[int] = Field(default=None, description="Database primary key")
    name: str = Field(..., min_length=1, max_length=255, description="Feed display name")
    feed_url: str = Field(..., min_length=1, description="Feed endpoint URL")
    default_author: str = Field(..., min_length=1, description="Author assigned to created articles")
    is_active: bool = Field(default=True, description="Whether the feed is swept")
    min_content_length: int = Field(default=100, ge=50, description="Minimum body length in characters")
    max_posts_per_day: int = Field(default=5, ge=1, le=50, description="Daily publish quota")
    posts_published_today: int = Field(default=0, ge=0)
    total_posts_published: int = Field(default=0, ge=0)
    last_fetched: Optional[datetime] = Field(default=None)
    last_published: Optional[datetime] = Field(default=None)
    error_log: List[FeedLogEntry] = Field(default_factory=list)
    settings: FeedSourceSettings = Field(default_factory=FeedSourceSettings)
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    @field_validator("last_fetched", "last_published", "created_at")
    @classmethod
    def normalize_timezone(cls, v):
        return as_utc(v)

    @field_validator("error_log")
    @classmethod
    def cap_error_log(cls, v):
        return v[-MAX_ERROR_LOG_ENTRIES:]

    def reset_daily_count_if_needed(self, now: Optional[datetime] = None) -> bool:
        """Zero today's counter when the UTC calendar day changed since the last publish.

        A feed that never published counts as a day already rolled over.

        Returns:
            True if the counter was reset
        """
        now = as_utc(now) or utc_now()
        rolled_over = self.last_published is None or self.last_published.date() != now.date()
        if rolled_over and self.posts_published_today:
            self.posts_published_today = 0
            return True
        return False

    def can_publish_today(self) -> bool:
        return self.posts_published_today < self.max_posts_per_day

    def record_publish(self, now: Optional[datetime] = None) -> None:
        self.posts_published_today += 1
        self.total_posts_published += 1
        self.last_published = as_utc(now) or utc_now()

    def add_log_entry(
        self,
        message: str,
        entry_type: LogEntryType = LogEntryType.ERROR,
        now: Optional[datetime] = None,
    ) -> FeedLogEntry:
        """Append to the rolling log, dropping the oldest entries past the cap."""
        entry = FeedLogEntry(message=message, timestamp=now or utc_now(), type=entry_type)
        self.error_log.append(entry)
        if len(self.error_log) > MAX_ERROR_LOG_ENTRIES:
            self.error_log = self.error_log[-MAX_ERROR_LOG_ENTRIES:]
        return entry

    def error_log_json(self) -> str:
        return json.dumps([entry.model_dump(mode="json") for entry in self.error_log])

    def settings_json(self) -> str:
        return self.settings.model_dump_json()

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "FeedSource":
        """Create FeedSource from database row with JSON parsing."""
        data = dict(row)
        if isinstance(data.get("error_log"), str):
            data["error_log"] = json.loads(data["error_log"] or "[]")
        if isinstance(data.get("settings"), str):
            data["settings"] = json.loads(data["settings"] or "{}")
        data["is_active"] = bool(data.get("is_active", True))
        return cls(**data)

    model_config = {"json_encoders": {datetime: lambda v: v.isoformat() if v else None}}

    def __str__(self) -> str:
        return f"FeedSource({self.name}:{self.feed_url})"


class Category(BaseModel):
    """Article category."""

    id: Optional[int] = Field(default=None, description="Database primary key")
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: str = Field(default="", description="Category description shown to the classifier")
    display_order: int = Field(default=0, description="Position in category listings")
    is_active: bool = Field(default=True)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "Category":
        data = dict(row)
        data.pop("created_at", None)
        data["is_active"] = bool(data.get("is_active", True))
        data["description"] = data.get("description") or ""
        return cls(**data)

    def __str__(self) -> str:
        return f"Category({self.name})"


class Article(BaseModel):
    """Article created from a feed item."""

    id: Optional[int] = Field(default=None, description="Database primary key")
    slug: str = Field(..., min_length=1, description="Globally unique URL slug")
    title: str = Field(..., min_length=1, max_length=1000, description="Article title")
    content: str = Field(..., description="Article body")
    excerpt: str = Field(default="", description="Short plain-text excerpt")
    category_id: Optional[int] = Field(default=None)
    author: Optional[str] = Field(default=None)
    featured_image: Optional[str] = Field(default=None)
    status: ArticleStatus = Field(default=ArticleStatus.DRAFT)
    tags: List[str] = Field(default_factory=list)
    seo_title: Optional[str] = Field(default=None, max_length=60)
    seo_description: Optional[str] = Field(default=None, max_length=160)
    source_url: Optional[str] = Field(default=None, description="Link of the originating feed item")
    feed_source_id: Optional[int] = Field(default=None)
    published_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    @field_validator("published_at", "created_at")
    @classmethod
    def normalize_timezone(cls, v):
        return as_utc(v)

    def tags_json(self) -> str:
        return json.dumps(self.tags)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "Article":
        data = dict(row)
        if isinstance(data.get("tags"), str):
            data["tags"] = json.loads(data["tags"] or "[]")
        data["excerpt"] = data.get("excerpt") or ""
        return cls(**data)

    model_config = {"json_encoders": {datetime: lambda v: v.isoformat() if v else None}}

    def __str__(self) -> str:
        return f"Article({self.title[:50]})"


class QueueItem(BaseModel):
    """Persisted indexing notification intent."""

    id: Optional[int] = Field(default=None, description="Queue item ID")
    article_id: Optional[int] = Field(default=None, description="Referenced article")
    url: str = Field(..., min_length=1, description="Public article URL")
    type: NotificationType = Field(default=NotificationType.UPDATED)
    status: QueueStatus = Field(default=QueueStatus.PENDING)
    retry_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    last_error: Optional[str] = Field(default=None)
    error_type: Optional[str] = Field(default=None, description="Provider error classification")
    added_at: datetime = Field(default_factory=utc_now)
    processed_at: Optional[datetime] = Field(default=None)

    @field_validator("added_at", "processed_at")
    @classmethod
    def normalize_timezone(cls, v):
        return as_utc(v)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "QueueItem":
        data = dict(row)
        data.pop("article_title", None)
        return cls(**data)

    model_config = {"json_encoders": {datetime: lambda v: v.isoformat() if v else None}}

    def __str__(self) -> str:
        return f"QueueItem({self.id}:{self.status.value}:{self.url})"


@dataclass
class CandidateItem:
    """One feed item after extraction. Never persisted."""

    title: str
    link: str
    content: str
    published_date: Optional[datetime] = None
    image: Optional[str] = None
    has_real_image: bool = False
    raw_content: str = ""

    @property
    def content_preview(self) -> str:
        return self.content[:200] + ("..." if len(self.content) > 200 else "")


@dataclass
class TextReplacementRule:
    """Literal find/replace rule applied to extracted text."""

    find: str
    replace: str
    is_active: bool = True
