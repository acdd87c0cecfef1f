"""
FeedPress Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

import json
from pathlib import Path
from typing import List, Optional, Dict, Any
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class AIProvider(str, Enum):
    """Available AI providers."""

    GEMINI = "gemini"
    GROQ = "groq"
    OPENROUTER = "openrouter"


class LogLevel(str, Enum):
    """Available log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class QueueBackend(str, Enum):
    """Indexing queue storage strategies."""

    DATABASE = "database"
    MEMORY = "memory"
    AUTO = "auto"


class DatabaseSettings(BaseModel):
    """Database configuration."""

    path: str = Field(default="data/feedpress.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/feedpress.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FetchSettings(BaseModel):
    """Outbound HTTP settings for feeds, article pages and image checks."""

    request_timeout: float = Field(default=10.0, gt=0, le=120, description="Feed request timeout in seconds")
    image_check_timeout: float = Field(default=5.0, gt=0, le=60, description="Image HEAD check timeout in seconds")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; RSSBot/1.0)",
        description="User-Agent header sent to feed endpoints",
    )
    placeholder_image_url: str = Field(
        default="https://via.placeholder.com/800x400?text=No+Image",
        description="Image assigned when no real image is discoverable",
    )


class AISettings(BaseModel):
    """AI providers configuration."""

    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key")

    gemini_model: str = Field(default="gemini-1.5-flash", description="Gemini model")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Groq model")
    openrouter_model: str = Field(
        default="meta-llama/llama-3.2-3b-instruct:free", description="OpenRouter model"
    )

    temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="AI temperature setting")
    max_tokens: int = Field(default=2000, ge=50, le=8000, description="Maximum tokens per response")
    request_timeout: float = Field(default=30.0, gt=0, le=300, description="AI request timeout in seconds")

    provider_order: List[AIProvider] = Field(
        default_factory=lambda: [AIProvider.GEMINI, AIProvider.GROQ, AIProvider.OPENROUTER],
        description="Provider priority order",
    )

    def get_api_key(self, provider: AIProvider) -> Optional[str]:
        """Get API key for specified provider."""
        if provider == AIProvider.GEMINI:
            return self.gemini_api_key
        elif provider == AIProvider.GROQ:
            return self.groq_api_key
        elif provider == AIProvider.OPENROUTER:
            return self.openrouter_api_key
        return None

    def get_model(self, provider: AIProvider) -> str:
        if provider == AIProvider.GEMINI:
            return self.gemini_model
        elif provider == AIProvider.GROQ:
            return self.groq_model
        return self.openrouter_model

    def has_credentials(self) -> bool:
        """True when at least one provider has an API key."""
        return any(self.get_api_key(p) for p in AIProvider)


class FeatureSettings(BaseModel):
    """Site-wide feature flags layered over per-feed settings."""

    auto_category_enabled: bool = Field(default=True, description="Allow automatic categorization")
    ai_rewrite_enabled: bool = Field(default=True, description="Allow AI rewriting")
    text_replacements_enabled: bool = Field(default=False, description="Apply text replacement rules")


class TextReplacementRuleSettings(BaseModel):
    """One find/replace rule applied to extracted titles and bodies."""

    find: str = ""
    replace: str = ""
    is_active: bool = True


class IndexingSettings(BaseModel):
    """Search indexing notification settings."""

    enabled: bool = Field(default=False, description="Enqueue indexing notifications")
    service_account_json: Optional[str] = Field(
        default=None, description="Service account credentials (JSON document)"
    )
    site_url: Optional[str] = Field(default=None, description="Public site base URL")
    queue_backend: QueueBackend = Field(default=QueueBackend.AUTO, description="Queue storage strategy")
    max_retries: int = Field(default=3, ge=0, le=20, description="Retries before an item fails")
    rate_limit_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Pause between processed items, seconds")
    request_timeout: float = Field(default=30.0, gt=0, le=300, description="Indexing API timeout in seconds")
    listing_limit: int = Field(default=50, ge=1, le=1000, description="Queue items returned by listings")

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        if v:
            return v.rstrip("/")
        return v

    def get_service_account_info(self) -> Optional[Dict[str, Any]]:
        """Parse the service account document, or None when not configured."""
        if not self.service_account_json:
            return None
        try:
            return json.loads(self.service_account_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Service account JSON is not valid: {e}",
                config_key="indexing.service_account_json",
                error_code=ErrorCode.CONFIG_INVALID,
            )


class SchedulerSettings(BaseModel):
    """Periodic trigger configuration."""

    sweep_interval_minutes: int = Field(default=30, ge=1, le=1440, description="Minutes between full sweeps")
    daily_reset_hour: int = Field(default=0, ge=0, le=23, description="UTC hour for the daily reset")
    ai_request_delay: float = Field(default=2.0, ge=0.0, le=60.0, description="Pause after each AI rewrite, seconds")

    @field_validator("daily_reset_hour")
    @classmethod
    def validate_hour(cls, v):
        if not (0 <= v <= 23):
            raise ValueError("daily_reset_hour must be between 0 and 23")
        return v


class FeedPressSettings(BaseSettings):
    """Main application settings."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    ai: AISettings = Field(default_factory=AISettings)
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    text_replacements: List[TextReplacementRuleSettings] = Field(default_factory=list)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    app_name: str = Field(default="FeedPress", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "FEEDPRESS_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        try:
            db_path = Path(self.database.path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid database path: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if self.indexing.enabled:
            if not self.indexing.site_url:
                errors.append("Indexing is enabled but indexing.site_url is not set")
            try:
                self.indexing.get_service_account_info()
            except ConfigurationError as e:
                errors.append(e.message)

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID,
            )

    def is_production_mode(self) -> bool:
        return not self.debug and self.environment.lower() == "production"

    def get_effective_log_level(self) -> str:
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> FeedPressSettings:
    """Load settings from environment variables and defaults.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv

    load_dotenv()

    try:
        settings = FeedPressSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}", error_code=ErrorCode.CONFIG_INVALID
        )


_settings: Optional[FeedPressSettings] = None


def get_settings(reload: bool = False) -> FeedPressSettings:
    """Get global settings instance.

    Args:
        reload: Force reload of settings
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
