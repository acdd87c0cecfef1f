"""
FeedPress Custom Exceptions
===========================

Exception hierarchy for the ingestion and indexing pipeline with error codes,
context information and operator-facing messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_SCHEMA = "D002"
    DATABASE_CONSTRAINT = "D003"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"
    STORAGE_UNAVAILABLE = "D007"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_HTTP_STATUS = "F005"
    FEED_NOT_FOUND = "F006"

    # Content processing errors (P001-P099)
    CONTENT_INVALID = "P001"
    CONTENT_DUPLICATE = "P002"
    CONTENT_EXTRACTION_FAILED = "P003"
    QUOTA_EXCEEDED = "P004"

    # AI processing errors (A001-A099)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_TIMEOUT = "A004"
    AI_RATE_LIMIT = "A006"
    AI_PROVIDER_UNAVAILABLE = "A008"
    AI_INVALID_CREDENTIALS = "A009"
    AI_CONNECTION_ERROR = "A010"
    CLASSIFIER_FAILED = "A020"
    REWRITE_FAILED = "A021"

    # Indexing errors (I001-I099)
    INDEXING_AUTHENTICATION = "I001"
    INDEXING_AUTHORIZATION = "I002"
    INDEXING_RATE_LIMIT = "I003"
    INDEXING_INVALID_URL = "I004"
    INDEXING_PRIVATE_KEY = "I005"
    INDEXING_UNKNOWN = "I006"
    INDEXING_DISABLED = "I007"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    VALIDATION_OUT_OF_RANGE = "V003"

    # Resource management errors (R001-R099)
    DUPLICATE_RESOURCE = "R001"
    RESOURCE_NOT_FOUND = "R002"

    # System errors (S001-S099)
    SYSTEM_PERMISSION_DENIED = "S002"
    SYSTEM_MEMORY_ERROR = "S004"


class FeedPressError(Exception):
    """Base exception for all FeedPress errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize FeedPress error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: Operator-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _passthrough(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: v
        for k, v in kwargs.items()
        if k not in ["context", "error_code", "user_message", "recoverable"]
    }


class ConfigurationError(FeedPressError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            recoverable=kwargs.get("recoverable", False),
            **_passthrough(kwargs),
        )


class DatabaseError(FeedPressError):
    """Database-related errors."""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """Initialize database error.

        Args:
            message: Error message
            query: SQL query that caused the error
            **kwargs: Additional arguments for FeedPressError
        """
        context = kwargs.get("context", {})
        if query:
            context["query"] = query

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DATABASE_CONNECTION),
            context=context,
            user_message=kwargs.get("user_message", "Database operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs),
        )


class StorageUnavailableError(DatabaseError):
    """Storage cannot be read or written.

    Unlike every other pipeline error this one is not isolated per item or per
    feed: it halts the current operation and reaches the caller of the sweep
    or drain.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.STORAGE_UNAVAILABLE)
        kwargs.setdefault("user_message", "Storage is unavailable")
        super().__init__(message, **kwargs)


class FeedError(FeedPressError):
    """Feed ingestion and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_FETCH_TIMEOUT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs),
        )


class FetchError(FeedError):
    """Feed unreachable, non-2xx, timed out or unparsable."""

    def __init__(
        self,
        message: str,
        feed_url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if status_code is not None:
            context["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, feed_url=feed_url, context=context, **kwargs)


class ProcessingError(FeedPressError):
    """Content processing errors."""

    def __init__(self, message: str, feed_id: Optional[int] = None, **kwargs):
        context = kwargs.get("context", {})
        if feed_id:
            context["feed_id"] = feed_id

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONTENT_INVALID),
            context=context,
            user_message=kwargs.get("user_message", "Item processing failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs),
        )


class DuplicateError(ProcessingError):
    """An article with the same title or source URL already exists."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.CONTENT_DUPLICATE)
        super().__init__(message, **kwargs)


class QuotaExceeded(ProcessingError):
    """The feed reached its daily publish quota."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.QUOTA_EXCEEDED)
        super().__init__(message, **kwargs)


class AIError(FeedPressError):
    """AI processing and API errors."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        """Initialize AI error.

        Args:
            message: Error message
            provider: AI provider name (e.g., 'gemini', 'groq')
            **kwargs: Additional arguments for FeedPressError
        """
        context = kwargs.get("context", {})
        if provider:
            context["ai_provider"] = provider

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.AI_API_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", "AI processing temporarily unavailable"
            ),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs),
        )


class ClassifierError(AIError):
    """Category classification failed; absorbed by the fallback classifier."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.CLASSIFIER_FAILED)
        super().__init__(message, **kwargs)


class RewriteError(AIError):
    """Body rewrite failed; absorbed by the rewriter."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.REWRITE_FAILED)
        super().__init__(message, **kwargs)


class NotifierError(FeedPressError):
    """Indexing API call failed.

    ``error_type`` carries the provider error classification
    (authentication, authorization, rateLimit, invalidUrl, privateKeyError,
    unknown) for the queue item's diagnostic fields.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.get("context", {})
        context["error_type"] = error_type
        if url:
            context["url"] = url
        if status_code is not None:
            context["status_code"] = status_code
        self.error_type = error_type
        self.status_code = status_code

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.INDEXING_UNKNOWN),
            context=context,
            user_message=kwargs.get("user_message", f"Indexing failed: {message}"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs),
        )


class ValidationError(FeedPressError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for FeedPressError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_passthrough(kwargs),
        )


# Exception handling utilities


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> FeedPressError:
    """Convert generic exceptions to FeedPress exceptions with proper logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        FeedPress exception with proper categorization
    """
    context = context or {}
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    if isinstance(exception, FeedPressError):
        logger.error(f"Operation '{operation}' failed", extra=exception.to_dict())
        return exception

    elif isinstance(exception, (ConnectionError, TimeoutError)):
        error = FeedPressError(
            message=f"Network error during {operation}: {str(exception)}",
            error_code=ErrorCode.FEED_NETWORK_ERROR,
            context=context,
            user_message="Network connection failed",
            recoverable=True,
        )

    elif isinstance(exception, PermissionError):
        error = FeedPressError(
            message=f"Permission denied during {operation}: {str(exception)}",
            error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            context=context,
            user_message="Access denied",
            recoverable=False,
        )

    elif isinstance(exception, MemoryError):
        error = FeedPressError(
            message=f"Memory exhausted during {operation}: {str(exception)}",
            error_code=ErrorCode.SYSTEM_MEMORY_ERROR,
            context=context,
            user_message="System resources exhausted",
            recoverable=True,
        )

    else:
        error = FeedPressError(
            message=f"Unexpected error during {operation}: {str(exception)}",
            context=context,
            user_message="An unexpected error occurred",
            recoverable=True,
        )

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error
