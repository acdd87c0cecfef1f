"""
Indexing Notifier
=================

Publishes URL notifications to the Google Indexing API with a service-account
credential and classifies failures for operator diagnosis. Classification
never changes retry policy; every failure raises ``NotifierError``.
"""

import asyncio
import threading
from typing import Any, Callable, Dict, Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
import requests

from .stats import IndexingStats, MemoryIndexingStats
from ..database.models import NotificationType
from ..utils.exceptions import ErrorCode, NotifierError
from ..utils.logging import get_logger_for_component
from ..utils.validators import validate_url

INDEXING_ENDPOINT = "https://indexing.googleapis.com/v3/urlNotifications:publish"
INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"

ERROR_AUTHENTICATION = "authentication"
ERROR_AUTHORIZATION = "authorization"
ERROR_RATE_LIMIT = "rateLimit"
ERROR_INVALID_URL = "invalidUrl"
ERROR_PRIVATE_KEY = "privateKeyError"
ERROR_UNKNOWN = "unknown"

STATUS_ERROR_TYPES = {
    401: ERROR_AUTHENTICATION,
    403: ERROR_AUTHORIZATION,
    429: ERROR_RATE_LIMIT,
    400: ERROR_INVALID_URL,
}

ERROR_CODES = {
    ERROR_AUTHENTICATION: ErrorCode.INDEXING_AUTHENTICATION,
    ERROR_AUTHORIZATION: ErrorCode.INDEXING_AUTHORIZATION,
    ERROR_RATE_LIMIT: ErrorCode.INDEXING_RATE_LIMIT,
    ERROR_INVALID_URL: ErrorCode.INDEXING_INVALID_URL,
    ERROR_PRIVATE_KEY: ErrorCode.INDEXING_PRIVATE_KEY,
}

PRIVATE_KEY_MARKERS = (
    "DECODER routines::unsupported",
    "private key",
    "private_key",
    "Could not deserialize key data",
    "No key could be detected",
)


def classify_status(status_code: Optional[int]) -> str:
    return STATUS_ERROR_TYPES.get(status_code, ERROR_UNKNOWN)


def is_private_key_error(error: Exception) -> bool:
    text = str(error)
    return any(marker.lower() in text.lower() for marker in PRIVATE_KEY_MARKERS)


class IndexingNotifier:
    """Sends ``URL_UPDATED``/``URL_DELETED`` notifications."""

    def __init__(
        self,
        service_account_info: Optional[Dict[str, Any]],
        stats: Optional[IndexingStats] = None,
        timeout: float = 30.0,
        session_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ):
        """Initialize notifier.

        Args:
            service_account_info: Parsed service-account JSON, or None when
                indexing is not configured
            stats: Running totals updated after each success
            timeout: Request timeout in seconds
            session_factory: Builds an authorized session from the
                service-account info; tests substitute a fake
        """
        self.service_account_info = service_account_info
        self.stats = stats or MemoryIndexingStats()
        self.timeout = timeout
        self.session_factory = session_factory or self._build_session
        self.error_counts: Dict[str, int] = {}
        self._session = None
        self._session_lock = threading.Lock()
        self.logger = get_logger_for_component("indexing_notifier")

    @classmethod
    def from_settings(cls, settings, stats: Optional[IndexingStats] = None) -> "IndexingNotifier":
        return cls(
            service_account_info=settings.indexing.get_service_account_info(),
            stats=stats,
            timeout=settings.indexing.request_timeout,
        )

    @property
    def project_id(self) -> Optional[str]:
        return (self.service_account_info or {}).get("project_id")

    @staticmethod
    def _build_session(info: Dict[str, Any]) -> AuthorizedSession:
        credentials = service_account.Credentials.from_service_account_info(info, scopes=[INDEXING_SCOPE])
        return AuthorizedSession(credentials)

    def _get_session(self):
        with self._session_lock:
            if self._session is None:
                try:
                    self._session = self.session_factory(self.service_account_info)
                except (ValueError, GoogleAuthError) as e:
                    raise self._failure(f"Service account credential is unusable: {e}",
                                        ERROR_PRIVATE_KEY if is_private_key_error(e) else ERROR_UNKNOWN)
            return self._session

    def _failure(self, message: str, error_type: str, url: Optional[str] = None,
                 status_code: Optional[int] = None) -> NotifierError:
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1
        error_code = ERROR_CODES.get(error_type, ErrorCode.INDEXING_UNKNOWN)
        return NotifierError(message, error_type=error_type, url=url,
                             status_code=status_code, error_code=error_code)

    def _publish(self, url: str, notification_type: NotificationType) -> Dict[str, Any]:
        session = self._get_session()
        try:
            response = session.post(
                INDEXING_ENDPOINT,
                json={"url": url, "type": notification_type.api_value},
                timeout=self.timeout,
            )
        except RefreshError as e:
            error_type = ERROR_PRIVATE_KEY if is_private_key_error(e) else ERROR_AUTHENTICATION
            raise self._failure(f"Could not obtain access token: {e}", error_type, url=url)
        except (ValueError, GoogleAuthError) as e:
            error_type = ERROR_PRIVATE_KEY if is_private_key_error(e) else ERROR_UNKNOWN
            raise self._failure(f"Credential error: {e}", error_type, url=url)
        except requests.RequestException as e:
            raise self._failure(f"Indexing request failed: {e}", ERROR_UNKNOWN, url=url)

        if response.status_code >= 400:
            raise self._failure(
                f"Indexing API returned {response.status_code}: {response.text[:200]}",
                classify_status(response.status_code),
                url=url,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return {}

    async def notify(self, url: str, notification_type: NotificationType = NotificationType.UPDATED) -> Dict[str, Any]:
        """Publish one notification.

        Raises:
            NotifierError: invalid URL, missing credential or API failure
        """
        if not validate_url(url):
            raise self._failure(f"Malformed URL: {url}", ERROR_INVALID_URL, url=url)
        if not self.service_account_info:
            raise NotifierError("Indexing credential is not configured", error_type=ERROR_UNKNOWN,
                                url=url, error_code=ErrorCode.INDEXING_DISABLED)

        notification_type = NotificationType(notification_type)
        data = await asyncio.to_thread(self._publish, url, notification_type)

        self.stats.record_success()
        self.logger.info(f"Submitted {notification_type.api_value} for {url}")
        return data

    def get_stats(self, enabled: bool) -> Dict[str, Any]:
        snapshot = self.stats.snapshot()
        return {
            "enabled": enabled,
            "totalIndexed": snapshot.total_indexed,
            "lastIndexedAt": snapshot.last_indexed_at.isoformat() if snapshot.last_indexed_at else None,
            "projectId": self.project_id,
            "errorCounts": dict(self.error_counts),
        }
