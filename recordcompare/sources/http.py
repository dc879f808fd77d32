"""Records served as JSON by an HTTP endpoint."""

from typing import Any, Dict, List, Optional

import requests

from ..env import load_settings
from ..logger import get_logger
from ..retry import exponential_backoff, should_retry_http_status
from .base import extract_records


def _is_retryable(exc: Exception) -> bool:
    """Timeouts and connection errors retry; HTTP errors only for retryable statuses."""
    if isinstance(exc, requests.exceptions.HTTPError):
        return exc.response is not None and should_retry_http_status(exc.response.status_code)
    return True


class HttpJsonSource:
    """
    GET a URL returning the full record set as JSON.

    Timeouts, connection errors and retryable statuses (408, 429, 5xx) are
    retried with exponential backoff; other HTTP errors fail at once.
    """

    def __init__(
        self,
        url: str,
        collection: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        base_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        settings = load_settings()
        self.url = url
        self.collection = collection
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.headers = dict(headers or {})
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.name = url
        self._fetch = exponential_backoff(
            max_retries=settings.max_retries if max_retries is None else max_retries,
            base_delay=base_delay,
            exceptions=(
                requests.exceptions.Timeout,
                requests.exceptions.ConnectionError,
                requests.exceptions.HTTPError,
            ),
            retry_if=_is_retryable,
            on_retry=self._log_retry,
        )(self._get_json)

    def _log_retry(self, attempt: int, exc: Exception, delay: float):
        get_logger().warning("HTTP fetch failed, retrying", url=self.url, attempt=attempt, delay=delay, error=str(exc))

    def _get_json(self) -> Any:
        resp = self.session.get(self.url, timeout=self.timeout, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def fetch_all(self) -> List[Any]:
        try:
            return extract_records(self._fetch(), self.collection, origin=self.url)
        finally:
            # A session passed in by the caller stays open.
            if self._owns_session:
                self.session.close()

    def __repr__(self) -> str:
        return f"HttpJsonSource({self.url!r})"
