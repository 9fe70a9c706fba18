"""Base class for page fetchers."""

import asyncio
import random
from abc import ABC, abstractmethod
from email.utils import parsedate_to_datetime

from pydantic import BaseModel

from novel_retrieval.config import FetcherConfig
from novel_retrieval.errors import EncodingError, HttpError, NetworkError
from novel_retrieval.fetcher.encoding import decode_html

_MAX_RETRY_DELAY = 60.0  # Never sleep longer than this on a single retry


class FetchResult(BaseModel):
    """Result of fetching a page."""

    url: str
    final_url: str  # After redirects
    content: bytes = b""
    text: str = ""
    encoding: str | None = None
    content_type: str | None = None
    status_code: int
    error: str | None = None
    retry_after: float | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.status_code >= 200 and self.status_code < 400 and not self.error


class BaseFetcher(ABC):
    """Abstract base class for page fetchers."""

    def __init__(self, config: FetcherConfig):
        self.config = config

    @abstractmethod
    async def fetch(self, url: str) -> FetchResult:
        """Make a single request and return the raw response."""
        pass

    async def fetch_page(self, url: str, encoding_hint: str | None = None) -> FetchResult:
        """Fetch a page with retries and decode it to text.

        Raises:
            NetworkError: No response after all retries.
            HttpError: A non-success status after all retries.
            EncodingError: The body could not be decoded.
        """
        result = await self.fetch_with_retry(
            url, self.config.max_retries, self.config.retry_base_delay
        )
        if result.status_code == 0:
            raise NetworkError(url, result.error or "no response")
        if not result.success:
            raise HttpError(url, result.status_code)

        try:
            text, encoding = decode_html(result.content, result.content_type, encoding_hint)
        except UnicodeDecodeError as e:
            raise EncodingError(url, f"cannot decode response: {e.reason}") from e

        result.text = text
        result.encoding = encoding
        return result

    async def fetch_with_retry(
        self, url: str, max_retries: int = 3, base_delay: float = 0.5
    ) -> FetchResult:
        """Fetch with exponential backoff on transient errors."""
        result = FetchResult(url=url, final_url=url, status_code=0, error="no attempts")
        for attempt in range(max_retries + 1):
            result = await self.fetch(url)
            result.attempts = attempt + 1
            if result.success:
                return result
            if not self._is_retryable(result):
                return result
            if attempt < max_retries:
                delay = base_delay * (2 ** attempt)
                delay += random.uniform(0, delay / 4)
                if result.retry_after is not None:
                    delay = max(delay, result.retry_after)
                delay = min(delay, _MAX_RETRY_DELAY)
                await asyncio.sleep(delay)
        return result

    @staticmethod
    def _parse_retry_after(header_value: str | None) -> float | None:
        """Parse a Retry-After header value into seconds.

        Supports both delta-seconds (e.g. "120") and HTTP-date formats.
        Returns None if the header is missing or unparseable.
        """
        if not header_value:
            return None
        try:
            return max(0.0, float(header_value))
        except ValueError:
            pass
        try:
            from datetime import datetime, timezone

            dt = parsedate_to_datetime(header_value)
            delta = (dt - datetime.now(timezone.utc)).total_seconds()
            return max(0.0, delta)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _is_retryable(result: FetchResult) -> bool:
        """Check if a failed fetch should be retried."""
        if result.status_code == 429 or result.status_code >= 500:
            return True
        # Connection/timeout errors carry status_code 0 and an error message
        if result.status_code == 0 and result.error:
            return True
        return False

    @abstractmethod
    async def __aenter__(self):
        """Async context manager entry."""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        pass
