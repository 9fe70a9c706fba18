"""HTTP fetcher backed by httpx."""

import logging

import httpx

from novel_retrieval.config import FetcherConfig
from novel_retrieval.fetcher.base import BaseFetcher, FetchResult

logger = logging.getLogger(__name__)


class HttpFetcher(BaseFetcher):
    """Fetch pages over HTTP(S) with one shared connection pool."""

    def __init__(
        self,
        config: FetcherConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Initialize HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            timeout=self.config.timeout_ms / 1000,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page via HTTP GET, returning the raw body."""
        if not self._client:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Request to %s failed: %r", url, e)
            return FetchResult(
                url=url,
                final_url=url,
                status_code=0,
                error=str(e) or type(e).__name__,
            )

        retry_after: float | None = None
        if response.status_code == 429:
            retry_after = self._parse_retry_after(response.headers.get("retry-after"))

        return FetchResult(
            url=url,
            final_url=str(response.url),
            content=response.content,
            content_type=response.headers.get("content-type"),
            status_code=response.status_code,
            retry_after=retry_after,
        )
