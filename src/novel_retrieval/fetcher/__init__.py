"""Page fetching with retries and encoding normalization."""

from novel_retrieval.fetcher.base import BaseFetcher, FetchResult
from novel_retrieval.fetcher.encoding import decode_html
from novel_retrieval.fetcher.http_fetcher import HttpFetcher

__all__ = [
    "BaseFetcher",
    "FetchResult",
    "HttpFetcher",
    "decode_html",
]
