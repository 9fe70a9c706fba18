"""Utility functions and classes."""

from novel_retrieval.utils.rate_limiter import RateLimiter
from novel_retrieval.utils.url_utils import absolute_url, get_host, is_same_domain

__all__ = [
    "RateLimiter",
    "absolute_url",
    "get_host",
    "is_same_domain",
]
