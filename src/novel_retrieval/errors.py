"""Exception hierarchy for novel retrieval."""

from enum import Enum


class NovelRetrievalError(Exception):
    """Base class for all errors raised by novel-retrieval."""


class RegistryConfigError(NovelRetrievalError):
    """Site adapters were registered with conflicting recognition rules."""


class UnsupportedSiteError(NovelRetrievalError):
    """No registered site adapter recognizes the URL."""

    def __init__(self, url: str):
        super().__init__(f"Unsupported site: {url}")
        self.url = url


class FetchError(NovelRetrievalError):
    """A page could not be fetched or decoded."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class NetworkError(FetchError):
    """Connection failure or timeout that survived all retries."""


class HttpError(FetchError):
    """Non-success HTTP status that survived all retries."""

    def __init__(self, url: str, status: int):
        super().__init__(url, f"HTTP {status}")
        self.status = status


class EncodingError(FetchError):
    """The response body could not be decoded to text."""


class ParseError(NovelRetrievalError):
    """Page markup did not match the adapter's selectors."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class DiscoveryError(NovelRetrievalError):
    """The table of contents could not be discovered completely."""

    def __init__(self, url: str, cause: Exception | str):
        super().__init__(f"Table of contents discovery failed at {url}: {cause}")
        self.url = url
        self.cause = cause


class ChapterError(NovelRetrievalError):
    """A chapter failed while running in fail-fast mode."""

    def __init__(self, index: int, url: str, cause: Exception):
        super().__init__(f"Chapter {index} failed: {cause}")
        self.index = index
        self.url = url
        self.cause = cause


class ErrorCategory(str, Enum):
    """Category of a chapter failure for summary reporting."""

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    ENCODING = "encoding"
    PARSE = "parse"
    UNKNOWN = "unknown"


def categorize_error(error: Exception) -> ErrorCategory:
    """Classify an error into a reporting category."""
    if isinstance(error, HttpError):
        if error.status == 429:
            return ErrorCategory.RATE_LIMITED
        if error.status >= 500:
            return ErrorCategory.SERVER_ERROR
        return ErrorCategory.CLIENT_ERROR
    if isinstance(error, NetworkError):
        return ErrorCategory.NETWORK
    if isinstance(error, EncodingError):
        return ErrorCategory.ENCODING
    if isinstance(error, ParseError):
        return ErrorCategory.PARSE
    return ErrorCategory.UNKNOWN
