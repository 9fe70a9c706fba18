"""URL manipulation utilities."""

from urllib.parse import urldefrag, urljoin, urlparse


def absolute_url(base_url: str, href: str) -> str:
    """Resolve ``href`` against ``base_url`` and drop any fragment.

    Handles protocol-relative links (``//host/path``) the same way a
    browser would.
    """
    return urldefrag(urljoin(base_url, href.strip())).url


def get_host(url: str) -> str:
    """Extract the lower-cased host name from a URL."""
    return (urlparse(url).hostname or "").lower()


def is_same_domain(url1: str, url2: str) -> bool:
    """Check if two URLs are on the same host."""
    return get_host(url1) == get_host(url2)
