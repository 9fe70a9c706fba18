"""Chapter discovery from table-of-contents pages."""

from novel_retrieval.discovery.toc import TocDiscoverer

__all__ = [
    "TocDiscoverer",
]
