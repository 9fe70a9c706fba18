"""Table-of-contents discovery."""

import logging

from novel_retrieval.config import DiscoveryConfig
from novel_retrieval.errors import DiscoveryError, FetchError, ParseError
from novel_retrieval.fetcher.base import BaseFetcher
from novel_retrieval.models import BookInfo, ChapterRef, Discovery
from novel_retrieval.sites.base import SiteAdapter

logger = logging.getLogger(__name__)


class TocDiscoverer:
    """Walk a possibly paginated table of contents.

    Pages are fetched strictly one after another because each page's next
    link is only known once the previous page has been parsed. Any failure
    aborts discovery: a partial chapter list would silently truncate the
    novel.
    """

    def __init__(
        self,
        entry_url: str,
        adapter: SiteAdapter,
        fetcher: BaseFetcher,
        config: DiscoveryConfig,
    ):
        self.entry_url = entry_url
        self.adapter = adapter
        self.fetcher = fetcher
        self.config = config

    async def discover(self) -> Discovery:
        """Fetch every ToC page and merge their chapter lists.

        Raises:
            DiscoveryError: A page failed to fetch or parse, the pagination
                loops back on itself, or exceeds ``max_toc_pages``.
        """
        refs: list[ChapterRef] = []
        seen_chapters: set[str] = set()
        visited: list[str] = []
        book: BookInfo | None = None
        page_url: str | None = self.entry_url

        while page_url is not None:
            if page_url in visited:
                raise DiscoveryError(page_url, "pagination loops back to a visited page")
            if len(visited) >= self.config.max_toc_pages:
                raise DiscoveryError(
                    page_url, f"more than {self.config.max_toc_pages} pages"
                )
            visited.append(page_url)

            try:
                page = await self.fetcher.fetch_page(page_url, self.adapter.encoding)
                toc = self.adapter.parse_toc(page.text, page.final_url)
            except (FetchError, ParseError) as e:
                raise DiscoveryError(page_url, e) from e

            if book is None:
                book = toc.book

            added = 0
            for ref in toc.refs:
                if ref.url in seen_chapters:
                    continue
                seen_chapters.add(ref.url)
                refs.append(ref.model_copy(update={"index": len(refs)}))
                added += 1

            logger.debug(
                "ToC page %d (%s): %d chapters, %d new",
                len(visited), page_url, len(toc.refs), added,
            )
            page_url = toc.next_url

        return Discovery(book=book or BookInfo(), refs=refs, toc_pages=visited)
