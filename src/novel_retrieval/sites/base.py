"""Rule-driven site adapter shared by every supported site."""

import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict

from novel_retrieval.errors import ParseError
from novel_retrieval.models import BookInfo, ChapterPage, ChapterRef, TocPage
from novel_retrieval.utils.url_utils import absolute_url, is_same_domain

# Always stripped before any text is read
_ALWAYS_REMOVE = ("script", "style", "noscript")

# Elements that end a line of body text; everything else is inline
_BLOCK_TAGS = (
    "p", "div", "section", "article", "blockquote", "pre", "li", "tr",
    "h1", "h2", "h3", "h4", "h5", "h6",
)


class SiteRules(BaseModel):
    """Selectors and cleanup rules describing one site's markup."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    hosts: tuple[str, ...]

    # Table of contents
    toc_link_selector: str
    toc_reversed: bool = False  # Site lists newest chapters first
    toc_next_selector: str | None = None
    book_title_selector: str | None = None
    book_title_strip: tuple[str, ...] = ()
    author_selector: str | None = None
    author_attr: str | None = None  # Read the author from an attribute, not text
    author_strip: tuple[str, ...] = ()

    # Chapter pages
    chapter_title_selector: str
    chapter_body_selector: str
    chapter_next_selector: str | None = None
    remove_selectors: tuple[str, ...] = ()
    title_patterns: tuple[str, ...] = ()  # Regexes deleted from the title
    boilerplate_patterns: tuple[str, ...] = ()  # Regexes deleted from the body
    paragraph_separator: str = r"\n"
    skip_leading_lines: int = 0

    encoding: str | None = None  # Fallback when a page declares nothing usable
    max_concurrent: int = 6


class SiteAdapter:
    """Translate one site's pages into chapter data.

    Adapters are stateless: all configuration lives in the frozen ``rules``
    and the regexes compiled from them, so one instance can serve every
    concurrent chapter task. Subclasses set ``rules`` and override the
    ``clean_*`` / ``split_paragraphs`` / ``is_continuation`` hooks when a site
    needs more than selectors.
    """

    rules: SiteRules

    def __init__(self):
        flags = re.DOTALL
        self._title_res = tuple(re.compile(p, flags) for p in self.rules.title_patterns)
        self._boilerplate_res = tuple(
            re.compile(p, flags) for p in self.rules.boilerplate_patterns
        )
        self._separator_re = re.compile(self.rules.paragraph_separator)
        self._hosts = frozenset(h.lower() for h in self.rules.hosts)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rules.name}>"

    @property
    def name(self) -> str:
        return self.rules.name

    @property
    def display_name(self) -> str:
        return self.rules.display_name

    @property
    def hosts(self) -> frozenset[str]:
        return self._hosts

    @property
    def encoding(self) -> str | None:
        return self.rules.encoding

    @property
    def max_concurrent(self) -> int:
        return self.rules.max_concurrent

    def recognize(self, url: str) -> bool:
        """Whether ``url`` belongs to this site."""
        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https"):
            return False
        return (parsed.hostname or "").lower() in self._hosts

    # Table of contents

    def parse_book_info(self, html: str) -> BookInfo:
        """Extract title and author from a table-of-contents page."""
        return self._book_info(BeautifulSoup(html, "lxml"))

    def parse_toc(self, html: str, page_url: str) -> TocPage:
        """Extract chapter links in reading order from one ToC page.

        Raises:
            ParseError: The page contains no chapter links.
        """
        soup = BeautifulSoup(html, "lxml")

        items: list[tuple[str, str | None]] = []
        seen: set[str] = set()
        for link in soup.select(self.rules.toc_link_selector):
            href = link.get("href")
            if not isinstance(href, str) or not _is_followable(href):
                continue
            url = absolute_url(page_url, href)
            # Chapters hosted on another site are never requested
            if url in seen or not self.recognize(url):
                continue
            seen.add(url)
            items.append((url, link.get_text(strip=True) or None))

        if not items:
            raise ParseError(page_url, "no chapter links found")

        if self.rules.toc_reversed:
            items.reverse()

        refs = tuple(
            ChapterRef(index=i, url=url, title_hint=hint)
            for i, (url, hint) in enumerate(items)
        )
        next_url = self._next_link(soup, self.rules.toc_next_selector, page_url)
        return TocPage(refs=refs, next_url=next_url, book=self._book_info(soup))

    # Chapters

    def parse_chapter(self, html: str, page_url: str) -> ChapterPage:
        """Extract the title and body paragraphs from one chapter page.

        Raises:
            ParseError: No body text was found.
        """
        soup = BeautifulSoup(html, "lxml")

        next_url = self._next_link(soup, self.rules.chapter_next_selector, page_url)
        if next_url and not self.is_continuation(page_url, next_url):
            next_url = None

        # Title first: some sites strip the heading from the body afterwards
        title_node = soup.select_one(self.rules.chapter_title_selector)
        title = self.clean_title(_collapse_spaces(title_node.get_text()) if title_node else "")

        for selector in _ALWAYS_REMOVE + self.rules.remove_selectors:
            for elem in soup.select(selector):
                elem.decompose()

        nodes = _outermost(soup.select(self.rules.chapter_body_selector))
        text = "\n".join(_block_text(node) for node in nodes)
        paragraphs = self.split_paragraphs(self.clean_body(text))
        paragraphs = paragraphs[self.rules.skip_leading_lines:]
        if not paragraphs:
            raise ParseError(page_url, "no chapter body found")

        return ChapterPage(title=title, paragraphs=tuple(paragraphs), next_url=next_url)

    # Hooks

    def clean_title(self, title: str) -> str:
        for pattern in self._title_res:
            title = pattern.sub("", title)
        return title.strip()

    def clean_body(self, text: str) -> str:
        for pattern in self._boilerplate_res:
            text = pattern.sub("", text)
        return text

    def split_paragraphs(self, text: str) -> list[str]:
        """Split body text into trimmed, non-empty paragraphs."""
        parts = (part.strip() for part in self._separator_re.split(text))
        return [part for part in parts if part]

    def is_continuation(self, page_url: str, next_url: str) -> bool:
        """Whether ``next_url`` continues the chapter shown at ``page_url``."""
        return True

    # Helpers

    def _book_info(self, soup: BeautifulSoup) -> BookInfo:
        title = _select_value(soup, self.rules.book_title_selector)
        author = _select_value(soup, self.rules.author_selector, self.rules.author_attr)
        for token in self.rules.book_title_strip:
            title = title.replace(token, "")
        for token in self.rules.author_strip:
            author = author.replace(token, "")
        return BookInfo(title=title.strip(), author=author.strip())

    def _next_link(
        self, soup: BeautifulSoup, selector: str | None, page_url: str
    ) -> str | None:
        if not selector:
            return None
        node = soup.select_one(selector)
        href = node.get("href") if node else None
        if not isinstance(href, str) or not _is_followable(href):
            return None
        url = absolute_url(page_url, href)
        if url == absolute_url(page_url, "") or not is_same_domain(url, page_url):
            return None
        return url


def _is_followable(href: str) -> bool:
    href = href.strip()
    return bool(href) and not href.startswith(("#", "javascript:", "mailto:"))


def _select_value(soup: BeautifulSoup, selector: str | None, attr: str | None = None) -> str:
    if not selector:
        return ""
    node = soup.select_one(selector)
    if node is None:
        return ""
    if attr:
        value = node.get(attr)
        return value if isinstance(value, str) else ""
    return node.get_text(strip=True)


def _outermost(nodes: list[Tag]) -> list[Tag]:
    """Drop matches nested inside other matches so text is read once."""
    ids = {id(node) for node in nodes}
    return [
        node for node in nodes
        if not any(id(parent) in ids for parent in node.parents)
    ]


def _block_text(node: Tag) -> str:
    """Read a body node's text, breaking lines only at ``<br>`` and block elements.

    Inline markup such as ``<b>`` or ``<a>`` is joined into the surrounding
    sentence. The node is modified in place.
    """
    for br in node.find_all("br"):
        br.replace_with("\n")
    for block in node.find_all(_BLOCK_TAGS):
        block.insert_before("\n")
        block.insert_after("\n")
    return node.get_text()


def _collapse_spaces(text: str) -> str:
    return " ".join(text.split())
