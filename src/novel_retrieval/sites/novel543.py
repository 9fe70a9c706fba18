"""稷下書院 (www.novel543.com).

Long chapters are split over several pages (``8001_316.html``,
``8001_316_2.html``, ...). The footer's next link points either to the next
page of the same chapter or to the next chapter; only the former is
followed. The site throttles aggressively, so concurrency is kept low.
"""

import re
from urllib.parse import urlparse

from novel_retrieval.sites.base import SiteAdapter, SiteRules

_PAGE_NAME_RE = re.compile(r"^(\d+_\d+)(?:_(\d+))?\.html$")
_SENTENCE_RE = re.compile(r"(?<=。)")


class Novel543Adapter(SiteAdapter):
    rules = SiteRules(
        name="novel543",
        display_name="稷下書院",
        hosts=("www.novel543.com", "novel543.com"),
        toc_link_selector="ul.flex.one.two-700.three-900.all > li > a",
        book_title_selector="h1.title.is-2",
        book_title_strip=(" 章節列表", "章節列表"),
        author_selector="h2.title.is-4",
        author_strip=("作者 / ", "作者/"),
        chapter_title_selector="#chapterWarp > div.chapter-content.px-3 > h1",
        chapter_body_selector="#chapterWarp > div.chapter-content.px-3 > div",
        chapter_next_selector="#read > div > div.warp.my-5.foot-nav > a:nth-child(5)",
        # Page counters such as "(1/2)" are dropped once pages are merged
        title_patterns=(r"\s*[(（]\d+/\d+[)）]\s*$",),
        boilerplate_patterns=("㱕",),
        max_concurrent=2,
    )

    def split_paragraphs(self, text: str) -> list[str]:
        """Body text arrives as one run; break it after each full stop."""
        lines = super().split_paragraphs(text)
        return [
            sentence.strip()
            for line in lines
            for sentence in _SENTENCE_RE.split(line)
            if sentence.strip()
        ]

    def is_continuation(self, page_url: str, next_url: str) -> bool:
        current = _PAGE_NAME_RE.match(_file_name(page_url))
        following = _PAGE_NAME_RE.match(_file_name(next_url))
        if not current or not following:
            return False
        return current.group(1) == following.group(1) and following.group(2) is not None


def _file_name(url: str) -> str:
    return urlparse(url).path.rsplit("/", 1)[-1]
