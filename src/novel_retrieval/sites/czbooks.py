"""小說狂人 (czbooks.net)."""

from novel_retrieval.sites.base import SiteAdapter, SiteRules


class CzbooksAdapter(SiteAdapter):
    rules = SiteRules(
        name="czbooks",
        display_name="小說狂人",
        hosts=("czbooks.net", "www.czbooks.net"),
        toc_link_selector="ul.nav.chapter-list > li > a",
        book_title_selector="span.title",
        book_title_strip=("《", "》"),
        author_selector="span.author > a",
        chapter_title_selector="div.name",
        chapter_body_selector="div.content",
        # Chapter names are sometimes prefixed with the book title in 《》
        title_patterns=(r"《[^》]*》",),
    )
