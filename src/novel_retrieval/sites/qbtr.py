"""全本同人 (www.qbtr.cc)."""

from novel_retrieval.sites.base import SiteAdapter, SiteRules


class QbtrAdapter(SiteAdapter):
    rules = SiteRules(
        name="qbtr",
        display_name="全本同人",
        hosts=("www.qbtr.cc", "qbtr.cc"),
        toc_link_selector="div.book_list.clearfix > ul > li > a",
        book_title_selector="div.infos > h1",
        author_selector="div.date > span",
        author_strip=("作者：", "作者:"),
        chapter_title_selector="div.read_chapterName.tc > h1",
        chapter_body_selector="div.read_chapterDetail > p",
        # First two paragraphs repeat the book and chapter names
        skip_leading_lines=2,
        encoding="gbk",
    )
