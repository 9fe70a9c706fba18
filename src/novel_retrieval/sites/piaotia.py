"""飄天 (www.piaotia.com).

Chapter pages have no content container: the whole document text is taken
and trimmed to the part between the "返回书页" link and the keyboard
navigation hint.
"""

from novel_retrieval.sites.base import SiteAdapter, SiteRules


class PiaotiaAdapter(SiteAdapter):
    rules = SiteRules(
        name="piaotia",
        display_name="飄天",
        hosts=("www.piaotia.com", "piaotia.com"),
        toc_link_selector="div.centent li a",
        book_title_selector="div.title h1",
        book_title_strip=("最新章节",),
        author_selector="meta[name=author]",
        author_attr="content",
        chapter_title_selector="h1",
        chapter_body_selector="body",
        remove_selectors=("head", "h1"),
        # "书名 第一章 标题" -> "第一章 标题"
        title_patterns=(r"^\S+\s+(?=第[0-9０-９零〇一二两三四五六七八九十百千万]+[章节回])",),
        boilerplate_patterns=(r"（快捷键 ←）.*", r".*返回书页"),
        paragraph_separator=r"[\n\xa0]+",
        encoding="gbk",
    )
