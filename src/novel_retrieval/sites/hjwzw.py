"""黃金屋 (tw.hjwzw.com)."""

from novel_retrieval.sites.base import SiteAdapter, SiteRules


class HjwzwAdapter(SiteAdapter):
    rules = SiteRules(
        name="hjwzw",
        display_name="黃金屋",
        hosts=("tw.hjwzw.com",),
        toc_link_selector="div#tbchapterlist a",
        book_title_selector="h1",
        author_selector=(
            "body > div:first-child > table:nth-of-type(7) tr:nth-child(2) a:first-child"
        ),
        author_strip=("作者 / ", "作者/"),
        chapter_title_selector="table:nth-of-type(7) h1",
        chapter_body_selector="table:nth-of-type(7) div:nth-of-type(4)",
        remove_selectors=("div#Pan_Ad1",),
        # The body block opens with the chapter heading and a site notice
        skip_leading_lines=2,
    )
