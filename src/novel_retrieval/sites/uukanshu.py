"""UU看書 (tw.uukanshu.com, www.uukanshu.com).

The traditional-Chinese mirror serves UTF-8 and the simplified one GBK, so no
encoding hint is set and detection decides per page. Chapter bodies carry
watermark text in both scripts, including full-width variants of the domain.
"""

from novel_retrieval.sites.base import SiteAdapter, SiteRules


class UUkanshuAdapter(SiteAdapter):
    rules = SiteRules(
        name="uukanshu",
        display_name="UU看書",
        hosts=("tw.uukanshu.com", "www.uukanshu.com", "uukanshu.com"),
        toc_link_selector="ul#chapterList a",
        toc_reversed=True,
        book_title_selector="dd.jieshao_content > h1 > a",
        book_title_strip=("最新章節", "最新章节"),
        author_selector="dd.jieshao_content > h2 > a",
        chapter_title_selector="h1#timu",
        chapter_body_selector="div#contentbox.uu_cont",
        remove_selectors=("div.ad_content",),
        boilerplate_patterns=(
            r"如果喜歡.*，請把網址發給您的朋友。.*",
            r"如果喜欢.*，请把网址发给您的朋友。.*",
            r"[wｗ]{3}[．.][ｕu][ｕu][ｋk][ａa][ｎn][ｓs][ｈh][ｕu][．.][ｃc][ｏo][ｍm]",
            r"[ｕuＵU]{2}看书[ ]*",
            r"[ｕuＵU]{2}看書[ ]*",
            r"請記住本書首發域名：。：",
            r"请记住本书首发域名：。：",
        ),
        paragraph_separator=r"[\n\r　\xa0]+| {2,}",
    )
