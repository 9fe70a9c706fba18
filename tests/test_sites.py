"""Tests for the site adapters."""

import pytest

from conftest import PagedAdapter, chapter_html, toc_html
from novel_retrieval.errors import ParseError
from novel_retrieval.fetcher import decode_html
from novel_retrieval.sites.czbooks import CzbooksAdapter
from novel_retrieval.sites.hjwzw import HjwzwAdapter
from novel_retrieval.sites.novel543 import Novel543Adapter
from novel_retrieval.sites.piaotia import PiaotiaAdapter
from novel_retrieval.sites.qbtr import QbtrAdapter
from novel_retrieval.sites.uukanshu import UUkanshuAdapter


class TestSiteAdapterBase:
    """Behaviour shared by every adapter, exercised on the test site."""

    def test_recognize(self, adapter: PagedAdapter) -> None:
        assert adapter.recognize("https://novels.test/book/")
        assert adapter.recognize("http://NOVELS.test/book/")
        assert not adapter.recognize("https://other.test/book/")
        assert not adapter.recognize("ftp://novels.test/book/")
        assert not adapter.recognize("not a url")

    def test_parse_toc_numbers_in_document_order(self, adapter: PagedAdapter) -> None:
        html = toc_html([("/c/3", "三"), ("/c/1", "一"), ("/c/2", "二")])
        toc = adapter.parse_toc(html, "https://novels.test/book/")

        assert [r.index for r in toc.refs] == [0, 1, 2]
        assert [r.url for r in toc.refs] == [
            "https://novels.test/c/3",
            "https://novels.test/c/1",
            "https://novels.test/c/2",
        ]
        assert [r.title_hint for r in toc.refs] == ["三", "一", "二"]
        assert toc.next_url is None

    def test_parse_toc_skips_duplicates_and_pseudo_links(self, adapter: PagedAdapter) -> None:
        html = toc_html([
            ("/c/1", "一"),
            ("#top", "頂"),
            ("javascript:void(0)", "js"),
            ("/c/1#note", "一again"),
            ("//novels.test/c/2", "二"),
        ])
        toc = adapter.parse_toc(html, "https://novels.test/book/")

        assert [r.url for r in toc.refs] == [
            "https://novels.test/c/1",
            "https://novels.test/c/2",
        ]

    def test_parse_toc_skips_offsite_chapters(self, adapter: PagedAdapter) -> None:
        html = toc_html([("/c/1", "一"), ("https://ads.test/c/2", "廣告"), ("/c/3", "三")])
        toc = adapter.parse_toc(html, "https://novels.test/book/")

        assert [r.url for r in toc.refs] == [
            "https://novels.test/c/1",
            "https://novels.test/c/3",
        ]
        assert [r.index for r in toc.refs] == [0, 1]

    def test_parse_toc_next_page(self, adapter: PagedAdapter) -> None:
        html = toc_html([("/c/1", "一")], next_href="?page=2")
        toc = adapter.parse_toc(html, "https://novels.test/book/")
        assert toc.next_url == "https://novels.test/book/?page=2"

    def test_parse_toc_ignores_offsite_next(self, adapter: PagedAdapter) -> None:
        html = toc_html([("/c/1", "一")], next_href="https://elsewhere.test/page2")
        toc = adapter.parse_toc(html, "https://novels.test/book/")
        assert toc.next_url is None

    def test_parse_toc_book_info(self, adapter: PagedAdapter) -> None:
        toc = adapter.parse_toc(toc_html([("/c/1", "一")]), "https://novels.test/book/")
        assert toc.book is not None
        assert toc.book.title == "測試之書"
        assert toc.book.author == "無名"

    def test_parse_toc_without_links(self, adapter: PagedAdapter) -> None:
        with pytest.raises(ParseError, match="no chapter links"):
            adapter.parse_toc(toc_html([]), "https://novels.test/book/")

    def test_parse_chapter(self, adapter: PagedAdapter) -> None:
        html = chapter_html("第一章 開端", ["  第一段  ", "", "第二段"])
        page = adapter.parse_chapter(html, "https://novels.test/c/1")

        assert page.title == "第一章 開端"
        assert page.paragraphs == ("第一段", "第二段")
        assert page.next_url is None

    def test_inline_markup_stays_in_paragraph(self, adapter: PagedAdapter) -> None:
        html = chapter_html(
            "第一章 <b>開端</b>",
            ["他說<b>好</b>，然後<a href='#'>走</a>了。", "<span>第二</span>段"],
        )
        page = adapter.parse_chapter(html, "https://novels.test/c/1")

        assert page.title == "第一章 開端"
        assert page.paragraphs == ("他說好，然後走了。", "第二段")

    def test_block_elements_break_paragraphs(self, adapter: PagedAdapter) -> None:
        html = (
            "<html><body><h2 class='chapter'>章</h2><div class='body'>"
            "<p>第一<em>段</em></p><p>第二段</p>第三段</div></body></html>"
        )
        page = adapter.parse_chapter(html, "https://novels.test/c/1")
        assert page.paragraphs == ("第一段", "第二段", "第三段")

    def test_parse_chapter_is_idempotent(self, adapter: PagedAdapter) -> None:
        html = chapter_html("第一章", ["甲", "乙"], next_href="/c/1_2")
        first = adapter.parse_chapter(html, "https://novels.test/c/1")
        second = adapter.parse_chapter(html, "https://novels.test/c/1")
        assert first == second

    def test_parse_chapter_without_body(self, adapter: PagedAdapter) -> None:
        html = "<html><body><h2 class='chapter'>空</h2></body></html>"
        with pytest.raises(ParseError, match="no chapter body"):
            adapter.parse_chapter(html, "https://novels.test/c/1")

    def test_parse_chapter_drops_scripts_and_ads(self, adapter: PagedAdapter) -> None:
        html = (
            "<html><body><h2 class='chapter'>章</h2><div class='body'>正文"
            "<script>alert(1)</script><div class='ad'>廣告</div></div></body></html>"
        )
        page = adapter.parse_chapter(html, "https://novels.test/c/1")
        assert page.paragraphs == ("正文",)


class TestCzbooks:
    """Tests for the czbooks adapter."""

    TOC = (
        '<html><body><span class="title">《劍來》</span>'
        '<span class="author"><a href="/a/1">烽火戲諸侯</a></span>'
        '<ul class="nav chapter-list">'
        '<li><a href="//czbooks.net/n/abc/1">第一章 驚蟄</a></li>'
        '<li><a href="//czbooks.net/n/abc/2">第二章 開門</a></li>'
        "</ul></body></html>"
    )
    CHAPTER = (
        '<html><body><div class="name">《劍來》第一章 驚蟄</div>'
        '<div class="content">二月二，龍抬頭。<br>暮色裡，小鎮名叫泥瓶巷。</div>'
        "</body></html>"
    )

    def test_toc(self) -> None:
        toc = CzbooksAdapter().parse_toc(self.TOC, "https://czbooks.net/n/abc")
        assert [r.url for r in toc.refs] == [
            "https://czbooks.net/n/abc/1",
            "https://czbooks.net/n/abc/2",
        ]
        assert toc.book is not None
        assert toc.book.title == "劍來"
        assert toc.book.author == "烽火戲諸侯"

    def test_chapter_title_drops_book_name(self) -> None:
        page = CzbooksAdapter().parse_chapter(self.CHAPTER, "https://czbooks.net/n/abc/1")
        assert page.title == "第一章 驚蟄"
        assert page.paragraphs == ("二月二，龍抬頭。", "暮色裡，小鎮名叫泥瓶巷。")

    def test_inline_emphasis_joins_sentence(self) -> None:
        html = (
            '<html><body><div class="name">第二章</div>'
            '<div class="content">他說<em>好</em>。<br>第二段</div></body></html>'
        )
        page = CzbooksAdapter().parse_chapter(html, "https://czbooks.net/n/abc/2")
        assert page.paragraphs == ("他說好。", "第二段")


class TestHjwzw:
    """Tests for the hjwzw adapter."""

    def test_chapter_skips_header_lines(self) -> None:
        tables = "<table><tr><td>nav</td></tr></table>" * 6
        html = (
            f"<html><body>{tables}<table><tr><td>"
            "<h1>第一章 開端</h1><div>a</div><div>b</div><div>c</div>"
            "<div>第一章 開端<br>請記住本站<br>正文一<br>正文二"
            '<div id="Pan_Ad1">廣告</div></div>'
            "</td></tr></table></body></html>"
        )
        page = HjwzwAdapter().parse_chapter(html, "https://tw.hjwzw.com/Book/Read/1,1")
        assert page.title == "第一章 開端"
        assert page.paragraphs == ("正文一", "正文二")


class TestPiaotia:
    """Tests for the piaotia adapter, whose pages are GBK encoded."""

    CHAPTER = (
        '<html><head><meta http-equiv="Content-Type" content="text/html; charset=gbk">'
        "<title>测试书</title></head><body>"
        "<h1>测试书 第一章 开始</h1>"
        '<div class="toplink"><a href="/">首页</a> <a href="/1/">返回书页</a></div>'
        "&nbsp;&nbsp;&nbsp;&nbsp;第一段正文<br><br>"
        "&nbsp;&nbsp;&nbsp;&nbsp;第二段正文<br>"
        '<div class="bottomlink">（快捷键 ←）上一章 下一章</div>'
        "</body></html>"
    )

    def test_chapter_from_gbk_bytes(self) -> None:
        text, _ = decode_html(self.CHAPTER.encode("gbk"), hint="gbk")
        page = PiaotiaAdapter().parse_chapter(text, "https://www.piaotia.com/html/1/1/2.html")

        assert page.title == "第一章 开始"
        assert page.paragraphs == ("第一段正文", "第二段正文")

    def test_gbk_and_utf8_pages_parse_identically(self) -> None:
        adapter = PiaotiaAdapter()
        url = "https://www.piaotia.com/html/1/1/2.html"
        gbk_text, _ = decode_html(self.CHAPTER.encode("gbk"))
        utf8_html = self.CHAPTER.replace("charset=gbk", "charset=utf-8")
        utf8_text, _ = decode_html(utf8_html.encode("utf-8"))

        assert adapter.parse_chapter(gbk_text, url) == adapter.parse_chapter(utf8_text, url)

    def test_author_from_meta(self) -> None:
        html = (
            '<html><head><meta name="author" content="天蚕土豆"></head><body>'
            '<div class="title"><h1>斗破苍穹最新章节</h1></div>'
            '<div class="centent"><ul><li><a href="1.html">第一章</a></li></ul></div>'
            "</body></html>"
        )
        toc = PiaotiaAdapter().parse_toc(html, "https://www.piaotia.com/html/1/1/")
        assert toc.book is not None
        assert toc.book.title == "斗破苍穹"
        assert toc.book.author == "天蚕土豆"
        assert toc.refs[0].url == "https://www.piaotia.com/html/1/1/1.html"


class TestQbtr:
    """Tests for the qbtr adapter."""

    def test_chapter(self) -> None:
        html = (
            '<html><body><div class="read_chapterName tc"><h1>第一章 初見</h1></div>'
            '<div class="read_chapterDetail"><p>書名</p><p>第一章 初見</p>'
            "<p>正文一</p><p>正文二</p></div></body></html>"
        )
        page = QbtrAdapter().parse_chapter(html, "https://www.qbtr.cc/tongren/1/1.html")
        assert page.title == "第一章 初見"
        assert page.paragraphs == ("正文一", "正文二")

    def test_inline_markup_does_not_shift_header_lines(self) -> None:
        html = (
            '<html><body><div class="read_chapterName tc"><h1>第一章 初見</h1></div>'
            '<div class="read_chapterDetail"><p><b>書名</b>（全本）</p>'
            '<p>第一章 <font color="red">初見</font></p>'
            '<p>他說<b>好</b>，然後<a href="#">走</a>了。</p></div></body></html>'
        )
        page = QbtrAdapter().parse_chapter(html, "https://www.qbtr.cc/tongren/1/1.html")
        assert page.paragraphs == ("他說好，然後走了。",)


class TestUUkanshu:
    """Tests for the uukanshu adapter."""

    def test_toc_is_reversed(self) -> None:
        """The site lists the newest chapter first."""
        html = (
            '<html><body><ul id="chapterList">'
            '<li><a href="/b/1/3.html">第三章</a></li>'
            '<li><a href="/b/1/2.html">第二章</a></li>'
            '<li><a href="/b/1/1.html">第一章</a></li>'
            "</ul></body></html>"
        )
        toc = UUkanshuAdapter().parse_toc(html, "https://tw.uukanshu.com/b/1/")
        assert [r.title_hint for r in toc.refs] == ["第一章", "第二章", "第三章"]
        assert [r.index for r in toc.refs] == [0, 1, 2]

    def test_chapter_strips_watermarks(self) -> None:
        html = (
            '<html><body><h1 id="timu">第一章 雨夜</h1>'
            '<div id="contentbox" class="uu_cont">'
            "　　正文一<br>ｗｗｗ．ｕｕｋａｎｓｈｕ．ｃｏｍ<br>　　UU看書 正文二"
            '<div class="ad_content">廣告</div></div></body></html>'
        )
        page = UUkanshuAdapter().parse_chapter(html, "https://tw.uukanshu.com/b/1/1.html")
        assert page.title == "第一章 雨夜"
        assert page.paragraphs == ("正文一", "正文二")


class TestNovel543:
    """Tests for the novel543 adapter."""

    BOOK = "https://www.novel543.com/0413188175"

    @staticmethod
    def page(title: str, body: str, next_href: str) -> str:
        links = "".join(f'<a href="#">{i}</a>' for i in range(4))
        return (
            '<html><body><div id="chapterWarp"><div class="chapter-content px-3">'
            f"<h1>{title}</h1><div>{body}</div></div></div>"
            '<div id="read"><div><div class="warp my-5 foot-nav">'
            f'{links}<a href="{next_href}">下一頁</a>'
            "</div></div></div></body></html>"
        )

    def test_follows_continuation_page(self) -> None:
        html = self.page("第一章 啟程 (1/2)", "第一句。第二句。", "8001_1_2.html")
        page = Novel543Adapter().parse_chapter(html, f"{self.BOOK}/8001_1.html")

        assert page.title == "第一章 啟程"
        assert page.paragraphs == ("第一句。", "第二句。")
        assert page.next_url == f"{self.BOOK}/8001_1_2.html"

    def test_stops_at_next_chapter(self) -> None:
        html = self.page("第一章 啟程 (2/2)", "第三句。", "8001_2.html")
        page = Novel543Adapter().parse_chapter(html, f"{self.BOOK}/8001_1_2.html")
        assert page.next_url is None

    def test_is_continuation(self) -> None:
        adapter = Novel543Adapter()
        assert adapter.is_continuation(f"{self.BOOK}/8001_1.html", f"{self.BOOK}/8001_1_2.html")
        assert adapter.is_continuation(
            f"{self.BOOK}/8001_1_2.html", f"{self.BOOK}/8001_1_3.html"
        )
        assert not adapter.is_continuation(f"{self.BOOK}/8001_1.html", f"{self.BOOK}/8001_2.html")
        assert not adapter.is_continuation(f"{self.BOOK}/8001_1.html", f"{self.BOOK}/dir")

    def test_strips_stray_glyph(self) -> None:
        html = self.page("第二章", "他㱕說。", "8001_3.html")
        page = Novel543Adapter().parse_chapter(html, f"{self.BOOK}/8001_2.html")
        assert page.paragraphs == ("他說。",)

    def test_limits_concurrency(self) -> None:
        assert Novel543Adapter().max_concurrent == 2
