"""
Tests for the selector-driven page extractor.
"""
import pytest

from outline_crawler.extract import SelectorExtractor, SelectorRules

ARTICLE = """
<html><body>
<div id="ContentDiv">
  <h2>  Chapter One  </h2>
  <p><span>hello&nbsp;there</span></p>
  <p><span><span>nested</span></span></p>
  <div><a href="Search/page0">prev</a><a href="Search/page2">next</a></div>
  <img src="/img/a.png">
  <img src="/img/b.gif">
  <img src="/img/c.JPG?size=1">
  <img alt="no source">
</div>
</body></html>
"""


class TestSelectorExtractor:
    @pytest.fixture
    def extractor(self):
        return SelectorExtractor()

    def test_title_is_trimmed(self, extractor):
        assert extractor(ARTICLE).title == "Chapter One"

    def test_paragraph_text(self, extractor):
        """Span text per paragraph, NBSP normalised, nested spans counted once."""
        assert extractor(ARTICLE).text == "hello there\nnested\n"

    def test_next_link_is_second_anchor(self, extractor):
        assert extractor(ARTICLE).next_url == "Search/page2"

    def test_only_png_and_jpg_images(self, extractor):
        assert extractor(ARTICLE).image_urls == ("/img/a.png", "/img/c.JPG?size=1")

    def test_page_without_content_is_empty(self, extractor):
        page = extractor("<html><body><p>unrelated</p></body></html>")

        assert page.title is None
        assert page.text == ""
        assert page.next_url is None
        assert page.is_empty

    def test_last_page_keeps_sentinel_link(self, extractor):
        html = '<div id="ContentDiv"><p><span>end</span></p><div><a href="x">p</a><a href="/#">n</a></div></div>'
        assert extractor(html).next_url == "/#"

    def test_custom_rules(self):
        rules = SelectorRules.from_mapping(
            {"title": "h1", "paragraphs": "article p", "next_link": "a.next", "image_suffixes": [".GIF"]}
        )
        html = (
            "<h1>T</h1><article><p>one</p><p>two</p></article>"
            '<a class="next" href="/p/2">more</a><img src="/x.gif">'
        )

        page = SelectorExtractor(rules)(html)

        assert page.title == "T"
        assert page.text == "one\ntwo\n"
        assert page.next_url == "/p/2"
        assert page.image_urls == ("/x.gif",)

    def test_unknown_rule_keys_are_rejected(self):
        with pytest.raises(ValueError):
            SelectorRules.from_mapping({"titel": "h1"})
