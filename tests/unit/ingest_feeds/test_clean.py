"""Tests for ingest_feeds.clean module."""

from ingest_feeds.clean import clean_text, combine_text


class TestCleanText:
    def test_strips_html_tags(self) -> None:
        assert clean_text("<h1>Title</h1> <p>Body</p>") == "Title Body"

    def test_unescapes_entities(self) -> None:
        assert clean_text("Tom &amp; Jerry") == "Tom & Jerry"

    def test_removes_escaped_quotes(self) -> None:
        assert clean_text('He said \\"hello\\"') == 'He said "hello"'

    def test_collapses_whitespace(self) -> None:
        assert clean_text("multiple   spaces \n here") == "multiple spaces here"

    def test_none_returns_none(self) -> None:
        assert clean_text(None) is None

    def test_whitespace_only_returns_none(self) -> None:
        assert clean_text("   \n\t ") is None


class TestCombineText:
    def test_joins_parts(self) -> None:
        assert combine_text("Title", "Summary", "Body") == "Title Summary Body"

    def test_skips_empty_parts(self) -> None:
        assert combine_text("Title", None, "", "Body") == "Title Body"

    def test_skips_contained_parts(self) -> None:
        assert combine_text("Storm hits coast", "Storm hits coast", "More detail") == "Storm hits coast More detail"

    def test_no_parts(self) -> None:
        assert combine_text() == ""
