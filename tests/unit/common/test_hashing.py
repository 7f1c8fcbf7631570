"""Tests for common.hashing module."""

from common.hashing import generate_article_id, stable_seed


class TestGenerateArticleId:
    def test_deterministic_output(self) -> None:
        result1 = generate_article_id("https://bbc.com/rss", "https://bbc.com/article")
        result2 = generate_article_id("https://bbc.com/rss", "https://bbc.com/article")
        assert result1 == result2

    def test_returns_16_char_hex_string(self) -> None:
        result = generate_article_id("https://bbc.com/rss", "https://bbc.com/article")
        assert len(result) == 16
        assert all(c in "0123456789abcdef" for c in result)

    def test_different_feed_produces_different_id(self) -> None:
        result1 = generate_article_id("https://bbc.com/rss", "https://example.com/article")
        result2 = generate_article_id("https://cnn.com/rss", "https://example.com/article")
        assert result1 != result2

    def test_different_link_produces_different_id(self) -> None:
        result1 = generate_article_id("https://bbc.com/rss", "https://bbc.com/article1")
        result2 = generate_article_id("https://bbc.com/rss", "https://bbc.com/article2")
        assert result1 != result2


class TestStableSeed:
    def test_deterministic_and_64_bit(self) -> None:
        assert stable_seed(0, "a1", "text") == stable_seed(0, "a1", "text")
        assert 0 <= stable_seed(0, "a1", "text") < 2**64

    def test_part_boundaries_matter(self) -> None:
        assert stable_seed("ab", "c") != stable_seed("a", "bc")

    def test_seed_changes_value(self) -> None:
        assert stable_seed(1, "a1") != stable_seed(2, "a1")
