"""Tests for common.serialization module."""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from common.serialization import serialize_dataclass, to_jsonable
from count_entities.models import EntityCount
from ingest_feeds.models import Article, Feed


@dataclass
class SampleWithNestedDict:
    name: str
    metadata: dict


class TestSerializeDataclass:
    def test_entity_count_to_dict(self) -> None:
        assert serialize_dataclass(EntityCount(name="APPLE", count=2)) == {"name": "APPLE", "count": 2}

    def test_nested_articles(self) -> None:
        dt = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        article = Article(
            id="a1",
            feed_url="https://example.com/rss",
            title="T",
            summary="",
            url=None,
            published_at=dt,
            text="T",
        )
        result = serialize_dataclass(Feed(url="https://example.com/rss", title="Example", articles=(article,)))
        assert isinstance(result["articles"], list)
        assert result["articles"][0]["published_at"] == "2024-01-01T12:00:00+00:00"

    def test_nested_dict_datetime_handling(self) -> None:
        dt = datetime(2024, 6, 15, 8, 30, 0, tzinfo=timezone.utc)
        result = serialize_dataclass(SampleWithNestedDict(name="test", metadata={"run": {"at": dt}}))
        assert result["metadata"]["run"]["at"] == "2024-06-15T08:30:00+00:00"

    def test_rejects_non_dataclass(self) -> None:
        with pytest.raises(TypeError):
            serialize_dataclass({"name": "test"})


class TestToJsonable:
    def test_plain_values_unchanged(self) -> None:
        assert to_jsonable({"a": 1, "b": "x", "c": None}) == {"a": 1, "b": "x", "c": None}
