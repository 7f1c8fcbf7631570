"""Data models for the fetch-parse stage."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Article:
    """Article parsed from one RSS entry. ``text`` is what entity extraction reads."""
    id: str
    feed_url: str
    title: str
    summary: str
    url: Optional[str]
    published_at: Optional[datetime]
    text: str


@dataclass(frozen=True)
class Feed:
    """Parsed RSS feed."""
    url: str
    title: str
    articles: tuple[Article, ...] = field(default_factory=tuple)
