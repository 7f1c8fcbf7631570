"""Fetch an RSS feed over HTTP and parse it into a Feed."""

import logging
from datetime import datetime, timezone, timedelta
from typing import Any, Optional

import feedparser
import requests
from dateutil.parser import parse as parse_date

from common.hashing import generate_article_id
from common.utils import get_value
from dataflow.errors import DataflowError
from ingest_feeds.clean import clean_text, combine_text
from ingest_feeds.models import Article, Feed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
USER_AGENT = "feed-entity-counter/1.0 (RSS reader)"

# Timezone abbreviations for date parsing
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}


class FilteredInputError(DataflowError):
    """A feed could not be fetched or parsed and is dropped from the job."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


def fetch_and_parse(url: str, timeout: int = DEFAULT_TIMEOUT) -> Optional[Feed]:
    """
    Fetch and parse one feed.

    Unreachable or malformed feeds are logged and return None; they are
    filtered out of the job rather than retried. Any other exception
    propagates so the task fails and the partition is recomputed.
    """
    try:
        return _fetch_feed(url, timeout)
    except FilteredInputError as e:
        logger.warning("Dropping feed %s", e)
        return None


def _fetch_feed(url: str, timeout: int) -> Feed:
    """Download and parse a single RSS feed."""
    try:
        response = requests.get(
            url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise FilteredInputError(url, f"fetch failed: {e}") from e

    return parse_feed(url, response.content)


def parse_feed(url: str, content: bytes) -> Feed:
    """Parse raw feed content into a Feed."""
    parsed = feedparser.parse(content)
    if parsed.get("bozo") and not parsed.entries:
        raise FilteredInputError(url, f"malformed feed: {parsed.get('bozo_exception')}")

    seen: set[str] = set()
    articles = []
    for entry in parsed.entries:
        try:
            article = _parse_entry(entry, url, seen)
            if article is not None:
                articles.append(article)
        except Exception as e:
            logger.warning("Failed to parse entry in %s: %s", url, e)
            continue

    if parsed.entries and not articles:
        raise FilteredInputError(url, "no usable entries")

    title = clean_text(get_value(parsed.get("feed", {}), "title")) or url
    logger.info("Parsed %d articles from %s", len(articles), url)
    return Feed(url=url, title=title, articles=tuple(articles))


def _parse_entry(entry: Any, feed_url: str, seen: set[str]) -> Article | None:
    """Parse a single RSS entry into an Article."""
    title = clean_text(get_value(entry, "title"))
    if not title:
        return None

    link = get_value(entry, "link")
    key = link or title
    if key in seen:
        return None
    seen.add(key)

    summary = clean_text(get_value(entry, "summary", "description")) or ""
    body = clean_text(" ".join(
        get_value(content, "value", default="") for content in get_value(entry, "content", default=[])
    )) or ""

    return Article(
        id=generate_article_id(feed_url, key),
        feed_url=feed_url,
        title=title,
        summary=summary,
        url=link,
        published_at=_parse_published_date(entry),
        text=combine_text(title, summary, body),
    )


def _parse_published_date(entry: Any) -> datetime | None:
    """Extract and parse the published date from an RSS entry."""
    published = get_value(entry, "published", "updated")
    if not published:
        return None

    try:
        dt = parse_date(published, tzinfos=TZINFOS)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, OverflowError):
        return None
