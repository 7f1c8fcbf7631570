"""Helper functions for count_entities CLI."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from extract_entities.heuristics import HEURISTICS
from ingest_feeds.sources import RSS_FEEDS

logger = logging.getLogger(__name__)


def parse_sources(value: str | list[str] | None) -> list[str]:
    '''Resolve source names (comma-separated string or list) to feed URLs.'''

    # If no value is provided or if "all" is specified, return all feeds
    if isinstance(value, str):
        value = value.split(",")
    names = [s.strip() for s in (value or []) if s.strip()]
    if not names or any(name.lower() == "all" for name in names):
        return list(RSS_FEEDS.values())

    # Log any invalid sources
    for name in names:
        if name not in RSS_FEEDS:
            logger.warning("Invalid source: %s", name)

    urls = [RSS_FEEDS[name] for name in names if name in RSS_FEEDS]

    # Raise an error if no valid sources were provided
    if not urls:
        raise ValueError(f"No valid sources provided. Valid sources: {', '.join(sorted(RSS_FEEDS))}")

    return urls


def read_urls_file(path: str | Path) -> list[str]:
    '''Read feed URLs from a file, one per line. Blank lines and # comments are skipped.'''

    urls = []
    with open(path) as f:
        for line in f:
            line = line.split("#", 1)[0].strip()
            if line:
                urls.append(line)
    return urls


def parse_count_entities_args(argv: list[str] | None = None) -> argparse.Namespace:
    '''Parse CLI arguments for count_entities.'''

    parser = argparse.ArgumentParser(description="Count named entities across RSS feeds")

    # Input options
    parser.add_argument(
        "--config",
        default=None,
        help="Config name in configs/ or path to a YAML file (default: $CONFIG_ENV or 'prod')",
    )
    parser.add_argument("--urls", default=None, help="Comma-separated feed URLs")
    parser.add_argument("--urls-file", default=None, help="File with one feed URL per line")
    parser.add_argument(
        "--sources",
        default=None,
        help="Comma-separated source names (default: sources from config, else all).",
    )

    # Job options (override config)
    parser.add_argument("--heuristic", choices=HEURISTICS, default=None, help="Entity heuristic")
    parser.add_argument("--partitions", type=int, default=None, help="Number of partitions")
    parser.add_argument("--workers", type=int, default=None, help="Worker pool size")
    parser.add_argument("--max-retries", type=int, default=None, help="Retries per failed partition")

    # Output options
    parser.add_argument("--top", type=int, default=20, help="Number of entities to print (default: 20)")
    parser.add_argument("--load-local", action="store_true", help="Save counts to a local JSONL file")
    parser.add_argument("--output-dir", default="output", help="Directory for --load-local (default: output)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level (includes execution plans)")

    return parser.parse_args(argv)
