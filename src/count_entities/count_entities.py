"""Count named entities across a set of RSS feeds."""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Iterable, Optional, Sequence

from dataflow.cancel import CancelToken
from dataflow.collector import sorted_counts
from dataflow.context import DataflowContext
from dataflow.dataset import Dataset
from extract_entities.heuristics import Heuristic, get_heuristic
from extract_entities.models import NamedEntity
from ingest_feeds.fetch_feed import fetch_and_parse
from ingest_feeds.models import Article, Feed
from count_entities.config import JobConfig, validate_config
from count_entities.models import EntityCount

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Optional[Feed]]


def _is_feed(feed: Feed | None) -> bool:
    return feed is not None


def _feed_articles(feed: Feed) -> tuple[Article, ...]:
    return feed.articles


def _entity_pair(entity: NamedEntity) -> tuple[str, int]:
    return entity.name, 1


def build_pipeline(
    context: DataflowContext,
    urls: Sequence[str],
    fetch: FetchFn,
    heuristic: Heuristic,
    num_partitions: int | None = None,
) -> Dataset:
    """
    Record the fetch -> parse -> extract chain as a lazy dataset of (name, 1) pairs.

    Nothing is fetched until an action runs on the returned dataset.
    """
    return (
        context.parallelize(list(urls), num_partitions, name="feed_urls")
        .map(fetch, name="fetch_and_parse")
        .filter(_is_feed, name="drop_failed_feeds")
        .flat_map(_feed_articles, name="articles")
        .flat_map(heuristic, name="extract_entities")
        .map(_entity_pair, name="entity_pairs")
    )


def count_entities(
    urls: Iterable[str],
    config: JobConfig | None = None,
    fetch: FetchFn | None = None,
    heuristic: Heuristic | None = None,
    context: DataflowContext | None = None,
    cancel_token: CancelToken | None = None,
) -> dict[str, int]:
    """
    Count entity occurrences across every article of every feed.

    Args:
        urls: Feed URLs.
        config: Job configuration (default: JobConfig()).
        fetch: Fetch/parse function (default: fetch_and_parse with config.request_timeout).
        heuristic: Entity heuristic (default: the one named by config.heuristic).
        context: Dataflow context to run in (default: a new one built from config).
        cancel_token: Token the caller may use to cancel the job.

    Returns:
        Mapping of entity name to number of occurrences.

    Raises:
        ConfigurationError: If the configuration is invalid (before anything runs).
        PartitionUnrecoverableError: If a partition fails more often than allowed.
        JobCancelledError: If the job is cancelled.
    """
    config = config or JobConfig()
    validate_config(config)
    urls = list(urls)

    if heuristic is None:
        heuristic = get_heuristic(
            config.heuristic,
            seed=config.random_seed,
            spacy_model=config.spacy_model,
            word_limit=config.word_limit,
        )
    if fetch is None:
        fetch = partial(fetch_and_parse, timeout=config.request_timeout)
    if context is None:
        context = DataflowContext(
            num_workers=config.num_workers,
            worker_pool=config.worker_pool,
            max_retries_per_partition=config.max_retries_per_partition,
            task_timeout=config.task_timeout,
        )

    logger.info("Counting entities in %d feeds (heuristic=%s)", len(urls), config.heuristic)
    pairs = build_pipeline(context, urls, fetch, heuristic, config.partition_count)
    counts = pairs.count_by_key(cancel_token)
    logger.info("Counted %d distinct entities", len(counts))
    return counts


def to_entity_counts(counts: dict[str, int], limit: int | None = None) -> list[EntityCount]:
    """Order counts for presentation, most frequent first."""
    return [EntityCount(name=name, count=count) for name, count in sorted_counts(counts, limit)]
