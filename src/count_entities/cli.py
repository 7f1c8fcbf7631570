"""CLI for counting named entities across RSS feeds."""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone

from dotenv import load_dotenv

from common.cli_helpers import save_jsonl_local, setup_logging
from common.serialization import serialize_dataclass
from dataflow.errors import (
    ConfigurationError,
    CountOverflowError,
    JobCancelledError,
    PartitionUnrecoverableError,
)
from count_entities.config import JobConfig, load_config, validate_config
from count_entities.count_entities import count_entities, to_entity_counts
from count_entities.helpers import parse_count_entities_args, parse_sources, read_urls_file

logger = logging.getLogger(__name__)


def _apply_overrides(config: JobConfig, args) -> JobConfig:
    overrides = {
        "heuristic": args.heuristic,
        "partition_count": args.partitions,
        "num_workers": args.workers,
        "max_retries_per_partition": args.max_retries,
    }
    return replace(config, **{key: value for key, value in overrides.items() if value is not None})


def _resolve_urls(args, config: JobConfig) -> list[str]:
    urls: list[str] = []
    if args.urls:
        urls.extend(url.strip() for url in args.urls.split(",") if url.strip())
    if args.urls_file:
        urls.extend(read_urls_file(args.urls_file))
    if urls:
        return urls
    return parse_sources(args.sources or config.sources)


def main(argv: list[str] | None = None) -> int:
    args = parse_count_entities_args(argv)
    setup_logging(verbose=args.verbose)
    load_dotenv()

    try:
        config = _apply_overrides(load_config(args.config), args)
        validate_config(config)
        urls = _resolve_urls(args, config)
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        counts = count_entities(urls, config)
    except (PartitionUnrecoverableError, CountOverflowError) as e:
        logger.error("Job failed: %s", e)
        return 1
    except (JobCancelledError, KeyboardInterrupt):
        logger.warning("Job cancelled")
        return 130

    rows = to_entity_counts(counts)
    for row in rows[: args.top]:
        print(f"{row.count:8d}  {row.name}")

    if args.load_local:
        now = datetime.now(timezone.utc)
        filepath = save_jsonl_local(
            [serialize_dataclass(row) for row in rows],
            "entity_counts",
            now,
            output_dir=args.output_dir,
        )
        logger.info("Saved %d entity counts to %s", len(rows), filepath)

    return 0


if __name__ == "__main__":
    sys.exit(main())
