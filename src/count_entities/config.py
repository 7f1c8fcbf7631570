"""Configuration loader for count_entities."""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path

from common.config import ConfigSingleton, find_config_path, load_yaml
from dataflow.errors import ConfigurationError
from dataflow.partitioner import validate_partition_count
from dataflow.workers import WORKER_POOLS
from extract_entities.heuristics import DEFAULT_MODEL, DEFAULT_WORD_LIMIT, HEURISTICS

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent / "configs"
CONFIG_ENV_VAR = "CONFIG_ENV"


@dataclass
class JobConfig:
    partition_count: int | None = None  # None -> min(number of feeds, 10)
    heuristic: str = "quick"  # "quick", "random" or "spacy"
    max_retries_per_partition: int = 3
    num_workers: int = 4
    worker_pool: str = "thread"  # "thread" or "inline"
    task_timeout: float | None = 60.0
    request_timeout: int = 30
    random_seed: int = 0
    spacy_model: str = DEFAULT_MODEL
    word_limit: int | None = DEFAULT_WORD_LIMIT
    sources: list[str] = field(default_factory=list)


def load_config(config_name: str | None = None) -> JobConfig:
    """Load and validate configuration from a YAML file.

    Args:
        config_name: Name of a file in configs/ (without .yaml extension) or a
                    path to a YAML file. If None, uses CONFIG_ENV env var or "prod".

    Returns:
        Validated JobConfig object
    """
    config_path = find_config_path(config_name, CONFIG_DIR, default_name="prod", env_var=CONFIG_ENV_VAR)
    logger.info("Loading config from %s", config_path)
    config = _parse_config(load_yaml(config_path))
    validate_config(config)
    return config


def _parse_config(data: dict) -> JobConfig:
    """Parse config dictionary into JobConfig object."""
    known = {f.name for f in fields(JobConfig)}
    for key in sorted(set(data) - known):
        logger.warning("Ignoring unknown config key: %s", key)

    defaults = JobConfig()
    return JobConfig(
        partition_count=data.get("partition_count", defaults.partition_count),
        heuristic=data.get("heuristic", defaults.heuristic),
        max_retries_per_partition=data.get("max_retries_per_partition", defaults.max_retries_per_partition),
        num_workers=data.get("num_workers", defaults.num_workers),
        worker_pool=data.get("worker_pool", defaults.worker_pool),
        task_timeout=data.get("task_timeout", defaults.task_timeout),
        request_timeout=data.get("request_timeout", defaults.request_timeout),
        random_seed=data.get("random_seed", defaults.random_seed),
        spacy_model=data.get("spacy_model", defaults.spacy_model),
        word_limit=data.get("word_limit", defaults.word_limit),
        sources=list(data.get("sources") or []),
    )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: JobConfig) -> None:
    """Raise ConfigurationError if any option is out of range."""
    if config.partition_count is not None:
        validate_partition_count(config.partition_count)
    if config.heuristic not in HEURISTICS:
        raise ConfigurationError(
            f"Unknown heuristic {config.heuristic!r}. Valid heuristics: {', '.join(HEURISTICS)}"
        )
    if not _is_int(config.max_retries_per_partition) or config.max_retries_per_partition < 0:
        raise ConfigurationError(
            f"max_retries_per_partition must be a non-negative integer, got {config.max_retries_per_partition!r}"
        )
    if not _is_int(config.num_workers) or config.num_workers <= 0:
        raise ConfigurationError(f"num_workers must be a positive integer, got {config.num_workers!r}")
    if config.worker_pool not in WORKER_POOLS:
        raise ConfigurationError(
            f"Unknown worker pool {config.worker_pool!r}. Valid pools: {', '.join(WORKER_POOLS)}"
        )
    if config.task_timeout is not None and (
        isinstance(config.task_timeout, bool)
        or not isinstance(config.task_timeout, (int, float))
        or config.task_timeout <= 0
    ):
        raise ConfigurationError(f"task_timeout must be positive or null, got {config.task_timeout!r}")
    if not _is_int(config.request_timeout) or config.request_timeout <= 0:
        raise ConfigurationError(f"request_timeout must be a positive integer, got {config.request_timeout!r}")
    if config.word_limit is not None and (not _is_int(config.word_limit) or config.word_limit <= 0):
        raise ConfigurationError(f"word_limit must be a positive integer or null, got {config.word_limit!r}")


# Global config instance (loaded on first access)
_manager: ConfigSingleton[JobConfig] = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
