"""Common CLI helper utilities."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

LOG_LEVEL_ENV_VAR = "LOG_LEVEL"


def setup_logging(verbose: bool = False) -> None:
    """Configure standard logging format for CLI tools.

    The level is DEBUG when verbose, else $LOG_LEVEL (default INFO).
    """
    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def save_jsonl_local(
    records: Iterable[dict[str, Any]],
    prefix: str,
    timestamp: datetime,
    output_dir: str | Path = "output",
) -> Path:
    """Write records as JSON lines to <output_dir>/<prefix>_<YYYY_MM_DD_HH_MM>.jsonl.

    Returns:
        Path to the created file.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    filepath = output_path / f"{prefix}_{timestamp.strftime('%Y_%m_%d_%H_%M')}.jsonl"
    with filepath.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record, default=str, ensure_ascii=False) + "\n")
    return filepath
