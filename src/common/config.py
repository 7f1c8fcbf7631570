"""Shared configuration utilities."""

import os
import threading
from pathlib import Path
from typing import TypeVar, Callable, Generic

import yaml

T = TypeVar('T')

YAML_SUFFIXES = (".yaml", ".yml")


def find_config_path(
    config_name: str | Path | None,
    config_dir: Path,
    default_name: str = "prod",
    env_var: str | None = None,
) -> Path:
    """Resolve a config name or path to an existing YAML file.

    Args:
        config_name: Config name looked up in config_dir, a path to a YAML
            file, or None to fall back to env_var and then default_name
        config_dir: Directory holding the named configs
        default_name: Name used when neither config_name nor env_var is set
        env_var: Environment variable holding a config name

    Raises:
        FileNotFoundError: If the resolved file doesn't exist
    """
    if config_name is None:
        config_name = os.environ.get(env_var, default_name) if env_var else default_name

    config_path = Path(config_name)
    if config_path.suffix not in YAML_SUFFIXES:
        config_path = config_dir / f"{config_name}.yaml"
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return config_path


def load_yaml(path: Path) -> dict:
    """Load a YAML mapping. An empty file gives an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


class ConfigSingleton(Generic[T]):
    """Lazily loaded, process-wide config holder with get/set/reset.

    Example:
        >>> _manager = ConfigSingleton(load_config)
        >>> get_config = _manager.get
        >>> set_config = _manager.set
        >>> reset_config = _manager.reset
    """

    def __init__(self, loader: Callable[[], T] | None = None):
        self._config: T | None = None
        self._loader = loader
        self._lock = threading.Lock()

    def get(self) -> T:
        with self._lock:
            if self._config is None:
                if self._loader is None:
                    raise RuntimeError("No config loaded and no loader set")
                self._config = self._loader()
            return self._config

    def set(self, config: T) -> None:
        with self._lock:
            self._config = config

    def reset(self) -> None:
        """Drop the current config; the next get() loads it again."""
        with self._lock:
            self._config = None
