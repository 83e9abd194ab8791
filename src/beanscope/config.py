"""
Configuration for beanscope.

Values come from ``config/default.yaml`` (or the file named by
``BEANSCOPE_CONFIG``) and may be overridden with ``BEANSCOPE_<FIELD>``
environment variables. ``CONFIG`` always points at a complete, immutable
snapshot; ``CONFIG.reload()`` builds a new one and swaps it in.
"""

import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from beanscope import __version__
from beanscope.logger import get_logger

logger = get_logger(__name__)

PROJECT_DIR = Path(os.getenv("BEANSCOPE_HOME", Path(__file__).resolve().parents[2]))
CONFIG_DIR = PROJECT_DIR / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "default.yaml"

ENV_PREFIX = "BEANSCOPE_"

MIB = 1024 * 1024


class BeanScopeConfig(BaseModel):
    """Effective service configuration."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_file: str | None = None
    protocol_version: str = __version__

    # Read path
    default_max_depth: int = Field(default=2, ge=0)
    default_max_count: int | None = Field(default=None, ge=0)
    default_max_size: int | None = Field(default=None, ge=0)
    abs_max_xml_size: int = Field(default=4 * MIB, gt=0)
    url_length_limit: int = Field(default=2048, gt=0)

    # Invoke path
    invoke_max_time: int = Field(default=5, ge=0)
    invoke_max_size: int = Field(default=2 * MIB, gt=0)
    min_invoke_response_size: int = Field(default=95, gt=0)
    max_request_size: int = Field(default=8192, gt=0)

    exclusions_file: str | None = "exclusions.yaml"

    def exclusions_path(self) -> Path | None:
        """Resolve the exclusions file relative to the config directory."""
        if not self.exclusions_file:
            return None
        path = Path(self.exclusions_file)
        return path if path.is_absolute() else CONFIG_DIR / path


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _env_overrides() -> dict[str, Any]:
    overrides = {}
    for field_name in BeanScopeConfig.model_fields:
        value = os.getenv(ENV_PREFIX + field_name.upper())
        if value is not None:
            overrides[field_name] = value
    return overrides


def load_config(path: Path | None = None) -> BeanScopeConfig:
    """
    Build a configuration snapshot.

    Args:
        path: YAML file to read. Defaults to ``BEANSCOPE_CONFIG`` or
            ``config/default.yaml``.

    Raises:
        ValueError: If the file or an override holds an invalid value.
    """
    if path is None:
        path = Path(os.getenv(ENV_PREFIX + "CONFIG", DEFAULT_CONFIG_FILE))

    data = _read_yaml(path)
    data.update(_env_overrides())

    try:
        return BeanScopeConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {path}: {e}") from e


class _ConfigProxy:
    """Attribute proxy over the current snapshot with atomic reload."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current = BeanScopeConfig()

    def __getattr__(self, item: str) -> Any:
        return getattr(self._current, item)

    @property
    def snapshot(self) -> BeanScopeConfig:
        return self._current

    def reload(self, path: Path | None = None) -> BeanScopeConfig:
        """Load a fresh snapshot and swap it in."""
        new = load_config(path)
        with self._lock:
            self._current = new
        logger.info("Configuration reloaded")
        return new

    def replace(self, **changes: Any) -> BeanScopeConfig:
        """Swap in a copy of the current snapshot with some fields changed."""
        with self._lock:
            self._current = self._current.model_copy(update=changes)
        return self._current

    def to_dict(self) -> dict[str, Any]:
        return self._current.model_dump()


CONFIG = _ConfigProxy()
