"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docsearch.indexing.query import MAX_EDIT_DISTANCE

logger = logging.getLogger(__name__)


class DocSearchConfig(BaseSettings):
    """docsearch configuration."""

    model_config = SettingsConfigDict(env_prefix="DOCSEARCH_", extra="ignore")

    # Payload files or directories loaded at startup
    index_paths: List[Path] = Field(default_factory=list)
    default_limit: Optional[int] = 20
    max_edit_distance: int = MAX_EDIT_DISTANCE

    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @field_validator("default_limit")
    @classmethod
    def validate_default_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"default_limit must be >= 0, got {v}")
        return v

    @field_validator("max_edit_distance")
    @classmethod
    def validate_max_edit_distance(cls, v: int) -> int:
        if not 0 <= v <= MAX_EDIT_DISTANCE:
            raise ValueError(
                f"max_edit_distance must be between 0 and {MAX_EDIT_DISTANCE}, got {v}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level '{v}'")
        return level


# Module-level mtime-based config cache: path -> (parsed_config, file_mtime)
_config_cache: Dict[str, tuple] = {}


def _get_cached_or_load(resolved_path: Path, loader):
    """Return cached config if file mtime unchanged, else reload."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_result, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_result

    result = loader(resolved_path)
    _config_cache[key] = (result, current_mtime)
    return result


def _load_config_from_file(config_path: Path) -> DocSearchConfig:
    """Internal loader (no caching)."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    data = _expand_env_vars(data)
    config = DocSearchConfig(**data)

    # Relative index paths are relative to the config file, not the cwd
    config.index_paths = [
        p if p.is_absolute() else config_path.parent / p for p in config.index_paths
    ]
    return config


def load_config(config_path: Path = Path("docsearch.yaml")) -> DocSearchConfig:
    """Load configuration from a YAML file.

    Uses mtime-based caching; returns defaults when the file does not exist.
    """
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}. Using default configuration.")
        return DocSearchConfig()

    resolved = config_path.resolve()
    result = _get_cached_or_load(resolved, _load_config_from_file)
    return result if result is not None else DocSearchConfig()


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ``${VAR}`` values in config data.

    Args:
        data: Config data to process
        _path: Internal tracking for error messages (e.g., "log_file")
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used."
            )
            return data
        return value
    return data
