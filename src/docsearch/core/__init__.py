"""Configuration."""

from .config import DocSearchConfig, load_config

__all__ = ["DocSearchConfig", "load_config"]
