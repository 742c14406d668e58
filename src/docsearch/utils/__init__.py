"""Shared utility functions."""

from .rich_logging import SearchLogFormatter, setup_logging

__all__ = ["SearchLogFormatter", "setup_logging"]
