"""Console and file logging with crate/query context."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "docsearch"


class SearchLogFormatter(logging.Formatter):
    """Formatter that prefixes records with their crate or query context."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        context = ""
        if hasattr(record, "crate"):
            context += f"[{record.crate}] "
        if hasattr(record, "query"):
            context += f"[query={record.query!r}] "

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = "\033[0m"
        else:
            level_color = ""
            reset = ""

        message = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{record.name}: {context}{record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(
    log_level: str = "WARNING",
    log_file: Optional[Path] = None,
    use_colors: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write plain (uncoloured) records to this file
        use_colors: Force colours on/off; defaults to whether stderr is a TTY

    Returns:
        The configured ``docsearch`` logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper()))

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if use_colors is None:
        use_colors = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(SearchLogFormatter(use_colors=use_colors))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(SearchLogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
