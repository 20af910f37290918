"""Logging utilities for repolens commands and services."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "repolens"

CONSOLE_FORMAT = "[repolens] %(levelname)s %(message)s"
VERBOSE_CONSOLE_FORMAT = "[repolens] %(levelname)s %(component)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose the logger name relative to the repolens root as ``component``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_LOGGER_NAME}."
        name = record.name
        record.component = name[len(prefix):] if name.startswith(prefix) else name
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repolens hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the repolens console handler and an optional file sink.

    Verbose mode logs at DEBUG and prefixes each console line with the
    emitting component (``context.selector``, ``analyzers.gaps``...). Handlers
    installed by an earlier call are replaced; foreign handlers are kept.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        if getattr(handler, "_repolens", False):
            logger.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.addFilter(_ComponentFilter())
    console.setFormatter(logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT))
    _install(logger, console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file sink always records debug detail for troubleshooting.
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.setLevel(logging.DEBUG)
        _install(logger, file_handler)

    return logger


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    handler._repolens = True  # type: ignore[attr-defined]
    logger.addHandler(handler)


__all__ = ["configure_logging", "get_logger"]
