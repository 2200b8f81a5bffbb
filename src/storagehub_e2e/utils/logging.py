"""
Structured logging for the StorageHub end-to-end workflow.

Modules obtain loggers with ``get_logger(__name__)`` and pass context through
``extra={...}``. ``configure_logging`` installs one stream handler on the
package logger whose formatter appends those extra fields as ``key=value``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

ROOT_LOGGER_NAME = "storagehub_e2e"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields to the rendered message."""

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extras:
            return rendered
        fields = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{rendered} [{fields}]"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    stream: Optional[TextIO] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this more than once replaces the previously installed handler.

    Args:
        level: Log level name or number
        stream: Output stream (defaults to stderr)
        fmt: Format string for the message prefix

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_storagehub_e2e", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ExtraFieldsFormatter(fmt))
    handler._storagehub_e2e = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    set_level(level)
    logger.propagate = False
    return logger


def set_level(level: Union[int, str]) -> None:
    """Set the package log level (accepts names such as ``"DEBUG"``)."""
    if isinstance(level, str):
        level = level.upper()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)
