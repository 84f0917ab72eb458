"""Logging for the quantum assembler.

Modules log through :func:`get_logger`. Every logger lives under the
``qassembler`` namespace and propagates to the package logger, which owns
the single stderr handler; :func:`configure_logging` swaps that handler.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "qassembler"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_level = logging.WARNING
_loggers: dict[str, logging.Logger] = {}
_handler: Optional[logging.Handler] = None


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _install_handler(stream: TextIO, format_string: str) -> logging.Logger:
    global _handler
    package = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        package.removeHandler(_handler)
    _handler = logging.StreamHandler(stream)
    _handler.setFormatter(logging.Formatter(format_string))
    package.addHandler(_handler)
    package.propagate = False
    package.setLevel(_level)
    return package


def _package_logger() -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None:
        _install_handler(sys.stderr, _DEFAULT_FORMAT)
    return package


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached logger for a module.

    Names outside the package namespace are prefixed with ``qassembler.``.

    Args:
        name: Usually ``__name__``. None returns the package logger.

    Example:
        >>> from qassembler.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("APPLY G_H R")
    """
    package = _package_logger()
    if name is None or name == PACKAGE_LOGGER:
        return package

    if not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    logger = _loggers.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        logger.setLevel(_level)
        _loggers[name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of the package logger and every module logger.

    Args:
        level: ``logging.DEBUG`` etc., or the level's name.
    """
    global _level
    _level = _coerce_level(level)
    _package_logger().setLevel(_level)
    for logger in _loggers.values():
        logger.setLevel(_level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Route assembler logs to ``stream`` at ``level``.

    Args:
        level: Logging level (default: WARNING).
        format_string: Record format. Defaults to ``[LEVEL] name: message``.
        stream: Output stream (default: sys.stderr).
    """
    _install_handler(stream or sys.stderr, format_string or _DEFAULT_FORMAT)
    set_log_level(level)
