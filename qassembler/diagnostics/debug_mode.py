"""Debug mode: re-check the unit-norm invariant after every mutation."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

DEBUG_ENV_VAR = "QASSEMBLER_DEBUG"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


_debug_enabled = _env_flag(DEBUG_ENV_VAR)


def is_debug_enabled() -> bool:
    """
    Whether APPLY and MEASURE verify the register norm before committing.

    Initialized from ``QASSEMBLER_DEBUG`` at import time.
    """
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    """Turn debug mode on or off for the whole process."""
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Set debug mode for the duration of a block, restoring it afterwards.

    Example
    -------
    >>> with debug_context():
    ...     ctx.apply("G_H", "R")
    """
    previous = is_debug_enabled()
    set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)
