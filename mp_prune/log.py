"""Logging helpers: a TRACE level below DEBUG and CLI setup."""

from __future__ import annotations

import logging

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def get_logger(name: str, override: logging.Logger | None = None) -> logging.Logger:
    """Return the caller-supplied logger if any, else the module logger."""
    return override if override is not None else logging.getLogger(name)


def configure_logging(verbosity: int = 0) -> None:
    level = _VERBOSITY_LEVELS.get(verbosity, TRACE)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("mp_prune").setLevel(level)
