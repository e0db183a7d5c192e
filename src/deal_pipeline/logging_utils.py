"""Logging configuration helpers for the deal pipeline tracker."""
from __future__ import annotations

import logging
import os


def _coerce_level(level: str | int) -> int:
    """Translate a user provided level into a numeric log level."""

    if isinstance(level, int):
        return level
    name = level.upper()
    if name not in logging._nameToLevel:  # type: ignore[attr-defined]
        raise ValueError(f"Unknown log level: {level}")
    return logging._nameToLevel[name]  # type: ignore[attr-defined]


def configure_logging(level: str | int | None = None, *, force: bool = False) -> None:
    """Configure the root logger for console output.

    The level defaults to ``DEAL_PIPELINE_LOG_LEVEL`` when ``level`` is not
    provided, and to INFO when neither names a known level. ``force`` is passed
    through to :func:`logging.basicConfig` so callers can replace handlers that
    are already installed.
    """

    requested = level if level is not None else os.getenv("DEAL_PIPELINE_LOG_LEVEL", "INFO")
    try:
        resolved_level = _coerce_level(requested)
    except ValueError:
        resolved_level = logging.INFO

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        root_logger.setLevel(resolved_level)
        return

    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )


__all__ = ["configure_logging"]
