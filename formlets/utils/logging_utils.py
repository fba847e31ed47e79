"""Logging setup for the formlets package and rendering of build summaries."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Sequence, Tuple, Union

from formlets.utils.type_utils import MISSING, get_segment, is_record

PACKAGE_LOGGER = "formlets"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"

_console_handler: Optional[logging.Handler] = None


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Send ``formlets`` log records to the console at ``level``.

    Only the package logger is touched; repeated calls change the level
    without stacking handlers.
    """
    global _console_handler

    log_level = logging.getLevelName(level.upper()) if isinstance(level, str) else level

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(log_level)

    if _console_handler is None:
        _console_handler = logging.StreamHandler()
        _console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    if _console_handler not in logger.handlers:
        logger.addHandler(_console_handler)
    _console_handler.setLevel(log_level)

    return logger


def format_value(value: Any, *, max_length: int = 80, key_attribute: str = "id") -> str:
    """Render a resolved field value compactly.

    Records are shown by their key (``<record id=3>``) rather than in full.
    """
    if value is None or value is MISSING:
        text = "–"
    elif value == "":
        text = "''"
    elif is_record(value):
        key = get_segment(value, key_attribute)
        if key is not MISSING:
            text = f"<record {key_attribute}={key}>"
        elif isinstance(value, Mapping):
            text = "{" + ", ".join(
                f"{k}: {format_value(v, max_length=max_length // 2)}"
                for k, v in value.items()
            ) + "}"
        else:
            text = str(value)
    elif isinstance(value, (list, tuple, set)):
        text = "[" + ", ".join(
            format_value(item, max_length=max_length // 2) for item in value
        ) + "]"
    else:
        text = str(value)

    if len(text) > max_length:
        return text[: max_length - 1] + "…"
    return text


def log_section(
    logger: logging.Logger,
    title: str,
    entries: Sequence[Tuple[str, str, Optional[str]]],
    *,
    level: int = logging.INFO,
) -> None:
    """Log ``title`` followed by one ``- name: value (source)`` line per entry."""
    if not entries or not logger.isEnabledFor(level):
        return

    logger.log(level, "%s:", title)
    for name, value, source in entries:
        suffix = f" ({source})" if source else ""
        logger.log(level, "  - %s: %s%s", name, value, suffix)
