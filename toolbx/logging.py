# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Centralized logging configuration.

The interactive session owns the terminal, so all diagnostics go to
stderr and default to warnings only.

Usage:
    # In entry points (CLI)
    from toolbx.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.debug("Starting container %s", container)
"""

import logging
import sys


#: Accepted ``--log-level`` values mapped to Python logging levels.
LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def parse_log_level(name: str) -> int:
    """Translate a level name (case-insensitive) to a logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    try:
        return LOG_LEVELS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown log level {name!r}, expected one of: "
            + ", ".join(sorted(LOG_LEVELS))
        ) from None


def podman_log_level(level: int) -> str:
    """Return the engine ``--log-level`` value matching a Python level.

    The engine is kept one step quieter than warnings unless debugging,
    so its own output does not interleave with the session.
    """
    if level <= logging.DEBUG:
        return "debug"
    if level <= logging.INFO:
        return "info"
    if level <= logging.WARNING:
        return "warn"
    return "error"


def configure_logging(
    level: int = logging.WARNING,
    format_string: str | None = None,
) -> None:
    """Configure the root logger to write to stderr.

    Args:
        level: The logging level (e.g., logging.INFO, logging.DEBUG).
        format_string: Custom format string. If None, uses default format.
    """
    if format_string is None:
        format_string = "%(levelname)s %(name)s: %(message)s"

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
