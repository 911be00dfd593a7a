"""
Logging configuration for mysqlgate.

All output goes to stderr; stdout carries the MCP stdio transport.
Records carry two extras rendered by every sink:

- ``component``: the mysqlgate module that logged, bound by ``get_logger``
- ``code``: a GatewayError code, bound at the call site for denials and
  failures (``logger.bind(code=e.code)``), ``-`` otherwise
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

PACKAGE_PREFIX = "mysqlgate."
NO_CODE = "-"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <7}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<yellow>{extra[code]}</yellow> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[component]} | {extra[code]} | {message}"

LOG_ROTATION = "10 MB"
LOG_RETENTION = "7 days"


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """
    Route logs to stderr and, optionally, a rotating file.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
    """
    logger.remove()
    logger.configure(extra={"component": "mysqlgate", "code": NO_CODE})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            format=FILE_FORMAT,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            encoding="utf-8",
        )


def get_logger(name: str) -> Logger:
    """Return a logger tagged with the short module name (``mysqlgate.guard`` -> ``guard``)."""
    component = name[len(PACKAGE_PREFIX) :] if name.startswith(PACKAGE_PREFIX) else name
    return logger.bind(component=component, code=NO_CODE)
