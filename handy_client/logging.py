"""Logging configuration helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .core.models import LogMode

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "handy_client"


def configure_logging(
    level: str = "INFO",
    *,
    log_path: Optional[Path] = None,
    log_network: bool = False,
    log_mode: LogMode = LogMode.ERRORS,
) -> None:
    """Configure root logging handlers.

    Command diagnostics (responses, command start) are emitted at INFO, so a
    ``log_mode`` of ``responses`` or ``verbose`` lowers the package logger to
    INFO even when the root level is stricter. ``log_network`` keeps aiohttp's
    own loggers at the root level.
    """

    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if log_mode >= LogMode.RESPONSES and root.level > logging.INFO:
        package_logger.setLevel(logging.INFO)
    else:
        package_logger.setLevel(logging.NOTSET)

    network_level = logging.NOTSET if log_network else logging.WARNING
    for name in ("aiohttp.access", "aiohttp.client"):
        logging.getLogger(name).setLevel(network_level)
