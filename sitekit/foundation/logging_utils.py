"""Logging helpers for build sessions."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_build_logger(log_dir: str | None, build_id: str) -> tuple[logging.Logger, str | None]:
    """
    Configure a logger for one build.

    Writes DEBUG and above to `<log_dir>/<build_id>.log` (UTF-8) when `log_dir`
    is given and INFO and above to stderr. Returns (logger, log_file).
    """

    logger = logging.getLogger(f"sitekit.{build_id}")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{build_id}.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.INFO)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    logger.propagate = False

    logger.info("Build logging initialized for %s", build_id)
    if log_file:
        logger.debug("Build log file: %s", log_file)

    return logger, log_file


def format_size_change(size_before: int, size_after: int) -> str:
    """Render a size change as `(N Ko -> M Ko)` using ceil division by 1000."""
    return f"({-(-size_before // 1000)} Ko -> {-(-size_after // 1000)} Ko)"
