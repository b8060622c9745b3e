"""Logging configuration helpers for the exam delivery engine."""

from __future__ import annotations

import logging
from logging import Logger

from exam_delivery.config import LOG_LEVEL


def configure_logging(level: str | None = None) -> Logger:
    """Configure basic logging for the application and return the package logger."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("exam_delivery")
