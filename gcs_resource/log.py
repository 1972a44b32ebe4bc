from __future__ import annotations
"""Logging setup for processes embedding the GCS resource client."""
import logging
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("urllib3", "google.auth", "google.cloud.storage")


def setup_logging(level: str | int = "INFO", stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a console handler to the package logger and quieten client libraries."""
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger = logging.getLogger("gcs_resource")
    logger.setLevel(level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
