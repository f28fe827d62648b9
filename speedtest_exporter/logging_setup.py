"""Centralized logging configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import List

from .config import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# One access line per request, health checks included.
NOISY_LOGGERS = ("werkzeug",)


def configure_logging(config: AppConfig) -> None:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.logging.log_to_file:
        log_dir = config.paths.logs_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_dir / config.logging.filename,
                maxBytes=config.logging.max_bytes,
                backupCount=config.logging.backup_count,
            )
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
