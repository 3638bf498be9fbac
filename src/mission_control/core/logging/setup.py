from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from mission_control.core.settings.settings import Settings

from .json_formatter import JSONFormatter

ROOT_LOGGER = "mission_control"
LOG_FILE_NAME = "mission_control.log"
STDOUT_HANDLER = "mission_control.stdout"
FILE_HANDLER = "mission_control.file"


def _level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _install(logger: logging.Logger, handler: logging.Handler, name: str) -> None:
    handler.set_name(name)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)


def configure_logging(settings: Settings) -> logging.Logger:
    """Send ``mission_control.*`` records to stdout and, if enabled, a rotating file.

    Handlers are found by name, so repeated calls add nothing new. A change of
    log directory swaps the file handler instead of adding a second one.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_level(settings.log_level))
    logger.propagate = False
    named = {handler.get_name(): handler for handler in logger.handlers}

    if STDOUT_HANDLER not in named:
        _install(logger, logging.StreamHandler(stream=sys.stdout), STDOUT_HANDLER)

    current = named.get(FILE_HANDLER)
    if not settings.log_to_file:
        if current is not None:
            logger.removeHandler(current)
            current.close()
        return logger

    log_dir = settings.logs_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = os.path.abspath(log_dir / LOG_FILE_NAME)
    if isinstance(current, RotatingFileHandler) and current.baseFilename == log_path:
        return logger
    if current is not None:
        logger.removeHandler(current)
        current.close()
    _install(
        logger,
        RotatingFileHandler(
            filename=log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        ),
        FILE_HANDLER,
    )
    return logger
