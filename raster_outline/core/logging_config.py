#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging setup for raster_outline.

All modules log through children of the ``raster_outline`` logger, so one
call to :func:`setup_logging` controls the level and the destinations of the
whole package. Calling it again swaps the handlers it installed earlier
instead of stacking new ones.
"""
import logging
import os
from typing import List, Optional, Union
from raster_outline.core.config import LOGGING_CONFIG

ROOT_LOGGER_NAME = "raster_outline"

# Marks handlers owned by setup_logging
_OWNED_ATTR = "_raster_outline_handler"


def _parse_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric


def _build_handlers(formatter: logging.Formatter,
                    log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(str(log_file))
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED_ATTR, True)
    return handlers


def setup_logging(log_level: Optional[Union[str, int]] = None,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Parameters
    ----------
    log_level : str or int, optional
        Level name (DEBUG, INFO, ...) or number. Defaults to
        ``LOGGING_CONFIG["level"]``.
    log_file : str, optional
        Also write records to this file. When omitted, ``LOGGING_CONFIG``
        decides whether a file is written.

    Returns
    -------
    logging.Logger
        The ``raster_outline`` logger.
    """
    level = _parse_level(log_level or LOGGING_CONFIG.get("level", "INFO"))
    if log_file is None and LOGGING_CONFIG.get("log_to_file", False):
        log_file = LOGGING_CONFIG.get("log_file")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _OWNED_ATTR, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOGGING_CONFIG.get(
        "log_format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    for handler in _build_handlers(formatter, log_file):
        logger.addHandler(handler)

    logger.debug("Logging initialized at level %s", logging.getLevelName(level))
    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """Logger for ``module_name``, nested under ``raster_outline``."""
    if module_name == ROOT_LOGGER_NAME or module_name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(module_name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")


# Initialize the package logger
root_logger = setup_logging()
