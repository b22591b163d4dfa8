#!/usr/bin/env python
"""Handler setup for the `naming_laws` logger shared by both front ends."""

import logging
import sys
from typing import List, Optional

PACKAGE_LOGGER = "naming_laws"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _build_handlers(log_file: Optional[str], stream) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if stream is not False:
        handlers.append(logging.StreamHandler(stream or sys.stdout))
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    return handlers


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None, stream=None) -> logging.Logger:
    """
    Routes package log records to stdout and, optionally, to `log_file`.

    Pass `stream=False` when the terminal belongs to the Textual app; records
    then go to the file only, or nowhere when no file is given. Calling this
    again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = _build_handlers(log_file, stream) or [logging.NullHandler()]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to %s", ", ".join(type(h).__name__ for h in handlers))
    return logger
