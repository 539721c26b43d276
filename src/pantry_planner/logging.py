"""Logging setup shared by every pantry_planner module.

Module loggers are children of the ``pantry_planner`` namespace logger. Only
the namespace logger carries handlers (console, plus ``LOG_FILE`` when set)
and it does not propagate, so an application that configures the root logger
does not see each record twice.
"""

import logging
import os
import threading
from typing import Optional, Union

NAMESPACE = "pantry_planner"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_setup_lock = threading.Lock()


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def _namespace_logger() -> logging.Logger:
    logger = logging.getLogger(NAMESPACE)
    if getattr(logger, "_pantry_configured", False):
        return logger

    file_error: Optional[OSError] = None
    with _setup_lock:
        if getattr(logger, "_pantry_configured", False):
            return logger
        level = _coerce_level(os.environ.get("LOG_LEVEL", "INFO"))
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

        handlers = [logging.StreamHandler()]
        log_file = os.environ.get("LOG_FILE")
        if log_file:
            try:
                handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
            except OSError as exc:
                file_error = exc
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        logger.setLevel(level)
        logger.propagate = False
        setattr(logger, "_pantry_configured", True)

    if file_error is not None:
        logger.warning(f"LOG_FILE could not be opened ({file_error}); continuing without file logging")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``pantry_planner.<name>``, setting up the shared handlers on first use."""
    namespace = _namespace_logger()
    if name == NAMESPACE or name.startswith(NAMESPACE + "."):
        return logging.getLogger(name)
    return namespace.getChild(name)
