import logging
import os
import sys
from typing import Dict, Optional, Union

LOG_LEVEL_ENV = "CQL_ELM_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_loggers: Dict[str, logging.Logger] = {}


def _default_level() -> int:
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())
    # getLevelName answers "Level X" for unknown names
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name or "cql_elm")
    if logger.handlers:
        return logger
    logger.setLevel(_default_level())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    _loggers[logger.name] = logger
    return logger


def set_log_level(level: Union[int, str]) -> None:
    """Apply `level` to every logger handed out by get_logger (e.g. --verbose)."""
    for logger in _loggers.values():
        logger.setLevel(level)
