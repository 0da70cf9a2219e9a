"""
Logging configuration
"""

import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_loggers = set()


def _to_level(level):
    return getattr(logging, str(level).upper(), logging.INFO)


def get_logger(name, level=None):
    """Get a configured logger instance."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    if level is None:
        level = os.environ.get('LOG_LEVEL', 'INFO')
    logger.setLevel(_to_level(level))
    _loggers.add(name)
    return logger


def set_log_level(level):
    """Apply the configured level to every logger handed out so far."""
    for name in _loggers:
        logging.getLogger(name).setLevel(_to_level(level))
