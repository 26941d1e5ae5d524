"""
Logging configuration for the gateway service.

Every logger writes to stdout and tags each record with the correlation id
of the HTTP request being served, so log lines from the explorer proxy and
the signing flow can be tied back to one call.
"""
import logging
import os
import sys

from flask import g, has_app_context

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s'


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'correlation_id'):
            correlation_id = None
            if has_app_context():
                correlation_id = g.get('correlation_id')
            record.correlation_id = correlation_id or '-'
        return True


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to this module's name if not provided)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or __name__)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
