"""
Genome Database Health Checks - Structured Logging
Provides JSON-formatted logging so check runs can be queried after the fact.
"""

import logging
import sys
from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Check completed", extra={
        ...     "check_name": "CheckSpeciesSetTag",
        ...     "duration_seconds": 4.2,
        ...     "passed": True
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers (this logger's own, not its ancestors')
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('genome_healthchecks')


def log_check_start(check_name: str, database_count: int):
    """Log the start of a health check."""
    logger.info("Health check started", extra={
        "event_type": "check_start",
        "check_name": check_name,
        "database_count": database_count,
        "environment": config.environment
    })


def log_check_complete(check_name: str, passed: bool, duration_seconds: float):
    """Log health check completion with its verdict."""
    logger.info("Health check completed", extra={
        "event_type": "check_complete",
        "check_name": check_name,
        "passed": passed,
        "duration_seconds": duration_seconds
    })


def log_check_error(error: Exception, check_name: str, subject: str = None):
    """Log a sub-check failure with context."""
    logger.error("Health check error", extra={
        "event_type": "check_error",
        "check_name": check_name,
        "subject": subject,
        "error_type": type(error).__name__,
        "error_message": str(error)
    }, exc_info=True)


def log_finding(check_name: str, severity: str, subject: str, message: str):
    """Log a single finding; problems are logged as warnings."""
    level = logging.INFO if severity == "OK" else logging.WARNING
    logger.log(level, message, extra={
        "event_type": "finding",
        "check_name": check_name,
        "severity": severity,
        "subject": subject
    })


def log_database_error(error: Exception, query_context: str = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)
