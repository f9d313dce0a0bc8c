"""Infrastructure utilities (logging configuration and helpers).

Example:
    >>> from roomray.infra import LoggingConfig, get_logger, setup_logging
    >>> setup_logging(LoggingConfig(level="INFO"))
    >>> logger = get_logger("examples")
    >>> logger.info("running roomray example")
"""

from .logging import LoggingConfig, ProgressLogger, get_logger, setup_logging

__all__ = [
    "LoggingConfig",
    "ProgressLogger",
    "get_logger",
    "setup_logging",
]
