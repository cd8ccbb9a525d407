"""Logging setup for the triage desk service."""

import logging

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "triage_desk"

_handler: logging.Handler | None = None


def configure_logging(level: str = "INFO") -> None:
    """
    Attach a console handler to the package logger.

    Safe to call more than once; the handler is replaced, not duplicated.

    Raises:
        ValueError: If level is not a standard logging level name.
    """
    global _handler

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        package_logger.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    package_logger.addHandler(_handler)
    package_logger.setLevel(numeric_level)
