"""Logging utilities for the appointment agent."""

import logging
import sys

_LOGGER_NAME = "appointment_agent"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance for the agent.

    Args:
        name: Optional sub-logger name. If None, returns the root agent logger.

    Returns:
        The requested logger.
    """
    if name:
        if name.startswith(f"{_LOGGER_NAME}."):
            return logging.getLogger(name)
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def setup_logging(
    level: int | str = logging.INFO, format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
) -> None:
    """Setup default logging configuration for the agent.

    This adds a StreamHandler to the agent's root logger.
    Should be called by the application entry point (the CLI), not by library code.

    Args:
        level: Logging level, either numeric or a level name such as ``"DEBUG"``.
        format_str: Log format string.
    """
    logger = logging.getLogger(_LOGGER_NAME)

    # Avoid adding multiple handlers if called multiple times
    if any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(format_str)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)


# Set default NullHandler to avoid "No handler found" warnings
logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
