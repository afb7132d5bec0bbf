"""
Editing context logger.

Provides logging interface for the editing context with automatic [edit] prefix.
All editing modules should import from this module, not from loguru directly.
Sink configuration is done once per process via vitae.utils.logger.setup_logger.
"""

from loguru import logger

CONTEXT_PREFIX = "[edit]"


def _log_info(message: str) -> None:
    """Log info message with [edit] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [edit] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
