"""
Comparison context logger.

Provides logging interface for the comparison context with automatic [diff] prefix.
All comparison modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[diff]"


def _log_debug(message: str) -> None:
    """Log debug message with [diff] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
