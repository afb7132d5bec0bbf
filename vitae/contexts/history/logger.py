"""
History context logger.

Provides logging interface for the history context with automatic [history] prefix.
All history modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[history]"


def _log_info(message: str) -> None:
    """Log info message with [history] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [history] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [history] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [history] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level history logging helpers


def log_commit_created(commit, branch_name: str) -> None:
    """Log a new commit with its display hash and first message line."""
    headline = commit.message.splitlines()[0]
    parent = commit.parent_id[:7] if commit.parent_id else "<root>"
    _log_success(f"{branch_name}: committed {commit.short_hash} (parent {parent}) \"{headline}\"")
    _log_debug(f"  Snapshot: {commit.snapshot_hash[:12]} ({len(commit.snapshot)} blocks)")


def log_tip_conflict(branch_name: str, expected_tip, actual_tip) -> None:
    """Log a rejected compare-and-swap on a branch tip."""
    expected = expected_tip[:7] if expected_tip else "<none>"
    actual = actual_tip[:7] if actual_tip else "<none>"
    _log_warning(f"{branch_name}: tip moved (expected {expected}, found {actual}); commit rejected")
