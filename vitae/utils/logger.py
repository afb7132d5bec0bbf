"""
Session log configuration.

One loguru setup per process: a DEBUG-level log file inside a per-session
directory, an optional colorized console sink, and a provenance header at the
top of the file so a log can be traced back to the command and database that
produced it. Per-context prefixes live in contexts/{context}/logger.py.
"""

import os
import sys
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from loguru import logger

from vitae import __version__

load_dotenv()
CONSOLE_LEVEL = os.getenv("VITAE_CONSOLE_LOG_LEVEL", "INFO")

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Mapping[str, object]] = None,
    console: bool = True,
) -> Path:
    """
    Route loguru output for one session.

    Args:
        context_name: Names the log file (e.g., "vitae" -> vitae.log)
        log_dir: Session directory, created if missing
        extra_provenance: Additional key-value pairs for the provenance header
        console: Also log to stdout at VITAE_CONSOLE_LOG_LEVEL

    Returns:
        Path to log file

    Example:
        log_file = setup_logger(
            context_name="vitae",
            log_dir=Path("outs/logs/cli_20251114_123456"),
            extra_provenance={"Database": "outs/vitae.db"},
        )
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    if console:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=CONSOLE_LEVEL, colorize=True)

    log_provenance(extra_provenance)
    return log_file


def log_provenance(extra_context: Optional[Mapping[str, object]] = None) -> None:
    """Write the command line, working directory and versions, then any extra context."""
    logger.info("=" * 80)
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"vitae {__version__} on Python {sys.version.split()[0]}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
