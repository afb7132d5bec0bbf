"""
Shared utilities for VITAE.

Common functionality used across contexts:
- Logger configuration
- History event log
- Timestamps
- Text table formatting
"""

from vitae.utils.timestamp import format_timestamp, now, now_exact, utc_now

__all__ = ["format_timestamp", "now", "now_exact", "utc_now"]
