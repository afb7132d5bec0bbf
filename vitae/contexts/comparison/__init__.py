"""
Comparison Context

Responsibilities:
- Computes field-level, section-grouped differences between two snapshots
- Summarizes and renders differences for review

Owns: Diff status rules, positional entry matching, diff labels, diff reports
Never: Reads from the version store or modifies snapshots
"""

from vitae.contexts.comparison.diff_engine import (
    DiffField,
    DiffStatus,
    diff,
    field_status,
    group_by_section,
    summarize,
)
from vitae.contexts.comparison.diff_formatter import format_diff_report

__all__ = [
    "DiffField",
    "DiffStatus",
    "diff",
    "field_status",
    "group_by_section",
    "summarize",
    "format_diff_report",
]
