"""
Markdown rendering of snapshot diffs.

Produces the same grouping a reviewer sees in the editor's comparison view:
one heading per section, one bullet per changed field with its before and
after values.
"""

from typing import List, Optional

from vitae.contexts.comparison.diff_engine import DiffField, DiffStatus, group_by_section, summarize

STATUS_MARKERS = {
    DiffStatus.ADDED: "+",
    DiffStatus.REMOVED: "-",
    DiffStatus.MODIFIED: "~",
    DiffStatus.UNCHANGED: "=",
}

# Longer values are shortened in the report
MAX_VALUE_LENGTH = 120


def _shorten(value: str, limit: Optional[int] = MAX_VALUE_LENGTH) -> str:
    value = " ".join(value.split())
    if limit is not None and len(value) > limit:
        return value[: limit - 1] + "…"
    return value


def _describe(field: DiffField, max_value_length: Optional[int]) -> str:
    a = _shorten(field.value_a, max_value_length)
    b = _shorten(field.value_b, max_value_length)
    if field.status is DiffStatus.ADDED:
        return f"`{b}`"
    if field.status is DiffStatus.REMOVED:
        return f"~~`{a}`~~"
    if field.status is DiffStatus.MODIFIED:
        return f"`{a}` → `{b}`"
    return f"`{a}`"


def format_diff_report(
    fields: List[DiffField],
    label_a: str = "A",
    label_b: str = "B",
    max_value_length: Optional[int] = MAX_VALUE_LENGTH,
) -> str:
    """
    Render DiffFields as a markdown report.

    Args:
        fields: Output of diff()
        label_a: Name of the "before" side (branch name or short hash)
        label_b: Name of the "after" side
        max_value_length: Truncate values longer than this (None = never)

    Returns:
        Markdown text ending in a newline
    """
    counts = summarize(fields)
    lines = [
        f"# Changes: {label_a} → {label_b}",
        "",
        f"{counts['added']} added, {counts['removed']} removed, {counts['modified']} modified",
        "",
    ]

    if not fields:
        lines.append("_No differences._")
        return "\n".join(lines) + "\n"

    for section, section_fields in group_by_section(fields).items():
        lines.append(f"## {section}")
        lines.append("")
        for f in section_fields:
            marker = STATUS_MARKERS[f.status]
            lines.append(f"- {marker} **{f.label}** ({f.status.value}): {_describe(f, max_value_length)}")
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"
