"""
Diff Engine

Section-grouped, field-level comparison of two snapshots.

Both snapshots are projected onto resume sections (see resume_sections), then
compared field by field:
- Personal Info is a single record; its fields are compared directly
- List sections (Experience, Education, Skills, Projects) are compared
  positionally: entry i of A against entry i of B, a missing entry counting
  as all-empty
- Declared fields come first, then any free-form payload keys either side
  carries, in key order
- Blocks outside that projection (containers, and personal-info blocks after
  the first) form a trailing "Other" section, matched positionally in
  canonical pre-order and compared key by key

Positional matching means inserting an entry in the middle of a list shows up
as a run of modified entries after it, plus one added entry at the end.

The diff is a pure function of its inputs. Results follow section order, then
entry order, then field order. Layout is never compared.
"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from vitae.contexts.comparison.logger import _log_debug
from vitae.contexts.editing.defaults import CONTAINER, PERSONAL_INFO, SECTION_SCHEMAS, SectionSchema
from vitae.contexts.editing.snapshot_builder import (
    Snapshot,
    SnapshotBlock,
    resume_sections,
    unsectioned_blocks,
)

OTHER_SECTION = "Other"

BLOCK_TYPE_LABELS = {
    CONTAINER: "Container",
    PERSONAL_INFO: "Personal Info",
}


class DiffStatus(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffField:
    """
    One compared field.

    Attributes:
        label: Display label (e.g., "Full Name", "Experience 2 - Company")
        section: Section title (e.g., "Personal Info")
        value_a: Value in the first snapshot ("" if absent)
        value_b: Value in the second snapshot ("" if absent)
        status: Change classification
        field: Payload key (e.g., "full_name")
        entry_index: Position within a list section (None for Personal Info)
    """

    label: str
    section: str
    value_a: str
    value_b: str
    status: DiffStatus
    field: str
    entry_index: Optional[int] = None


def field_status(value_a: Optional[str], value_b: Optional[str]) -> DiffStatus:
    """Classify one field. None and "" both count as empty."""
    a = value_a or ""
    b = value_b or ""
    if not a and b:
        return DiffStatus.ADDED
    if a and not b:
        return DiffStatus.REMOVED
    if a != b:
        return DiffStatus.MODIFIED
    return DiffStatus.UNCHANGED


def _humanize(key: str) -> str:
    """Label for a free-form payload key (e.g., "team_size" -> "Team Size")."""
    return " ".join(part.capitalize() for part in key.replace("-", "_").split("_") if part) or key


def _field_order(
    declared: Sequence[Tuple[str, str]], record_a: Mapping[str, str], record_b: Mapping[str, str]
) -> List[Tuple[str, str]]:
    """Declared (key, label) pairs, then extra keys from either record, sorted."""
    declared_keys = {key for key, _ in declared}
    extra = sorted((set(record_a) | set(record_b)) - declared_keys)
    return list(declared) + [(key, _humanize(key)) for key in extra]


def _entry_label(schema: SectionSchema, index: int, entry_a: Mapping[str, str], entry_b: Mapping[str, str]) -> str:
    """Entry prefix: the entry's title field value if it has one, else "<Entry> <n>"."""
    if schema.title_field:
        title = entry_a.get(schema.title_field) or entry_b.get(schema.title_field)
        if title:
            return title
    return f"{schema.entry_label} {index + 1}"


def _compare_record(
    section: str,
    prefix: str,
    declared: Sequence[Tuple[str, str]],
    record_a: Mapping[str, str],
    record_b: Mapping[str, str],
    entry_index: Optional[int],
) -> List[DiffField]:
    fields = []
    for key, label in _field_order(declared, record_a, record_b):
        value_a = record_a.get(key, "")
        value_b = record_b.get(key, "")
        fields.append(
            DiffField(
                label=f"{prefix}{label}",
                section=section,
                value_a=value_a,
                value_b=value_b,
                status=field_status(value_a, value_b),
                field=key,
                entry_index=entry_index,
            )
        )
    return fields


def _compare_other(blocks_a: List[SnapshotBlock], blocks_b: List[SnapshotBlock]) -> List[DiffField]:
    """Positional comparison of blocks outside the section projection."""
    results: List[DiffField] = []
    for index in range(max(len(blocks_a), len(blocks_b))):
        block_a = blocks_a[index] if index < len(blocks_a) else None
        block_b = blocks_b[index] if index < len(blocks_b) else None
        block_type = (block_a or block_b).block_type
        prefix = f"{BLOCK_TYPE_LABELS.get(block_type, block_type)} {index + 1} - "
        results.extend(
            _compare_record(
                OTHER_SECTION,
                prefix,
                (),
                block_a.content if block_a else {},
                block_b.content if block_b else {},
                index,
            )
        )
    return results


def diff(snapshot_a: Snapshot, snapshot_b: Snapshot, include_unchanged: bool = False) -> List[DiffField]:
    """
    Compare two snapshots field by field.

    Args:
        snapshot_a: "Before" snapshot
        snapshot_b: "After" snapshot
        include_unchanged: Also return fields whose status is unchanged

    Returns:
        DiffFields ordered by section, entry and field
    """
    sections_a = resume_sections(snapshot_a)
    sections_b = resume_sections(snapshot_b)

    results: List[DiffField] = []
    for schema in SECTION_SCHEMAS:
        declared = [(spec.key, spec.label) for spec in schema.fields]
        if not schema.is_list:
            results.extend(
                _compare_record(schema.title, "", declared, sections_a[schema.key], sections_b[schema.key], None)
            )
            continue

        entries_a = sections_a[schema.key]
        entries_b = sections_b[schema.key]
        for index in range(max(len(entries_a), len(entries_b))):
            entry_a = entries_a[index] if index < len(entries_a) else {}
            entry_b = entries_b[index] if index < len(entries_b) else {}
            prefix = _entry_label(schema, index, entry_a, entry_b) + " - "
            results.extend(_compare_record(schema.title, prefix, declared, entry_a, entry_b, index))

    results.extend(_compare_other(unsectioned_blocks(snapshot_a), unsectioned_blocks(snapshot_b)))

    if not include_unchanged:
        results = [f for f in results if f.status is not DiffStatus.UNCHANGED]

    _log_debug(f"Compared snapshots: {len(results)} field(s) reported")
    return results


def summarize(fields: Iterable[DiffField]) -> Dict[str, int]:
    """Count fields per status, e.g. {"added": 2, "removed": 0, "modified": 1, "unchanged": 0}."""
    counts = {status.value: 0 for status in DiffStatus}
    for f in fields:
        counts[f.status.value] += 1
    return counts


def group_by_section(fields: Iterable[DiffField]) -> "OrderedDict[str, List[DiffField]]":
    """Group fields by section title, keeping section order of first appearance."""
    grouped: "OrderedDict[str, List[DiffField]]" = OrderedDict()
    for f in fields:
        grouped.setdefault(f.section, []).append(f)
    return grouped
