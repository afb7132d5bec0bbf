"""
Editing Context

Responsibilities:
- Holds the editable content block tree of a resume
- Materializes immutable snapshots of the tree
- Converts between section-shaped resume data (YAML) and block trees

Owns: Block tree invariants, snapshot structure, resume data layout
Never: Records history or decides what changed between snapshots
"""

from vitae.contexts.editing.block_tree import BlockTree, ContentBlock, LayoutAttributes
from vitae.contexts.editing.resume_data import (
    empty_resume_data,
    load_resume_yaml,
    save_resume_yaml,
    snapshot_from_resume_data,
    snapshot_to_resume_data,
    tree_from_resume_data,
)
from vitae.contexts.editing.snapshot_builder import (
    EMPTY_SNAPSHOT,
    Snapshot,
    SnapshotBlock,
    build_snapshot,
    resume_sections,
    unsectioned_blocks,
    snapshot_from_dict,
    snapshot_to_dict,
)

__all__ = [
    # Block tree
    "BlockTree",
    "ContentBlock",
    "LayoutAttributes",
    # Snapshots
    "EMPTY_SNAPSHOT",
    "Snapshot",
    "SnapshotBlock",
    "build_snapshot",
    "resume_sections",
    "unsectioned_blocks",
    "snapshot_from_dict",
    "snapshot_to_dict",
    # Resume data conversion
    "empty_resume_data",
    "load_resume_yaml",
    "save_resume_yaml",
    "snapshot_from_resume_data",
    "snapshot_to_resume_data",
    "tree_from_resume_data",
]
