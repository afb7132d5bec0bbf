"""
Snapshot Builder

Materializes an immutable, fully ordered copy of a block tree for a commit.

Snapshots are frozen dataclasses of tuples, so two snapshots of structurally
identical trees compare equal and share a structural hash. Stores use the
hash to keep one copy of each distinct snapshot.
"""

import hashlib
import json
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Iterator, List, Optional, Tuple

from vitae.contexts.editing.block_tree import BlockTree, LayoutAttributes
from vitae.contexts.editing.defaults import SECTION_BY_BLOCK_TYPE, SECTION_SCHEMAS

SNAPSHOT_FORMAT_VERSION = 1


@dataclass(frozen=True)
class SnapshotBlock:
    """Immutable copy of one ContentBlock. Content is stored as sorted (field, value) pairs."""

    block_id: str
    block_type: str
    parent_id: Optional[str]
    order_index: int
    layout: LayoutAttributes
    fields: Tuple[Tuple[str, str], ...] = ()

    @property
    def content(self) -> Dict[str, str]:
        """Fresh dict copy of the payload."""
        return dict(self.fields)

    def get(self, key: str, default: str = "") -> str:
        for field_key, value in self.fields:
            if field_key == key:
                return value
        return default


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable resume state: every block of the forest in canonical pre-order.

    Never mutated after creation. Edits happen on a BlockTree and produce a new
    Snapshot through build_snapshot().
    """

    blocks: Tuple[SnapshotBlock, ...] = ()

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[SnapshotBlock]:
        return iter(self.blocks)

    def get(self, block_id: str) -> Optional[SnapshotBlock]:
        for block in self.blocks:
            if block.block_id == block_id:
                return block
        return None

    def children(self, parent_id: Optional[str] = None) -> List[SnapshotBlock]:
        """Direct children of parent_id in sibling order (pre-order preserves it)."""
        return [b for b in self.blocks if b.parent_id == parent_id]

    @cached_property
    def structural_hash(self) -> str:
        """SHA-256 of the canonical JSON encoding; equal snapshots share it."""
        canonical = json.dumps(snapshot_to_dict(self), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


EMPTY_SNAPSHOT = Snapshot()


def build_snapshot(tree: BlockTree) -> Snapshot:
    """
    Deterministic deep copy of a tree.

    Args:
        tree: Current editable tree (always a valid forest)

    Returns:
        Snapshot whose blocks follow the tree's canonical pre-order
    """
    return Snapshot(
        blocks=tuple(
            SnapshotBlock(
                block_id=block.block_id,
                block_type=block.block_type,
                parent_id=block.parent_id,
                order_index=block.order_index,
                layout=block.layout,
                fields=tuple(sorted(block.content.items())),
            )
            for block in tree.walk()
        )
    )


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """JSON-safe representation for persistence."""
    return {
        "format": SNAPSHOT_FORMAT_VERSION,
        "blocks": [
            {
                "id": block.block_id,
                "type": block.block_type,
                "parent_id": block.parent_id,
                "order_index": block.order_index,
                "layout": block.layout.to_dict(),
                "content": block.content,
            }
            for block in snapshot.blocks
        ],
    }


def snapshot_from_dict(data: Dict[str, Any]) -> Snapshot:
    """
    Rebuild a Snapshot from snapshot_to_dict() output.

    Raises:
        ValueError: If the data was written by an unsupported format version
    """
    version = data.get("format", SNAPSHOT_FORMAT_VERSION)
    if version != SNAPSHOT_FORMAT_VERSION:
        raise ValueError(f"Unsupported snapshot format: {version}")

    return Snapshot(
        blocks=tuple(
            SnapshotBlock(
                block_id=item["id"],
                block_type=item["type"],
                parent_id=item.get("parent_id"),
                order_index=item["order_index"],
                layout=LayoutAttributes.from_dict(item.get("layout")),
                fields=tuple(sorted(item.get("content", {}).items())),
            )
            for item in data.get("blocks", [])
        )
    )


def resume_sections(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Project a snapshot onto the resume sections compared by the diff engine.

    Walks blocks in canonical pre-order. The first personal-info block supplies
    "personal_info"; entry blocks are appended to their section's list wherever
    they sit in the forest. Containers contribute only through their children.

    Returns:
        {"personal_info": {...}, "experience": [{...}, ...], "education": [...],
         "skills": [...], "projects": [...]}
    """
    sections: Dict[str, Any] = {
        schema.key: ([] if schema.is_list else {}) for schema in SECTION_SCHEMAS
    }
    personal_seen = False

    for block in snapshot.blocks:
        schema = SECTION_BY_BLOCK_TYPE.get(block.block_type)
        if schema is None:
            continue
        if schema.is_list:
            sections[schema.key].append(block.content)
        elif not personal_seen:
            sections[schema.key] = block.content
            personal_seen = True

    return sections


def unsectioned_blocks(snapshot: Snapshot) -> List[SnapshotBlock]:
    """
    Blocks whose content resume_sections() does not project, in canonical pre-order.

    These are containers (their own payload, e.g. a title) and every
    personal-info block after the first.
    """
    blocks: List[SnapshotBlock] = []
    personal_seen = False

    for block in snapshot.blocks:
        schema = SECTION_BY_BLOCK_TYPE.get(block.block_type)
        if schema is not None and schema.is_list:
            continue
        if schema is not None and not personal_seen:
            personal_seen = True
            continue
        blocks.append(block)

    return blocks
