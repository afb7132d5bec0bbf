"""
Content Block Tree

Editable, uncommitted state of a resume: a forest of content blocks, each with
a type, a parent, a sibling order index, presentational layout attributes and
a free-form string payload.

The tree enforces its own invariants on every edit:
- every parent reference points at a block in the same tree
- order indices are unique among siblings
- parent links never form a cycle

Snapshots (snapshot_builder.py) are taken from a tree; a tree can be restored
from a snapshot to continue editing on top of a commit.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from vitae.contexts.editing.defaults import (
    BLOCK_TYPES,
    LAYOUT_ALIGNMENTS,
    LAYOUT_DIRECTIONS,
    get_default_layout,
)
from vitae.contexts.editing.logger import _log_debug
from vitae.exceptions import (
    BlockNotFoundError,
    InvalidBlockError,
    InvalidParentError,
    OrderMismatchError,
)


@dataclass(frozen=True)
class LayoutAttributes:
    """Presentational layout of a block. Never considered by diffs."""

    direction: str = "vertical"
    spacing: int = 0
    padding_top: int = 0
    padding_right: int = 0
    padding_bottom: int = 0
    padding_left: int = 0
    alignment: str = "start"

    def __post_init__(self):
        if self.direction not in LAYOUT_DIRECTIONS:
            raise InvalidBlockError(f"Invalid direction: {self.direction}. Must be one of {LAYOUT_DIRECTIONS}")
        if self.alignment not in LAYOUT_ALIGNMENTS:
            raise InvalidBlockError(f"Invalid alignment: {self.alignment}. Must be one of {LAYOUT_ALIGNMENTS}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LayoutAttributes":
        """Build layout from a (possibly partial) mapping, filling defaults."""
        merged = get_default_layout()
        if data:
            unknown = set(data) - set(merged)
            if unknown:
                raise InvalidBlockError(f"Unknown layout attributes: {sorted(unknown)}")
            merged.update(data)
        return cls(**merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction,
            "spacing": self.spacing,
            "padding_top": self.padding_top,
            "padding_right": self.padding_right,
            "padding_bottom": self.padding_bottom,
            "padding_left": self.padding_left,
            "alignment": self.alignment,
        }


@dataclass
class ContentBlock:
    """
    A node in a resume's editable content tree.

    Attributes:
        block_id: Identifier, unique within the tree
        block_type: One of defaults.BLOCK_TYPES
        parent_id: Parent block id, or None for a top-level block
        order_index: Position among siblings (ascending, ties broken by block_id)
        layout: Presentational layout attributes
        content: Field name -> string value; schema varies by block type
    """

    block_id: str
    block_type: str
    parent_id: Optional[str] = None
    order_index: int = 0
    layout: LayoutAttributes = field(default_factory=LayoutAttributes)
    content: Dict[str, str] = field(default_factory=dict)

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (self.order_index, self.block_id)


def _default_id_factory() -> str:
    return str(uuid.uuid4())


def _validate_content(content: Any) -> Dict[str, str]:
    """Copy a content mapping, rejecting non-string keys or values."""
    if not isinstance(content, Mapping):
        raise InvalidBlockError(f"Block content must be a mapping, got {type(content).__name__}")
    validated = {}
    for key, value in content.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise InvalidBlockError(
                f"Block content must map strings to strings, got {key!r}: {type(value).__name__}"
            )
        validated[key] = value
    return validated


def _validate_layout(layout: Any) -> LayoutAttributes:
    if not isinstance(layout, LayoutAttributes):
        raise InvalidBlockError(f"Layout must be LayoutAttributes, got {type(layout).__name__}")
    return layout


def _copy(block: ContentBlock) -> ContentBlock:
    """Detached copy handed to callers; edits go through BlockTree methods."""
    return replace(block, content=dict(block.content))


class BlockTree:
    """
    Mutable forest of ContentBlocks for one editing session.

    Every successful mutation marks the tree dirty; mark_clean() is called once
    the current state has been committed.
    """

    def __init__(
        self,
        blocks: Iterable[ContentBlock] = (),
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            blocks: Initial blocks (validated as a forest)
            id_factory: Source of fresh block ids (default: uuid4 strings)

        Raises:
            InvalidParentError: If a block references a missing parent or parents form a cycle
            ValueError: If ids are duplicated or sibling order indices collide
        """
        self._id_factory = id_factory or _default_id_factory
        self._blocks: Dict[str, ContentBlock] = {}
        self.dirty = False

        for block in blocks:
            if block.block_id in self._blocks:
                raise ValueError(f"Duplicate block id: {block.block_id}")
            self._blocks[block.block_id] = replace(block, content=dict(block.content))

        self._validate_forest()

    @classmethod
    def from_snapshot(cls, snapshot, id_factory: Optional[Callable[[], str]] = None) -> "BlockTree":
        """
        Restore an editable tree from a Snapshot (or any iterable of snapshot blocks).

        The restored tree starts clean: it matches the commit it came from.
        """
        blocks = [
            ContentBlock(
                block_id=b.block_id,
                block_type=b.block_type,
                parent_id=b.parent_id,
                order_index=b.order_index,
                layout=b.layout,
                content=b.content,
            )
            for b in snapshot
        ]
        return cls(blocks, id_factory=id_factory)

    # Queries

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def _get(self, block_id: str) -> ContentBlock:
        try:
            return self._blocks[block_id]
        except KeyError:
            raise BlockNotFoundError(block_id) from None

    def _children(self, parent_id: Optional[str]) -> List[ContentBlock]:
        return sorted(
            (b for b in self._blocks.values() if b.parent_id == parent_id),
            key=lambda b: b.sort_key,
        )

    def get_block(self, block_id: str) -> ContentBlock:
        """
        Copy of one block.

        Raises:
            BlockNotFoundError: If block_id is absent
        """
        return _copy(self._get(block_id))

    def children(self, parent_id: Optional[str] = None) -> List[ContentBlock]:
        """Copies of the direct children of parent_id (None = top level), in sibling order."""
        return [_copy(b) for b in self._children(parent_id)]

    def walk(self) -> Iterator[ContentBlock]:
        """Yield a copy of every block in canonical pre-order (siblings by order index, then id)."""
        stack = list(reversed(self._children(None)))
        while stack:
            block = stack.pop()
            yield _copy(block)
            stack.extend(reversed(self._children(block.block_id)))

    def descendants(self, block_id: str) -> List[str]:
        """Ids of every block below block_id (not including it)."""
        found = []
        stack = [block_id]
        while stack:
            current = stack.pop()
            for child in self._children(current):
                found.append(child.block_id)
                stack.append(child.block_id)
        return found

    # Mutations

    def add_block(
        self,
        parent_id: Optional[str],
        block_type: str,
        initial_content: Optional[Mapping[str, str]] = None,
        layout: Optional[LayoutAttributes] = None,
        block_id: Optional[str] = None,
    ) -> ContentBlock:
        """
        Insert a new block as the last sibling under parent_id.

        Args:
            parent_id: Parent block id, or None for top level
            block_type: One of defaults.BLOCK_TYPES
            initial_content: Initial payload (field -> string)
            layout: Layout attributes (default layout when omitted)
            block_id: Explicit id to use instead of a fresh one

        Returns:
            The inserted ContentBlock

        Raises:
            InvalidParentError: If parent_id does not reference a block in this tree
            InvalidBlockError: If block_type is unknown, an explicit block_id is taken,
                content is not string-to-string, or layout is not LayoutAttributes
        """
        if block_type not in BLOCK_TYPES:
            raise InvalidBlockError(f"Unknown block type: {block_type}. Must be one of {BLOCK_TYPES}")
        if parent_id is not None and parent_id not in self._blocks:
            raise InvalidParentError(parent_id)

        content = _validate_content({} if initial_content is None else initial_content)
        layout = LayoutAttributes() if layout is None else _validate_layout(layout)

        if block_id is None:
            block_id = self._fresh_id()
        elif block_id in self._blocks:
            raise InvalidBlockError(f"Block id already in use: {block_id}", block_id)

        siblings = self._children(parent_id)
        order_index = siblings[-1].order_index + 1 if siblings else 0

        block = ContentBlock(
            block_id=block_id,
            block_type=block_type,
            parent_id=parent_id,
            order_index=order_index,
            layout=layout,
            content=content,
        )
        self._blocks[block_id] = block
        self.dirty = True

        _log_debug(f"Added {block_type} block {block_id} under {parent_id or '<top level>'}")
        return _copy(block)

    def update_block(self, block_id: str, field_patch: Mapping[str, str]) -> ContentBlock:
        """
        Merge field/value pairs into a block's payload.

        Raises:
            BlockNotFoundError: If block_id is absent
            InvalidBlockError: If field_patch is not string-to-string
        """
        block = self._get(block_id)
        block.content.update(_validate_content(field_patch))
        self.dirty = True

        _log_debug(f"Updated block {block_id}: {sorted(field_patch)}")
        return _copy(block)

    def set_layout(self, block_id: str, layout: LayoutAttributes) -> ContentBlock:
        """Replace a block's layout attributes."""
        block = self._get(block_id)
        block.layout = _validate_layout(layout)
        self.dirty = True
        return _copy(block)

    def remove_block(self, block_id: str) -> List[str]:
        """
        Delete a block and, recursively, all of its descendants.

        Returns:
            Ids of every removed block, starting with block_id

        Raises:
            BlockNotFoundError: If block_id is absent
        """
        self._get(block_id)

        removed = [block_id] + self.descendants(block_id)
        for removed_id in removed:
            del self._blocks[removed_id]
        self.dirty = True

        _log_debug(f"Removed block {block_id} ({len(removed)} block(s) total)")
        return removed

    def reorder(self, parent_id: Optional[str], new_ordered_ids: List[str]) -> List[ContentBlock]:
        """
        Reassign order indices of parent_id's direct children to match new_ordered_ids.

        Returns:
            Children in their new order

        Raises:
            InvalidParentError: If parent_id is not None and not in the tree
            OrderMismatchError: If new_ordered_ids is not exactly the current child set
        """
        if parent_id is not None and parent_id not in self._blocks:
            raise InvalidParentError(parent_id)

        current = {b.block_id for b in self._children(parent_id)}
        requested = list(new_ordered_ids)
        requested_set = set(requested)

        duplicates = {i for i in requested if requested.count(i) > 1}
        if requested_set != current or duplicates:
            raise OrderMismatchError(
                parent_id,
                missing=current - requested_set,
                unexpected=requested_set - current,
                duplicates=duplicates,
            )

        for index, child_id in enumerate(requested):
            self._blocks[child_id].order_index = index
        self.dirty = True

        _log_debug(f"Reordered {len(requested)} children of {parent_id or '<top level>'}")
        return [_copy(self._blocks[i]) for i in requested]

    def mark_clean(self) -> None:
        """Record that the current state has been committed."""
        self.dirty = False

    # Internals

    def _fresh_id(self) -> str:
        block_id = self._id_factory()
        while block_id in self._blocks:
            block_id = self._id_factory()
        return block_id

    def _validate_forest(self) -> None:
        """Check parent references, acyclicity, and unique sibling order indices."""
        for block in self._blocks.values():
            if block.block_type not in BLOCK_TYPES:
                raise ValueError(f"Unknown block type: {block.block_type}")
            if block.parent_id is not None and block.parent_id not in self._blocks:
                raise InvalidParentError(block.parent_id)

        # Every block must reach a root without revisiting a node
        for block in self._blocks.values():
            seen = {block.block_id}
            parent_id = block.parent_id
            while parent_id is not None:
                if parent_id in seen:
                    raise InvalidParentError(parent_id)
                seen.add(parent_id)
                parent_id = self._blocks[parent_id].parent_id

        orders: Dict[Tuple[Optional[str], int], str] = {}
        for block in self._blocks.values():
            key = (block.parent_id, block.order_index)
            if key in orders:
                raise ValueError(
                    f"Blocks {orders[key]} and {block.block_id} share order index "
                    f"{block.order_index} under {block.parent_id or '<top level>'}"
                )
            orders[key] = block.block_id
