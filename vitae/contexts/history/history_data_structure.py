"""
History Data Structures

Records persisted by the history context:
- Resume: an owned, titled document with exactly one main branch
- Branch: mutable named pointer to a tip commit
- Commit: immutable, message-annotated pointer to one snapshot and its parent
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from vitae.contexts.editing.snapshot_builder import Snapshot

SHORT_HASH_LENGTH = 7


@dataclass
class Resume:
    """
    A versioned resume.

    Attributes:
        resume_id: Unique identifier
        owner_id: Opaque user id from the identity provider
        title: Display title
    """

    resume_id: str
    owner_id: str
    title: str
    created_at: datetime
    updated_at: datetime


@dataclass
class Branch:
    """
    Named pointer designating the tip commit of one line of work.

    Attributes:
        branch_id: Unique identifier (commits reference this, not the name)
        resume_id: Owning resume
        name: Normalized name, unique within the resume
        description: Free-form description
        parent_branch_id: Branch this one was forked from (None for main)
        is_main: True for the resume's default branch only
        tip_commit_id: Current tip (None until the first commit reaches this line)
        fork_commit_id: Source branch tip at creation time (the fork point)
    """

    branch_id: str
    resume_id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    parent_branch_id: Optional[str] = None
    is_main: bool = False
    tip_commit_id: Optional[str] = None
    fork_commit_id: Optional[str] = None


@dataclass(frozen=True)
class Commit:
    """
    Immutable history record.

    The commit id is a SHA-256 digest of the commit's content (parent, branch,
    snapshot hash, message, author, timestamp); short_hash is its display prefix.
    depth counts commits along the parent chain (a first commit has depth 1)
    and is the only ordering used between commits.
    """

    commit_id: str
    resume_id: str
    parent_id: Optional[str]
    branch_id: str
    branch_name: str
    message: str
    author_id: str
    created_at: datetime
    depth: int
    snapshot: Snapshot

    @property
    def short_hash(self) -> str:
        return self.commit_id[:SHORT_HASH_LENGTH]

    @property
    def snapshot_hash(self) -> str:
        return self.snapshot.structural_hash


def compute_commit_id(
    resume_id: str,
    parent_id: Optional[str],
    branch_id: str,
    snapshot_hash: str,
    message: str,
    author_id: str,
    created_at: datetime,
) -> str:
    """Deterministic SHA-256 fingerprint of commit content."""
    payload = {
        "resume": resume_id,
        "parent": parent_id,
        "branch": branch_id,
        "snapshot": snapshot_hash,
        "message": message,
        "author": author_id,
        "created_at": created_at.isoformat(),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
