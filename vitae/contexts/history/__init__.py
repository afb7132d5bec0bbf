"""
History Context

Responsibilities:
- Records commits as immutable, content-addressed snapshots of a resume
- Maintains named branches and their tip pointers
- Answers ancestry queries (history, commits between, merge base)
- Persists everything through a VersionStore (in memory or SQLite)

Owns: Commit graph, branch lifecycle, tip compare-and-swap, snapshot storage
Never: Edits block trees or decides what changed between snapshots
"""

from vitae.contexts.history.branch_manager import (
    MAIN_BRANCH_NAME,
    BranchManager,
    normalize_branch_name,
)
from vitae.contexts.history.commit_graph import CommitGraph, CommitHistory
from vitae.contexts.history.history_data_structure import Branch, Commit, Resume
from vitae.contexts.history.sqlite_store import SQLiteVersionStore
from vitae.contexts.history.store import InMemoryVersionStore, VersionStore

__all__ = [
    # Records
    "Branch",
    "Commit",
    "Resume",
    # Stores
    "InMemoryVersionStore",
    "SQLiteVersionStore",
    "VersionStore",
    # Graph
    "CommitGraph",
    "CommitHistory",
    # Branches
    "MAIN_BRANCH_NAME",
    "BranchManager",
    "normalize_branch_name",
]
