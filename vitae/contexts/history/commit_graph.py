"""
Commit Graph

Append-only ledger of commits for a resume, answering ancestry and ordering
queries over parent links.

Commits are written with an optimistic compare-and-swap on the branch tip:
the caller's view of the tip (read now, or remembered from when an editing
session was opened) must still be current, otherwise ConcurrentModificationError
is raised and nothing is stored. The graph never retries on its own.

Ordering is by parent-chain depth only. created_at is display metadata.
"""

from datetime import datetime
from typing import Callable, Iterator, List, Optional

from vitae.contexts.editing.snapshot_builder import EMPTY_SNAPSHOT, Snapshot
from vitae.contexts.history.history_data_structure import Commit, compute_commit_id
from vitae.contexts.history.logger import _log_debug, log_commit_created
from vitae.contexts.history.store import VersionStore
from vitae.exceptions import (
    AmbiguousReferenceError,
    CommitNotFoundError,
    EmptyMessageError,
    InvalidArgumentError,
    NotAncestorError,
)
from vitae.utils.timestamp import utc_now

# Shortest prefix accepted as a commit reference
MIN_REFERENCE_LENGTH = 4

# Sentinel: read the expected tip from the store at commit time
_READ_TIP = object()


class CommitHistory:
    """
    Lazy, restartable walk of parent links from a fixed tip, newest first.

    Every iteration starts over from the tip captured when the history was
    requested, so commits added later do not appear.
    """

    def __init__(self, store: VersionStore, tip_commit_id: Optional[str], limit: Optional[int] = None):
        self._store = store
        self.tip_commit_id = tip_commit_id
        self.limit = limit

    def __iter__(self) -> Iterator[Commit]:
        commit_id = self.tip_commit_id
        produced = 0
        while commit_id is not None:
            if self.limit is not None and produced >= self.limit:
                return
            commit = self._store.get_commit(commit_id)
            yield commit
            produced += 1
            commit_id = commit.parent_id

    def __repr__(self) -> str:
        tip = self.tip_commit_id[:7] if self.tip_commit_id else None
        return f"CommitHistory(tip={tip}, limit={self.limit})"


class CommitGraph:
    """Creates commits and answers ancestry queries against a VersionStore."""

    def __init__(self, store: VersionStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def commit(
        self,
        resume_id: str,
        branch_name: str,
        snapshot: Snapshot,
        message: str,
        author_id: str,
        expected_tip=_READ_TIP,
    ) -> Commit:
        """
        Record snapshot as the new tip of a branch.

        Args:
            resume_id: Resume owning the branch
            branch_name: Branch to advance
            snapshot: Immutable state to record
            message: Commit message (stripped; must not be empty)
            author_id: Opaque id of the committing user
            expected_tip: Tip the caller based its edits on. Defaults to the
                tip read at call time; pass None to require an empty branch.

        Returns:
            The stored Commit (see commit_id / short_hash)

        Raises:
            EmptyMessageError: If message is blank
            ResumeNotFoundError: If the resume does not exist
            BranchNotFoundError: If the branch does not exist
            ConcurrentModificationError: If the tip is no longer expected_tip
        """
        message = (message or "").strip()
        if not message:
            raise EmptyMessageError()

        branch = self.store.get_branch(resume_id, branch_name)
        if expected_tip is _READ_TIP:
            expected_tip = branch.tip_commit_id

        # Parent is the tip the caller saw; the swap below rejects stale views
        parent = self.store.get_commit(expected_tip) if expected_tip is not None else None
        depth = parent.depth + 1 if parent is not None else 1
        created_at = self.clock()

        commit = Commit(
            commit_id=compute_commit_id(
                resume_id=resume_id,
                parent_id=expected_tip,
                branch_id=branch.branch_id,
                snapshot_hash=snapshot.structural_hash,
                message=message,
                author_id=author_id,
                created_at=created_at,
            ),
            resume_id=resume_id,
            parent_id=expected_tip,
            branch_id=branch.branch_id,
            branch_name=branch.name,
            message=message,
            author_id=author_id,
            created_at=created_at,
            depth=depth,
            snapshot=snapshot,
        )

        self.store.advance_tip(commit, expected_tip)
        log_commit_created(commit, branch.name)
        return commit

    def history(self, resume_id: str, branch_name: str, limit: Optional[int] = None) -> CommitHistory:
        """
        Commits reachable from a branch tip, newest to oldest.

        Raises:
            BranchNotFoundError: Immediately, if the branch does not exist
            InvalidArgumentError: If limit is negative
        """
        if limit is not None and limit < 0:
            raise InvalidArgumentError("limit", limit, "must be non-negative")
        branch = self.store.get_branch(resume_id, branch_name)
        return CommitHistory(self.store, branch.tip_commit_id, limit)

    def get_commit(self, commit_id: str) -> Commit:
        return self.store.get_commit(commit_id)

    def commits_between(self, ancestor_id: str, descendant_id: str) -> List[Commit]:
        """
        Path from ancestor (exclusive) to descendant (inclusive), oldest first.

        Raises:
            CommitNotFoundError: If either id is unknown
            NotAncestorError: If ancestor is not reachable from descendant
        """
        ancestor = self.store.get_commit(ancestor_id)
        commit = self.store.get_commit(descendant_id)

        path: List[Commit] = []
        while commit.depth > ancestor.depth:
            path.append(commit)
            if commit.parent_id is None:
                break
            commit = self.store.get_commit(commit.parent_id)

        if commit.commit_id != ancestor.commit_id:
            raise NotAncestorError(ancestor_id, descendant_id)

        path.reverse()
        return path

    def is_ancestor(self, ancestor_id: str, descendant_id: str) -> bool:
        """True if ancestor_id is descendant_id or one of its ancestors."""
        try:
            self.commits_between(ancestor_id, descendant_id)
        except NotAncestorError:
            return False
        return True

    def merge_base(self, commit_a: Optional[str], commit_b: Optional[str]) -> Optional[str]:
        """
        Nearest common ancestor of two commits, or None if their lines never met.

        Either argument may be None (an empty branch), which yields None.
        """
        if commit_a is None or commit_b is None:
            return None

        a = self.store.get_commit(commit_a)
        b = self.store.get_commit(commit_b)
        # Walk the deeper side up until both are at the same depth, then in lockstep
        while a.depth > b.depth:
            a = self.store.get_commit(a.parent_id)
        while b.depth > a.depth:
            b = self.store.get_commit(b.parent_id)
        while a.commit_id != b.commit_id:
            if a.parent_id is None or b.parent_id is None:
                return None
            a = self.store.get_commit(a.parent_id)
            b = self.store.get_commit(b.parent_id)
        return a.commit_id

    def resolve_commit(self, resume_id: str, ref: str) -> Commit:
        """
        Resolve a full commit id or a unique id prefix within a resume.

        Raises:
            CommitNotFoundError: If nothing matches (or the prefix is too short)
            AmbiguousReferenceError: If the prefix matches several commits
        """
        ref = ref.strip().lower()
        if len(ref) < MIN_REFERENCE_LENGTH:
            raise CommitNotFoundError(ref, resume_id)

        matches = self.store.find_commit_ids(resume_id, ref)
        if not matches:
            raise CommitNotFoundError(ref, resume_id)
        if len(matches) > 1:
            raise AmbiguousReferenceError(ref, matches)
        return self.store.get_commit(matches[0])

    def resolve_snapshot(self, resume_id: str, ref: str) -> Snapshot:
        """
        Resolve a branch name or commit reference to a concrete snapshot.

        Branch names win over commit prefixes. A branch without commits
        resolves to the empty snapshot.
        """
        branch = self.store.find_branch(resume_id, ref)
        if branch is not None:
            if branch.tip_commit_id is None:
                _log_debug(f"Branch '{ref}' has no commits; resolving to empty snapshot")
                return EMPTY_SNAPSHOT
            return self.store.get_commit(branch.tip_commit_id).snapshot
        return self.resolve_commit(resume_id, ref).snapshot
