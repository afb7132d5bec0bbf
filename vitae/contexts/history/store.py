"""
Persistence Store

Interface the history context needs from storage, and an in-memory
implementation for tests and single-process use.

Concurrency model:
- Branch creation/deletion and tip advancement run under a per-resume lock
  (resume_lock), so unrelated resumes never contend.
- advance_tip() is an atomic compare-and-swap: the tip moves only if it still
  equals the tip the caller read. The new commit is stored in the same step.
- Reads (commits, snapshots) are lock-free; commits and snapshots are immutable.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional

from vitae.contexts.editing.snapshot_builder import Snapshot
from vitae.contexts.history.history_data_structure import Branch, Commit, Resume
from vitae.contexts.history.logger import _log_debug, log_tip_conflict
from vitae.exceptions import (
    BranchNotFoundError,
    CommitNotFoundError,
    ConcurrentModificationError,
    DuplicateNameError,
    ResumeNotFoundError,
)


class ResumeLockRegistry:
    """Hands out one re-entrant lock per resume id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def get(self, resume_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(resume_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[resume_id] = lock
            return lock

    def discard(self, resume_id: str) -> None:
        with self._guard:
            self._locks.pop(resume_id, None)


class VersionStore(ABC):
    """
    Storage for resumes, branches, commits and snapshots.

    Implementations return copies of mutable records (Branch, Resume), so
    callers can never move a tip except through advance_tip().
    """

    def __init__(self):
        self._resume_locks = ResumeLockRegistry()

    @contextmanager
    def resume_lock(self, resume_id: str) -> Iterator[None]:
        """Serialize mutations scoped to one resume."""
        with self._resume_locks.get(resume_id):
            yield

    # Resumes

    @abstractmethod
    def add_resume(self, resume: Resume, main_branch: Branch) -> None:
        """Store a new resume together with its main branch."""

    @abstractmethod
    def get_resume(self, resume_id: str) -> Resume:
        """Raises ResumeNotFoundError."""

    @abstractmethod
    def list_resumes(self, owner_id: Optional[str] = None) -> List[Resume]:
        """Resumes in creation order, optionally only those owned by owner_id."""

    @abstractmethod
    def delete_resume(self, resume_id: str) -> None:
        """Delete a resume with all of its branches and commits. Raises ResumeNotFoundError."""

    # Branches

    @abstractmethod
    def add_branch(self, branch: Branch) -> None:
        """Raises ResumeNotFoundError or DuplicateNameError."""

    @abstractmethod
    def find_branch(self, resume_id: str, name: str) -> Optional[Branch]:
        """Branch by exact name, or None. Raises ResumeNotFoundError."""

    @abstractmethod
    def list_branches(self, resume_id: str) -> List[Branch]:
        """Branches in creation order. Raises ResumeNotFoundError."""

    @abstractmethod
    def remove_branch(self, resume_id: str, name: str) -> None:
        """Remove the pointer only; commits stay. Raises BranchNotFoundError."""

    # Commits

    @abstractmethod
    def get_commit(self, commit_id: str) -> Commit:
        """Raises CommitNotFoundError."""

    @abstractmethod
    def find_commit_ids(self, resume_id: str, prefix: str) -> List[str]:
        """Ids of this resume's commits starting with prefix."""

    @abstractmethod
    def advance_tip(self, commit: Commit, expected_tip: Optional[str]) -> Branch:
        """
        Atomically store commit and move its branch tip to it.

        Succeeds only if the branch tip still equals expected_tip.

        Returns:
            The updated branch

        Raises:
            BranchNotFoundError: If the commit's branch no longer exists
            ConcurrentModificationError: If the tip moved since it was read
        """

    # Shared helpers

    def get_branch(self, resume_id: str, name: str) -> Branch:
        """Raises ResumeNotFoundError or BranchNotFoundError."""
        branch = self.find_branch(resume_id, name)
        if branch is None:
            raise BranchNotFoundError(name, resume_id)
        return branch


class InMemoryVersionStore(VersionStore):
    """Dictionary-backed store. Snapshots are deduplicated by structural hash."""

    def __init__(self):
        super().__init__()
        self._resumes: Dict[str, Resume] = {}
        self._branches: Dict[str, Dict[str, Branch]] = {}
        self._commits: Dict[str, Commit] = {}
        self._snapshots: Dict[str, Snapshot] = {}

    # Resumes

    def add_resume(self, resume: Resume, main_branch: Branch) -> None:
        with self.resume_lock(resume.resume_id):
            if resume.resume_id in self._resumes:
                raise ValueError(f"Resume already stored: {resume.resume_id}")
            self._resumes[resume.resume_id] = replace(resume)
            self._branches[resume.resume_id] = {main_branch.name: replace(main_branch)}

    def get_resume(self, resume_id: str) -> Resume:
        try:
            return replace(self._resumes[resume_id])
        except KeyError:
            raise ResumeNotFoundError(resume_id) from None

    def list_resumes(self, owner_id: Optional[str] = None) -> List[Resume]:
        return [
            replace(r)
            for r in list(self._resumes.values())
            if owner_id is None or r.owner_id == owner_id
        ]

    def delete_resume(self, resume_id: str) -> None:
        with self.resume_lock(resume_id):
            if resume_id not in self._resumes:
                raise ResumeNotFoundError(resume_id)
            del self._resumes[resume_id]
            del self._branches[resume_id]

            doomed = [cid for cid, c in list(self._commits.items()) if c.resume_id == resume_id]
            for commit_id in doomed:
                del self._commits[commit_id]

            live = {c.snapshot_hash for c in list(self._commits.values())}
            for snapshot_hash in [h for h in list(self._snapshots) if h not in live]:
                del self._snapshots[snapshot_hash]

        self._resume_locks.discard(resume_id)
        _log_debug(f"Deleted resume {resume_id} ({len(doomed)} commit(s))")

    # Branches

    def _branch_map(self, resume_id: str) -> Dict[str, Branch]:
        try:
            return self._branches[resume_id]
        except KeyError:
            raise ResumeNotFoundError(resume_id) from None

    def add_branch(self, branch: Branch) -> None:
        with self.resume_lock(branch.resume_id):
            branches = self._branch_map(branch.resume_id)
            if branch.name in branches:
                raise DuplicateNameError(branch.name, branch.resume_id)
            branches[branch.name] = replace(branch)

    def find_branch(self, resume_id: str, name: str) -> Optional[Branch]:
        branch = self._branch_map(resume_id).get(name)
        return replace(branch) if branch is not None else None

    def list_branches(self, resume_id: str) -> List[Branch]:
        return [replace(b) for b in list(self._branch_map(resume_id).values())]

    def remove_branch(self, resume_id: str, name: str) -> None:
        with self.resume_lock(resume_id):
            branches = self._branch_map(resume_id)
            if name not in branches:
                raise BranchNotFoundError(name, resume_id)
            del branches[name]

    # Commits

    def get_commit(self, commit_id: str) -> Commit:
        try:
            return self._commits[commit_id]
        except KeyError:
            raise CommitNotFoundError(commit_id) from None

    def find_commit_ids(self, resume_id: str, prefix: str) -> List[str]:
        return sorted(
            cid
            for cid, commit in list(self._commits.items())
            if commit.resume_id == resume_id and cid.startswith(prefix)
        )

    def advance_tip(self, commit: Commit, expected_tip: Optional[str]) -> Branch:
        with self.resume_lock(commit.resume_id):
            branches = self._branch_map(commit.resume_id)
            branch = next((b for b in branches.values() if b.branch_id == commit.branch_id), None)
            if branch is None:
                raise BranchNotFoundError(commit.branch_name, commit.resume_id)

            if branch.tip_commit_id != expected_tip:
                log_tip_conflict(branch.name, expected_tip, branch.tip_commit_id)
                raise ConcurrentModificationError(branch.name, expected_tip, branch.tip_commit_id)

            snapshot = self._snapshots.setdefault(commit.snapshot_hash, commit.snapshot)
            stored = commit if snapshot is commit.snapshot else replace(commit, snapshot=snapshot)
            self._commits[commit.commit_id] = stored

            branch.tip_commit_id = commit.commit_id
            branch.updated_at = commit.created_at
            return replace(branch)
