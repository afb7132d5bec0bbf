"""
Branch Manager

Resume and branch lifecycle, and the mapping from branch name to tip commit.

Branch names are normalized the same way the editor's "new branch" dialog does
it (lowercase, whitespace to hyphens, other characters stripped), so names
arriving from any client end up identical.

Deleting a branch removes only the pointer. Its commits stay addressable by
id; they are removed only together with their resume.
"""

import re
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from vitae.contexts.history.history_data_structure import Branch, Resume
from vitae.contexts.history.logger import _log_info, _log_success
from vitae.contexts.history.store import VersionStore
from vitae.exceptions import (
    CannotDeleteMainError,
    DuplicateNameError,
    InvalidNameError,
    ResumeNotFoundError,
)
from vitae.utils.timestamp import utc_now

MAIN_BRANCH_NAME = "main"
MAIN_BRANCH_DESCRIPTION = "Default branch"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9/_-]")


def normalize_branch_name(name: str) -> str:
    """
    Normalize a user-supplied branch name.

    Examples:
        normalize_branch_name("Google SWE")      # "google-swe"
        normalize_branch_name("Data Sci @ Meta") # "data-sci--meta"
        normalize_branch_name(" google swe ")    # "-google-swe-" (no trimming)
        normalize_branch_name("!!!")             # ""
    """
    name = (name or "").lower()
    name = _WHITESPACE.sub("-", name)
    return _DISALLOWED.sub("", name)


def _new_id() -> str:
    return str(uuid.uuid4())


class BranchManager:
    """Creates, lists and deletes resumes and their branches."""

    def __init__(self, store: VersionStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    # Resumes

    def create_resume(self, owner_id: str, title: str) -> Resume:
        """Create a resume together with its main branch (no commits yet)."""
        timestamp = self.clock()
        resume = Resume(
            resume_id=_new_id(),
            owner_id=owner_id,
            title=title.strip() or "Untitled Resume",
            created_at=timestamp,
            updated_at=timestamp,
        )
        main = Branch(
            branch_id=_new_id(),
            resume_id=resume.resume_id,
            name=MAIN_BRANCH_NAME,
            description=MAIN_BRANCH_DESCRIPTION,
            is_main=True,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.store.add_resume(resume, main)
        _log_success(f"Created resume '{resume.title}' ({resume.resume_id}) for {owner_id}")
        return resume

    def get_resume(self, resume_id: str) -> Resume:
        return self.store.get_resume(resume_id)

    def list_resumes(self, owner_id: Optional[str] = None) -> List[Resume]:
        return self.store.list_resumes(owner_id)

    def delete_resume(self, resume_id: str, owner_id: Optional[str] = None) -> None:
        """
        Delete a resume with all branches and commits.

        Args:
            resume_id: Resume to delete
            owner_id: If given, the resume must belong to this owner

        Raises:
            ResumeNotFoundError: If the resume does not exist or belongs to someone else
        """
        resume = self.store.get_resume(resume_id)
        if owner_id is not None and resume.owner_id != owner_id:
            # Same error as a missing resume: do not reveal other owners' ids
            raise ResumeNotFoundError(resume_id)
        self.store.delete_resume(resume_id)
        _log_info(f"Deleted resume '{resume.title}' ({resume_id})")

    # Branches

    def create_branch(
        self,
        resume_id: str,
        name: str,
        source_branch: str,
        description: str = "",
    ) -> Branch:
        """
        Fork a new branch from the current tip of source_branch.

        Args:
            resume_id: Resume to branch
            name: Requested name (normalized before use)
            source_branch: Existing branch whose tip becomes the new tip
            description: Free-form description

        Returns:
            The new branch (tip_commit_id may be None if the source is empty)

        Raises:
            InvalidNameError: If the name is empty after normalization
            ResumeNotFoundError: If the resume does not exist
            BranchNotFoundError: If source_branch does not exist
            DuplicateNameError: If a branch with the normalized name exists
        """
        normalized = normalize_branch_name(name)
        if not normalized:
            raise InvalidNameError(name)

        with self.store.resume_lock(resume_id):
            source = self.store.get_branch(resume_id, source_branch)
            if self.store.find_branch(resume_id, normalized) is not None:
                raise DuplicateNameError(normalized, resume_id)

            timestamp = self.clock()
            branch = Branch(
                branch_id=_new_id(),
                resume_id=resume_id,
                name=normalized,
                description=description.strip(),
                parent_branch_id=source.branch_id,
                is_main=False,
                tip_commit_id=source.tip_commit_id,
                fork_commit_id=source.tip_commit_id,
                created_at=timestamp,
                updated_at=timestamp,
            )
            self.store.add_branch(branch)

        fork = source.tip_commit_id[:7] if source.tip_commit_id else "<empty>"
        _log_success(f"Created branch '{normalized}' from '{source.name}' at {fork}")
        return branch

    def delete_branch(self, resume_id: str, name: str) -> Branch:
        """
        Delete a branch pointer. Its commits are kept.

        Returns:
            The deleted branch record

        Raises:
            ResumeNotFoundError: If the resume does not exist
            CannotDeleteMainError: If name is the main branch
            BranchNotFoundError: If no such branch exists
        """
        if name == MAIN_BRANCH_NAME:
            raise CannotDeleteMainError(name)

        with self.store.resume_lock(resume_id):
            branch = self.store.find_branch(resume_id, name)
            if branch is not None and branch.is_main:
                raise CannotDeleteMainError(name)
            # Raises BranchNotFoundError when absent
            self.store.remove_branch(resume_id, name)

        _log_info(f"Deleted branch '{name}' (commits retained)")
        return branch

    def get_branch(self, resume_id: str, name: str) -> Branch:
        return self.store.get_branch(resume_id, name)

    def switch_branch(self, resume_id: str, name: str) -> Branch:
        """Look up the branch an editor is switching to. Pure read."""
        return self.store.get_branch(resume_id, name)

    def list_branches(self, resume_id: str) -> List[Branch]:
        """Branches of a resume, main first, then in creation order."""
        branches = self.store.list_branches(resume_id)
        return sorted(branches, key=lambda b: not b.is_main)
