"""
Versioning Service

Request/response boundary over the editing, history and comparison contexts.

Every operation returns an OperationResult instead of raising: failures from
the versioning core (VitaeError subclasses) become results carrying the error
kind and message, so callers can match on the kind and choose a recovery
(e.g., reload the tip and resubmit after ConcurrentModification). Exceptions
that are not VitaeErrors indicate programming errors and propagate.

Editing happens on an EditingSession: a block tree checked out from a branch
tip, plus the commit it was checked out from. Committing a session uses that
commit as the expected tip, so a session that fell behind another writer is
rejected instead of silently overwriting its work.

Usage:
    service = VersioningService(InMemoryVersionStore())
    resume = service.create_resume("user-1", "Software Engineer").value
    session = service.open_session(resume.resume_id).value
    service.add_block(session, None, "personal-info", {"full_name": "Alex Chen"})
    result = service.commit(session, "Add name", "user-1")
    if not result.ok:
        print(result.error_kind, result.error)
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger

from vitae.contexts.comparison import DiffField, diff, summarize
from vitae.contexts.editing import (
    EMPTY_SNAPSHOT,
    BlockTree,
    LayoutAttributes,
    Snapshot,
    build_snapshot,
    snapshot_to_resume_data,
)
from vitae.contexts.history import BranchManager, Commit, CommitGraph, CommitHistory, VersionStore
from vitae.exceptions import ErrorKind, VitaeError
from vitae.utils.event_logging import log_history_event
from vitae.utils.timestamp import utc_now

EVENT_SOURCE = "service"


@dataclass
class OperationResult:
    """Outcome of one service operation."""

    success: bool
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.success

    @classmethod
    def succeeded(cls, value: Any = None) -> "OperationResult":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, exc: VitaeError) -> "OperationResult":
        return cls(success=False, error_kind=exc.kind, error=exc.message)


@dataclass
class EditingSession:
    """
    One editor's working copy of a branch.

    Attributes:
        resume_id: Resume being edited
        branch_name: Branch the session commits to
        tree: Editable block tree
        base_commit_id: Tip the tree was checked out from (None for an empty branch)
    """

    resume_id: str
    branch_name: str
    tree: BlockTree
    base_commit_id: Optional[str] = None

    @property
    def dirty(self) -> bool:
        return self.tree.dirty


@dataclass
class BranchComparison:
    """How two branches relate: common ancestor, divergence, and content diff."""

    branch_a: str
    branch_b: str
    tip_a: Optional[str]
    tip_b: Optional[str]
    merge_base: Optional[str]
    ahead: List[Commit] = field(default_factory=list)  # on b, not on a
    behind: List[Commit] = field(default_factory=list)  # on a, not on b
    fields: List[DiffField] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return summarize(self.fields)


class VersioningService:
    """Plain request/response operations over a VersionStore."""

    def __init__(
        self,
        store: VersionStore,
        events_file: Optional[Path] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            store: Persistence for resumes, branches and commits
            events_file: History event log path (default: VITAE_EVENTS_FILE, if set)
            clock: Time source for records (injectable for tests)
        """
        self.store = store
        self.events_file = events_file
        self.branches = BranchManager(store, clock=clock)
        self.graph = CommitGraph(store, clock=clock)

    def _run(self, operation: str, fn: Callable[[], Any]) -> OperationResult:
        try:
            return OperationResult.succeeded(fn())
        except VitaeError as e:
            logger.warning(f"[service] {operation} failed ({e.kind.value}): {e.message}")
            return OperationResult.failed(e)

    def _event(self, event_type: str, resume_id: str, **extra) -> None:
        log_history_event(event_type, resume_id, EVENT_SOURCE, events_file=self.events_file, **extra)

    # Resumes

    def create_resume(self, owner_id: str, title: str) -> OperationResult:
        def op():
            resume = self.branches.create_resume(owner_id, title)
            self._event("resume_created", resume.resume_id, owner=owner_id, title=resume.title)
            return resume

        return self._run("create_resume", op)

    def get_resume(self, resume_id: str) -> OperationResult:
        return self._run("get_resume", lambda: self.branches.get_resume(resume_id))

    def list_resumes(self, owner_id: Optional[str] = None) -> OperationResult:
        return self._run("list_resumes", lambda: self.branches.list_resumes(owner_id))

    def delete_resume(self, resume_id: str, owner_id: Optional[str] = None) -> OperationResult:
        def op():
            self.branches.delete_resume(resume_id, owner_id)
            self._event("resume_deleted", resume_id)
            return resume_id

        return self._run("delete_resume", op)

    # Sessions and block edits

    def _checkout(self, resume_id: str, branch_name: str) -> EditingSession:
        branch = self.branches.switch_branch(resume_id, branch_name)
        if branch.tip_commit_id is None:
            tree = BlockTree()
        else:
            tree = BlockTree.from_snapshot(self.graph.get_commit(branch.tip_commit_id).snapshot)
        return EditingSession(resume_id, branch.name, tree, branch.tip_commit_id)

    def open_session(self, resume_id: str, branch_name: str = "main") -> OperationResult:
        """Check out a branch tip into a new EditingSession."""
        return self._run("open_session", lambda: self._checkout(resume_id, branch_name))

    def switch_branch(self, session: EditingSession, branch_name: str) -> OperationResult:
        """
        Point a session at another branch, replacing its tree with that branch's tip.

        Uncommitted edits in the session are discarded.
        """

        def op():
            fresh = self._checkout(session.resume_id, branch_name)
            if session.dirty:
                logger.warning(f"[service] Discarding uncommitted edits on '{session.branch_name}'")
            session.branch_name = fresh.branch_name
            session.tree = fresh.tree
            session.base_commit_id = fresh.base_commit_id
            return session

        return self._run("switch_branch", op)

    def add_block(
        self,
        session: EditingSession,
        parent_id: Optional[str],
        block_type: str,
        initial_content: Optional[Mapping[str, str]] = None,
        layout: Optional[LayoutAttributes] = None,
    ) -> OperationResult:
        return self._run(
            "add_block",
            lambda: session.tree.add_block(parent_id, block_type, initial_content, layout),
        )

    def update_block(self, session: EditingSession, block_id: str, field_patch: Mapping[str, str]) -> OperationResult:
        return self._run("update_block", lambda: session.tree.update_block(block_id, field_patch))

    def remove_block(self, session: EditingSession, block_id: str) -> OperationResult:
        return self._run("remove_block", lambda: session.tree.remove_block(block_id))

    def reorder_blocks(self, session: EditingSession, parent_id: Optional[str], new_ordered_ids: List[str]) -> OperationResult:
        return self._run("reorder_blocks", lambda: session.tree.reorder(parent_id, new_ordered_ids))

    # Commits

    def commit(self, session: EditingSession, message: str, author_id: str) -> OperationResult:
        """
        Commit a session's tree to its branch.

        The session's base commit is the expected tip. On success the session
        is rebased onto the new commit and its tree marked clean.
        """

        def op():
            commit = self.graph.commit(
                session.resume_id,
                session.branch_name,
                build_snapshot(session.tree),
                message,
                author_id,
                expected_tip=session.base_commit_id,
            )
            session.base_commit_id = commit.commit_id
            session.tree.mark_clean()
            self._commit_event(commit)
            return commit

        return self._run("commit", op)

    def commit_snapshot(
        self,
        resume_id: str,
        branch_name: str,
        snapshot: Snapshot,
        message: str,
        author_id: str,
    ) -> OperationResult:
        """Commit a prepared snapshot on top of the branch's current tip."""

        def op():
            commit = self.graph.commit(resume_id, branch_name, snapshot, message, author_id)
            self._commit_event(commit)
            return commit

        return self._run("commit_snapshot", op)

    def _commit_event(self, commit: Commit) -> None:
        self._event(
            "commit_created",
            commit.resume_id,
            branch=commit.branch_name,
            commit=commit.commit_id,
            parent=commit.parent_id,
            author=commit.author_id,
            message=commit.message,
        )

    def history(self, resume_id: str, branch_name: str, limit: Optional[int] = None) -> OperationResult:
        """Commits on a branch, newest first (materialized list)."""
        return self._run("history", lambda: list(self.graph.history(resume_id, branch_name, limit)))

    def get_commit(self, resume_id: str, ref: str) -> OperationResult:
        return self._run("get_commit", lambda: self.graph.resolve_commit(resume_id, ref))

    def commits_between(self, resume_id: str, ancestor_ref: str, descendant_ref: str) -> OperationResult:
        def op():
            ancestor = self.graph.resolve_commit(resume_id, ancestor_ref)
            descendant = self.graph.resolve_commit(resume_id, descendant_ref)
            return self.graph.commits_between(ancestor.commit_id, descendant.commit_id)

        return self._run("commits_between", op)

    # Branches

    def create_branch(
        self,
        resume_id: str,
        name: str,
        source_branch: str = "main",
        description: str = "",
    ) -> OperationResult:
        def op():
            branch = self.branches.create_branch(resume_id, name, source_branch, description)
            self._event(
                "branch_created",
                resume_id,
                branch=branch.name,
                from_branch=source_branch,
                fork_commit=branch.fork_commit_id,
            )
            return branch

        return self._run("create_branch", op)

    def delete_branch(self, resume_id: str, name: str) -> OperationResult:
        def op():
            branch = self.branches.delete_branch(resume_id, name)
            self._event("branch_deleted", resume_id, branch=name, tip=branch.tip_commit_id)
            return branch

        return self._run("delete_branch", op)

    def get_branch(self, resume_id: str, name: str) -> OperationResult:
        return self._run("get_branch", lambda: self.branches.get_branch(resume_id, name))

    def list_branches(self, resume_id: str) -> OperationResult:
        return self._run("list_branches", lambda: self.branches.list_branches(resume_id))

    # Resolution and diffs

    def resolve_snapshot(self, resume_id: str, ref: str) -> OperationResult:
        """Branch name or commit reference -> Snapshot."""
        return self._run("resolve_snapshot", lambda: self.graph.resolve_snapshot(resume_id, ref))

    def export_resume_data(self, resume_id: str, ref: str) -> OperationResult:
        """Branch name or commit reference -> section-shaped resume data for rendering."""
        return self._run(
            "export_resume_data",
            lambda: snapshot_to_resume_data(self.graph.resolve_snapshot(resume_id, ref)),
        )

    def diff_snapshots(self, snapshot_a: Snapshot, snapshot_b: Snapshot, include_unchanged: bool = False) -> OperationResult:
        return self._run("diff_snapshots", lambda: diff(snapshot_a, snapshot_b, include_unchanged))

    def diff_refs(self, resume_id: str, ref_a: str, ref_b: str, include_unchanged: bool = False) -> OperationResult:
        """Diff two branch names or commit references of one resume."""

        def op():
            snapshot_a = self.graph.resolve_snapshot(resume_id, ref_a)
            snapshot_b = self.graph.resolve_snapshot(resume_id, ref_b)
            return diff(snapshot_a, snapshot_b, include_unchanged)

        return self._run("diff_refs", op)

    def compare_branches(self, resume_id: str, branch_a: str, branch_b: str) -> OperationResult:
        """
        Compare two branches: merge base, commits ahead/behind, and tip diff.

        "ahead" lists commits on branch_b since the merge base, "behind" those
        on branch_a, both oldest first.
        """

        def op():
            a = self.branches.get_branch(resume_id, branch_a)
            b = self.branches.get_branch(resume_id, branch_b)
            base = self.graph.merge_base(a.tip_commit_id, b.tip_commit_id)

            comparison = BranchComparison(
                branch_a=a.name,
                branch_b=b.name,
                tip_a=a.tip_commit_id,
                tip_b=b.tip_commit_id,
                merge_base=base,
                ahead=self._since(base, b.tip_commit_id),
                behind=self._since(base, a.tip_commit_id),
            )
            comparison.fields = diff(self._tip_snapshot(a.tip_commit_id), self._tip_snapshot(b.tip_commit_id))
            return comparison

        return self._run("compare_branches", op)

    def _tip_snapshot(self, tip: Optional[str]) -> Snapshot:
        return EMPTY_SNAPSHOT if tip is None else self.graph.get_commit(tip).snapshot

    def _since(self, base: Optional[str], tip: Optional[str]) -> List[Commit]:
        """Commits after base up to tip (all of tip's line when base is None)."""
        if tip is None:
            return []
        if base is not None:
            return self.graph.commits_between(base, tip)
        commits = list(CommitHistory(self.store, tip))
        commits.reverse()
        return commits
