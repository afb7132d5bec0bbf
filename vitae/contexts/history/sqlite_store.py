"""
Persistent SQLite store for versioned resumes.

Provides the VersionStore interface on a single SQLite file:
- resumes, branches, commits tables (one row per record)
- snapshots table keyed by structural hash, so identical snapshots are stored once
- tip compare-and-swap as a conditional UPDATE inside the commit transaction
"""

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from vitae.contexts.editing.snapshot_builder import snapshot_from_dict, snapshot_to_dict
from vitae.contexts.history.history_data_structure import Branch, Commit, Resume
from vitae.contexts.history.logger import _log_debug, _log_info, log_tip_conflict
from vitae.contexts.history.store import VersionStore
from vitae.exceptions import (
    BranchNotFoundError,
    CommitNotFoundError,
    ConcurrentModificationError,
    DuplicateNameError,
    ResumeNotFoundError,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS resumes (
    resume_id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS branches (
    branch_id TEXT PRIMARY KEY,
    resume_id TEXT NOT NULL REFERENCES resumes(resume_id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    parent_branch_id TEXT,
    is_main INTEGER NOT NULL DEFAULT 0,
    tip_commit_id TEXT,
    fork_commit_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    seq INTEGER NOT NULL,
    UNIQUE (resume_id, name)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_one_main_branch ON branches(resume_id) WHERE is_main = 1;

CREATE TABLE IF NOT EXISTS snapshots (
    snapshot_hash TEXT PRIMARY KEY,
    body TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS commits (
    commit_id TEXT PRIMARY KEY,
    resume_id TEXT NOT NULL REFERENCES resumes(resume_id) ON DELETE CASCADE,
    parent_id TEXT,
    branch_id TEXT NOT NULL,
    branch_name TEXT NOT NULL,
    message TEXT NOT NULL,
    author_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    depth INTEGER NOT NULL,
    snapshot_hash TEXT NOT NULL REFERENCES snapshots(snapshot_hash)
);

CREATE INDEX IF NOT EXISTS idx_commits_resume ON commits(resume_id);
"""


class SQLiteVersionStore(VersionStore):
    """
    SQLite-backed VersionStore.

    One connection is shared by all threads; a connection lock serializes
    statements, and per-resume locks (from VersionStore) serialize branch
    lifecycle checks. The schema is created on first use.
    """

    def __init__(self, db_path: Path):
        """
        Open (or create) a store database.

        Args:
            db_path: Path to SQLite database file (":memory:" for a private in-memory db)
        """
        super().__init__()
        self.db_path = db_path
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn_lock = threading.RLock()
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # Enable column access by name
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)
        self.conn.commit()
        _log_debug(f"Opened version store at {db_path}")

    def close(self) -> None:
        with self._conn_lock:
            self.conn.close()

    # Row conversion

    @staticmethod
    def _resume_from_row(row: sqlite3.Row) -> Resume:
        return Resume(
            resume_id=row["resume_id"],
            owner_id=row["owner_id"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _branch_from_row(row: sqlite3.Row) -> Branch:
        return Branch(
            branch_id=row["branch_id"],
            resume_id=row["resume_id"],
            name=row["name"],
            description=row["description"],
            parent_branch_id=row["parent_branch_id"],
            is_main=bool(row["is_main"]),
            tip_commit_id=row["tip_commit_id"],
            fork_commit_id=row["fork_commit_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _commit_from_row(self, row: sqlite3.Row) -> Commit:
        body = self._query_one(
            "SELECT body FROM snapshots WHERE snapshot_hash = ?", (row["snapshot_hash"],)
        )
        return Commit(
            commit_id=row["commit_id"],
            resume_id=row["resume_id"],
            parent_id=row["parent_id"],
            branch_id=row["branch_id"],
            branch_name=row["branch_name"],
            message=row["message"],
            author_id=row["author_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            depth=row["depth"],
            snapshot=snapshot_from_dict(json.loads(body["body"])),
        )

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._conn_lock:
            return self.conn.execute(sql, params).fetchall()

    def _query_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._conn_lock:
            return self.conn.execute(sql, params).fetchone()

    def _require_resume(self, resume_id: str) -> None:
        if self._query_one("SELECT 1 FROM resumes WHERE resume_id = ?", (resume_id,)) is None:
            raise ResumeNotFoundError(resume_id)

    def _insert_branch(self, branch: Branch) -> None:
        self.conn.execute(
            """
            INSERT INTO branches (
                branch_id, resume_id, name, description, parent_branch_id, is_main,
                tip_commit_id, fork_commit_id, created_at, updated_at, seq
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
                (SELECT COALESCE(MAX(seq), 0) + 1 FROM branches WHERE resume_id = ?))
            """,
            (
                branch.branch_id,
                branch.resume_id,
                branch.name,
                branch.description,
                branch.parent_branch_id,
                int(branch.is_main),
                branch.tip_commit_id,
                branch.fork_commit_id,
                branch.created_at.isoformat(),
                branch.updated_at.isoformat(),
                branch.resume_id,
            ),
        )

    # Resumes

    def add_resume(self, resume: Resume, main_branch: Branch) -> None:
        with self.resume_lock(resume.resume_id), self._conn_lock, self.conn:
            self.conn.execute(
                "INSERT INTO resumes (resume_id, owner_id, title, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    resume.resume_id,
                    resume.owner_id,
                    resume.title,
                    resume.created_at.isoformat(),
                    resume.updated_at.isoformat(),
                ),
            )
            self._insert_branch(main_branch)

    def get_resume(self, resume_id: str) -> Resume:
        row = self._query_one("SELECT * FROM resumes WHERE resume_id = ?", (resume_id,))
        if row is None:
            raise ResumeNotFoundError(resume_id)
        return self._resume_from_row(row)

    def list_resumes(self, owner_id: Optional[str] = None) -> List[Resume]:
        if owner_id is None:
            rows = self._query("SELECT * FROM resumes ORDER BY rowid")
        else:
            rows = self._query("SELECT * FROM resumes WHERE owner_id = ? ORDER BY rowid", (owner_id,))
        return [self._resume_from_row(row) for row in rows]

    def delete_resume(self, resume_id: str) -> None:
        with self.resume_lock(resume_id), self._conn_lock, self.conn:
            cursor = self.conn.execute("DELETE FROM resumes WHERE resume_id = ?", (resume_id,))
            if cursor.rowcount == 0:
                raise ResumeNotFoundError(resume_id)
            # Branches and commits cascade; drop snapshots no commit references any more
            self.conn.execute(
                "DELETE FROM snapshots WHERE snapshot_hash NOT IN (SELECT snapshot_hash FROM commits)"
            )
        self._resume_locks.discard(resume_id)
        _log_info(f"Deleted resume {resume_id} from {self.db_path}")

    # Branches

    def add_branch(self, branch: Branch) -> None:
        with self.resume_lock(branch.resume_id), self._conn_lock:
            self._require_resume(branch.resume_id)
            try:
                with self.conn:
                    self._insert_branch(branch)
            except sqlite3.IntegrityError as e:
                raise DuplicateNameError(branch.name, branch.resume_id) from e

    def find_branch(self, resume_id: str, name: str) -> Optional[Branch]:
        self._require_resume(resume_id)
        row = self._query_one(
            "SELECT * FROM branches WHERE resume_id = ? AND name = ?", (resume_id, name)
        )
        return self._branch_from_row(row) if row is not None else None

    def list_branches(self, resume_id: str) -> List[Branch]:
        self._require_resume(resume_id)
        rows = self._query("SELECT * FROM branches WHERE resume_id = ? ORDER BY seq", (resume_id,))
        return [self._branch_from_row(row) for row in rows]

    def remove_branch(self, resume_id: str, name: str) -> None:
        with self.resume_lock(resume_id), self._conn_lock, self.conn:
            cursor = self.conn.execute(
                "DELETE FROM branches WHERE resume_id = ? AND name = ?", (resume_id, name)
            )
            if cursor.rowcount == 0:
                raise BranchNotFoundError(name, resume_id)

    # Commits

    def get_commit(self, commit_id: str) -> Commit:
        row = self._query_one("SELECT * FROM commits WHERE commit_id = ?", (commit_id,))
        if row is None:
            raise CommitNotFoundError(commit_id)
        return self._commit_from_row(row)

    def find_commit_ids(self, resume_id: str, prefix: str) -> List[str]:
        # substr() instead of LIKE so '%' and '_' in prefix are not wildcards
        rows = self._query(
            "SELECT commit_id FROM commits WHERE resume_id = ? "
            "AND substr(commit_id, 1, ?) = ? ORDER BY commit_id",
            (resume_id, len(prefix), prefix),
        )
        return [row["commit_id"] for row in rows]

    def advance_tip(self, commit: Commit, expected_tip: Optional[str]) -> Branch:
        with self.resume_lock(commit.resume_id), self._conn_lock, self.conn:
            cursor = self.conn.execute(
                "UPDATE branches SET tip_commit_id = ?, updated_at = ? "
                "WHERE branch_id = ? AND tip_commit_id IS ?",
                (commit.commit_id, commit.created_at.isoformat(), commit.branch_id, expected_tip),
            )
            if cursor.rowcount == 0:
                row = self.conn.execute(
                    "SELECT name, tip_commit_id FROM branches WHERE branch_id = ?", (commit.branch_id,)
                ).fetchone()
                if row is None:
                    raise BranchNotFoundError(commit.branch_name, commit.resume_id)
                log_tip_conflict(row["name"], expected_tip, row["tip_commit_id"])
                raise ConcurrentModificationError(row["name"], expected_tip, row["tip_commit_id"])

            self.conn.execute(
                "INSERT OR IGNORE INTO snapshots (snapshot_hash, body) VALUES (?, ?)",
                (commit.snapshot_hash, json.dumps(snapshot_to_dict(commit.snapshot), sort_keys=True)),
            )
            self.conn.execute(
                """
                INSERT INTO commits (
                    commit_id, resume_id, parent_id, branch_id, branch_name, message,
                    author_id, created_at, depth, snapshot_hash
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    commit.commit_id,
                    commit.resume_id,
                    commit.parent_id,
                    commit.branch_id,
                    commit.branch_name,
                    commit.message,
                    commit.author_id,
                    commit.created_at.isoformat(),
                    commit.depth,
                    commit.snapshot_hash,
                ),
            )
            row = self.conn.execute(
                "SELECT * FROM branches WHERE branch_id = ?", (commit.branch_id,)
            ).fetchone()
            return self._branch_from_row(row)

    def count_snapshots(self) -> int:
        """Number of distinct stored snapshots."""
        return self._query_one("SELECT COUNT(*) AS n FROM snapshots")["n"]
