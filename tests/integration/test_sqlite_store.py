"""
Integration tests for the SQLite version store.

Runs the history context end to end against a database file, including
reopening the file to check that everything persisted.
"""

import sqlite3
import threading

import pytest

from vitae.contexts.editing import EMPTY_SNAPSHOT, snapshot_from_resume_data
from vitae.contexts.history import BranchManager, CommitGraph, SQLiteVersionStore
from vitae.exceptions import (
    BranchNotFoundError,
    CannotDeleteMainError,
    CommitNotFoundError,
    ConcurrentModificationError,
    DuplicateNameError,
    ResumeNotFoundError,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db" / "vitae.db"


@pytest.fixture
def sqlite_store(db_path):
    store = SQLiteVersionStore(db_path)
    yield store
    store.close()


@pytest.fixture
def manager(sqlite_store, clock):
    return BranchManager(sqlite_store, clock=clock)


@pytest.fixture
def sqlite_graph(sqlite_store, clock):
    return CommitGraph(sqlite_store, clock=clock)


@pytest.mark.integration
def test_history_survives_reopen(db_path, sqlite_store, manager, sqlite_graph, base_snapshot, google_snapshot):
    """Resumes, branches and commits are read back identically from a new connection."""
    resume = manager.create_resume("user-1", "Software Engineer")
    first = sqlite_graph.commit(resume.resume_id, "main", base_snapshot, "Import", "user-1")
    manager.create_branch(resume.resume_id, "Google SWE", "main", "FAANG variant")
    second = sqlite_graph.commit(resume.resume_id, "google-swe", google_snapshot, "Tailor", "user-1")
    sqlite_store.close()

    reopened = SQLiteVersionStore(db_path)
    try:
        graph = CommitGraph(reopened)
        branches = BranchManager(reopened).list_branches(resume.resume_id)

        assert [b.name for b in branches] == ["main", "google-swe"]
        assert branches[0].is_main
        assert branches[1].description == "FAANG variant"
        assert branches[1].fork_commit_id == first.commit_id
        assert reopened.get_resume(resume.resume_id) == resume
        assert list(graph.history(resume.resume_id, "google-swe")) == [second, first]
        assert reopened.get_commit(second.commit_id).snapshot == google_snapshot
        assert graph.resolve_commit(resume.resume_id, second.short_hash) == second
    finally:
        reopened.close()


@pytest.mark.integration
def test_branch_lifecycle_errors(manager):
    resume = manager.create_resume("user-1", "Software Engineer")
    manager.create_branch(resume.resume_id, "google-swe", "main")

    with pytest.raises(DuplicateNameError):
        manager.create_branch(resume.resume_id, "Google SWE", "main")
    with pytest.raises(BranchNotFoundError):
        manager.create_branch(resume.resume_id, "meta", "nope")
    with pytest.raises(CannotDeleteMainError):
        manager.delete_branch(resume.resume_id, "main")
    with pytest.raises(BranchNotFoundError):
        manager.delete_branch(resume.resume_id, "nope")
    with pytest.raises(ResumeNotFoundError):
        manager.list_branches("missing")


@pytest.mark.integration
def test_one_main_branch_per_resume(sqlite_store, manager):
    """The schema itself refuses a second main branch."""
    resume = manager.create_resume("user-1", "Software Engineer")

    with pytest.raises(sqlite3.IntegrityError):
        with sqlite_store.conn:
            sqlite_store.conn.execute(
                "INSERT INTO branches (branch_id, resume_id, name, is_main, created_at, updated_at, seq) "
                "VALUES ('x', ?, 'other-main', 1, '2025-01-01T00:00:00', '2025-01-01T00:00:00', 99)",
                (resume.resume_id,),
            )


@pytest.mark.integration
def test_stale_tip_rejected(manager, sqlite_graph):
    resume = manager.create_resume("user-1", "Software Engineer")
    first = sqlite_graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "one", "user-1")
    sqlite_graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "two", "user-1")

    with pytest.raises(ConcurrentModificationError):
        sqlite_graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "three", "user-1", expected_tip=first.commit_id)

    assert len(list(sqlite_graph.history(resume.resume_id, "main"))) == 2


@pytest.mark.integration
def test_concurrent_commits_on_same_tip(manager, sqlite_graph):
    resume = manager.create_resume("user-1", "Software Engineer")
    barrier = threading.Barrier(6)
    outcomes = []
    outcomes_lock = threading.Lock()

    def writer(n):
        snapshot = snapshot_from_resume_data({"personal_info": {"full_name": f"Writer {n}"}})
        barrier.wait()
        try:
            sqlite_graph.commit(resume.resume_id, "main", snapshot, f"edit {n}", "user-1", expected_tip=None)
            result = "ok"
        except ConcurrentModificationError:
            result = "conflict"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict"] * 5 + ["ok"]
    assert len(list(sqlite_graph.history(resume.resume_id, "main"))) == 1


@pytest.mark.integration
def test_snapshots_deduplicated(sqlite_store, manager, sqlite_graph, base_snapshot):
    resume = manager.create_resume("user-1", "Software Engineer")
    manager.create_branch(resume.resume_id, "copy", "main")
    sqlite_graph.commit(resume.resume_id, "main", base_snapshot, "one", "user-1")
    sqlite_graph.commit(resume.resume_id, "copy", base_snapshot, "same content", "user-1")

    assert sqlite_store.count_snapshots() == 1


@pytest.mark.integration
def test_deleted_branch_commits_stay_addressable(manager, sqlite_graph, sqlite_store):
    resume = manager.create_resume("user-1", "Software Engineer")
    manager.create_branch(resume.resume_id, "draft", "main")
    commit = sqlite_graph.commit(resume.resume_id, "draft", EMPTY_SNAPSHOT, "draft work", "user-1")

    manager.delete_branch(resume.resume_id, "draft")

    assert sqlite_store.get_commit(commit.commit_id) == commit
    assert sqlite_graph.resolve_snapshot(resume.resume_id, commit.short_hash) == EMPTY_SNAPSHOT


@pytest.mark.integration
def test_delete_resume_cascades(manager, sqlite_graph, sqlite_store, base_snapshot):
    keep = manager.create_resume("user-1", "Keep")
    drop = manager.create_resume("user-1", "Drop")
    kept = sqlite_graph.commit(keep.resume_id, "main", EMPTY_SNAPSHOT, "keep", "user-1")
    dropped = sqlite_graph.commit(drop.resume_id, "main", base_snapshot, "drop", "user-1")

    manager.delete_resume(drop.resume_id, owner_id="user-1")

    with pytest.raises(CommitNotFoundError):
        sqlite_store.get_commit(dropped.commit_id)
    with pytest.raises(ResumeNotFoundError):
        manager.delete_resume(drop.resume_id)
    assert sqlite_store.get_commit(kept.commit_id) == kept
    assert sqlite_store.count_snapshots() == 1
    assert [r.title for r in manager.list_resumes()] == ["Keep"]


@pytest.mark.integration
def test_prefix_lookup_treats_wildcards_literally(manager, sqlite_graph, sqlite_store):
    resume = manager.create_resume("user-1", "Software Engineer")
    sqlite_graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "one", "user-1")

    assert sqlite_store.find_commit_ids(resume.resume_id, "%") == []
    assert sqlite_store.find_commit_ids(resume.resume_id, "____") == []
