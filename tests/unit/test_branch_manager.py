"""Unit tests for branch and resume lifecycle."""

import pytest

from vitae.contexts.editing import EMPTY_SNAPSHOT
from vitae.contexts.history import MAIN_BRANCH_NAME, normalize_branch_name
from vitae.exceptions import (
    BranchNotFoundError,
    CannotDeleteMainError,
    CommitNotFoundError,
    DuplicateNameError,
    ErrorKind,
    InvalidNameError,
    ResumeNotFoundError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Google SWE", "google-swe"),
        ("Data   Science", "data-science"),
        (" google swe ", "-google-swe-"),
        ("   ", "-"),
        ("meta/ml_infra", "meta/ml_infra"),
        ("Résumé v2!", "rsum-v2"),
        ("tab\tand\nnewline", "tab-and-newline"),
        ("@@@", ""),
        ("", ""),
    ],
)
def test_normalize_branch_name(raw, expected):
    assert normalize_branch_name(raw) == expected


class TestResumes:
    @pytest.mark.unit
    def test_create_resume_has_single_main_branch(self, branch_manager, resume):
        branches = branch_manager.list_branches(resume.resume_id)

        assert len(branches) == 1
        main = branches[0]
        assert main.name == MAIN_BRANCH_NAME
        assert main.is_main
        assert main.description == "Default branch"
        assert main.tip_commit_id is None

    @pytest.mark.unit
    def test_list_resumes_by_owner(self, branch_manager, resume):
        other = branch_manager.create_resume("user-2", "Data Scientist")

        assert [r.resume_id for r in branch_manager.list_resumes("user-1")] == [resume.resume_id]
        assert {r.resume_id for r in branch_manager.list_resumes()} == {resume.resume_id, other.resume_id}

    @pytest.mark.unit
    def test_delete_resume_removes_commits(self, branch_manager, graph, store, resume):
        commit = graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "first", "user-1")

        branch_manager.delete_resume(resume.resume_id, owner_id="user-1")

        with pytest.raises(ResumeNotFoundError):
            branch_manager.get_resume(resume.resume_id)
        with pytest.raises(ResumeNotFoundError):
            branch_manager.list_branches(resume.resume_id)
        with pytest.raises(CommitNotFoundError):
            store.get_commit(commit.commit_id)

    @pytest.mark.unit
    def test_delete_resume_of_other_owner(self, branch_manager, resume):
        """Another owner's resume looks like a missing one."""
        with pytest.raises(ResumeNotFoundError):
            branch_manager.delete_resume(resume.resume_id, owner_id="intruder")

        assert branch_manager.get_resume(resume.resume_id).title == "Software Engineer"


class TestBranches:
    @pytest.mark.unit
    def test_create_branch_normalizes_name(self, branch_manager, resume):
        branch = branch_manager.create_branch(resume.resume_id, "Google SWE", "main", "FAANG variant")

        assert branch.name == "google-swe"
        assert branch.description == "FAANG variant"
        assert not branch.is_main
        main = branch_manager.get_branch(resume.resume_id, "main")
        assert branch.parent_branch_id == main.branch_id

    @pytest.mark.unit
    def test_branch_starts_at_source_tip(self, branch_manager, graph, resume):
        commit = graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "first", "user-1")

        branch = branch_manager.create_branch(resume.resume_id, "google-swe", "main")

        assert branch.tip_commit_id == commit.commit_id
        assert branch.fork_commit_id == commit.commit_id

    @pytest.mark.unit
    def test_duplicate_name(self, branch_manager, resume):
        branch_manager.create_branch(resume.resume_id, "google-swe", "main")

        with pytest.raises(DuplicateNameError) as exc_info:
            branch_manager.create_branch(resume.resume_id, "Google SWE", "main")
        assert exc_info.value.kind == ErrorKind.DUPLICATE_NAME

        with pytest.raises(DuplicateNameError):
            branch_manager.create_branch(resume.resume_id, "main", "google-swe")

    @pytest.mark.unit
    def test_invalid_name(self, branch_manager, resume):
        with pytest.raises(InvalidNameError) as exc_info:
            branch_manager.create_branch(resume.resume_id, "!!!", "main")
        assert exc_info.value.kind == ErrorKind.INVALID_NAME

    @pytest.mark.unit
    def test_unknown_source_branch(self, branch_manager, resume):
        with pytest.raises(BranchNotFoundError):
            branch_manager.create_branch(resume.resume_id, "google-swe", "nope")

    @pytest.mark.unit
    def test_unknown_resume(self, branch_manager):
        with pytest.raises(ResumeNotFoundError):
            branch_manager.create_branch("missing", "google-swe", "main")
        with pytest.raises(ResumeNotFoundError):
            branch_manager.list_branches("missing")

    @pytest.mark.unit
    def test_list_branches_main_first(self, branch_manager, resume):
        for name in ("zeta", "alpha", "meta"):
            branch_manager.create_branch(resume.resume_id, name, "main")

        names = [b.name for b in branch_manager.list_branches(resume.resume_id)]

        assert names == ["main", "zeta", "alpha", "meta"]

    @pytest.mark.unit
    def test_delete_branch_keeps_commits(self, branch_manager, graph, store, resume):
        branch_manager.create_branch(resume.resume_id, "google-swe", "main")
        commit = graph.commit(resume.resume_id, "google-swe", EMPTY_SNAPSHOT, "tailor", "user-1")

        deleted = branch_manager.delete_branch(resume.resume_id, "google-swe")

        assert deleted.tip_commit_id == commit.commit_id
        with pytest.raises(BranchNotFoundError):
            branch_manager.get_branch(resume.resume_id, "google-swe")
        assert store.get_commit(commit.commit_id) == commit

    @pytest.mark.unit
    def test_cannot_delete_main(self, branch_manager, graph, resume):
        graph.commit(resume.resume_id, "main", EMPTY_SNAPSHOT, "first", "user-1")

        with pytest.raises(CannotDeleteMainError) as exc_info:
            branch_manager.delete_branch(resume.resume_id, "main")
        assert exc_info.value.kind == ErrorKind.CANNOT_DELETE_MAIN

        with pytest.raises(CannotDeleteMainError):
            branch_manager.delete_branch("no-such-resume", "main")

    @pytest.mark.unit
    def test_delete_missing_branch(self, branch_manager, resume):
        with pytest.raises(BranchNotFoundError):
            branch_manager.delete_branch(resume.resume_id, "nope")

    @pytest.mark.unit
    def test_deleted_name_can_be_reused(self, branch_manager, resume):
        first = branch_manager.create_branch(resume.resume_id, "google-swe", "main")
        branch_manager.delete_branch(resume.resume_id, "google-swe")

        second = branch_manager.create_branch(resume.resume_id, "google-swe", "main")

        assert second.branch_id != first.branch_id

    @pytest.mark.unit
    def test_switch_branch(self, branch_manager, resume):
        branch_manager.create_branch(resume.resume_id, "google-swe", "main")

        assert branch_manager.switch_branch(resume.resume_id, "google-swe").name == "google-swe"
        with pytest.raises(BranchNotFoundError):
            branch_manager.switch_branch(resume.resume_id, "nope")
