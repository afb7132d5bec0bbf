"""
Integration tests for the vitae command-line interface.

Each test drives the typer app through CliRunner against a fresh SQLite
database, using the resume-data fixtures as committed content.
"""

import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vitae.cli import app
from vitae.contexts.editing import load_resume_yaml

FIXTURES_PATH = Path(__file__).parent.parent / "fixtures"
BASE_YAML = FIXTURES_PATH / "resume_base.yaml"
GOOGLE_YAML = FIXTURES_PATH / "resume_google.yaml"

runner = CliRunner()


@pytest.fixture
def vitae(tmp_path, monkeypatch):
    """Invoke the CLI against a database in tmp_path."""
    monkeypatch.setattr("vitae.cli.LOGS_PATH", tmp_path / "logs")
    db_path = tmp_path / "vitae.db"

    def invoke(*args):
        return runner.invoke(app, ["--db", str(db_path), *[str(a) for a in args]])

    return invoke


@pytest.fixture
def resume_id(vitae):
    result = vitae("init", "Software Engineer", "--owner", "user-1", "--from", BASE_YAML)
    assert result.exit_code == 0, result.output
    return re.search(r"Resume ID: (\S+)", result.output).group(1)


@pytest.mark.integration
def test_help_without_command():
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "commit" in result.output
    assert "compare" in result.output


@pytest.mark.integration
def test_init_commits_initial_yaml(vitae, resume_id):
    result = vitae("log", resume_id)

    assert result.exit_code == 0
    assert "Import resume_base.yaml" in result.output

    resumes = vitae("resumes", "--owner", "user-1")
    assert resume_id in resumes.output
    assert "Total: 1 resume(s)" in resumes.output


@pytest.mark.integration
def test_branch_commit_and_diff(vitae, resume_id):
    """Tailor a branch and see the field-level changes against main."""
    created = vitae("branch", resume_id, "Google SWE", "--description", "FAANG variant")
    assert created.exit_code == 0, created.output
    assert "google-swe" in created.output

    committed = vitae("commit", resume_id, GOOGLE_YAML, "-m", "Tailor for Google", "-b", "google-swe")
    assert committed.exit_code == 0, committed.output
    assert "Tailor for Google" in committed.output

    branches = vitae("branches", resume_id)
    assert "main" in branches.output
    assert "google-swe" in branches.output
    assert "FAANG variant" in branches.output

    diffed = vitae("diff", resume_id, "main", "google-swe")
    assert diffed.exit_code == 0
    assert "# Changes: main → google-swe" in diffed.output
    assert "2 added, 6 removed, 4 modified" in diffed.output
    assert "**Experience 1 - Title**" in diffed.output


@pytest.mark.integration
def test_compare_branches(vitae, resume_id):
    vitae("branch", resume_id, "google-swe")
    vitae("commit", resume_id, GOOGLE_YAML, "-m", "Tailor", "-b", "google-swe")

    result = vitae("compare", resume_id, "main", "google-swe")

    assert result.exit_code == 0, result.output
    assert "google-swe is 1 ahead, 0 behind" in result.output
    assert "Fields: 2 added, 6 removed, 4 modified" in result.output


@pytest.mark.integration
def test_show_exports_yaml(vitae, resume_id, tmp_path):
    output = tmp_path / "export" / "main.yaml"

    result = vitae("show", resume_id, "main", "--output", output)

    assert result.exit_code == 0, result.output
    exported = load_resume_yaml(output)
    original = load_resume_yaml(BASE_YAML)
    assert exported["personal_info"]["full_name"] == original["personal_info"]["full_name"]
    assert [e["company"] for e in exported["experience"]] == ["Initech", "Globex"]
    assert exported["skills"][0]["items"] == "Python, Go, SQL"


@pytest.mark.integration
def test_show_prints_yaml(vitae, resume_id):
    result = vitae("show", resume_id)

    assert result.exit_code == 0
    assert "full_name: Alex Chen" in result.output


@pytest.mark.integration
def test_errors_exit_with_code_1(vitae, resume_id):
    deleted = vitae("delete-branch", resume_id, "main")
    assert deleted.exit_code == 1
    assert "CannotDeleteMain" in deleted.output

    duplicate = vitae("branch", resume_id, "main")
    assert duplicate.exit_code == 1
    assert "DuplicateName" in duplicate.output

    empty = vitae("commit", resume_id, BASE_YAML, "-m", "   ")
    assert empty.exit_code == 1
    assert "EmptyMessage" in empty.output

    missing = vitae("log", "no-such-resume")
    assert missing.exit_code == 1
    assert "ResumeNotFound" in missing.output


@pytest.mark.integration
def test_commit_missing_file(vitae, resume_id, tmp_path):
    result = vitae("commit", resume_id, tmp_path / "missing.yaml", "-m", "nothing")

    assert result.exit_code == 1
    assert "not found" in result.output


@pytest.mark.integration
def test_delete_branch_reports_retained_tip(vitae, resume_id):
    vitae("branch", resume_id, "draft")
    vitae("commit", resume_id, GOOGLE_YAML, "-m", "Draft", "-b", "draft")

    result = vitae("delete-branch", resume_id, "draft")

    assert result.exit_code == 0, result.output
    assert "still addressable" in result.output
    assert "draft" not in vitae("branches", resume_id).output


@pytest.mark.integration
def test_log_relative_dates(vitae, resume_id):
    result = vitae("log", resume_id, "--relative")

    assert result.exit_code == 0, result.output
    assert "s ago" in result.output
