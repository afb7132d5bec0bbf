"""
Command-line interface for versioned resumes.

Works against a SQLite version store (VITAE_DB_PATH, default outs/vitae.db).
Resume content is read from and exported to resume-data YAML files.

Commands:
    init          - Create a resume (optionally committing an initial YAML)
    resumes       - List resumes
    branch        - Create a branch from another branch's tip
    branches      - List branches of a resume
    delete-branch - Delete a branch (commits are kept)
    commit        - Commit a resume-data YAML file to a branch
    log           - Show commit history of a branch
    diff          - Field-level diff between two branches or commits
    show          - Export a branch or commit as resume-data YAML
    compare       - Compare two branches (merge base, ahead/behind, diff)
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from omegaconf import OmegaConf

from vitae.contexts.comparison import format_diff_report, summarize
from vitae.contexts.editing import load_resume_yaml, save_resume_yaml, snapshot_from_resume_data
from vitae.contexts.history import SQLiteVersionStore
from vitae.exceptions import InvalidResumeDataError
from vitae.service import OperationResult, VersioningService
from vitae.utils.logger import setup_logger
from vitae.utils.report_formatter import Column, TableFormatter
from vitae.utils.timestamp import format_timestamp, now

load_dotenv()
DB_PATH = Path(os.getenv("VITAE_DB_PATH", "outs/vitae.db"))
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
DEFAULT_AUTHOR = os.getenv("VITAE_AUTHOR", os.getenv("USER", "local"))

app = typer.Typer(
    add_completion=False,
    help="Version resumes with branches, commits and diffs",
    invoke_without_command=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database (default: VITAE_DB_PATH)"),
):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    db_path = db or DB_PATH
    log_file = setup_logger(
        context_name="vitae",
        log_dir=LOGS_PATH / f"cli_{now()}",
        extra_provenance={"Database": db_path},
        console=False,
    )
    store = SQLiteVersionStore(db_path)
    ctx.obj = {"service": VersioningService(store), "log_file": log_file}
    ctx.call_on_close(store.close)


def _service(ctx: typer.Context) -> VersioningService:
    return ctx.obj["service"]


def _unwrap(result: OperationResult):
    """Return the result value, or print the error and exit with code 1."""
    if not result.ok:
        typer.secho(f"✗ {result.error_kind.value}: {result.error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return result.value


def _load_snapshot(yaml_file: Path):
    try:
        return snapshot_from_resume_data(load_resume_yaml(yaml_file))
    except (FileNotFoundError, InvalidResumeDataError) as e:
        typer.secho(f"✗ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("init")
def init_command(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Resume title"),
    owner: str = typer.Option(DEFAULT_AUTHOR, "--owner", "-o", help="Owner id"),
    from_yaml: Optional[Path] = typer.Option(
        None, "--from", "-f", help="Resume-data YAML to commit as the first version"
    ),
):
    """
    Create a resume with an empty main branch.

    Examples:\n

        $ vitae init "Software Engineer"

        $ vitae init "Data Scientist" --from resume.yaml
    """
    service = _service(ctx)
    snapshot = _load_snapshot(from_yaml) if from_yaml else None

    resume = _unwrap(service.create_resume(owner, title))
    typer.secho(f"✓ Created resume '{resume.title}'", fg=typer.colors.GREEN)
    typer.echo(f"  Resume ID: {resume.resume_id}")

    if snapshot is not None:
        commit = _unwrap(
            service.commit_snapshot(resume.resume_id, "main", snapshot, f"Import {from_yaml.name}", owner)
        )
        typer.echo(f"  Initial commit: {commit.short_hash}")


@app.command("resumes")
def resumes_command(
    ctx: typer.Context,
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Only resumes of this owner"),
):
    """List resumes."""
    resumes = _unwrap(_service(ctx).list_resumes(owner))
    if not resumes:
        typer.secho("No resumes found", fg=typer.colors.YELLOW)
        return

    formatter = TableFormatter(
        columns=[
            Column("Resume ID", 36),
            Column("Title", 30),
            Column("Owner", 15),
            Column("Updated", 19),
        ],
    )
    formatter.add_table_header().add_separator("-")
    for resume in resumes:
        formatter.add_row(
            [resume.resume_id, resume.title, resume.owner_id, format_timestamp(resume.updated_at.isoformat())]
        )
    formatter.add_summary(f"Total: {len(resumes)} resume(s)")
    typer.echo(formatter.render())


@app.command("branch")
def branch_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    name: str = typer.Argument(..., help="New branch name (normalized, e.g. 'Google SWE' -> google-swe)"),
    source: str = typer.Option("main", "--from", "-f", help="Branch to fork from"),
    description: str = typer.Option("", "--description", "-d", help="Branch description"),
):
    """Create a branch at the current tip of another branch."""
    branch = _unwrap(_service(ctx).create_branch(resume_id, name, source, description))
    fork = branch.fork_commit_id[:7] if branch.fork_commit_id else "empty"
    typer.secho(f"✓ Created branch '{branch.name}' from '{source}' at {fork}", fg=typer.colors.GREEN)


@app.command("branches")
def branches_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
):
    """List branches of a resume (main first)."""
    branches = _unwrap(_service(ctx).list_branches(resume_id))

    formatter = TableFormatter(
        columns=[
            Column("", 1),
            Column("Branch", 30),
            Column("Tip", 7),
            Column("Updated", 19),
            Column("Description", 40),
        ],
    )
    formatter.add_table_header().add_separator("-")
    for branch in branches:
        formatter.add_row(
            [
                "*" if branch.is_main else "",
                branch.name,
                branch.tip_commit_id[:7] if branch.tip_commit_id else "-",
                format_timestamp(branch.updated_at.isoformat()),
                branch.description,
            ]
        )
    typer.echo(formatter.render())


@app.command("delete-branch")
def delete_branch_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    name: str = typer.Argument(..., help="Branch to delete"),
):
    """Delete a branch. Its commits stay reachable by id."""
    branch = _unwrap(_service(ctx).delete_branch(resume_id, name))
    typer.secho(f"✓ Deleted branch '{branch.name}'", fg=typer.colors.GREEN)
    if branch.tip_commit_id:
        typer.echo(f"  Last tip: {branch.tip_commit_id[:7]} (still addressable)")


@app.command("commit")
def commit_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    yaml_file: Path = typer.Argument(..., help="Resume-data YAML file"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    branch: str = typer.Option("main", "--branch", "-b", help="Branch to commit to"),
    author: str = typer.Option(DEFAULT_AUTHOR, "--author", "-a", help="Author id"),
):
    """
    Commit the contents of a resume-data YAML file.

    Examples:\n

        $ vitae commit <resume-id> resume.yaml -m "Tighten summary" -b google-swe
    """
    snapshot = _load_snapshot(yaml_file)
    commit = _unwrap(_service(ctx).commit_snapshot(resume_id, branch, snapshot, message, author))
    typer.secho(f"✓ [{commit.branch_name} {commit.short_hash}] {commit.message}", fg=typer.colors.GREEN)


@app.command("log")
def log_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    branch: str = typer.Option("main", "--branch", "-b", help="Branch to walk"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Maximum commits"),
    relative: bool = typer.Option(False, "--relative", "-r", help="Show dates as e.g. '2h ago'"),
):
    """Show commits on a branch, newest first."""
    commits = _unwrap(_service(ctx).history(resume_id, branch, limit))
    if not commits:
        typer.secho(f"No commits on '{branch}'", fg=typer.colors.YELLOW)
        return

    formatter = TableFormatter(
        columns=[
            Column("Commit", 7),
            Column("Date", 19),
            Column("Author", 15),
            Column("Message", 55),
        ],
    )
    formatter.add_table_header().add_separator("-")
    for commit in commits:
        headline = commit.message.splitlines()[0]
        formatter.add_row(
            [commit.short_hash, format_timestamp(commit.created_at.isoformat(), relative), commit.author_id, headline]
        )
    typer.echo(formatter.render())


@app.command("diff")
def diff_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    ref_a: str = typer.Argument(..., help="Branch name or commit id (before)"),
    ref_b: str = typer.Argument(..., help="Branch name or commit id (after)"),
    show_all: bool = typer.Option(False, "--all", help="Include unchanged fields"),
):
    """Field-level diff between two branches or commits."""
    fields = _unwrap(_service(ctx).diff_refs(resume_id, ref_a, ref_b, include_unchanged=show_all))
    typer.echo(format_diff_report(fields, ref_a, ref_b))


@app.command("show")
def show_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    ref: str = typer.Argument("main", help="Branch name or commit id"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write YAML to this file"),
):
    """Export a branch tip or commit as resume-data YAML."""
    data = _unwrap(_service(ctx).export_resume_data(resume_id, ref))
    if output is None:
        typer.echo(OmegaConf.to_yaml(OmegaConf.create(data)))
        return
    save_resume_yaml(data, output)
    typer.secho(f"✓ Wrote {output}", fg=typer.colors.GREEN)


@app.command("compare")
def compare_command(
    ctx: typer.Context,
    resume_id: str = typer.Argument(..., help="Resume ID"),
    branch_a: str = typer.Argument(..., help="Base branch"),
    branch_b: str = typer.Argument(..., help="Branch to compare"),
):
    """Compare two branches: common ancestor, divergence and content changes."""
    comparison = _unwrap(_service(ctx).compare_branches(resume_id, branch_a, branch_b))

    typer.secho(f"\n{comparison.branch_a} ... {comparison.branch_b}", fg=typer.colors.BLUE, bold=True)
    base = comparison.merge_base[:7] if comparison.merge_base else "none"
    typer.echo(f"  Merge base: {base}")
    typer.echo(f"  {comparison.branch_b} is {len(comparison.ahead)} ahead, {len(comparison.behind)} behind")

    counts = summarize(comparison.fields)
    typer.echo(
        f"  Fields: {counts['added']} added, {counts['removed']} removed, {counts['modified']} modified\n"
    )
    typer.echo(format_diff_report(comparison.fields, comparison.branch_a, comparison.branch_b))


if __name__ == "__main__":
    app()
