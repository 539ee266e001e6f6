# cli.py
from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

from triggerci import settings
from triggerci.git_facts import git
from triggerci.loader import WorkflowError, load_workflow
from triggerci.model import EVENT_KINDS, Event
from triggerci.report import write_report
from triggerci.runner import run_pipeline
from triggerci.trigger import match_jobs
from triggerci.ui.console import Console, get_console, set_console


def find_workflow_files() -> list[Path]:
    """
    Find all workflow files in the current directory.

    Returns:
        List of Path objects for workflow files
    """
    current_dir = Path(".")
    default_workflow = current_dir / settings.DEFAULT_WORKFLOW
    if default_workflow.exists():
        return [default_workflow]

    found = list(current_dir.glob("*_workflow.py"))
    found.extend(current_dir.glob("workflows/*.yml"))
    found.extend(current_dir.glob("workflows/*.yaml"))
    return sorted(found)


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix == "":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  triggerci run --workflow my_workflow.py",
            )
            sys.exit(2)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=[
                "Looked for:",
                f"  {settings.DEFAULT_WORKFLOW}",
                "  *_workflow.py",
                "  workflows/*.yml",
            ],
            suggestion=f"Create a workflow file:\n  {settings.DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  triggerci run --workflow my_workflow.py",
        )
        sys.exit(2)

    if len(workflow_files) > 1:
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[str(f) for f in workflow_files],
            suggestion="Specify a workflow explicitly:\n  triggerci run --workflow workflows/main.yml",
        )
        sys.exit(2)

    return workflow_files[0]


def _parse_secrets(ctx, param, values) -> dict[str, str]:
    secrets = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}")
        secrets[name] = value
    return secrets


def _build_event(
    kind: str,
    branch: Optional[str],
    sha: Optional[str],
    changed_file: tuple[str, ...],
    git_diff: bool,
    compare_ref: str,
    repo_root: Path,
) -> Event:
    console = get_console()

    if not branch:
        try:
            branch = git.current_branch(repo_root)
            console.print_debug(f"Using current git branch: {branch}")
        except (subprocess.CalledProcessError, FileNotFoundError, ValueError) as e:
            console.print_error(
                "Could not determine branch",
                "No --branch specified and the current git branch is unknown.",
                details=[str(e)] if str(e) else None,
                suggestion="Specify the branch explicitly:\n  triggerci run --branch main",
            )
            sys.exit(2)

    if not sha:
        try:
            sha = git.head_sha(repo_root)
        except (subprocess.CalledProcessError, FileNotFoundError):
            sha = None

    changed = None
    if changed_file:
        changed = tuple(changed_file)
    elif git_diff:
        try:
            changed = tuple(git.changed_since(compare_ref, cwd=repo_root))
        except (subprocess.CalledProcessError, FileNotFoundError):
            console.print_debug("git diff unavailable; path filters are ignored")

    return Event(kind=kind, branch=branch, changed_files=changed, sha=sha)


def _load(workflow: Optional[str]):
    console = get_console()
    workflow_path = discover_workflow(workflow)
    try:
        return workflow_path, load_workflow(workflow_path)
    except WorkflowError as e:
        console.print_error("Invalid workflow", f"{workflow_path}: {e}")
        sys.exit(2)


def _selection_options(fn):
    options = [
        click.option("--workflow", default=None, help=f"Workflow file (.py, .yml); defaults to {settings.DEFAULT_WORKFLOW} if present"),
        click.option("--event", "event_kind", type=click.Choice(EVENT_KINDS), default="push", show_default=True, help="Triggering event kind"),
        click.option("--branch", default=None, help="Pushed branch, or the branch a pull request targets (defaults to the current git branch)"),
        click.option("--sha", default=None, help="Commit to check out (defaults to HEAD of --repo-root)"),
        click.option("--changed-file", multiple=True, help="Changed file path, for trigger path filters (repeatable)"),
        click.option("--git-diff/--no-git-diff", default=False, help="Take changed files from git for trigger path filters"),
        click.option("--compare-ref", default="origin/main", show_default=True, help="Git ref to diff against"),
        click.option("--repo-root", default=".", type=click.Path(file_okay=False, path_type=Path), show_default=True, help="Repository the jobs check out"),
    ]
    for opt in reversed(options):
        fn = opt(fn)
    return fn


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and step output)",
)
@click.pass_context
def cli(ctx, debug):
    """triggerci: event-triggered build/test pipeline runner."""
    console = Console(debug=debug)
    set_console(console)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@_selection_options
@click.option("--secret", "secrets", multiple=True, callback=_parse_secrets, metavar="NAME=VALUE", help="Secret for ${{ secrets.NAME }} (repeatable)")
@click.option("--workers", default=settings.WORKERS, type=int, help="Maximum jobs run in parallel (default: all)")
@click.option("--work-dir", default=settings.WORK_DIR, help="Where job workspaces are created (default: system temp)")
@click.option("--keep-workspace/--no-keep-workspace", default=settings.KEEP_WORKSPACE, help="Keep job workspaces after the run")
@click.option("--report", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Write a JSON report of job outcomes")
@click.pass_context
def run(ctx, workflow, event_kind, branch, sha, changed_file, git_diff, compare_ref, repo_root,
        secrets, workers, work_dir, keep_workspace, report):
    """Run the jobs a triggering event selects."""
    console = get_console()
    workflow_path, pipeline = _load(workflow)
    event = _build_event(event_kind, branch, sha, changed_file, git_diff, compare_ref, repo_root)

    try:
        all_secrets = {**settings.secrets_from_env(), **secrets}
        console.print_run_started(
            workflow=workflow_path.name,
            event=event,
            job_count=len(match_jobs(pipeline, event)),
        )

        results = run_pipeline(
            pipeline,
            event,
            repo_root=repo_root,
            secrets=all_secrets,
            max_workers=workers,
            work_dir=work_dir,
            keep_workspace=keep_workspace,
        )

        console.print_results(results)
        if report is not None:
            write_report(report, pipeline.name, event, results)
            console.print_info(f"Report written to {report}")

        if any(not o.ok for o in results.values()):
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except OSError as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@_selection_options
def plan(workflow, event_kind, branch, sha, changed_file, git_diff, compare_ref, repo_root):
    """Show which jobs an event would run, without running them."""
    console = get_console()
    workflow_path, pipeline = _load(workflow)
    event = _build_event(event_kind, branch, sha, changed_file, git_diff, compare_ref, repo_root)

    matched = {j.name for j in match_jobs(pipeline, event)}
    console.print_info(f"Plan for {event.kind} ({event.branch_name}) in {workflow_path.name}:")
    for j in pipeline.jobs:
        if j.name in matched:
            console.print_plan_job(j.name, f"{len(j.steps)} steps on {j.runs_on}")
        else:
            console.print_plan_job_skipped(j.name, "no trigger matches")


if __name__ == "__main__":
    cli()
