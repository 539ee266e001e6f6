# git.py
# Small, focused wrapper around the Git CLI.
# The CLI uses it to describe the local repository as a triggering event
# (current branch, HEAD sha, changed files) when the user does not say.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Raises:
        subprocess.CalledProcessError: git exited non-zero (e.g. not a repo)
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def head_sha(cwd: Optional[str | Path] = None) -> str:
    """Full SHA of HEAD."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def current_branch(cwd: Optional[str | Path] = None) -> str:
    """
    Name of the checked-out branch.

    Raises:
        ValueError: HEAD is detached
    """
    name = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    if name == "HEAD":
        raise ValueError("HEAD is detached; pass the branch explicitly")
    return name


def merge_base(with_ref: str = "origin/main", cwd: Optional[str | Path] = None) -> str:
    """Commit SHA of the common ancestor of HEAD and `with_ref`."""
    return _git(["merge-base", "HEAD", with_ref], cwd=cwd)


def changed_files(base: str, head: str = "HEAD", cwd: Optional[str | Path] = None) -> List[str]:
    """Paths (relative to the repo root) changed between two refs."""
    out = _git(["diff", "--name-only", f"{base}..{head}"], cwd=cwd)
    if not out:
        return []
    return out.splitlines()


def changed_since(compare_ref: str = "origin/main", cwd: Optional[str | Path] = None) -> List[str]:
    """
    Files changed on this branch relative to `compare_ref`, plus any
    uncommitted and untracked files in the working tree.

    Falls back to HEAD~1 when `compare_ref` is unavailable (no remote).
    """
    try:
        base = merge_base(compare_ref, cwd=cwd)
    except subprocess.CalledProcessError:
        base = "HEAD~1"

    files = set()
    try:
        files.update(changed_files(base, "HEAD", cwd=cwd))
    except subprocess.CalledProcessError:
        # first commit: everything tracked counts as changed
        tracked = _git(["ls-files"], cwd=cwd)
        files.update(tracked.splitlines() if tracked else [])

    for args in (["diff", "--name-only"], ["diff", "--name-only", "--cached"],
                 ["ls-files", "--others", "--exclude-standard"]):
        out = _git(args, cwd=cwd)
        if out:
            files.update(out.splitlines())

    return sorted(files)
