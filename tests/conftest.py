"""
Pytest fixtures for triggerci tests.

Action steps are served by stub registries so tests never need rustup,
cargo or go; shell steps drop marker files to prove what actually ran.
"""

from pathlib import Path

import pytest

from triggerci import job, on_pull_request, on_push, pipeline, sh, uses
from triggerci.actions import ActionCommand, ActionRegistry
from triggerci.ui.console import Console, set_console

ROOT = Path(__file__).resolve().parent.parent

STUBBED_ACTIONS = (
    "actions/checkout",
    "actions-rs/toolchain",
    "actions-rs/clippy-check",
    "actions/setup-go",
)


@pytest.fixture(autouse=True)
def console():
    c = Console()
    set_console(c)
    yield c


def mark(marks: Path, label: str) -> str:
    return f'touch "{marks / label}"'


def stub_registry(marks: Path, fail=(), calls=None) -> ActionRegistry:
    """
    Registry whose actions touch `<job>-<action>` in `marks`, or exit 1 for
    the action names listed in `fail`. Inputs are appended to `calls`.
    """
    reg = ActionRegistry()

    def make(name):
        short = name.split("/")[-1]

        def adapter(inputs, ctx):
            if calls is not None:
                calls.append((ctx.job, name, dict(inputs)))
            if name in fail:
                return [ActionCommand("echo lint errors found; exit 1")]
            return [ActionCommand(mark(marks, f"{ctx.job}-{short}"))]

        return adapter

    for name in STUBBED_ACTIONS:
        reg.register(name)(make(name))
    return reg


def mirror_pipeline(marks: Path):
    """The bundled ci pipeline with every shell command replaced by a marker."""
    return pipeline(
        "ci",
        on_push("main"),
        on_pull_request("main"),
        jobs=[
            job(
                "tests",
                uses("actions/checkout@v2"),
                sh("Add clippy", mark(marks, "tests-2")),
                uses(
                    "actions-rs/clippy-check@v1",
                    {"token": "${{ secrets.GITHUB_TOKEN }}", "args": "--all-features"},
                    name="Clippy",
                ),
                sh("Install cargo-when", mark(marks, "tests-4")),
                sh("Build", mark(marks, "tests-5")),
                sh("Run tests", mark(marks, "tests-6")),
            ),
            job(
                "integration_tests",
                uses("actions/checkout@v2", {"submodules": "recursive"}),
                uses("actions-rs/toolchain@v1", {"toolchain": "stable"}),
                sh("Install cargo-when", mark(marks, "integration_tests-3")),
                sh("Build", mark(marks, "integration_tests-4")),
                uses("actions/setup-go@v2", {"go-version": "1.11.0"}),
                sh("Run integration tests", mark(marks, "integration_tests-6")),
            ),
        ],
    )


@pytest.fixture
def marks(tmp_path):
    d = tmp_path / "marks"
    d.mkdir()
    return d
