# triggerci_workflow.py
# Build, lint and test pipeline for the cgroups crate: unit tests with clippy
# on one side, integration tests against the Go runtime tools on the other.
from __future__ import annotations

from triggerci import job, on_pull_request, on_push, pipeline, sh, uses


def workflow():
    return pipeline(
        "ci",
        on_push("main"),
        on_pull_request("main"),
        jobs=[
            job(
                "tests",
                uses("actions/checkout@v2"),
                sh("Add clippy", "rustup component add clippy"),
                uses(
                    "actions-rs/clippy-check@v1",
                    {"token": "${{ secrets.GITHUB_TOKEN }}", "args": "--all-features"},
                    name="Clippy",
                ),
                sh("Install cargo-when", "cargo install cargo-when"),
                sh("Build", "./build.sh"),
                sh("Run tests", "cargo test"),
                runs_on="ubuntu-latest",
            ),
            job(
                "integration_tests",
                uses("actions/checkout@v2", {"submodules": "recursive"}),
                uses("actions-rs/toolchain@v1", {"toolchain": "stable"}),
                sh("Install cargo-when", "cargo install cargo-when"),
                sh("Build", "./build.sh"),
                uses("actions/setup-go@v2", {"go-version": "1.11.0"}),
                sh("Run integration tests", "./integration_test.sh"),
                runs_on="ubuntu-latest",
            ),
        ],
    )
