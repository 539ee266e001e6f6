import pytest

from triggerci import Event, Step, sh, uses
from triggerci.model import normalize_branch


def test_step_needs_exactly_one_of_run_or_uses():
    with pytest.raises(ValueError):
        Step(name="nothing")
    with pytest.raises(ValueError):
        Step(name="both", run="true", uses="actions/checkout@v2")


def test_with_only_on_action_steps():
    with pytest.raises(ValueError):
        Step(name="shell", run="true", with_={"a": "b"})


def test_display_names():
    assert Step(run="cargo test").display_name == "Run cargo test"
    assert Step(uses="actions/checkout@v2").display_name == "Run actions/checkout@v2"
    assert sh("Build", "./build.sh").display_name == "Build"


def test_uses_stringifies_inputs():
    step = uses("actions/checkout@v2", {"submodules": True, "fetch-depth": 0})
    assert step.is_action
    assert step.with_ == {"submodules": "true", "fetch-depth": "0"}


def test_branch_normalization():
    assert normalize_branch("refs/heads/main") == "main"
    assert normalize_branch("feature/x") == "feature/x"
    assert Event("push", "refs/heads/main").ref == "refs/heads/main"
    assert Event("push", "main").ref == "refs/heads/main"
