import pytest

from triggerci import Event, Trigger, job, match_jobs, on_pull_request, on_push, pipeline, sh


def _pipeline(*triggers):
    return pipeline(
        "ci",
        *triggers,
        jobs=[
            job("tests", sh("Run tests", "true")),
            job("integration_tests", sh("Run integration tests", "true")),
        ],
    )


@pytest.fixture
def ci():
    return _pipeline(on_push("main"), on_pull_request("main"))


def test_push_to_main_schedules_both_jobs(ci):
    jobs = match_jobs(ci, Event("push", "main"))
    assert [j.name for j in jobs] == ["tests", "integration_tests"]


def test_push_to_other_branch_schedules_nothing(ci):
    assert match_jobs(ci, Event("push", "dev")) == []


def test_pull_request_targeting_main_schedules_both_jobs(ci):
    jobs = ci.match(Event("pull_request", "main"))
    assert {j.name for j in jobs} == {"tests", "integration_tests"}


def test_pull_request_targeting_other_branch_schedules_nothing(ci):
    assert ci.match(Event("pull_request", "feature/x")) == []


def test_event_kind_must_match_trigger_kind():
    only_push = _pipeline(on_push("main"))
    assert only_push.match(Event("pull_request", "main")) == []


def test_full_ref_is_normalized(ci):
    assert len(ci.match(Event("push", "refs/heads/main"))) == 2


def test_branch_globs():
    p = _pipeline(on_push("release/*", "main"))
    assert len(p.match(Event("push", "release/1.2"))) == 2
    assert p.match(Event("push", "releases")) == []


def test_no_branch_filter_means_any_branch():
    p = _pipeline(on_push())
    assert len(p.match(Event("push", "whatever"))) == 2


def test_paths_filter_uses_changed_files():
    p = _pipeline(on_push("main", paths=["src/**", "Cargo.toml"]))
    assert len(p.match(Event("push", "main", changed_files=("src/cgroups/v1/cpu.rs",)))) == 2
    assert p.match(Event("push", "main", changed_files=("README.md",))) == []


def test_paths_filter_ignored_when_changes_unknown():
    p = _pipeline(on_push("main", paths=["src/**"]))
    assert len(p.match(Event("push", "main", changed_files=None))) == 2


def test_event_requires_branch_and_known_kind():
    with pytest.raises(ValueError):
        Event("push", "")
    with pytest.raises(ValueError):
        Event("schedule", "main")
    with pytest.raises(ValueError):
        Trigger("release")
