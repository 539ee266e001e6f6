from triggerci.settings import secrets_from_env


def test_secrets_from_env():
    environ = {
        "TRIGGERCI_SECRET_GITHUB_TOKEN": "abc",
        "TRIGGERCI_SECRET_": "ignored",
        "GITHUB_TOKEN": "not-a-secret",
    }
    assert secrets_from_env(environ) == {"GITHUB_TOKEN": "abc"}
