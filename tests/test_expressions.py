import pytest

from triggerci.expressions import ExpressionError, evaluate, evaluate_mapping

CONTEXTS = {
    "secrets": {"GITHUB_TOKEN": "s3cr3t"},
    "env": {"MODE": "release"},
    "github": {"ref_name": "main"},
}


def test_substitutes_known_values():
    assert evaluate("--token ${{ secrets.GITHUB_TOKEN }}", CONTEXTS) == "--token s3cr3t"
    assert evaluate("${{env.MODE}}-${{ github.ref_name }}", CONTEXTS) == "release-main"


def test_text_without_placeholders_is_unchanged():
    assert evaluate("--all-features", CONTEXTS) == "--all-features"


def test_missing_secret_is_empty():
    assert evaluate("[${{ secrets.NOPE }}]", CONTEXTS) == "[]"


def test_unknown_context_is_an_error():
    with pytest.raises(ExpressionError, match="Unknown context"):
        evaluate("${{ matrix.os }}", CONTEXTS)


def test_operators_are_not_supported():
    with pytest.raises(ExpressionError, match="Unsupported"):
        evaluate("${{ github.ref == 'main' }}", CONTEXTS)


def test_evaluate_mapping():
    out = evaluate_mapping({"token": "${{ secrets.GITHUB_TOKEN }}", "args": "-q"}, CONTEXTS)
    assert out == {"token": "s3cr3t", "args": "-q"}
