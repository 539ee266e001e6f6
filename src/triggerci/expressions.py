# expressions.py
# Substitution of `${{ <context>.<name> }}` placeholders in step parameters
# and commands. Only plain property lookups are supported; there is no
# operator or function syntax.

from __future__ import annotations

import logging
import re
from typing import Dict, Mapping

log = logging.getLogger(__name__)

_EXPR = re.compile(r"\$\{\{\s*([^}]*?)\s*\}\}")
_LOOKUP = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_-]*)$")


class ExpressionError(ValueError):
    """Raised for placeholders that cannot be evaluated."""


def evaluate(text: str, contexts: Mapping[str, Mapping[str, str]]) -> str:
    """
    Replace every `${{ ctx.name }}` in `text` with its value from `contexts`.

    Unknown names inside a known context resolve to "" (a missing secret is
    not an error); unknown contexts and unsupported syntax raise
    ExpressionError.
    """

    def _sub(m: re.Match) -> str:
        expr = m.group(1)
        lookup = _LOOKUP.match(expr)
        if not lookup:
            raise ExpressionError(f"Unsupported expression: ${{{{ {expr} }}}}")
        ctx_name, key = lookup.groups()
        if ctx_name not in contexts:
            raise ExpressionError(
                f"Unknown context {ctx_name!r} in ${{{{ {expr} }}}}; "
                f"known: {sorted(contexts)}"
            )
        ctx = contexts[ctx_name]
        if key not in ctx:
            log.warning("%s.%s is not set; substituting an empty string", ctx_name, key)
            return ""
        return str(ctx[key])

    return _EXPR.sub(_sub, text)


def evaluate_mapping(values: Mapping[str, str], contexts: Mapping[str, Mapping[str, str]]) -> Dict[str, str]:
    return {k: evaluate(v, contexts) for k, v in values.items()}
