# actions/setup_go.py
from __future__ import annotations

import re
from typing import List, Mapping

from . import ActionCommand, ActionContext, ActionError, default_registry, require

_VERSION = re.compile(r"^[0-9]+(\.[0-9]+){0,2}([a-z]+[0-9]*)?$")


def _accepted_versions(version: str) -> List[str]:
    # Go names x.y.0 releases "gox.y", so accept both spellings.
    out = [version]
    if version.count(".") == 2 and version.endswith(".0"):
        out.append(version[:-2])
    return out


@default_registry.register("actions/setup-go")
def setup_go(inputs: Mapping[str, str], ctx: ActionContext) -> List[ActionCommand]:
    """
    Ensure the requested Go version is the one on PATH.

    Nothing is downloaded: a missing or different `go` fails the step.
    """
    version = require(inputs, "go-version", "actions/setup-go")
    if not _VERSION.match(version):
        raise ActionError(f"actions/setup-go: invalid go-version {version!r}")

    alternatives = "|".join(re.escape(v) for v in _accepted_versions(version))
    return [
        ActionCommand(
            f'go version | grep -Eq "(^| )go({alternatives})( |$)" '
            f'|| {{ echo "expected go{version}, found: $(go version 2>&1)" >&2; exit 1; }}'
        )
    ]
