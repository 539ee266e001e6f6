# actions/checkout.py
from __future__ import annotations

import shlex
from typing import List, Mapping

from . import ActionCommand, ActionContext, ActionError, as_bool, default_registry


@default_registry.register("actions/checkout")
def checkout(inputs: Mapping[str, str], ctx: ActionContext) -> List[ActionCommand]:
    """
    Clone the source repository into the (empty) job workspace.

    Inputs:
      repository: clone source, path or URL (defaults to the runner's repo root)
      ref:        revision to check out (defaults to the event sha, if known)
      submodules: "false" (default), "true", or "recursive"
    """
    source = (inputs.get("repository") or "").strip() or str(ctx.repo_root)
    ref = (inputs.get("ref") or "").strip() or ctx.sha

    cmds = [ActionCommand(f"git clone --quiet {shlex.quote(source)} .")]
    if ref:
        cmds.append(ActionCommand(f"git checkout --quiet {shlex.quote(ref)}"))

    submodules = (inputs.get("submodules") or "false").strip().lower()
    if submodules == "recursive":
        cmds.append(ActionCommand("git submodule update --init --recursive"))
    elif as_bool(submodules):
        cmds.append(ActionCommand("git submodule update --init"))
    elif submodules not in ("false", "0", "no", ""):
        raise ActionError(
            f"actions/checkout: invalid submodules value {submodules!r} "
            "(expected true, false or recursive)"
        )

    return cmds
