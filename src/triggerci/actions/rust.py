# actions/rust.py
# Rust toolchain actions: toolchain installation and the clippy lint check.
from __future__ import annotations

import shlex
from typing import List, Mapping

from . import ActionCommand, ActionContext, as_bool, default_registry, require


@default_registry.register("actions-rs/toolchain")
def toolchain(inputs: Mapping[str, str], ctx: ActionContext) -> List[ActionCommand]:
    name = require(inputs, "toolchain", "actions-rs/toolchain")
    quoted = shlex.quote(name)

    cmds = [ActionCommand(f"rustup toolchain install {quoted} --profile minimal")]
    if as_bool(inputs.get("default")) or as_bool(inputs.get("override")):
        cmds.append(ActionCommand(f"rustup default {quoted}"))

    components = [c.strip() for c in (inputs.get("components") or "").split(",") if c.strip()]
    if components:
        comps = " ".join(shlex.quote(c) for c in components)
        cmds.append(ActionCommand(f"rustup component add --toolchain {quoted} {comps}"))
    return cmds


@default_registry.register("actions-rs/clippy-check")
def clippy_check(inputs: Mapping[str, str], ctx: ActionContext) -> List[ActionCommand]:
    """Run `cargo clippy`; the token is only exported for annotation tools."""
    args = (inputs.get("args") or "").strip()
    cmd = "cargo clippy"
    if args:
        cmd = f"{cmd} {args}"

    env = {}
    token = inputs.get("token")
    if token:
        env["GITHUB_TOKEN"] = token
    return [ActionCommand(cmd, env=env)]
