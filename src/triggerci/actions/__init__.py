# actions/__init__.py
# Named, pre-packaged step behaviours (`uses: owner/name@version`).
#
# An action adapter turns the step's resolved `with` inputs into one or more
# shell commands; the runner executes them in order inside the job workspace.
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional


class ActionError(ValueError):
    """Raised when an action is unknown or is given invalid inputs."""


@dataclass(frozen=True)
class ActionCommand:
    run: str
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionContext:
    """What an adapter may know about the job it runs in."""
    job: str
    workspace: Path
    repo_root: Path
    sha: str | None = None


Adapter = Callable[[Mapping[str, str], ActionContext], List[ActionCommand]]


def split_ref(uses: str) -> tuple[str, str | None]:
    """'actions/checkout@v2' -> ('actions/checkout', 'v2')"""
    name, sep, version = uses.partition("@")
    return name.strip(), (version.strip() or None) if sep else None


def require(inputs: Mapping[str, str], key: str, action: str) -> str:
    value = (inputs.get(key) or "").strip()
    if not value:
        raise ActionError(f"{action}: missing required input {key!r}")
    return value


def as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("true", "1", "yes")


class ActionRegistry:
    """Maps action names (without version) to adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Adapter] = {}

    def register(self, name: str) -> Callable[[Adapter], Adapter]:
        def deco(fn: Adapter) -> Adapter:
            self._adapters[name] = fn
            return fn
        return deco

    def __contains__(self, uses: str) -> bool:
        return split_ref(uses)[0] in self._adapters

    def names(self) -> List[str]:
        return sorted(self._adapters)

    def get(self, uses: str) -> Adapter:
        name, _version = split_ref(uses)
        try:
            return self._adapters[name]
        except KeyError:
            raise ActionError(
                f"Unknown action {uses!r}. Known actions: {self.names()}"
            ) from None

    def compile(self, uses: str, inputs: Mapping[str, str], ctx: ActionContext) -> List[ActionCommand]:
        return list(self.get(uses)(inputs, ctx))

    def copy(self) -> "ActionRegistry":
        other = ActionRegistry()
        other._adapters.update(self._adapters)
        return other


default_registry = ActionRegistry()


def get_registry(registry: Optional[ActionRegistry] = None) -> ActionRegistry:
    return registry if registry is not None else default_registry


# Built-in adapters register themselves on import.
from . import checkout, rust, setup_go  # noqa: E402,F401

__all__ = [
    "ActionCommand",
    "ActionContext",
    "ActionError",
    "ActionRegistry",
    "default_registry",
    "get_registry",
    "split_ref",
]
