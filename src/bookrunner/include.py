# include.py
from __future__ import annotations

import copy
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .context import ExecutionContext

INCLUDE_RUNNER_KEY = "include"
PARENT_VAR_KEY = "parent"


class IncludeState(str, Enum):
    IDLE = "idle"
    CONSTRUCTING = "constructing"
    RUNNING = "running"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


class IncludeConfig(BaseModel):
    """`include: path.yml` or `include: {path: ..., vars: {...}}`."""
    model_config = ConfigDict(extra="ignore")

    path: str
    vars: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_step(cls, v: Any) -> "IncludeConfig":
        if isinstance(v, str):
            return cls(path=v)
        if isinstance(v, dict):
            return cls.model_validate(v)
        raise ValueError(f"invalid include config: {v!r}")


class IncludeRunner:
    """Runs a nested runbook on behalf of `context` and folds the result back."""

    def __init__(self, context: "ExecutionContext"):
        self.context = context
        self.state = IncludeState.IDLE

    def run(self, cfg: IncludeConfig) -> "ExecutionContext":
        parent = self.context
        self.state = IncludeState.CONSTRUCTING
        try:
            child = new_nested_context(parent, parent.root / cfg.path)
        except Exception:
            self.state = IncludeState.FAILED
            raise
        for k, v in cfg.vars.items():
            child.store.vars[k] = v

        self.state = IncludeState.RUNNING
        try:
            child.run()
        except Exception:
            # the parent store is untouched until the child has succeeded
            self.state = IncludeState.FAILED
            raise

        self.state = IncludeState.MERGING
        parent.record(child.store.to_map())
        rehomed = 0
        for attr in ("http_runners", "db_runners"):
            owned = getattr(parent, attr)
            for k, r in getattr(child, attr).items():
                r.context = parent
                owned.setdefault(k, r)
                rehomed += 1
        parent.console.print_include_finished(cfg.path, rehomed)
        self.state = IncludeState.DONE
        return child


def new_nested_context(parent: "ExecutionContext", path: str | Path) -> "ExecutionContext":
    """
    Build the context for an included runbook: shares the parent's HTTP and
    DB runner instances and reporter, starts from a copy of its variables
    plus `parent` (the step results so far), and inherits its debug flag.
    """
    from .context import ExecutionContext

    vars_ = copy.deepcopy(parent.store.vars)
    vars_[PARENT_VAR_KEY] = copy.deepcopy(parent.store.steps)
    return ExecutionContext.from_path(
        path,
        http_runners=parent.http_runners,
        db_runners=parent.db_runners,
        vars=vars_,
        included=True,
        debug=parent.debug,
        reporter=parent.reporter,
        clients=parent.clients,
        console=parent.console,
    )
