# dsl.py
from __future__ import annotations

from typing import Any, Dict, Optional

from .model import KeyedSteps, OrderedSteps, StepBody
from .runbook import Runbook


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def step(runner: str, params: Any = None, **controls: Any) -> StepBody:
    """Create a step body: step("db", {"query": "SELECT 1"}, desc="ping")."""
    body: StepBody = dict(controls)
    body[runner] = params
    return body


# ---------------------------------------------------------------------
# Functional helper
# ---------------------------------------------------------------------

def runbook(
    desc: str,
    *steps: StepBody,
    runners: Optional[Dict[str, Any]] = None,
    vars: Optional[Dict[str, Any]] = None,
    debug: bool = False,
    interval: str = "",
    if_cond: str = "",
    skip_test: bool = False,
    loop: Any = None,
    concurrency: str = "",
    force: bool = False,
) -> Runbook:
    return Runbook(
        desc=desc,
        runners=dict(runners or {}),
        vars=dict(vars or {}),
        steps=OrderedSteps(list(steps)),
        debug=debug,
        interval=interval,
        if_cond=if_cond,
        skip_test=skip_test,
        loop=loop,
        concurrency=concurrency,
        force=force,
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class RunbookBuilder:
    def __init__(self, desc: str = ""):
        self._rb = Runbook.new(desc)

    def keyed(self, enabled: bool = True):
        """Address steps by key. Must be chosen before the first step."""
        if len(self._rb.steps):
            raise ValueError("addressing mode must be set before adding steps")
        self._rb.steps = KeyedSteps() if enabled else OrderedSteps()
        return self

    def with_runner(self, name: str, dsn: Any):
        self._rb.runners[name] = dsn
        return self

    def with_vars(self, **vars: Any):
        self._rb.vars.update(vars)
        return self

    def define_step(self, body: StepBody, key: str | None = None):
        steps = self._rb.steps
        if isinstance(steps, KeyedSteps):
            if key is None:
                raise ValueError("keyed runbooks need a step key")
            steps.add(key, body)
        else:
            if key is not None:
                raise ValueError(f"step key {key!r} given for an ordered runbook")
            steps.append(body)
        return self

    def capture(self, *tokens: str):
        """Append a step synthesized from a captured command."""
        self._rb.append_step(*tokens)
        return self

    def debug(self, enabled: bool = True):
        self._rb.debug = enabled
        return self

    def force(self, enabled: bool = True):
        self._rb.force = enabled
        return self

    def skip_test(self, enabled: bool = True):
        self._rb.skip_test = enabled
        return self

    def interval(self, value: str):
        self._rb.interval = value
        return self

    def when(self, expr: str):
        self._rb.if_cond = expr
        return self

    def loop(self, value: Any):
        self._rb.loop = value
        return self

    def concurrency(self, expr: str):
        self._rb.concurrency = expr
        return self

    def build(self) -> Runbook:
        return self._rb


def build(desc: str = "") -> RunbookBuilder:
    """Convenience: build("smoke").capture("curl", "https://example.com").build()"""
    return RunbookBuilder(desc)
