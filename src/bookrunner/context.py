# context.py
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import MalformedSection, StepFailure
from .include import INCLUDE_RUNNER_KEY, IncludeConfig, IncludeRunner
from .model import Book, StepBody
from .runbook import load_book
from .runners import Client, DBRunner, ExecRunner, GRPCRunner, HTTPRunner, Runner, new_runner
from .captures.shell import EXEC_RUNNER_KEY
from .ui.console import Console, get_console

# step keys that configure a step rather than name its runner
STEP_CONTROL_KEYS = ("desc", "if", "loop", "test", "dump", "bind")


class Store:
    """Variables and recorded step results of one execution context."""

    def __init__(self, vars: Optional[Dict[str, Any]] = None, keys: Optional[List[str]] = None):
        self.vars: Dict[str, Any] = dict(vars or {})
        self.steps: List[Any] = []
        self._keys = keys

    def record(self, result: Any) -> None:
        self.steps.append(result)

    def to_map(self) -> Dict[str, Any]:
        """Snapshot; keyed runbooks report results by step key."""
        steps: Any = copy.deepcopy(self.steps)
        if self._keys is not None:
            steps = dict(zip(self._keys, steps))
        return {"vars": copy.deepcopy(self.vars), "steps": steps}


class ExecutionContext:
    """
    Execution context: a Book bound to live runner instances and a Store.

    Steps run one at a time; a step's result is recorded before the next
    step starts.
    """

    def __init__(
        self,
        book: Book,
        *,
        http_runners: Optional[Dict[str, HTTPRunner]] = None,
        db_runners: Optional[Dict[str, DBRunner]] = None,
        vars: Optional[Dict[str, Any]] = None,
        included: bool = False,
        debug: Optional[bool] = None,
        reporter: Any = None,
        clients: Optional[Dict[str, Client]] = None,
        console: Optional[Console] = None,
    ):
        self.book = book
        self.root: Path = book.path.parent if book.path is not None else Path.cwd()
        self.included = included
        self.debug = book.debug if debug is None else debug
        self.reporter = reporter
        self.clients: Dict[str, Client] = dict(clients or {})
        self.console = console or (Console(debug=True) if self.debug else get_console())
        self.store = Store(
            vars={**book.vars, **(vars or {})},
            keys=book.step_keys if book.use_map else None,
        )

        # inherited instances are shared, not copied
        self.http_runners: Dict[str, HTTPRunner] = dict(http_runners or {})
        self.db_runners: Dict[str, DBRunner] = dict(db_runners or {})
        self.grpc_runners: Dict[str, GRPCRunner] = {}
        for name, cfg in book.runners.items():
            if name in self.http_runners or name in self.db_runners:
                continue
            try:
                r = new_runner(name, cfg, context=self, clients=self.clients)
            except ValueError as e:
                raise MalformedSection("runners", cfg, str(e)) from e
            if isinstance(r, HTTPRunner):
                self.http_runners[name] = r
            elif isinstance(r, GRPCRunner):
                self.grpc_runners[name] = r
            else:
                self.db_runners[name] = r
        self.exec_runner = ExecRunner(self.root)

    @classmethod
    def from_path(cls, path: str | Path, **kwargs: Any) -> "ExecutionContext":
        return cls(load_book(path), **kwargs)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> None:
        self.console.print_run_started(
            self.book.desc,
            str(self.book.path) if self.book.path else None,
            len(self.book.steps),
            included=self.included,
        )
        for i, (key, body) in enumerate(self.book.steps.items()):
            self._run_step(i, key, body)

    def record(self, result: Any) -> None:
        self.store.record(result)

    def runner(self, name: str) -> Optional[Runner]:
        return self.http_runners.get(name) or self.grpc_runners.get(name) or self.db_runners.get(name)

    def _run_step(self, idx: int, key: Optional[str], body: StepBody) -> None:
        runner_keys = [k for k in body if k not in STEP_CONTROL_KEYS]
        if len(runner_keys) != 1:
            raise StepFailure(idx, key, None, f"a step needs exactly one runner, got {runner_keys}")
        rk = runner_keys[0]
        self.console.print_step(idx, key, rk)
        try:
            self._dispatch(rk, body[rk])
        except Exception as e:
            self.console.print_failure(rk, str(e))
            raise StepFailure(idx, key, rk, str(e)) from e

    def _dispatch(self, runner_key: str, params: Any) -> None:
        if runner_key == INCLUDE_RUNNER_KEY:
            # the include runner records the nested result itself
            IncludeRunner(self).run(IncludeConfig.from_step(params))
            return
        if runner_key == EXEC_RUNNER_KEY:
            self.record(self.exec_runner.run(params))
            return
        r = self.runner(runner_key)
        if r is None:
            raise KeyError(f"unknown runner: {runner_key}")
        self.record(r.run(params))
