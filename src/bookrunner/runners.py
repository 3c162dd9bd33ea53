# runners.py
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from .allocator import DB_RUNNER_KEY_PREFIX, GRPC_RUNNER_KEY_PREFIX, HTTP_RUNNER_KEY_PREFIX, runner_family

if TYPE_CHECKING:
    from .context import ExecutionContext

# client(runner, params) -> result; performs the actual protocol I/O
Client = Callable[["Runner", Any], Any]


class RunnerNotConfigured(Exception):
    """A protocol runner was asked to run without a client attached."""


class Runner:
    """
    Named handle to a protocol executor.

    The handle is what gets shared between a parent and an included run;
    `context` names the execution context that currently owns it.
    """
    kind = "runner"

    def __init__(self, name: str, dsn: str, *, context: Optional["ExecutionContext"] = None, client: Optional[Client] = None):
        self.name = name
        self.dsn = dsn
        self.context = context
        self.client = client

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, dsn={self.dsn!r})"

    def run(self, params: Any) -> Any:
        if self.client is None:
            raise RunnerNotConfigured(f"{self.kind} runner '{self.name}' has no client for {self.dsn}")
        return self.client(self, params)


class HTTPRunner(Runner):
    kind = "http"


class GRPCRunner(Runner):
    kind = "grpc"


class DBRunner(Runner):
    kind = "db"


_BY_FAMILY = {
    HTTP_RUNNER_KEY_PREFIX: HTTPRunner,
    GRPC_RUNNER_KEY_PREFIX: GRPCRunner,
    DB_RUNNER_KEY_PREFIX: DBRunner,
}


def runner_dsn(cfg: Any) -> Optional[str]:
    """Destination of a `runners` entry: a DSN string or a detailed config."""
    if isinstance(cfg, str):
        return cfg
    if isinstance(cfg, dict):
        for field in ("endpoint", "addr", "dsn"):
            v = cfg.get(field)
            if isinstance(v, str):
                return f"grpc://{v}" if field == "addr" and "://" not in v else v
    return None


def new_runner(name: str, cfg: Any, *, context: Optional["ExecutionContext"] = None, clients: Optional[Dict[str, Client]] = None) -> Runner:
    dsn = runner_dsn(cfg)
    if dsn is None:
        raise ValueError(f"invalid runner '{name}': {cfg!r}")
    cls = _BY_FAMILY[runner_family(dsn)]
    client = (clients or {}).get(cls.kind)
    return cls(name, dsn, context=context, client=client)


# ----------------------------------------------------------------------
# exec
# ----------------------------------------------------------------------

class ExecRunner:
    """Runs `{command, stdin?}` through the shell, from the runbook's directory."""

    def __init__(self, root: Path):
        self.root = root

    def run(self, params: Any) -> Dict[str, Any]:
        if isinstance(params, str):
            params = {"command": params}
        if not isinstance(params, dict) or not isinstance(params.get("command"), str):
            raise ValueError(f"invalid exec step: {params!r}")

        env = os.environ.copy()
        proc = subprocess.run(
            params["command"],
            shell=True,
            cwd=str(self.root),
            env=env,
            input=params.get("stdin"),
            text=True,
            capture_output=True,
        )
        return {
            "stdout": proc.stdout,
            "stderr": proc.stderr,
            "exit_code": proc.returncode,
        }
