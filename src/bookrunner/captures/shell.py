# captures/shell.py
from __future__ import annotations

import json
import re
from typing import Any, Dict

EXEC_RUNNER_KEY = "exec"

_WS = re.compile(r"\s")


def join_commands(*tokens: str) -> str:
    """Join argv into one command line, re-quoting tokens that hold whitespace."""
    cmd = []
    for t in tokens:
        t = t.removesuffix("\n")
        cmd.append(json.dumps(t, ensure_ascii=False) if _WS.search(t) else t)
    return " ".join(cmd) + "\n"


def exec_step(*tokens: str) -> Dict[str, Any]:
    return {EXEC_RUNNER_KEY: {"command": join_commands(*tokens)}}
