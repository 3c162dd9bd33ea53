# synthesize.py
from __future__ import annotations

from typing import Any, Dict

from .captures.accesslog import access_log_step
from .captures.curl import CURL_PREFIX, curl_step
from .captures.grpcurl import GRPCURL_PREFIX, grpcurl_step
from .captures.shell import exec_step
from .errors import UnsupportedCapture
from .model import StepBody
from .ui.console import get_console


def synthesize_step(runners: Dict[str, Any], *tokens: str) -> StepBody:
    """
    Build a step from a captured external command, classified by its first token:
      - curl ...     -> HTTP step (runner key allocated for scheme + host)
      - grpcurl ...  -> gRPC step (runner key allocated for grpc://addr)
      - one token    -> access log replay when the line parses as one
      - otherwise    -> {exec: {command: ...}}

    `runners` gains at most one entry, never a duplicate destination.
    """
    if not tokens:
        raise UnsupportedCapture(tokens, "no argument")
    first = tokens[0]
    if first.startswith(CURL_PREFIX):
        return curl_step(runners, tokens)
    if first.startswith(GRPCURL_PREFIX):
        return grpcurl_step(runners, tokens)
    if len(tokens) == 1:
        try:
            return access_log_step(runners, tokens)
        except ValueError as e:
            get_console().print_debug(f"capturing as shell command: {e}")
    return exec_step(*tokens)
