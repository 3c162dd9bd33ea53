# captures/grpcurl.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..allocator import set_runner
from ..errors import UnsupportedCapture
from .curl import split_capture

GRPCURL_PREFIX = "grpcurl"
SUB_COMMANDS = ("list", "describe")

_HEADER_FLAGS = {"H", "rpc-header", "reflect-header"}
_VALUE_FLAGS = {
    "d", "import-path", "proto", "protoset", "protoset-out", "format",
    "max-time", "connect-timeout", "keepalive-time", "max-msg-sz",
    "cacert", "cert", "key", "authority", "servername", "user-agent",
    "alts-handshaker-service", "alts-target-service-account", "msg-template-out",
    "proto-out-dir", "service-config",
}


@dataclass
class GRPCInvocation:
    addr: str = ""
    method: str = ""
    sub_cmd: str = ""
    headers: Dict[str, List[str]] = field(default_factory=dict)
    messages: List[Any] = field(default_factory=list)


def _decode_messages(data: str, tokens: Sequence[str]) -> List[Any]:
    """`-d` may hold several JSON messages back to back (client streaming)."""
    dec = json.JSONDecoder()
    out: List[Any] = []
    pos = 0
    while True:
        while pos < len(data) and data[pos].isspace():
            pos += 1
        if pos >= len(data):
            return out
        try:
            msg, pos = dec.raw_decode(data, pos)
        except json.JSONDecodeError as e:
            raise UnsupportedCapture(tokens, f"invalid message data: {e}") from e
        out.append(msg)


def _normalize_method(symbol: str) -> str:
    if "/" in symbol or "." not in symbol:
        return symbol
    svc, _, m = symbol.rpartition(".")
    return f"{svc}/{m}"


def parse_grpcurl(tokens: Sequence[str]) -> GRPCInvocation:
    args = split_capture(tokens)
    if not args or not args[0].startswith(GRPCURL_PREFIX):
        raise UnsupportedCapture(tokens, "not a grpcurl command")

    inv = GRPCInvocation()
    positional: List[str] = []
    data: Optional[str] = None

    i = 1
    while i < len(args):
        a = args[i]
        if a.startswith("-") and len(a) > 1:
            name, eq, inline = a.lstrip("-").partition("=")
            if name in _HEADER_FLAGS or name in _VALUE_FLAGS:
                if eq:
                    v = inline
                else:
                    i += 1
                    if i >= len(args):
                        raise UnsupportedCapture(tokens, f"missing value for -{name}")
                    v = args[i]
                if name in _HEADER_FLAGS:
                    k, _, hv = v.partition(":")
                    inv.headers.setdefault(k.strip(), []).append(hv.strip())
                elif name == "d":
                    data = v
            # boolean flags (-plaintext, -insecure, -v, ...) carry no value
        else:
            positional.append(a)
        i += 1

    for p in positional:
        if p in SUB_COMMANDS:
            inv.sub_cmd = p
    rest = [p for p in positional if p not in SUB_COMMANDS]
    if rest:
        inv.addr = rest[0]
    if len(rest) > 1:
        inv.method = _normalize_method(rest[1])
    if data is not None and data != "@":
        inv.messages = _decode_messages(data, tokens)
    return inv


def grpcurl_step(runners: Dict[str, Any], tokens: Sequence[str]) -> Dict[str, Any]:
    """
    Synthesize a step from a captured grpcurl invocation:

        {key: {method: {"headers": {...}, "message": {...}}}}
    """
    inv = parse_grpcurl(tokens)
    if not inv.addr or not inv.method or inv.sub_cmd:
        raise UnsupportedCapture(tokens, f"unsupported grpcurl command: {list(tokens)}")
    key = set_runner(runners, f"grpc://{inv.addr}")

    op: Dict[str, Any] = {}
    headers = {k: v[0] for k, v in inv.headers.items()}
    if headers:
        op["headers"] = headers
    if len(inv.messages) == 1:
        op["message"] = inv.messages[0]
    elif len(inv.messages) > 1:
        op["messages"] = inv.messages

    return {key: {inv.method: op or None}}
