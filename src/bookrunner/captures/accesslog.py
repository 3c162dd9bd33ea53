# captures/accesslog.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..allocator import set_runner
from .http import HTTPRequest, http_step

DUMMY_DSN = "https://dummy.example.com"

# common / combined, the trailing referer + user agent pair is optional
_APACHE_RE = re.compile(
    r'^(?P<host>\S+) (?P<ident>\S+) (?P<user>\S+) \[(?P<time>[^\]]+)\] '
    r'"(?P<method>[A-Z]+) (?P<uri>\S+)(?: (?P<protocol>[^"]+))?" '
    r'(?P<status>\d{3}|-) (?P<size>\d+|-)'
    r'(?: "(?P<referer>[^"]*)" "(?P<ua>[^"]*)")?'
)


@dataclass
class AccessLog:
    method: str
    uri: str
    user_agent: str = ""
    status: Optional[int] = None


def _parse_apache(line: str) -> Optional[AccessLog]:
    m = _APACHE_RE.match(line)
    if m is None:
        return None
    status = m.group("status")
    return AccessLog(
        method=m.group("method"),
        uri=m.group("uri"),
        user_agent=m.group("ua") or "",
        status=int(status) if status.isdigit() else None,
    )


def _parse_ltsv(line: str) -> Optional[AccessLog]:
    fields: Dict[str, str] = {}
    for part in line.rstrip("\n").split("\t"):
        label, sep, value = part.partition(":")
        if not sep or not label:
            return None
        fields[label] = value
    method, uri = fields.get("method", ""), fields.get("uri", "")
    if (not method or not uri) and "req" in fields:
        req = fields["req"].split(" ")
        if len(req) >= 2:
            method, uri = req[0], req[1]
    if not method or not uri:
        return None
    status = fields.get("status", "")
    return AccessLog(
        method=method,
        uri=uri,
        user_agent=fields.get("ua", ""),
        status=int(status) if status.isdigit() else None,
    )


_PARSERS: List[Tuple[str, Callable[[str], Optional[AccessLog]]]] = [
    ("ltsv", _parse_ltsv),
    ("apache", _parse_apache),
]


def guess_parser(line: str) -> Tuple[str, AccessLog]:
    """Best-effort detection of the log format; raises ValueError when none fits."""
    for name, parse in _PARSERS:
        log = parse(line)
        if log is not None:
            return name, log
    raise ValueError(f"unknown access log format: {line!r}")


def access_log_step(runners: Dict[str, Any], tokens: Sequence[str]) -> Dict[str, Any]:
    """Replay a single access log line as an HTTP step against a dummy host."""
    _fmt, log = guess_parser(" ".join(tokens))
    key = set_runner(runners, DUMMY_DSN)
    headers = {"User-Agent": log.user_agent} if log.user_agent else {}
    req = HTTPRequest(method=log.method, url=f"{DUMMY_DSN}{log.uri}", headers=headers)
    return http_step(key, req)
