# captures/http.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlsplit

DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class HTTPRequest:
    """Method/URL/headers/body recovered from a captured command."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @property
    def destination(self) -> str:
        """scheme + authority: the part a runner connects to."""
        u = urlsplit(self.url)
        return f"{u.scheme}://{u.netloc}"

    @property
    def path(self) -> str:
        u = urlsplit(self.url)
        p = u.path or "/"
        if u.query:
            p = f"{p}?{u.query}"
        return p

    def header(self, name: str) -> Optional[str]:
        for k, v in self.headers.items():
            if k.lower() == name.lower():
                return v
        return None


def _decode_body(content_type: str, raw: str) -> Any:
    media = content_type.split(";", 1)[0].strip().lower()
    if media == "application/json" or media.endswith("+json"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    if media == DEFAULT_CONTENT_TYPE:
        form: Dict[str, Any] = {}
        for k, v in parse_qsl(raw, keep_blank_values=True):
            if k in form:
                prev = form[k]
                form[k] = prev + [v] if isinstance(prev, list) else [prev, v]
            else:
                form[k] = v
        return form
    return raw


def http_step(key: str, req: HTTPRequest) -> Dict[str, Any]:
    """
    Build the HTTP shorthand step:

        {key: {"/path?q": {"post": {"headers": {...}, "body": {ctype: value}}}}}
    """
    op: Dict[str, Any] = {}
    headers = {k: v for k, v in req.headers.items() if k.lower() != "content-type"}
    if headers:
        op["headers"] = headers
    if req.body is None:
        op["body"] = None
    else:
        ctype = req.header("Content-Type") or DEFAULT_CONTENT_TYPE
        op["body"] = {ctype: _decode_body(ctype, req.body)}
    return {key: {req.path: {req.method.lower(): op}}}
