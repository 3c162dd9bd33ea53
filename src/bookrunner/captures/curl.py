# captures/curl.py
from __future__ import annotations

import base64
import shlex
from typing import Any, Dict, List, Sequence
from urllib.parse import quote, urlsplit

from ..allocator import set_runner
from ..errors import UnsupportedCapture
from .http import HTTPRequest, http_step

CURL_PREFIX = "curl"

_DATA_FLAGS = {"-d", "--data", "--data-raw", "--data-binary", "--data-ascii"}
_HEADER_FLAGS = {"-H", "--header"}
_METHOD_FLAGS = {"-X", "--request"}

# flags that consume the following token but do not shape the request
_IGNORED_VALUE_FLAGS = {
    "-o", "--output", "-w", "--write-out", "-m", "--max-time", "--connect-timeout",
    "--retry", "--cacert", "--cert", "--key", "-x", "--proxy", "--resolve",
    "-c", "--cookie-jar", "--limit-rate", "-T", "--upload-file",
}

_SHORT_VALUE_FLAGS = {
    f for f in (_DATA_FLAGS | _HEADER_FLAGS | _METHOD_FLAGS | _IGNORED_VALUE_FLAGS)
    if len(f) == 2
} | {"-u", "-A", "-e", "-b"}


def _urlencode_data(v: str) -> str:
    """`--data-urlencode` forms: `content`, `=content`, `name=content`, `@file`."""
    if v.startswith("@") or ("=" not in v and "@" in v):
        return v
    name, eq, content = v.partition("=")
    if not eq:
        return quote(v, safe="")
    if not name:
        return quote(content, safe="")
    return f"{name}={quote(content, safe='')}"


def split_capture(tokens: Sequence[str]) -> List[str]:
    """A capture is either argv already split, or one full command line."""
    if len(tokens) == 1:
        try:
            return shlex.split(tokens[0])
        except ValueError as e:
            raise UnsupportedCapture(tokens, f"cannot split command line: {e}") from e
    return list(tokens)


def parse_curl(tokens: Sequence[str]) -> HTTPRequest:
    args = split_capture(tokens)
    if not args or not args[0].startswith(CURL_PREFIX):
        raise UnsupportedCapture(tokens, "not a curl command")

    method = ""
    url = ""
    headers: Dict[str, str] = {}
    data: List[str] = []
    as_get = False
    head = False

    i = 1
    while i < len(args):
        a = args[i]
        flag, inline = a, None
        if a.startswith("--") and "=" in a:
            flag, inline = a.split("=", 1)
        elif not a.startswith("--") and len(a) > 2 and a[:2] in _SHORT_VALUE_FLAGS:
            # -XPOST, -HX:1, -dfoo=bar
            flag, inline = a[:2], a[2:]

        def value() -> str:
            nonlocal i
            if inline is not None:
                return inline
            i += 1
            if i >= len(args):
                raise UnsupportedCapture(tokens, f"missing value for {flag}")
            return args[i]

        if flag in _METHOD_FLAGS:
            method = value().upper()
        elif flag in _HEADER_FLAGS:
            k, _, v = value().partition(":")
            headers[k.strip()] = v.strip()
        elif flag == "--data-urlencode":
            data.append(_urlencode_data(value()))
        elif flag in _DATA_FLAGS:
            data.append(value())
        elif flag == "--json":
            data.append(value())
            headers.setdefault("Content-Type", "application/json")
            headers.setdefault("Accept", "application/json")
        elif flag in ("-u", "--user"):
            cred = base64.b64encode(value().encode()).decode()
            headers["Authorization"] = f"Basic {cred}"
        elif flag in ("-A", "--user-agent"):
            headers["User-Agent"] = value()
        elif flag in ("-e", "--referer"):
            headers["Referer"] = value()
        elif flag in ("-b", "--cookie"):
            headers["Cookie"] = value()
        elif flag == "--url":
            url = value()
        elif flag in ("-G", "--get"):
            as_get = True
        elif flag in ("-I", "--head"):
            head = True
        elif flag in _IGNORED_VALUE_FLAGS:
            value()
        elif a.startswith("-") and len(a) > 1:
            pass
        elif not url:
            url = a
        i += 1

    if not url:
        raise UnsupportedCapture(tokens, "no URL in curl command")
    if "://" not in url:
        url = f"http://{url}"
    if not urlsplit(url).netloc:
        raise UnsupportedCapture(tokens, f"invalid URL: {url}")

    body = "&".join(data) if data else None
    if as_get and body is not None:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}{body}"
        body = None
    if not method:
        if head:
            method = "HEAD"
        elif body is not None:
            method = "POST"
        else:
            method = "GET"
    if body is not None and not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = "application/x-www-form-urlencoded"

    return HTTPRequest(method=method, url=url, headers=headers, body=body)


def curl_step(runners: Dict[str, Any], tokens: Sequence[str]) -> Dict[str, Any]:
    """Synthesize a step from a captured curl invocation."""
    req = parse_curl(tokens)
    key = set_runner(runners, req.destination)
    return http_step(key, req)
