# expand.py
from __future__ import annotations

import json
import os
import re
from typing import Callable, List, Mapping, Optional

import yaml

# $$ | ${NAME} | ${NAME:-default} | ${NAME-default} | $NAME
_ENV_RE = re.compile(
    r"\$\$"
    r"|\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:?-)(?P<default>[^}]*))?\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)"
)


def expand_env(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Interpolate environment variables into raw runbook text.

    Names that are unset and have no default are left as written so that
    runtime expressions using `$` survive untouched.
    """
    env = os.environ if environ is None else environ
    return _ENV_RE.sub(_replacer(env), text)


def _replacer(env: Mapping[str, str]) -> Callable[[re.Match], str]:
    def repl(m: re.Match) -> str:
        whole = m.group(0)
        if whole == "$$":
            return "$"
        name = m.group("braced") or m.group("bare")
        value = env.get(name)
        op = m.group("op")
        if op == ":-" and not value:
            return m.group("default")
        if op == "-" and value is None:
            return m.group("default")
        if value is None:
            return whole
        return value

    return repl


# ----------------------------------------------------------------------
# YAML-aware interpolation
# ----------------------------------------------------------------------

_FLOW_START = (yaml.FlowMappingStartToken, yaml.FlowSequenceStartToken)
_FLOW_END = (yaml.FlowMappingEndToken, yaml.FlowSequenceEndToken)
_INDICATORS = set(",[]{}#&*!|>'\"%@`")


def _plain_ok(value: str, in_flow: bool) -> bool:
    """Whether `value` reads back as the same plain scalar."""
    if not value or value != value.strip() or "\n" in value:
        return False
    if value[0] in _INDICATORS:
        return False
    if value[0] in "-?:" and (len(value) == 1 or value[1] == " "):
        return False
    if ": " in value or " #" in value or value.endswith(":"):
        return False
    if in_flow and any(c in value for c in ",[]{}"):
        return False
    return True


def _quote(value: str) -> str:
    # JSON string escapes are a subset of YAML double-quoted escapes
    return json.dumps(value, ensure_ascii=False)


def _indented(env: Mapping[str, str], text: str, offset: int, raw: str) -> str:
    """Substitute inside a block scalar, keeping every value line at its line's indent."""
    repl = _replacer(env)

    def sub(m: re.Match) -> str:
        line_start = text.rfind("\n", 0, offset + m.start()) + 1
        indent = re.match(r"[ \t]*", text[line_start:]).group(0)
        return repl(m).replace("\n", "\n" + indent)

    return _ENV_RE.sub(sub, raw)


def expand_yaml(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Interpolate environment variables inside the scalars of a YAML document.

    Substituted values never change the document structure: a scalar whose
    new value would not read back as written is re-emitted double-quoted.
    Comments are left alone. Text that does not scan as YAML is returned
    unchanged so the parser can report it.
    """
    env = os.environ if environ is None else environ
    try:
        tokens = list(yaml.scan(text, Loader=yaml.SafeLoader))
    except yaml.YAMLError:
        return text

    out: List[str] = []
    pos = 0
    depth = 0
    for tok in tokens:
        if isinstance(tok, _FLOW_START):
            depth += 1
        elif isinstance(tok, _FLOW_END):
            depth -= 1
        if not isinstance(tok, yaml.ScalarToken) or "$" not in tok.value:
            continue
        start, end = tok.start_mark.index, tok.end_mark.index
        if tok.style in ("|", ">"):
            new = _indented(env, text, start, text[start:end])
        else:
            value = _ENV_RE.sub(_replacer(env), tok.value)
            if value == tok.value:
                continue
            new = value if tok.plain and _plain_ok(value, depth > 0) else _quote(value)
        out.append(text[pos:start])
        out.append(new)
        pos = end
    out.append(text[pos:])
    return "".join(out)
