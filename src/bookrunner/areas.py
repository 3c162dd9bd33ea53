# areas.py
"""
Source positions of runbook sections and steps.

Everything here backs optional diagnostics (showing the YAML of a failed
step), so `detect_runbook_areas` never raises: an unparsable document or an
unexpected top-level shape yields an empty `Areas`.
"""
from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import IndexOutOfRange, LineOutOfRange
from .expand import expand_yaml
from .model import Area, Areas
from .ui.console import line_number


def _last_line(text: str, node: yaml.Node) -> int:
    """1-based line of the last character that belongs to a leaf node."""
    start = node.start_mark.line + 1
    if isinstance(node, yaml.ScalarNode):
        # block scalars (`|`, `>`) span several lines; their end mark sits on
        # the next token, so count the newlines of the literal source instead
        raw = text[node.start_mark.index:node.end_mark.index].rstrip()
        return start + raw.count("\n")
    # empty or flow collection: the closing bracket is the last token
    return node.end_mark.line + 1


def _span(text: str, roots: Sequence[yaml.Node], aliases: Sequence[yaml.Token], lower: int, upper: int) -> Optional[Area]:
    """
    Smallest line range covering every node reachable from `roots` that lies
    in the source range [lower, upper), plus any alias written there.
    """
    first: Optional[Tuple[int, int]] = None
    last = 0
    for tok in aliases:
        if lower <= tok.start_mark.index < upper:
            pos = (tok.start_mark.line, tok.start_mark.column)
            if first is None or pos < first:
                first = pos
            last = max(last, tok.start_mark.line + 1)
    seen: set[int] = set()
    stack: List[yaml.Node] = list(roots)
    while stack:
        node = stack.pop()
        if id(node) in seen or not lower <= node.start_mark.index < upper:
            # aliases resolve to the anchored node, which lives elsewhere
            continue
        seen.add(id(node))
        if isinstance(node, yaml.ScalarNode) and node.value == "" and not node.style:
            # an omitted value is marked at the following token
            continue
        pos = (node.start_mark.line, node.start_mark.column)
        if first is None or pos < first:
            first = pos
        children: List[yaml.Node] = []
        if isinstance(node, yaml.MappingNode):
            for k, v in node.value:
                children.extend((k, v))
        elif isinstance(node, yaml.SequenceNode):
            children.extend(node.value)
        if not children or (isinstance(node, yaml.CollectionNode) and node.flow_style):
            last = max(last, _last_line(text, node))
        stack.extend(children)
    if first is None:
        return None
    return Area(start_line=first[0] + 1, end_line=max(last, first[0] + 1))


def _entry_mark(entries: Sequence[yaml.Token], seq: yaml.Node, item: yaml.Node) -> Optional[yaml.Mark]:
    """Mark of the `-` that introduces `item`, if it has one."""
    found = None
    for tok in entries:
        idx = tok.start_mark.index
        if idx >= item.start_mark.index:
            break
        if idx >= seq.start_mark.index:
            found = tok.start_mark
    return found


def _bounds(starts: List[int], end: int) -> List[Tuple[int, int]]:
    """Source ranges of siblings: each runs up to the next one's start."""
    return list(zip(starts, starts[1:] + [end]))


def detect_runbook_areas(text: str) -> Areas:
    a = Areas()
    try:
        tokens = list(yaml.scan(text, Loader=yaml.SafeLoader))
        docs = list(yaml.compose_all(text, Loader=yaml.SafeLoader))
    except yaml.YAMLError:
        return a
    if not docs or not isinstance(docs[0], yaml.MappingNode):
        return a
    entries = [t for t in tokens if isinstance(t, yaml.BlockEntryToken)]
    aliases = [t for t in tokens if isinstance(t, yaml.AliasToken)]

    root = docs[0]
    if not all(isinstance(k, yaml.ScalarNode) for k, _v in root.value):
        return a
    sections = _bounds([k.start_mark.index for k, _v in root.value], root.end_mark.index)
    for (key, value), (lower, upper) in zip(root.value, sections):
        if key.value == "desc":
            a.desc = _span(text, (key, value), aliases, lower, upper)
        elif key.value == "vars":
            a.vars = _span(text, (key, value), aliases, lower, upper)
        elif key.value == "runners":
            a.runners = _span(text, (key, value), aliases, lower, upper)
        elif key.value == "steps":
            if isinstance(value, yaml.MappingNode):
                steps = _bounds([sk.start_mark.index for sk, _sv in value.value], upper)
                for (sk, sv), (lo, hi) in zip(value.value, steps):
                    a.steps.append(_span(text, (sk, sv), aliases, lo, hi))
            elif isinstance(value, yaml.SequenceNode):
                dashes = [_entry_mark(entries, value, item) for item in value.value]
                starts = [
                    d.index if d is not None else item.start_mark.index
                    for d, item in zip(dashes, value.value)
                ]
                for item, dash, (lo, hi) in zip(value.value, dashes, _bounds(starts, upper)):
                    area = _span(text, (item,), aliases, lo, hi)
                    if dash is not None:
                        line = dash.line + 1
                        if area is None:
                            area = Area(start_line=line, end_line=line)
                        elif line < area.start_line:
                            area = Area(start_line=line, end_line=area.end_line)
                    a.steps.append(area)
    return a


def pick_step_yaml(text: str, idx: int, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Return the source lines of step `idx`, each prefixed with a right-aligned
    colored line number. Interpolates the environment first so the picked
    text matches what actually runs.
    """
    rep = expand_yaml(text, environ)
    a = detect_runbook_areas(rep)
    if idx < 0 or idx >= len(a.steps) or a.steps[idx] is None:
        raise IndexOutOfRange(idx, len(a.steps))
    step = a.steps[idx]
    lines = rep.split("\n")
    if step.end_line > len(lines):
        raise LineOutOfRange(step.end_line, len(lines))
    w = len(str(step.end_line))
    return "\n".join(
        line_number(i, w) + lines[i - 1] for i in range(step.start_line, step.end_line + 1)
    )
