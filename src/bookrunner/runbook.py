# runbook.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from yaml.representer import SafeRepresenter

from .errors import DuplicateKey, MalformedSection, UnsupportedCapture
from .expand import expand_yaml
from .loop import new_loop
from .model import Book, KeyedSteps, OrderedSteps, Steps
from .normalize import Int64, MapSlice, UInt64, normalize, normalize_mapping, normalize_mapping_list
from .synthesize import synthesize_step

DEFAULT_DESC = "Generated from captured commands"


@dataclass
class Runbook:
    """
    Declarative scenario, as written. Compile with `to_book()` before running.

    `steps` is either OrderedSteps (a YAML sequence) or KeyedSteps
    (a YAML mapping of step key -> step body).
    """
    desc: str = ""
    runners: Dict[str, Any] = field(default_factory=dict)
    vars: Dict[str, Any] = field(default_factory=dict)
    steps: Steps = field(default_factory=OrderedSteps)
    debug: bool = False
    interval: str = ""
    if_cond: str = ""
    skip_test: bool = False
    loop: Any = None
    concurrency: str = ""
    force: bool = False

    @classmethod
    def new(cls, desc: str = "", *, keyed: bool = False) -> "Runbook":
        return cls(desc=desc or DEFAULT_DESC, steps=KeyedSteps() if keyed else OrderedSteps())

    @property
    def use_map(self) -> bool:
        return self.steps.use_map

    @property
    def step_keys(self) -> list[str]:
        return self.steps.keys()

    # ------------------------------------------------------------------
    # Step synthesis
    # ------------------------------------------------------------------

    def append_step(self, *tokens: str) -> None:
        """Append a step synthesized from a captured command (curl, grpcurl, log line, shell)."""
        if not tokens:
            raise UnsupportedCapture(tokens, "no argument")
        if not isinstance(self.runners, dict):
            raise MalformedSection("runners", self.runners)
        key = None
        if isinstance(self.steps, KeyedSteps):
            key = f"{tokens[0]}{len(self.steps)}"
            if key in self.steps:
                raise DuplicateKey(key)
        step = synthesize_step(self.runners, *tokens)
        if key is None:
            self.steps.append(step)
        else:
            self.steps.add(key, step)

    # ------------------------------------------------------------------
    # Compile
    # ------------------------------------------------------------------

    def to_book(self, path: str | Path | None = None) -> Book:
        """Normalize and freeze into an execution-ready Book."""
        runners = normalize_mapping(self.runners, "runners")
        vars_ = normalize_mapping(self.vars, "vars")
        bodies = normalize_mapping_list(self.steps.bodies(), "steps")
        loop = new_loop(normalize(self.loop)) if self.loop is not None else None
        return Book(
            desc=self.desc,
            runners=runners,
            vars=vars_,
            steps=self.steps.map(lambda i, _body: bodies[i]),
            debug=self.debug,
            interval=self.interval,
            if_cond=self.if_cond,
            skip_test=self.skip_test,
            loop=loop,
            concurrency=self.concurrency,
            force=self.force,
            path=Path(path).resolve() if path is not None else None,
        )

    # ------------------------------------------------------------------
    # Serialize
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"desc": self.desc}
        if self.runners:
            d["runners"] = self.runners
        if self.vars:
            d["vars"] = self.vars
        d["steps"] = self.steps.to_yaml_value()
        if self.debug:
            d["debug"] = True
        if self.interval:
            d["interval"] = self.interval
        if self.if_cond:
            d["if"] = self.if_cond
        if self.skip_test:
            d["skipTest"] = True
        if self.loop is not None:
            d["loop"] = self.loop
        if self.concurrency:
            d["concurrency"] = self.concurrency
        if self.force:
            d["force"] = True
        return d

    def dump(self) -> str:
        return yaml.dump(
            self.to_dict(),
            Dumper=RunbookDumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )


# ----------------------------------------------------------------------
# YAML plumbing
# ----------------------------------------------------------------------

class RunbookDumper(yaml.SafeDumper):
    def ignore_aliases(self, data: Any) -> bool:
        return True


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_str(data)


def _represent_map_slice(dumper: yaml.SafeDumper, data: MapSlice) -> yaml.Node:
    return dumper.represent_mapping("tag:yaml.org,2002:map", [(i.key, i.value) for i in data])


RunbookDumper.add_representer(str, _represent_str)
RunbookDumper.add_representer(Int64, SafeRepresenter.represent_int)
RunbookDumper.add_representer(UInt64, SafeRepresenter.represent_int)
RunbookDumper.add_representer(MapSlice, _represent_map_slice)


class RunbookLoader(yaml.SafeLoader):
    pass


def _check_step_keys(root: yaml.Node) -> None:
    """Reject duplicate keyed-step keys before the loader silently keeps the last one."""
    if not isinstance(root, yaml.MappingNode):
        return
    for k, v in root.value:
        if not (isinstance(k, yaml.ScalarNode) and k.value == "steps"):
            continue
        if not isinstance(v, yaml.MappingNode):
            continue
        seen: set[str] = set()
        for sk, _sv in v.value:
            if not isinstance(sk, yaml.ScalarNode):
                continue
            if sk.value in seen:
                raise DuplicateKey(sk.value)
            seen.add(sk.value)


def _load_document(text: str) -> Any:
    loader = RunbookLoader(text)
    try:
        node = loader.get_single_node()
        if node is None:
            return None
        _check_step_keys(node)
        return loader.construct_document(node)
    except yaml.YAMLError as e:
        raise MalformedSection("document", None, f"invalid YAML: {e}") from e
    finally:
        loader.dispose()


def _as_str(doc: Mapping[str, Any], name: str) -> str:
    v = doc.get(name)
    if v is None:
        return ""
    if isinstance(v, bool) or not isinstance(v, (str, int, float)):
        raise MalformedSection(name, v)
    return str(v)


def _as_bool(doc: Mapping[str, Any], name: str) -> bool:
    v = doc.get(name)
    if v is None:
        return False
    if not isinstance(v, bool):
        raise MalformedSection(name, v)
    return v


def _build_steps(raw: Any) -> Steps:
    if raw is None:
        return OrderedSteps()
    if isinstance(raw, list):
        for i, s in enumerate(raw):
            if not isinstance(s, dict):
                raise MalformedSection(f"steps[{i}]", s, f"step {i} is not a mapping")
        return OrderedSteps(raw)
    if isinstance(raw, dict):
        items = []
        for k, s in raw.items():
            if not isinstance(k, str):
                raise MalformedSection("steps", k, f"step key is not a string: {k!r}")
            if not isinstance(s, dict):
                raise MalformedSection(f"steps.{k}", s, f"step {k} is not a mapping")
            items.append((k, s))
        return KeyedSteps(items)
    raise MalformedSection("steps", raw)


def parse_runbook(text: str, environ: Optional[Mapping[str, str]] = None) -> Runbook:
    """Interpolate environment variables, then parse runbook YAML text."""
    doc = _load_document(expand_yaml(text, environ))
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise MalformedSection("document", doc, "runbook must be a mapping")

    runners = doc.get("runners")
    vars_ = doc.get("vars")
    return Runbook(
        desc=_as_str(doc, "desc"),
        runners={} if runners is None else runners,
        vars={} if vars_ is None else vars_,
        steps=_build_steps(doc.get("steps")),
        debug=_as_bool(doc, "debug"),
        interval=_as_str(doc, "interval"),
        if_cond=_as_str(doc, "if"),
        skip_test=_as_bool(doc, "skipTest"),
        loop=doc.get("loop"),
        concurrency=_as_str(doc, "concurrency"),
        force=_as_bool(doc, "force"),
    )


def load_runbook(path: str | Path) -> Runbook:
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(f"Runbook file not found: {p}")
    return parse_runbook(p.read_text(encoding="utf-8"))


def load_book(path: str | Path) -> Book:
    """Load and compile a runbook file; the Book keeps its path for include resolution."""
    return load_runbook(path).to_book(path=path)
