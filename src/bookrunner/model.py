# model.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .errors import DuplicateKey
from .loop import LoopSpec

StepBody = Dict[str, Any]


# ---------------------------------------------------------------------
# Step addressing
# ---------------------------------------------------------------------

class Steps(ABC):
    """
    Step container. Exactly one addressing mode per runbook:
      - OrderedSteps: positional
      - KeyedSteps:   (key, body) pairs, keys unique
    """
    use_map: bool = False

    @abstractmethod
    def __len__(self) -> int:
        ...

    @abstractmethod
    def bodies(self) -> List[StepBody]:
        ...

    def keys(self) -> List[str]:
        return []

    @abstractmethod
    def items(self) -> Iterator[Tuple[Optional[str], StepBody]]:
        ...

    @abstractmethod
    def map(self, fn: Callable[[int, Any], StepBody]) -> "Steps":
        """Return a new container of the same mode with fn(index, body) applied."""
        ...

    @abstractmethod
    def to_yaml_value(self) -> Any:
        ...


class OrderedSteps(Steps):
    use_map = False

    def __init__(self, bodies: Optional[List[StepBody]] = None):
        self._bodies: List[StepBody] = list(bodies or [])

    def __len__(self) -> int:
        return len(self._bodies)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OrderedSteps) and self._bodies == other._bodies

    def __repr__(self) -> str:
        return f"OrderedSteps({self._bodies!r})"

    def append(self, body: StepBody) -> None:
        self._bodies.append(body)

    def bodies(self) -> List[StepBody]:
        return list(self._bodies)

    def items(self) -> Iterator[Tuple[Optional[str], StepBody]]:
        for body in self._bodies:
            yield None, body

    def map(self, fn: Callable[[int, Any], StepBody]) -> "OrderedSteps":
        return OrderedSteps([fn(i, b) for i, b in enumerate(self._bodies)])

    def to_yaml_value(self) -> Any:
        return list(self._bodies)


class KeyedSteps(Steps):
    use_map = True

    def __init__(self, items: Optional[List[Tuple[str, StepBody]]] = None):
        self._keys: List[str] = []
        self._bodies: List[StepBody] = []
        for key, body in items or []:
            self.add(key, body)

    def __len__(self) -> int:
        return len(self._bodies)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, KeyedSteps)
            and self._keys == other._keys
            and self._bodies == other._bodies
        )

    def __repr__(self) -> str:
        return f"KeyedSteps({list(zip(self._keys, self._bodies))!r})"

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def add(self, key: str, body: StepBody) -> None:
        if key in self._keys:
            raise DuplicateKey(key)
        self._keys.append(key)
        self._bodies.append(body)

    def bodies(self) -> List[StepBody]:
        return list(self._bodies)

    def keys(self) -> List[str]:
        return list(self._keys)

    def items(self) -> Iterator[Tuple[Optional[str], StepBody]]:
        yield from zip(self._keys, self._bodies)

    def map(self, fn: Callable[[int, Any], StepBody]) -> "KeyedSteps":
        return KeyedSteps([(k, fn(i, b)) for i, (k, b) in enumerate(zip(self._keys, self._bodies))])

    def to_yaml_value(self) -> Any:
        return dict(zip(self._keys, self._bodies))


# ---------------------------------------------------------------------
# Compiled form
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Book:
    """Execution-ready runbook: normalized sections, parsed loop."""
    desc: str
    runners: Dict[str, Any]
    vars: Dict[str, Any]
    steps: Steps
    debug: bool = False
    interval: str = ""
    if_cond: str = ""
    skip_test: bool = False
    loop: Optional[LoopSpec] = None
    concurrency: str = ""
    force: bool = False
    path: Optional[Path] = None

    @property
    def use_map(self) -> bool:
        return self.steps.use_map

    @property
    def step_keys(self) -> List[str]:
        return self.steps.keys()

    @property
    def raw_steps(self) -> List[StepBody]:
        return self.steps.bodies()


# ---------------------------------------------------------------------
# Source positions
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Area:
    """Inclusive 1-based line range."""
    start_line: int
    end_line: int


@dataclass
class Areas:
    desc: Optional[Area] = None
    runners: Optional[Area] = None
    vars: Optional[Area] = None
    steps: List[Area] = field(default_factory=list)
