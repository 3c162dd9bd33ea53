# loop.py
from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidLoop

DEFAULT_LOOP_COUNT = "3"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> float:
    """Parse `"1m30s"`, `"500ms"`, `"2"` or a bare number into seconds."""
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if not s:
        raise ValueError("empty duration")
    try:
        return float(s)
    except ValueError:
        pass
    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    total = 0.0
    pos = 0
    for m in _DURATION_PART.finditer(s):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
        pos = m.end()
    if pos != len(s) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return sign * total


class LoopSpec(BaseModel):
    """Structured form of the `loop:` field (runbook or step level)."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    count: str = DEFAULT_LOOP_COUNT
    interval: Optional[float] = None
    min_interval: Optional[float] = Field(default=None, alias="minInterval")
    max_interval: Optional[float] = Field(default=None, alias="maxInterval")
    jitter: Optional[float] = None
    multiplier: Optional[float] = None
    until: str = ""

    @field_validator("count", mode="before")
    @classmethod
    def _count_as_expr(cls, v: Any) -> str:
        if v is None:
            return DEFAULT_LOOP_COUNT
        if isinstance(v, bool):
            raise ValueError("count must be an integer or an expression")
        return str(v)

    @field_validator("interval", "min_interval", "max_interval", mode="before")
    @classmethod
    def _duration(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return parse_duration(v)

    @model_validator(mode="after")
    def _check_intervals(self) -> "LoopSpec":
        if self.interval is not None and (self.min_interval is not None or self.max_interval is not None):
            raise ValueError("interval and minInterval/maxInterval are mutually exclusive")
        if (
            self.min_interval is not None
            and self.max_interval is not None
            and self.min_interval > self.max_interval
        ):
            raise ValueError("minInterval must not exceed maxInterval")
        return self


def new_loop(v: Any) -> LoopSpec:
    """Build a LoopSpec from an int count, a count expression or a mapping."""
    if isinstance(v, LoopSpec):
        return v
    try:
        if isinstance(v, dict):
            return LoopSpec.model_validate(v)
        if isinstance(v, (int, str)) and not isinstance(v, bool):
            return LoopSpec(count=v)
    except ValidationError as e:
        raise InvalidLoop(v, f"invalid loop: {e.errors()[0]['msg']}") from e
    raise InvalidLoop(v, f"invalid loop: unsupported value of type {type(v).__name__}")
