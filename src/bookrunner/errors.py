# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence


@dataclass
class RunbookError(Exception):
    """
    Structured runbook error with enough context for:
      - clean CLI output
      - locating the fault (section name, step index, offending value)
    """
    kind: str
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class MalformedSection(RunbookError):
    """A top-level section does not reduce to its required shape."""

    def __init__(self, section: str, value: Any, reason: str | None = None):
        message = reason or f"failed to normalize {section}"
        super().__init__("MalformedSection", message, {"section": section, "value": value})
        self.section = section
        self.value = value


class DuplicateKey(RunbookError):
    def __init__(self, key: str):
        super().__init__("DuplicateKey", f"duplicate step key: {key}", {"key": key})
        self.key = key


class UnsupportedCapture(RunbookError):
    """A captured command could not be classified or parsed."""

    def __init__(self, tokens: Sequence[str], reason: str):
        super().__init__("UnsupportedCapture", reason, {"input": list(tokens)})
        self.tokens = list(tokens)


class IndexOutOfRange(RunbookError):
    def __init__(self, index: int, count: int):
        super().__init__("IndexOutOfRange", f"step not found: {index}", {"steps": count})
        self.index = index
        self.count = count


class LineOutOfRange(RunbookError):
    def __init__(self, line: int, total: int):
        super().__init__("LineOutOfRange", f"line not found: {line}", {"lines": total})
        self.line = line
        self.total = total


class InvalidLoop(RunbookError):
    def __init__(self, value: Any, reason: str):
        super().__init__("InvalidLoop", reason, {"value": value})
        self.value = value


@dataclass
class StepFailure(Exception):
    """A step could not be dispatched, or its runner raised."""
    index: int
    key: str | None
    runner: str | None
    message: str

    def __str__(self) -> str:
        where = f"step {self.index}" if self.key is None else f"step {self.index} ({self.key})"
        if self.runner:
            where = f"{where} [{self.runner}]"
        return f"{where} failed: {self.message}"
