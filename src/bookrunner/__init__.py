from .areas import detect_runbook_areas, pick_step_yaml
from .context import ExecutionContext, Store
from .dsl import RunbookBuilder, build, runbook, step
from .errors import (
    DuplicateKey,
    IndexOutOfRange,
    InvalidLoop,
    LineOutOfRange,
    MalformedSection,
    RunbookError,
    StepFailure,
    UnsupportedCapture,
)
from .include import IncludeConfig, IncludeRunner
from .model import Area, Areas, Book, KeyedSteps, OrderedSteps
from .normalize import Int64, UInt64, normalize
from .runbook import Runbook, load_book, load_runbook, parse_runbook

__all__ = [
    "detect_runbook_areas",
    "pick_step_yaml",
    "ExecutionContext",
    "Store",
    "RunbookBuilder",
    "build",
    "runbook",
    "step",
    "DuplicateKey",
    "IndexOutOfRange",
    "InvalidLoop",
    "LineOutOfRange",
    "MalformedSection",
    "RunbookError",
    "StepFailure",
    "UnsupportedCapture",
    "IncludeConfig",
    "IncludeRunner",
    "Area",
    "Areas",
    "Book",
    "KeyedSteps",
    "OrderedSteps",
    "Int64",
    "UInt64",
    "normalize",
    "Runbook",
    "load_book",
    "load_runbook",
    "parse_runbook",
]
