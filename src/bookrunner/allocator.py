# allocator.py
from __future__ import annotations

from typing import Any, Dict

HTTP_RUNNER_KEY_PREFIX = "req"
GRPC_RUNNER_KEY_PREFIX = "greq"
DB_RUNNER_KEY_PREFIX = "db"


def runner_family(dsn: str) -> str:
    """Key prefix for the protocol family a destination belongs to."""
    if dsn.startswith("http"):
        return HTTP_RUNNER_KEY_PREFIX
    if dsn.startswith("grpc"):
        return GRPC_RUNNER_KEY_PREFIX
    return DB_RUNNER_KEY_PREFIX


def set_runner(runners: Dict[str, Any], dsn: str) -> str:
    """
    Return the runner key for `dsn`, inserting a new entry when needed.

    An existing entry with the same destination is reused as-is. Otherwise
    the first runner of a family gets the bare prefix (`req`, `greq`, `db`)
    and later ones get prefix + (count + 1): `req2`, `req3`, ...
    Only string-valued entries take part in counting.
    """
    counts = {HTTP_RUNNER_KEY_PREFIX: 0, GRPC_RUNNER_KEY_PREFIX: 0, DB_RUNNER_KEY_PREFIX: 0}
    for k, v in runners.items():
        if not isinstance(v, str):
            continue
        if v == dsn:
            return k
        counts[runner_family(v)] += 1

    prefix = runner_family(dsn)
    n = counts[prefix]
    key = prefix if n == 0 else f"{prefix}{n + 1}"
    # a hand-written key may already occupy the slot
    while key in runners:
        n += 1
        key = f"{prefix}{n + 1}"
    runners[key] = dsn
    return key
