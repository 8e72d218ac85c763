from __future__ import annotations

import re

from ..metrics.registry import (
    METADATA_CACHE_MISSES_TOTAL,
    STATEMENT_LATENCY_SECONDS,
    STATEMENT_TOTAL,
)

_LEADING_KEYWORD = re.compile(r"^\s*([A-Za-z]+)")
_OPERATIONS = {"select", "insert", "update", "delete", "replace", "with"}


def statement_operation(statement: str) -> str:
    """
    Label a statement by its leading keyword.

    Returns "unknown" for anything that is not a plain DML statement so the
    label set stays bounded.
    """
    match = _LEADING_KEYWORD.match(statement)
    if match is None:
        return "unknown"
    keyword = match.group(1).lower()
    return keyword if keyword in _OPERATIONS else "unknown"


def observe_statement(dialect: str, operation: str, status: str, latency_s: float) -> None:
    STATEMENT_TOTAL.labels(dialect=dialect, operation=operation, status=status).inc()
    STATEMENT_LATENCY_SECONDS.labels(dialect=dialect, operation=operation).observe(latency_s)


def observe_cache_miss(shape: type) -> None:
    METADATA_CACHE_MISSES_TOTAL.labels(shape=shape.__qualname__).inc()
