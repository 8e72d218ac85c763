from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Optional


class Expansion(NamedTuple):
    """A statement with placeholders rewritten, and the flat arguments to bind."""

    statement: str
    args: list[Any]


@dataclass(frozen=True)
class ExecResult:
    rows_affected: int
    # None when the driver does not report a generated id
    last_insert_id: Optional[int] = None
