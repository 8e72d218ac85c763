from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

KNOWN_DIALECTS = ("mysql", "mariadb", "postgres", "postgresql", "sqlite", "sqlite3")
KNOWN_PARAMSTYLES = ("qmark", "numeric", "numeric_dollar", "format", "pyformat")


@dataclass
class MapperConfig:
    """
    Mapping options for a Database.

    dialect and paramstyle default to what the SQLAlchemy engine reports.
    strict=False relaxes result column validation (unmapped columns are skipped).
    """
    dialect: Optional[str] = None
    strict: bool = True
    paramstyle: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.dialect is not None and self.dialect not in KNOWN_DIALECTS:
            raise ValueError(
                f"dialect must be one of {', '.join(KNOWN_DIALECTS)}, got {self.dialect!r}"
            )
        if self.paramstyle is not None and self.paramstyle not in KNOWN_PARAMSTYLES:
            raise ValueError(
                f"paramstyle must be one of {', '.join(KNOWN_PARAMSTYLES)}, got {self.paramstyle!r}"
            )
