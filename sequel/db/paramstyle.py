from __future__ import annotations

from enum import Enum


class ParamStyle(str, Enum):
    """DB-API placeholder styles that take positional arguments."""

    QMARK = "qmark"
    NUMERIC = "numeric"
    NUMERIC_DOLLAR = "numeric_dollar"
    FORMAT = "format"
    PYFORMAT = "pyformat"

    def __str__(self) -> str:
        return self.value

    def placeholder(self, n: int) -> str:
        """Placeholder for the zero-based parameter n."""
        if self is ParamStyle.QMARK:
            return "?"
        if self is ParamStyle.NUMERIC:
            return f":{n + 1}"
        if self is ParamStyle.NUMERIC_DOLLAR:
            return f"${n + 1}"
        return "%s"

    @property
    def escapes_percent(self) -> bool:
        """Whether literal % in statement text must be written as %%."""
        return self in (ParamStyle.FORMAT, ParamStyle.PYFORMAT)

    @classmethod
    def from_dbapi(cls, paramstyle: str) -> "ParamStyle":
        try:
            return cls(paramstyle)
        except ValueError:
            raise ValueError(
                f"unsupported DB-API paramstyle {paramstyle!r}; "
                f"expected one of {', '.join(s.value for s in cls)}"
            ) from None
