from __future__ import annotations

from typing import Any, Sequence


def _type_name(t: Any) -> str:
    if isinstance(t, type):
        return t.__qualname__
    return type(t).__qualname__


class SequelError(Exception):
    """Base exception for sequel errors."""


class UnterminatedQuoteError(SequelError):
    """A quoted span in statement text has no closing quote."""

    def __init__(self, position: int, quote: str) -> None:
        self.position = position
        self.quote = quote
        super().__init__(f"unterminated {quote} quote starting at offset {position}")


class UnsupportedShapeError(SequelError):
    """Metadata was requested for something that is not a record shape."""

    def __init__(self, shape: Any) -> None:
        self.shape = shape
        super().__init__(f"can only map dataclass records, not {_type_name(shape)}")


class InvalidFieldError(SequelError):
    """A record member cannot be mapped to a column (bad tag or bad type)."""

    def __init__(self, shape: type, field: str, reason: str) -> None:
        self.shape = shape
        self.field = field
        super().__init__(f"{shape.__qualname__}.{field}: {reason}")


class UnsupportedParameterError(SequelError):
    """A bound argument has a runtime type the expander cannot expand."""

    def __init__(self, value: Any) -> None:
        self.value_type = type(value)
        super().__init__(f"unsupported parameter of type {self.value_type.__qualname__}")


class PlaceholderOutOfRangeError(SequelError):
    """A placeholder has no remaining bound argument."""

    def __init__(self, ordinal: int, bound: int) -> None:
        self.ordinal = ordinal
        self.bound = bound
        super().__init__(
            f"placeholder {ordinal} is out of range ({bound} argument(s) bound)"
        )


class RowCountMismatchError(SequelError):
    """The database affected a different number of rows than were sent."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"affected rows {actual} did not match row count of {expected}")


class ImmutablePrimaryKeyTargetError(SequelError):
    """Generated primary keys cannot be written back to the given records."""

    def __init__(self, shape: type) -> None:
        self.shape = shape
        super().__init__(
            f"can't set primary key on frozen record {shape.__qualname__}; "
            "generated ids need mutable records"
        )


class ColumnMappingMismatchError(SequelError):
    """Result columns and record fields do not correspond one-to-one."""

    def __init__(
        self,
        shape: type,
        columns: Sequence[str],
        fields: Sequence[str],
        column: str | None = None,
        unmatched: Sequence[str] = (),
    ) -> None:
        self.shape = shape
        self.columns = list(columns)
        self.fields = list(fields)
        self.column = column
        self.unmatched = list(unmatched)
        if column is not None and column in self.fields:
            message = f"result column {column!r} appears more than once"
        elif column is not None:
            message = f"no field in ({', '.join(fields)}) maps to result column {column!r}"
        else:
            message = (
                f"invalid mapping ({', '.join(columns)}) -> ({', '.join(fields)}); "
                f"no column for field(s) {', '.join(unmatched) or '<duplicate columns>'}"
            )
        super().__init__(f"{shape.__qualname__}: {message}")


class MissingPrimaryKeyError(SequelError):
    """An upsert needs conflict keys but the shape has no primary key."""

    def __init__(self, shape: type, table: str) -> None:
        self.shape = shape
        self.table = table
        super().__init__(
            f"cannot upsert into {table!r} from {shape.__qualname__} without conflict keys "
            "or a field tagged 'name,pk'"
        )


class MultipleRowsError(SequelError):
    """A single-row select returned more than one row."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"more than one row returned from {query!r}")


class NoRowsError(SequelError):
    """A scalar select returned no row."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"no rows returned from {query!r}")


class UnsupportedDialectError(SequelError):
    """No dialect is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unsupported SQL dialect {name!r}")
