from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import functools
import logging
import re
import threading
import types
import typing
import uuid
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..errors import ColumnMappingMismatchError, InvalidFieldError, UnsupportedShapeError
from .metrics import observe_cache_miss

logger = logging.getLogger(__name__)

TAG_KEY = "db"
EMBED_KEY = "db_embed"

SCALAR_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    str,
    bytes,
    bytearray,
    decimal.Decimal,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)

_SEQUENCE_ORIGINS = (collections.abc.Sequence, collections.abc.Set, collections.abc.Mapping)
_CAMEL_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")


@runtime_checkable
class ColumnValue(Protocol):
    """
    A value type stored in a single column.

    to_db() produces the value handed to the driver; from_db() rebuilds the
    type from what the driver returns.
    """

    def to_db(self) -> Any:
        ...

    @classmethod
    def from_db(cls, value: Any) -> Any:
        ...


def is_column_value_type(t: Any) -> bool:
    return isinstance(t, type) and callable(getattr(t, "to_db", None)) and callable(
        getattr(t, "from_db", None)
    )


def column(tag: str = "", **kwargs: Any) -> Any:
    """
    Declare a mapped dataclass field with a ``name[,attr]*`` tag.

    Recognised attributes are ``pk`` and ``managed``; ``"-"`` omits the field.

        @dataclass
        class User:
            id: int = column("id,pk,managed", default=0)
            name: str = ""
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def embed(**kwargs: Any) -> Any:
    """Declare a dataclass-typed field whose columns are inlined into the parent."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EMBED_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def snake_case(name: str) -> str:
    """
    Lower-snake-case an attribute name.

        >>> snake_case("UserID")
        'user_id'
        >>> snake_case("created_at")
        'created_at'
    """
    parts: list[str] = []
    for chunk in name.split("_"):
        parts.extend(_CAMEL_RE.findall(chunk) or ([chunk] if chunk else []))
    return "_".join(part.lower() for part in parts)


@dataclass(frozen=True)
class Field:
    name: str
    path: tuple[str, ...]
    primary_key: bool = False
    managed: bool = False
    writable: bool = True
    converter: Optional[type] = None


@dataclass(frozen=True)
class ScanPlan:
    """Maps each result column position to a field, or None for skipped columns."""

    metadata: "RecordMetadata"
    columns: tuple[str, ...]
    targets: tuple[Optional[Field], ...]

    def build(self, row: Sequence[Any]) -> Any:
        values: dict[tuple[str, ...], Any] = {}
        for target, value in zip(self.targets, row):
            if target is not None:
                values[target.path] = _from_db(target, value)
        return _construct(self.metadata.shape, (), values)


@dataclass(frozen=True)
class RecordMetadata:
    shape: type
    fields: tuple[Field, ...]
    by_name: Mapping[str, Field]
    primary_key: Optional[Field] = None

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    def filtered(self, include_managed: bool) -> list[Field]:
        return [f for f in self.fields if include_managed or not f.managed]

    def field(self, name: str) -> Optional[Field]:
        return self.by_name.get(name)

    def get(self, record: Any, field: Field) -> Any:
        value = record
        for attr in field.path:
            value = getattr(value, attr)
        return value

    def set(self, record: Any, field: Field, value: Any) -> None:
        target = record
        for attr in field.path[:-1]:
            target = getattr(target, attr)
        setattr(target, field.path[-1], value)

    def scan_plan(self, columns: Sequence[str], strict: bool = True) -> ScanPlan:
        """
        Bind each result column to the field of the same name.

        In strict mode every column must map to a field and every field must be
        covered by exactly one column.

        Raises:
            ColumnMappingMismatchError: If strict and the mapping is not one-to-one.
        """
        targets: list[Optional[Field]] = []
        seen: set[str] = set()
        for name in columns:
            target = self.by_name.get(name)
            if strict and (target is None or name in seen):
                raise ColumnMappingMismatchError(self.shape, columns, self.names, column=name)
            seen.add(name)
            targets.append(target)
        if strict and len(columns) != len(self.fields):
            covered = set(columns)
            unmatched = [f.name for f in self.fields if f.name not in covered]
            raise ColumnMappingMismatchError(
                self.shape, columns, self.names, unmatched=unmatched
            )
        return ScanPlan(self, tuple(columns), tuple(targets))


def _from_db(field: Field, value: Any) -> Any:
    if field.converter is None or value is None:
        return value
    if is_column_value_type(field.converter):
        return field.converter.from_db(value)
    return field.converter(value)


def _construct(shape: type, prefix: tuple[str, ...], values: Mapping[tuple[str, ...], Any]) -> Any:
    """Build shape (and embedded members) from values keyed by field path."""
    kwargs: dict[str, Any] = {}
    late: dict[str, Any] = {}
    for f in dataclasses.fields(shape):
        path = prefix + (f.name,)
        if f.metadata.get(EMBED_KEY):
            value = _construct(_field_types(shape)[f.name], path, values)
        elif path in values:
            value = values[path]
        elif f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        else:
            value = None
        if f.init:
            kwargs[f.name] = value
        else:
            late[f.name] = value
    record = shape(**kwargs)
    for name, value in late.items():
        object.__setattr__(record, name, value)
    return record


@functools.lru_cache(maxsize=None)
def _field_types(shape: type) -> dict[str, Any]:
    try:
        hints = typing.get_type_hints(shape, include_extras=True)
    except Exception as exc:
        raise InvalidFieldError(shape, "<annotations>", f"cannot resolve annotations: {exc}") from exc
    return {name: _unwrap(hint) for name, hint in hints.items()}


def _unwrap(hint: Any) -> Any:
    """Strip Annotated[...] and Optional[...] down to the underlying type."""
    origin = typing.get_origin(hint)
    if origin is typing.Annotated:
        return _unwrap(typing.get_args(hint)[0])
    if origin is typing.Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return _unwrap(args[0])
    return hint


def _is_sequence_type(t: Any) -> bool:
    origin = typing.get_origin(t) or t
    if not isinstance(origin, type):
        return False
    if issubclass(origin, (str, bytes, bytearray)):
        return False
    return issubclass(origin, _SEQUENCE_ORIGINS)


def _parse_tag(shape: type, attr: str, tag: str) -> tuple[str, bool, bool]:
    parts = tag.split(",")
    name = parts[0] or snake_case(attr)
    pk = managed = False
    for part in parts[1:]:
        if part == "pk":
            pk = True
        elif part == "managed":
            managed = True
        else:
            raise InvalidFieldError(shape, attr, f"invalid tag attribute {part!r}")
    return name, pk, managed


def _collect_fields(shape: type, prefix: tuple[str, ...], writable: bool) -> list[Field]:
    out: list[Field] = []
    writable = writable and not shape.__dataclass_params__.frozen
    hints = _field_types(shape)
    for f in dataclasses.fields(shape):
        tag = f.metadata.get(TAG_KEY, "")
        if tag == "-":
            continue
        ft = hints.get(f.name, Any)
        path = prefix + (f.name,)

        if f.metadata.get(EMBED_KEY):
            if not (isinstance(ft, type) and dataclasses.is_dataclass(ft)):
                raise InvalidFieldError(shape, f.name, "only dataclass fields can be embedded")
            out.extend(_collect_fields(ft, path, writable))
            continue

        converter = None
        if is_column_value_type(ft) or (isinstance(ft, type) and issubclass(ft, Enum)):
            converter = ft
        elif isinstance(ft, type) and issubclass(ft, SCALAR_TYPES):
            pass
        elif isinstance(ft, type) and dataclasses.is_dataclass(ft):
            raise InvalidFieldError(
                shape,
                f.name,
                f"record field of type {ft.__qualname__} must be embedded or implement "
                "to_db()/from_db() to be mapped to a column",
            )
        elif _is_sequence_type(ft):
            raise InvalidFieldError(shape, f.name, f"can't map sequence field of type {ft!r}")

        name, pk, managed = _parse_tag(shape, f.name, tag)
        out.append(
            Field(
                name=name,
                path=path,
                primary_key=pk,
                managed=managed,
                writable=writable,
                converter=converter,
            )
        )
    return out


def build_metadata(shape: type) -> RecordMetadata:
    """
    Reflect a dataclass into its flattened column metadata.

    Raises:
        UnsupportedShapeError: If shape is not a dataclass type.
        InvalidFieldError: If a member cannot be mapped or tags conflict.
    """
    if not (isinstance(shape, type) and dataclasses.is_dataclass(shape)):
        raise UnsupportedShapeError(shape)
    fields = _collect_fields(shape, (), True)
    by_name: dict[str, Field] = {}
    pk: Optional[Field] = None
    for f in fields:
        if f.name in by_name:
            raise InvalidFieldError(shape, ".".join(f.path), f"duplicate column name {f.name!r}")
        if f.primary_key:
            if pk is not None:
                raise InvalidFieldError(
                    shape, ".".join(f.path), f"primary key already declared on {pk.name!r}"
                )
            pk = f
        by_name[f.name] = f
    return RecordMetadata(
        shape=shape,
        fields=tuple(fields),
        by_name=MappingProxyType(by_name),
        primary_key=pk,
    )


class MetadataCache:
    """
    Per-shape memo of RecordMetadata.

    Reads are lock-free against an immutable snapshot; a miss builds the
    metadata and publishes a new snapshot under a writer lock, checking again
    once the lock is held. Failed builds are not cached.
    """

    def __init__(self) -> None:
        self._entries: Mapping[type, RecordMetadata] = MappingProxyType({})
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, shape: object) -> bool:
        return shape in self._entries

    def metadata_for(self, shape: Any) -> RecordMetadata:
        if not isinstance(shape, type):
            shape = type(shape)
        entry = self._entries.get(shape)
        if entry is not None:
            return entry

        with self._lock:
            entry = self._entries.get(shape)
            if entry is not None:
                return entry
            entry = build_metadata(shape)
            entries = dict(self._entries)
            entries[shape] = entry
            self._entries = MappingProxyType(entries)

        observe_cache_miss(shape)
        logger.debug("Mapped %s to columns (%s)", shape.__qualname__, ", ".join(entry.names))
        return entry
