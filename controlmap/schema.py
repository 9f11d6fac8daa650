"""
Field Schema Resolver - dataclass to ordered field descriptors.

A record type is a dataclass. Each field maps to one paragraph key, chosen
from its metadata:

    @dataclass
    class Source:
        name: str = control_field("Source", required=True)
        uploaders: list[str] = control_field("Uploaders", delim=", ", default_factory=list)
        notes: str = control_field("-", default="")     # never mapped
        extra: Paragraph = field(default_factory=Paragraph)  # pass-through

Nested dataclass fields are flattened: their keys live in the parent's key
space. Schemas are resolved once per (type, registry) and cached.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import threading
import types
import typing
from dataclasses import dataclass
from typing import Any, Iterator

from controlmap.codecs import CodecRegistry, default_registry
from controlmap.errors import SchemaError
from controlmap.paragraph import Paragraph
from controlmap.spec import DEFAULT_DELIM, DELIM_META, KEY_META, REQUIRED_META, SKIP_KEY

logger = logging.getLogger(__name__)


class FieldKind(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    REPEATED = "repeated"
    NESTED = "nested"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FieldSchema:
    """Resolved mapping metadata for one record field."""
    name: str
    key: str
    kind: FieldKind
    shape: Any
    required: bool = False
    delim: str = DEFAULT_DELIM
    optional: bool = False
    element_kind: FieldKind | None = None
    element_shape: Any = None
    nested: RecordSchema | None = None


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field schemas of one record type, plus its pass-through slot."""
    record_type: type
    fields: tuple[FieldSchema, ...]
    passthrough: str | None = None

    def keys(self) -> Iterator[str]:
        """Flattened paragraph keys, nested records inlined, in declaration order."""
        for fs in self.fields:
            if fs.kind is FieldKind.NESTED:
                yield from fs.nested.keys()
            else:
                yield fs.key


def control_field(
    key: str | None = None,
    *,
    required: bool = False,
    delim: str | None = None,
    metadata: dict | None = None,
    **kwargs: Any,
) -> Any:
    """dataclasses.field() with paragraph mapping metadata filled in."""
    meta = dict(metadata or {})
    if key is not None:
        meta[KEY_META] = key
    if required:
        meta[REQUIRED_META] = True
    if delim is not None:
        meta[DELIM_META] = delim
    return dataclasses.field(metadata=meta, **kwargs)


_cache: dict[tuple[type, CodecRegistry], RecordSchema] = {}
_lock = threading.RLock()


def resolve_schema(record_type: type, codecs: CodecRegistry | None = None) -> RecordSchema:
    """Resolve (or fetch the cached) schema for a dataclass type."""
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise SchemaError(f"controlmap: {record_type!r} is not a dataclass type")
    codecs = default_registry if codecs is None else codecs
    cached = _cache.get((record_type, codecs))
    if cached is not None:
        return cached
    with _lock:
        return _resolve(record_type, codecs, ())


def clear_cache() -> None:
    with _lock:
        _cache.clear()


def _resolve(record_type: type, codecs: CodecRegistry, resolving: tuple[type, ...]) -> RecordSchema:
    cached = _cache.get((record_type, codecs))
    if cached is not None:
        return cached

    if record_type in resolving:
        chain = " -> ".join(t.__qualname__ for t in resolving + (record_type,))
        raise SchemaError(f"controlmap: recursive record nesting: {chain}")

    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as e:
        raise SchemaError(f"controlmap: cannot resolve annotations of {record_type.__qualname__}: {e}") from e

    fields: list[FieldSchema] = []
    passthrough: str | None = None

    for f in dataclasses.fields(record_type):
        key = f.metadata.get(KEY_META, f.name)
        if not isinstance(key, str) or not key:
            raise SchemaError(f"controlmap: {record_type.__qualname__}.{f.name}: key must be a non-empty string, got {key!r}")
        if key == SKIP_KEY:
            continue

        required = f.metadata.get(REQUIRED_META, False)
        if not isinstance(required, bool):
            raise SchemaError(f"controlmap: {record_type.__qualname__}.{f.name}: required must be a bool, got {required!r}")

        delim = f.metadata.get(DELIM_META, DEFAULT_DELIM)
        if not isinstance(delim, str) or not delim:
            raise SchemaError(f"controlmap: {record_type.__qualname__}.{f.name}: delim must be a non-empty string, got {delim!r}")

        shape, optional = _unwrap_optional(hints[f.name])

        if shape is Paragraph:
            if passthrough is not None:
                raise SchemaError(
                    f"controlmap: {record_type.__qualname__} has more than one pass-through "
                    f"Paragraph field ({passthrough}, {f.name})"
                )
            passthrough = f.name
            continue

        kind = _classify(shape, codecs)
        element_kind = element_shape = nested = None

        if kind is FieldKind.REPEATED:
            args = typing.get_args(shape)
            element_shape = args[0] if args else str
            element_kind = _classify(element_shape, codecs)
            if element_kind is FieldKind.REPEATED:
                raise SchemaError(f"controlmap: {record_type.__qualname__}.{f.name}: nested repetition is not supported")
            if element_kind is FieldKind.NESTED:
                # a list of records has no flat form
                element_kind = FieldKind.CUSTOM
        elif kind is FieldKind.NESTED:
            nested = _resolve(shape, codecs, resolving + (record_type,))
            if nested.passthrough is not None:
                raise SchemaError(
                    f"controlmap: {record_type.__qualname__}.{f.name}: nested record "
                    f"{shape.__qualname__} declares a pass-through Paragraph ({nested.passthrough}); "
                    f"only the top-level record may have one"
                )

        fields.append(FieldSchema(
            name=f.name,
            key=key,
            kind=kind,
            shape=shape,
            required=required,
            delim=delim,
            optional=optional,
            element_kind=element_kind,
            element_shape=element_shape,
            nested=nested,
        ))

    schema = RecordSchema(record_type=record_type, fields=tuple(fields), passthrough=passthrough)

    seen: set[str] = set()
    for key in schema.keys():
        if key in seen:
            raise SchemaError(f"controlmap: {record_type.__qualname__}: duplicate key {key!r}")
        seen.add(key)

    _cache[(record_type, codecs)] = schema
    logger.debug(
        "resolved schema for %s: %d keys, passthrough=%s",
        record_type.__qualname__, len(seen), passthrough,
    )
    return schema


def _unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Strip None out of ``X | None`` / ``Optional[X]``."""
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return hint, False


def _classify(shape: Any, codecs: CodecRegistry) -> FieldKind:
    if shape is str:
        return FieldKind.STRING
    if shape is int:
        return FieldKind.INTEGER
    if typing.get_origin(shape) is list or shape is list:
        return FieldKind.REPEATED
    if isinstance(shape, type):
        if shape in codecs:
            return FieldKind.CUSTOM
        if dataclasses.is_dataclass(shape):
            return FieldKind.NESTED
    return FieldKind.CUSTOM
