"""
Decoder - populate records from Paragraphs.

Usage:
    pkg = decode(Package(), para)
    pkg = decode_as(Package, para)

    # Straight from control text
    pkg = unmarshal(Package(), open("debian/control"))
    binaries = unmarshal_all(Binary, text)

Decoding is fail-fast: the first error propagates and fields handled before
it stay populated. Record dataclasses must be mutable.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any, TextIO, TypeVar

from controlmap.codecs import CodecRegistry, default_registry
from controlmap.errors import CodecError, ConversionError, RequiredFieldError, UnsupportedTypeError
from controlmap.paragraph import Paragraph
from controlmap.reader import ParagraphReader
from controlmap.schema import FieldKind, FieldSchema, RecordSchema, resolve_schema

T = TypeVar("T")

_INTEGER = re.compile(r"[+-]?[0-9]+")


def decode(record: T, paragraph: Paragraph, *, codecs: CodecRegistry | None = None) -> T:
    """Decode a paragraph into an existing record instance. Returns the record."""
    if isinstance(record, type):
        raise TypeError(f"decode() needs a record instance, got the type {record.__qualname__}; use decode_as()")
    codecs = default_registry if codecs is None else codecs
    schema = resolve_schema(type(record), codecs)
    _decode_record(record, schema, paragraph, codecs)
    return record


def decode_as(record_type: type[T], paragraph: Paragraph, *, codecs: CodecRegistry | None = None) -> T:
    """Build a zero record of record_type and decode the paragraph into it."""
    return decode(new_record(record_type, codecs), paragraph, codecs=codecs)


def unmarshal(record: T, source: str | TextIO, *, codecs: CodecRegistry | None = None) -> T:
    """Decode the first paragraph of control text into record."""
    return decode(record, ParagraphReader.parse_one(source), codecs=codecs)


def unmarshal_all(record_type: type[T], source: str | TextIO, *, codecs: CodecRegistry | None = None) -> list[T]:
    """Decode every paragraph of control text into new records of record_type."""
    return [
        decode_as(record_type, para, codecs=codecs)
        for para in ParagraphReader.iter_paragraphs(source)
    ]


def new_record(record_type: type[T], codecs: CodecRegistry | None = None) -> T:
    """
    Create a record without calling __init__.

    Declared defaults are used where present, otherwise each field gets the
    zero value of its kind: "", 0, [], a zero nested record, an empty
    Paragraph, or None.
    """
    schema = resolve_schema(record_type, codecs)
    by_name = {fs.name: fs for fs in schema.fields}

    record = record_type.__new__(record_type)
    for f in dataclasses.fields(record_type):
        if f.default is not dataclasses.MISSING:
            value = f.default
        elif f.default_factory is not dataclasses.MISSING:
            value = f.default_factory()
        elif f.name == schema.passthrough:
            value = Paragraph()
        elif f.name in by_name:
            value = _zero_value(by_name[f.name], codecs)
        else:
            value = None
        setattr(record, f.name, value)
    return record


def _zero_value(fs: FieldSchema, codecs: CodecRegistry | None) -> Any:
    if fs.optional:
        return None
    if fs.kind is FieldKind.STRING:
        return ""
    if fs.kind is FieldKind.INTEGER:
        return 0
    if fs.kind is FieldKind.REPEATED:
        return []
    if fs.kind is FieldKind.NESTED:
        return new_record(fs.nested.record_type, codecs)
    return None


# =============================================================================
# Record walk
# =============================================================================

def _decode_record(record: Any, schema: RecordSchema, paragraph: Paragraph, codecs: CodecRegistry) -> None:
    for fs in schema.fields:
        if fs.kind is FieldKind.NESTED:
            _decode_nested(record, fs, paragraph, codecs)
            continue

        if fs.key not in paragraph:
            if fs.required:
                raise RequiredFieldError(fs.name, fs.key)
            continue

        raw = paragraph[fs.key]
        if fs.kind is FieldKind.REPEATED:
            # Decode every token before touching the field
            decoded = [
                _decode_value(fs, fs.element_kind, fs.element_shape, token, codecs)
                for token in raw.split(fs.delim)
            ]
            current = getattr(record, fs.name) or []
            setattr(record, fs.name, list(current) + decoded)
        else:
            setattr(record, fs.name, _decode_value(fs, fs.kind, fs.shape, raw, codecs))

    if schema.passthrough is not None:
        setattr(record, schema.passthrough, paragraph.copy())


def _decode_nested(record: Any, fs: FieldSchema, paragraph: Paragraph, codecs: CodecRegistry) -> None:
    child = getattr(record, fs.name)
    if child is None:
        # An unset optional substructure stays unset unless one of its keys is present
        if not any(key in paragraph for key in fs.nested.keys()):
            return
        child = new_record(fs.nested.record_type, codecs)
        setattr(record, fs.name, child)
    _decode_record(child, fs.nested, paragraph, codecs)


def _decode_value(fs: FieldSchema, kind: FieldKind, shape: Any, raw: str, codecs: CodecRegistry) -> Any:
    if kind is FieldKind.STRING:
        return raw

    if kind is FieldKind.INTEGER:
        if raw == "":
            return 0
        if not _INTEGER.fullmatch(raw):
            raise ConversionError(fs.name, raw, "invalid base-10 integer")
        return int(raw)

    if kind is FieldKind.CUSTOM:
        codec = codecs.lookup(shape) if isinstance(shape, type) else None
        if codec is None:
            raise UnsupportedTypeError(fs.name, shape)
        try:
            return codec.parse(raw)
        except Exception as e:
            raise CodecError(fs.name, raw, e) from e

    raise UnsupportedTypeError(fs.name, shape)
