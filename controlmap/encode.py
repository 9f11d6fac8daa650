"""
Encoder - turn records back into Paragraphs and control text.

Usage:
    para = encode_record(pkg)

    # One record, or a list of them, to a text stream
    marshal(sys.stdout, [pkg, other])

    # Incrementally, with blank lines between records
    encoder = Encoder(handle)
    for pkg in packages:
        encoder.encode(pkg)

Keys come out in field declaration order. When the record carries a
pass-through Paragraph the produced fields are merged over it, so keys the
record does not model survive unchanged.
"""

from __future__ import annotations

import dataclasses
import io
import logging
from typing import Any, TextIO

from controlmap.codecs import CodecRegistry, default_registry
from controlmap.errors import CodecError, ConversionError, UnsupportedTypeError
from controlmap.paragraph import Paragraph
from controlmap.schema import FieldKind, FieldSchema, RecordSchema, resolve_schema
from controlmap.spec import PARAGRAPH_SEPARATOR

logger = logging.getLogger(__name__)


def encode_record(record: Any, *, codecs: CodecRegistry | None = None) -> Paragraph:
    """Encode a single record instance into a new Paragraph."""
    if isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise UnsupportedTypeError(None, type(record))
    codecs = default_registry if codecs is None else codecs
    schema = resolve_schema(type(record), codecs)

    produced = Paragraph()
    _encode_record(record, schema, produced, codecs)

    if schema.passthrough is not None:
        base = getattr(record, schema.passthrough)
        if base is not None:
            # Modeled keys the record no longer produces are dropped, the rest keep their place
            modeled = set(schema.keys())
            kept = Paragraph((k, v) for k, v in base.items() if k not in modeled or k in produced)
            return kept.update(produced)
    return produced


def marshal(writer: TextIO, data: Any, *, codecs: CodecRegistry | None = None) -> None:
    """Write one record, or a list of records, as control text."""
    Encoder(writer, codecs=codecs).encode(data)


def dumps(data: Any, *, codecs: CodecRegistry | None = None) -> str:
    """Return one record, or a list of records, as control text."""
    buf = io.StringIO()
    marshal(buf, data, codecs=codecs)
    return buf.getvalue()


class Encoder:
    """
    Writes records to a text stream, one paragraph each, separated by a
    single blank line. Nothing is written before the first record or after
    the last.

    One Encoder belongs to one output stream and one caller at a time.

    Usage:
        encoder = Encoder(handle)
        encoder.encode(first)
        encoder.encode([second, third])
        assert encoder.records_written == 3
    """

    def __init__(self, writer: TextIO, *, codecs: CodecRegistry | None = None) -> None:
        self._writer = writer
        self._codecs = codecs
        self.records_written = 0

    def encode(self, data: Any) -> None:
        """Encode a record, or each record of a list/tuple in order."""
        if isinstance(data, (list, tuple)):
            for record in data:
                self._write_record(record)
        else:
            self._write_record(data)

    def _write_record(self, record: Any) -> None:
        # Encode first so a failing record leaves no dangling separator
        paragraph = encode_record(record, codecs=self._codecs)
        if self.records_written:
            self._writer.write(PARAGRAPH_SEPARATOR)
        paragraph.write_to(self._writer)
        self.records_written += 1
        logger.debug("wrote record %d (%s, %d keys)", self.records_written, type(record).__qualname__, len(paragraph))


# =============================================================================
# Record walk
# =============================================================================

def _encode_record(record: Any, schema: RecordSchema, out: Paragraph, codecs: CodecRegistry) -> None:
    for fs in schema.fields:
        value = getattr(record, fs.name)
        if value is None:
            continue

        if fs.kind is FieldKind.NESTED:
            _encode_record(value, fs.nested, out, codecs)
            continue

        if fs.kind is FieldKind.REPEATED:
            if not isinstance(value, (list, tuple)):
                raise ConversionError(fs.name, value, "expected a list")
            if fs.element_kind is FieldKind.CUSTOM and not _has_codec(fs.element_shape, codecs):
                # fails even for an empty list
                raise UnsupportedTypeError(fs.name, fs.element_shape)
            if not value:
                # "" would decode back to one empty element
                continue
            text = fs.delim.join(
                _encode_value(fs, fs.element_kind, fs.element_shape, el, codecs)
                for el in value
            )
        else:
            text = _encode_value(fs, fs.kind, fs.shape, value, codecs)

        out.set(fs.key, text)


def _encode_value(fs: FieldSchema, kind: FieldKind, shape: Any, value: Any, codecs: CodecRegistry) -> str:
    if kind is FieldKind.STRING:
        if not isinstance(value, str):
            raise ConversionError(fs.name, value, "expected a str")
        return value

    if kind is FieldKind.INTEGER:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConversionError(fs.name, value, "expected an int")
        return str(value)

    if kind is FieldKind.CUSTOM:
        codec = codecs.lookup(shape) if _has_codec(shape, codecs) else None
        if codec is None:
            raise UnsupportedTypeError(fs.name, shape)
        try:
            return codec.format(value)
        except Exception as e:
            raise CodecError(fs.name, value, e, action="format") from e

    raise UnsupportedTypeError(fs.name, shape)


def _has_codec(shape: Any, codecs: CodecRegistry) -> bool:
    return isinstance(shape, type) and shape in codecs
