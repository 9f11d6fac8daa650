"""
controlmap - map Debian-style control paragraphs to dataclasses and back.

Usage:
    from dataclasses import dataclass
    from controlmap import control_field, unmarshal, dumps

    @dataclass
    class Source:
        name: str = control_field("Source", required=True, default="")
        uploaders: list[str] = control_field("Uploaders", delim=", ", default_factory=list)

    src = unmarshal(Source(), open("debian/control"))
    print(dumps(src))
"""

from controlmap.codecs import Codec, CodecRegistry, default_registry, register_codec
from controlmap.debian import Arch, Dependency, Version
from controlmap.decode import decode, decode_as, new_record, unmarshal, unmarshal_all
from controlmap.encode import Encoder, dumps, encode_record, marshal
from controlmap.errors import (
    CodecError,
    ControlError,
    ConversionError,
    ParseError,
    RequiredFieldError,
    SchemaError,
    UnsupportedTypeError,
)
from controlmap.paragraph import Paragraph
from controlmap.reader import ParagraphReader
from controlmap.schema import FieldKind, FieldSchema, RecordSchema, control_field, resolve_schema

__all__ = [
    "Arch",
    "Codec",
    "CodecError",
    "CodecRegistry",
    "ControlError",
    "ConversionError",
    "Dependency",
    "Encoder",
    "FieldKind",
    "FieldSchema",
    "Paragraph",
    "ParagraphReader",
    "ParseError",
    "RecordSchema",
    "RequiredFieldError",
    "SchemaError",
    "UnsupportedTypeError",
    "Version",
    "control_field",
    "decode",
    "decode_as",
    "default_registry",
    "dumps",
    "encode_record",
    "marshal",
    "new_record",
    "register_codec",
    "resolve_schema",
    "unmarshal",
    "unmarshal_all",
]
