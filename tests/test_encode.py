"""
Encoder Tests - Records into Paragraphs and control text.
"""

import io
from dataclasses import dataclass, field
from typing import Optional

import pytest

from controlmap.codecs import CodecRegistry
from controlmap.debian import Arch, Dependency, Version
from controlmap.decode import decode_as
from controlmap.encode import dumps, encode_record, marshal
from controlmap.errors import CodecError, ConversionError, UnsupportedTypeError
from controlmap.paragraph import Paragraph
from controlmap.reader import ParagraphReader
from controlmap.schema import control_field


@dataclass
class Checksums:
    md5: str = control_field("MD5sum", default="")
    size: int = control_field("Size", default=0)


@dataclass
class Binary:
    package: str = control_field("Package", required=True, default="")
    version: Optional[Version] = control_field("Version", default=None)
    architecture: list[Arch] = control_field("Architecture", default_factory=list)
    depends: Optional[Dependency] = control_field("Depends", default=None)
    tags: list[str] = control_field("Tag", delim=", ", default_factory=list)
    installed_size: int = control_field("Installed-Size", default=0)
    checksums: Checksums = field(default_factory=Checksums)
    internal: str = control_field("-", default="untouched")


@dataclass
class Source:
    package: str = control_field("Package", default="")
    description: str = control_field("Description", default="")
    extra: Paragraph = field(default_factory=Paragraph)


@dataclass
class Counts:
    sizes: list[int] = control_field("Sizes", default_factory=list)
    names: list[str] = control_field("Names", delim=", ", default_factory=list)


@dataclass
class Release:
    package: str = control_field("Package", default="")
    version: Optional[Version] = control_field("Version", default=None)
    sizes: list[int] = control_field("Sizes", default_factory=list)
    extra: Paragraph = field(default_factory=Paragraph)


class Colour:
    def __init__(self, name=""):
        self.name = name


@dataclass
class Painted:
    colour: Colour = field(default_factory=Colour)


@dataclass
class Palette:
    colours: list[Colour] = field(default_factory=list)


@pytest.fixture
def binary():
    return Binary(
        package="hello",
        version=Version("2.10", epoch=1, revision="3"),
        architecture=[Arch.parse("amd64"), Arch.parse("i386")],
        depends=Dependency.parse("libc6 (>= 2.34), foo | bar [!hurd-i386]"),
        tags=["a", "b", "c"],
        installed_size=280,
        checksums=Checksums(md5="abc", size=1024),
        internal="secret",
    )


class TestEncodeRecord:

    def test_declaration_order(self, binary):
        para = encode_record(binary)
        assert para.order == [
            "Package", "Version", "Architecture", "Depends", "Tag",
            "Installed-Size", "MD5sum", "Size",
        ]

    def test_values(self, binary):
        para = encode_record(binary)
        assert para["Package"] == "hello"
        assert para["Version"] == "1:2.10-3"
        assert para["Architecture"] == "amd64 i386"
        assert para["Depends"] == "libc6 (>= 2.34), foo | bar [!hurd-i386]"
        assert para["Tag"] == "a, b, c"
        assert para["Installed-Size"] == "280"
        assert para["Size"] == "1024"

    def test_none_optional_omitted(self):
        para = encode_record(Binary(package="x"))
        assert "Version" not in para
        assert "Depends" not in para

    def test_zero_values_emitted(self):
        para = encode_record(Binary(package="x"))
        assert para["Installed-Size"] == "0"

    def test_empty_lists_omitted(self):
        para = encode_record(Binary(package="x"))
        assert "Tag" not in para
        assert "Architecture" not in para

    def test_skip_never_emitted(self, binary):
        para = encode_record(binary)
        assert "-" not in para
        assert "internal" not in para
        assert "secret" not in para.to_text()

    def test_no_duplicate_keys(self, binary):
        para = encode_record(binary)
        assert len(para.order) == len(set(para.order))


class TestEncodeErrors:

    def test_unregistered_shape(self):
        with pytest.raises(UnsupportedTypeError) as info:
            encode_record(Painted())
        assert info.value.field == "colour"

    def test_unregistered_element_even_when_empty(self):
        with pytest.raises(UnsupportedTypeError):
            encode_record(Palette())

    def test_sequence_rejected(self, binary):
        with pytest.raises(UnsupportedTypeError):
            encode_record([binary, binary])

    def test_non_record_rejected(self):
        with pytest.raises(UnsupportedTypeError):
            encode_record("Package: hello")

    def test_type_rejected(self):
        with pytest.raises(UnsupportedTypeError):
            encode_record(Binary)

    def test_wrong_scalar_type(self):
        with pytest.raises(ConversionError) as info:
            encode_record(Binary(package="x", installed_size="12"))
        assert info.value.field == "installed_size"

    def test_list_field_needs_list(self):
        with pytest.raises(ConversionError, match="expected a list"):
            encode_record(Binary(package="x", tags="a, b"))

    def test_format_failure_wrapped(self):
        def explode(colour):
            raise RuntimeError("no ink")

        registry = CodecRegistry()
        registry.register(Colour, Colour, explode)
        with pytest.raises(CodecError, match="failed to format colour") as info:
            encode_record(Painted(), codecs=registry)
        assert isinstance(info.value.__cause__, RuntimeError)
        assert info.value.action == "format"

    def test_local_registry(self):
        registry = CodecRegistry()
        registry.register(Colour, Colour, lambda c: c.name)
        para = encode_record(Palette([Colour("red"), Colour("blue")]), codecs=registry)
        assert para["colours"] == "red blue"


class TestPassthroughMerge:

    def test_unmodeled_key_preserved(self):
        src = Source(package="hello", extra=Paragraph({"X-Vcs": "git"}))
        assert encode_record(src)["X-Vcs"] == "git"

    def test_record_field_wins(self):
        src = Source(package="new", extra=Paragraph({"Package": "old", "X-Vcs": "git"}))
        para = encode_record(src)
        assert para["Package"] == "new"
        assert para.items() == [("Package", "new"), ("X-Vcs", "git"), ("Description", "")]

    def test_fields_missing_from_passthrough_appended_after_it(self):
        src = Source(package="hello", description="d", extra=Paragraph({"X-Vcs": "git", "X-Team": "t"}))
        assert encode_record(src).order == ["X-Vcs", "X-Team", "Package", "Description"]

    def test_passthrough_untouched(self):
        extra = Paragraph({"Package": "old"})
        encode_record(Source(package="new", extra=extra))
        assert extra["Package"] == "old"

    def test_decode_then_encode_keeps_source_order(self):
        text = "X-First: 1\nDescription: d\nPackage: p\nX-Last: 2\n"
        src = decode_as(Source, ParagraphReader.parse_one(text))
        src.package = "changed"
        assert encode_record(src).to_text() == "X-First: 1\nDescription: d\nPackage: changed\nX-Last: 2\n"

    def test_cleared_optional_field_not_restored(self):
        r = decode_as(Release, Paragraph({"Package": "p", "Version": "1.0", "X-Kept": "k"}))
        r.version = None
        para = encode_record(r)
        assert "Version" not in para
        assert para.items() == [("Package", "p"), ("X-Kept", "k")]

    def test_emptied_list_not_restored(self):
        r = decode_as(Release, Paragraph({"Package": "p", "Sizes": "1 2"}))
        r.sizes = []
        assert "Sizes" not in encode_record(r)


class TestRoundTrip:

    @pytest.mark.parametrize("record", [
        Binary(package="x"),
        Binary(package="x", tags=[], architecture=[]),
        Counts(),
    ])
    def test_empty_lists(self, record):
        back = decode_as(type(record), encode_record(record))
        assert back == record

    def test_empty_lists_through_text(self):
        b = Binary(package="x")
        back = decode_as(Binary, ParagraphReader.parse_one(dumps(b)))
        assert back.tags == []
        assert back.architecture == []

    def test_record(self, binary):
        binary.internal = "untouched"
        assert decode_as(Binary, encode_record(binary)) == binary

    def test_through_text(self, binary):
        binary.internal = "untouched"
        text = dumps(binary)
        assert decode_as(Binary, ParagraphReader.parse_one(text)) == binary

    def test_delimiter_fidelity(self):
        b = decode_as(Binary, Paragraph({"Package": "x", "Tag": "a, b, c"}))
        assert b.tags == ["a", "b", "c"]
        assert encode_record(b)["Tag"] == "a, b, c"

    def test_multiline_value(self):
        src = Source(package="p", description="summary\nline one\n\nline two")
        back = decode_as(Source, ParagraphReader.parse_one(dumps(src)))
        assert back.description == src.description


class TestMarshal:

    def test_marshal_single(self):
        buf = io.StringIO()
        marshal(buf, Source(package="p", description="d"))
        assert buf.getvalue() == "Package: p\nDescription: d\n"

    def test_dumps_list(self):
        text = dumps([Source(package="a"), Source(package="b")])
        assert text == "Package: a\nDescription:\n\nPackage: b\nDescription:\n"
