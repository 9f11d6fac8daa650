"""
Streaming Encoder Tests - Records written one after another, blank-line separated.
"""

import io
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pytest

from controlmap.encode import Encoder
from controlmap.errors import ConversionError, UnsupportedTypeError
from controlmap.reader import ParagraphReader
from controlmap.schema import control_field


@dataclass
class Entry:
    package: str = control_field("Package", default="")
    size: int = control_field("Size", default=0)


class TestStreamEncoder:

    def test_single_record_no_separator(self):
        buf = io.StringIO()
        Encoder(buf).encode(Entry("a", 1))
        assert buf.getvalue() == "Package: a\nSize: 1\n"

    def test_two_records_one_blank_line(self):
        buf = io.StringIO()
        enc = Encoder(buf)
        enc.encode(Entry("a", 1))
        enc.encode(Entry("b", 2))

        out = buf.getvalue()
        assert out == "Package: a\nSize: 1\n\nPackage: b\nSize: 2\n"
        assert not out.startswith("\n")
        assert not out.endswith("\n\n")
        assert out.count("\n\n") == 1

    def test_list_encoded_in_order(self):
        buf = io.StringIO()
        Encoder(buf).encode([Entry("a"), Entry("b"), Entry("c")])
        paras = ParagraphReader.parse(buf.getvalue())
        assert [p["Package"] for p in paras] == ["a", "b", "c"]
        assert buf.getvalue().count("\n\n") == 2

    def test_tuple_accepted(self):
        buf = io.StringIO()
        Encoder(buf).encode((Entry("a"), Entry("b")))
        assert len(ParagraphReader.parse(buf.getvalue())) == 2

    def test_separator_carries_across_calls(self):
        buf = io.StringIO()
        enc = Encoder(buf)
        enc.encode([Entry("a")])
        enc.encode([Entry("b")])
        assert buf.getvalue() == "Package: a\nSize: 0\n\nPackage: b\nSize: 0\n"

    def test_records_written_count(self):
        enc = Encoder(io.StringIO())
        assert enc.records_written == 0
        enc.encode(Entry("a"))
        assert enc.records_written == 1
        enc.encode([Entry("b"), Entry("c")])
        assert enc.records_written == 3

    def test_empty_list_writes_nothing(self):
        buf = io.StringIO()
        enc = Encoder(buf)
        enc.encode([])
        assert buf.getvalue() == ""
        assert enc.records_written == 0

    def test_nested_sequence_rejected(self):
        with pytest.raises(UnsupportedTypeError):
            Encoder(io.StringIO()).encode([[Entry("a")]])

    def test_write_to_file(self):
        with tempfile.NamedTemporaryFile(suffix=".control", delete=False) as f:
            path = f.name

        with open(path, "w", encoding="utf-8") as handle:
            enc = Encoder(handle)
            for i in range(50):
                enc.encode(Entry(f"pkg-{i}", i))

        paras = ParagraphReader.read(path)
        assert len(paras) == 50
        assert paras[0]["Package"] == "pkg-0"
        assert paras[49]["Size"] == "49"

        Path(path).unlink()


class TestStreamFailure:

    def test_failure_aborts_remaining(self):
        buf = io.StringIO()
        enc = Encoder(buf)
        with pytest.raises(ConversionError):
            enc.encode([Entry("a"), Entry("b", size="x"), Entry("c")])

        assert buf.getvalue() == "Package: a\nSize: 0\n"
        assert enc.records_written == 1

    def test_failed_first_record_leaves_no_separator(self):
        buf = io.StringIO()
        enc = Encoder(buf)
        with pytest.raises(ConversionError):
            enc.encode(Entry("a", size="x"))
        enc.encode(Entry("b"))
        assert buf.getvalue() == "Package: b\nSize: 0\n"
