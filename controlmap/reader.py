"""
Paragraph Reader - Tokenize control text into Paragraphs.

Handles:
  - "Key: value" lines, keys unique per paragraph
  - Continuation lines (leading space or tab) joined with "\\n"
  - " ." continuation lines as empty lines
  - "#" comment lines, ignored
  - Blank lines between paragraphs (runs of them collapse)

Usage:
    para = ParagraphReader.parse_one("Package: hello\\nVersion: 1.0\\n")

    for para in ParagraphReader.iter_paragraphs(handle):
        ...
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, TextIO

from controlmap.errors import ParseError
from controlmap.paragraph import Paragraph
from controlmap.spec import (
    COMMENT_PREFIX,
    CONTINUATION_CHARS,
    EMPTY_LINE_MARKER,
    KEY_SEPARATOR,
)


class ParagraphReader:
    """
    Control text reader.

    Usage:
        # Every paragraph in a string or text stream
        paras = ParagraphReader.parse(text)

        # First paragraph only
        para = ParagraphReader.parse_one(text)

        # From a file
        paras = ParagraphReader.read("debian/control")
    """

    @classmethod
    def read(cls, path: str | Path) -> list[Paragraph]:
        """Parse every paragraph of a control file."""
        with open(path, "r", encoding="utf-8") as f:
            return list(cls.iter_paragraphs(f))

    @classmethod
    def parse(cls, source: str | TextIO) -> list[Paragraph]:
        return list(cls.iter_paragraphs(source))

    @classmethod
    def parse_one(cls, source: str | TextIO) -> Paragraph:
        """Parse the first paragraph. An input with no paragraph yields an empty one."""
        for para in cls.iter_paragraphs(source):
            return para
        return Paragraph()

    @classmethod
    def iter_paragraphs(cls, source: str | TextIO | Iterable[str]) -> Iterator[Paragraph]:
        """Lazily yield paragraphs in input order."""
        lines = source.splitlines() if isinstance(source, str) else source

        current = Paragraph()
        last_key: str | None = None

        for line_number, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")

            # Paragraph boundary
            if not line.strip():
                if len(current):
                    yield current
                current = Paragraph()
                last_key = None
                continue

            if line.startswith(COMMENT_PREFIX):
                continue

            # Continuation of the previous value
            if line.startswith(CONTINUATION_CHARS):
                if last_key is None:
                    raise ParseError("continuation line before any field", line_number)
                text = line[1:]
                if text.strip() == EMPTY_LINE_MARKER:
                    text = ""
                current.set(last_key, current[last_key] + "\n" + text)
                continue

            if KEY_SEPARATOR not in line:
                raise ParseError(f"expected 'Key: value', got {line!r}", line_number)

            key, value = line.split(KEY_SEPARATOR, 1)
            key = key.strip()
            if not key:
                raise ParseError(f"empty field name in {line!r}", line_number)
            if key in current:
                raise ParseError(f"duplicate field {key!r}", line_number)

            current.set(key, value.strip())
            last_key = key

        if len(current):
            yield current
