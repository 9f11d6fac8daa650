"""
Paragraph - ordered key/value record, the wire form of a control stanza.

Usage:
    para = Paragraph({"Package": "hello", "Version": "2.10-3"})
    para["Architecture"] = "amd64"

    merged = base.update(overlay)   # overlay wins, base order kept
    text = para.to_text()
"""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, TextIO

from controlmap.spec import EMPTY_LINE_MARKER, KEY_SEPARATOR


class Paragraph:
    """Ordered mapping of unique string keys to string values."""

    def __init__(self, values: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        self._values: dict[str, str] = {}
        if values is None:
            return
        items = values.items() if isinstance(values, Mapping) else values
        for key, value in items:
            self.set(key, value)

    @property
    def order(self) -> list[str]:
        return list(self._values)

    def set(self, key: str, value: str) -> None:
        """Set a value. New keys are appended, existing keys keep their position."""
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(f"Paragraph keys and values must be str, got {key!r}: {value!r}")
        self._values[key] = value

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def items(self) -> list[tuple[str, str]]:
        return list(self._values.items())

    def copy(self) -> Paragraph:
        return Paragraph(self._values)

    def update(self, overlay: Paragraph) -> Paragraph:
        """
        Merge overlay on top of this paragraph, returning a new Paragraph.

        Shared keys take the overlay value but keep their position here.
        Keys only in this paragraph keep their order. Keys only in the
        overlay are appended after every key of this paragraph, in overlay
        order. Neither input is modified.
        """
        merged = self.copy()
        for key, value in overlay.items():
            merged.set(key, value)
        return merged

    # -- text form --

    def to_text(self) -> str:
        """
        Serialize as control text. Multi-line values become continuation lines.

        The control format has no escaping, so two kinds of value do not
        survive a read back: a continuation line that is exactly "." reads
        back as an empty line, and whitespace around the first line is
        stripped by the reader.
        """
        lines = []
        for key, value in self._values.items():
            first, *rest = value.split("\n")
            lines.append(f"{key}{KEY_SEPARATOR} {first}" if first else f"{key}{KEY_SEPARATOR}")
            for line in rest:
                lines.append(f" {line}" if line else f" {EMPTY_LINE_MARKER}")
        return "".join(line + "\n" for line in lines)

    def write_to(self, writer: TextIO) -> None:
        writer.write(self.to_text())

    # -- mapping protocol --

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Paragraph):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"Paragraph({self._values!r})"
