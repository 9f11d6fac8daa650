"""
Codec Registry - parse/format functions for custom value types.

Any type that is not a built-in scalar (str, int), a list, a nested record
or a Paragraph is mapped through a codec looked up by the type itself.

Usage:
    from controlmap.codecs import default_registry, register_codec

    register_codec(Version, Version.parse, str)

    @default_registry.codec(parse=Arch.parse)
    class Arch:
        ...

Registration happens at import time, before any record using the type is
decoded or encoded. Lookups are read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

ParseFn = Callable[[str], Any]
FormatFn = Callable[[Any], str]


@dataclass(frozen=True)
class Codec:
    """A parse/format pair for one value type."""
    shape: type
    parse: ParseFn
    format: FormatFn


class CodecRegistry:
    """Lookup from value type to its Codec."""

    def __init__(self) -> None:
        self._codecs: dict[type, Codec] = {}

    def register(self, shape: type, parse: ParseFn, format: FormatFn = str) -> Codec:
        """Bind parse/format functions to a type. A second binding replaces the first."""
        if not isinstance(shape, type):
            raise TypeError(f"codec shape must be a type, got {shape!r}")
        if shape in self._codecs:
            logger.debug("replacing codec for %s", shape.__qualname__)
        codec = Codec(shape=shape, parse=parse, format=format)
        self._codecs[shape] = codec
        logger.debug("registered codec for %s", shape.__qualname__)
        return codec

    def codec(self, parse: ParseFn | None = None, format: FormatFn = str) -> Callable[[type], type]:
        """
        Class decorator form of register().

        Without an explicit parse function the class's own ``parse``
        classmethod is used.
        """
        def decorator(cls: type) -> type:
            self.register(cls, parse or cls.parse, format)
            return cls
        return decorator

    def lookup(self, shape: type) -> Codec | None:
        return self._codecs.get(shape)

    def __contains__(self, shape: object) -> bool:
        return shape in self._codecs

    def __len__(self) -> int:
        return len(self._codecs)

    def __repr__(self) -> str:
        names = ", ".join(s.__qualname__ for s in self._codecs)
        return f"CodecRegistry([{names}])"


default_registry = CodecRegistry()


def register_codec(shape: type, parse: ParseFn, format: FormatFn = str) -> Codec:
    """Register a codec on the default registry."""
    return default_registry.register(shape, parse, format)
