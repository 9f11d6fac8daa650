"""
Debian value types with codecs on the default registry.

    Version      -> "1:2.10-3"
    Arch         -> "amd64", "linux-any", "any", "all"
    Dependency   -> "libc6 (>= 2.34), foo | bar [amd64 !i386]"

Importing controlmap registers all three, so record fields can be typed
with them directly:

    @dataclass
    class Binary:
        package: str = control_field("Package", required=True)
        depends: Dependency | None = control_field("Depends", default=None)
        architecture: list[Arch] = control_field("Architecture", default_factory=list)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from controlmap.codecs import register_codec

_UPSTREAM = re.compile(r"[0-9][A-Za-z0-9.+~:-]*")
_REVISION = re.compile(r"[A-Za-z0-9.+~]+")
_ARCH = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
_POSSIBILITY = re.compile(
    r"(?P<name>[A-Za-z0-9][A-Za-z0-9+.-]*)"
    r"(?::(?P<archqual>[a-z0-9-]+))?"
    r"\s*(?:\(\s*(?P<op><<|<=|=|>=|>>)\s*(?P<version>[^\s)]+)\s*\))?"
    r"\s*(?:\[(?P<arches>[^\]]*)\])?"
)

VERSION_OPERATORS = ("<<", "<=", "=", ">=", ">>")


# =============================================================================
# Version
# =============================================================================

@dataclass(frozen=True)
class Version:
    """A Debian version: [epoch:]upstream[-revision]."""
    upstream: str
    epoch: int = 0
    revision: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        raw = text.strip()
        rest = raw
        epoch = 0
        if ":" in rest:
            head, rest = rest.split(":", 1)
            if not head.isdigit():
                raise ValueError(f"invalid epoch in version {raw!r}")
            epoch = int(head)

        upstream, revision = rest, ""
        if "-" in rest:
            upstream, revision = rest.rsplit("-", 1)
            if not _REVISION.fullmatch(revision):
                raise ValueError(f"invalid revision in version {raw!r}")

        if not _UPSTREAM.fullmatch(upstream):
            raise ValueError(f"invalid upstream version in {raw!r}")
        return cls(upstream=upstream, epoch=epoch, revision=revision)

    @property
    def is_native(self) -> bool:
        return not self.revision

    def __str__(self) -> str:
        out = self.upstream
        if self.epoch:
            out = f"{self.epoch}:{out}"
        if self.revision:
            out = f"{out}-{self.revision}"
        return out


# =============================================================================
# Arch
# =============================================================================

@dataclass(frozen=True)
class Arch:
    """
    An architecture name split into os and cpu.

    A bare cpu ("amd64") means linux; "any" and "all" are their own thing.
    """
    os: str
    cpu: str

    @classmethod
    def parse(cls, text: str) -> Arch:
        name = text.strip()
        if not _ARCH.fullmatch(name):
            raise ValueError(f"invalid architecture {text!r}")
        if name in ("any", "all"):
            return cls(os=name, cpu=name)
        if "-" not in name:
            return cls(os="linux", cpu=name)
        os, cpu = name.rsplit("-", 1)
        return cls(os=os, cpu=cpu)

    @property
    def is_wildcard(self) -> bool:
        return "any" in (self.os, self.cpu)

    def matches(self, other: Arch) -> bool:
        """True if this (possibly wildcard) arch covers other."""
        if self.os == "all" or other.os == "all":
            return self == other
        return self.os in ("any", other.os) and self.cpu in ("any", other.cpu)

    def __str__(self) -> str:
        if self.os == self.cpu and self.os in ("any", "all"):
            return self.os
        if self.os == "linux" and self.cpu != "any":
            return self.cpu
        return f"{self.os}-{self.cpu}"


# =============================================================================
# Dependency
# =============================================================================

@dataclass(frozen=True)
class VersionRelation:
    operator: str
    number: Version

    def __str__(self) -> str:
        return f"{self.operator} {self.number}"


@dataclass(frozen=True)
class ArchRestriction:
    arch: Arch
    negated: bool = False

    def __str__(self) -> str:
        return f"!{self.arch}" if self.negated else str(self.arch)


@dataclass(frozen=True)
class Possibility:
    """One package alternative: name[:archqual] [(op version)] [[arches]]."""
    name: str
    arch: Arch | None = None
    version: VersionRelation | None = None
    architectures: tuple[ArchRestriction, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Possibility:
        m = _POSSIBILITY.fullmatch(text.strip())
        if m is None:
            raise ValueError(f"invalid dependency {text.strip()!r}")

        arch = Arch.parse(m["archqual"]) if m["archqual"] else None
        version = None
        if m["op"]:
            version = VersionRelation(operator=m["op"], number=Version.parse(m["version"]))

        restrictions = []
        if m["arches"] is not None:
            tokens = m["arches"].split()
            if not tokens:
                raise ValueError(f"empty architecture restriction in {text.strip()!r}")
            for token in tokens:
                negated = token.startswith("!")
                restrictions.append(ArchRestriction(Arch.parse(token.lstrip("!")), negated))

        return cls(name=m["name"], arch=arch, version=version, architectures=tuple(restrictions))

    def __str__(self) -> str:
        out = self.name
        if self.arch is not None:
            out += f":{self.arch}"
        if self.version is not None:
            out += f" ({self.version})"
        if self.architectures:
            out += " [" + " ".join(str(r) for r in self.architectures) + "]"
        return out


@dataclass(frozen=True)
class Relation:
    """Alternatives separated by "|"; any one of them satisfies the relation."""
    possibilities: tuple[Possibility, ...]

    def __str__(self) -> str:
        return " | ".join(str(p) for p in self.possibilities)


@dataclass(frozen=True)
class Dependency:
    """Comma-separated relations, all of which must hold."""
    relations: tuple[Relation, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Dependency:
        relations = []
        for chunk in text.split(","):
            if not chunk.strip():
                continue
            relations.append(Relation(tuple(Possibility.parse(p) for p in chunk.split("|"))))
        return cls(relations=tuple(relations))

    def names(self) -> list[str]:
        """Every package name mentioned, in order, without duplicates."""
        seen = dict.fromkeys(p.name for r in self.relations for p in r.possibilities)
        return list(seen)

    def __str__(self) -> str:
        return ", ".join(str(r) for r in self.relations)


register_codec(Version, Version.parse)
register_codec(Arch, Arch.parse)
register_codec(Dependency, Dependency.parse)
