"""Property names, record lines and the errors raised around them."""

from __future__ import annotations

import re
from dataclasses import dataclass

CONTINUATION_MARKER = "+"
ESCAPE_NEWLINE = "\\n"

# Drawer delimiters look like records but never are
DRAWER_OPEN = "PROPERTIES"
DRAWER_CLOSE = "END"

_RECORD_RE = re.compile(r"^(?P<indent>[ \t]*):(?P<name>[^\s:]+):(?:[ \t]+(?P<value>.*?))?[ \t]*$")
_NAME_RE = re.compile(r"^[^\s:]+$")


class PropertyError(ValueError):
    """Base class for property editing errors."""


class MalformedName(PropertyError):
    """Property name is empty or contains a colon or whitespace."""


class InvalidWidth(PropertyError):
    """Target width leaves no room for the value after the key prefix."""


class PropertyNotFound(PropertyError):
    """No primary record exists for the requested property."""


@dataclass(frozen=True)
class PropertyName:
    base: str
    is_continuation: bool = False

    @classmethod
    def parse(cls, token: str) -> PropertyName:
        """Split ``FOO+`` into ``PropertyName("FOO", True)``."""
        if not token or not _NAME_RE.match(token):
            raise MalformedName(f"invalid property name: {token!r}")
        if token.endswith(CONTINUATION_MARKER):
            base = token[: -len(CONTINUATION_MARKER)]
            if not base:
                raise MalformedName(f"invalid property name: {token!r}")
            return cls(base, True)
        return cls(token, False)

    def render(self) -> str:
        return self.base + CONTINUATION_MARKER if self.is_continuation else self.base

    def continued(self) -> PropertyName:
        return PropertyName(self.base, True)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class PropertyRecord:
    """One ``:NAME: VALUE`` line of a property drawer."""

    indent: str
    name: PropertyName
    value: str

    def render(self) -> str:
        head = f"{self.indent}:{self.name.render()}:"
        return f"{head} {self.value}" if self.value else head


def validate_name(name: str) -> str:
    if not name or not _NAME_RE.match(name):
        raise MalformedName(f"invalid property name: {name!r}")
    return name


def is_drawer_open(line: str) -> bool:
    return line.strip().upper() == f":{DRAWER_OPEN}:"


def is_drawer_close(line: str) -> bool:
    return line.strip().upper() == f":{DRAWER_CLOSE}:"


def parse_record(line: str) -> PropertyRecord | None:
    """Parse a property line, or return None for anything else.

    Drawer delimiters and tokens such as ``:+:`` are not records.
    """
    m = _RECORD_RE.match(line)
    if not m:
        return None
    token = m.group("name")
    if token.upper() in (DRAWER_OPEN, DRAWER_CLOSE):
        return None
    try:
        name = PropertyName.parse(token)
    except MalformedName:
        return None
    return PropertyRecord(m.group("indent"), name, m.group("value") or "")
