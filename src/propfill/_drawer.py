"""Property drawer structure of an outline buffer.

All functions take the buffer as a list of lines and a zero-based row.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from propfill._property import (
    PropertyName,
    PropertyNotFound,
    PropertyRecord,
    is_drawer_close,
    is_drawer_open,
    parse_record,
)

HEADLINE_RE = re.compile(r"^(\*+)\s")

NODE_PROPERTY = "node-property"
PROPERTY_DRAWER = "property-drawer"
HEADLINE = "headline"
PARAGRAPH = "paragraph"
BLANK = "blank"


@dataclass(frozen=True)
class Element:
    type: str
    key: str = ""


@dataclass(frozen=True)
class PropertyContext:
    row: int
    drawer: tuple[int, int]
    record: PropertyRecord

    @property
    def name(self) -> PropertyName:
        return self.record.name


@dataclass(frozen=True)
class GenericContext:
    row: int


def is_headline(line: str) -> bool:
    return HEADLINE_RE.match(line) is not None


def headline_level(line: str) -> int:
    m = HEADLINE_RE.match(line)
    return len(m.group(1)) if m else 0


def drawer_bounds(lines: list[str], row: int) -> tuple[int, int] | None:
    """Return ``(open_row, end_row)`` of the drawer around *row*.

    Both delimiter rows count as inside. Drawers never span a headline.
    """
    if not 0 <= row < len(lines):
        return None
    start = None
    r = row
    while r >= 0:
        line = lines[r]
        if is_drawer_open(line):
            start = r
            break
        if is_headline(line) or (is_drawer_close(line) and r != row):
            return None
        r -= 1
    if start is None:
        return None
    for r in range(max(row, start + 1), len(lines)):
        line = lines[r]
        if is_drawer_close(line):
            return (start, r)
        if is_headline(line) or is_drawer_open(line):
            return None
    return None


def element_at(lines: list[str], row: int) -> Element:
    """Classify the line at *row*."""
    if not 0 <= row < len(lines):
        return Element(BLANK)
    line = lines[row]
    if is_headline(line):
        return Element(HEADLINE)
    bounds = drawer_bounds(lines, row)
    if bounds is not None:
        if row in bounds:
            return Element(PROPERTY_DRAWER)
        record = parse_record(line)
        if record is not None:
            return Element(NODE_PROPERTY, record.name.render())
    if not line.strip():
        return Element(BLANK)
    return Element(PARAGRAPH)


def detect_context(lines: list[str], row: int) -> PropertyContext | GenericContext:
    """Decide once whether *row* is a property record inside a drawer."""
    bounds = drawer_bounds(lines, row)
    if bounds is None or row in bounds:
        return GenericContext(row)
    record = parse_record(lines[row])
    if record is None:
        return GenericContext(row)
    return PropertyContext(row, bounds, record)


def is_in_property(lines: list[str], row: int) -> bool:
    return isinstance(detect_context(lines, row), PropertyContext)


# Fill and continuation-insert share one predicate
is_at_property = is_in_property


def _drawer_records(
    lines: list[str], bounds: tuple[int, int]
) -> list[tuple[int, PropertyRecord | None]]:
    start, end = bounds
    return [(r, parse_record(lines[r])) for r in range(start + 1, end)]


def property_span(lines: list[str], name: str, row: int) -> tuple[int, int]:
    """Return ``(first_row, last_row)`` of the logical property *name*.

    The span covers the primary record and the continuation records that
    directly follow it.
    """
    bounds = drawer_bounds(lines, row)
    if bounds is None:
        raise PropertyNotFound(f"no property drawer at line {row + 1}")
    records = _drawer_records(lines, bounds)
    for i, (r, record) in enumerate(records):
        if record is None or record.name != PropertyName(name):
            continue
        last = r
        for r2, nxt in records[i + 1 :]:
            if nxt is None or nxt.name != PropertyName(name, True):
                break
            last = r2
        return (r, last)
    raise PropertyNotFound(f"property {name!r} not found")


def get_logical_value(lines: list[str], name: str, row: int) -> str:
    """Join the values of the records of *name* with single spaces."""
    first, last = property_span(lines, name, row)
    values = []
    for r in range(first, last + 1):
        record = parse_record(lines[r])
        if record is not None and record.value:
            values.append(record.value)
    return " ".join(values)


def delete_property(lines: list[str], name: str, row: int) -> int:
    """Remove all records of *name* in place and return the first row."""
    first, last = property_span(lines, name, row)
    del lines[first : last + 1]
    return first
