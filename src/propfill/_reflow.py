"""Wrap a property value and render it back as drawer lines."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, replace

from propfill._property import (
    CONTINUATION_MARKER,
    ESCAPE_NEWLINE,
    InvalidWidth,
    validate_name,
)

DEFAULT_TARGET_WIDTH = 70


@dataclass(frozen=True)
class FormattingConfig:
    target_width: int = DEFAULT_TARGET_WIDTH

    def with_width(self, target_width: int) -> FormattingConfig:
        return replace(self, target_width=target_width)


def prefix_length(name: str) -> int:
    """Columns taken by ``:NAME+: `` ahead of the value text."""
    return 2 + len(name) + 2


def effective_width(name: str, config: FormattingConfig) -> int:
    width = config.target_width - prefix_length(name)
    if width <= 0:
        raise InvalidWidth(
            f"target width {config.target_width} leaves no room for "
            f"property {name!r} (prefix needs {prefix_length(name)} columns)"
        )
    return width


def split_segments(value: str) -> list[str]:
    """Split *value* on literal ``\\n`` markers, keeping each marker.

    The first character never starts a split. Every segment after the
    first begins with the marker, so joining the segments gives back
    *value* unchanged.
    """
    if not value:
        return [""]
    head, rest = value[0], value[1:]
    pieces = rest.split(ESCAPE_NEWLINE)
    segments = [head + pieces[0]]
    segments.extend(ESCAPE_NEWLINE + piece for piece in pieces[1:])
    return segments


def _wrap_segment(segment: str, width: int) -> list[str]:
    text = segment.strip()
    lines = textwrap.wrap(
        text,
        width=width,
        break_long_words=False,
        break_on_hyphens=False,
    )
    return lines or [""]


def wrap(value: str, name: str, config: FormattingConfig) -> list[list[str]]:
    """Wrap each ``\\n``-delimited segment of *value* independently.

    Returns one list of lines per segment, never an empty list.
    """
    width = effective_width(name, config)
    return [_wrap_segment(seg, width) for seg in split_segments(value)]


def format_lines(name: str, wrapped: list[list[str]]) -> list[str]:
    """Render wrapped segments as a primary record plus continuation records."""
    validate_name(name)
    flat = [line for segment in wrapped for line in segment] or [""]
    primary = f":{name}: {flat[0]}"
    rest = [f":{name}{CONTINUATION_MARKER}: {line}" for line in flat[1:]]
    return [primary] + rest


def reflow(
    name: str, value: str, config: FormattingConfig, indent: str = ""
) -> list[str]:
    """Wrap *value* and render it as drawer lines, each prefixed with *indent*.

    The indentation counts against the target width.
    """
    if indent:
        config = config.with_width(config.target_width - len(indent))
    rendered = format_lines(name, wrap(value, name, config))
    return [(indent + line).rstrip() for line in rendered]
