"""Property fill and continuation commands for OutlineEditor."""

from __future__ import annotations

import logging
import re
import textwrap

from propfill._drawer import (
    PARAGRAPH,
    GenericContext,
    PropertyContext,
    delete_property,
    detect_context,
    element_at,
    get_logical_value,
    headline_level,
    property_span,
)
from propfill._property import PropertyError, parse_record
from propfill._reflow import FormattingConfig, reflow

logger = logging.getLogger(__name__)

_BULLET_RE = re.compile(r"^([ \t]*)([-+*]|\d+[.)])[ \t]+")


def fill_property(
    lines: list[str], ctx: PropertyContext, config: FormattingConfig
) -> tuple[list[str], int, int]:
    """Return a copy of *lines* with the property at *ctx* reflowed.

    Also returns the first row and the number of rendered lines. *lines*
    itself is never modified, so a failure leaves the buffer intact.
    """
    name = ctx.name.base
    first, _last = property_span(lines, name, ctx.row)
    primary = parse_record(lines[first])
    indent = primary.indent if primary is not None else ""
    value = get_logical_value(lines, name, ctx.row)
    rendered = reflow(name, value, config, indent)
    new_lines = lines[:]
    at = delete_property(new_lines, name, ctx.row)
    new_lines[at:at] = rendered
    return new_lines, at, len(rendered)


def continuation_line(ctx: PropertyContext) -> str:
    """Text of a new record continuing the property at *ctx*."""
    return f"{ctx.record.indent}:{ctx.name.continued().render()}: "


def paragraph_bounds(lines: list[str], row: int) -> tuple[int, int] | None:
    if element_at(lines, row).type != PARAGRAPH:
        return None
    start = row
    while start > 0 and element_at(lines, start - 1).type == PARAGRAPH:
        # a new list item starts its own paragraph
        if _BULLET_RE.match(lines[start]):
            break
        start -= 1
    end = row
    while end + 1 < len(lines) and element_at(lines, end + 1).type == PARAGRAPH:
        if _BULLET_RE.match(lines[end + 1]):
            break
        end += 1
    return start, end


def fill_paragraph_lines(
    lines: list[str], start: int, end: int, width: int
) -> list[str]:
    """Greedy-fill ``lines[start:end + 1]`` keeping the first line's indent."""
    first = lines[start]
    indent = first[: len(first) - len(first.lstrip())]
    bullet = _BULLET_RE.match(first)
    hanging = " " * len(bullet.group(0)) if bullet else indent
    text = " ".join(line.strip() for line in lines[start : end + 1])
    filled = textwrap.wrap(
        text,
        width=width,
        initial_indent=indent,
        subsequent_indent=hanging,
        break_long_words=False,
        break_on_hyphens=False,
    )
    return filled or [first]


class PropertyCommandsMixin:
    """Property drawer commands for OutlineEditor."""

    def _fill_at_cursor(self) -> None:
        """Reflow the property under the cursor, or fill the paragraph."""
        if self._check_readonly():
            return
        ctx = detect_context(self.lines, self.cursor_row)
        if isinstance(ctx, GenericContext):
            self._fill_paragraph()
            return
        try:
            new_lines, first, count = fill_property(
                self.lines, ctx, self.fill_config
            )
        except PropertyError as e:
            logger.warning("fill failed at line %d: %s", ctx.row + 1, e)
            self.status_msg = str(e)
            return
        if new_lines == self.lines:
            self.status_msg = "already filled"
            return
        self._save_undo()
        self.lines = new_lines
        self.cursor_row = first
        self.cursor_col = 0
        logger.debug("filled :%s: into %d line(s)", ctx.name.base, count)
        self.status_msg = f":{ctx.name.base}: filled ({count} lines)"

    def _insert_continuation(self) -> None:
        """Open a ``:NAME+:`` line below the property, or a new heading."""
        if self._check_readonly():
            return
        ctx = detect_context(self.lines, self.cursor_row)
        if isinstance(ctx, GenericContext):
            self._insert_heading()
            return
        text = continuation_line(ctx)
        self._save_undo()
        self.cursor_row = ctx.row + 1
        self.lines.insert(self.cursor_row, text)
        self.cursor_col = len(text)
        self._enter_insert()

    # -- Fallbacks ---------------------------------------------------------

    def _fill_paragraph(self) -> None:
        bounds = paragraph_bounds(self.lines, self.cursor_row)
        if bounds is None:
            self.status_msg = "nothing to fill"
            return
        start, end = bounds
        filled = fill_paragraph_lines(
            self.lines, start, end, self.fill_config.target_width
        )
        if filled == self.lines[start : end + 1]:
            self.status_msg = "already filled"
            return
        self._save_undo()
        self.lines[start : end + 1] = filled
        self.cursor_row = start
        self.cursor_col = 0
        self.status_msg = f"{len(filled)} lines filled"

    def _insert_heading(self) -> None:
        level = 1
        for r in range(self.cursor_row, -1, -1):
            found = headline_level(self.lines[r])
            if found:
                level = found
                break
        text = "*" * level + " "
        self._save_undo()
        self.cursor_row += 1
        self.lines.insert(self.cursor_row, text)
        self.cursor_col = len(text)
        self._enter_insert()
