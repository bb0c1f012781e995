"""Modal outline editor widget."""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from enum import Enum, auto

from rich.text import Text
from textual import events
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget

from propfill._commands import PropertyCommandsMixin
from propfill._drawer import HEADLINE_RE, drawer_bounds
from propfill._property import (
    ESCAPE_NEWLINE,
    InvalidWidth,
    is_drawer_close,
    is_drawer_open,
    parse_record,
)
from propfill._reflow import FormattingConfig

logger = logging.getLogger(__name__)

_SET_WIDTH_RE = re.compile(r"^(?:tw|textwidth|fc|fillcolumn)(?:=(\d+)|(\?))$")


class EditorMode(Enum):
    NORMAL = auto()
    INSERT = auto()
    COMMAND = auto()


class OutlineEditor(PropertyCommandsMixin, Widget, can_focus=True):
    """A modal outline editor Textual widget.

    Supported commands:
      NORMAL: h j k l  0 $ ^  gg G  i a A o O  x dd  u ctrl+r
              gq (fill property / paragraph)  g+ (continue property)
      INSERT: typing / Backspace / Enter / Tab / ctrl+j / Escape
      COMMAND: :w :q :q! :wq :x :e :fill :cont :set tw=N
    """

    DEFAULT_CSS = """
    OutlineEditor {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    mode: reactive[EditorMode] = reactive(EditorMode.NORMAL)

    # -- Messages ----------------------------------------------------------

    @dataclass
    class FileSaveRequested(Message):
        content: str
        file_path: str  # empty string means save to current file
        quit_after: bool = False

    @dataclass
    class FileOpenRequested(Message):
        file_path: str

    @dataclass
    class Quit(Message):
        pass

    @dataclass
    class ForceQuit(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        initial_content: str = "",
        *,
        fill_config: FormattingConfig | None = None,
        read_only: bool = False,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.read_only: bool = read_only
        self.fill_config: FormattingConfig = fill_config or FormattingConfig()
        self.lines: list[str] = initial_content.split("\n") if initial_content else [""]
        self.cursor_row: int = 0
        self.cursor_col: int = 0
        self._mode: EditorMode = EditorMode.NORMAL
        self.command_buffer: str = ""
        self.pending: str = ""
        self.status_msg: str = ""
        self.undo_stack: list[tuple[list[str], int, int]] = []
        self.redo_stack: list[tuple[list[str], int, int]] = []
        self._undo_max: int = 200
        self._scroll_top: int = 0
        self._char_width_cache: dict[str, int] = {}

    # -- Helpers -----------------------------------------------------------

    def _check_readonly(self) -> bool:
        """Check if read-only and set status. Returns True if read-only."""
        if self.read_only:
            self.status_msg = "[readonly]"
        return self.read_only

    def _save_undo(self) -> None:
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        if len(self.undo_stack) > self._undo_max:
            self.undo_stack.pop(0)
        if self.redo_stack:
            self.redo_stack.clear()

    def _clamp_cursor(self) -> None:
        self.cursor_row = max(0, min(self.cursor_row, len(self.lines) - 1))
        line_len = len(self.lines[self.cursor_row])
        if self._mode == EditorMode.NORMAL:
            max_col = max(0, line_len - 1) if line_len else 0
        else:
            max_col = line_len
        self.cursor_col = max(0, min(self.cursor_col, max_col))

    def _char_width(self, ch: str) -> int:
        """Return display width of a character (2 for fullwidth/wide)."""
        if ch < "\u0100":
            return 1
        w = self._char_width_cache.get(ch)
        if w is None:
            w = 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1
            self._char_width_cache[ch] = w
        return w

    def _make_segments(self, line: str, avail: int) -> list[tuple[int, int]]:
        """Break *line* into soft-wrapped pieces of at most *avail* columns."""
        if not line:
            return [(0, 0)]
        segs: list[tuple[int, int]] = []
        seg_start = 0
        w = 0
        for i, ch in enumerate(line):
            cw = self._char_width(ch)
            if w + cw > avail and i > seg_start:
                segs.append((seg_start, i))
                seg_start = i
                w = cw
            else:
                w += cw
        segs.append((seg_start, len(line)))
        return segs

    def _ensure_cursor_visible(self, avail: int, content_height: int) -> None:
        if self.cursor_row < self._scroll_top:
            self._scroll_top = self.cursor_row
            return
        rows = 0
        for idx in range(self.cursor_row, -1, -1):
            rows += len(self._make_segments(self.lines[idx], avail))
            if rows > content_height:
                self._scroll_top = max(self._scroll_top, idx + 1)
                return

    # -- Public API --------------------------------------------------------

    def get_content(self) -> str:
        return "\n".join(self.lines)

    def set_content(self, content: str) -> None:
        self.lines = content.split("\n") if content else [""]
        self.cursor_row = 0
        self.cursor_col = 0
        self._scroll_top = 0
        self.refresh()

    def set_fill_width(self, width: int) -> None:
        if width <= 0:
            raise InvalidWidth(f"target width must be positive, got {width}")
        self.fill_config = self.fill_config.with_width(width)

    # =====================================================================
    # Rendering
    # =====================================================================

    _MODE_STYLE = {
        EditorMode.NORMAL: "bold white on dark_green",
        EditorMode.INSERT: "bold white on dark_blue",
        EditorMode.COMMAND: "bold white on dark_red",
    }
    _HEADLINE_STYLES = ("bold blue", "bold yellow", "bold cyan", "bold magenta")

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 3 or width < 10:
            return Text("(too small)")

        content_height = height - 2
        ln_width = max(3, len(str(len(self.lines))))
        prefix_w = ln_width + 1
        avail = max(1, width - prefix_w)
        self._ensure_cursor_visible(avail, content_height)

        result = Text()
        rows_used = 0
        line_idx = self._scroll_top
        gutter_pad = " " * prefix_w
        while rows_used < content_height and line_idx < len(self.lines):
            line = self.lines[line_idx]
            styles = self._compute_line_styles(line_idx)
            is_cursor_line = line_idx == self.cursor_row
            for si, (s, e) in enumerate(self._make_segments(line, avail)):
                if rows_used >= content_height:
                    break
                if si == 0:
                    ln_style = "bold yellow" if is_cursor_line else "dim"
                    result.append(f"{line_idx + 1:>{ln_width}} ", style=ln_style)
                else:
                    result.append(gutter_pad)
                for c in range(s, e):
                    style = styles[c]
                    if is_cursor_line and c == self.cursor_col:
                        style = f"{style} reverse"
                    result.append(line[c], style=style)
                if is_cursor_line and self.cursor_col >= len(line) and e == len(line):
                    result.append(" ", style="reverse")
                result.append("\n")
                rows_used += 1
            line_idx += 1

        while rows_used < content_height:
            result.append(f"{'~':>{prefix_w - 1}} \n", style="dim blue")
            rows_used += 1

        mode_label = f" {self._mode.name} "
        result.append(mode_label, style=self._MODE_STYLE[self._mode])
        if self.read_only:
            result.append(" RO ", style="bold white on grey37")
        if self.pending:
            result.append(f"  {self.pending}", style="bold yellow")
        pos = (
            f" tw={self.fill_config.target_width}"
            f"  Ln {self.cursor_row + 1}/{len(self.lines)}, Col {self.cursor_col + 1} "
        )
        spacer = max(
            0,
            width
            - len(mode_label)
            - (4 if self.read_only else 0)
            - len(pos)
            - len(self.status_msg)
            - 4,
        )
        result.append(f"  {self.status_msg}" + " " * spacer)
        result.append(pos, style="bold")

        if self._mode == EditorMode.COMMAND:
            result.append(f"\n:{self.command_buffer}", style="bold yellow")
            result.append(" ", style="reverse")
        else:
            result.append("\n")
        return result

    def _compute_line_styles(self, row: int) -> list[str]:
        """Highlight headlines, drawer delimiters, property keys and markers."""
        line = self.lines[row]
        n = len(line)
        if n == 0:
            return []
        m = HEADLINE_RE.match(line)
        if m:
            level = len(m.group(1))
            return [self._HEADLINE_STYLES[(level - 1) % len(self._HEADLINE_STYLES)]] * n
        styles = ["white"] * n
        if is_drawer_open(line) or is_drawer_close(line):
            return ["dim magenta"] * n
        record = parse_record(line)
        if record is None or drawer_bounds(self.lines, row) is None:
            return styles
        key_start = len(record.indent)
        key_end = key_start + len(record.name.render()) + 2
        key_style = "italic cyan" if record.name.is_continuation else "bold cyan"
        for i in range(key_start, min(key_end, n)):
            styles[i] = key_style
        for i in range(key_end, n):
            styles[i] = "green"
        pos = line.find(ESCAPE_NEWLINE, key_end)
        while pos != -1:
            styles[pos] = styles[pos + 1] = "bold yellow"
            pos = line.find(ESCAPE_NEWLINE, pos + 2)
        return styles

    # =====================================================================
    # Key handling
    # =====================================================================

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()

        if self._mode == EditorMode.NORMAL:
            self._handle_normal(event)
        elif self._mode == EditorMode.INSERT:
            self._handle_insert(event)
        elif self._mode == EditorMode.COMMAND:
            self._handle_command(event)

        self._clamp_cursor()
        self.refresh()

    # -- NORMAL ------------------------------------------------------------

    def _enter_insert(self) -> None:
        if self.read_only:
            self.status_msg = "[readonly]"
            return
        self._mode = EditorMode.INSERT
        self.status_msg = "-- INSERT --"

    def _handle_normal(self, event: events.Key) -> None:
        key = event.key
        char = event.character or ""

        if self.pending:
            self._handle_pending(char, key)
            return

        # movement
        if char == "h" or key == "left":
            self.cursor_col -= 1
        elif char == "j" or key == "down":
            self.cursor_row += 1
        elif char == "k" or key == "up":
            self.cursor_row -= 1
        elif char == "l" or key == "right":
            self.cursor_col += 1
        elif char == "0":
            self.cursor_col = 0
        elif char == "$" or key == "end":
            self.cursor_col = max(0, len(self.lines[self.cursor_row]) - 1)
        elif char == "^" or key == "home":
            line = self.lines[self.cursor_row]
            self.cursor_col = len(line) - len(line.lstrip())
        elif char == "G":
            self.cursor_row = len(self.lines) - 1

        # enter insert mode
        elif char == "i":
            self._enter_insert()
        elif char == "a":
            self.cursor_col += 1
            self._enter_insert()
        elif char == "A":
            self.cursor_col = len(self.lines[self.cursor_row])
            self._enter_insert()
        elif char in ("o", "O"):
            if self._check_readonly():
                return
            self._save_undo()
            indent = self._current_indent()
            if char == "o":
                self.cursor_row += 1
            self.lines.insert(self.cursor_row, " " * indent)
            self.cursor_col = indent
            self._enter_insert()

        # single-key edits
        elif char == "x":
            if self._check_readonly():
                return
            line = self.lines[self.cursor_row]
            if line and self.cursor_col < len(line):
                self._save_undo()
                self.lines[self.cursor_row] = (
                    line[: self.cursor_col] + line[self.cursor_col + 1 :]
                )
        elif char == "u":
            if not self._check_readonly():
                self._undo()
        elif key == "ctrl+r":
            if not self._check_readonly():
                self._redo()

        # multi-key starters
        elif char in ("d", "g"):
            if char == "d" and self._check_readonly():
                return
            self.pending = char

        # command mode
        elif char == ":":
            self._mode = EditorMode.COMMAND
            self.command_buffer = ""
            self.status_msg = ""

    # -- Pending multi-char ------------------------------------------------

    def _handle_pending(self, char: str, key: str) -> None:
        if key == "escape" or not char:
            self.pending = ""
            self.status_msg = ""
            return

        combo = self.pending + char
        self.pending = ""

        if combo == "gg":
            self.cursor_row = 0
            self.cursor_col = 0
        elif combo == "gq":
            self._fill_at_cursor()
        elif combo == "g+":
            self._insert_continuation()
        elif combo == "dd":
            self._delete_line()

    # -- INSERT ------------------------------------------------------------

    def _handle_insert(self, event: events.Key) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.cursor_col = max(0, self.cursor_col - 1)
            self.status_msg = ""
            return

        if key == "ctrl+j":
            self._insert_continuation()
            return

        if key == "backspace":
            if self.cursor_col > 0:
                self._save_undo()
                line = self.lines[self.cursor_row]
                self.lines[self.cursor_row] = (
                    line[: self.cursor_col - 1] + line[self.cursor_col :]
                )
                self.cursor_col -= 1
            elif self.cursor_row > 0:
                self._save_undo()
                prev = self.lines[self.cursor_row - 1]
                self.cursor_col = len(prev)
                self.lines[self.cursor_row - 1] = prev + self.lines[self.cursor_row]
                self.lines.pop(self.cursor_row)
                self.cursor_row -= 1
            return

        if key == "enter":
            self._save_undo()
            line = self.lines[self.cursor_row]
            indent = self._current_indent()
            self.lines[self.cursor_row] = line[: self.cursor_col]
            self.cursor_row += 1
            self.lines.insert(self.cursor_row, " " * indent + line[self.cursor_col :])
            self.cursor_col = indent
            return

        if key == "tab":
            self._save_undo()
            line = self.lines[self.cursor_row]
            self.lines[self.cursor_row] = (
                line[: self.cursor_col] + "  " + line[self.cursor_col :]
            )
            self.cursor_col += 2
            return

        if key == "end":
            self.cursor_col = len(self.lines[self.cursor_row])
            return
        if key == "home":
            line = self.lines[self.cursor_row]
            self.cursor_col = len(line) - len(line.lstrip())
            return

        if key in ("left", "right", "up", "down"):
            delta = {"left": (0, -1), "right": (0, 1), "up": (-1, 0), "down": (1, 0)}
            dr, dc = delta[key]
            self.cursor_row += dr
            self.cursor_col += dc
            return

        if char and char.isprintable():
            self._save_undo()
            line = self.lines[self.cursor_row]
            self.lines[self.cursor_row] = (
                line[: self.cursor_col] + char + line[self.cursor_col :]
            )
            self.cursor_col += 1

    # -- COMMAND -----------------------------------------------------------

    def _handle_command(self, event: events.Key) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self.status_msg = ""
            return

        if key == "enter":
            cmd = self.command_buffer.strip()
            self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self._exec_command(cmd)
            return

        if key == "backspace":
            if self.command_buffer:
                self.command_buffer = self.command_buffer[:-1]
            else:
                self._mode = EditorMode.NORMAL
            return

        if char and char.isprintable():
            self.command_buffer += char

    def _exec_command(self, cmd: str) -> None:
        parts = cmd.split(None, 1)
        verb = parts[0] if parts else ""
        arg = parts[1].strip() if len(parts) > 1 else ""

        force = verb.endswith("!")
        if force:
            verb = verb[:-1]

        if not verb:
            return
        if verb == "w":
            if self._check_readonly():
                return
            self.post_message(
                self.FileSaveRequested(content=self.get_content(), file_path=arg)
            )
        elif verb == "q":
            self.post_message(self.ForceQuit() if force else self.Quit())
        elif verb in ("wq", "x"):
            if self.read_only:
                self.post_message(self.Quit())
                return
            self.post_message(
                self.FileSaveRequested(
                    content=self.get_content(), file_path=arg, quit_after=True
                )
            )
        elif verb == "e":
            if not arg:
                self.status_msg = "Usage: :e <file>"
            else:
                self.post_message(self.FileOpenRequested(file_path=arg))
        elif verb == "fill":
            self._fill_at_cursor()
        elif verb == "cont":
            self._insert_continuation()
        elif verb == "set":
            self._exec_set(arg)
        else:
            self.status_msg = f"unknown command: :{cmd}"

    def _exec_set(self, arg: str) -> None:
        m = _SET_WIDTH_RE.match(arg)
        if not m:
            self.status_msg = f"unknown option: {arg}"
            return
        if m.group(2):
            self.status_msg = f"textwidth={self.fill_config.target_width}"
            return
        try:
            self.set_fill_width(int(m.group(1)))
        except InvalidWidth as e:
            self.status_msg = str(e)
            return
        logger.info("fill width set to %d", self.fill_config.target_width)
        self.status_msg = f"textwidth={self.fill_config.target_width}"

    # -- Edit helpers ------------------------------------------------------

    def _current_indent(self) -> int:
        line = self.lines[self.cursor_row]
        return len(line) - len(line.lstrip()) if line.strip() else 0

    def _delete_line(self) -> None:
        self._save_undo()
        if len(self.lines) == 1:
            self.lines[0] = ""
        else:
            self.lines.pop(self.cursor_row)
            self.cursor_row = min(self.cursor_row, len(self.lines) - 1)
        self.cursor_col = 0

    def _undo(self) -> None:
        if not self.undo_stack:
            self.status_msg = "nothing to undo"
            return
        self.redo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.undo_stack.pop()
        self.status_msg = "undone"

    def _redo(self) -> None:
        if not self.redo_stack:
            self.status_msg = "nothing to redo"
            return
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.redo_stack.pop()
        self.status_msg = "redone"
