"""Tests for OutlineEditor widget and its property commands."""

from types import SimpleNamespace

from propfill._reflow import FormattingConfig
from propfill.widget import EditorMode, OutlineEditor

DRAWER = """\
* Reading list
:PROPERTIES:
:DESC: Alpha beta gamma delta epsilon zeta
:END:
Trailing text"""


def _editor(content=DRAWER, width=20, row=2, **kwargs):
    editor = OutlineEditor(content, fill_config=FormattingConfig(width), **kwargs)
    editor.cursor_row = row
    return editor


def _key(editor, char, key=None):
    event = SimpleNamespace(key=key or char, character=char)
    if editor._mode == EditorMode.NORMAL:
        editor._handle_normal(event)
    elif editor._mode == EditorMode.INSERT:
        editor._handle_insert(event)
    else:
        editor._handle_command(event)


class TestEditorBasic:
    def test_init_empty(self):
        editor = OutlineEditor()
        assert editor.lines == [""]
        assert editor.cursor_row == 0
        assert editor.fill_config.target_width == 70

    def test_get_content(self):
        editor = OutlineEditor(DRAWER)
        assert editor.get_content() == DRAWER

    def test_set_content_resets_cursor(self):
        editor = _editor()
        editor.set_content("* New")
        assert editor.lines == ["* New"]
        assert editor.cursor_row == 0


class TestFillProperty:
    """gq: 프로퍼티 값 채우기."""

    def test_fill_wraps_value(self):
        editor = _editor()
        editor._fill_at_cursor()
        assert editor.lines == [
            "* Reading list",
            ":PROPERTIES:",
            ":DESC: Alpha beta",
            ":DESC+: gamma delta",
            ":DESC+: epsilon zeta",
            ":END:",
            "Trailing text",
        ]
        assert editor.cursor_row == 2
        assert editor.status_msg == ":DESC: filled (3 lines)"

    def test_fill_from_continuation_line(self):
        content = (
            ":PROPERTIES:\n"
            ":DESC: Alpha\n"
            ":DESC+: beta gamma delta epsilon zeta\n"
            ":END:"
        )
        editor = _editor(content, row=2)
        editor._fill_at_cursor()
        assert editor.lines[1:4] == [
            ":DESC: Alpha beta",
            ":DESC+: gamma delta",
            ":DESC+: epsilon zeta",
        ]

    def test_fill_rejoins_short_lines(self):
        content = (
            ":PROPERTIES:\n"
            ":DESC: Alpha\n"
            ":DESC+: beta\n"
            ":DESC+: gamma\n"
            ":END:"
        )
        editor = _editor(content, width=70, row=1)
        editor._fill_at_cursor()
        assert editor.lines == [":PROPERTIES:", ":DESC: Alpha beta gamma", ":END:"]

    def test_fill_keeps_escape_marker(self):
        content = ":PROPERTIES:\n:X: One\\ntwo words here\n:END:"
        editor = _editor(content, width=70, row=1)
        editor._fill_at_cursor()
        assert editor.lines == [
            ":PROPERTIES:",
            ":X: One",
            ":X+: \\ntwo words here",
            ":END:",
        ]

    def test_fill_keeps_other_properties(self):
        content = ":PROPERTIES:\n:A: 1\n:DESC: Alpha beta gamma delta\n:B: 2\n:END:"
        editor = _editor(content, row=2)
        editor._fill_at_cursor()
        assert editor.lines[1] == ":A: 1"
        assert editor.lines[-2:] == [":B: 2", ":END:"]

    def test_fill_is_one_undo_step(self):
        editor = _editor()
        editor._fill_at_cursor()
        assert len(editor.undo_stack) == 1
        editor._undo()
        assert editor.get_content() == DRAWER

    def test_fill_already_filled(self):
        editor = _editor()
        editor._fill_at_cursor()
        editor._fill_at_cursor()
        assert editor.status_msg == "already filled"
        assert len(editor.undo_stack) == 1

    def test_invalid_width_leaves_buffer_intact(self):
        editor = _editor(width=6)
        editor._fill_at_cursor()
        assert editor.get_content() == DRAWER
        assert editor.undo_stack == []
        assert "leaves no room" in editor.status_msg

    def test_fill_readonly(self):
        editor = _editor(read_only=True)
        editor._fill_at_cursor()
        assert editor.get_content() == DRAWER
        assert editor.status_msg == "[readonly]"

    def test_gq_key(self):
        editor = _editor()
        _key(editor, "g")
        assert editor.pending == "g"
        _key(editor, "q")
        assert editor.pending == ""
        assert editor.lines[3] == ":DESC+: gamma delta"

    def test_fill_command(self):
        editor = _editor()
        editor._exec_command("fill")
        assert editor.lines[4] == ":DESC+: epsilon zeta"


class TestFillFallback:
    """프로퍼티 밖에서는 문단 채우기."""

    def test_paragraph_fill(self):
        editor = _editor("aaa bbb\nccc ddd eee", width=70, row=0)
        editor._fill_at_cursor()
        assert editor.lines == ["aaa bbb ccc ddd eee"]

    def test_paragraph_fill_wraps(self):
        editor = _editor("one two three four five", width=10, row=0)
        editor._fill_at_cursor()
        assert editor.lines == ["one two", "three four", "five"]

    def test_list_item_is_its_own_paragraph(self):
        editor = _editor("- one two\n  three\n- four", width=70, row=0)
        editor._fill_at_cursor()
        assert editor.lines == ["- one two three", "- four"]

    def test_paragraph_does_not_touch_properties(self):
        editor = _editor(row=4)
        editor._fill_at_cursor()
        assert editor.lines[2] == ":DESC: Alpha beta gamma delta epsilon zeta"
        assert editor.status_msg == "already filled"

    def test_headline_has_nothing_to_fill(self):
        editor = _editor(row=0)
        editor._fill_at_cursor()
        assert editor.get_content() == DRAWER
        assert editor.status_msg == "nothing to fill"

    def test_drawer_delimiter_is_not_a_property(self):
        editor = _editor(row=1)
        editor._fill_at_cursor()
        assert editor.get_content() == DRAWER
        assert editor.status_msg == "nothing to fill"


class TestInsertContinuation:
    """g+: 연속 라인 삽입."""

    def test_continuation_of_primary(self):
        editor = _editor()
        editor._insert_continuation()
        assert editor.lines[3] == ":DESC+: "
        assert editor.lines[4] == ":END:"
        assert editor.cursor_row == 3
        assert editor.cursor_col == len(":DESC+: ")
        assert editor._mode == EditorMode.INSERT

    def test_continuation_of_continuation(self):
        content = ":PROPERTIES:\n:FOO: a\n:FOO+: b\n:END:"
        editor = _editor(content, row=2)
        editor._insert_continuation()
        assert editor.lines[3] == ":FOO+: "

    def test_continuation_keeps_indent(self):
        content = "  :PROPERTIES:\n  :FOO: a\n  :END:"
        editor = _editor(content, row=1)
        editor._insert_continuation()
        assert editor.lines[2] == "  :FOO+: "

    def test_typing_after_continuation(self):
        editor = _editor()
        editor._insert_continuation()
        for ch in "more":
            _key(editor, ch)
        assert editor.lines[3] == ":DESC+: more"

    def test_g_plus_key(self):
        editor = _editor()
        _key(editor, "g")
        _key(editor, "+", key="plus")
        assert editor.lines[3] == ":DESC+: "

    def test_ctrl_j_in_insert_mode(self):
        editor = _editor()
        editor._enter_insert()
        _key(editor, None, key="ctrl+j")
        assert editor.lines[3] == ":DESC+: "
        assert editor._mode == EditorMode.INSERT

    def test_continuation_readonly(self):
        editor = _editor(read_only=True)
        editor._insert_continuation()
        assert editor.get_content() == DRAWER


class TestInsertHeadingFallback:
    def test_heading_at_current_level(self):
        editor = _editor("** Sub\nsome text", row=1)
        editor._insert_continuation()
        assert editor.lines == ["** Sub", "some text", "** "]
        assert editor.cursor_col == 3
        assert editor._mode == EditorMode.INSERT

    def test_heading_without_parent(self):
        editor = _editor("plain text", row=0)
        editor._insert_continuation()
        assert editor.lines == ["plain text", "* "]

    def test_record_outside_drawer_gets_heading(self):
        editor = _editor("* H\n:FOO: bar", row=1)
        editor._insert_continuation()
        assert editor.lines[2] == "* "


class TestCommands:
    def test_set_width(self):
        editor = _editor()
        editor._exec_command("set tw=30")
        assert editor.fill_config.target_width == 30
        assert editor.status_msg == "textwidth=30"

    def test_set_width_zero(self):
        editor = _editor()
        editor._exec_command("set tw=0")
        assert editor.fill_config.target_width == 20
        assert "positive" in editor.status_msg

    def test_query_width(self):
        editor = _editor(width=70)
        editor._exec_command("set tw?")
        assert editor.status_msg == "textwidth=70"

    def test_unknown_option(self):
        editor = _editor()
        editor._exec_command("set wrap")
        assert editor.status_msg == "unknown option: wrap"

    def test_cont_command(self):
        editor = _editor()
        editor._exec_command("cont")
        assert editor.lines[3] == ":DESC+: "

    def test_unknown_command(self):
        editor = _editor()
        editor._exec_command("frobnicate")
        assert editor.status_msg == "unknown command: :frobnicate"

    def test_command_mode_typing(self):
        editor = _editor()
        _key(editor, ":")
        assert editor._mode == EditorMode.COMMAND
        for ch in "fill":
            _key(editor, ch)
        _key(editor, None, key="enter")
        assert editor._mode == EditorMode.NORMAL
        assert editor.lines[3] == ":DESC+: gamma delta"


class TestEditing:
    def test_undo_redo(self):
        editor = _editor()
        editor._fill_at_cursor()
        filled = editor.lines[:]
        editor._undo()
        assert editor.status_msg == "undone"
        editor._redo()
        assert editor.lines == filled
        assert editor.status_msg == "redone"

    def test_nothing_to_undo(self):
        editor = _editor()
        editor._undo()
        assert editor.status_msg == "nothing to undo"

    def test_delete_last_line(self):
        editor = _editor(row=4)
        _key(editor, "d")
        _key(editor, "d")
        assert editor.lines[-1] == ":END:"
        assert editor.cursor_row == 3

    def test_insert_enter_keeps_indent(self):
        editor = _editor("  item", row=0)
        editor.cursor_col = 6
        editor._enter_insert()
        _key(editor, None, key="enter")
        assert editor.lines == ["  item", "  "]
        assert editor.cursor_col == 2
