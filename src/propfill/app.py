"""Outline editor application with property drawer filling."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Static

from .logging_config import setup_logging
from .widget import OutlineEditor
from ._reflow import DEFAULT_TARGET_WIDTH, FormattingConfig

logger = logging.getLogger(__name__)

SAMPLE_ORG = """\
* Reading list
** The Name of the Rose
:PROPERTIES:
:AUTHOR: Umberto Eco
:NOTES: A murder mystery set in an Italian monastery in 1327, told by an aging monk looking back on his youth.\\nRe-read the appendix on the library layout before the book club meeting.
:END:
Put the cursor on the NOTES line and press gq to fill it, or g+ to
start a continuation line.
"""


class OutlineEditorApp(App):
    """TUI app that wraps the OutlineEditor widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #editor {
        height: 1fr;
        border: solid $accent;
    }
    #help-bar {
        height: auto;
        max-height: 4;
        padding: 0 1;
        color: $text-muted;
        background: $surface;
        border-top: solid $accent 50%;
    }
    """

    TITLE = "propfill"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        file_path: str = "",
        initial_content: str = "",
        fill_config: FormattingConfig | None = None,
        read_only: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.file_path = file_path
        self.initial_content = initial_content
        self.fill_config = fill_config or FormattingConfig()
        self.read_only = read_only

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield OutlineEditor(
            self.initial_content,
            fill_config=self.fill_config,
            read_only=self.read_only,
            id="editor",
        )
        yield Static(
            "[b]Props:[/b] gq [dim]fill value[/]  g+ / ctrl+j [dim]continuation line[/]"
            "  :set tw=N [dim]fill width[/]\n"
            "[b]Cmd  :[/b] :w [dim]save[/]  :e [dim]open[/]  :q [dim]quit[/]"
            "  :wq [dim]save+quit[/]",
            id="help-bar",
        )
        yield Footer()

    def on_mount(self) -> None:
        self._update_title()
        self.query_one("#editor").focus()

    def _update_title(self) -> None:
        ro = " [RO]" if self.read_only else ""
        self.sub_title = (self.file_path or "[new]") + ro

    # -- Event handlers ----------------------------------------------------

    def on_outline_editor_quit(self, event: OutlineEditor.Quit) -> None:
        self.exit()

    def on_outline_editor_force_quit(self, event: OutlineEditor.ForceQuit) -> None:
        self.exit()

    def on_outline_editor_file_save_requested(
        self, event: OutlineEditor.FileSaveRequested
    ) -> None:
        target = event.file_path or self.file_path
        if not target:
            self.notify("No file name: use :w <file>", severity="warning")
            return

        try:
            path = Path(target)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(event.content, encoding="utf-8")
        except OSError as exc:
            logger.error("save failed: %s", exc)
            self.notify(f"Save failed: {exc}", severity="error", timeout=6)
            return
        self.file_path = str(path)
        self._update_title()
        logger.info("saved %s", self.file_path)
        self.notify(f"Saved: {self.file_path}", severity="information")
        if event.quit_after:
            self.exit()

    def on_outline_editor_file_open_requested(
        self, event: OutlineEditor.FileOpenRequested
    ) -> None:
        target = event.file_path
        try:
            content = Path(target).read_text(encoding="utf-8")
        except FileNotFoundError:
            self.notify(f"File not found: {target}", severity="error", timeout=6)
            return
        except OSError as exc:
            self.notify(f"Cannot open: {exc}", severity="error", timeout=6)
            return

        self.query_one("#editor", OutlineEditor).set_content(content)
        self.file_path = target
        self._update_title()
        logger.info("opened %s", target)
        self.notify(f"Opened: {target}", severity="information")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid width: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"width must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="propfill",
        description="Outline editor with property drawer filling",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="outline file to open",
    )
    parser.add_argument(
        "-w", "--width",
        type=_positive_int,
        default=DEFAULT_TARGET_WIDTH,
        help=f"target line width for filling (default: {DEFAULT_TARGET_WIDTH})",
    )
    parser.add_argument(
        "-R", "--read-only",
        action="store_true",
        default=False,
        help="open in read-only mode",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="write log records to this file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    file_path: str = args.file
    initial_content = SAMPLE_ORG
    if file_path:
        path = Path(file_path)
        try:
            initial_content = path.read_text(encoding="utf-8") if path.exists() else ""
        except OSError as exc:
            print(f"propfill: {exc}", file=sys.stderr)
            sys.exit(1)

    app = OutlineEditorApp(
        file_path=file_path,
        initial_content=initial_content,
        fill_config=FormattingConfig(target_width=args.width),
        read_only=args.read_only,
    )
    app.run()


if __name__ == "__main__":
    main()
