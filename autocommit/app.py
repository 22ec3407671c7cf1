#!/usr/bin/env python3
"""
autocommit - A terminal editor that commits the file to git every time it is saved
Saves are debounced per file; pushes run in the background and ask for credentials in a dialog
"""

import os
import sys
import asyncio
import argparse
import logging
from typing import Any, Dict, Optional

import aiofiles
from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, TextArea

from .config import AutoCommitConfig, ConfigError, load_config
from .mode import AutoCommitMode
from .target import Target
from .ui.dialogs import DIALOG_CSS, SecretDialog, SummaryDialog
from .utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


class EditorTarget(Target):
    """Target for the file open in an AutoCommitApp editor"""

    def __init__(self, app: "AutoCommitApp", path: str):
        self.app = app
        self._path = os.path.abspath(path)
        self.closed = False

    @property
    def file_path(self) -> str:
        return self._path

    def is_alive(self) -> bool:
        return not self.closed and self.app.is_running


class AutoCommitApp(App):
    """Single-file editor whose saves trigger automatic git commits"""

    CSS = DIALOG_CSS + """
    #editor {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, file_path: str, config: Optional[AutoCommitConfig] = None):
        """
        Initialize the editor

        Args:
            file_path: File to edit; created on first save if missing
            config: Auto-commit options
        """
        super().__init__()
        self.file_path = os.path.abspath(file_path)
        self.config = config or AutoCommitConfig()
        self.target = EditorTarget(self, self.file_path)
        self.mode: Optional[AutoCommitMode] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield TextArea(language=None, id="editor")
        yield Footer()

    async def on_mount(self) -> None:
        self.title = "autocommit"
        self.sub_title = self.file_path
        self.mode = AutoCommitMode(
            self.config,
            on_status=self.show_status,
            secret_provider=self.ask_secret,
            summary_provider=self.ask_summary,
        )

        editor = self.query_one("#editor", TextArea)
        if os.path.exists(self.file_path):
            try:
                async with aiofiles.open(self.file_path, "r", encoding="utf-8") as file:
                    editor.load_text(await file.read())
            except Exception as e:
                logger.error(f"Error loading {self.file_path}: {str(e)}", exc_info=True)
                self.notify(f"Error loading file: {str(e)}", severity="error")
        editor.focus()

    def show_status(self, message: str) -> None:
        self.notify(escape(message), title="autocommit")

    async def _ask(self, dialog) -> Optional[str]:
        answer: asyncio.Future = asyncio.get_running_loop().create_future()

        def done(value: Optional[str]) -> None:
            if not answer.done():
                answer.set_result(value)

        self.push_screen(dialog, done)
        return await answer

    async def ask_secret(self, prompt: str) -> Optional[str]:
        """Ask for a password or passphrase with masked input"""
        return await self._ask(SecretDialog(prompt))

    async def ask_summary(self, default: str) -> Optional[str]:
        """Ask for a commit summary, pre-filled with the default message"""
        return await self._ask(SummaryDialog("Summary:", default))

    async def action_save(self) -> None:
        """Write the editor contents and hand the save to the auto-commit mode"""
        content = self.query_one("#editor", TextArea).text
        try:
            async with aiofiles.open(self.file_path, "w", encoding="utf-8") as file:
                await file.write(content)
        except Exception as e:
            logger.error(f"Error saving {self.file_path}: {str(e)}", exc_info=True)
            self.notify(f"Error saving file: {str(e)}", severity="error")
            return

        logger.info(f"Saved {self.file_path}")
        if self.mode is not None:
            self.mode.on_save(self.target)

    async def action_quit(self) -> None:
        """Commit anything pending, let pushes finish, then exit"""
        if self.mode is None:
            self.exit()
            return
        self.mode.on_close(self.target)
        self.target.closed = True
        # Pushes may still need a dialog, so wait outside this handler
        self.run_worker(self._exit_when_idle(), exclusive=True)

    async def _exit_when_idle(self) -> None:
        await self.mode.wait_idle()
        self.exit()


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        prog="autocommit",
        description="Commit a file to git every time it is saved."
    )
    parser.add_argument("file", help="File to edit or watch")
    parser.add_argument("--headless", action="store_true",
                        help="Watch the file for changes instead of opening the editor")
    parser.add_argument("--push", dest="automatically_push", action="store_true", default=None,
                        help="Push after every commit")
    parser.add_argument("--ask-summary", dest="ask_for_summary", action="store_true", default=None,
                        help="Ask for a commit summary instead of using the file name")
    parser.add_argument("--debounce", dest="debounce_interval", type=float, default=None,
                        metavar="SECONDS", help="Coalesce saves within this many seconds")
    parser.add_argument("--separator", dest="shell_command_separator", default=None,
                        help="Shell token joining git add and git commit (default: ' && ')")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "automatically_push": args.automatically_push,
        "ask_for_summary": args.ask_for_summary,
        "debounce_interval": args.debounce_interval,
        "shell_command_separator": args.shell_command_separator,
    }


def main(argv=None) -> int:
    args = parse_arguments(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    try:
        config = load_config(os.path.abspath(args.file)).merged(_cli_overrides(args))
    except ConfigError as e:
        print(f"autocommit: {e}", file=sys.stderr)
        return 2

    if args.headless:
        from .headless import run_headless

        configure_logging(level)
        return run_headless(args.file, config)

    configure_logging(level, console=False)
    AutoCommitApp(args.file, config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
