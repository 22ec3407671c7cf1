"""
Headless Module - Watches a file with watchdog and feeds saves to the auto-commit mode
"""

import os
import asyncio
import getpass
import logging
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import AutoCommitConfig
from .mode import AutoCommitMode
from .target import FileTarget

logger = logging.getLogger(__name__)


class SaveEventHandler(FileSystemEventHandler):
    """
    Turns filesystem events for one file into on_save calls.

    Watchdog delivers events on its own thread; they are handed to the
    event loop so the scheduler is only ever touched from one thread.
    """

    def __init__(self, target: FileTarget, mode: AutoCommitMode, loop: asyncio.AbstractEventLoop):
        self.target = target
        self.mode = mode
        self.loop = loop

    def _matches(self, path) -> bool:
        if not path:
            return False
        return os.path.realpath(os.fsdecode(path)) == os.path.realpath(self.target.file_path)

    def _save(self) -> None:
        logger.debug(f"Change detected in {self.target.file_path}")
        self.loop.call_soon_threadsafe(self.mode.on_save, self.target)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._save()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._matches(event.src_path):
            self._save()

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save through a temporary file rename it over the target
        if not event.is_directory and self._matches(getattr(event, "dest_path", None)):
            self._save()


def ask_secret(prompt: str) -> Optional[str]:
    """Read a secret from the terminal without echo"""
    try:
        return getpass.getpass(prompt)
    except (EOFError, KeyboardInterrupt):
        return None


def ask_summary(default: str) -> Optional[str]:
    """Read a commit summary from the terminal, empty means the default"""
    try:
        return input(f"Summary [{default}]: ").strip() or default
    except EOFError:
        return default


async def watch_file(target: FileTarget, mode: AutoCommitMode, observer=None) -> None:
    """
    Report every change to a file as a save until cancelled

    Cancellation closes the target after flushing any pending commit.

    Args:
        target: The watched file
        mode: Receives on_save and on_close
        observer: Watchdog observer to use, defaults to a native Observer
    """
    observer = observer or Observer()
    handler = SaveEventHandler(target, mode, asyncio.get_running_loop())
    observer.schedule(handler, os.path.dirname(target.file_path), recursive=False)
    observer.start()
    logger.info(f"Watching {target.file_path}")
    try:
        await asyncio.Event().wait()
    finally:
        observer.stop()
        observer.join()
        mode.on_close(target)
        target.close()
        logger.info(f"Stopped watching {target.file_path}")


async def _run(path: str, config: AutoCommitConfig) -> None:
    mode = AutoCommitMode(
        config,
        on_status=logger.info,
        secret_provider=ask_secret,
        summary_provider=ask_summary,
    )
    target = FileTarget(path)
    try:
        await watch_file(target, mode)
    finally:
        await mode.wait_idle()


def run_headless(path: str, config: AutoCommitConfig) -> int:
    """Watch a file until interrupted; returns the process exit status"""
    try:
        asyncio.run(_run(path, config))
    except KeyboardInterrupt:
        pass
    return 0
