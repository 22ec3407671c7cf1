import os
import sys
import shutil
import asyncio
import tempfile
import unittest
from unittest.mock import MagicMock, patch

# Add parent directory to path so we can import the application modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from textual.widgets import Input, TextArea
from watchdog.events import FileModifiedEvent, FileMovedEvent
from watchdog.observers.polling import PollingObserver

from autocommit.app import AutoCommitApp, main, parse_arguments
from autocommit.config import AutoCommitConfig
from autocommit.headless import SaveEventHandler, watch_file
from autocommit.target import FileTarget
from autocommit.ui.dialogs import SecretDialog


class TestAutoCommitApp(unittest.IsolatedAsyncioTestCase):
    """Editor as the source of save and close triggers"""

    async def asyncSetUp(self):
        self.tmp = tempfile.mkdtemp()
        self.file_path = os.path.join(self.tmp, "notes.txt")
        with open(self.file_path, "w", encoding="utf-8") as f:
            f.write("first draft\n")

    async def asyncTearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    async def test_loads_file_on_mount(self):
        app = AutoCommitApp(self.file_path)
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(app.query_one("#editor", TextArea).text, "first draft\n")

    async def test_save_writes_file_and_triggers_commit(self):
        app = AutoCommitApp(self.file_path, AutoCommitConfig(debounce_interval=10))
        async with app.run_test() as pilot:
            await pilot.pause()
            app.mode.on_save = MagicMock()
            app.query_one("#editor", TextArea).load_text("second draft\n")

            await app.action_save()

            app.mode.on_save.assert_called_once_with(app.target)
            self.assertTrue(app.target.is_alive())

        with open(self.file_path, encoding="utf-8") as f:
            self.assertEqual(f.read(), "second draft\n")

    async def test_quit_flushes_pending_commit(self):
        app = AutoCommitApp(self.file_path, AutoCommitConfig(debounce_interval=10))
        async with app.run_test() as pilot:
            await pilot.pause()
            app.mode.execute = MagicMock()
            app.mode.scheduler.action = app.mode.execute
            await app.action_save()
            self.assertTrue(app.mode.scheduler.is_pending(app.target))

            await app.action_quit()

            app.mode.execute.assert_called_once_with(app.target)
            self.assertFalse(app.target.is_alive())

    async def test_secret_dialog_returns_masked_input(self):
        app = AutoCommitApp(self.file_path)
        async with app.run_test() as pilot:
            await pilot.pause()
            answer = asyncio.ensure_future(app.ask_secret("Password: "))
            await pilot.pause()

            self.assertIsInstance(app.screen, SecretDialog)
            field = app.screen.query_one("#prompt-input", Input)
            self.assertTrue(field.password)
            field.value = "hunter2"
            await pilot.press("enter")

            self.assertEqual(await answer, "hunter2")


class TestHeadlessWatcher(unittest.IsolatedAsyncioTestCase):
    """watchdog events as the source of save and close triggers"""

    async def asyncSetUp(self):
        self.tmp = tempfile.mkdtemp()
        self.path = os.path.join(self.tmp, "notes.txt")
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("one\n")
        self.target = FileTarget(self.path)
        self.mode = MagicMock()

    async def asyncTearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    async def test_handler_filters_other_files(self):
        handler = SaveEventHandler(self.target, self.mode, asyncio.get_running_loop())

        handler.on_modified(FileModifiedEvent(os.path.join(self.tmp, "other.txt")))
        handler.on_modified(FileModifiedEvent(self.path))
        handler.on_moved(FileMovedEvent(os.path.join(self.tmp, ".notes.txt.swp"), self.path))
        await asyncio.sleep(0)

        self.assertEqual(self.mode.on_save.call_count, 2)
        self.mode.on_save.assert_called_with(self.target)

    async def test_modification_is_a_save_and_cancel_is_a_close(self):
        observer = PollingObserver(timeout=0.02)
        task = asyncio.ensure_future(watch_file(self.target, self.mode, observer=observer))
        await asyncio.sleep(0.1)
        self.mode.on_save.assert_not_called()

        stat = os.stat(self.path)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write("two\n")
        os.utime(self.path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        for _ in range(50):
            await asyncio.sleep(0.02)
            if self.mode.on_save.called:
                break
        self.mode.on_save.assert_called_with(self.target)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.mode.on_close.assert_called_once_with(self.target)
        self.assertFalse(self.target.is_alive())


class TestCommandLine(unittest.TestCase):

    def test_flags_become_overrides(self):
        args = parse_arguments(["--push", "--debounce", "5", "notes.txt"])

        self.assertTrue(args.automatically_push)
        self.assertEqual(args.debounce_interval, 5.0)
        self.assertIsNone(args.ask_for_summary)
        self.assertFalse(args.headless)

    @patch("autocommit.headless.run_headless", return_value=0)
    @patch("autocommit.app.configure_logging")
    def test_headless_dispatch(self, mock_logging, mock_run):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "notes.txt")
            with patch.dict(os.environ, {"AUTOCOMMIT_SILENT": "true"}):
                status = main(["--headless", "--debounce", "3", path])

        self.assertEqual(status, 0)
        config = mock_run.call_args[0][1]
        self.assertEqual(config.debounce_interval, 3.0)
        self.assertTrue(config.silent)

    def test_bad_config_exits_with_2(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "notes.txt")
            with patch.dict(os.environ, {"AUTOCOMMIT_SILENT": "maybe"}):
                with patch("sys.stderr"):
                    self.assertEqual(main([path]), 2)


if __name__ == "__main__":
    unittest.main()
