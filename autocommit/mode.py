"""
Mode Module - Wires save/close triggers to the debounce scheduler, git commit and push
"""

import os
import inspect
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set, Union

from .config import AutoCommitConfig
from .target import Target
from .utils.debounce import DebounceScheduler
from .utils.git_manager import CommandResult, CommitRequest, GitManager
from .process.push import GIT_PUSH, SecretProvider, StatusCallback, run_push

logger = logging.getLogger(__name__)

SummaryProvider = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]


class AutoCommitMode:
    """
    Commits a target's file whenever it is saved.

    One instance owns one scheduler, so every target it sees shares a single
    pending registry. Everything runs on the event loop thread: the commit
    blocks it, the push runs as a background task.
    """

    def __init__(
        self,
        config: Optional[AutoCommitConfig] = None,
        on_status: Optional[StatusCallback] = None,
        secret_provider: Optional[SecretProvider] = None,
        summary_provider: Optional[SummaryProvider] = None,
        git: Any = GitManager,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the mode

        Args:
            config: Options, defaults to AutoCommitConfig()
            on_status: Receives one-line status messages
            secret_provider: Answers credential prompts from git push
            summary_provider: Asks for a commit summary, given the default
            git: Object providing the GitManager interface
            loop: Event loop for timers and push tasks
        """
        self.config = config or AutoCommitConfig()
        self.on_status = on_status
        self.secret_provider = secret_provider
        self.summary_provider = summary_provider
        self.git = git
        self.push_command = GIT_PUSH
        self.scheduler = DebounceScheduler(self.execute, loop=loop)
        self._tasks: Set[asyncio.Future] = set()

    def on_save(self, target: Target) -> None:
        """Handle a save event"""
        logger.debug(f"Save: {target!r}")
        self.scheduler.schedule(target, self.config.debounce_interval)

    def on_close(self, target: Target) -> None:
        """Handle a close event, committing anything still pending"""
        logger.debug(f"Close: {target!r}")
        self.scheduler.flush(target)

    def execute(self, target: Target) -> None:
        """Commit the target's file, then push if configured"""
        file_path = target.file_path
        if not os.path.isfile(file_path):
            logger.info(f"Not committing {file_path}: file does not exist")
            return

        if not self.config.add_new_files and not self.git.is_tracked(file_path):
            logger.info(f"Not committing untracked file {file_path}")
            return

        relative = self.git.relative_path(file_path)
        default = self.config.default_message or relative

        if self.config.ask_for_summary and self.summary_provider is not None:
            summary = self.summary_provider(default)
            if inspect.isawaitable(summary):
                # The answer arrives later; commit and push follow it in order
                self._spawn(self._commit_after_summary, file_path, relative, default, summary)
                return
            message = summary or default
        else:
            message = default

        self.commit_and_push(CommitRequest(file_path, relative, message))

    async def _commit_after_summary(
        self,
        file_path: str,
        relative: str,
        default: str,
        summary: Awaitable[Optional[str]],
    ) -> None:
        message = (await summary) or default
        self.commit_and_push(CommitRequest(file_path, relative, message))

    def commit_and_push(self, request: CommitRequest) -> CommandResult:
        """Run the commit synchronously and start the push afterwards"""
        result = self.git.commit(
            request,
            separator=self.config.shell_command_separator,
            additional_flags=self.config.commit_additional_flags,
        )
        if result.success:
            logger.info(f"Committed {request.relative_path}: {request.message}")
        else:
            logger.warning(f"Commit of {request.relative_path} failed ({result.returncode}): {result.output}")
        if not self.config.silent and result.output:
            self.report(result.output)

        if self.config.automatically_push:
            self._spawn(
                run_push,
                os.path.dirname(os.path.abspath(request.file_path)),
                secret_provider=self.secret_provider,
                on_status=self.report,
                command=self.push_command,
            )
        return result

    def _spawn(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> asyncio.Future:
        # Resolve the loop first so no coroutine is created when there is none
        loop = self.scheduler.loop
        task = asyncio.ensure_future(func(*args, **kwargs), loop=loop)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every push and deferred commit started so far"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def report(self, message: str) -> None:
        if self.on_status is None:
            return
        try:
            self.on_status(message)
        except Exception as e:
            logger.error(f"Error reporting status: {str(e)}", exc_info=True)
