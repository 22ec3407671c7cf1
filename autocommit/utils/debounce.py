"""
Debounce Module - Coalesces repeated save triggers per target into one execution
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Union

from ..target import Target

logger = logging.getLogger(__name__)

Interval = Optional[Union[int, float]]


class DebounceScheduler:
    """
    Keeps at most one pending timer per target.

    The first trigger for an idle target arms a one-shot timer; further
    triggers while it is armed are dropped, so a commit never waits longer
    than one interval after the first save. All state lives on the event
    loop thread, so no locking is needed.
    """

    def __init__(
        self,
        action: Callable[[Target], Any],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the scheduler

        Args:
            action: Called with a live target when its timer fires or is flushed
            loop: Event loop for timers, defaults to the running loop
        """
        self.action = action
        self._loop = loop
        self._pending: Dict[Target, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, target: Target) -> bool:
        return target in self._pending

    def schedule(self, target: Target, interval: Interval) -> None:
        """
        Schedule an execution for target

        Args:
            target: The saved target
            interval: Seconds to wait; None or 0 executes immediately
        """
        if not interval:
            if target in self._pending:
                self.flush(target)
            else:
                self.execute(target)
            return

        if target in self._pending:
            logger.debug(f"Execution already pending for {target!r}")
            return

        self._pending[target] = self.loop.call_later(interval, self.execute, target)
        logger.debug(f"Scheduled execution for {target!r} in {interval}s")

    def flush(self, target: Target) -> None:
        """Run the pending execution for target now, if there is one"""
        handle = self._pending.get(target)
        if handle is None:
            return
        handle.cancel()
        logger.debug(f"Flushing pending execution for {target!r}")
        self.execute(target)

    def execute(self, target: Target) -> None:
        """
        Run the action for target and drop its pending entry

        The entry is removed on every path, including a dead target and an
        action that raises.
        """
        try:
            if target.is_alive():
                self.action(target)
            else:
                logger.debug(f"Skipping execution for closed target {target!r}")
        except Exception as e:
            logger.error(f"Error executing action for {target!r}: {str(e)}", exc_info=True)
        finally:
            self._pending.pop(target, None)

