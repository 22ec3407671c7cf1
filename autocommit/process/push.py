"""
Push Module - Runs git push asynchronously and answers credential prompts from its output
"""

import os
import re
import pty
import codecs
import fcntl
import inspect
import asyncio
import logging
import termios
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PASSPHRASE = "passphrase"
USER_PASSWORD = "user-password"
PASSWORD = "password"

GIT_PUSH = ("git", "push")

# Most specific first
_PROMPT_PATTERNS = [
    (PASSPHRASE, re.compile(r"^Enter passphrase for key '(.*)': $", re.MULTILINE)),
    (USER_PASSWORD, re.compile(r"^(.*)'s password:", re.MULTILINE)),
    (PASSWORD, re.compile(r"^[pP]assword:", re.MULTILINE)),
]

SecretProvider = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]
StatusCallback = Callable[[str], Any]


@dataclass(frozen=True)
class Prompt:
    """A credential prompt recognized in process output"""

    kind: str
    subject: Optional[str] = None

    @property
    def label(self) -> str:
        """Text to show the user when asking for the secret"""
        if self.kind == PASSPHRASE:
            return f"Passphrase for key {self.subject}: "
        if self.kind == USER_PASSWORD:
            return f"{self.subject}'s password: "
        return "Password: "


def detect_prompt(text: str) -> Optional[Prompt]:
    """
    Recognize an interactive credential prompt

    Args:
        text: Process output, usually the current unfinished line

    Returns:
        The detected Prompt, or None
    """
    for kind, pattern in _PROMPT_PATTERNS:
        match = pattern.search(text)
        if match:
            subject = match.group(1) if pattern.groups else None
            return Prompt(kind, subject)
    return None


def describe_exit(returncode: int) -> str:
    """Status word for a finished process"""
    if returncode == 0:
        return "finished"
    return f"exited abnormally with code {returncode}"


def open_terminal() -> Tuple[int, int]:
    """
    Open a pseudo-terminal for a child process

    Echo is switched off so answers written to the child never show up in
    its output, and newlines are left untranslated.

    Returns:
        (master_fd, slave_fd)
    """
    master_fd, slave_fd = pty.openpty()
    attrs = termios.tcgetattr(slave_fd)
    attrs[1] &= ~termios.ONLCR
    attrs[3] &= ~termios.ECHO
    termios.tcsetattr(slave_fd, termios.TCSANOW, attrs)
    return master_fd, slave_fd


def _take_controlling_terminal() -> None:
    # Runs in the child after setsid(); stdin is the pty slave
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class PushProcess:
    """
    Handle for one spawned git process.

    The process runs on its own pseudo-terminal, which is also its controlling
    terminal, so prompts that git and ssh write to /dev/tty arrive here
    instead of on the user's terminal. Output is read in chunks because
    prompts are not newline terminated. Each prompt is answered once through
    the secret provider before any further output is processed.
    """

    def __init__(
        self,
        cwd: str,
        secret_provider: Optional[SecretProvider] = None,
        on_status: Optional[StatusCallback] = None,
        command: Sequence[str] = GIT_PUSH,
        label: str = "Git push",
    ):
        """
        Initialize a push process handle

        Args:
            cwd: Working directory, normally the saved file's directory
            secret_provider: Called with a prompt label, returns the secret (may be async)
            on_status: Receives the final status line
            command: Command to run
            label: Prefix for the status line
        """
        self.cwd = cwd
        self.secret_provider = secret_provider
        self.on_status = on_status
        self.command = list(command)
        self.label = label

        self.process: Optional[asyncio.subprocess.Process] = None
        self.output: List[str] = []
        self.prompts: List[Prompt] = []
        self.returncode: Optional[int] = None
        self._master_fd: Optional[int] = None
        self._line = ""

    async def start(self) -> bool:
        """Spawn the process; returns False if it could not be started"""
        try:
            master_fd, slave_fd = open_terminal()
        except OSError as e:
            logger.error(f"Error opening a terminal for {self.label.lower()}: {str(e)}", exc_info=True)
            return False

        try:
            logger.info(f"Starting: {' '.join(self.command)}")
            env = os.environ.copy()
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=self.cwd,
                env=env,
                start_new_session=True,
                preexec_fn=_take_controlling_terminal
            )
        except Exception as e:
            os.close(master_fd)
            logger.error(f"Error starting {self.label.lower()}: {str(e)}", exc_info=True)
            return False
        finally:
            # The child holds its own copy; EOF arrives once it lets go
            os.close(slave_fd)

        self._master_fd = master_fd
        return True

    async def _watch_output(self) -> None:
        """Feed output chunks to the prompt detector until EOF"""
        assert self._master_fd is not None
        master_fd = self._master_fd
        loop = asyncio.get_running_loop()
        chunks: asyncio.Queue = asyncio.Queue()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        def on_readable() -> None:
            try:
                chunk = os.read(master_fd, 1024)
            except BlockingIOError:
                return
            except OSError:
                # Linux reports EIO once every copy of the slave end is closed
                chunk = b""
            if not chunk:
                loop.remove_reader(master_fd)
            chunks.put_nowait(chunk)

        os.set_blocking(master_fd, False)
        loop.add_reader(master_fd, on_readable)
        try:
            while True:
                chunk = await chunks.get()
                if not chunk:
                    break
                text = decoder.decode(chunk)
                if text:
                    await self.feed(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                await self.feed(tail)
        finally:
            loop.remove_reader(master_fd)

    async def feed(self, text: str) -> None:
        """
        Record output text and answer a prompt if the current line holds one

        Args:
            text: Newly received output
        """
        self.output.append(text)
        self._line += text
        if "\n" in self._line:
            # Only the unfinished last line can still be waiting for input
            completed, self._line = self._line.rsplit("\n", 1)
            for line in completed.splitlines():
                logger.debug(f"{self.label}: {line}")

        prompt = detect_prompt(self._line)
        if prompt is None:
            return

        self._line = ""
        self.prompts.append(prompt)
        logger.info(f"{self.label} is asking for credentials ({prompt.kind})")
        secret = await self._ask_secret(prompt)
        await self.send_line(secret or "")

    async def _ask_secret(self, prompt: Prompt) -> Optional[str]:
        if self.secret_provider is None:
            logger.warning(f"No secret provider; answering {prompt.kind} prompt with an empty line")
            return None
        try:
            secret = self.secret_provider(prompt.label)
            if inspect.isawaitable(secret):
                secret = await secret
            return secret
        except Exception as e:
            logger.error(f"Error asking for secret: {str(e)}", exc_info=True)
            return None

    async def send_line(self, text: str) -> None:
        """Write text plus a newline to the process terminal"""
        if self._master_fd is None:
            return
        try:
            os.write(self._master_fd, (text + "\n").encode("utf-8"))
        except OSError as e:
            logger.warning(f"{self.label} closed its terminal: {str(e)}")

    async def wait(self) -> int:
        """Watch output until the process exits, then report its status"""
        if self.process is None:
            raise RuntimeError("Process has not been started")
        try:
            await self._watch_output()
            self.returncode = await self.process.wait()
        finally:
            self.close()
        self.report(f"{self.label} {describe_exit(self.returncode)}")
        return self.returncode

    def close(self) -> None:
        """Release the terminal"""
        if self._master_fd is not None:
            os.close(self._master_fd)
            self._master_fd = None

    def report(self, message: str) -> None:
        logger.info(message)
        if self.on_status is None:
            return
        try:
            self.on_status(message)
        except Exception as e:
            logger.error(f"Error reporting status: {str(e)}", exc_info=True)


async def run_push(
    cwd: str,
    secret_provider: Optional[SecretProvider] = None,
    on_status: Optional[StatusCallback] = None,
    command: Sequence[str] = GIT_PUSH,
) -> Optional[int]:
    """
    Push the repository containing cwd to its configured upstream

    Failures are reported on the status channel and never retried.

    Returns:
        The exit code, or None if git could not be started
    """
    push = PushProcess(cwd, secret_provider=secret_provider, on_status=on_status, command=command)
    if not await push.start():
        push.report(f"{push.label} could not be started")
        return None
    return await push.wait()
