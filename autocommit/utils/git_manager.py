"""
Git Manager Module - Stages and commits a single saved file for the auto-commit mode
"""

import os
import shlex
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitRequest:
    """One commit of one file, built fresh for every execution"""

    file_path: str
    relative_path: str
    message: str


@dataclass(frozen=True)
class CommandResult:
    """Exit code and combined output of a git command"""

    returncode: int
    output: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class GitManager:
    """Class wrapping the git commands the auto-commit mode runs"""

    @staticmethod
    def get_repo_root(directory: str) -> Optional[str]:
        """
        Ask git for the top-level working tree containing a directory

        Args:
            directory: The directory to start from

        Returns:
            Absolute path of the repository root, or None outside a repository
        """
        try:
            result = subprocess.run(
                ["git", "rev-parse", "--show-toplevel"],
                cwd=directory,
                capture_output=True,
                text=True,
                check=False
            )

            if result.returncode == 0:
                return result.stdout.strip()
            return None
        except Exception as e:
            logging.error(f"Error checking git repository: {str(e)}", exc_info=True)
            return None

    @staticmethod
    def relative_path(file_path: str) -> str:
        """
        Path of a file relative to its repository root, with forward slashes

        Outside a repository the bare file name is returned, so the commit
        command still runs and reports git's own error.
        """
        file_path = os.path.abspath(file_path)
        directory = os.path.dirname(file_path)
        root = GitManager.get_repo_root(directory)
        if root is None:
            return os.path.basename(file_path)
        # git reports the resolved root, so resolve the file the same way
        relative = os.path.relpath(os.path.realpath(file_path), os.path.realpath(root))
        return relative.replace(os.sep, "/")

    @staticmethod
    def is_tracked(file_path: str) -> bool:
        """Check whether git already tracks a file"""
        try:
            result = subprocess.run(
                ["git", "ls-files", "--error-unmatch", "--", os.path.basename(file_path)],
                cwd=os.path.dirname(os.path.abspath(file_path)),
                capture_output=True,
                text=True,
                check=False
            )
            return result.returncode == 0
        except Exception as e:
            logging.error(f"Error checking tracked state: {str(e)}", exc_info=True)
            return False

    @staticmethod
    def build_commit_command(
        request: CommitRequest,
        separator: str = " && ",
        additional_flags: str = "",
    ) -> str:
        """
        Build the shell command that stages and commits one file

        Args:
            request: The commit to perform
            separator: Shell token joining the add and commit commands
            additional_flags: Extra arguments appended to git commit verbatim

        Returns:
            The shell command line
        """
        command = (
            f"git add -- {shlex.quote(os.path.basename(request.file_path))}"
            f"{separator}"
            f"git commit -m {shlex.quote(request.message)}"
        )
        if additional_flags.strip():
            command += f" {additional_flags.strip()}"
        return command

    @staticmethod
    def commit(
        request: CommitRequest,
        separator: str = " && ",
        additional_flags: str = "",
    ) -> CommandResult:
        """
        Stage and commit a file, blocking until git returns

        Git failures, including "nothing to commit", are returned as output
        rather than raised.

        Args:
            request: The commit to perform
            separator: Shell token joining the add and commit commands
            additional_flags: Extra arguments appended to git commit

        Returns:
            CommandResult with git's exit code and combined output
        """
        command = GitManager.build_commit_command(request, separator, additional_flags)
        logger.debug(f"Running: {command}")
        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=os.path.dirname(os.path.abspath(request.file_path)),
                capture_output=True,
                text=True,
                check=False
            )
        except Exception as e:
            logging.error(f"Error creating git commit: {str(e)}", exc_info=True)
            return CommandResult(-1, str(e))

        output = ""
        if result.stdout:
            output += result.stdout
        if result.stderr:
            output += result.stderr
        return CommandResult(result.returncode, output.strip())
