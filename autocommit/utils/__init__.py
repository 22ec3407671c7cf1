# Utils Module for autocommit

from .git_manager import GitManager, CommitRequest, CommandResult
from .debounce import DebounceScheduler
from .logging_setup import configure_logging

__all__ = [
    'GitManager',
    'CommitRequest',
    'CommandResult',
    'DebounceScheduler',
    'configure_logging'
]
