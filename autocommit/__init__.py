# autocommit - commit a file to git every time it is saved

from .config import AutoCommitConfig, ConfigError, load_config
from .mode import AutoCommitMode
from .target import Target, FileTarget
from .utils.debounce import DebounceScheduler
from .utils.git_manager import GitManager, CommitRequest, CommandResult
from .process.push import detect_prompt, run_push

__version__ = "0.1.0"

__all__ = [
    "AutoCommitConfig",
    "ConfigError",
    "load_config",
    "AutoCommitMode",
    "Target",
    "FileTarget",
    "DebounceScheduler",
    "GitManager",
    "CommitRequest",
    "CommandResult",
    "detect_prompt",
    "run_push",
]
