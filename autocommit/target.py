"""
Target Module - Watched units that the auto-commit machinery observes
"""

import os
from abc import ABC, abstractmethod


class Target(ABC):
    """
    A watched editable unit bound to a single file.

    Targets are owned by whatever produces save/close events. The scheduler
    only keeps them as dictionary keys, so identity is the object itself.
    """

    @property
    @abstractmethod
    def file_path(self) -> str:
        """Absolute path of the file this target is bound to"""

    @abstractmethod
    def is_alive(self) -> bool:
        """Whether the target is still open"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.file_path!r})"


class FileTarget(Target):
    """Target backed by a plain path, closed explicitly by its owner"""

    def __init__(self, path: str):
        self._path = os.path.abspath(path)
        self._alive = True

    @property
    def file_path(self) -> str:
        return self._path

    def is_alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        self._alive = False
