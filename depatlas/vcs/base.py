"""Version control abstractions for depatlas.

A :class:`VersionControlSystem` detects whether a directory belongs to a
working tree of its kind and, if so, returns a :class:`WorkingTree` that
describes it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar, Dict, Optional

from depatlas.models.vcs import VcsInfo


class WorkingTree(ABC):
    """A checked-out working tree.

    Args:
        working_dir: The directory the working tree was looked up for.
        vcs_type: Type of the version control system, e.g. ``"Git"``.
    """

    def __init__(self, working_dir: Path, vcs_type: str) -> None:
        self.working_dir = working_dir
        self.vcs_type = vcs_type

    @abstractmethod
    def get_info(self) -> VcsInfo:
        """Return the VCS information of :attr:`working_dir`."""

    @abstractmethod
    def get_nested(self) -> Dict[str, VcsInfo]:
        """Return nested repositories keyed by their path relative to
        :meth:`get_root_path`."""

    @abstractmethod
    def get_root_path(self) -> Path:
        """Return the absolute root directory of the working tree."""


class VersionControlSystem(ABC):
    """A kind of version control system, e.g. Git."""

    vcs_type: ClassVar[str]

    @abstractmethod
    def get_working_tree(self, path: Path) -> Optional[WorkingTree]:
        """Return the working tree *path* belongs to, or ``None``."""
