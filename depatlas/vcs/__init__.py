"""
Version control support for depatlas.

:func:`for_directory` asks every known version control system, in order,
whether a directory belongs to one of its working trees.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from depatlas.vcs.base import VersionControlSystem, WorkingTree
from depatlas.vcs.git import Git, GitWorkingTree

#: All supported version control systems, in lookup order.
ALL_VERSION_CONTROL_SYSTEMS: Sequence[VersionControlSystem] = (Git(),)


def for_directory(
    path: Path,
    systems: Optional[Sequence[VersionControlSystem]] = None,
) -> Optional[WorkingTree]:
    """Return the working tree *path* belongs to, or ``None``."""
    for system in systems if systems is not None else ALL_VERSION_CONTROL_SYSTEMS:
        working_tree = system.get_working_tree(path)
        if working_tree is not None:
            return working_tree
    return None


__all__ = [
    "ALL_VERSION_CONTROL_SYSTEMS",
    "Git",
    "GitWorkingTree",
    "VersionControlSystem",
    "WorkingTree",
    "for_directory",
]
