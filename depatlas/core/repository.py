"""Version control context of the analyzed root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from depatlas.models.vcs import VcsContext
from depatlas.utils.filesystem import is_within
from depatlas.utils.logger import get_logger
from depatlas.vcs import WorkingTree, for_directory


def build_vcs_context(
    root: Path,
    vcs_lookup: Callable[[Path], Optional[WorkingTree]] = for_directory,
    logger: Optional[logging.Logger] = None,
) -> VcsContext:
    """Describe the working tree *root* belongs to.

    Nested repositories are only kept if they are located inside *root*;
    a root that is not under version control yields an empty context.
    """
    logger = logger or get_logger("repository")

    working_tree = vcs_lookup(root)
    if working_tree is None:
        logger.debug("'%s' is not under version control.", root)
        return VcsContext()

    repository_root = working_tree.get_root_path()
    nested = {
        path: info
        for path, info in working_tree.get_nested().items()
        if is_within(repository_root / path, root)
    }

    return VcsContext(vcs=working_tree.get_info(), nested_repositories=nested)
