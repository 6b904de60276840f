"""Definition file discovery and assignment to package managers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from depatlas.config import AnalyzerConfiguration, Excludes, RepositoryConfiguration
from depatlas.constants import IGNORED_DIRECTORY_NAMES
from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.exceptions import PreconditionError
from depatlas.managers.unmanaged import UnmanagedFactory
from depatlas.utils.filesystem import relative_display
from depatlas.utils.logger import get_logger

#: Definition files per package manager instance, in factory order.
ManagedFiles = Dict[PackageManager, List[Path]]


def find_managed_files(
    root: Path,
    factories: Sequence[PackageManagerFactory],
    excludes: Optional[Excludes] = None,
) -> Dict[PackageManagerFactory, List[Path]]:
    """Walk *root* once and collect the definition files each factory claims.

    VCS metadata directories are skipped, symlinked directories are not
    followed, and files matching a path exclude are never offered to the
    factories. Factories that claim nothing are left out.
    """
    claimed: Dict[PackageManagerFactory, List[Path]] = {factory: [] for factory in factories}

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in IGNORED_DIRECTORY_NAMES)
        directory = Path(dirpath)

        candidates = [directory / name for name in sorted(filenames)]
        if excludes is not None:
            candidates = [
                path for path in candidates
                if not excludes.is_path_excluded(relative_display(path, root))
            ]
        if not candidates:
            continue

        for factory in factories:
            claimed[factory].extend(factory.claim(candidates))

    return {factory: files for factory, files in claimed.items() if files}


def assign_managed_files(
    root: Path,
    factories: Sequence[PackageManagerFactory],
    analyzer_config: AnalyzerConfiguration,
    repo_config: RepositoryConfiguration,
    unmanaged_factory: Optional[UnmanagedFactory] = None,
    logger: Optional[logging.Logger] = None,
) -> ManagedFiles:
    """Create the package managers for *root* and assign their files.

    If exactly one factory is given and *root* is a file, that file is the
    only definition file, whatever its name; the managers are then bound to
    the file's directory. Otherwise the tree is searched with
    :func:`find_managed_files`.

    An :class:`~depatlas.managers.unmanaged.Unmanaged` manager for *root*
    is added when no file was claimed at all, or when no kept definition
    file lives directly in *root*. A file root never contains a definition
    file, so it always gets one.

    Raises:
        PreconditionError: *root* is a file but not exactly one factory is
            given.
    """
    logger = logger or get_logger("discovery")
    unmanaged_factory = unmanaged_factory or UnmanagedFactory()

    if root.is_file():
        if len(factories) != 1:
            raise PreconditionError(
                f"Analyzing the single file '{root}' requires exactly one package manager, "
                f"got {len(factories)}."
            )
        analysis_root = root.parent
        found: Dict[PackageManagerFactory, List[Path]] = {factories[0]: [root]}
        logger.debug("Using '%s' as the only definition file for %s.", root.name, factories[0].manager_name)
    else:
        analysis_root = root
        found = find_managed_files(root, factories, repo_config.excludes)

    managed: ManagedFiles = {}
    for factory, files in found.items():
        manager = factory.create(analysis_root, analyzer_config, repo_config)
        mapped = manager.map_definition_files(files)
        if mapped:
            managed[manager] = list(mapped)
        else:
            logger.debug("%s kept none of its %d claimed file(s).", factory.manager_name, len(files))

    has_root_coverage = any(path.parent == root for files in managed.values() for path in files)
    if not found or not has_root_coverage:
        unmanaged = unmanaged_factory.create(analysis_root, analyzer_config, repo_config)
        managed[unmanaged] = [root]

    return managed


def log_managed_files(managed: ManagedFiles, root: Path, logger: logging.Logger) -> None:
    """Log the definition files found per package manager at INFO."""
    if not managed:
        logger.info("No definition files found.")
        return

    for manager, files in managed.items():
        listing = "\n".join(f"\t{relative_display(path, root)}" for path in files)
        logger.info("%s projects found in:\n%s", manager.manager_name, listing)
