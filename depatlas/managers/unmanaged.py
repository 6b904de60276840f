"""The pseudo package manager for trees without recognized definition files.

:class:`Unmanaged` treats the analyzed root as one project without
dependencies. It never claims files on its own; the analyzer adds it when
no package manager found anything, or when none of the found definition
files lives directly in the analyzed root. A root given as a single file
always gets one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration
from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.models.identifier import Identifier
from depatlas.models.project import Project
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.models.vcs import VcsInfo
from depatlas.vcs import WorkingTree, for_directory

#: Looks up the working tree of a directory.
VcsLookup = Callable[[Path], Optional[WorkingTree]]


class Unmanaged(PackageManager):
    """Reports the definition "file", usually a directory, as a single project."""

    manager_name = "Unmanaged"

    def __init__(
        self,
        analysis_root: Path,
        analyzer_config: AnalyzerConfiguration,
        repo_config: RepositoryConfiguration,
        vcs_lookup: VcsLookup = for_directory,
    ) -> None:
        super().__init__(analysis_root, analyzer_config, repo_config)
        self._vcs_lookup = vcs_lookup

    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        working_tree = self._vcs_lookup(definition_file)
        vcs = working_tree.get_info() if working_tree is not None else VcsInfo.EMPTY

        relative = self.relative_path(definition_file)
        project = Project(
            id=Identifier(
                type=self.manager_name,
                namespace="",
                name=definition_file.name,
                version=vcs.revision,
            ),
            definition_file_path="" if relative == "." else relative,
            vcs=vcs,
        )
        return [ProjectAnalyzerResult(project=project)]


class UnmanagedFactory(PackageManagerFactory):
    """Creates :class:`Unmanaged` instances; claims no files."""

    manager_class = Unmanaged
    definition_file_patterns = ()

    def __init__(self, vcs_lookup: VcsLookup = for_directory) -> None:
        self._vcs_lookup = vcs_lookup

    def create(
        self,
        analysis_root: Path,
        analyzer_config: AnalyzerConfiguration,
        repo_config: RepositoryConfiguration,
    ) -> Unmanaged:
        return Unmanaged(analysis_root, analyzer_config, repo_config, self._vcs_lookup)
