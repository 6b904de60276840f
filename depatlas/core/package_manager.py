"""Package manager base classes for depatlas.

Support for an ecosystem consists of two classes:

- a :class:`PackageManagerFactory`, which recognizes the ecosystem's
  definition files and creates package manager instances, and
- a :class:`PackageManager`, which is bound to one analysis and resolves
  the dependencies of the definition files it was given.

Subclasses set :attr:`PackageManager.manager_name`; every project a
manager reports must use that name as the type of its identifier.

Typical implementation::

    class Npm(PackageManager):
        manager_name = "NPM"

        def resolve_file(self, definition_file):
            ...
            return [ProjectAnalyzerResult(project, packages)]


    class NpmFactory(PackageManagerFactory):
        manager_class = Npm
        definition_file_patterns = ("package.json",)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from fnmatch import fnmatchcase
from pathlib import Path
from typing import ClassVar, Dict, List, Sequence, Tuple, Type

from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration
from depatlas.exceptions import DepAtlasError, ResolutionError
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.utils.filesystem import relative_display
from depatlas.utils.logger import get_manager_logger

#: Resolution results per definition file.
ResolutionResults = Dict[Path, List[ProjectAnalyzerResult]]


class PackageManager(ABC):
    """A package manager bound to one analysis.

    Args:
        analysis_root: Absolute directory being analyzed.
        analyzer_config: Global analyzer configuration.
        repo_config: Configuration of the analyzed repository.
    """

    manager_name: ClassVar[str]

    def __init__(
        self,
        analysis_root: Path,
        analyzer_config: AnalyzerConfiguration,
        repo_config: RepositoryConfiguration,
    ) -> None:
        self.analysis_root = analysis_root
        self.analyzer_config = analyzer_config
        self.repo_config = repo_config
        self.logger = get_manager_logger(self.manager_name)

    def map_definition_files(self, definition_files: Sequence[Path]) -> List[Path]:
        """Select, reorder or group the claimed definition files.

        Must not modify the filesystem. The default keeps all files.
        """
        return list(definition_files)

    def resolve_dependencies(self, definition_files: Sequence[Path]) -> ResolutionResults:
        """Resolve all *definition_files* one after the other.

        Raises:
            ResolutionError: Resolving a file failed with an exception
                that is not a :class:`DepAtlasError`.
            DepAtlasError: Raised unchanged from :meth:`resolve_file`.
        """
        results: ResolutionResults = {}

        for definition_file in definition_files:
            relative = self.relative_path(definition_file)
            self.logger.info("Resolving dependencies for '%s'...", relative)

            try:
                results[definition_file] = self.resolve_file(definition_file)
            except DepAtlasError:
                raise
            except Exception as exc:
                raise ResolutionError(
                    f"Resolving dependencies for '{relative}' failed: {exc}",
                    manager_name=self.manager_name,
                    definition_file=relative,
                    original_error=exc,
                ) from exc

        return results

    @abstractmethod
    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        """Resolve the projects defined by a single definition file."""

    def relative_path(self, path: Path) -> str:
        """Return *path* relative to the analysis root, ``"."`` for the root."""
        return relative_display(path, self.analysis_root)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(analysis_root={str(self.analysis_root)!r})"


class PackageManagerFactory:
    """Recognizes definition files of one ecosystem and creates its
    :class:`PackageManager`.

    ``definition_file_patterns`` are ``fnmatch`` patterns matched against
    file names, in order of priority: within one directory only the files
    matching the first pattern that matches anything are claimed.
    """

    manager_class: ClassVar[Type[PackageManager]]
    definition_file_patterns: ClassVar[Tuple[str, ...]] = ()

    @property
    def manager_name(self) -> str:
        return self.manager_class.manager_name

    def claim(self, candidates: Sequence[Path]) -> List[Path]:
        """Return the candidates that are definition files of this ecosystem.

        Pure function of its input; the filesystem is not touched.
        """
        by_directory: Dict[Path, List[Path]] = defaultdict(list)
        for candidate in candidates:
            by_directory[candidate.parent].append(candidate)

        claimed: List[Path] = []
        for directory in sorted(by_directory):
            files = by_directory[directory]
            for pattern in self.definition_file_patterns:
                matches = sorted(f for f in files if fnmatchcase(f.name, pattern))
                if matches:
                    claimed.extend(matches)
                    break

        return claimed

    def create(
        self,
        analysis_root: Path,
        analyzer_config: AnalyzerConfiguration,
        repo_config: RepositoryConfiguration,
    ) -> PackageManager:
        """Create a package manager bound to *analysis_root*."""
        return self.manager_class(analysis_root, analyzer_config, repo_config)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(manager_name={self.manager_name!r})"
