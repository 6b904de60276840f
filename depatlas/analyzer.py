"""The analyzer: top-level driver of a dependency analysis run.

:meth:`Analyzer.analyze` runs through these states:

``INIT`` → ``CONFIG_RESOLVED`` → ``FILES_DISCOVERED`` → ``DISPATCHED`` →
``AGGREGATED`` → ``CONTEXT_RESOLVED`` → ``DONE``

Any error after ``INIT`` moves the analyzer to ``FAILED`` and is re-raised;
no result is returned in that case.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from depatlas.config import (
    AnalyzerConfiguration,
    RepositoryConfiguration,
    load_repository_configuration,
)
from depatlas.constants import REPOSITORY_CONFIGURATION_FILENAME
from depatlas.core.aggregator import AnalyzerResultBuilder
from depatlas.core.curation import (
    CompositePackageCurationProvider,
    PackageCurationProvider,
    SimplePackageCurationProvider,
)
from depatlas.core.discovery import assign_managed_files, log_managed_files
from depatlas.core.package_manager import PackageManagerFactory
from depatlas.core.registry import all_package_managers
from depatlas.core.repository import build_vcs_context
from depatlas.core.scheduler import resolve_in_parallel
from depatlas.exceptions import PreconditionError
from depatlas.managers.unmanaged import UnmanagedFactory
from depatlas.models.result import AnalysisResult, AnalyzerRun, Environment, Repository
from depatlas.utils.logger import get_logger
from depatlas.vcs import WorkingTree, for_directory


class AnalyzerState(enum.Enum):
    INIT = "Init"
    CONFIG_RESOLVED = "ConfigResolved"
    FILES_DISCOVERED = "FilesDiscovered"
    DISPATCHED = "Dispatched"
    AGGREGATED = "Aggregated"
    CONTEXT_RESOLVED = "ContextResolved"
    DONE = "Done"
    FAILED = "Failed"


class Analyzer:
    """Analyzes the dependencies of a project tree.

    Args:
        config: Global analyzer configuration.
        logger: Logger for progress messages; defaults to
            ``depatlas.analyzer``.
        vcs_lookup: Looks up the working tree of a directory; defaults to
            :func:`depatlas.vcs.for_directory`.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfiguration] = None,
        *,
        logger: Optional[logging.Logger] = None,
        vcs_lookup: Callable[[Path], Optional[WorkingTree]] = for_directory,
    ) -> None:
        self.config = config or AnalyzerConfiguration()
        self.logger = logger or get_logger("analyzer")
        self.vcs_lookup = vcs_lookup
        self.state = AnalyzerState.INIT

    def analyze(
        self,
        root: Path,
        factories: Optional[Sequence[PackageManagerFactory]] = None,
        curation_provider: Optional[PackageCurationProvider] = None,
        repository_configuration_file: Optional[Path] = None,
    ) -> AnalysisResult:
        """Analyze the project tree at *root*.

        Args:
            root: Absolute path of the directory to analyze. May be a file
                if exactly one factory is given; the file is then analyzed
                as that package manager's only definition file.
            factories: Package managers to use; defaults to all registered
                ones.
            curation_provider: Curations to apply in addition to those of
                the repository configuration.
            repository_configuration_file: Repository configuration to use
                instead of ``.depatlas.toml`` in the root. A missing file
                yields the default configuration.

        Raises:
            PreconditionError: *root* is not absolute or does not exist, or
                a package manager reported a project of another type.
            ResolutionError: A package manager failed.
            DepAtlasError: Any other failure of a package manager or of the
                configuration.
        """
        self.state = AnalyzerState.INIT

        if not root.is_absolute():
            raise PreconditionError(f"The root path '{root}' must be absolute.")
        if not root.exists():
            raise PreconditionError(f"The root path '{root}' does not exist.")

        start_time = datetime.now(timezone.utc)
        analysis_root = root if root.is_dir() else root.parent

        try:
            repo_config = load_repository_configuration(
                repository_configuration_file or analysis_root / REPOSITORY_CONFIGURATION_FILENAME
            )
            self._transition(AnalyzerState.CONFIG_RESOLVED)
            self.logger.debug("Repository configuration: %s", repo_config.to_log_dict())

            managed = assign_managed_files(
                root,
                list(factories) if factories is not None else all_package_managers(),
                self.config,
                repo_config,
                unmanaged_factory=UnmanagedFactory(self.vcs_lookup),
                logger=self.logger,
            )
            log_managed_files(managed, analysis_root, self.logger)
            self._transition(AnalyzerState.FILES_DISCOVERED)

            builder = AnalyzerResultBuilder(
                self._curations(curation_provider, repo_config),
                repo_config.excludes,
                self.logger,
            )
            self._transition(AnalyzerState.DISPATCHED)
            resolve_in_parallel(managed, builder, self.config.max_workers, self.logger)
            result = builder.build()
            self._transition(AnalyzerState.AGGREGATED)

            vcs_context = build_vcs_context(analysis_root, self.vcs_lookup, self.logger)
            self._transition(AnalyzerState.CONTEXT_RESOLVED)

            run = AnalyzerRun(
                start_time=start_time,
                end_time=datetime.now(timezone.utc),
                environment=Environment.current(),
                config=self.config,
                result=result,
            )
            analysis = AnalysisResult(
                repository=Repository.from_context(vcs_context, repo_config),
                analyzer=run,
            )
        except BaseException:
            self.state = AnalyzerState.FAILED
            raise

        self._transition(AnalyzerState.DONE)
        self.logger.info(
            "Found %d project(s) and %d package(s) in %.1fs.",
            len(result.projects),
            len(result.packages),
            (run.end_time - run.start_time).total_seconds(),
        )
        return analysis

    def _curations(
        self,
        explicit: Optional[PackageCurationProvider],
        repo_config: RepositoryConfiguration,
    ) -> Optional[PackageCurationProvider]:
        providers = [explicit] if explicit is not None else []
        if repo_config.curations:
            providers.append(SimplePackageCurationProvider(repo_config.curations))

        if not providers:
            return None
        if len(providers) == 1:
            return providers[0]
        return CompositePackageCurationProvider(providers)

    def _transition(self, state: AnalyzerState) -> None:
        self.logger.debug("Analyzer state: %s -> %s", self.state.value, state.value)
        self.state = state
