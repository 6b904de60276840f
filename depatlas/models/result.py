"""
Result data models for depatlas.

The nesting mirrors the life of one analysis run:

- :class:`ProjectAnalyzerResult` — what a package manager reports for one
  project (the project, its packages and issues).
- :class:`AnalyzerResult` — the merged, curated result over all package
  managers.
- :class:`AnalyzerRun` — the result plus timestamps, environment and the
  effective configuration.
- :class:`AnalysisResult` — the run plus the :class:`Repository` record;
  the only value :meth:`depatlas.analyzer.Analyzer.analyze` returns.

All of these are frozen; mappings are exposed as read-only proxies.
"""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Tuple

from depatlas.__version__ import __version__
from depatlas.constants import RECORDED_ENVIRONMENT_VARIABLES
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import CuratedPackage, Package
from depatlas.models.project import Project
from depatlas.models.vcs import VcsContext, VcsInfo

if TYPE_CHECKING:
    from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration


def _frozen_mapping(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(sorted(mapping.items())))


@dataclass(frozen=True)
class ProjectAnalyzerResult:
    """Resolution result for a single project.

    Attributes:
        project: The resolved project.
        packages: All packages the project depends on, directly or
            transitively.
        issues: Problems found while resolving the project.
    """

    project: Project
    packages: Tuple[Package, ...] = ()
    issues: Tuple[Issue, ...] = ()


@dataclass(frozen=True)
class AnalyzerResult:
    """Merged result over all package managers of a run.

    Attributes:
        projects: All projects, sorted by identifier.
        packages: One curated package per distinct identifier, sorted by
            identifier.
        issues: Issues per project identifier.
        excluded_scopes: Names of the scopes per project identifier that
            match the repository configuration's scope excludes.
    """

    projects: Tuple[Project, ...] = ()
    packages: Tuple[CuratedPackage, ...] = ()
    issues: Mapping[Identifier, Tuple[Issue, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    excluded_scopes: Mapping[Identifier, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", _frozen_mapping(self.issues))
        object.__setattr__(self, "excluded_scopes", _frozen_mapping(self.excluded_scopes))

    @property
    def has_issues(self) -> bool:
        return any(self.issues.values())

    def get_package(self, identifier: Identifier) -> CuratedPackage:
        """Return the curated package with *identifier*.

        Raises:
            KeyError: No such package in the result.
        """
        for curated in self.packages:
            if curated.id == identifier:
                return curated
        raise KeyError(identifier.to_coordinates())

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "projects": [project.to_json() for project in self.projects],
            "packages": [curated.to_json() for curated in self.packages],
            "issues": {
                identifier.to_coordinates(): [issue.to_json() for issue in issues]
                for identifier, issues in self.issues.items()
            },
            "excluded_scopes": {
                identifier.to_coordinates(): list(names)
                for identifier, names in self.excluded_scopes.items()
            },
        }


@dataclass(frozen=True)
class Environment:
    """Description of the environment an analysis ran in."""

    depatlas_version: str
    python_version: str
    os: str
    processors: int
    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", _frozen_mapping(self.variables))

    @classmethod
    def current(cls) -> "Environment":
        """Describe the running interpreter and host."""
        return cls(
            depatlas_version=__version__,
            python_version=platform.python_version(),
            os=sys.platform,
            processors=os.cpu_count() or 1,
            variables={
                name: value
                for name, value in os.environ.items()
                if name in RECORDED_ENVIRONMENT_VARIABLES
            },
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "depatlas_version": self.depatlas_version,
            "python_version": self.python_version,
            "os": self.os,
            "processors": self.processors,
            "variables": dict(self.variables),
        }


@dataclass(frozen=True)
class AnalyzerRun:
    """A finished analyzer run."""

    start_time: datetime
    end_time: datetime
    environment: Environment
    config: "AnalyzerConfiguration"
    result: AnalyzerResult

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "environment": self.environment.to_json(),
            "config": self.config.to_log_dict(),
            "result": self.result.to_json(),
        }


@dataclass(frozen=True)
class Repository:
    """The analyzed repository: its VCS state and repository configuration."""

    vcs: VcsInfo
    nested_repositories: Mapping[str, VcsInfo]
    config: "RepositoryConfiguration"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "nested_repositories", _frozen_mapping(self.nested_repositories)
        )

    @classmethod
    def from_context(
        cls, context: VcsContext, config: "RepositoryConfiguration"
    ) -> "Repository":
        return cls(
            vcs=context.vcs,
            nested_repositories=context.nested_repositories,
            config=config,
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "vcs": self.vcs.to_json(),
            "nested_repositories": {
                path: info.to_json() for path, info in self.nested_repositories.items()
            },
            "config": self.config.to_log_dict(),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """The outcome of a successful analysis."""

    repository: Repository
    analyzer: AnalyzerRun

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "repository": self.repository.to_json(),
            "analyzer": self.analyzer.to_json(),
        }
