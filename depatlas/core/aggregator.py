"""Aggregation of per-project results into one :class:`AnalyzerResult`.

:class:`AnalyzerResultBuilder` accumulates results in any order and only
decides between conflicting entries when :meth:`~AnalyzerResultBuilder.build`
is called, so the built result does not depend on the order in which
results were added:

- Projects with the same identifier: the one with the smallest definition
  file path is kept, ties are broken by the serialized project, packages
  and issues. The others are reported as issues.
- Packages with the same identifier: one variant is picked by
  :meth:`~depatlas.models.package.Package.sort_key`.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from depatlas.config import Excludes
from depatlas.core.curation import PackageCurationProvider
from depatlas.exceptions import PreconditionError
from depatlas.models.curation import PackageCuration
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import CuratedPackage, Package
from depatlas.models.project import Project
from depatlas.models.result import AnalyzerResult, ProjectAnalyzerResult
from depatlas.utils.logger import get_logger

ISSUE_SOURCE = "Analyzer"


def _project_key(entry: Tuple[ProjectAnalyzerResult, Tuple[CuratedPackage, ...]]) -> Tuple[str, str, str, str]:
    result, curated = entry
    packages = sorted(json.dumps(package.to_json(), sort_keys=True) for package in curated)
    return (
        result.project.definition_file_path,
        json.dumps(result.project.to_json(), sort_keys=True),
        json.dumps(packages),
        json.dumps([issue.to_json() for issue in sorted(result.issues)]),
    )


class AnalyzerResultBuilder:
    """Accumulates :class:`ProjectAnalyzerResult` objects.

    Packages are curated as they are added; curations are looked up once
    per distinct package identifier. Not thread-safe: results must be
    added from a single thread.

    Args:
        curation_provider: Source of package curations; ``None`` applies no
            curations.
        excludes: Repository excludes, used to report excluded scopes.
        logger: Logger for duplicate projects.
    """

    def __init__(
        self,
        curation_provider: Optional[PackageCurationProvider] = None,
        excludes: Optional[Excludes] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.curation_provider = curation_provider
        self.excludes = excludes or Excludes()
        self.logger = logger or get_logger("aggregator")

        self._entries: Dict[Identifier, List[Tuple[ProjectAnalyzerResult, Tuple[CuratedPackage, ...]]]] = (
            defaultdict(list)
        )
        self._curations: Dict[Identifier, Tuple[PackageCuration, ...]] = {}
        self._result: Optional[AnalyzerResult] = None

    def add_result(self, result: ProjectAnalyzerResult) -> "AnalyzerResultBuilder":
        """Add the result of one project.

        Raises:
            PreconditionError: :meth:`build` was already called.
        """
        self._check_open()
        curated = tuple(self._curate(package) for package in result.packages)
        self._entries[result.project.id].append((result, curated))
        return self

    def merge(self, other: "AnalyzerResultBuilder") -> "AnalyzerResultBuilder":
        """Add everything *other* has accumulated, as curated by *other*.

        Raises:
            PreconditionError: :meth:`build` was already called.
        """
        self._check_open()
        for identifier, entries in other._entries.items():
            self._entries[identifier].extend(entries)
        return self

    def build(self) -> AnalyzerResult:
        """Finalize the accumulated results.

        Further calls return the same result; adding results afterwards is
        an error.
        """
        if self._result is not None:
            return self._result

        projects: List[Project] = []
        variants: Dict[Identifier, List[CuratedPackage]] = defaultdict(list)
        issues: Dict[Identifier, Tuple[Issue, ...]] = {}
        excluded_scopes: Dict[Identifier, Tuple[str, ...]] = {}

        for identifier, entries in self._entries.items():
            kept, *duplicates = sorted(entries, key=_project_key)
            result, curated = kept
            projects.append(result.project)
            for package in curated:
                variants[package.id].append(package)

            project_issues = list(result.issues)
            for duplicate, _ in duplicates:
                project_issues.append(self._duplicate_issue(result.project, duplicate.project))
            if project_issues:
                issues[identifier] = tuple(sorted(project_issues))

            excluded = tuple(
                name for name in result.project.scope_names() if self.excludes.is_scope_excluded(name)
            )
            if excluded:
                excluded_scopes[identifier] = excluded

        packages = [
            min(candidates, key=lambda curated: curated.package.sort_key())
            for candidates in variants.values()
        ]

        self._result = AnalyzerResult(
            projects=tuple(sorted(projects, key=lambda project: project.id)),
            packages=tuple(sorted(packages, key=lambda curated: curated.id)),
            issues=issues,
            excluded_scopes=excluded_scopes,
        )
        return self._result

    def _curate(self, package: Package) -> CuratedPackage:
        if self.curation_provider is None:
            return CuratedPackage(package)

        curations = self._curations.get(package.id)
        if curations is None:
            curations = tuple(self.curation_provider.get_curations_for(package.id))
            self._curations[package.id] = curations

        for curation in curations:
            package = curation.apply(package)
        return CuratedPackage(package, curations)

    def _duplicate_issue(self, kept: Project, duplicate: Project) -> Issue:
        message = (
            f"Multiple projects with the same id '{kept.id.to_coordinates()}' found. Not adding the "
            f"project defined in '{duplicate.definition_file_path}' to the analyzer results as it "
            f"duplicates the project defined in '{kept.definition_file_path}'."
        )
        self.logger.error(message)
        return Issue(ISSUE_SOURCE, message)

    def _check_open(self) -> None:
        if self._result is not None:
            raise PreconditionError("The analyzer result has already been built.")
