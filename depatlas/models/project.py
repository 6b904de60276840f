"""
Project data models for depatlas.

A :class:`Project` is the unit described by a definition file. Its
dependencies are grouped into named :class:`Scope` objects (e.g.
``dependencies`` and ``devDependencies`` for NPM), each holding a tree of
:class:`PackageReference` objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Set, Tuple

from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.vcs import VcsInfo


@dataclass(frozen=True)
class PackageReference:
    """A node in a dependency tree.

    Attributes:
        id: Identifier of the referenced package.
        dependencies: Transitive dependencies of the package.
        issues: Problems found while resolving this reference.
    """

    id: Identifier
    dependencies: Tuple["PackageReference", ...] = ()
    issues: Tuple[Issue, ...] = ()

    def walk(self) -> Iterator["PackageReference"]:
        """Yield this reference and all transitive references, depth first."""
        yield self
        for dependency in self.dependencies:
            yield from dependency.walk()

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        entry: Dict[str, Any] = {"id": self.id.to_coordinates()}
        if self.dependencies:
            entry["dependencies"] = [dep.to_json() for dep in self.dependencies]
        if self.issues:
            entry["issues"] = [issue.to_json() for issue in self.issues]
        return entry


@dataclass(frozen=True)
class Scope:
    """A named group of dependencies, e.g. runtime or test dependencies."""

    name: str
    dependencies: Tuple[PackageReference, ...] = ()

    def collect_dependencies(self) -> Set[Identifier]:
        """Return the identifiers of all direct and transitive dependencies."""
        return {ref.id for root in self.dependencies for ref in root.walk()}

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "name": self.name,
            "dependencies": [dep.to_json() for dep in self.dependencies],
        }


@dataclass(frozen=True)
class Project:
    """A project defined by a definition file.

    Attributes:
        id: Identifier whose ``type`` is the name of the package manager
            that resolved the project.
        definition_file_path: Path of the definition file relative to the
            analyzed root, using ``/`` separators; ``""`` for a project
            spanning the whole root.
        vcs: VCS information of the project, if known.
        homepage_url: Homepage, if known.
        scopes: Dependency scopes of the project.
    """

    id: Identifier
    definition_file_path: str
    vcs: VcsInfo = VcsInfo.EMPTY
    homepage_url: str = ""
    scopes: Tuple[Scope, ...] = ()

    def collect_dependencies(self) -> Set[Identifier]:
        """Return the identifiers of all dependencies across all scopes."""
        result: Set[Identifier] = set()
        for scope in self.scopes:
            result |= scope.collect_dependencies()
        return result

    def scope_names(self) -> Tuple[str, ...]:
        return tuple(scope.name for scope in self.scopes)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "id": self.id.to_coordinates(),
            "definition_file_path": self.definition_file_path,
            "vcs": self.vcs.to_json(),
            "homepage_url": self.homepage_url,
            "scopes": [scope.to_json() for scope in self.scopes],
        }
