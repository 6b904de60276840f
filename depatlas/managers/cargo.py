"""Support for Rust projects built with Cargo.

Projects and their declared dependencies are read from ``Cargo.toml``.
Exact versions and transitive dependencies come from ``Cargo.lock``, which
for workspace members lives in the workspace root; it is searched from the
manifest's directory upwards, but never above the analyzed root.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import Package
from depatlas.models.project import PackageReference, Project, Scope
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.models.vcs import VcsInfo
from depatlas.utils.filesystem import is_within, load_toml_file

LOCKFILE_NAME = "Cargo.lock"

SCOPES: Tuple[str, ...] = ("dependencies", "dev-dependencies", "build-dependencies")

LockKey = Tuple[str, str]


def declared_dependencies(manifest: Dict[str, Any], scope: str) -> List[str]:
    """Return the crate names a manifest declares for *scope*, including
    platform-specific ``[target.<cfg>.<scope>]`` tables.

    Renamed dependencies (``alias = { package = "real" }``) are reported
    under their real crate name.
    """
    tables = [manifest.get(scope, {})]
    for target in manifest.get("target", {}).values():
        if isinstance(target, dict):
            tables.append(target.get(scope, {}))

    names: Set[str] = set()
    for table in tables:
        for key, value in table.items():
            if isinstance(value, dict) and value.get("package"):
                names.add(str(value["package"]))
            else:
                names.add(key)
    return sorted(names)


def parse_lock_dependency(spec: str) -> Tuple[str, Optional[str]]:
    """Split a ``Cargo.lock`` dependency entry ``"name [version [(source)]]"``."""
    parts = spec.split()
    return parts[0], parts[1] if len(parts) > 1 else None


class CargoLock:
    """Index over the ``[[package]]`` entries of a ``Cargo.lock`` file."""

    def __init__(self, entries: List[Dict[str, Any]], source: str) -> None:
        self.source = source
        self.entries: Dict[LockKey, Dict[str, Any]] = {}
        self.versions: Dict[str, List[str]] = defaultdict(list)
        for entry in entries:
            key = (str(entry.get("name", "")), str(entry.get("version", "")))
            self.entries[key] = entry
            self.versions[key[0]].append(key[1])

        self.found: Dict[Identifier, Package] = {}
        self.issues: List[Issue] = []
        self._references: Dict[LockKey, PackageReference] = {}
        self._visiting: Set[LockKey] = set()

    @classmethod
    def load(cls, path: Path, source: str) -> "CargoLock":
        return cls(load_toml_file(path).get("package", []), source)

    def lookup(self, name: str, version: Optional[str]) -> Optional[LockKey]:
        """Find the locked package *name*, disambiguated by *version*."""
        if version is not None:
            return (name, version) if (name, version) in self.entries else None

        versions = sorted(self.versions.get(name, []))
        if not versions:
            return None
        if len(versions) > 1:
            self.issues.append(
                Issue(
                    self.source,
                    f"Crate '{name}' is locked in several versions ({', '.join(versions)}); using '{versions[-1]}'.",
                    "WARNING",
                )
            )
        return name, versions[-1]

    def dependencies_of(self, key: LockKey) -> List[Tuple[str, Optional[str]]]:
        return [parse_lock_dependency(spec) for spec in self.entries[key].get("dependencies", [])]

    def reference(self, name: str, version: Optional[str]) -> PackageReference:
        key = self.lookup(name, version)
        if key is None:
            issue = Issue(self.source, f"Crate '{name}' is not contained in '{LOCKFILE_NAME}'.")
            self.issues.append(issue)
            return PackageReference(Identifier("Crate", "", name, version or ""), issues=(issue,))

        if key in self._references:
            return self._references[key]

        identifier = Identifier("Crate", "", key[0], key[1])
        self.found.setdefault(identifier, Package(id=identifier, purl=f"pkg:cargo/{key[0]}@{key[1]}"))

        if key in self._visiting:
            return PackageReference(identifier)

        self._visiting.add(key)
        try:
            children = tuple(
                self.reference(dep_name, dep_version)
                for dep_name, dep_version in sorted(self.dependencies_of(key), key=lambda d: (d[0], d[1] or ""))
            )
        finally:
            self._visiting.discard(key)

        reference = PackageReference(identifier, dependencies=children)
        self._references[key] = reference
        return reference


class Cargo(PackageManager):
    """Resolves Cargo projects from ``Cargo.toml`` and ``Cargo.lock``."""

    manager_name = "Cargo"

    def find_lockfile(self, definition_file: Path) -> Optional[Path]:
        directory = definition_file.parent
        while is_within(directory, self.analysis_root):
            candidate = directory / LOCKFILE_NAME
            if candidate.is_file():
                return candidate
            if directory == directory.parent:
                break
            directory = directory.parent
        return None

    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        manifest = load_toml_file(definition_file)
        package = manifest.get("package", {})
        name = str(package.get("name") or definition_file.parent.name)
        version = package.get("version", "")
        if not isinstance(version, str):
            # Inherited from the workspace (``version.workspace = true``).
            version = ""
        relative = self.relative_path(definition_file)

        issues: List[Issue] = []
        lockfile_path = self.find_lockfile(definition_file)
        lock = CargoLock.load(lockfile_path, self.manager_name) if lockfile_path else None
        if lock is None:
            issues.append(
                Issue(
                    self.manager_name,
                    f"No '{LOCKFILE_NAME}' found for '{relative}'; versions cannot be resolved.",
                    "WARNING",
                )
            )

        # The project's own lock entry pins the exact version of each direct
        # dependency.
        pinned: Dict[str, str] = {}
        if lock is not None and (name, version) in lock.entries:
            for dep_name, dep_version in lock.dependencies_of((name, version)):
                if dep_version is not None:
                    pinned[dep_name] = dep_version

        unresolved: Dict[Identifier, Package] = {}
        scopes = []
        for scope_name in SCOPES:
            references = []
            for crate in declared_dependencies(manifest, scope_name):
                if lock is None:
                    identifier = Identifier("Crate", "", crate, "")
                    unresolved.setdefault(identifier, Package(id=identifier, purl=f"pkg:cargo/{crate}"))
                    references.append(PackageReference(identifier))
                else:
                    references.append(lock.reference(crate, pinned.get(crate)))
            scopes.append(Scope(scope_name, tuple(references)))

        found = unresolved if lock is None else lock.found
        if lock is not None:
            issues.extend(lock.issues)
        packages = tuple(sorted(found.values(), key=lambda p: p.id))

        repository = package.get("repository")
        project = Project(
            id=Identifier(self.manager_name, "", name, version),
            definition_file_path=relative,
            vcs=VcsInfo("Git", repository, "") if isinstance(repository, str) and repository else VcsInfo.EMPTY,
            homepage_url=package.get("homepage", "") if isinstance(package.get("homepage"), str) else "",
            scopes=tuple(scopes),
        )
        self.logger.debug("Found %d crate(s) for '%s'.", len(packages), relative)

        return [ProjectAnalyzerResult(project=project, packages=packages, issues=tuple(issues))]


class CargoFactory(PackageManagerFactory):
    manager_class = Cargo
    definition_file_patterns = ("Cargo.toml",)
