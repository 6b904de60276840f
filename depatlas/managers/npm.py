"""Support for NPM projects.

Projects are read from ``package.json``; versions and the transitive
dependency tree come from the ``package-lock.json`` next to it. Lockfile
versions 2 and 3 are read from their flat ``packages`` section, version 1
is converted to that form first. Dependencies are located the way Node
resolves modules: from the requiring package's own ``node_modules``
upwards to the project root.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import Package
from depatlas.models.project import PackageReference, Project, Scope
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.models.vcs import VcsInfo
from depatlas.utils.filesystem import load_json_file

LOCKFILE_NAME = "package-lock.json"

#: ``package.json`` sections mapped to scopes, in output order.
SCOPES: Tuple[str, ...] = ("dependencies", "devDependencies")

_NODE_MODULES = "node_modules"


def split_npm_name(full_name: str) -> Tuple[str, str]:
    """Split ``@scope/name`` into namespace and name."""
    if full_name.startswith("@") and "/" in full_name:
        namespace, name = full_name.split("/", 1)
        return namespace, name
    return "", full_name


def npm_purl(full_name: str, version: str) -> str:
    namespace, name = split_npm_name(full_name)
    path = f"{namespace.replace('@', '%40')}/{name}" if namespace else name
    return f"pkg:npm/{path}@{version}" if version else f"pkg:npm/{path}"


def parse_repository(repository: Any) -> VcsInfo:
    """Build VCS information from a ``repository`` field."""
    if isinstance(repository, dict):
        url = str(repository.get("url", ""))
        vcs_type = str(repository.get("type", ""))
        path = str(repository.get("directory", ""))
    elif isinstance(repository, str):
        url, vcs_type, path = repository, "", ""
    else:
        return VcsInfo.EMPTY

    if not url:
        return VcsInfo.EMPTY
    if vcs_type.lower() == "git" or url.startswith("git+") or url.endswith(".git"):
        vcs_type = "Git"
    return VcsInfo(type=vcs_type, url=url, revision="", path=path)


def _flatten_v1(dependencies: Dict[str, Any], parent: str = "") -> Dict[str, Dict[str, Any]]:
    """Convert a version 1 ``dependencies`` tree to the ``packages`` form."""
    packages: Dict[str, Dict[str, Any]] = {}
    for name, entry in dependencies.items():
        if not isinstance(entry, dict):
            continue
        location = f"{parent}/{_NODE_MODULES}/{name}" if parent else f"{_NODE_MODULES}/{name}"
        packages[location] = {
            "version": entry.get("version", ""),
            "dependencies": dict(entry.get("requires", {})),
        }
        packages.update(_flatten_v1(entry.get("dependencies", {}), location))
    return packages


def lockfile_packages(lockfile: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Return the lockfile's packages keyed by install location."""
    packages = lockfile.get("packages")
    if isinstance(packages, dict):
        return {key: value for key, value in packages.items() if isinstance(value, dict)}
    return _flatten_v1(lockfile.get("dependencies", {}))


def find_installed(packages: Dict[str, Any], requiring: str, name: str) -> Optional[str]:
    """Locate the package *name* as seen from the install location
    *requiring* (``""`` for the project root)."""
    base = requiring
    while True:
        candidate = f"{base}/{_NODE_MODULES}/{name}" if base else f"{_NODE_MODULES}/{name}"
        if candidate in packages:
            return candidate
        if not base:
            return None
        index = base.rfind(f"/{_NODE_MODULES}/")
        base = base[:index] if index != -1 else ""


def _name_from_location(location: str) -> str:
    return location.rsplit(f"{_NODE_MODULES}/", 1)[-1]


class _LockfileTree:
    """Builds dependency trees from a flat ``packages`` mapping."""

    def __init__(self, packages: Dict[str, Dict[str, Any]], source: str) -> None:
        self.packages = packages
        self.source = source
        self.found: Dict[Identifier, Package] = {}
        self.issues: List[Issue] = []
        self._references: Dict[str, PackageReference] = {}
        self._visiting: Set[str] = set()

    def entry(self, location: str) -> Dict[str, Any]:
        entry = self.packages[location]
        if entry.get("link") and entry.get("resolved") in self.packages:
            return self.packages[entry["resolved"]]
        return entry

    def reference(self, requiring: str, name: str, optional: bool = False) -> Optional[PackageReference]:
        location = find_installed(self.packages, requiring, name)
        if location is None:
            if optional:
                return None
            namespace, short_name = split_npm_name(name)
            issue = Issue(self.source, f"Package '{name}' is not contained in '{LOCKFILE_NAME}'.")
            self.issues.append(issue)
            return PackageReference(Identifier("NPM", namespace, short_name, ""), issues=(issue,))

        if location in self._references:
            return self._references[location]

        entry = self.entry(location)
        full_name = entry.get("name") or _name_from_location(location)
        version = str(entry.get("version", ""))
        namespace, short_name = split_npm_name(full_name)
        identifier = Identifier("NPM", namespace, short_name, version)
        self.found.setdefault(identifier, Package(id=identifier, purl=npm_purl(full_name, version)))

        if location in self._visiting:
            return PackageReference(identifier)

        self._visiting.add(location)
        try:
            children = self.children(location, entry)
        finally:
            self._visiting.discard(location)

        reference = PackageReference(identifier, dependencies=children)
        self._references[location] = reference
        return reference

    def children(self, location: str, entry: Dict[str, Any]) -> Tuple[PackageReference, ...]:
        children: List[PackageReference] = []
        for name in sorted(entry.get("dependencies", {})):
            child = self.reference(location, name)
            if child is not None:
                children.append(child)
        for name in sorted(entry.get("optionalDependencies", {})):
            child = self.reference(location, name, optional=True)
            if child is not None:
                children.append(child)
        return tuple(children)


class Npm(PackageManager):
    """Resolves NPM projects from ``package.json`` and ``package-lock.json``."""

    manager_name = "NPM"

    def map_definition_files(self, definition_files: Sequence[Path]) -> List[Path]:
        """Drop definition files of installed packages."""
        kept = []
        for definition_file in definition_files:
            try:
                parts = definition_file.relative_to(self.analysis_root).parts
            except ValueError:
                parts = definition_file.parts
            if _NODE_MODULES in parts:
                continue
            kept.append(definition_file)
        return kept

    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        manifest = load_json_file(definition_file)
        full_name = str(manifest.get("name") or definition_file.parent.name)
        namespace, name = split_npm_name(full_name)
        relative = self.relative_path(definition_file)

        lockfile = definition_file.parent / LOCKFILE_NAME
        issues: List[Issue] = []
        if lockfile.is_file():
            tree: Optional[_LockfileTree] = _LockfileTree(
                lockfile_packages(load_json_file(lockfile)), self.manager_name
            )
        else:
            tree = None
            issues.append(
                Issue(
                    self.manager_name,
                    f"No '{LOCKFILE_NAME}' found next to '{relative}'; versions cannot be resolved.",
                    "WARNING",
                )
            )

        unresolved: Dict[Identifier, Package] = {}
        scopes = []
        for scope_name in SCOPES:
            declared = manifest.get(scope_name) or {}
            references = []
            for dependency in sorted(declared):
                if tree is None:
                    dep_namespace, dep_name = split_npm_name(dependency)
                    identifier = Identifier("NPM", dep_namespace, dep_name, "")
                    unresolved.setdefault(identifier, Package(id=identifier, purl=npm_purl(dependency, "")))
                    references.append(PackageReference(identifier))
                    continue
                reference = tree.reference("", dependency)
                if reference is not None:
                    references.append(reference)
            scopes.append(Scope(scope_name, tuple(references)))

        found = unresolved if tree is None else tree.found
        if tree is not None:
            issues.extend(tree.issues)
        packages = tuple(sorted(found.values(), key=lambda package: package.id))

        project = Project(
            id=Identifier(self.manager_name, namespace, name, str(manifest.get("version", ""))),
            definition_file_path=relative,
            vcs=parse_repository(manifest.get("repository")),
            homepage_url=str(manifest.get("homepage", "")),
            scopes=tuple(scopes),
        )
        self.logger.debug("Found %d package(s) for '%s'.", len(packages), relative)

        return [ProjectAnalyzerResult(project=project, packages=packages, issues=tuple(issues))]


class NpmFactory(PackageManagerFactory):
    manager_class = Npm
    definition_file_patterns = ("package.json",)
