"""Support for Python projects described by pip requirements files or
``setup.py``.

Dependencies are read statically: ``requirements*.txt`` files are parsed
line by line (following ``-r`` includes), ``setup.py`` files are inspected
with :mod:`ast` for a literal ``install_requires`` list. Nothing is
installed, so only exact pins (``==``) yield a package version; other
requirements are reported without version and, unless
``allow_dynamic_versions`` is set, with an issue.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.exceptions import FileOperationError, ParseError
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import Package
from depatlas.models.project import PackageReference, Project, Scope
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.utils.filesystem import safe_read_file

INSTALL_SCOPE = "install"

_INCLUDE_OPTIONS = ("--requirement", "-r")
_EDITABLE_OPTIONS = ("-e", "--editable")


class RequirementsFileParser:
    """Parses pip requirements files into ``packaging`` requirements.

    Includes (``-r``) are followed relative to the including file; an
    include cycle raises :class:`ParseError`. Other options (``-c``,
    ``--index-url``, ...) are ignored. Editable and bare-URL requirements
    cannot be identified statically and are reported as issues.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.issues: List[Issue] = []
        self._stack: List[Path] = []

    def parse_file(self, path: Path) -> List[Requirement]:
        resolved = path.resolve()
        if resolved in self._stack:
            cycle = " -> ".join(str(p) for p in self._stack + [resolved])
            raise ParseError(f"Circular include detected: {cycle}", file_path=str(resolved))

        content = safe_read_file(resolved)
        self._stack.append(resolved)
        try:
            return self._parse_lines(content, resolved)
        finally:
            self._stack.pop()

    def _parse_lines(self, content: str, path: Path) -> List[Requirement]:
        requirements: List[Requirement] = []

        for line_number, line in _logical_lines(content):
            spec = _strip_comment(line).strip()
            if not spec:
                continue

            if spec.startswith(_INCLUDE_OPTIONS):
                requirements.extend(self._include(spec, line_number, path))
            elif spec.startswith(_EDITABLE_OPTIONS):
                self.issues.append(
                    Issue(self.source, f"Editable requirement '{spec}' in '{path.name}' is not analyzed.", "HINT")
                )
            elif spec.startswith("-"):
                continue
            else:
                requirement = self._parse_requirement(spec, line_number, path)
                if requirement is not None:
                    requirements.append(requirement)

        return requirements

    def _include(self, spec: str, line_number: int, path: Path) -> List[Requirement]:
        option = next(option for option in _INCLUDE_OPTIONS if spec.startswith(option))
        # The file may be attached to the option or separated by "=" or whitespace.
        target = spec[len(option):].lstrip()
        if target.startswith("="):
            target = target[1:]
        target = target.strip()
        if not target:
            raise ParseError(
                "Include directive without a file",
                line_number=line_number,
                line_content=spec,
                file_path=str(path),
            )
        try:
            return self.parse_file(path.parent / target)
        except FileOperationError as exc:
            raise ParseError(
                f"Cannot include requirements file: {exc.message}",
                line_number=line_number,
                line_content=spec,
                file_path=str(path),
            ) from exc

    def _parse_requirement(self, spec: str, line_number: int, path: Path) -> Optional[Requirement]:
        # Per-requirement options such as --hash follow the requirement.
        spec = spec.split(" --", 1)[0].strip()
        try:
            return Requirement(spec)
        except InvalidRequirement as exc:
            if "://" in spec or spec.startswith((".", "/")):
                self.issues.append(
                    Issue(self.source, f"Requirement '{spec}' in '{path.name}' has no package name.", "WARNING")
                )
                return None
            raise ParseError(
                f"Invalid requirement: {exc}",
                line_number=line_number,
                line_content=spec,
                file_path=str(path),
            ) from exc


def _logical_lines(content: str) -> List[Tuple[int, str]]:
    """Join backslash continuations, keeping the first line's number."""
    lines: List[Tuple[int, str]] = []
    buffer = ""
    start = 0
    for number, raw in enumerate(content.splitlines(), start=1):
        if not buffer:
            start = number
        if raw.endswith("\\"):
            buffer += raw[:-1]
            continue
        lines.append((start, buffer + raw))
        buffer = ""
    if buffer:
        lines.append((start, buffer))
    return lines


def _strip_comment(line: str) -> str:
    """Remove a ``#`` comment that starts the line or follows whitespace."""
    if line.lstrip().startswith("#"):
        return ""
    index = line.find(" #")
    return line if index == -1 else line[:index]


def pinned_version(requirement: Requirement) -> str:
    """Return the exact version *requirement* pins, or ``""``."""
    specifiers = list(requirement.specifier)
    if len(specifiers) == 1 and specifiers[0].operator in ("==", "===") and "*" not in specifiers[0].version:
        return specifiers[0].version
    return ""


class Pip(PackageManager):
    """Resolves direct dependencies declared for pip."""

    manager_name = "PIP"

    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        if definition_file.name == "setup.py":
            name, version, requirements, issues = self._read_setup_py(definition_file)
        else:
            parser = RequirementsFileParser(self.manager_name)
            requirements = parser.parse_file(definition_file)
            issues = parser.issues
            name, version = _requirements_project_name(definition_file), ""

        references: Dict[Identifier, PackageReference] = {}
        packages: Dict[Identifier, Package] = {}

        for requirement in requirements:
            canonical = canonicalize_name(requirement.name)
            pinned = pinned_version(requirement)
            if not pinned and not self.analyzer_config.allow_dynamic_versions:
                issues.append(
                    Issue(
                        self.manager_name,
                        f"Requirement '{requirement}' does not pin a version.",
                        "WARNING",
                    )
                )

            identifier = Identifier("PyPI", "", canonical, pinned)
            references.setdefault(identifier, PackageReference(identifier))
            packages.setdefault(
                identifier,
                Package(
                    id=identifier,
                    purl=f"pkg:pypi/{canonical}@{pinned}" if pinned else f"pkg:pypi/{canonical}",
                ),
            )

        project = Project(
            id=Identifier(self.manager_name, "", name, version),
            definition_file_path=self.relative_path(definition_file),
            scopes=(Scope(INSTALL_SCOPE, tuple(references.values())),),
        )
        self.logger.debug(
            "Found %d requirement(s) in '%s'.", len(references), project.definition_file_path
        )

        return [
            ProjectAnalyzerResult(
                project=project,
                packages=tuple(packages.values()),
                issues=tuple(issues),
            )
        ]

    def _read_setup_py(self, path: Path) -> Tuple[str, str, List[Requirement], List[Issue]]:
        """Extract literal ``name``, ``version`` and ``install_requires``
        arguments of the ``setup()`` call."""
        try:
            tree = ast.parse(safe_read_file(path), filename=str(path))
        except SyntaxError as exc:
            raise ParseError(
                f"Invalid Python syntax: {exc.msg}",
                line_number=exc.lineno,
                file_path=str(path),
            ) from exc

        arguments: Dict[str, ast.expr] = {}
        for node in ast.walk(tree):
            if isinstance(node, ast.Call) and getattr(node.func, "id", getattr(node.func, "attr", None)) == "setup":
                arguments = {kw.arg: kw.value for kw in node.keywords if kw.arg}
                break

        issues: List[Issue] = []
        name = _literal_string(arguments.get("name")) or path.parent.name
        version = _literal_string(arguments.get("version")) or ""

        requirements: List[Requirement] = []
        install_requires = arguments.get("install_requires")
        if install_requires is not None:
            try:
                values = ast.literal_eval(install_requires)
            except ValueError:
                values = None
            if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
                issues.append(
                    Issue(
                        self.manager_name,
                        f"'install_requires' in '{self.relative_path(path)}' is not a literal list of strings.",
                        "WARNING",
                    )
                )
            else:
                for value in values:
                    try:
                        requirements.append(Requirement(value))
                    except InvalidRequirement as exc:
                        raise ParseError(
                            f"Invalid requirement: {exc}",
                            line_content=value,
                            file_path=str(path),
                        ) from exc

        return name, version, requirements, issues


def _literal_string(node: Optional[ast.expr]) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def _requirements_project_name(path: Path) -> str:
    """Name a requirements project after its directory, plus the file's
    suffix for variants such as ``requirements-dev.txt``."""
    variant = path.stem[len("requirements"):].strip("-_.")
    return f"{path.parent.name}-{variant}" if variant else path.parent.name


class PipFactory(PackageManagerFactory):
    manager_class = Pip
    definition_file_patterns = ("requirements*.txt", "setup.py")
