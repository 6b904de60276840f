"""Configuration loading for depatlas.

Two kinds of configuration exist:

- :class:`AnalyzerConfiguration` — global settings for the analyzer,
  read from ``depatlas.toml`` (``[depatlas]`` table) or ``pyproject.toml``
  (``[tool.depatlas]`` table).
- :class:`RepositoryConfiguration` — settings that belong to the analyzed
  repository, read from ``.depatlas.toml`` at the project root.

Discovery order for the global configuration:

1. Explicit path from ``--config`` or ``DEPATLAS_CONFIG``
2. ``depatlas.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.depatlas]`` section

Example (``depatlas.toml``)::

    [depatlas]
    allow_dynamic_versions = true
    max_workers = 5

Example (``.depatlas.toml``)::

    [[excludes.paths]]
    pattern = "examples/**"
    reason = "EXAMPLE_OF"

    [[excludes.scopes]]
    pattern = "devDependencies"

    [[curations]]
    id = "NPM::left-pad:1.3.0"
    homepage_url = "https://github.com/left-pad/left-pad"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import tomli

from depatlas.constants import (
    DEFAULT_ALLOW_DYNAMIC_VERSIONS,
    DEFAULT_MAX_WORKERS,
    GLOBAL_CONFIGURATION_FILENAME,
)
from depatlas.exceptions import ConfigError
from depatlas.models.curation import PackageCuration, PackageCurationData
from depatlas.models.identifier import Identifier
from depatlas.utils.logger import get_logger

logger = get_logger("config")


# ---------------------------------------------------------------------------
# Global analyzer configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalyzerConfiguration:
    """Global analyzer settings.

    Attributes:
        allow_dynamic_versions: Accept version ranges in definition files
            without recording an issue.
        max_workers: Number of package managers resolved in parallel.
        source_path: Path to the loaded config file, or ``None``.
    """

    allow_dynamic_versions: bool = DEFAULT_ALLOW_DYNAMIC_VERSIONS
    max_workers: int = DEFAULT_MAX_WORKERS

    source_path: Optional[Path] = field(default=None, repr=False, compare=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the configuration as a dictionary, without metadata."""
        return {
            "allow_dynamic_versions": self.allow_dynamic_versions,
            "max_workers": self.max_workers,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the global configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to the config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    depatlas_toml = cwd / GLOBAL_CONFIGURATION_FILENAME
    if depatlas_toml.is_file():
        logger.debug("Found %s: %s", GLOBAL_CONFIGURATION_FILENAME, depatlas_toml)
        return depatlas_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_depatlas_section(pyproject_toml):
        logger.debug("Found [tool.depatlas] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depatlas_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.depatlas] section.

    An unreadable pyproject.toml is treated as not having the section.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "depatlas" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> AnalyzerConfiguration:
    """Load and validate the global analyzer configuration.

    Args:
        config_path: Explicit path to the config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`AnalyzerConfiguration`, defaults if no file found.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid
            values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return AnalyzerConfiguration()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depatlas", {})
    else:
        section = raw.get("depatlas", {})

    if not section:
        logger.debug("Config file found but no depatlas section, using defaults")
        return AnalyzerConfiguration(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved), source_path=resolved)
    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomli.load(fh)
    except tomli.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
    source_path: Optional[Path] = None,
) -> AnalyzerConfiguration:
    """Validate a ``[depatlas]`` / ``[tool.depatlas]`` table.

    Raises:
        ConfigError: Unknown keys or values of the wrong type.
    """
    known = {"allow_dynamic_versions", "max_workers"}

    unknown = set(section.keys()) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    values: Dict[str, Any] = {}

    if "allow_dynamic_versions" in section:
        val = section["allow_dynamic_versions"]
        if not isinstance(val, bool):
            raise ConfigError(
                f"allow_dynamic_versions must be a boolean, got {type(val).__name__}",
                config_path=config_path,
                option="allow_dynamic_versions",
            )
        values["allow_dynamic_versions"] = val

    if "max_workers" in section:
        val = section["max_workers"]
        # bool is a subclass of int
        if isinstance(val, bool) or not isinstance(val, int) or val < 1:
            raise ConfigError(
                f"max_workers must be a positive integer, got {val!r}",
                config_path=config_path,
                option="max_workers",
            )
        values["max_workers"] = val

    return AnalyzerConfiguration(source_path=source_path, **values)


# ---------------------------------------------------------------------------
# Repository configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathExclude:
    """Excludes definition files whose root-relative path matches
    ``pattern`` (``fnmatch`` syntax, ``*`` also matches ``/``)."""

    pattern: str
    reason: str = ""
    comment: str = ""

    def matches(self, relative_path: str) -> bool:
        return fnmatchcase(relative_path, self.pattern)


@dataclass(frozen=True)
class ScopeExclude:
    """Marks dependency scopes whose name matches ``pattern`` as excluded."""

    pattern: str
    reason: str = ""
    comment: str = ""

    def matches(self, scope_name: str) -> bool:
        return fnmatchcase(scope_name, self.pattern)


@dataclass(frozen=True)
class Excludes:
    """Path and scope excludes of a repository."""

    paths: Tuple[PathExclude, ...] = ()
    scopes: Tuple[ScopeExclude, ...] = ()

    def is_path_excluded(self, relative_path: str) -> bool:
        return any(exclude.matches(relative_path) for exclude in self.paths)

    def is_scope_excluded(self, scope_name: str) -> bool:
        return any(exclude.matches(scope_name) for exclude in self.scopes)


@dataclass(frozen=True)
class RepositoryConfiguration:
    """Settings of the analyzed repository.

    Attributes:
        excludes: Path and scope excludes.
        curations: Package curations shipped with the repository.
        source_path: Path to the loaded file, or ``None`` for defaults.
    """

    excludes: Excludes = field(default_factory=Excludes)
    curations: Tuple[PackageCuration, ...] = ()

    source_path: Optional[Path] = field(default=None, repr=False, compare=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the configuration as a dictionary, without metadata."""
        return {
            "excludes": {
                "paths": [
                    {"pattern": e.pattern, "reason": e.reason, "comment": e.comment}
                    for e in self.excludes.paths
                ],
                "scopes": [
                    {"pattern": e.pattern, "reason": e.reason, "comment": e.comment}
                    for e in self.excludes.scopes
                ],
            },
            "curations": [curation.to_json() for curation in self.curations],
        }


def load_repository_configuration(path: Path) -> RepositoryConfiguration:
    """Load the repository configuration stored at *path*.

    A missing file is not an error: the default configuration is returned.

    Raises:
        ConfigError: The file exists but is invalid.
    """
    if not path.is_file():
        logger.debug("No repository configuration at %s, using defaults", path)
        return RepositoryConfiguration()

    logger.info("Using repository configuration file '%s'.", path)
    raw = _read_toml(path)
    config_path = str(path)

    unknown = set(raw.keys()) - {"excludes", "curations"}
    if unknown:
        raise ConfigError(
            f"Unknown repository configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    excludes_raw = raw.get("excludes", {})
    if not isinstance(excludes_raw, dict):
        raise ConfigError(
            "excludes must be a table", config_path=config_path, option="excludes"
        )
    unknown = set(excludes_raw.keys()) - {"paths", "scopes"}
    if unknown:
        raise ConfigError(
            f"Unknown excludes keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
            option="excludes",
        )

    excludes = Excludes(
        paths=tuple(
            PathExclude(**entry)
            for entry in _parse_excludes(excludes_raw.get("paths", []), "excludes.paths", config_path)
        ),
        scopes=tuple(
            ScopeExclude(**entry)
            for entry in _parse_excludes(excludes_raw.get("scopes", []), "excludes.scopes", config_path)
        ),
    )

    return RepositoryConfiguration(
        excludes=excludes,
        curations=parse_curations(raw.get("curations", []), config_path=config_path),
        source_path=path,
    )


def _parse_excludes(entries: Any, option: str, config_path: str) -> List[Dict[str, str]]:
    """Validate an array of exclude tables."""
    if not isinstance(entries, list):
        raise ConfigError(f"{option} must be an array of tables", config_path=config_path, option=option)

    parsed: List[Dict[str, str]] = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("pattern"), str):
            raise ConfigError(
                f"Every entry of {option} needs a string 'pattern'",
                config_path=config_path,
                option=option,
            )
        unknown = set(entry.keys()) - {"pattern", "reason", "comment"}
        if unknown:
            raise ConfigError(
                f"Unknown {option} keys: {', '.join(sorted(unknown))}",
                config_path=config_path,
                option=option,
            )
        parsed.append({key: str(value) for key, value in entry.items()})
    return parsed


def parse_curations(entries: Any, *, config_path: str) -> Tuple[PackageCuration, ...]:
    """Validate a ``[[curations]]`` array of tables.

    Each table needs an ``id`` in coordinates form; the remaining keys are
    the curation data.

    Raises:
        ConfigError: Malformed entries.
    """
    if not isinstance(entries, list):
        raise ConfigError(
            "curations must be an array of tables", config_path=config_path, option="curations"
        )

    curations: List[PackageCuration] = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
            raise ConfigError(
                "Every curation needs a string 'id'",
                config_path=config_path,
                option="curations",
            )
        data = {key: value for key, value in entry.items() if key != "id"}
        try:
            identifier = Identifier.from_coordinates(entry["id"])
            curation_data = PackageCurationData.from_mapping(data)
        except ValueError as exc:
            raise ConfigError(
                f"Invalid curation for '{entry['id']}': {exc}",
                config_path=config_path,
                option="curations",
            ) from exc
        curations.append(PackageCuration(identifier, curation_data))

    return tuple(curations)


def load_curations_file(path: Path) -> Tuple[PackageCuration, ...]:
    """Load the ``[[curations]]`` of a standalone curations file.

    Raises:
        ConfigError: The file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Curations file not found: {path}", config_path=str(path))
    raw = _read_toml(path)
    return parse_curations(raw.get("curations", []), config_path=str(path))
