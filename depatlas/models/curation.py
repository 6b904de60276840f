"""
Package curation data models for depatlas.

A curation corrects or completes the metadata reported for a package,
independently of the package manager that reported it. Curations are
matched by identifier; the version component of a curation's identifier
may be empty (all versions) or an ``fnmatch``-style glob such as
``"1.*"``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from fnmatch import fnmatchcase
from typing import Any, Dict, Mapping, Optional

from depatlas.exceptions import PreconditionError
from depatlas.models.identifier import Identifier
from depatlas.models.package import Package
from depatlas.models.vcs import VcsInfo


@dataclass(frozen=True)
class PackageCurationData:
    """The values a curation sets. ``None`` leaves a field untouched.

    Attributes:
        comment: Why the curation exists; informational only.
        purl: Replacement package URL.
        description: Replacement description.
        homepage_url: Replacement homepage.
        vcs: Replacement source repository.
    """

    comment: Optional[str] = None
    purl: Optional[str] = None
    description: Optional[str] = None
    homepage_url: Optional[str] = None
    vcs: Optional[VcsInfo] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PackageCurationData":
        """Build curation data from a parsed TOML table.

        Raises:
            ValueError: Unknown keys or non-string values.
        """
        known = {"comment", "purl", "description", "homepage_url", "vcs"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown curation keys: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        for key in known - {"vcs"}:
            if key in data:
                if not isinstance(data[key], str):
                    raise ValueError(f"Curation value '{key}' must be a string")
                values[key] = data[key]

        if "vcs" in data:
            vcs = data["vcs"]
            if not isinstance(vcs, Mapping):
                raise ValueError("Curation value 'vcs' must be a table")
            values["vcs"] = VcsInfo(
                type=str(vcs.get("type", "")),
                url=str(vcs.get("url", "")),
                revision=str(vcs.get("revision", "")),
                path=str(vcs.get("path", "")),
            )

        return cls(**values)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation without unset values."""
        entry: Dict[str, Any] = {}
        for key in ("comment", "purl", "description", "homepage_url"):
            value = getattr(self, key)
            if value is not None:
                entry[key] = value
        if self.vcs is not None:
            entry["vcs"] = self.vcs.to_json()
        return entry


@dataclass(frozen=True)
class PackageCuration:
    """Curation data bound to the identifier(s) it applies to."""

    id: Identifier
    data: PackageCurationData

    def is_applicable(self, package_id: Identifier) -> bool:
        """Return True if this curation applies to *package_id*.

        The type is compared case-insensitively, namespace and name
        exactly; an empty curation version matches every version.
        """
        return (
            self.id.type.lower() == package_id.type.lower()
            and self.id.namespace == package_id.namespace
            and self.id.name == package_id.name
            and (
                not self.id.version
                or fnmatchcase(package_id.version, self.id.version)
            )
        )

    def apply(self, package: Package) -> Package:
        """Return a copy of *package* with this curation's values applied.

        Raises:
            PreconditionError: The curation does not apply to *package*.
        """
        if not self.is_applicable(package.id):
            raise PreconditionError(
                f"Curation for '{self.id.to_coordinates()}' cannot be applied to "
                f"package '{package.id.to_coordinates()}'."
            )

        changes: Dict[str, Any] = {
            key: getattr(self.data, key)
            for key in ("purl", "description", "homepage_url", "vcs")
            if getattr(self.data, key) is not None
        }
        return replace(package, **changes)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {"id": self.id.to_coordinates(), "data": self.data.to_json()}
