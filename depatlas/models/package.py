"""
Package data models for depatlas.

A :class:`Package` is a third-party dependency found while resolving a
project. The same package may be reported by several projects and even
several package managers; the aggregated result keeps a single
:class:`CuratedPackage` per identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Tuple

from depatlas.models.identifier import Identifier
from depatlas.models.vcs import VcsInfo

if TYPE_CHECKING:
    from depatlas.models.curation import PackageCuration


@dataclass(frozen=True)
class Package:
    """Metadata of a resolved package.

    Attributes:
        id: Identifier of the package.
        purl: Package URL (https://github.com/package-url/purl-spec).
        description: Short description, if known.
        homepage_url: Homepage, if known.
        vcs: Source repository, if known.
    """

    id: Identifier
    purl: str = ""
    description: str = ""
    homepage_url: str = ""
    vcs: VcsInfo = VcsInfo.EMPTY

    def sort_key(self) -> Tuple[Any, ...]:
        """Total order over all fields, used to pick between variants of
        the same package deterministically."""
        return (
            self.id,
            self.purl,
            self.description,
            self.homepage_url,
            (self.vcs.type, self.vcs.url, self.vcs.revision, self.vcs.path),
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "id": self.id.to_coordinates(),
            "purl": self.purl,
            "description": self.description,
            "homepage_url": self.homepage_url,
            "vcs": self.vcs.to_json(),
        }


@dataclass(frozen=True)
class CuratedPackage:
    """A package together with the curations that were applied to it.

    Attributes:
        package: The package after all curations have been applied.
        curations: The applied curations, in application order.
    """

    package: Package
    curations: Tuple["PackageCuration", ...] = ()

    @property
    def id(self) -> Identifier:
        return self.package.id

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        entry = self.package.to_json()
        if self.curations:
            entry["curations"] = [curation.to_json() for curation in self.curations]
        return entry
