"""
Identifier data model for depatlas.

Every project and package found during an analysis is addressed by an
:class:`Identifier` made of four components: the type (for projects, the
name of the package manager that found it; for packages, the name of the
package repository), a namespace, a name, and a version. The string form
``type:namespace:name:version`` is called the *coordinates*.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict


@dataclass(frozen=True, order=True)
class Identifier:
    """Unique identifier of a project or package.

    Attributes:
        type: Package manager (projects) or repository (packages) type,
            e.g. ``"NPM"`` or ``"PyPI"``.
        namespace: Group, scope or organization; empty if not applicable.
        name: Project or package name.
        version: Version; empty if unknown.
    """

    EMPTY: ClassVar["Identifier"]

    type: str
    namespace: str
    name: str
    version: str

    @classmethod
    def from_coordinates(cls, coordinates: str) -> "Identifier":
        """Parse ``type:namespace:name:version`` coordinates.

        Missing trailing components are treated as empty. The version is
        the remainder after the third colon, so it may itself contain
        colons.

        Raises:
            ValueError: *coordinates* has no type component.
        """
        parts = coordinates.split(":", 3)
        if not parts[0]:
            raise ValueError(f"Identifier coordinates without a type: {coordinates!r}")
        parts += [""] * (4 - len(parts))
        return cls(*parts)

    def to_coordinates(self) -> str:
        """Return the ``type:namespace:name:version`` string form."""
        return ":".join((self.type, self.namespace, self.name, self.version))

    def to_json(self) -> Dict[str, str]:
        """Return a JSON-serializable representation."""
        return {
            "type": self.type,
            "namespace": self.namespace,
            "name": self.name,
            "version": self.version,
        }

    def __str__(self) -> str:
        return self.to_coordinates()


Identifier.EMPTY = Identifier("", "", "", "")
