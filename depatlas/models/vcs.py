"""
Version control data models for depatlas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Mapping


@dataclass(frozen=True)
class VcsInfo:
    """Version control coordinates of a working tree.

    Attributes:
        type: VCS type, e.g. ``"Git"``; empty if unknown.
        url: Remote URL; empty if unknown.
        revision: Checked-out revision; empty if unknown.
        path: Path inside the repository the information refers to.
    """

    EMPTY: ClassVar["VcsInfo"]

    type: str
    url: str
    revision: str
    path: str = ""

    def is_empty(self) -> bool:
        """Return True if no VCS information is available."""
        return self == VcsInfo.EMPTY

    def to_json(self) -> Dict[str, str]:
        """Return a JSON-serializable representation."""
        return {
            "type": self.type,
            "url": self.url,
            "revision": self.revision,
            "path": self.path,
        }


VcsInfo.EMPTY = VcsInfo("", "", "", "")


@dataclass(frozen=True)
class VcsContext:
    """VCS state of an analyzed root.

    Attributes:
        vcs: VCS information of the root, :attr:`VcsInfo.EMPTY` if the root
            is not under version control.
        nested_repositories: Nested repositories located inside the root,
            keyed by their path relative to the working tree root.
    """

    vcs: VcsInfo = VcsInfo.EMPTY
    nested_repositories: Mapping[str, VcsInfo] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "nested_repositories",
            MappingProxyType(dict(sorted(self.nested_repositories.items()))),
        )

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "vcs": self.vcs.to_json(),
            "nested_repositories": {
                path: info.to_json() for path, info in self.nested_repositories.items()
            },
        }
