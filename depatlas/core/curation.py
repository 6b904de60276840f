"""Package curation providers.

A provider answers which :class:`~depatlas.models.curation.PackageCuration`
objects apply to a package identifier. The aggregator asks once per
distinct package and applies the returned curations in order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Sequence

from depatlas.config import load_curations_file
from depatlas.models.curation import PackageCuration
from depatlas.models.identifier import Identifier


class PackageCurationProvider(ABC):
    """Source of package curations."""

    @abstractmethod
    def get_curations_for(self, package_id: Identifier) -> List[PackageCuration]:
        """Return the curations applicable to *package_id*, in application
        order."""


class SimplePackageCurationProvider(PackageCurationProvider):
    """Serves curations from an in-memory list."""

    def __init__(self, curations: Iterable[PackageCuration] = ()) -> None:
        self.curations = tuple(curations)

    def get_curations_for(self, package_id: Identifier) -> List[PackageCuration]:
        return [curation for curation in self.curations if curation.is_applicable(package_id)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(curations={len(self.curations)})"


class FilePackageCurationProvider(SimplePackageCurationProvider):
    """Serves curations read from a TOML file with ``[[curations]]`` tables.

    Raises:
        ConfigError: The file is missing or invalid.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(load_curations_file(path))
        self.path = path


class CompositePackageCurationProvider(PackageCurationProvider):
    """Chains providers; curations of later providers apply after, and thus
    override, those of earlier ones."""

    def __init__(self, providers: Sequence[PackageCurationProvider]) -> None:
        self.providers = tuple(providers)

    def get_curations_for(self, package_id: Identifier) -> List[PackageCuration]:
        curations: List[PackageCuration] = []
        for provider in self.providers:
            curations.extend(provider.get_curations_for(package_id))
        return curations
