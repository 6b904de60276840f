"""Registry of the supported package managers."""

from __future__ import annotations

from typing import List, Tuple

from depatlas.core.package_manager import PackageManagerFactory
from depatlas.managers.cargo import CargoFactory
from depatlas.managers.npm import NpmFactory
from depatlas.managers.pip import PipFactory

#: Factories of all supported package managers, in analysis order.
PACKAGE_MANAGER_FACTORIES: Tuple[PackageManagerFactory, ...] = (
    CargoFactory(),
    NpmFactory(),
    PipFactory(),
)


def all_package_managers() -> List[PackageManagerFactory]:
    return list(PACKAGE_MANAGER_FACTORIES)


def package_manager_names() -> List[str]:
    return [factory.manager_name for factory in PACKAGE_MANAGER_FACTORIES]


def get_factory(name: str) -> PackageManagerFactory:
    """Look up a factory by manager name, ignoring case.

    Raises:
        KeyError: No package manager with that name is registered.
    """
    for factory in PACKAGE_MANAGER_FACTORIES:
        if factory.manager_name.lower() == name.lower():
            return factory
    raise KeyError(name)
