"""
Package manager implementations for depatlas.

Each module provides a :class:`~depatlas.core.package_manager.PackageManager`
and its factory. The registered set lives in :mod:`depatlas.core.registry`.
"""

from __future__ import annotations

from depatlas.managers.cargo import Cargo, CargoFactory
from depatlas.managers.npm import Npm, NpmFactory
from depatlas.managers.pip import Pip, PipFactory
from depatlas.managers.unmanaged import Unmanaged, UnmanagedFactory

__all__ = [
    "Cargo",
    "CargoFactory",
    "Npm",
    "NpmFactory",
    "Pip",
    "PipFactory",
    "Unmanaged",
    "UnmanagedFactory",
]
