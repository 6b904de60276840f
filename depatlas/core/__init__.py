"""
Core analysis building blocks for depatlas.

Importing from here keeps user-facing imports short:

    from depatlas.core import AnalyzerResultBuilder, PackageManager

Discovery, scheduling and the package manager registry depend on the
concrete managers in :mod:`depatlas.managers` and are imported from their
own modules.
"""

from __future__ import annotations

from depatlas.core.package_manager import (
    PackageManager,
    PackageManagerFactory,
    ResolutionResults,
)
from depatlas.core.curation import (
    CompositePackageCurationProvider,
    FilePackageCurationProvider,
    PackageCurationProvider,
    SimplePackageCurationProvider,
)
from depatlas.core.aggregator import AnalyzerResultBuilder

__all__ = [
    "PackageManager",
    "PackageManagerFactory",
    "ResolutionResults",
    "PackageCurationProvider",
    "SimplePackageCurationProvider",
    "FilePackageCurationProvider",
    "CompositePackageCurationProvider",
    "AnalyzerResultBuilder",
]
