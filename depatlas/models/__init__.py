"""
Unified data model exports for depatlas.

This module re-exports all data models to provide a stable and
convenient public API.

Example:
    >>> from depatlas.models import Identifier, Project, Package
"""

from __future__ import annotations

from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.vcs import VcsContext, VcsInfo
from depatlas.models.package import CuratedPackage, Package
from depatlas.models.project import PackageReference, Project, Scope
from depatlas.models.curation import PackageCuration, PackageCurationData
from depatlas.models.result import (
    AnalysisResult,
    AnalyzerResult,
    AnalyzerRun,
    Environment,
    ProjectAnalyzerResult,
    Repository,
)

__all__ = [
    "Identifier",
    "Issue",
    "VcsContext",
    "VcsInfo",
    "CuratedPackage",
    "Package",
    "PackageReference",
    "Project",
    "Scope",
    "PackageCuration",
    "PackageCurationData",
    "AnalysisResult",
    "AnalyzerResult",
    "AnalyzerRun",
    "Environment",
    "ProjectAnalyzerResult",
    "Repository",
]
