"""
depatlas — multi-ecosystem dependency analysis.

depatlas walks a project tree, finds the package-manager definition files
it recognizes (pip requirements, npm ``package.json``, Cargo manifests),
resolves each ecosystem's dependency graph concurrently, and merges the
results into a single, curated analysis result together with the
repository's version-control state.

Typical usage::

    from pathlib import Path
    from depatlas import Analyzer, AnalyzerConfiguration

    result = Analyzer(AnalyzerConfiguration()).analyze(Path("/abs/project"))
    for project in result.analyzer.result.projects:
        print(project.id.to_coordinates())
"""

from __future__ import annotations

from depatlas.__version__ import __version__
from depatlas.analyzer import Analyzer, AnalyzerState
from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depatlas Contributors"
__license__ = "Apache-2.0"
__description__ = "Multi-ecosystem dependency analysis for source trees."

__all__ = [
    "__version__",
    "Analyzer",
    "AnalyzerState",
    "AnalyzerConfiguration",
    "RepositoryConfiguration",
]
