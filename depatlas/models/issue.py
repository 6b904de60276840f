"""
Issue data model for depatlas.

Issues are non-fatal problems found while resolving a project, e.g. a
requirement without a pinned version. They travel with the results
instead of aborting the analysis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

SEVERITIES = ("ERROR", "WARNING", "HINT")


@dataclass(frozen=True, order=True)
class Issue:
    """A problem found during the analysis.

    Attributes:
        source: Origin of the issue, usually a package manager name.
        message: Human-readable description.
        severity: One of ``ERROR``, ``WARNING`` or ``HINT``.
    """

    source: str
    message: str
    severity: str = "ERROR"

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(
                f"Invalid issue severity {self.severity!r}; "
                f"expected one of {', '.join(SEVERITIES)}"
            )

    def to_json(self) -> Dict[str, str]:
        """Return a JSON-serializable representation."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity,
        }

    def __str__(self) -> str:
        return f"{self.severity}: [{self.source}] {self.message}"
