from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration
from depatlas.models.identifier import Identifier
from depatlas.models.issue import Issue
from depatlas.models.package import CuratedPackage, Package
from depatlas.models.project import PackageReference, Project, Scope
from depatlas.models.result import (
    AnalysisResult,
    AnalyzerResult,
    AnalyzerRun,
    Environment,
    Repository,
)
from depatlas.models.vcs import VcsContext, VcsInfo

APP = Identifier("NPM", "", "app", "1.0.0")
EXPRESS = Identifier("NPM", "", "express", "4.18.2")
ACCEPTS = Identifier("NPM", "", "accepts", "1.3.8")


def _project() -> Project:
    tree = PackageReference(EXPRESS, dependencies=(PackageReference(ACCEPTS),))
    return Project(
        id=APP,
        definition_file_path="package.json",
        scopes=(Scope("dependencies", (tree,)), Scope("devDependencies")),
    )


@pytest.mark.unit
class TestProject:
    """Tests for Project, Scope and PackageReference."""

    def test_collect_dependencies(self) -> None:
        """Test transitive dependencies are collected across scopes."""
        assert _project().collect_dependencies() == {EXPRESS, ACCEPTS}

    def test_scope_names(self) -> None:
        """Test scope names are listed in order."""
        assert _project().scope_names() == ("dependencies", "devDependencies")

    def test_reference_json_omits_empty(self) -> None:
        """Test leaves serialize to their id only."""
        assert PackageReference(ACCEPTS).to_json() == {"id": "NPM::accepts:1.3.8"}


@pytest.mark.unit
class TestAnalyzerResult:
    """Tests for AnalyzerResult."""

    def test_mappings_are_read_only(self) -> None:
        """Test issue mappings cannot be modified after construction."""
        result = AnalyzerResult(issues={APP: (Issue("NPM", "x"),)})

        with pytest.raises(TypeError):
            result.issues[EXPRESS] = ()  # type: ignore[index]

    def test_has_issues(self) -> None:
        """Test has_issues ignores empty issue lists."""
        assert AnalyzerResult(issues={APP: ()}).has_issues is False
        assert AnalyzerResult(issues={APP: (Issue("NPM", "x"),)}).has_issues is True

    def test_get_package(self) -> None:
        """Test packages are looked up by identifier."""
        curated = CuratedPackage(Package(EXPRESS))
        result = AnalyzerResult(packages=(curated,))

        assert result.get_package(EXPRESS) is curated
        with pytest.raises(KeyError):
            result.get_package(ACCEPTS)


@pytest.mark.unit
class TestEnvironment:
    """Tests for Environment.current."""

    def test_records_selected_variables_only(self) -> None:
        """Test only well-known environment variables are recorded."""
        with patch.dict("os.environ", {"HOME": "/home/u", "SECRET_TOKEN": "x"}, clear=True):
            environment = Environment.current()

        assert "SECRET_TOKEN" not in environment.variables
        assert environment.processors >= 1


@pytest.mark.unit
class TestAnalysisResult:
    """Tests for the top-level result."""

    def test_to_json_is_serializable(self) -> None:
        """Test the complete result can be dumped as JSON."""
        repository = Repository.from_context(
            VcsContext(
                vcs=VcsInfo("Git", "https://example.org/app.git", "abc123"),
                nested_repositories={"vendor/lib": VcsInfo("Git", "https://example.org/lib.git", "def456")},
            ),
            RepositoryConfiguration(),
        )
        run = AnalyzerRun(
            start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
            end_time=datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc),
            environment=Environment("0.1.0", "3.12.0", "linux", 8),
            config=AnalyzerConfiguration(source_path=Path("/tmp/depatlas.toml")),
            result=AnalyzerResult(projects=(_project(),)),
        )

        data = json.loads(json.dumps(AnalysisResult(repository, run).to_json()))

        assert data["repository"]["vcs"]["revision"] == "abc123"
        assert list(data["repository"]["nested_repositories"]) == ["vendor/lib"]
        assert data["analyzer"]["config"] == {"allow_dynamic_versions": False, "max_workers": 5}
        assert data["analyzer"]["result"]["projects"][0]["id"] == "NPM::app:1.0.0"
        assert data["analyzer"]["start_time"] == "2024-01-01T00:00:00+00:00"
