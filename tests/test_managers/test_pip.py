from __future__ import annotations

from pathlib import Path

import pytest
from packaging.requirements import Requirement

from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration
from depatlas.exceptions import ParseError
from depatlas.managers.pip import (
    Pip,
    PipFactory,
    RequirementsFileParser,
    pinned_version,
)
from depatlas.models.identifier import Identifier


def _pip(root: Path, allow_dynamic_versions: bool = False) -> Pip:
    return PipFactory().create(
        root,
        AnalyzerConfiguration(allow_dynamic_versions=allow_dynamic_versions),
        RepositoryConfiguration(),
    )


@pytest.mark.unit
class TestPinnedVersion:
    """Tests for pinned_version."""

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("requests==2.31.0", "2.31.0"),
            ("requests===2.31.0", "2.31.0"),
            ("requests>=2.0", ""),
            ("requests==2.*", ""),
            ("requests>=2,==2.31.0", ""),
            ("requests", ""),
        ],
    )
    def test_pinned_version(self, line: str, expected: str) -> None:
        """Test only single exact pins yield a version."""
        assert pinned_version(Requirement(line)) == expected


@pytest.mark.unit
class TestRequirementsFileParser:
    """Tests for RequirementsFileParser."""

    def test_comments_options_and_continuations(self, tmp_path: Path) -> None:
        """Test non-requirement lines are skipped and continuations joined."""
        path = tmp_path / "requirements.txt"
        path.write_text(
            "# comment\n"
            "--index-url https://pypi.org/simple\n"
            "\n"
            "click>=8.1  # CLI\n"
            "rich==13.7.0 \\\n"
            "    --hash=sha256:abc\n",
            encoding="utf-8",
        )

        requirements = RequirementsFileParser("PIP").parse_file(path)

        assert [str(r) for r in requirements] == ["click>=8.1", "rich==13.7.0"]

    def test_follows_includes(self, tmp_path: Path) -> None:
        """Test -r includes are resolved relative to the including file."""
        (tmp_path / "base").mkdir()
        (tmp_path / "base" / "common.txt").write_text("packaging==23.2\n", encoding="utf-8")
        path = tmp_path / "requirements.txt"
        path.write_text("-r base/common.txt\n--requirement=base/common.txt\ntomli\n", encoding="utf-8")

        requirements = RequirementsFileParser("PIP").parse_file(path)

        assert [r.name for r in requirements] == ["packaging", "packaging", "tomli"]

    def test_attached_includes(self, tmp_path: Path) -> None:
        """Test include files written directly after -r or after -r= are followed."""
        (tmp_path / "base").mkdir()
        (tmp_path / "base" / "common.txt").write_text("packaging==23.2\n", encoding="utf-8")
        (tmp_path / "dev.txt").write_text("pytest\n", encoding="utf-8")
        path = tmp_path / "requirements.txt"
        path.write_text("-rbase/common.txt\n-r=dev.txt\n--requirement dev.txt\n", encoding="utf-8")

        requirements = RequirementsFileParser("PIP").parse_file(path)

        assert [r.name for r in requirements] == ["packaging", "pytest", "pytest"]

    def test_include_without_file(self, tmp_path: Path) -> None:
        """Test an include option without a file name is rejected."""
        path = tmp_path / "requirements.txt"
        path.write_text("click\n-r=\n", encoding="utf-8")

        with pytest.raises(ParseError, match="Include directive without a file") as exc_info:
            RequirementsFileParser("PIP").parse_file(path)

        assert exc_info.value.line_number == 2

    def test_circular_include(self, tmp_path: Path) -> None:
        """Test include cycles are detected."""
        (tmp_path / "a.txt").write_text("-r b.txt\n", encoding="utf-8")
        (tmp_path / "b.txt").write_text("-r a.txt\n", encoding="utf-8")

        with pytest.raises(ParseError, match="Circular include detected"):
            RequirementsFileParser("PIP").parse_file(tmp_path / "a.txt")

    def test_missing_include(self, tmp_path: Path) -> None:
        """Test a missing include names the offending line."""
        path = tmp_path / "requirements.txt"
        path.write_text("click\n-r missing.txt\n", encoding="utf-8")

        with pytest.raises(ParseError) as exc_info:
            RequirementsFileParser("PIP").parse_file(path)

        assert exc_info.value.line_number == 2

    def test_editable_and_url_requirements_become_issues(self, tmp_path: Path) -> None:
        """Test unidentifiable requirements are reported, not parsed."""
        path = tmp_path / "requirements.txt"
        path.write_text("-e .\n./local/pkg\nhttps://example.org/pkg.zip\n", encoding="utf-8")
        parser = RequirementsFileParser("PIP")

        assert parser.parse_file(path) == []
        assert [issue.severity for issue in parser.issues] == ["HINT", "WARNING", "WARNING"]

    def test_invalid_requirement(self, tmp_path: Path) -> None:
        """Test malformed requirement lines raise ParseError."""
        path = tmp_path / "requirements.txt"
        path.write_text("click\nrequests >>= 2\n", encoding="utf-8")

        with pytest.raises(ParseError) as exc_info:
            RequirementsFileParser("PIP").parse_file(path)

        assert exc_info.value.line_number == 2


@pytest.mark.unit
class TestPip:
    """Tests for the Pip package manager."""

    def test_priority_of_requirements_files(self, make_tree) -> None:
        """Test requirements files hide setup.py in the same directory."""
        root = make_tree({"requirements.txt": "", "setup.py": "", "lib/setup.py": ""})

        claimed = PipFactory().claim([root / "requirements.txt", root / "setup.py", root / "lib" / "setup.py"])

        assert claimed == [root / "requirements.txt", root / "lib" / "setup.py"]

    def test_requirements_project(self, make_tree) -> None:
        """Test a requirements file yields one project with an install scope."""
        root = make_tree({"requirements-dev.txt": "Flask_Login==0.6.3\npytest>=7\n"})

        (result,) = _pip(root).resolve_file(root / "requirements-dev.txt")

        assert result.project.id == Identifier("PIP", "", "project-dev", "")
        assert result.project.definition_file_path == "requirements-dev.txt"
        (scope,) = result.project.scopes
        assert scope.name == "install"
        assert [ref.id for ref in scope.dependencies] == [
            Identifier("PyPI", "", "flask-login", "0.6.3"),
            Identifier("PyPI", "", "pytest", ""),
        ]
        assert result.packages[0].purl == "pkg:pypi/flask-login@0.6.3"
        assert result.packages[1].purl == "pkg:pypi/pytest"
        (issue,) = result.issues
        assert issue.severity == "WARNING"
        assert "pytest>=7" in issue.message

    def test_dynamic_versions_allowed(self, make_tree) -> None:
        """Test unpinned requirements are accepted when configured."""
        root = make_tree({"requirements.txt": "click\n"})

        (result,) = _pip(root, allow_dynamic_versions=True).resolve_file(root / "requirements.txt")

        assert result.issues == ()

    def test_setup_py(self, make_tree) -> None:
        """Test literal setup() arguments are read."""
        root = make_tree(
            {
                "svc/setup.py": (
                    "import setuptools\n"
                    "setuptools.setup(\n"
                    "    name='svc',\n"
                    "    version='1.2.0',\n"
                    "    install_requires=['click==8.1.7', 'Rich==13.7.0'],\n"
                    ")\n"
                ),
            }
        )

        (result,) = _pip(root).resolve_file(root / "svc" / "setup.py")

        assert result.project.id == Identifier("PIP", "", "svc", "1.2.0")
        assert result.project.definition_file_path == "svc/setup.py"
        assert {p.id.name for p in result.packages} == {"click", "rich"}
        assert result.issues == ()

    def test_setup_py_dynamic_install_requires(self, make_tree) -> None:
        """Test a computed install_requires is reported as an issue."""
        root = make_tree({"setup.py": "from setuptools import setup\nsetup(install_requires=read())\n"})

        (result,) = _pip(root).resolve_file(root / "setup.py")

        assert result.project.id.name == "project"
        assert result.packages == ()
        assert "not a literal list" in result.issues[0].message

    def test_setup_py_syntax_error(self, make_tree) -> None:
        """Test invalid Python is a parse error."""
        root = make_tree({"setup.py": "setup(\n"})

        with pytest.raises(ParseError, match="Invalid Python syntax"):
            _pip(root).resolve_file(root / "setup.py")
