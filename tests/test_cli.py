from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Generator, List
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner, Result
from packaging.version import Version

from depatlas.__version__ import __version__
from depatlas.cli import cli, main
from depatlas.exceptions import DepAtlasError

REQUIREMENTS = "click==8.1.7\n"
PACKAGE_JSON = json.dumps({"name": "web", "version": "1.0.0", "dependencies": {"left-pad": "1.3.0"}})
PACKAGE_LOCK = json.dumps({"lockfileVersion": 3, "packages": {"node_modules/left-pad": {"version": "1.3.0"}}})


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run without global configuration files and without version control."""
    monkeypatch.chdir(tmp_path)
    with patch("depatlas.vcs.ALL_VERSION_CONTROL_SYSTEMS", ()):
        yield


def _invoke(args: List[str]) -> Result:
    return CliRunner().invoke(cli, args, env={"NO_COLOR": "1", "DEPATLAS_CONFIG": None})


@pytest.mark.integration
class TestCli:
    """Tests for the depatlas command group."""

    def test_version(self) -> None:
        """Test --version prints the program version."""
        result = _invoke(["--version"])

        assert result.exit_code == 0
        assert f"depatlas {__version__}" in result.output

    def test_version_is_valid(self) -> None:
        """Test the package exports one PEP 440 version string."""
        import depatlas

        version_module = importlib.import_module("depatlas.__version__")

        assert depatlas.__version__ == __version__
        assert str(Version(__version__)) == __version__
        assert [name for name in vars(version_module) if not name.startswith("_")] == []

    def test_help_lists_analyze(self) -> None:
        """Test the group help mentions the analyze command."""
        result = _invoke(["-h"])

        assert result.exit_code == 0
        assert "analyze" in result.output
        text = " ".join(result.output.split())
        assert "Analyze the dependencies of source trees" in text
        assert "debug details (-vv)" in text

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """Test a broken configuration file aborts with exit code 1."""
        config = tmp_path / "broken.toml"
        config.write_text("[depatlas]\nmax_workers = 0\n", encoding="utf-8")

        result = _invoke(["--config", str(config), "analyze", str(tmp_path)])

        assert result.exit_code == 1
        assert "max_workers" in result.output


@pytest.mark.integration
class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_table_output(self, make_tree) -> None:
        """Test projects of several ecosystems are listed."""
        root = make_tree(
            {
                "requirements.txt": REQUIREMENTS,
                "web/package.json": PACKAGE_JSON,
                "web/package-lock.json": PACKAGE_LOCK,
            }
        )

        result = _invoke(["analyze", str(root)])

        assert result.exit_code == 0, result.output
        assert "Projects" in result.output
        assert "Found 2 project(s) and 2 package(s)." in " ".join(result.output.split())

    def test_json_output(self, make_tree) -> None:
        """Test --format json emits the full analysis result."""
        root = make_tree({"web/package.json": PACKAGE_JSON, "web/package-lock.json": PACKAGE_LOCK})

        result = _invoke(["analyze", "--format", "json", "-m", "npm", str(root)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        projects = data["analyzer"]["result"]["projects"]
        assert [p["id"] for p in projects] == ["NPM::web:1.0.0", "Unmanaged::project:"]
        assert data["analyzer"]["result"]["packages"][0]["purl"] == "pkg:npm/left-pad@1.3.0"

    def test_single_file(self, make_tree) -> None:
        """Test a single definition file is analyzed with one package manager."""
        root = make_tree({"deps/prod.lst": REQUIREMENTS})

        result = _invoke(["analyze", "-f", "json", "-m", "PIP", str(root / "deps" / "prod.lst")])

        assert result.exit_code == 0, result.output
        projects = json.loads(result.stdout)["analyzer"]["result"]["projects"]
        assert [(p["id"], p["definition_file_path"]) for p in projects] == [
            ("PIP::deps:", "prod.lst"),
            ("Unmanaged::prod.lst:", "prod.lst"),
        ]

    def test_single_file_needs_one_package_manager(self, make_tree) -> None:
        """Test a file path without -m fails cleanly."""
        root = make_tree({"requirements.txt": REQUIREMENTS})

        result = _invoke(["analyze", str(root / "requirements.txt")])

        assert result.exit_code == 1
        assert "exactly one package manager" in " ".join(result.output.split())

    def test_curations_file(self, make_tree, tmp_path: Path) -> None:
        """Test curations from --curations are applied."""
        root = make_tree({"requirements.txt": REQUIREMENTS})
        curations = tmp_path / "curations.toml"
        curations.write_text(
            '[[curations]]\nid = "PyPI::click"\ndescription = "Composable CLI toolkit"\n',
            encoding="utf-8",
        )

        result = _invoke(["analyze", "-f", "json", "--curations", str(curations), str(root)])

        assert result.exit_code == 0, result.output
        (package,) = json.loads(result.stdout)["analyzer"]["result"]["packages"]
        assert package["description"] == "Composable CLI toolkit"
        assert package["curations"][0]["id"] == "PyPI::click:"

    def test_unknown_package_manager(self, make_tree) -> None:
        """Test unknown package manager names are usage errors."""
        root = make_tree({})

        result = _invoke(["analyze", "-m", "Maven", str(root)])

        assert result.exit_code == 2


@pytest.mark.unit
class TestMainFunction:
    """Tests for the main() exit codes."""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (DepAtlasError("failed"), 1),
            (KeyboardInterrupt(), 130),
            (click.exceptions.Abort(), 130),
            (RuntimeError("unexpected"), 1),
            (click.UsageError("bad usage"), 2),
        ],
    )
    def test_exit_codes(self, error: BaseException, expected: int) -> None:
        """Test errors are mapped to exit codes."""
        with patch("depatlas.cli.cli", side_effect=error):
            assert main() == expected

    def test_success(self) -> None:
        """Test a successful run returns 0."""
        with patch("depatlas.cli.cli", return_value=None):
            assert main() == 0
