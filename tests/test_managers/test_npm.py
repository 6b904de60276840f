from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from depatlas.config import AnalyzerConfiguration, RepositoryConfiguration
from depatlas.exceptions import ParseError
from depatlas.managers.npm import (
    Npm,
    NpmFactory,
    find_installed,
    lockfile_packages,
    npm_purl,
    parse_repository,
    split_npm_name,
)
from depatlas.models.identifier import Identifier
from depatlas.models.vcs import VcsInfo

MANIFEST = {
    "name": "@acme/web",
    "version": "2.0.0",
    "homepage": "https://acme.example/web",
    "repository": {"type": "git", "url": "git+https://github.com/acme/web.git"},
    "dependencies": {"express": "^4.18.0"},
    "devDependencies": {"jest": "^29.0.0"},
}

LOCKFILE_V3 = {
    "lockfileVersion": 3,
    "packages": {
        "": {"name": "@acme/web", "version": "2.0.0"},
        "node_modules/express": {
            "version": "4.18.2",
            "dependencies": {"debug": "2.6.9", "ms": "2.0.0"},
        },
        "node_modules/express/node_modules/debug": {
            "version": "2.6.9",
            "dependencies": {"ms": "2.0.0"},
        },
        "node_modules/ms": {"version": "2.0.0"},
        "node_modules/jest": {
            "version": "29.7.0",
            "optionalDependencies": {"fsevents": "^2.3.2"},
        },
    },
}


def _write(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def _npm(root: Path) -> Npm:
    return NpmFactory().create(root, AnalyzerConfiguration(), RepositoryConfiguration())


@pytest.mark.unit
class TestNpmHelpers:
    """Tests for the module-level NPM helpers."""

    def test_split_npm_name(self) -> None:
        """Test scoped names are split into namespace and name."""
        assert split_npm_name("@types/node") == ("@types", "node")
        assert split_npm_name("lodash") == ("", "lodash")

    def test_npm_purl(self) -> None:
        """Test the scope's @ is percent-encoded."""
        assert npm_purl("@types/node", "20.1.0") == "pkg:npm/%40types/node@20.1.0"
        assert npm_purl("lodash", "") == "pkg:npm/lodash"

    @pytest.mark.parametrize(
        "repository, expected",
        [
            (
                {"type": "git", "url": "https://github.com/a/b", "directory": "packages/b"},
                VcsInfo("Git", "https://github.com/a/b", "", "packages/b"),
            ),
            ("https://github.com/a/b.git", VcsInfo("Git", "https://github.com/a/b.git", "")),
            ("github:a/b", VcsInfo("", "github:a/b", "")),
            ({"type": "git"}, VcsInfo.EMPTY),
            (None, VcsInfo.EMPTY),
        ],
    )
    def test_parse_repository(self, repository: Any, expected: VcsInfo) -> None:
        """Test repository fields of both forms are understood."""
        assert parse_repository(repository) == expected

    def test_find_installed_walks_up(self) -> None:
        """Test nested installs shadow hoisted ones."""
        packages = lockfile_packages(LOCKFILE_V3)

        assert find_installed(packages, "node_modules/express", "debug") == (
            "node_modules/express/node_modules/debug"
        )
        assert find_installed(packages, "node_modules/express/node_modules/debug", "ms") == (
            "node_modules/ms"
        )
        assert find_installed(packages, "", "missing") is None

    def test_lockfile_v1_is_flattened(self) -> None:
        """Test version 1 lockfiles are converted to install locations."""
        packages = lockfile_packages(
            {
                "lockfileVersion": 1,
                "dependencies": {
                    "express": {
                        "version": "4.18.2",
                        "requires": {"debug": "2.6.9"},
                        "dependencies": {"debug": {"version": "2.6.9"}},
                    },
                },
            }
        )

        assert packages == {
            "node_modules/express": {"version": "4.18.2", "dependencies": {"debug": "2.6.9"}},
            "node_modules/express/node_modules/debug": {"version": "2.6.9", "dependencies": {}},
        }


@pytest.mark.unit
class TestNpm:
    """Tests for the Npm package manager."""

    def test_node_modules_are_dropped(self, tmp_path: Path) -> None:
        """Test definition files of installed packages are not analyzed."""
        files = [tmp_path / "package.json", tmp_path / "node_modules" / "x" / "package.json"]

        assert _npm(tmp_path).map_definition_files(files) == [tmp_path / "package.json"]

    def test_resolves_with_lockfile(self, make_tree) -> None:
        """Test versions and transitive dependencies come from the lockfile."""
        root = make_tree({})
        _write(root / "package.json", MANIFEST)
        _write(root / "package-lock.json", LOCKFILE_V3)

        (result,) = _npm(root).resolve_file(root / "package.json")

        project = result.project
        assert project.id == Identifier("NPM", "@acme", "web", "2.0.0")
        assert project.homepage_url == "https://acme.example/web"
        assert project.vcs.type == "Git"
        assert project.scope_names() == ("dependencies", "devDependencies")

        (express,) = project.scopes[0].dependencies
        assert express.id == Identifier("NPM", "", "express", "4.18.2")
        assert [dep.id.to_coordinates() for dep in express.dependencies] == [
            "NPM::debug:2.6.9",
            "NPM::ms:2.0.0",
        ]
        assert express.dependencies[0].dependencies[0].id.version == "2.0.0"

        (jest,) = project.scopes[1].dependencies
        assert jest.dependencies == ()

        assert [p.id.name for p in result.packages] == ["debug", "express", "jest", "ms"]
        assert result.issues == ()

    def test_missing_lock_entry(self, make_tree) -> None:
        """Test a dependency absent from the lockfile is an issue."""
        root = make_tree({})
        _write(root / "package.json", {"name": "app", "dependencies": {"left-pad": "1.3.0"}})
        _write(root / "package-lock.json", {"lockfileVersion": 3, "packages": {}})

        (result,) = _npm(root).resolve_file(root / "package.json")

        (reference,) = result.project.scopes[0].dependencies
        assert reference.id == Identifier("NPM", "", "left-pad", "")
        assert reference.issues == result.issues
        assert result.issues[0].message == "Package 'left-pad' is not contained in 'package-lock.json'."

    def test_without_lockfile(self, make_tree) -> None:
        """Test a project without lockfile lists declared dependencies unversioned."""
        root = make_tree({})
        _write(root / "web" / "package.json", {"dependencies": {"@types/node": "^20"}})

        (result,) = _npm(root).resolve_file(root / "web" / "package.json")

        assert result.project.id == Identifier("NPM", "", "web", "")
        assert result.project.definition_file_path == "web/package.json"
        assert [p.id for p in result.packages] == [Identifier("NPM", "@types", "node", "")]
        (issue,) = result.issues
        assert issue.severity == "WARNING"

    def test_dependency_cycle(self, make_tree) -> None:
        """Test cyclic lockfile entries terminate."""
        root = make_tree({})
        _write(root / "package.json", {"name": "app", "dependencies": {"a": "1"}})
        _write(
            root / "package-lock.json",
            {
                "packages": {
                    "node_modules/a": {"version": "1.0.0", "dependencies": {"b": "1"}},
                    "node_modules/b": {"version": "1.0.0", "dependencies": {"a": "1"}},
                }
            },
        )

        (result,) = _npm(root).resolve_file(root / "package.json")

        (a,) = result.project.scopes[0].dependencies
        (b,) = a.dependencies
        assert b.dependencies[0].id == a.id
        assert b.dependencies[0].dependencies == ()

    def test_invalid_manifest(self, make_tree) -> None:
        """Test malformed JSON is a parse error."""
        root = make_tree({"package.json": "{"})

        with pytest.raises(ParseError, match="Invalid JSON"):
            _npm(root).resolve_file(root / "package.json")
