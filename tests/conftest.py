from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Sequence

import pytest

from depatlas.core.package_manager import PackageManager, PackageManagerFactory
from depatlas.models.identifier import Identifier
from depatlas.models.project import Project
from depatlas.models.result import ProjectAnalyzerResult
from depatlas.models.vcs import VcsInfo
from depatlas.utils.console import reconfigure_console
from depatlas.utils.logger import disable_logging
from depatlas.vcs import WorkingTree

Resolver = Callable[[PackageManager, Path], List[ProjectAnalyzerResult]]


class FakeManager(PackageManager):
    """Package manager whose resolution is supplied by the test."""

    manager_name = "Fake"
    resolver: Optional[Resolver] = None

    def resolve_file(self, definition_file: Path) -> List[ProjectAnalyzerResult]:
        if self.resolver is not None:
            return type(self).resolver(self, definition_file)  # type: ignore[misc]
        return [
            ProjectAnalyzerResult(
                Project(
                    Identifier(self.manager_name, "", definition_file.parent.name, ""),
                    self.relative_path(definition_file),
                )
            )
        ]


@pytest.fixture(autouse=True)
def reset_output() -> Generator[None, None, None]:
    """Leave logging and the console unconfigured after each test."""
    yield
    disable_logging()
    logging.getLogger("depatlas").propagate = True
    reconfigure_console()


@pytest.fixture
def make_factory() -> Callable[..., PackageManagerFactory]:
    """Build a factory for a fake package manager.

    Args (of the returned callable):
        name: Manager name, also the type of the reported projects.
        patterns: Definition file patterns in priority order.
        resolver: Optional ``(manager, file) -> results`` function.
    """

    def _make(
        name: str,
        patterns: Sequence[str] = (),
        resolver: Optional[Resolver] = None,
    ) -> PackageManagerFactory:
        manager_class = type(
            f"{name}Manager",
            (FakeManager,),
            {"manager_name": name, "resolver": staticmethod(resolver) if resolver else None},
        )
        factory_class = type(
            f"{name}Factory",
            (PackageManagerFactory,),
            {"manager_class": manager_class, "definition_file_patterns": tuple(patterns)},
        )
        return factory_class()

    return _make


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Create files below a fresh project directory and return its path."""

    def _make(files: Dict[str, str]) -> Path:
        root = (tmp_path / "project").resolve()
        root.mkdir(exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


class FakeWorkingTree(WorkingTree):
    """Working tree with fixed answers."""

    def __init__(
        self,
        root_path: Path,
        info: Optional[VcsInfo] = None,
        nested: Optional[Dict[str, VcsInfo]] = None,
    ) -> None:
        super().__init__(root_path, "Git")
        self.root_path = root_path
        self.info = info or VcsInfo("Git", "https://example.org/repo.git", "0" * 40)
        self.nested = nested or {}

    def get_info(self) -> VcsInfo:
        return self.info

    def get_nested(self) -> Dict[str, VcsInfo]:
        return dict(self.nested)

    def get_root_path(self) -> Path:
        return self.root_path


@pytest.fixture
def fake_working_tree() -> Callable[..., FakeWorkingTree]:
    """Return the FakeWorkingTree class for building VCS lookups."""
    return FakeWorkingTree
