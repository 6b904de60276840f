"""Git support for depatlas.

All information is obtained by running the ``git`` command line tool. The
command runner is injectable so that the class can be exercised without a
real repository.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from depatlas.exceptions import VcsError
from depatlas.models.vcs import VcsInfo
from depatlas.utils.filesystem import relative_display
from depatlas.utils.logger import get_logger
from depatlas.vcs.base import VersionControlSystem, WorkingTree

logger = get_logger("vcs.git")

#: Runs a command in a directory and returns its standard output.
#: Must raise ``subprocess.CalledProcessError`` or ``OSError`` on failure.
Runner = Callable[[Sequence[str], Path], str]

_SUBMODULE_FORMAT = 'printf "%s\\t%s\\t%s\\n" "$displaypath" "$sha1" "$(git config --get remote.origin.url)"'


def _default_runner(args: Sequence[str], cwd: Path) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout


class Git(VersionControlSystem):
    """Detects Git working trees."""

    vcs_type = "Git"

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner or _default_runner

    def get_working_tree(self, path: Path) -> Optional["GitWorkingTree"]:
        directory = path if path.is_dir() else path.parent
        try:
            top_level = self._runner(["git", "rev-parse", "--show-toplevel"], directory).strip()
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.debug("'%s' is not inside a Git working tree: %s", directory, exc)
            return None

        if not top_level:
            return None

        return GitWorkingTree(directory, Path(top_level).resolve(), self._runner)


class GitWorkingTree(WorkingTree):
    """A Git working tree, identified by its top-level directory."""

    def __init__(self, working_dir: Path, root_path: Path, runner: Runner) -> None:
        super().__init__(working_dir, Git.vcs_type)
        self._root_path = root_path
        self._runner = runner

    def get_root_path(self) -> Path:
        return self._root_path

    def get_info(self) -> VcsInfo:
        path = relative_display(self.working_dir.resolve(), self._root_path)
        return VcsInfo(
            type=self.vcs_type,
            url=self._optional(["git", "config", "--get", "remote.origin.url"]),
            revision=self._optional(["git", "rev-parse", "HEAD"]),
            path="" if path == "." else path,
        )

    def get_nested(self) -> Dict[str, VcsInfo]:
        """Return the initialized submodules, recursively."""
        command = ["git", "submodule", "foreach", "--quiet", "--recursive", _SUBMODULE_FORMAT]
        try:
            output = self._runner(command, self._root_path)
        except (subprocess.CalledProcessError, OSError) as exc:
            raise VcsError(
                f"Listing submodules failed: {exc}",
                vcs_type=self.vcs_type,
                path=str(self._root_path),
                command="git submodule foreach",
            ) from exc

        nested: Dict[str, VcsInfo] = {}
        for line in output.splitlines():
            if not line.strip():
                continue
            fields = line.split("\t")
            fields += [""] * (3 - len(fields))
            path, revision, url = fields[:3]
            nested[path] = VcsInfo(type=self.vcs_type, url=url, revision=revision)
        return nested

    def _optional(self, command: Sequence[str]) -> str:
        """Run *command* in the working directory, ``""`` if it fails.

        A missing remote or a repository without commits is normal.
        """
        try:
            return self._runner(command, self.working_dir).strip()
        except (subprocess.CalledProcessError, OSError):
            return ""
