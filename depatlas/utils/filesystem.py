"""
Filesystem utilities for depatlas.

Helpers for reading definition files safely and reasoning about paths
relative to the analyzed project root. Read failures are normalized to
:class:`~depatlas.exceptions.FileOperationError`; malformed JSON or TOML
content raises :class:`~depatlas.exceptions.ParseError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import tomli

from depatlas.constants import MAX_FILE_SIZE
from depatlas.exceptions import FileOperationError, ParseError
from depatlas.utils.logger import get_logger

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Ensure *path* exists and is a regular file, and resolve it."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, enforcing an optional size limit.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.

    Raises:
        FileOperationError: The file is missing, too large or unreadable.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def load_json_file(file_path: PathLike) -> Dict[str, Any]:
    """Parse a JSON document whose top level must be an object."""
    text = safe_read_file(file_path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Invalid JSON: {exc.msg}",
            line_number=exc.lineno,
            file_path=str(file_path),
        ) from exc

    if not isinstance(data, dict):
        raise ParseError(
            "Expected a JSON object at the top level",
            file_path=str(file_path),
        )
    return data


def load_toml_file(file_path: PathLike) -> Dict[str, Any]:
    """Parse a TOML document."""
    text = safe_read_file(file_path)
    try:
        return tomli.loads(text)
    except tomli.TOMLDecodeError as exc:
        raise ParseError(f"Invalid TOML: {exc}", file_path=str(file_path)) from exc


def is_within(path: PathLike, base: PathLike) -> bool:
    """Return True if *path* equals *base* or lies below it.

    Both paths are resolved first, so ``..`` segments and symlinks cannot
    escape the check, and ``/a/bc`` is not considered to be inside ``/a/b``.
    """
    resolved = Path(path).resolve(strict=False)
    root = Path(base).resolve(strict=False)
    try:
        resolved.relative_to(root)
    except ValueError:
        return False
    return True


def relative_display(path: PathLike, root: PathLike) -> str:
    """Render *path* relative to *root* using ``/`` separators.

    The root itself is rendered as ``"."``; paths outside of *root* are
    returned unchanged.
    """
    try:
        relative = Path(path).relative_to(Path(root))
    except ValueError:
        return str(path)
    text = relative.as_posix()
    return text if text not in ("", ".") else "."
