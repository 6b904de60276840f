"""
Custom exception hierarchy for depatlas.

This module defines structured exception types used across depatlas.
All exceptions inherit from :class:`DepAtlasError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Two families matter to callers of :class:`depatlas.analyzer.Analyzer`:

- :class:`PreconditionError` — the input or an analyzer's output violates
  an invariant. Never retried.
- :class:`ResolutionError` — an ecosystem analyzer failed while resolving
  its definition files. Fatal to the whole run.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence


class DepAtlasError(Exception):
    """Base exception for all depatlas errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


class PreconditionError(DepAtlasError):
    """Raised when an invariant of the analysis is violated.

    Args:
        message: Error description.
        manager_name: Name of the package manager involved, if any.
        coordinates: Coordinates of the offending projects, if any.
    """

    __slots__ = ("manager_name", "coordinates")

    def __init__(
        self,
        message: str,
        *,
        manager_name: Optional[str] = None,
        coordinates: Optional[Sequence[str]] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "manager", manager_name)
        if coordinates:
            details["projects"] = ", ".join(coordinates)

        super().__init__(message, details)

        self.manager_name = manager_name
        self.coordinates = list(coordinates or [])


class ResolutionError(DepAtlasError):
    """Raised when a package manager fails to resolve its dependencies.

    Args:
        message: Error description.
        manager_name: Name of the failing package manager.
        definition_file: Definition file being resolved, if known.
        original_error: Original exception raised by the manager.
    """

    __slots__ = ("manager_name", "definition_file", "original_error")

    def __init__(
        self,
        message: str,
        *,
        manager_name: Optional[str] = None,
        definition_file: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "manager", manager_name)
        _add_if(details, "file", definition_file)
        _add_if(
            details,
            "original_error",
            repr(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.manager_name = manager_name
        self.definition_file = definition_file
        self.original_error = original_error


class ParseError(DepAtlasError):
    """Raised when a definition file cannot be parsed.

    Args:
        message: Error description.
        line_number: Line number where parsing failed.
        line_content: Raw content of the problematic line.
        file_path: Path to the file being parsed.
    """

    __slots__ = ("line_number", "line_content", "file_path")

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "line", line_number)
        _add_if(details, "content", line_content)
        _add_if(details, "file", file_path)

        super().__init__(message, details)

        self.line_number = line_number
        self.line_content = line_content
        self.file_path = file_path


class ConfigError(DepAtlasError):
    """Raised when a configuration, repository configuration or curation
    file is invalid.

    Args:
        message: Error description.
        config_path: Path to the offending file.
        option: Name of the offending option, if known.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class FileOperationError(DepAtlasError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed.
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class VcsError(DepAtlasError):
    """Raised when a version control command fails inside a working tree.

    Args:
        message: Error description.
        vcs_type: Type of the version control system, e.g. ``"Git"``.
        path: Directory the command was run in.
        command: The command that failed.
    """

    __slots__ = ("vcs_type", "path", "command")

    def __init__(
        self,
        message: str,
        *,
        vcs_type: Optional[str] = None,
        path: Optional[str] = None,
        command: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "vcs", vcs_type)
        _add_if(details, "path", path)
        _add_if(details, "command", command)

        super().__init__(message, details)

        self.vcs_type = vcs_type
        self.path = path
        self.command = command
