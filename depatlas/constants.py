"""
Centralized constants for depatlas.

This module defines immutable configuration values used across depatlas,
including scheduling limits, configuration file names, directory
traversal rules, and logging formats. All values are intended to be
treated as read-only.
"""

from typing import Final, FrozenSet

# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

#: Number of worker threads used to resolve dependencies in parallel.
DEFAULT_MAX_WORKERS: Final[int] = 5

#: Name prefix for resolution worker threads.
WORKER_THREAD_NAME_PREFIX: Final[str] = "Analyzer"

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Name of the repository configuration file inside the analyzed root.
REPOSITORY_CONFIGURATION_FILENAME: Final[str] = ".depatlas.toml"

#: Name of the global configuration file looked up in the working directory.
GLOBAL_CONFIGURATION_FILENAME: Final[str] = "depatlas.toml"

#: Default for ``AnalyzerConfiguration.allow_dynamic_versions``.
DEFAULT_ALLOW_DYNAMIC_VERSIONS: Final[bool] = False

# ---------------------------------------------------------------------------
# Definition file discovery
# ---------------------------------------------------------------------------

#: Directories that are never descended into while looking for
#: definition files.
IGNORED_DIRECTORY_NAMES: Final[FrozenSet[str]] = frozenset(
    {".git", ".hg", ".repo", ".svn", "CVS"}
)

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading definition files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

#: Environment variables recorded in the run's environment descriptor.
RECORDED_ENVIRONMENT_VARIABLES: Final[FrozenSet[str]] = frozenset(
    {"JAVA_HOME", "NODE_ENV", "PIP_INDEX_URL", "CARGO_HOME", "VIRTUAL_ENV"}
)

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp, thread and logger name.
LOG_VERBOSE_FORMAT: Final[str] = (
    "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
)
