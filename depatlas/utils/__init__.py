"""
Utility helpers for depatlas.

This package provides reusable utilities used across depatlas:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem helpers for definition files and path containment

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from depatlas.utils.filesystem import (
    is_within,
    load_json_file,
    load_toml_file,
    relative_display,
    safe_read_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from depatlas.utils.logger import (
    disable_logging,
    get_logger,
    get_manager_logger,
    is_logging_configured,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from depatlas.utils.console import (
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    # Logging
    "get_logger",
    "get_manager_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    # Filesystem
    "is_within",
    "load_json_file",
    "load_toml_file",
    "relative_display",
    "safe_read_file",
]
