"""
depatlas version information.

This module is the single source of truth for the package version.
"""

__version__ = "0.1.0.dev0"
