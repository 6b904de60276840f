"""
Shared context object for depatlas CLI commands.

The group command in :mod:`depatlas.cli` fills one :class:`DepAtlasContext`
per invocation; subcommands receive it through :data:`pass_context`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from depatlas.config import AnalyzerConfiguration


class DepAtlasContext:
    """Global context object for depatlas CLI commands.

    Attributes:
        config_path: Path to the loaded configuration file, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: The effective analyzer configuration.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: AnalyzerConfiguration = AnalyzerConfiguration()


#: Click decorator for injecting :class:`DepAtlasContext` into commands.
pass_context = click.make_pass_decorator(DepAtlasContext, ensure=True)
