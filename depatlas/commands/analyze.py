"""Analyze command implementation for depatlas.

Runs the :class:`~depatlas.analyzer.Analyzer` on a project tree and renders
the result.

Typical usage::

    # Analyze the current directory with all package managers
    $ depatlas analyze .

    # Only look for npm projects, apply extra curations, emit JSON
    $ depatlas analyze -m NPM --curations curations.toml --format json .

    # Analyze an arbitrarily named requirements file
    $ depatlas analyze -m PIP deps/prod.txt
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
from rich.markup import escape

from depatlas.analyzer import Analyzer
from depatlas.context import DepAtlasContext, pass_context
from depatlas.core.curation import FilePackageCurationProvider
from depatlas.core.registry import get_factory, package_manager_names
from depatlas.exceptions import DepAtlasError
from depatlas.models.result import AnalysisResult
from depatlas.utils import (
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.analyze")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path, resolve_path=True),
    default=".",
)
@click.option(
    "--package-manager",
    "-m",
    "package_managers",
    multiple=True,
    type=click.Choice(package_manager_names(), case_sensitive=False),
    help="Package manager to use (repeatable). Defaults to all.",
)
@click.option(
    "--curations",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML file with [[curations]] to apply.",
)
@click.option(
    "--repository-configuration-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Repository configuration to use instead of PATH/.depatlas.toml.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def analyze(
    ctx: DepAtlasContext,
    path: Path,
    package_managers: Tuple[str, ...],
    curations: Optional[Path],
    repository_configuration_file: Optional[Path],
    output_format: str,
) -> None:
    """Analyze the dependencies of the project tree at PATH.

    PATH may also be a single definition file when exactly one package
    manager is selected with ``-m``; the file is then analyzed regardless
    of its name.
    """
    factories = [get_factory(name) for name in package_managers] or None

    try:
        provider = FilePackageCurationProvider(curations) if curations else None
        result = Analyzer(ctx.config).analyze(
            path,
            factories=factories,
            curation_provider=provider,
            repository_configuration_file=repository_configuration_file,
        )
    except DepAtlasError as exc:
        print_error(escape(str(exc)))
        logger.debug("Analysis failed", exc_info=True)
        sys.exit(1)

    if output_format.lower() == "json":
        click.echo(json.dumps(result.to_json(), indent=2, sort_keys=True))
    else:
        _display_table(result)


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(analysis: AnalysisResult) -> None:
    """Render projects, packages and issues as Rich tables."""
    result = analysis.analyzer.result

    project_rows: List[Dict[str, str]] = []
    for project in result.projects:
        excluded = set(result.excluded_scopes.get(project.id, ()))
        scopes = ", ".join(
            f"{name} (excluded)" if name in excluded else name for name in project.scope_names()
        )
        project_rows.append(
            {
                "Project": escape(project.id.to_coordinates()),
                "Definition File": escape(project.definition_file_path or "."),
                "Scopes": escape(scopes) if scopes else "-",
                "Dependencies": str(len(project.collect_dependencies())),
            }
        )
    print_table(project_rows, title="Projects", justify={"Dependencies": "right"})

    package_rows = [
        {
            "Package": escape(curated.id.to_coordinates()),
            "PURL": escape(curated.package.purl) if curated.package.purl else "-",
            "Curations": str(len(curated.curations)) if curated.curations else "-",
        }
        for curated in result.packages
    ]
    print_table(package_rows, title="Packages", justify={"Curations": "right"})

    for identifier, issues in result.issues.items():
        for issue in issues:
            print_warning(escape(f"{identifier.to_coordinates()}: {issue}"))

    vcs = analysis.repository.vcs
    if not vcs.is_empty():
        print_success(escape(f"Analyzed {vcs.type} revision {vcs.revision or '<none>'} of {vcs.url or '<local>'}"))

    print_success(
        f"Found {len(result.projects)} project(s) and {len(result.packages)} package(s)."
    )
