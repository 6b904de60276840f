"""Concurrent dependency resolution.

Each package manager resolves its definition files in a task of its own on
a thread pool that lives for one call of :func:`resolve_in_parallel`.
Results are checked and folded into the result builder by the calling
thread as tasks finish; the first failure fails the whole resolution.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from depatlas.constants import DEFAULT_MAX_WORKERS, WORKER_THREAD_NAME_PREFIX
from depatlas.core.aggregator import AnalyzerResultBuilder
from depatlas.core.discovery import ManagedFiles
from depatlas.core.package_manager import PackageManager, ResolutionResults
from depatlas.exceptions import DepAtlasError, PreconditionError, ResolutionError
from depatlas.utils.logger import get_logger


def validate_results(manager: PackageManager, results: ResolutionResults) -> None:
    """Check that every definition file yielded projects of *manager*'s type.

    Raises:
        PreconditionError: A definition file yielded no projects, or a
            project's identifier type differs from the manager's name.
    """
    empty = [str(path) for path, entries in results.items() if not entries]
    if empty:
        raise PreconditionError(
            f"Definition files '{', '.join(empty)}' did not yield any project.",
            manager_name=manager.manager_name,
        )

    mismatching = sorted(
        entry.project.id.to_coordinates()
        for entries in results.values()
        for entry in entries
        if entry.project.id.type != manager.manager_name
    )
    if mismatching:
        raise PreconditionError(
            f"Projects '{', '.join(mismatching)}' must be of type '{manager.manager_name}'.",
            manager_name=manager.manager_name,
            coordinates=mismatching,
        )


def _resolve(manager: PackageManager, definition_files: List[Path]) -> ResolutionResults:
    try:
        return manager.resolve_dependencies(definition_files)
    except DepAtlasError:
        raise
    except Exception as exc:
        raise ResolutionError(
            f"{manager.manager_name} failed to resolve dependencies: {exc}",
            manager_name=manager.manager_name,
            original_error=exc,
        ) from exc


def resolve_in_parallel(
    managed: ManagedFiles,
    builder: AnalyzerResultBuilder,
    max_workers: int = DEFAULT_MAX_WORKERS,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Resolve all *managed* files and add the results to *builder*.

    Blocks until every task has finished. Tasks that have not started yet
    are cancelled once one fails; running tasks cannot be interrupted and
    are waited for before the error propagates.

    Raises:
        PreconditionError: A task's results failed :func:`validate_results`.
        ResolutionError: A package manager failed.
        DepAtlasError: Raised unchanged by a package manager.
    """
    logger = logger or get_logger("scheduler")

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=WORKER_THREAD_NAME_PREFIX) as executor:
        futures: Dict[Future, Tuple[PackageManager, List[Path]]] = {
            executor.submit(_resolve, manager, files): (manager, files)
            for manager, files in managed.items()
        }

        try:
            for future in as_completed(futures):
                manager, files = futures[future]
                results = future.result()
                validate_results(manager, results)

                for entries in results.values():
                    for entry in entries:
                        builder.add_result(entry)

                logger.info(
                    "%s finished resolving %d definition file(s).", manager.manager_name, len(files)
                )
        except BaseException:
            for future in futures:
                future.cancel()
            raise
