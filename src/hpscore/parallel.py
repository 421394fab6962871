"""Parallel processing of independent work items with joblib."""

import logging
import os
from collections.abc import Callable
from typing import Any

from joblib import Parallel, delayed
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

logger = logging.getLogger(__name__)


class ParallelProcessor:
    """Maps a function over work items with a joblib backend and a rich progress bar."""

    def __init__(
        self,
        n_jobs: int = -1,
        backend: str = "loky",
        verbose: int = 0,
    ):
        """
        Initialize parallel processor.

        Args:
            n_jobs: Number of parallel jobs (-1 for all CPUs)
            backend: joblib backend ('loky', 'threading', 'multiprocessing')
            verbose: joblib verbosity level
        """
        self.n_jobs = n_jobs if n_jobs > 0 else (os.cpu_count() or 1)
        self.backend = backend
        self.verbose = verbose

    def map(
        self,
        func: Callable,
        items: list[Any],
        description: str = "Processing",
        show_progress: bool = True,
    ) -> list[Any]:
        """
        Map function over items in parallel, preserving item order.

        Args:
            func: Function to apply; must be picklable for process backends
            items: Items to process
            description: Description for progress bar
            show_progress: Whether to show progress bar

        Returns:
            List of results
        """
        if self.n_jobs == 1 or len(items) <= 1:
            return self._map_serial(func, items, description, show_progress)

        logger.debug("Running %d items on %d %s workers", len(items), self.n_jobs, self.backend)
        if not show_progress:
            parallel = Parallel(n_jobs=self.n_jobs, backend=self.backend, verbose=self.verbose)
            return list(parallel(delayed(func)(item) for item in items))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            transient=True,
        ) as progress:
            task = progress.add_task(f"[cyan]{description}...", total=len(items))
            results = []
            # generator output keeps submission order
            parallel = Parallel(
                n_jobs=self.n_jobs,
                backend=self.backend,
                verbose=self.verbose,
                return_as="generator",
            )
            for result in parallel(delayed(func)(item) for item in items):
                results.append(result)
                progress.update(task, advance=1)
            return results

    def starmap(
        self,
        func: Callable,
        items: list[tuple],
        description: str = "Processing",
        show_progress: bool = True,
    ) -> list[Any]:
        """Like ``map`` but unpacks each item as positional arguments."""
        return self.map(_Star(func), items, description, show_progress)

    def _map_serial(
        self,
        func: Callable,
        items: list[Any],
        description: str,
        show_progress: bool,
    ) -> list[Any]:
        if not show_progress:
            return [func(item) for item in items]

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            transient=True,
        ) as progress:
            task = progress.add_task(f"[cyan]{description}...", total=len(items))
            results = []
            for item in items:
                results.append(func(item))
                progress.update(task, advance=1)
            return results


class _Star:
    """Picklable wrapper unpacking an argument tuple."""

    def __init__(self, func: Callable):
        self.func = func

    def __call__(self, args: tuple) -> Any:
        return self.func(*args)
