"""
Off-thread execution of geometry jobs.

Label placement and grid thinning scale with grid and label counts, so
interactive callers run them away from their render loop. Every job is a
pure function of its inputs: it receives its own grid or contour snapshot
and returns a fresh result. There is no cancellation; a caller that no
longer wants a result simply discards it.

Errors raised inside a worker are returned as payload dictionaries and
rebuilt on the caller side, so a failed job reports the same exception
class it would raise in-process.

Example:
    >>> from field_geometry.jobs import GeometryJobRunner, LabelJob, ThinningJob
    >>>
    >>> runner = GeometryJobRunner()
    >>> result = runner.run(
    ...     [ThinningJob("barbs", grid, thinning_base=4, max_zoom=6),
    ...      LabelJob("mslp-labels", contours, spacing_at_max_zoom=0.01, max_zoom=7)],
    ...     parallel=True,
    ...     parallel_backend="process",
    ... )
    >>> billboards = result["results"]["barbs"]
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .constants import DEFAULT_CHAIN_TOLERANCE, DEFAULT_CONTOUR_INTERVAL
from .contours import extract_contours
from .exceptions import FieldGeometryError, InvalidConfiguration, error_from_payload
from .geometry import LineSpec, make_billboard_elements, make_mesh_skeleton, tessellate_lines
from .grid import ScalarGrid
from .labels import place_labels
from .logging_config import log_float_errors

logger = logging.getLogger(__name__)


@dataclass
class ContourJob:
    """Extract contours of a grid."""

    key: str
    grid: ScalarGrid
    levels: Sequence[float] = field(default_factory=list)
    interval: float = DEFAULT_CONTOUR_INTERVAL
    tolerance: float = DEFAULT_CHAIN_TOLERANCE

    def run(self):
        return extract_contours(self.grid, self.levels, self.interval, self.tolerance)


@dataclass
class LabelJob:
    """Place and thin labels along contours."""

    key: str
    contours: Mapping[float, Sequence[np.ndarray]]
    spacing_at_max_zoom: float
    max_zoom: int
    n_decimal_places: Optional[int] = None
    spatial_index: str = "kdtree"

    def run(self):
        return place_labels(
            self.contours,
            self.spacing_at_max_zoom,
            self.max_zoom,
            n_decimal_places=self.n_decimal_places,
            spatial_index=self.spatial_index,
        )


@dataclass
class ThinningJob:
    """Build thinned billboards for a grid."""

    key: str
    grid: ScalarGrid
    thinning_base: int
    max_zoom: int

    def run(self):
        return make_billboard_elements(self.grid, self.thinning_base, self.max_zoom)


@dataclass
class MeshJob:
    """Build the mesh skeleton of a grid."""

    key: str
    grid: ScalarGrid
    texcoord_margins: Tuple[float, float] = (0.0, 0.0)

    def run(self):
        return make_mesh_skeleton(self.grid, self.texcoord_margins)


@dataclass
class TessellationJob:
    """Tessellate lines into a strip buffer."""

    key: str
    lines: Sequence[LineSpec]

    def run(self):
        return tessellate_lines(self.lines)


def _run_job_worker(job) -> Tuple[str, Any]:
    """Process-safe worker: returns ("ok", result) or ("error", payload)."""
    try:
        with log_float_errors(logger, f"job {job.key!r}"):
            return "ok", job.run()
    except FieldGeometryError as e:
        return "error", e.to_payload()


class GeometryJobRunner:
    """Run geometry jobs sequentially or on a thread/process pool."""

    def run(
        self,
        jobs: Sequence[Any],
        parallel: bool = False,
        max_workers: Optional[int] = None,
        parallel_backend: str = "thread",
        show_progress: bool = True,
    ) -> Dict[str, Any]:
        """
        Run jobs and collect their results.

        Args:
            jobs: Job objects with unique ``key`` attributes
            parallel: Enable parallel processing (default: False)
            max_workers: Maximum parallel workers (default: CPU count)
            parallel_backend: "thread" or "process"
            show_progress: Show a tqdm progress bar (default: True)

        Returns:
            Dictionary with keys:
                - results: Mapping of job key to result
                - failed: Mapping of job key to the rebuilt exception
                - total_time: Total run time in seconds

        Raises:
            InvalidConfiguration: For duplicate job keys or an unknown backend
        """
        keys = [job.key for job in jobs]
        if len(set(keys)) != len(keys):
            raise InvalidConfiguration("Job keys must be unique", "jobs", str(keys))

        logger.info(f"Running {len(jobs)} geometry jobs (parallel={parallel}, max_workers={max_workers})")

        start_time = time.time()
        results: Dict[str, Any] = {}
        failed: Dict[str, FieldGeometryError] = {}

        def record(key: str, outcome: Tuple[str, Any]) -> None:
            status, value = outcome
            if status == "ok":
                results[key] = value
                logger.debug(f"Job '{key}' completed")
            else:
                failed[key] = error_from_payload(value)
                logger.warning(f"Job '{key}' failed: {value['kind']}: {value['message']}")

        if parallel:
            backend = (parallel_backend or "thread").strip().lower()
            if backend not in {"thread", "process"}:
                raise InvalidConfiguration(
                    f"Invalid parallel_backend='{parallel_backend}'. Use 'thread' or 'process'.",
                    "parallel_backend", parallel_backend
                )

            Executor = ThreadPoolExecutor if backend == "thread" else ProcessPoolExecutor
            with Executor(max_workers=max_workers) as executor:
                future_to_key = {executor.submit(_run_job_worker, job): job.key for job in jobs}
                futures = tqdm(
                    as_completed(future_to_key),
                    total=len(jobs),
                    desc="Geometry jobs",
                    unit="job",
                    disable=not show_progress,
                )
                for future in futures:
                    record(future_to_key[future], future.result())
        else:
            for job in tqdm(jobs, desc="Geometry jobs", unit="job", disable=not show_progress):
                record(job.key, _run_job_worker(job))

        total_time = time.time() - start_time
        logger.info(
            f"Geometry jobs complete: {len(results)}/{len(jobs)} succeeded in {total_time:.2f}s"
        )
        if failed:
            logger.warning(f"Failed jobs: {sorted(failed)}")

        return {
            "results": results,
            "failed": failed,
            "total_time": total_time,
        }
