"""
Contour level resolution.

Levels are either supplied explicitly (at most MAX_CONTOUR_LEVELS) or
generated as the multiples of a fixed interval that cover the data range.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from ..constants import MAX_CONTOUR_LEVELS
from ..exceptions import EmptyGrid, InvalidConfiguration

logger = logging.getLogger("field_geometry.contours.levels")


def generate_levels(data_min: float, data_max: float, interval: float) -> np.ndarray:
    """
    Multiples of ``interval`` spanning
    ``[floor(min/interval)*interval, ceil(max/interval)*interval]``.

    Args:
        data_min: Smallest finite data value
        data_max: Largest finite data value
        interval: Positive contour interval

    Returns:
        Strictly increasing float64 array of levels

    Raises:
        InvalidConfiguration: If interval is not positive or more than
            MAX_CONTOUR_LEVELS levels would be generated

    Example:
        >>> generate_levels(10.0, 100.0, 30.0).tolist()
        [0.0, 30.0, 60.0, 90.0, 120.0]
    """
    if not math.isfinite(interval) or interval <= 0:
        raise InvalidConfiguration("Contour interval must be positive", "interval", interval)

    k_lo = math.floor(data_min / interval)
    k_hi = math.ceil(data_max / interval)
    n_levels = k_hi - k_lo + 1
    if n_levels > MAX_CONTOUR_LEVELS:
        raise InvalidConfiguration(
            f"Interval {interval} over [{data_min}, {data_max}] gives {n_levels} levels "
            f"(max {MAX_CONTOUR_LEVELS})",
            "interval", interval
        )

    # Integer multiples avoid accumulating floating point drift.
    return np.arange(k_lo, k_hi + 1, dtype=np.float64) * interval


def resolve_levels(
    values: np.ndarray,
    levels: Optional[Sequence[float]] = None,
    interval: float = 1.0
) -> np.ndarray:
    """
    Resolve the level set for a field.

    Explicit levels win over the interval; they are sorted and
    de-duplicated. Otherwise levels are generated from the finite data
    range with :func:`generate_levels`.

    Raises:
        InvalidConfiguration: For too many or non-finite explicit levels, or a
            bad interval
        EmptyGrid: If levels must be generated and the field has no finite values
    """
    if levels is not None and len(levels) > 0:
        explicit = np.unique(np.asarray(levels, dtype=np.float64))
        if not np.all(np.isfinite(explicit)):
            raise InvalidConfiguration("Contour levels must be finite", "levels", str(list(levels)))
        if explicit.size > MAX_CONTOUR_LEVELS:
            raise InvalidConfiguration(
                f"At most {MAX_CONTOUR_LEVELS} contour levels are supported, got {explicit.size}",
                "levels", int(explicit.size)
            )
        logger.debug(f"Using {explicit.size} explicit contour levels")
        return explicit

    finite = values[np.isfinite(values)]
    if finite.size == 0:
        raise EmptyGrid("Field has no finite values to derive contour levels from", "values")

    resolved = generate_levels(float(finite.min()), float(finite.max()), interval)
    logger.debug(
        f"Generated {resolved.size} contour levels from {resolved[0]} to {resolved[-1]} "
        f"(interval={interval})"
    )
    return resolved
