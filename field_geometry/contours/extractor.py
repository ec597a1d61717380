"""
Isoline extraction from structured scalar grids (marching squares).

Every grid cell is the quad of samples (i, j), (i+1, j), (i+1, j+1) and
(i, j+1). A corner is "above" a level when its value is >= the level, so a
cell whose corners all sit on one side of the level contributes nothing.
Crossings are interpolated linearly along cell edges, segments are chained
into polylines by matching endpoints, and the polylines are mapped from
fractional grid indices to (lon, lat).

Saddle cells (diagonally opposite corners agree) are resolved with the
average of the four corners: when the average is above the level, the two
above corners are treated as connected through the cell centre.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..constants import DEFAULT_CHAIN_TOLERANCE, DEFAULT_CONTOUR_INTERVAL
from ..exceptions import InvalidConfiguration
from ..grid import ScalarGrid
from .levels import resolve_levels

logger = logging.getLogger("field_geometry.contours.extractor")

Point = Tuple[float, float]
Segment = Tuple[Point, Point]

# Cell edges
BOTTOM, RIGHT, TOP, LEFT = 0, 1, 2, 3

# Case index bits: (i,j)=1, (i+1,j)=2, (i+1,j+1)=4, (i,j+1)=8
_SEGMENT_TABLE = {
    1: ((LEFT, BOTTOM),),
    2: ((BOTTOM, RIGHT),),
    3: ((LEFT, RIGHT),),
    4: ((RIGHT, TOP),),
    6: ((BOTTOM, TOP),),
    7: ((LEFT, TOP),),
    8: ((LEFT, TOP),),
    9: ((BOTTOM, TOP),),
    11: ((RIGHT, TOP),),
    12: ((LEFT, RIGHT),),
    13: ((BOTTOM, RIGHT),),
    14: ((LEFT, BOTTOM),),
}

# Saddle cases keyed by whether the cell average is above the level
_SADDLE_TABLE = {
    5: {
        True: ((BOTTOM, RIGHT), (TOP, LEFT)),
        False: ((LEFT, BOTTOM), (RIGHT, TOP)),
    },
    10: {
        True: ((LEFT, BOTTOM), (RIGHT, TOP)),
        False: ((BOTTOM, RIGHT), (TOP, LEFT)),
    },
}


def _edge_crossing(
    edge: int,
    i: int,
    j: int,
    level: float,
    v00: float,
    v10: float,
    v11: float,
    v01: float
) -> Point:
    # Always interpolate from the lower-index endpoint so that the two cells
    # sharing an edge produce bit-identical crossings.
    if edge == BOTTOM:
        return (i + (level - v00) / (v10 - v00), float(j))
    if edge == TOP:
        return (i + (level - v01) / (v11 - v01), float(j + 1))
    if edge == LEFT:
        return (float(i), j + (level - v00) / (v01 - v00))
    return (float(i + 1), j + (level - v10) / (v11 - v10))


def _cell_cases(values: np.ndarray, level: float) -> np.ndarray:
    """Marching squares case index of every cell, 0 for cells with missing corners."""
    v00 = values[:-1, :-1]
    v10 = values[:-1, 1:]
    v11 = values[1:, 1:]
    v01 = values[1:, :-1]

    cases = (
        (v00 >= level).astype(np.int8)
        + (v10 >= level).astype(np.int8) * 2
        + (v11 >= level).astype(np.int8) * 4
        + (v01 >= level).astype(np.int8) * 8
    )
    valid = np.isfinite(v00) & np.isfinite(v10) & np.isfinite(v11) & np.isfinite(v01)
    cases[~valid] = 0
    return cases


def contour_segments(values: np.ndarray, level: float) -> List[Segment]:
    """
    Marching squares segments of one level in grid index space.

    Cells are visited row by row (j outer, i inner). Zero-length segments,
    which occur when the level touches a grid point exactly, are dropped.

    Args:
        values: (nj, ni) array of field values
        level: Contour level

    Returns:
        List of ((i, j), (i, j)) segment endpoint pairs
    """
    cases = _cell_cases(values, level)
    jj, ii = np.nonzero((cases != 0) & (cases != 15))

    segments: List[Segment] = []
    for j, i in zip(jj.tolist(), ii.tolist()):
        case = int(cases[j, i])
        v00 = values[j, i]
        v10 = values[j, i + 1]
        v11 = values[j + 1, i + 1]
        v01 = values[j + 1, i]

        if case in _SADDLE_TABLE:
            centre_above = (v00 + v10 + v11 + v01) / 4.0 >= level
            edge_pairs = _SADDLE_TABLE[case][bool(centre_above)]
        else:
            edge_pairs = _SEGMENT_TABLE[case]

        for edge_a, edge_b in edge_pairs:
            pt_a = _edge_crossing(edge_a, i, j, level, v00, v10, v11, v01)
            pt_b = _edge_crossing(edge_b, i, j, level, v00, v10, v11, v01)
            if pt_a != pt_b:
                segments.append((pt_a, pt_b))

    return segments


def chain_segments(segments: Sequence[Segment], tolerance: float = DEFAULT_CHAIN_TOLERANCE) -> List[List[Point]]:
    """
    Join segments that share an endpoint into polylines.

    Endpoints match when they quantize to the same cell of size
    ``tolerance``. Segments are consumed in input order; each chain is grown
    forward from its seed segment, then backward. A chain that returns to its
    start point is closed and ends with the start point repeated. Chains that
    run into the grid boundary stay open.

    Args:
        segments: Segment endpoint pairs
        tolerance: Endpoint matching tolerance

    Returns:
        List of polylines, each a list of points
    """
    if tolerance <= 0:
        raise InvalidConfiguration("Chain tolerance must be positive", "tolerance", tolerance)

    def key(pt: Point) -> Tuple[int, int]:
        return (round(pt[0] / tolerance), round(pt[1] / tolerance))

    endpoints: Dict[Tuple[int, int], List[int]] = defaultdict(list)
    for iseg, (pt_a, pt_b) in enumerate(segments):
        endpoints[key(pt_a)].append(iseg)
        endpoints[key(pt_b)].append(iseg)

    used = [False] * len(segments)

    def take_segment_at(k: Tuple[int, int]) -> Optional[int]:
        for iseg in endpoints[k]:
            if not used[iseg]:
                used[iseg] = True
                return iseg
        return None

    def other_end(iseg: int, k: Tuple[int, int]) -> Point:
        pt_a, pt_b = segments[iseg]
        return pt_b if key(pt_a) == k else pt_a

    polylines: List[List[Point]] = []
    for iseed, (pt_a, pt_b) in enumerate(segments):
        if used[iseed]:
            continue
        used[iseed] = True

        start_key = key(pt_a)
        forward = [pt_a, pt_b]
        k = key(pt_b)
        while k != start_key:
            iseg = take_segment_at(k)
            if iseg is None:
                break
            pt = other_end(iseg, k)
            forward.append(pt)
            k = key(pt)

        backward: List[Point] = []
        if k != start_key:
            k = start_key
            while True:
                iseg = take_segment_at(k)
                if iseg is None:
                    break
                pt = other_end(iseg, k)
                backward.append(pt)
                k = key(pt)

        polylines.append(backward[::-1] + forward)

    return polylines


def extract_contours(
    grid: ScalarGrid,
    levels: Optional[Sequence[float]] = None,
    interval: float = DEFAULT_CONTOUR_INTERVAL,
    tolerance: float = DEFAULT_CHAIN_TOLERANCE
) -> Dict[float, List[np.ndarray]]:
    """
    Extract contour polylines of a scalar grid.

    Args:
        grid: Field to contour
        levels: Explicit contour levels (at most 40); overrides interval
        interval: Contour interval used when no explicit levels are given
        tolerance: Endpoint matching tolerance in grid index units

    Returns:
        Dictionary mapping each level (ascending) that has at least one
        contour to a list of (n, 2) arrays of (lon, lat) points

    Raises:
        InvalidConfiguration: If the levels, interval or tolerance are invalid
        EmptyGrid: If levels must be derived and the grid has no finite values

    Example:
        >>> contours = extract_contours(grid, interval=4.0)
        >>> for level, polylines in contours.items():
        ...     print(level, len(polylines))
    """
    if tolerance <= 0:
        raise InvalidConfiguration("Chain tolerance must be positive", "tolerance", tolerance)

    values = grid.values
    contour_levels = resolve_levels(values, levels=levels, interval=interval)

    logger.info(
        f"Extracting contours: {contour_levels.size} levels on a "
        f"{grid.ni}x{grid.nj} grid"
    )

    contours: Dict[float, List[np.ndarray]] = {}
    n_polylines = 0
    for level in contour_levels.tolist():
        segments = contour_segments(values, level)
        if not segments:
            continue

        polylines = [
            grid.index_to_lnglat(np.asarray(chain, dtype=np.float64))
            for chain in chain_segments(segments, tolerance)
            if len(chain) >= 2
        ]
        logger.debug(f"Level {level}: {len(segments)} segments -> {len(polylines)} polylines")

        if polylines:
            contours[level] = polylines
            n_polylines += len(polylines)

    logger.info(f"Extracted {n_polylines} polylines across {len(contours)} levels")
    return contours
