"""
Contour label placement and zoom thinning.

Placement runs in two phases. First, candidate anchors are sampled along
every contour polyline at a fixed arc-length spacing (measured in
web-mercator units) and frozen. Second, a separate min-zoom array is
resolved by sweeping an auxiliary grid over the candidates' bounding box:
for each zoom tier below the maximum, the grid is sampled at twice the
previous stride and the candidate nearest to each sample becomes visible
at that tier. Labels in dense regions therefore stay hidden until higher
zoom while isolated labels show up early. A last pass walks each tier
below the maximum and pushes back any label that lies closer than one
thinning-grid cell to an earlier label visible at that tier.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..constants import LABEL_THIN_GRID_FACTOR
from ..exceptions import EmptyLevelSet, InvalidConfiguration
from ..grid import lnglat_to_mercator
from .spatial_index import SpatialIndex, make_spatial_index

logger = logging.getLogger("field_geometry.labels.placer")


@dataclass(frozen=True)
class LabelAnchor:
    """Candidate label position before zoom thinning."""

    lon: float
    lat: float
    text: str


@dataclass(frozen=True)
class LabelCandidate:
    """A placed contour label, visible from ``min_zoom`` upward."""

    lon: float
    lat: float
    text: str
    min_zoom: int

    @property
    def position(self) -> Tuple[float, float]:
        return (self.lon, self.lat)


def spacing_for_zoom(spacing_at_max_zoom: float, max_zoom: int, zoom: int) -> float:
    """Label spacing at ``zoom``; it doubles for every zoom level below max."""
    return spacing_at_max_zoom * 2.0 ** (max_zoom - zoom)


def format_level(level: float, n_decimal_places: Optional[int] = None) -> str:
    """
    Label text for a contour level.

    Example:
        >>> format_level(1012.0), format_level(0.5), format_level(2.345, 1)
        ('1012', '0.5', '2.3')
    """
    if n_decimal_places is not None:
        return f"{level:.{n_decimal_places}f}"
    if float(level).is_integer():
        return str(int(level))
    return repr(float(level))


def sample_polyline(
    polyline: np.ndarray,
    spacing: float,
    phase: float
) -> List[Tuple[float, float]]:
    """
    Label anchors along one (lon, lat) polyline.

    Arc length is accumulated in web-mercator coordinates. An anchor is
    emitted at every arc length ``spacing * (n + phase)``, interpolated
    linearly in (lon, lat) within the segment that contains it. Sampling
    stops at the first vertex whose arc length is not finite.
    """
    polyline = np.asarray(polyline, dtype=np.float64)
    if len(polyline) < 2:
        return []

    mx, my = lnglat_to_mercator(polyline[:, 0], polyline[:, 1])
    dist = np.concatenate([[0.0], np.cumsum(np.hypot(np.diff(mx), np.diff(my)))])

    anchors: List[Tuple[float, float]] = []
    n_labels_placed = 0
    for idist in range(1, len(dist)):
        d_start = dist[idist - 1]
        d_end = dist[idist]
        if not math.isfinite(d_end):
            break
        target = spacing * (n_labels_placed + phase)
        while d_start <= target < d_end:
            alpha = (target - d_start) / (d_end - d_start)
            pt1 = polyline[idist - 1]
            pt2 = polyline[idist]
            anchors.append((
                float((1 - alpha) * pt1[0] + alpha * pt2[0]),
                float((1 - alpha) * pt1[1] + alpha * pt2[1]),
            ))
            n_labels_placed += 1
            target = spacing * (n_labels_placed + phase)

    return anchors


def collect_label_anchors(
    contours: Mapping[float, Sequence[np.ndarray]],
    spacing: float,
    n_decimal_places: Optional[int] = None
) -> List[LabelAnchor]:
    """
    Sample label anchors along every contour.

    Levels are processed in ascending order; level index ``k`` starts its
    labels at phase ``(k / 2) % 1`` so labels on adjacent parallel contours
    are staggered.
    """
    anchors: List[LabelAnchor] = []
    for ilevel, level in enumerate(sorted(contours)):
        phase = (ilevel / 2) % 1
        text = format_level(level, n_decimal_places)
        n_before = len(anchors)
        for polyline in contours[level]:
            for lon, lat in sample_polyline(polyline, spacing, phase):
                anchors.append(LabelAnchor(lon, lat, text))
        logger.debug(f"Level {level}: {len(anchors) - n_before} label anchors (phase={phase})")
    return anchors


def assign_min_zoom(
    anchors: Sequence[LabelAnchor],
    spacing: float,
    max_zoom: int,
    spatial_index: str = "kdtree"
) -> np.ndarray:
    """
    Resolve the minimum visible zoom of every anchor.

    Args:
        anchors: Frozen label anchors
        spacing: Label spacing at max zoom (web-mercator units)
        max_zoom: Maximum map zoom; every anchor is visible there
        spatial_index: Nearest-neighbor structure ("kdtree" or "gridhash")

    Returns:
        Int array of min zooms, indexed like ``anchors``
    """
    min_zoom = np.full(len(anchors), max_zoom, dtype=np.int64)
    if not anchors:
        return min_zoom

    lons = np.array([a.lon for a in anchors], dtype=np.float64)
    lats = np.array([a.lat for a in anchors], dtype=np.float64)
    mx, my = lnglat_to_mercator(lons, lats)

    index = make_spatial_index(spatial_index, spacing)
    positions = np.column_stack([mx, my])
    index.insert(positions)

    min_x, max_x = float(mx.min()), float(mx.max())
    min_y, max_y = float(my.min()), float(my.max())
    width = max_x - min_x
    height = max_y - min_y

    ni_thin = max(1, round(LABEL_THIN_GRID_FACTOR * width / spacing))
    nj_thin = max(1, round(LABEL_THIN_GRID_FACTOR * height / spacing))
    thin_xs = [min_x + (idx / ni_thin) * width for idx in range(ni_thin)]
    thin_ys = [min_y + (jdy / nj_thin) * height for jdy in range(nj_thin)]

    logger.debug(f"Label thinning grid: {ni_thin}x{nj_thin} over {len(anchors)} anchors")

    skip = 1
    for zoom in range(max_zoom - 1, -1, -1):
        for idx in range(0, ni_thin, skip):
            for jdy in range(0, nj_thin, skip):
                neighbors = index.nearest((thin_xs[idx], thin_ys[jdy]), k=1)
                ilabel = neighbors[0][0]
                if min_zoom[ilabel] > zoom:
                    min_zoom[ilabel] = zoom
        skip *= 2

    min_separation = spacing / LABEL_THIN_GRID_FACTOR
    for zoom in range(max_zoom):
        n_raised = _separate_tier(index, positions, min_zoom, zoom, min_separation)
        if n_raised:
            logger.debug(f"Zoom {zoom}: raised {n_raised} labels closer than {min_separation:.3g}")

    return min_zoom


def _separate_tier(
    index: SpatialIndex,
    positions: np.ndarray,
    min_zoom: np.ndarray,
    zoom: int,
    min_separation: float
) -> int:
    """
    Hide labels at ``zoom`` that sit within ``min_separation`` of an earlier visible one.

    Labels already visible at a lower tier are visited first, then the rest,
    each group in id order. A label near an already kept label moves to
    ``zoom + 1``. Returns the number of labels moved.
    """
    visible = np.nonzero(min_zoom <= zoom)[0]
    order = visible[np.lexsort((visible, min_zoom[visible]))]

    kept = np.zeros(len(min_zoom), dtype=bool)
    n_raised = 0
    for ilabel in order.tolist():
        neighbors = index.within(positions[ilabel], min_separation)
        if any(kept[other] for other in neighbors if other != ilabel):
            min_zoom[ilabel] = zoom + 1
            n_raised += 1
        else:
            kept[ilabel] = True
    return n_raised


def place_labels(
    contours: Mapping[float, Sequence[np.ndarray]],
    spacing_at_max_zoom: float,
    max_zoom: int,
    n_decimal_places: Optional[int] = None,
    spatial_index: str = "kdtree"
) -> List[LabelCandidate]:
    """
    Place contour labels and resolve their minimum visible zoom.

    Args:
        contours: Mapping of level to (lon, lat) polylines, as returned by
            extract_contours
        spacing_at_max_zoom: Arc-length spacing between labels at max zoom,
            in web-mercator units
        max_zoom: Maximum zoom of the map
        n_decimal_places: Fixed decimals for label text (None for automatic)
        spatial_index: Nearest-neighbor structure ("kdtree" or "gridhash")

    Returns:
        List of frozen LabelCandidate objects

    Raises:
        EmptyLevelSet: If no contours were supplied
        InvalidConfiguration: If spacing or max_zoom are invalid

    Example:
        >>> contours = extract_contours(grid, interval=4.0)
        >>> labels = place_labels(contours, default_label_spacing(7), 7)
        >>> visible_at_3 = [lbl for lbl in labels if lbl.min_zoom <= 3]
    """
    if not contours:
        raise EmptyLevelSet("No contours supplied for label placement", "contours")
    if not math.isfinite(spacing_at_max_zoom) or spacing_at_max_zoom <= 0:
        raise InvalidConfiguration(
            "Label spacing must be positive", "spacing_at_max_zoom", spacing_at_max_zoom
        )
    if not isinstance(max_zoom, (int, np.integer)) or max_zoom < 0:
        raise InvalidConfiguration("max_zoom must be an integer >= 0", "max_zoom", max_zoom)
    max_zoom = int(max_zoom)

    spacing = spacing_for_zoom(spacing_at_max_zoom, max_zoom, max_zoom)
    anchors = collect_label_anchors(contours, spacing, n_decimal_places)
    min_zoom = assign_min_zoom(anchors, spacing, max_zoom, spatial_index)

    labels = [
        LabelCandidate(anchor.lon, anchor.lat, anchor.text, int(zoom))
        for anchor, zoom in zip(anchors, min_zoom.tolist())
    ]

    if labels:
        counts: Dict[int, int] = {}
        for label in labels:
            counts[label.min_zoom] = counts.get(label.min_zoom, 0) + 1
        logger.info(
            f"Placed {len(labels)} labels over {len(contours)} levels "
            f"(min_zoom histogram: {dict(sorted(counts.items()))})"
        )
    else:
        logger.info(f"No labels placed over {len(contours)} levels")

    return labels
