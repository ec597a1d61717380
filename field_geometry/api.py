"""
Main API module for the field_geometry package.

This module provides simplified user-facing functions that run each stage
of the field-to-geometry pipeline with options taken from a :class:`Config`.
The primary function :func:`build_contour_layer` runs the complete contour
workflow (extraction, labels, line buffers) in one call.

Example:
    >>> import numpy as np
    >>> from field_geometry import ScalarGrid, Config, build_contour_layer
    >>>
    >>> lons = np.linspace(-110.0, -80.0, 61)
    >>> lats = np.linspace(25.0, 50.0, 51)
    >>> mslp = 1012.0 + 12.0 * np.cos(np.radians(lats))[:, None] * np.sin(np.radians(lons))[None, :]
    >>> layer = build_contour_layer(ScalarGrid(mslp, lons, lats), Config(contour_interval=4.0))
    >>> print(len(layer.labels), layer.lines.n_vertices)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from .config import Config
from .contours import extract_contours
from .geometry import (
    BillboardBuffers,
    LineSpec,
    MeshSkeleton,
    PolylineBuffers,
    make_billboard_elements,
    make_mesh_skeleton,
    tessellate_lines,
)
from .grid import ScalarGrid, lnglat_to_mercator
from .labels import LabelCandidate, place_labels
from .logging_config import log_float_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContourLayer:
    """Everything a renderer needs to draw one contoured field."""

    contours: Dict[float, List[np.ndarray]]
    labels: List[LabelCandidate]
    lines: PolylineBuffers


def _resolve_config(config: Optional[Config]) -> Config:
    if config is None:
        config = Config()
        logger.debug("Using default configuration")
    config.validate()
    return config


def contour_field(grid: ScalarGrid, config: Optional[Config] = None) -> Dict[float, List[np.ndarray]]:
    """
    Extract contours of a grid using the configured levels or interval.

    Args:
        grid: Field to contour
        config: Optional Config object; if None, uses default configuration

    Returns:
        Dictionary mapping level to (lon, lat) polylines

    Raises:
        InvalidConfiguration: If configured levels or interval are invalid
        EmptyGrid: If the grid holds no finite values
    """
    config = _resolve_config(config)
    return extract_contours(
        grid,
        levels=config.contour_levels,
        interval=config.contour_interval,
        tolerance=config.chain_tolerance,
    )


def label_contours(
    contours: Mapping[float, Sequence[np.ndarray]],
    config: Optional[Config] = None
) -> List[LabelCandidate]:
    """
    Place thinned labels along contours.

    Raises:
        EmptyLevelSet: If contours is empty
    """
    config = _resolve_config(config)
    return place_labels(
        contours,
        spacing_at_max_zoom=config.label_spacing(),
        max_zoom=config.max_zoom,
        n_decimal_places=config.label_decimal_places,
        spatial_index=config.spatial_index,
    )


def contour_line_buffers(
    contours: Mapping[float, Sequence[np.ndarray]],
    config: Optional[Config] = None
) -> PolylineBuffers:
    """
    Tessellate every contour polyline into one line buffer.

    Positions are web-mercator coordinates; each line's origin attribute is
    its contour level and its zoom attribute is ``config.line_zoom``.
    """
    config = _resolve_config(config)
    lines = []
    for level in sorted(contours):
        for polyline in contours[level]:
            mx, my = lnglat_to_mercator(polyline[:, 0], polyline[:, 1])
            lines.append(LineSpec(points=np.column_stack([mx, my]), origin=level, zoom=config.line_zoom))
    return tessellate_lines(lines)


def field_billboards(grid: ScalarGrid, config: Optional[Config] = None) -> BillboardBuffers:
    """Thinned billboard buffer of a grid (e.g. for wind barbs or station plots)."""
    config = _resolve_config(config)
    return make_billboard_elements(grid, config.thinning_base, config.max_zoom)


def field_mesh(grid: ScalarGrid, config: Optional[Config] = None) -> MeshSkeleton:
    """Full-resolution mesh skeleton of a grid for raster fills."""
    config = _resolve_config(config)
    return make_mesh_skeleton(grid, config.texcoord_margins)


def build_contour_layer(grid: ScalarGrid, config: Optional[Config] = None) -> ContourLayer:
    """
    Run the complete contour workflow for one field.

    This is the primary API function:
    1. Extract contours at the configured levels
    2. Place and thin contour labels
    3. Tessellate the contour lines into a vertex buffer

    A field without any contour yields an empty layer rather than an error.

    Args:
        grid: Field to contour
        config: Optional Config object; if None, uses default configuration

    Returns:
        ContourLayer with contours, labels and line buffers

    Raises:
        InvalidConfiguration: If the configuration is invalid
        EmptyGrid: If the grid holds no finite values
    """
    config = _resolve_config(config)
    logger.info(f"Building contour layer for {grid!r}")

    with log_float_errors(logger, "contour layer"):
        contours = contour_field(grid, config)
        if not contours:
            logger.warning("Field produced no contours; layer is empty")
            return ContourLayer(contours={}, labels=[], lines=tessellate_lines([]))

        labels = label_contours(contours, config)
        lines = contour_line_buffers(contours, config)

    logger.info(
        f"Contour layer complete: {len(contours)} levels, {len(labels)} labels, "
        f"{lines.n_vertices} line vertices"
    )
    return ContourLayer(contours=contours, labels=labels, lines=lines)
