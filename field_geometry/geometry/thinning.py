"""
Structured-grid thinning and full-resolution mesh construction.

``make_billboard_elements`` turns every grid point into a degenerate-bracketed
billboard quad tagged with the zoom tier from which it is shown, so one
draw call can serve every density tier; the tier is picked at render time.
``make_mesh_skeleton`` builds the column strips used for raster fills,
along with the per-vertex cell areas the fill shader uses for anti-aliasing.
"""

import logging
from typing import Tuple

import numpy as np

from ..constants import BILLBOARD_CORNERS, CORNERS_PER_BILLBOARD, VERTICES_PER_QUAD
from ..exceptions import InvalidConfiguration
from ..grid import ScalarGrid, lnglat_to_mercator
from .buffers import BillboardBuffers, MeshSkeleton

logger = logging.getLogger("field_geometry.geometry.thinning")


def _check_thinning_base(thinning_base: int) -> None:
    if (
        not isinstance(thinning_base, (int, np.integer))
        or thinning_base < 1
        or (thinning_base & (thinning_base - 1)) != 0
    ):
        raise InvalidConfiguration(
            f"thinning_base must be a power of two, got {thinning_base}",
            "thinning_base", thinning_base
        )


def make_billboard_elements(grid: ScalarGrid, thinning_base: int, max_zoom: int) -> BillboardBuffers:
    """
    Build thinned billboard vertices for every grid point visible by max_zoom.

    Points are visited row by row (j outer, i inner). A point whose zoom
    tier (``grid.min_zoom_for_index``) exceeds ``max_zoom`` is skipped, so
    the buffer never holds points that cannot be shown.

    Args:
        grid: Structured grid
        thinning_base: Power-of-two thinning base
        max_zoom: Highest zoom tier to keep

    Returns:
        BillboardBuffers with 6 vertices per kept point

    Raises:
        InvalidConfiguration: If thinning_base is not a power of two or
            max_zoom is negative
    """
    _check_thinning_base(thinning_base)
    if not isinstance(max_zoom, (int, np.integer)) or max_zoom < 0:
        raise InvalidConfiguration("max_zoom must be an integer >= 0", "max_zoom", max_zoom)

    zoom = grid.min_zoom_array(thinning_base)
    jj, ii = np.nonzero(zoom <= max_zoom)
    n_points = jj.size

    lon, lat = grid.lnglat()
    mx, my = lnglat_to_mercator(lon[jj, ii], lat[jj, ii])

    rep = np.repeat(np.arange(n_points), VERTICES_PER_QUAD)
    corners = np.tile(np.array(BILLBOARD_CORNERS, dtype=np.float64), n_points)

    pts = np.column_stack([
        mx[rep],
        my[rep],
        zoom[jj, ii][rep] * CORNERS_PER_BILLBOARD + corners,
    ])
    tex_coords = np.column_stack([
        ii[rep] / (grid.ni - 1),
        jj[rep] / (grid.nj - 1),
    ])

    logger.info(
        f"Thinned {grid.ni}x{grid.nj} grid to {n_points} billboards "
        f"(base={thinning_base}, max_zoom={max_zoom})"
    )
    return BillboardBuffers(pts=pts.reshape(-1, 3), tex_coords=tex_coords.reshape(-1, 2))


def quad_cell_areas(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Planar area of every grid cell from its four corners.

    Each quad is split into the triangles (ll, lr, ul) and (ur, ul, lr)
    and the shoelace terms are summed.

    Args:
        x, y: (nj, ni) corner coordinates

    Returns:
        (nj - 1, ni - 1) array of areas
    """
    x_ll, y_ll = x[:-1, :-1], y[:-1, :-1]
    x_lr, y_lr = x[:-1, 1:], y[:-1, 1:]
    x_ul, y_ul = x[1:, :-1], y[1:, :-1]
    x_ur, y_ur = x[1:, 1:], y[1:, 1:]

    return 0.5 * np.abs(
        x_ll * (y_lr - y_ul) + x_lr * (y_ul - y_ll) + x_ul * (y_ll - y_lr)
        + x_ur * (y_ul - y_lr) + x_ul * (y_lr - y_ur) + x_lr * (y_ur - y_ul)
    )


def make_mesh_skeleton(
    grid: ScalarGrid,
    texcoord_margins: Tuple[float, float] = (0.0, 0.0)
) -> MeshSkeleton:
    """
    Build the full-resolution strip mesh of a grid.

    One strip per column i < ni - 1 alternates grid points (i, j) and
    (i + 1, j) for every j, with the first and last vertex duplicated to
    separate strips, giving ``2 * (ni - 1) * (nj + 1)`` vertices.

    The per-vertex ``grid_cell_size`` of a column is the first cell's area,
    then every cell's area twice, then the last cell's area three more
    times.

    Args:
        grid: Structured grid
        texcoord_margins: (r, s) insets of the texture coordinates, each in [0, 0.5)

    Returns:
        MeshSkeleton with vertices, tex_coords, grid_cell_size and cell_areas

    Raises:
        InvalidConfiguration: If a margin is outside [0, 0.5)
    """
    if len(texcoord_margins) != 2 or not all(0.0 <= float(m) < 0.5 for m in texcoord_margins):
        raise InvalidConfiguration(
            f"texcoord_margins must be two floats in [0.0, 0.5), got {texcoord_margins}",
            "texcoord_margins", str(texcoord_margins)
        )
    margin_r, margin_s = (float(m) for m in texcoord_margins)
    ni, nj = grid.ni, grid.nj

    lon, lat = grid.lnglat()
    x, y = lnglat_to_mercator(lon, lat)
    cell_areas = quad_cell_areas(x, y)

    r = np.arange(ni) / (ni - 1) * (1 - 2 * margin_r) + margin_r
    s = np.arange(nj) / (nj - 1) * (1 - 2 * margin_s) + margin_s

    vertices = []
    tex_coords = []
    grid_cell_size = []
    for i in range(ni - 1):
        strip = np.empty((2 * nj, 2))
        strip[0::2, 0], strip[0::2, 1] = x[:, i], y[:, i]
        strip[1::2, 0], strip[1::2, 1] = x[:, i + 1], y[:, i + 1]
        vertices.append(np.vstack([strip[:1], strip, strip[-1:]]))

        strip_tc = np.empty((2 * nj, 2))
        strip_tc[0::2, 0], strip_tc[1::2, 0] = r[i], r[i + 1]
        strip_tc[0::2, 1] = strip_tc[1::2, 1] = s
        tex_coords.append(np.vstack([strip_tc[:1], strip_tc, strip_tc[-1:]]))

        column_areas = cell_areas[:, i]
        grid_cell_size.append(np.concatenate([
            column_areas[:1],
            np.repeat(column_areas, 2),
            np.repeat(column_areas[-1:], 3),
        ]))

    skeleton = MeshSkeleton(
        vertices=np.concatenate(vertices),
        tex_coords=np.concatenate(tex_coords),
        grid_cell_size=np.concatenate(grid_cell_size),
        cell_areas=cell_areas,
    )
    logger.info(f"Built mesh skeleton for {ni}x{nj} grid: {skeleton.n_vertices} vertices")
    return skeleton
