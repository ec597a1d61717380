"""
Line tessellation into widened triangle strips.

Every segment p0 -> p1 of a line becomes six vertices::

    (p0, +n) (p0, +n) (p0, -n) (p1, +n) (p1, -n) (p1, -n)

where n is the segment's unit normal. The line width is applied at draw
time by scaling the extrusion vector, so positions stay zoom independent.
The first and last vertex of each group repeat their neighbour, producing
zero-area triangles: many lines can then be drawn as a single triangle
strip without bridging triangles between them. A vertex at a joint carries
the normal of its own segment (no miter).
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from ..constants import VERTICES_PER_QUAD
from ..exceptions import InvalidGeometry
from .buffers import PolylineBuffers

logger = logging.getLogger("field_geometry.geometry.polylines")

# Point index (0 = segment start, 1 = segment end) and extrusion sign per vertex
_QUAD_ENDS = np.array([0, 0, 0, 1, 1, 1])
_QUAD_SIGNS = np.array([1.0, 1.0, -1.0, 1.0, -1.0, -1.0])


@dataclass
class LineSpec:
    """
    One line to tessellate.

    Attributes:
        points: (n, 2) point sequence
        texcoords: (n, 2) per-point texture coordinates (zeros when None)
        origin: Per-line origin/category value, scalar or vector
        zoom: Per-line zoom tier
    """

    points: Any
    texcoords: Optional[Any] = None
    origin: Union[float, Sequence[float]] = 0.0
    zoom: float = 0.0


def segment_normals(points: np.ndarray) -> np.ndarray:
    """
    Unit normals ``(dy, -dx) / |d|`` of consecutive point pairs.

    Zero-length segments get a zero normal.
    """
    delta = np.diff(points, axis=0)
    length = np.hypot(delta[:, 0], delta[:, 1])
    normals = np.zeros_like(delta)
    nonzero = length > 0
    normals[nonzero, 0] = delta[nonzero, 1] / length[nonzero]
    normals[nonzero, 1] = -delta[nonzero, 0] / length[nonzero]
    return normals


def _validate_line(iline: int, line: LineSpec) -> tuple:
    points = np.asarray(line.points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise InvalidGeometry(
            f"Line {iline}: points must have shape (n, 2), got {points.shape}",
            "points", str(points.shape)
        )
    if len(points) < 2:
        raise InvalidGeometry(f"Line {iline}: at least 2 points required, got {len(points)}", "points", len(points))

    if line.texcoords is None:
        texcoords = np.zeros_like(points)
    else:
        texcoords = np.asarray(line.texcoords, dtype=np.float64)
        if texcoords.shape != points.shape:
            raise InvalidGeometry(
                f"Line {iline}: texcoords shape {texcoords.shape} does not match points {points.shape}",
                "texcoords", str(texcoords.shape)
            )

    origin = np.atleast_1d(np.asarray(line.origin, dtype=np.float64))
    if origin.ndim != 1:
        raise InvalidGeometry(f"Line {iline}: origin must be a scalar or vector", "origin", str(origin.shape))

    return points, texcoords, origin


def tessellate_lines(lines: Sequence[LineSpec]) -> PolylineBuffers:
    """
    Tessellate lines into one batched triangle-strip vertex buffer.

    A line with N points yields exactly ``6 * (N - 1)`` vertices; lines are
    concatenated in input order.

    Args:
        lines: Lines to tessellate

    Returns:
        PolylineBuffers with verts, extrusion, texcoords, origin and zoom

    Raises:
        InvalidGeometry: If a line has fewer than 2 points, mismatched
            points/texcoords, or an origin width differing from the first line

    Example:
        >>> buffers = tessellate_lines([LineSpec([(0, 0), (1, 0), (1, 1)])])
        >>> buffers.n_vertices
        12
    """
    validated = [_validate_line(iline, line) for iline, line in enumerate(lines)]

    origin_width = validated[0][2].size if validated else 1
    for iline, (_, _, origin) in enumerate(validated):
        if origin.size != origin_width:
            raise InvalidGeometry(
                f"Line {iline}: origin has {origin.size} components, expected {origin_width}",
                "origin", int(origin.size)
            )

    verts: List[np.ndarray] = []
    extrusion: List[np.ndarray] = []
    texcoords: List[np.ndarray] = []
    origins: List[np.ndarray] = []
    zooms: List[np.ndarray] = []

    for line, (points, line_texcoords, origin) in zip(lines, validated):
        n_segments = len(points) - 1
        seg = np.repeat(np.arange(n_segments), VERTICES_PER_QUAD)
        ends = np.tile(_QUAD_ENDS, n_segments)
        signs = np.tile(_QUAD_SIGNS, n_segments)

        normals = segment_normals(points)
        n_out = n_segments * VERTICES_PER_QUAD

        verts.append(points[seg + ends])
        texcoords.append(line_texcoords[seg + ends])
        extrusion.append(normals[seg] * signs[:, None])
        origins.append(np.broadcast_to(origin, (n_out, origin_width)))
        zooms.append(np.full(n_out, float(line.zoom)))

    if not verts:
        empty2 = np.zeros((0, 2))
        return PolylineBuffers(
            verts=empty2, extrusion=empty2, texcoords=empty2,
            origin=np.zeros((0, origin_width)), zoom=np.zeros(0),
        )

    buffers = PolylineBuffers(
        verts=np.concatenate(verts),
        extrusion=np.concatenate(extrusion),
        texcoords=np.concatenate(texcoords),
        origin=np.concatenate(origins),
        zoom=np.concatenate(zooms),
    )
    logger.debug(f"Tessellated {len(lines)} lines into {buffers.n_vertices} vertices")
    return buffers
