"""
Render-ready vertex buffer bundles.

Each bundle is a set of parallel float32 arrays with one row per vertex.
Bundles are built fresh for every call and their arrays are read-only; a
renderer replaces a bundle wholesale rather than editing it.
"""

from dataclasses import dataclass, fields
from typing import Dict

import numpy as np


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr = np.ascontiguousarray(arr, dtype=np.float32)
    arr.setflags(write=False)
    return arr


class _VertexBundle:
    """Shared behaviour: float32 freezing and equal vertex counts."""

    def __post_init__(self):
        n_vertices = None
        for f in fields(self):
            arr = _freeze(getattr(self, f.name))
            object.__setattr__(self, f.name, arr)
            if n_vertices is None:
                n_vertices = arr.shape[0]
            elif arr.shape[0] != n_vertices:
                raise ValueError(
                    f"{type(self).__name__}.{f.name} has {arr.shape[0]} rows, expected {n_vertices}"
                )

    @property
    def n_vertices(self) -> int:
        return getattr(self, fields(self)[0].name).shape[0]

    def as_dict(self) -> Dict[str, np.ndarray]:
        """Arrays keyed by attribute name, for upload or transport."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PolylineBuffers(_VertexBundle):
    """
    Widened-line triangle strip.

    Attributes:
        verts: (n, 2) vertex positions
        extrusion: (n, 2) unit normals, negated on the second side of the line
        texcoords: (n, 2) texture coordinates
        origin: (n, k) per-line origin/category value, broadcast per vertex
        zoom: (n,) per-line zoom tier, broadcast per vertex
    """

    verts: np.ndarray
    extrusion: np.ndarray
    texcoords: np.ndarray
    origin: np.ndarray
    zoom: np.ndarray


@dataclass(frozen=True)
class BillboardBuffers(_VertexBundle):
    """
    Thinned structured-grid billboards.

    Attributes:
        pts: (n, 3) rows of (mercator_x, mercator_y, zoom * 4 + corner)
        tex_coords: (n, 2) normalized grid index of the source point
    """

    pts: np.ndarray
    tex_coords: np.ndarray


@dataclass(frozen=True)
class MeshSkeleton(_VertexBundle):
    """
    Full-resolution strip mesh of a structured grid.

    Attributes:
        vertices: (n, 2) mercator positions, one strip per grid column
        tex_coords: (n, 2) margin-inset texture coordinates
        grid_cell_size: (n,) area of the cell each vertex is attributed to
        cell_areas: (nj - 1, ni - 1) planar area of every cell; not a
            per-vertex array
    """

    vertices: np.ndarray
    tex_coords: np.ndarray
    grid_cell_size: np.ndarray
    cell_areas: np.ndarray

    def __post_init__(self):
        cell_areas = np.array(self.cell_areas, dtype=np.float64)
        cell_areas.setflags(write=False)
        object.__setattr__(self, "cell_areas", cell_areas)
        n_vertices = None
        for name in ("vertices", "tex_coords", "grid_cell_size"):
            arr = _freeze(getattr(self, name))
            object.__setattr__(self, name, arr)
            if n_vertices is None:
                n_vertices = arr.shape[0]
            elif arr.shape[0] != n_vertices:
                raise ValueError(f"MeshSkeleton.{name} has {arr.shape[0]} rows, expected {n_vertices}")
