"""
Vertex buffer construction for field_geometry.

Main Functions:
    - tessellate_lines: Widened-line triangle strips for point sequences
    - make_billboard_elements: Zoom-thinned billboards for structured grids
    - make_mesh_skeleton: Full-resolution strip mesh with per-vertex cell areas

All functions return fresh, read-only float32 bundles.
"""

from .buffers import BillboardBuffers, MeshSkeleton, PolylineBuffers
from .polylines import LineSpec, segment_normals, tessellate_lines
from .thinning import make_billboard_elements, make_mesh_skeleton, quad_cell_areas

__all__ = [
    "BillboardBuffers",
    "MeshSkeleton",
    "PolylineBuffers",
    "LineSpec",
    "segment_normals",
    "tessellate_lines",
    "make_billboard_elements",
    "make_mesh_skeleton",
    "quad_cell_areas",
]
