"""
field_geometry - Render-ready geometry from gridded scalar fields.

This package turns structured 2D fields (pressure, temperature, wind speed,
...) into vertex data a map renderer can draw directly: contour polylines,
zoom-thinned contour labels, widened-line triangle strips, thinned grid
billboards and full-resolution raster mesh skeletons.

Quick Start:
    >>> import numpy as np
    >>> from field_geometry import ScalarGrid, Config, build_contour_layer
    >>>
    >>> lons = np.linspace(-110.0, -80.0, 61)
    >>> lats = np.linspace(25.0, 50.0, 51)
    >>> mslp = 1012.0 + 12.0 * np.cos(np.radians(lats))[:, None] * np.sin(np.radians(lons))[None, :]
    >>> layer = build_contour_layer(ScalarGrid(mslp, lons, lats), Config(contour_interval=4.0))

    >>> # Thinned billboards for wind barbs, off the calling thread
    >>> from field_geometry import GeometryJobRunner, ThinningJob
    >>>
    >>> result = GeometryJobRunner().run([ThinningJob("barbs", grid, 4, 7)], parallel=True)
    >>> barbs = result["results"]["barbs"]

Advanced Usage:
    >>> from field_geometry.contours import extract_contours
    >>> from field_geometry.labels import place_labels
    >>> from field_geometry.geometry import LineSpec, tessellate_lines
    >>>
    >>> contours = extract_contours(grid, levels=[1000.0, 1004.0, 1008.0])
    >>> labels = place_labels(contours, spacing_at_max_zoom=0.01, max_zoom=7)
"""

__version__ = "0.1.0"

# Initialize logging with default settings
from .logging_config import setup_logging
setup_logging()

# Core configuration
from .config import Config, get_default_config

# Grid adapter
from .grid import GridProjection, PlateCarree, ProjProjection, ScalarGrid

# Pipeline stages
from .contours import extract_contours
from .labels import LabelCandidate, place_labels
from .geometry import (
    BillboardBuffers,
    LineSpec,
    MeshSkeleton,
    PolylineBuffers,
    make_billboard_elements,
    make_mesh_skeleton,
    tessellate_lines,
)

# User-facing API
from .api import (
    ContourLayer,
    build_contour_layer,
    contour_field,
    contour_line_buffers,
    field_billboards,
    field_mesh,
    label_contours,
)

# Off-thread execution
from .jobs import (
    ContourJob,
    GeometryJobRunner,
    LabelJob,
    MeshJob,
    TessellationJob,
    ThinningJob,
)

# Exceptions
from .exceptions import (
    FieldGeometryError,
    InvalidConfiguration,
    EmptyGrid,
    EmptyLevelSet,
    InvalidGeometry,
)

__all__ = [
    # Version info
    "__version__",

    # Config
    "Config",
    "get_default_config",

    # Grid
    "GridProjection",
    "PlateCarree",
    "ProjProjection",
    "ScalarGrid",

    # Pipeline stages
    "extract_contours",
    "LabelCandidate",
    "place_labels",
    "BillboardBuffers",
    "LineSpec",
    "MeshSkeleton",
    "PolylineBuffers",
    "make_billboard_elements",
    "make_mesh_skeleton",
    "tessellate_lines",

    # User-facing API
    "ContourLayer",
    "build_contour_layer",
    "contour_field",
    "contour_line_buffers",
    "field_billboards",
    "field_mesh",
    "label_contours",

    # Jobs
    "ContourJob",
    "GeometryJobRunner",
    "LabelJob",
    "MeshJob",
    "TessellationJob",
    "ThinningJob",

    # Exceptions
    "FieldGeometryError",
    "InvalidConfiguration",
    "EmptyGrid",
    "EmptyLevelSet",
    "InvalidGeometry",
]
