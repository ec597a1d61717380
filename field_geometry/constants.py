"""
Constants and fixed parameters for the field_geometry package.

This module defines level-set limits, vertex buffer layout constants and
the label thinning parameters shared across the pipeline.
"""

# ============================================================================
# Contour Levels
# ============================================================================

MAX_CONTOUR_LEVELS = 40
DEFAULT_CONTOUR_INTERVAL = 1.0

# Endpoint matching tolerance for chaining contour segments (grid index units)
DEFAULT_CHAIN_TOLERANCE = 1e-6

# ============================================================================
# Label Placement
# ============================================================================

# Label spacing at max zoom is LABEL_SPACING_BASE * 2 ** (LABEL_SPACING_ZOOM - max_zoom)
LABEL_SPACING_BASE = 0.01
LABEL_SPACING_ZOOM = 7
DEFAULT_MAX_ZOOM = 7

# Auxiliary thinning grid nodes per label spacing
LABEL_THIN_GRID_FACTOR = 4

# ============================================================================
# Vertex Buffer Layout
# ============================================================================

# Degenerate-bracketed quad: 1 + 4 + 1 vertices
VERTICES_PER_QUAD = 6

# Billboard corner index per emitted vertex (first and last are degenerate)
BILLBOARD_CORNERS = (0, 0, 1, 2, 3, 3)

# Corners per billboard, used to pack zoom and corner into one float
CORNERS_PER_BILLBOARD = 4

# Latitude limit of the web-mercator square
MERCATOR_MAX_LAT = 85.0511287798

# Zoom tier assigned to the coarsest points of a structured grid
MIN_ZOOM_BASE = 1

DEFAULT_THINNING_BASE = 4
