"""
Contour extraction for field_geometry.

Main Functions:
    - extract_contours: Marching squares isolines of a ScalarGrid, as (lon, lat) polylines
    - resolve_levels: Explicit or interval-generated level set for a field
    - generate_levels: Interval multiples covering a data range

Example:
    >>> from field_geometry.contours import extract_contours
    >>>
    >>> contours = extract_contours(grid, interval=30.0)
    >>> sorted(contours)
    [0.0, 30.0, 60.0]
"""

from .extractor import chain_segments, contour_segments, extract_contours
from .levels import generate_levels, resolve_levels

__all__ = [
    "extract_contours",
    "contour_segments",
    "chain_segments",
    "generate_levels",
    "resolve_levels",
]
