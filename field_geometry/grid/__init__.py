"""
Grid and projection adapter for field_geometry.

The geometry pipeline consumes structured grids only through
:class:`ScalarGrid`: dimensions, values, projected coordinates, a
projected <-> geographic transform, and the zoom-tier rule used by the
structured-grid thinner.

Example:
    >>> import numpy as np
    >>> from field_geometry.grid import ScalarGrid
    >>>
    >>> lons = np.linspace(-100.0, -90.0, 11)
    >>> lats = np.linspace(30.0, 40.0, 11)
    >>> values = np.add.outer(lats, lons)
    >>> grid = ScalarGrid(values, lons, lats)
    >>> grid.coord(0, 0)
    (-100.0, 30.0)
"""

from .projection import (
    GridProjection,
    PlateCarree,
    ProjProjection,
    lnglat_to_mercator,
    mercator_to_lnglat,
)
from .scalar_grid import ScalarGrid, get_min_zoom

__all__ = [
    "GridProjection",
    "PlateCarree",
    "ProjProjection",
    "lnglat_to_mercator",
    "mercator_to_lnglat",
    "ScalarGrid",
    "get_min_zoom",
]
