"""
Projection contract between grid coordinates and geographic coordinates.

A :class:`GridProjection` maps projected grid coordinates ``(x, y)`` to
geographic ``(lon, lat)`` (``forward_transform``) and back
(``inverse_transform``). Both directions accept scalars or numpy arrays.

The web-mercator helpers use the normalized map-library convention in which
the world spans ``[0, 1]`` in both directions and ``y`` grows southward.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Tuple

import numpy as np
from pyproj import CRS, Transformer

from ..constants import MERCATOR_MAX_LAT

logger = logging.getLogger("field_geometry.grid.projection")


class GridProjection(ABC):
    """Bidirectional projected <-> geographic coordinate transform."""

    @abstractmethod
    def forward_transform(self, x: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Projected (x, y) to geographic (lon, lat)."""

    @abstractmethod
    def inverse_transform(self, lon: Any, lat: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Geographic (lon, lat) to projected (x, y)."""


class PlateCarree(GridProjection):
    """Identity projection: grid coordinates already are lon/lat degrees."""

    def forward_transform(self, x, y):
        return np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)

    def inverse_transform(self, lon, lat):
        return np.asarray(lon, dtype=np.float64), np.asarray(lat, dtype=np.float64)

    def __repr__(self) -> str:
        return "PlateCarree()"


class ProjProjection(GridProjection):
    """
    Projection backed by a pyproj CRS (Lambert conformal, rotated pole, ...).

    Args:
        crs: Anything ``pyproj.CRS.from_user_input`` accepts (PROJ string,
            EPSG code, WKT, CRS object)

    Example:
        >>> lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39")
        >>> lon, lat = lcc.forward_transform(0.0, 0.0)
    """

    def __init__(self, crs: Any):
        self.crs = CRS.from_user_input(crs)
        geographic = CRS.from_epsg(4326)
        self._to_geo = Transformer.from_crs(self.crs, geographic, always_xy=True)
        self._from_geo = Transformer.from_crs(geographic, self.crs, always_xy=True)
        logger.debug(f"Built pyproj transformers for {self.crs.name}")

    def forward_transform(self, x, y):
        lon, lat = self._to_geo.transform(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        return np.asarray(lon), np.asarray(lat)

    def inverse_transform(self, lon, lat):
        x, y = self._from_geo.transform(np.asarray(lon, dtype=np.float64), np.asarray(lat, dtype=np.float64))
        return np.asarray(x), np.asarray(y)

    def __getstate__(self):
        # Transformers are not picklable; rebuild them from the CRS in workers.
        return {"crs": self.crs.to_wkt()}

    def __setstate__(self, state):
        self.__init__(state["crs"])

    def __repr__(self) -> str:
        return f"ProjProjection({self.crs.name!r})"


def lnglat_to_mercator(lon: Any, lat: Any) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert geographic coordinates to normalized web-mercator coordinates.

    Args:
        lon: Longitude(s) in degrees
        lat: Latitude(s) in degrees

    Latitudes are clamped to +/- MERCATOR_MAX_LAT, so pole rows map onto
    the top and bottom edges of the world square instead of infinity.

    Returns:
        Tuple of (x, y) arrays in [0, 1] world units, y increasing southward
    """
    lon = np.asarray(lon, dtype=np.float64)
    lat = np.clip(np.asarray(lat, dtype=np.float64), -MERCATOR_MAX_LAT, MERCATOR_MAX_LAT)
    x = (180.0 + lon) / 360.0
    y = (180.0 - (180.0 / np.pi) * np.log(np.tan(np.pi / 4.0 + lat * np.pi / 360.0))) / 360.0
    return x, y


def mercator_to_lnglat(x: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of :func:`lnglat_to_mercator`."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    lon = x * 360.0 - 180.0
    y2 = 180.0 - y * 360.0
    lat = 360.0 / np.pi * np.arctan(np.exp(y2 * np.pi / 180.0)) - 90.0
    return lon, lat
