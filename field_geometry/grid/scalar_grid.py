"""
Structured scalar grid adapter.

:class:`ScalarGrid` is the only view the geometry pipeline has of a field:
dimensions, values, projected coordinates of every grid point, the
projection to geographic coordinates, and the index-parity rule that
classifies grid points into zoom tiers for thinning.
"""

import logging
from typing import Any, Optional, Tuple

import numpy as np
import xarray as xr

from ..constants import MIN_ZOOM_BASE
from ..exceptions import EmptyGrid, InvalidConfiguration
from .projection import GridProjection, PlateCarree

logger = logging.getLogger("field_geometry.grid.scalar_grid")


def get_min_zoom(i: int, j: int, thinning_base: int) -> int:
    """
    Minimum zoom at which grid point (i, j) is shown.

    Points whose indices are both divisible by ``thinning_base`` are the
    coarsest and get the base zoom tier; each halving of the divisor needed
    to divide both indices adds one tier.

    Example:
        >>> [get_min_zoom(i, 0, 4) for i in range(5)]
        [1, 3, 2, 3, 1]
    """
    zoom = MIN_ZOOM_BASE
    thin = thinning_base
    while ((i % thin) != 0 or (j % thin) != 0) and thin > 1:
        thin //= 2
        zoom += 1
    return zoom


class ScalarGrid:
    """
    Immutable structured 2D scalar field with projected coordinates.

    Args:
        values: Array of shape (nj, ni), row-major, NaN for missing values
        x: Projected x coordinates, shape (ni,) or (nj, ni)
        y: Projected y coordinates, shape (nj,) or (nj, ni)
        projection: Projected -> geographic transform (default: PlateCarree,
            i.e. x/y are lon/lat)

    Raises:
        EmptyGrid: If ni or nj is smaller than 2
        InvalidConfiguration: If coordinate shapes do not match the values
    """

    def __init__(
        self,
        values: Any,
        x: Any,
        y: Any,
        projection: Optional[GridProjection] = None
    ):
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2:
            raise InvalidConfiguration(
                f"Grid values must be 2D, got shape {values.shape}", "values", str(values.shape)
            )

        nj, ni = values.shape
        if ni < 2 or nj < 2:
            raise EmptyGrid(f"Grid must be at least 2x2, got ni={ni}, nj={nj}", "shape", f"{ni}x{nj}")

        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if x.ndim == 1 and y.ndim == 1:
            if x.size != ni or y.size != nj:
                raise InvalidConfiguration(
                    f"Coordinate/value shape mismatch: values={values.shape}, x={x.shape}, y={y.shape}",
                    "coordinates", f"{x.shape}/{y.shape}"
                )
            x, y = np.meshgrid(x, y)
        else:
            x = np.broadcast_to(x[None, :], values.shape) if x.ndim == 1 else x
            y = np.broadcast_to(y[:, None], values.shape) if y.ndim == 1 else y
            if x.shape != values.shape or y.shape != values.shape:
                raise InvalidConfiguration(
                    f"2D coordinate/value shape mismatch: values={values.shape}, x={x.shape}, y={y.shape}",
                    "coordinates", f"{x.shape}/{y.shape}"
                )

        self._values = values
        self._x = np.array(x, dtype=np.float64)
        self._y = np.array(y, dtype=np.float64)
        for arr in (self._values, self._x, self._y):
            arr.setflags(write=False)

        self.ni = ni
        self.nj = nj
        self.projection = projection if projection is not None else PlateCarree()
        self._lnglat: Optional[Tuple[np.ndarray, np.ndarray]] = None

    @classmethod
    def from_dataarray(
        cls,
        da: xr.DataArray,
        projection: Optional[GridProjection] = None
    ) -> "ScalarGrid":
        """
        Build a grid from a 2D DataArray with latitude/longitude coordinates.

        Handles both 1D and 2D coordinate arrays and common coordinate naming
        differences across datasets. With the default projection the
        coordinates are taken as lon/lat degrees.

        Raises:
            InvalidConfiguration: If coordinates are missing or the data is not 2D
        """

        def _coord(name_options: Tuple[str, ...]) -> Optional[xr.DataArray]:
            for name in name_options:
                if name in da.coords:
                    return da.coords[name]
            return None

        lat_da = _coord(("lat", "latitude", "y"))
        lon_da = _coord(("lon", "longitude", "x"))

        if lat_da is None or lon_da is None:
            raise InvalidConfiguration(
                f"Data must have latitude/longitude coordinates. Found coords={list(da.coords)}",
                "coordinates", str(list(da.coords))
            )
        if da.ndim != 2:
            raise InvalidConfiguration(f"Data must be 2D, got dims={da.dims}", "dims", str(da.dims))

        values = da.values
        if lat_da.ndim == 1 and lon_da.ndim == 1:
            lat_dim = lat_da.dims[0]
            lon_dim = lon_da.dims[0]
            if da.dims == (lon_dim, lat_dim):
                values = da.transpose(lat_dim, lon_dim).values

        logger.debug(f"Grid from DataArray '{da.name}': shape={values.shape}")
        return cls(values, lon_da.values, lat_da.values, projection=projection)

    @property
    def values(self) -> np.ndarray:
        """Read-only (nj, ni) value array."""
        return self._values

    @property
    def shape(self) -> Tuple[int, int]:
        return self.nj, self.ni

    def value(self, i: int, j: int) -> float:
        return float(self._values[j, i])

    def coord(self, i: int, j: int) -> Tuple[float, float]:
        """Projected coordinate of grid point (i, j)."""
        return float(self._x[j, i]), float(self._y[j, i])

    def forward_transform(self, x: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
        return self.projection.forward_transform(x, y)

    def inverse_transform(self, lon: Any, lat: Any) -> Tuple[np.ndarray, np.ndarray]:
        return self.projection.inverse_transform(lon, lat)

    def min_zoom_for_index(self, i: int, j: int, thinning_base: int) -> int:
        return get_min_zoom(i, j, thinning_base)

    def min_zoom_array(self, thinning_base: int) -> np.ndarray:
        """Zoom tier of every grid point as an (nj, ni) int array."""
        ii, jj = np.meshgrid(np.arange(self.ni), np.arange(self.nj))
        zoom = np.full((self.nj, self.ni), MIN_ZOOM_BASE, dtype=np.int64)
        thin = thinning_base
        while thin > 1:
            unresolved = (ii % thin != 0) | (jj % thin != 0)
            zoom[unresolved] += 1
            thin //= 2
        return zoom

    def lnglat(self) -> Tuple[np.ndarray, np.ndarray]:
        """Geographic (lon, lat) of every grid point as (nj, ni) arrays."""
        if self._lnglat is None:
            lon, lat = self.projection.forward_transform(self._x, self._y)
            lon = np.array(lon, dtype=np.float64)
            lat = np.array(lat, dtype=np.float64)
            lon.setflags(write=False)
            lat.setflags(write=False)
            self._lnglat = (lon, lat)
        return self._lnglat

    def index_to_projected(self, points: np.ndarray) -> np.ndarray:
        """
        Bilinearly interpolate projected coordinates at fractional indices.

        Args:
            points: Array of shape (n, 2) holding fractional (i, j)

        Returns:
            Array of shape (n, 2) holding projected (x, y)
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        fi = np.clip(points[:, 0], 0.0, self.ni - 1)
        fj = np.clip(points[:, 1], 0.0, self.nj - 1)
        i0 = np.minimum(np.floor(fi).astype(np.int64), self.ni - 2)
        j0 = np.minimum(np.floor(fj).astype(np.int64), self.nj - 2)
        ti = fi - i0
        tj = fj - j0

        out = np.empty_like(points)
        for k, arr in enumerate((self._x, self._y)):
            v00 = arr[j0, i0]
            v10 = arr[j0, i0 + 1]
            v01 = arr[j0 + 1, i0]
            v11 = arr[j0 + 1, i0 + 1]
            out[:, k] = (
                v00 * (1 - ti) * (1 - tj)
                + v10 * ti * (1 - tj)
                + v01 * (1 - ti) * tj
                + v11 * ti * tj
            )
        return out

    def index_to_lnglat(self, points: np.ndarray) -> np.ndarray:
        """Fractional (i, j) indices to an (n, 2) array of (lon, lat)."""
        projected = self.index_to_projected(points)
        lon, lat = self.projection.forward_transform(projected[:, 0], projected[:, 1])
        return np.column_stack([lon, lat])

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_lnglat"] = None
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        for arr in (self._values, self._x, self._y):
            arr.setflags(write=False)

    def __repr__(self) -> str:
        return f"ScalarGrid(ni={self.ni}, nj={self.nj}, projection={self.projection!r})"
