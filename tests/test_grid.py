"""Tests for the grid adapter and projections."""

import pickle

import numpy as np
import pytest
import xarray as xr

from field_geometry.exceptions import EmptyGrid, InvalidConfiguration
from field_geometry.grid import (
    PlateCarree,
    ProjProjection,
    ScalarGrid,
    get_min_zoom,
    lnglat_to_mercator,
    mercator_to_lnglat,
)


class TestScalarGrid:
    """Tests for ScalarGrid construction and accessors."""

    def test_dimensions_and_accessors(self):
        """values[j, i] is the value at column i, row j."""
        values = np.arange(12, dtype=np.float64).reshape(3, 4)
        grid = ScalarGrid(values, np.linspace(0.0, 3.0, 4), np.linspace(10.0, 12.0, 3))
        assert (grid.ni, grid.nj) == (4, 3)
        assert grid.shape == (3, 4)
        assert grid.value(1, 2) == 9.0
        assert grid.coord(3, 1) == (3.0, 11.0)

    @pytest.mark.parametrize("shape", [(1, 5), (5, 1), (1, 1)])
    def test_too_small(self, shape):
        """Grids narrower than 2 in either direction raise EmptyGrid."""
        nj, ni = shape
        with pytest.raises(EmptyGrid):
            ScalarGrid(np.zeros(shape), np.arange(float(ni)), np.arange(float(nj)))

    def test_shape_mismatch(self):
        """Coordinates must match the value shape."""
        with pytest.raises(InvalidConfiguration):
            ScalarGrid(np.zeros((3, 4)), np.arange(3.0), np.arange(3.0))

    def test_not_2d(self):
        """Values must be a 2D array."""
        with pytest.raises(InvalidConfiguration):
            ScalarGrid(np.zeros(5), np.arange(5.0), np.arange(1.0))

    def test_2d_coordinates(self):
        """Curvilinear 2D coordinate arrays are accepted as-is."""
        xx, yy = np.meshgrid(np.arange(3.0), np.arange(2.0))
        grid = ScalarGrid(np.zeros((2, 3)), xx + 0.1 * yy, yy)
        assert grid.coord(2, 1) == pytest.approx((2.1, 1.0))

    def test_values_read_only(self):
        """Grid arrays cannot be modified after construction."""
        source = np.zeros((2, 2))
        grid = ScalarGrid(source, [0.0, 1.0], [0.0, 1.0])
        source[0, 0] = 99.0
        assert grid.value(0, 0) == 0.0
        with pytest.raises(ValueError):
            grid.values[0, 0] = 1.0

    def test_index_to_lnglat_bilinear(self):
        """Fractional indices interpolate projected coordinates."""
        grid = ScalarGrid(np.zeros((3, 3)), [0.0, 2.0, 6.0], [10.0, 20.0, 30.0])
        lnglat = grid.index_to_lnglat(np.array([[0.5, 0.0], [1.5, 1.5], [2.0, 2.0]]))
        np.testing.assert_allclose(lnglat, [[1.0, 10.0], [4.0, 25.0], [6.0, 30.0]])

    def test_pickle_round_trip(self, bump_grid):
        """Grids survive pickling for process workers."""
        clone = pickle.loads(pickle.dumps(bump_grid))
        np.testing.assert_array_equal(clone.values, bump_grid.values)
        assert not clone.values.flags.writeable


class TestFromDataArray:
    """Tests for ScalarGrid.from_dataarray."""

    def test_lat_lon_dims(self):
        """1D latitude/longitude coordinates are used directly."""
        da = xr.DataArray(
            np.arange(6, dtype=np.float64).reshape(2, 3),
            coords={"latitude": [40.0, 41.0], "longitude": [-100.0, -99.0, -98.0]},
            dims=("latitude", "longitude"),
            name="mslp",
        )
        grid = ScalarGrid.from_dataarray(da)
        assert (grid.ni, grid.nj) == (3, 2)
        assert grid.coord(2, 1) == (-98.0, 41.0)
        assert grid.value(2, 1) == 5.0

    def test_transposed_dims(self):
        """(lon, lat) ordered data is transposed to (lat, lon)."""
        da = xr.DataArray(
            np.arange(6, dtype=np.float64).reshape(2, 3).T,
            coords={"lat": [40.0, 41.0], "lon": [-100.0, -99.0, -98.0]},
            dims=("lon", "lat"),
        )
        grid = ScalarGrid.from_dataarray(da)
        assert grid.shape == (2, 3)
        assert grid.value(2, 1) == 5.0

    def test_missing_coordinates(self):
        """Data without lat/lon coordinates is rejected."""
        da = xr.DataArray(np.zeros((2, 2)), dims=("a", "b"))
        with pytest.raises(InvalidConfiguration):
            ScalarGrid.from_dataarray(da)


class TestMinZoom:
    """Tests for the index-parity zoom tier rule."""

    def test_base_four_row(self):
        """Divisible-by-base points are tier 1, odd indices tier 3."""
        assert [get_min_zoom(i, 0, 4) for i in range(9)] == [1, 3, 2, 3, 1, 3, 2, 3, 1]

    def test_base_one(self):
        """Base 1 puts every point in the first tier."""
        assert {get_min_zoom(i, j, 1) for i in range(4) for j in range(4)} == {1}

    def test_array_matches_scalar_rule(self, bump_grid):
        """The vectorized tier array agrees with the per-index rule."""
        for base in (1, 2, 4, 8):
            zoom = bump_grid.min_zoom_array(base)
            expected = [
                [bump_grid.min_zoom_for_index(i, j, base) for i in range(bump_grid.ni)]
                for j in range(bump_grid.nj)
            ]
            np.testing.assert_array_equal(zoom, expected)


class TestProjections:
    """Tests for projections and web-mercator helpers."""

    def test_plate_carree_identity(self):
        """PlateCarree passes coordinates through."""
        lon, lat = PlateCarree().forward_transform([1.0, 2.0], [3.0, 4.0])
        np.testing.assert_array_equal(lon, [1.0, 2.0])
        np.testing.assert_array_equal(lat, [3.0, 4.0])

    def test_proj_projection_round_trip(self):
        """A pyproj-backed projection inverts itself."""
        lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39 +datum=WGS84")
        x, y = lcc.inverse_transform([-100.0, -90.0], [35.0, 42.0])
        lon, lat = lcc.forward_transform(x, y)
        np.testing.assert_allclose(lon, [-100.0, -90.0], atol=1e-8)
        np.testing.assert_allclose(lat, [35.0, 42.0], atol=1e-8)

    def test_proj_projection_origin(self):
        """The projection origin maps to its central lon/lat."""
        lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39 +datum=WGS84")
        lon, lat = lcc.forward_transform(0.0, 0.0)
        assert float(lon) == pytest.approx(-96.0)
        assert float(lat) == pytest.approx(39.0)

    def test_proj_projection_pickles(self):
        """Projections rebuild their transformers after pickling."""
        lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39 +datum=WGS84")
        clone = pickle.loads(pickle.dumps(lcc))
        x, y = lcc.inverse_transform(-100.0, 35.0)
        np.testing.assert_allclose(clone.inverse_transform(-100.0, 35.0), (x, y), atol=1e-6)

    def test_grid_with_projection(self):
        """A projected grid exposes geographic coordinates through lnglat()."""
        lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39 +datum=WGS84")
        x = np.linspace(-500e3, 500e3, 5)
        y = np.linspace(-400e3, 400e3, 4)
        grid = ScalarGrid(np.zeros((4, 5)), x, y, projection=lcc)
        lon, lat = grid.lnglat()
        assert lon.shape == (4, 5)
        assert lon[0, 2] == pytest.approx(-96.0, abs=1e-6)
        assert np.all(np.diff(lat[:, 2]) > 0)

    def test_mercator_reference_points(self):
        """(0, 0) maps to the world centre; the antimeridian to the edges."""
        x, y = lnglat_to_mercator([0.0, -180.0, 180.0], [0.0, 0.0, 0.0])
        np.testing.assert_allclose(x, [0.5, 0.0, 1.0])
        np.testing.assert_allclose(y, [0.5, 0.5, 0.5])

    def test_mercator_north_is_up(self):
        """Latitude increases as mercator y decreases."""
        _, y = lnglat_to_mercator([0.0, 0.0], [10.0, 60.0])
        assert y[1] < y[0] < 0.5

    def test_mercator_inverse(self):
        """mercator_to_lnglat inverts lnglat_to_mercator."""
        lon = np.array([-120.0, 0.0, 45.5])
        lat = np.array([-60.0, 0.0, 70.0])
        back = mercator_to_lnglat(*lnglat_to_mercator(lon, lat))
        np.testing.assert_allclose(back, (lon, lat), atol=1e-9)

    def test_mercator_clamps_poles(self):
        """Pole latitudes land on the edges of the world square."""
        _, y = lnglat_to_mercator([0.0, 0.0, 0.0], [-90.0, 90.0, -89.0])
        assert np.all(np.isfinite(y))
        np.testing.assert_allclose(y, [1.0, 0.0, 1.0], atol=1e-9)
