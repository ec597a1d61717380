"""Tests for the command-line interface."""

import argparse

import numpy as np
import pytest
import xarray as xr

from field_geometry.cli import main, parse_selection
from field_geometry.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging()


@pytest.fixture
def dataset_path(tmp_path, bump_grid):
    """NetCDF3 file holding the bump field with a length-1 time dimension."""
    lons = np.linspace(-10.0, 10.0, 21)
    lats = np.linspace(-10.0, 10.0, 21)
    ds = xr.Dataset(
        {"bump": (("time", "lat", "lon"), bump_grid.values[None, :, :].copy())},
        coords={"time": [0], "lat": lats, "lon": lons},
    )
    path = tmp_path / "bump.nc"
    ds.to_netcdf(path, engine="scipy")
    return path


class TestParseSelection:
    """Tests for parse_selection function."""

    def test_pairs(self):
        assert parse_selection(["time=0", "level=3"]) == {"time": 0, "level": 3}

    def test_empty(self):
        assert parse_selection(None) == {}

    @pytest.mark.parametrize("item", ["time", "=1", "time=first"])
    def test_invalid(self, item):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_selection([item])


class TestMain:
    """Tests for the CLI entry point."""

    def test_contours(self, dataset_path, tmp_path):
        output = tmp_path / "out" / "contours.npz"
        code = main([
            "contours", str(dataset_path), "--variable", "bump", "--select", "time=0",
            "--interval", "2", "--output", str(output), "-q",
        ])
        assert code == 0
        with np.load(output) as data:
            assert data["levels"].tolist() == [2.0, 4.0, 6.0, 8.0]
            assert data["lines_verts"].shape[0] == data["lines_extrusion"].shape[0]
            assert data["label_text"].size == data["label_min_zoom"].size > 0

    def test_billboards(self, dataset_path, tmp_path):
        output = tmp_path / "barbs.npz"
        code = main([
            "billboards", str(dataset_path), "--variable", "bump",
            "--thinning-base", "4", "--max-zoom", "1", "--output", str(output), "-q",
        ])
        assert code == 0
        with np.load(output) as data:
            # Indices 0, 4, ..., 20 in both directions
            assert data["pts"].shape == (6 * 36, 3)

    def test_mesh(self, dataset_path, tmp_path):
        output = tmp_path / "mesh.npz"
        assert main(["mesh", str(dataset_path), "--variable", "bump", "--output", str(output), "-q"]) == 0
        with np.load(output) as data:
            assert data["vertices"].shape == (2 * 20 * 22, 2)
            assert data["cell_areas"].shape == (20, 20)

    def test_missing_variable(self, dataset_path, tmp_path, capsys):
        code = main([
            "mesh", str(dataset_path), "--variable", "absent", "--output", str(tmp_path / "x.npz"), "-q",
        ])
        assert code == 1
        assert "absent" in capsys.readouterr().err

    def test_invalid_override(self, dataset_path, tmp_path):
        code = main([
            "billboards", str(dataset_path), "--variable", "bump", "--thinning-base", "3",
            "--output", str(tmp_path / "x.npz"), "-q",
        ])
        assert code == 1

    def test_no_command(self):
        assert main([]) == 1
