"""Tests for the marching squares contour extractor."""

import numpy as np
import pytest

from field_geometry.contours import chain_segments, contour_segments, extract_contours
from field_geometry.exceptions import EmptyGrid, InvalidConfiguration
from field_geometry.grid import ScalarGrid


class TestExtractContours:
    """Tests for extract_contours function."""

    def test_constant_grid_has_no_contours(self, constant_grid):
        """A constant field yields nothing, even at its own value."""
        assert extract_contours(constant_grid, levels=[5.0]) == {}
        assert extract_contours(constant_grid, interval=1.0) == {}

    def test_vertical_line_on_ramp(self):
        """A ramp in i gives one straight contour spanning every row."""
        values = np.tile(np.arange(5, dtype=np.float64), (4, 1))
        grid = ScalarGrid(values, np.arange(5.0), np.arange(4.0))

        contours = extract_contours(grid, levels=[1.5])

        assert list(contours) == [1.5]
        (polyline,) = contours[1.5]
        np.testing.assert_allclose(polyline[:, 0], 1.5)
        np.testing.assert_allclose(polyline[:, 1], [0.0, 1.0, 2.0, 3.0])

    def test_points_lie_on_level(self, plane_grid):
        """On a linear field every contour point satisfies the field equation."""
        contours = extract_contours(plane_grid, interval=2.0)
        assert contours
        for level, polylines in contours.items():
            for polyline in polylines:
                np.testing.assert_allclose(
                    2.0 * polyline[:, 0] + 0.5 * polyline[:, 1], level, atol=1e-9
                )

    def test_points_within_grid_bounds(self, bump_grid):
        """Contour points never leave the grid's lon/lat extent."""
        contours = extract_contours(bump_grid, interval=2.0)
        assert contours
        for polylines in contours.values():
            for polyline in polylines:
                assert polyline.shape[1] == 2
                assert len(polyline) >= 2
                assert polyline[:, 0].min() >= -10.0 and polyline[:, 0].max() <= 10.0
                assert polyline[:, 1].min() >= -10.0 and polyline[:, 1].max() <= 10.0

    def test_levels_ascending_and_empty_levels_omitted(self, bump_grid):
        """Level 0 (below every value) and level 10 (touches only the peak) are omitted."""
        contours = extract_contours(bump_grid, interval=2.0)
        assert list(contours) == [2.0, 4.0, 6.0, 8.0]

    def test_bump_contours_are_closed(self, bump_grid):
        """Contours around an interior peak close on themselves."""
        contours = extract_contours(bump_grid, levels=[5.0])
        (polyline,) = contours[5.0]
        np.testing.assert_allclose(polyline[0], polyline[-1])
        assert len(polyline) > 4

    def test_single_peak_diamond(self):
        """A single raised point gives a closed diamond through the edge midpoints."""
        values = np.zeros((5, 5))
        values[2, 2] = 1.0
        grid = ScalarGrid(values, np.arange(5.0), np.arange(5.0))

        (polyline,) = extract_contours(grid, levels=[0.5])[0.5]

        assert len(polyline) == 5
        np.testing.assert_array_equal(polyline[0], polyline[-1])
        corners = {tuple(pt) for pt in polyline[:-1].tolist()}
        assert corners == {(2.0, 1.5), (2.5, 2.0), (2.0, 2.5), (1.5, 2.0)}

    def test_missing_cells_are_skipped(self):
        """Cells with a NaN corner contribute no segments."""
        values = np.tile(np.arange(4, dtype=np.float64), (3, 1))
        values[0, 1] = np.nan
        grid = ScalarGrid(values, np.arange(4.0), np.arange(3.0))

        (polyline,) = extract_contours(grid, levels=[1.5])[1.5]
        # Only the upper row of cells contributes.
        np.testing.assert_allclose(polyline[:, 1], [1.0, 2.0])

    def test_all_missing_without_levels(self):
        """Level derivation on an all-NaN grid raises EmptyGrid."""
        grid = ScalarGrid(np.full((3, 3), np.nan), np.arange(3.0), np.arange(3.0))
        with pytest.raises(EmptyGrid):
            extract_contours(grid)
        assert extract_contours(grid, levels=[1.0]) == {}

    def test_bad_tolerance(self, bump_grid):
        """Non-positive chain tolerance is rejected."""
        with pytest.raises(InvalidConfiguration):
            extract_contours(bump_grid, levels=[5.0], tolerance=0.0)

    def test_deterministic(self, bump_grid):
        """Repeated extraction returns identical polylines."""
        first = extract_contours(bump_grid, interval=2.0)
        second = extract_contours(bump_grid, interval=2.0)
        assert list(first) == list(second)
        for level in first:
            for a, b in zip(first[level], second[level]):
                np.testing.assert_array_equal(a, b)


class TestSaddleCells:
    """Tests for ambiguous (saddle) cell resolution."""

    @pytest.fixture
    def saddle_values(self):
        # Corners (0,0) and (1,1) high, the other diagonal low; average 0.5.
        return np.array([[1.0, 0.0], [0.0, 1.0]])

    def test_average_above_connects_high_corners(self, saddle_values):
        """When the cell average is above the level, segments cut off the low corners."""
        segments = contour_segments(saddle_values, 0.5)
        assert segments == [((0.5, 0.0), (1.0, 0.5)), ((0.5, 1.0), (0.0, 0.5))]

    def test_average_below_separates_high_corners(self, saddle_values):
        """When the cell average is below the level, segments cut off the high corners."""
        segments = contour_segments(saddle_values, 0.6)
        assert len(segments) == 2
        (a0, a1), (b0, b1) = segments
        assert a0[0] == 0.0 and a1[1] == 0.0
        assert b0[0] == 1.0 and b1[1] == 1.0

    def test_saddle_is_deterministic(self, saddle_values):
        """Same input, same segments."""
        assert contour_segments(saddle_values, 0.5) == contour_segments(saddle_values, 0.5)


class TestChainSegments:
    """Tests for chain_segments function."""

    def test_reversed_segment_is_joined(self):
        """Segments match by either endpoint."""
        chains = chain_segments([((0.0, 0.0), (1.0, 0.0)), ((2.0, 0.0), (1.0, 0.0))])
        assert chains == [[(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]]

    def test_grows_backward(self):
        """A chain seeded mid-line is extended backward from its start."""
        chains = chain_segments([((1.0, 0.0), (2.0, 0.0)), ((0.0, 0.0), (1.0, 0.0))])
        assert chains == [[(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]]

    def test_closed_loop_repeats_start(self):
        """A loop ends with its start point repeated."""
        square = [
            ((0.0, 0.0), (1.0, 0.0)),
            ((1.0, 0.0), (1.0, 1.0)),
            ((1.0, 1.0), (0.0, 1.0)),
            ((0.0, 1.0), (0.0, 0.0)),
        ]
        (chain,) = chain_segments(square)
        assert len(chain) == 5
        assert chain[0] == chain[-1]

    def test_disjoint_segments_stay_separate(self):
        """Segments without shared endpoints form separate chains."""
        chains = chain_segments([((0.0, 0.0), (1.0, 0.0)), ((5.0, 5.0), (6.0, 5.0))])
        assert len(chains) == 2

    def test_tolerance_matches_nearby_endpoints(self):
        """Endpoints closer than the tolerance are treated as shared."""
        chains = chain_segments(
            [((0.0, 0.0), (1.0, 0.0)), ((1.0 + 1e-9, 0.0), (2.0, 0.0))], tolerance=1e-6
        )
        assert len(chains) == 1
        assert len(chains[0]) == 3

    def test_bad_tolerance(self):
        """Non-positive tolerance is rejected."""
        with pytest.raises(InvalidConfiguration):
            chain_segments([], tolerance=-1.0)
