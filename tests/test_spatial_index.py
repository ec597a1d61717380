"""Tests for the nearest-neighbor indexes."""

import numpy as np
import pytest

from field_geometry.exceptions import InvalidConfiguration
from field_geometry.labels import GridHashIndex, KDTreeIndex, make_spatial_index


@pytest.fixture(params=["kdtree", "gridhash"])
def index(request):
    return make_spatial_index(request.param, 0.1)


class TestSpatialIndexContract:
    """Behaviour shared by every index implementation."""

    def test_empty_index(self, index):
        """Queries on an empty index return no neighbors."""
        assert len(index) == 0
        assert index.nearest((0.0, 0.0)) == []

    def test_nearest_single(self, index):
        """The closest point is returned with its distance."""
        index.insert([(0.0, 0.0), (1.0, 0.0), (0.0, 2.0)])
        ((point_id, dist),) = index.nearest((0.9, 0.1), k=1)
        assert point_id == 1
        assert dist == pytest.approx(np.hypot(0.1, 0.1))

    def test_k_nearest_sorted(self, index):
        """k results come back sorted by distance."""
        index.insert([(0.0, 0.0), (3.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
        result = index.nearest((0.0, 0.0), k=3)
        assert [point_id for point_id, _ in result] == [0, 2, 3]
        assert [d for _, d in result] == pytest.approx([0.0, 1.0, 2.0])

    def test_k_larger_than_size(self, index):
        """Asking for more neighbors than points returns every point."""
        index.insert([(0.0, 0.0), (1.0, 1.0)])
        assert len(index.nearest((0.0, 0.0), k=5)) == 2

    def test_tie_goes_to_earliest_insert(self, index):
        """Equidistant points are ordered by insertion id."""
        index.insert([(1.0, 0.0), (-1.0, 0.0), (0.0, 1.0)])
        assert index.nearest((0.0, 0.0), k=1)[0][0] == 0
        assert [point_id for point_id, _ in index.nearest((0.0, 0.0), k=3)] == [0, 1, 2]

    def test_coincident_points(self, index):
        """Duplicated positions resolve to the first inserted copy."""
        index.insert([(0.5, 0.5), (0.2, 0.2), (0.5, 0.5)])
        assert index.nearest((0.5, 0.5))[0] == (0, 0.0)

    def test_ids_continue_across_inserts(self, index):
        """Successive inserts append with consecutive ids."""
        index.insert([(0.0, 0.0)])
        index.insert([(5.0, 5.0), (6.0, 6.0)])
        assert len(index) == 3
        assert index.nearest((6.0, 6.0))[0] == (2, 0.0)

    def test_within_radius(self, index):
        """Radius queries return ids strictly inside the radius, ascending."""
        index.insert([(0.3, 0.0), (0.0, 0.0), (0.1, 0.0), (0.0, 0.25)])
        assert index.within((0.0, 0.0), 0.3) == [1, 2, 3]
        assert index.within((0.0, 0.0), 0.0) == []

    def test_within_empty(self, index):
        assert index.within((0.0, 0.0), 1.0) == []


class TestIndexAgreement:
    """KDTreeIndex and GridHashIndex must answer identically."""

    @pytest.mark.parametrize("k", [1, 4])
    def test_random_points(self, k):
        rng = np.random.default_rng(1234)
        points = rng.uniform(0.0, 1.0, size=(300, 2))
        queries = rng.uniform(-0.2, 1.2, size=(100, 2))

        kdtree = KDTreeIndex(points)
        gridhash = GridHashIndex(0.05, points)

        for query in queries:
            kd_ids = [point_id for point_id, _ in kdtree.nearest(query, k=k)]
            gh_ids = [point_id for point_id, _ in gridhash.nearest(query, k=k)]
            assert kd_ids == gh_ids

    def test_lattice_ties(self):
        """Many exact ties on a lattice resolve identically."""
        xs, ys = np.meshgrid(np.arange(5.0), np.arange(5.0))
        points = np.column_stack([xs.ravel(), ys.ravel()])
        kdtree = KDTreeIndex(points)
        gridhash = GridHashIndex(1.0, points)
        for query in [(0.5, 0.5), (2.0, 2.5), (1.5, 3.5), (4.5, 4.5)]:
            assert kdtree.nearest(query, k=2) == gridhash.nearest(query, k=2)

    def test_within_random_points(self):
        rng = np.random.default_rng(99)
        points = rng.uniform(0.0, 1.0, size=(300, 2))
        kdtree = KDTreeIndex(points)
        gridhash = GridHashIndex(0.05, points)
        for query in rng.uniform(0.0, 1.0, size=(50, 2)):
            assert kdtree.within(query, 0.08) == gridhash.within(query, 0.08)

    def test_far_query_after_growing_inserts(self):
        """Bucket bounds follow later inserts, so far points stay reachable."""
        gridhash = GridHashIndex(0.1, [(0.0, 0.0)])
        gridhash.insert([(5.0, -3.0)])
        assert gridhash.nearest((6.0, -4.0))[0][0] == 1
        assert gridhash.nearest((-2.0, 1.0))[0][0] == 0


class TestMakeSpatialIndex:
    """Tests for make_spatial_index factory."""

    def test_kinds(self):
        assert isinstance(make_spatial_index("kdtree", 1.0), KDTreeIndex)
        assert isinstance(make_spatial_index("gridhash", 1.0), GridHashIndex)

    def test_unknown_kind(self):
        with pytest.raises(InvalidConfiguration):
            make_spatial_index("rtree", 1.0)

    def test_bad_cell_size(self):
        with pytest.raises(InvalidConfiguration):
            GridHashIndex(0.0)
