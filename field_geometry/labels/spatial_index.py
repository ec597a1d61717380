"""
Nearest-neighbor indexes over 2D points.

Both implementations answer ``nearest`` identically: results are ordered by
Euclidean distance, and points at equal distance are ordered by insertion
id, so the earliest inserted point wins a tie.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from ..exceptions import InvalidConfiguration

logger = logging.getLogger("field_geometry.labels.spatial_index")

Neighbor = Tuple[int, float]


def _rank_candidates(
    points: np.ndarray,
    query: np.ndarray,
    candidate_ids: Iterable[int],
    k: int
) -> List[Neighbor]:
    ids = np.array(sorted(set(int(c) for c in candidate_ids)), dtype=np.int64)
    if ids.size == 0:
        return []
    dists = np.hypot(points[ids, 0] - query[0], points[ids, 1] - query[1])
    order = np.lexsort((ids, dists))[:k]
    return [(int(ids[o]), float(dists[o])) for o in order]


def _filter_within(
    points: np.ndarray,
    query: np.ndarray,
    candidate_ids: Iterable[int],
    radius: float
) -> List[int]:
    ids = np.array(sorted(set(int(c) for c in candidate_ids)), dtype=np.int64)
    if ids.size == 0:
        return []
    dists = np.hypot(points[ids, 0] - query[0], points[ids, 1] - query[1])
    return ids[dists < radius].tolist()


class SpatialIndex(ABC):
    """Insert points, query the k nearest."""

    @abstractmethod
    def insert(self, points: Any) -> None:
        """Append points (array-like of shape (n, 2)); ids continue from len(self)."""

    @abstractmethod
    def nearest(self, point: Any, k: int = 1) -> List[Neighbor]:
        """Up to k (id, distance) pairs sorted by distance, then id."""

    @abstractmethod
    def within(self, point: Any, radius: float) -> List[int]:
        """Ids of all points strictly closer than radius, ascending."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class KDTreeIndex(SpatialIndex):
    """
    Balanced kd-tree index backed by ``scipy.spatial.cKDTree``.

    The tree is rebuilt lazily on the first query after an insert.
    """

    def __init__(self, points: Any = None):
        self._points = np.empty((0, 2), dtype=np.float64)
        self._tree = None
        if points is not None:
            self.insert(points)

    def insert(self, points: Any) -> None:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        self._points = np.vstack([self._points, pts])
        self._tree = None

    def _get_tree(self) -> cKDTree:
        if self._tree is None:
            self._tree = cKDTree(self._points, balanced_tree=True)
            logger.debug(f"Built kd-tree over {len(self._points)} points")
        return self._tree

    def nearest(self, point: Any, k: int = 1) -> List[Neighbor]:
        n_points = len(self._points)
        if n_points == 0 or k < 1:
            return []
        k = min(k, n_points)
        query = np.asarray(point, dtype=np.float64).reshape(2)

        tree = self._get_tree()
        dist, idx = tree.query(query, k=k)
        dist = np.atleast_1d(dist)
        idx = np.atleast_1d(idx)

        # The tree returns an arbitrary member among equidistant points;
        # gather everything at the k-th distance and rank by id.
        radius = float(dist.max())
        ties = tree.query_ball_point(query, r=radius * (1.0 + 1e-9) + 1e-15)
        return _rank_candidates(self._points, query, list(ties) + idx.tolist(), k)

    def within(self, point: Any, radius: float) -> List[int]:
        if len(self._points) == 0 or radius <= 0:
            return []
        query = np.asarray(point, dtype=np.float64).reshape(2)
        candidates = self._get_tree().query_ball_point(query, r=radius)
        return _filter_within(self._points, query, candidates, radius)

    def __len__(self) -> int:
        return len(self._points)


class GridHashIndex(SpatialIndex):
    """
    Uniform hash-grid index with ring search.

    Args:
        cell_size: Bucket edge length; roughly the typical point spacing
    """

    def __init__(self, cell_size: float, points: Any = None):
        if not math.isfinite(cell_size) or cell_size <= 0:
            raise InvalidConfiguration("Hash grid cell size must be positive", "cell_size", cell_size)
        self.cell_size = float(cell_size)
        self._points = np.empty((0, 2), dtype=np.float64)
        self._buckets: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        # (min_bi, max_bi, min_bj, max_bj) over occupied buckets
        self._bounds: Optional[Tuple[int, int, int, int]] = None
        if points is not None:
            self.insert(points)

    def _cell(self, x: float, y: float) -> Tuple[int, int]:
        return (math.floor(x / self.cell_size), math.floor(y / self.cell_size))

    def insert(self, points: Any) -> None:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        first_id = len(self._points)
        for offset, (x, y) in enumerate(pts.tolist()):
            bi, bj = self._cell(x, y)
            self._buckets[(bi, bj)].append(first_id + offset)
            if self._bounds is None:
                self._bounds = (bi, bi, bj, bj)
            else:
                min_bi, max_bi, min_bj, max_bj = self._bounds
                self._bounds = (min(min_bi, bi), max(max_bi, bi), min(min_bj, bj), max(max_bj, bj))
        self._points = np.vstack([self._points, pts])

    def _ring_cells(self, ci: int, cj: int, ring: int) -> List[Tuple[int, int]]:
        if ring == 0:
            return [(ci, cj)]
        cells = []
        for bi in range(ci - ring, ci + ring + 1):
            cells.append((bi, cj - ring))
            cells.append((bi, cj + ring))
        for bj in range(cj - ring + 1, cj + ring):
            cells.append((ci - ring, bj))
            cells.append((ci + ring, bj))
        return cells

    def nearest(self, point: Any, k: int = 1) -> List[Neighbor]:
        n_points = len(self._points)
        if n_points == 0 or k < 1:
            return []
        k = min(k, n_points)
        query = np.asarray(point, dtype=np.float64).reshape(2)
        ci, cj = self._cell(float(query[0]), float(query[1]))

        min_bi, max_bi, min_bj, max_bj = self._bounds
        max_ring = max(ci - min_bi, max_bi - ci, cj - min_bj, max_bj - cj, 0)

        candidates: List[int] = []
        for ring in range(max_ring + 1):
            for cell in self._ring_cells(ci, cj, ring):
                candidates.extend(self._buckets.get(cell, ()))

            # Points outside the searched rings are farther than ring * cell_size.
            if len(candidates) >= k:
                ranked = _rank_candidates(self._points, query, candidates, k)
                if ranked[-1][1] < ring * self.cell_size:
                    return ranked

        return _rank_candidates(self._points, query, candidates, k)

    def within(self, point: Any, radius: float) -> List[int]:
        if len(self._points) == 0 or radius <= 0:
            return []
        query = np.asarray(point, dtype=np.float64).reshape(2)
        lo_i, lo_j = self._cell(float(query[0]) - radius, float(query[1]) - radius)
        hi_i, hi_j = self._cell(float(query[0]) + radius, float(query[1]) + radius)

        candidates: List[int] = []
        for bi in range(lo_i, hi_i + 1):
            for bj in range(lo_j, hi_j + 1):
                candidates.extend(self._buckets.get((bi, bj), ()))
        return _filter_within(self._points, query, candidates, radius)

    def __len__(self) -> int:
        return len(self._points)


def make_spatial_index(kind: str, cell_size: float) -> SpatialIndex:
    """
    Build an empty spatial index by name.

    Args:
        kind: "kdtree" or "gridhash"
        cell_size: Bucket size hint (used by the hash grid only)
    """
    if kind == "kdtree":
        return KDTreeIndex()
    if kind == "gridhash":
        return GridHashIndex(cell_size)
    raise InvalidConfiguration(f"Unknown spatial index '{kind}'", "spatial_index", kind)
