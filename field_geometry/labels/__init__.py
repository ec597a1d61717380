"""
Contour label placement for field_geometry.

Labels are sampled along contour polylines at a zoom-dependent arc-length
spacing, then thinned: each label gets the lowest zoom at which it should be
shown, so dense regions reveal their labels only when zoomed in.

Main Functions:
    - place_labels: Sample and thin labels for a set of contours
    - assign_min_zoom: Resolve min zooms for fixed anchors

Spatial Indexes:
    - KDTreeIndex: scipy cKDTree based nearest-neighbor index
    - GridHashIndex: Uniform hash-grid alternative

Example:
    >>> from field_geometry.labels import place_labels
    >>> labels = place_labels(contours, spacing_at_max_zoom=0.01, max_zoom=7)
    >>> labels[0].text, labels[0].min_zoom
"""

from .placer import (
    LabelAnchor,
    LabelCandidate,
    assign_min_zoom,
    collect_label_anchors,
    format_level,
    place_labels,
    sample_polyline,
    spacing_for_zoom,
)
from .spatial_index import GridHashIndex, KDTreeIndex, SpatialIndex, make_spatial_index

__all__ = [
    "LabelAnchor",
    "LabelCandidate",
    "assign_min_zoom",
    "collect_label_anchors",
    "format_level",
    "place_labels",
    "sample_polyline",
    "spacing_for_zoom",
    "SpatialIndex",
    "KDTreeIndex",
    "GridHashIndex",
    "make_spatial_index",
]
