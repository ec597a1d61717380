"""
Configuration management for the field_geometry package.

This module provides the options exposed by the geometry pipeline: contour
interval or explicit levels, label spacing and maximum zoom, grid thinning
base and mesh texture-coordinate margins.
"""

import json
import math
import yaml
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import (
    DEFAULT_CHAIN_TOLERANCE,
    DEFAULT_CONTOUR_INTERVAL,
    DEFAULT_MAX_ZOOM,
    DEFAULT_THINNING_BASE,
    LABEL_SPACING_BASE,
    LABEL_SPACING_ZOOM,
    MAX_CONTOUR_LEVELS,
)
from .exceptions import InvalidConfiguration

SPATIAL_INDEX_KINDS = ("kdtree", "gridhash")


def default_label_spacing(max_zoom: int) -> float:
    """Label spacing (web-mercator units) at the map's maximum zoom."""
    return LABEL_SPACING_BASE * 2.0 ** (LABEL_SPACING_ZOOM - max_zoom)


@dataclass
class Config:
    """Configuration for field geometry generation.

    Attributes:
        contour_interval: Spacing between generated contour levels.
        contour_levels: Explicit contour levels (at most 40). Overrides
            contour_interval when non-empty.
        chain_tolerance: Endpoint matching tolerance, in grid index units,
            used when chaining contour segments into polylines.
        max_zoom: Maximum zoom of the map the geometry is shown on.
        label_spacing_at_max_zoom: Arc-length spacing of contour labels in
            web-mercator units. None derives it from max_zoom.
        label_decimal_places: Fixed number of decimals in label text. None
            prints integral levels without a decimal point.
        spatial_index: Nearest-neighbor structure for label thinning
            ("kdtree" or "gridhash").
        thinning_base: Power-of-two base of the structured-grid thinning.
        texcoord_margins: Texture-coordinate insets (r, s) for the mesh
            skeleton, each in [0, 0.5).
        line_zoom: Zoom metadata attached to tessellated contour lines.
    """

    contour_interval: float = DEFAULT_CONTOUR_INTERVAL
    contour_levels: List[float] = field(default_factory=list)
    chain_tolerance: float = DEFAULT_CHAIN_TOLERANCE
    max_zoom: int = DEFAULT_MAX_ZOOM
    label_spacing_at_max_zoom: Optional[float] = None
    label_decimal_places: Optional[int] = None
    spatial_index: str = "kdtree"
    thinning_base: int = DEFAULT_THINNING_BASE
    texcoord_margins: Tuple[float, float] = (0.0, 0.0)
    line_zoom: float = 0.0

    def __post_init__(self):
        """Normalize container types loaded from YAML/JSON."""
        if self.contour_levels is None:
            self.contour_levels = []
        self.contour_levels = [float(lvl) for lvl in self.contour_levels]
        if isinstance(self.texcoord_margins, list):
            self.texcoord_margins = tuple(self.texcoord_margins)

    @classmethod
    def load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a YAML or JSON file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .json).

        Returns:
            Config instance with loaded settings.

        Raises:
            ValueError: If file format is not supported.
            FileNotFoundError: If file does not exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json")

        return cls(**(data or {}))

    def save_to_file(self, path: Path) -> None:
        """Save configuration to a YAML or JSON file.

        Args:
            path: Path where configuration should be saved.

        Raises:
            ValueError: If file format is not supported.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        data['texcoord_margins'] = list(data['texcoord_margins'])

        with open(path, 'w') as f:
            if path.suffix in ['.yaml', '.yml']:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            elif path.suffix == '.json':
                json.dump(data, f, indent=2)
            else:
                raise ValueError(f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json")

    def label_spacing(self) -> float:
        """Resolve the label spacing, deriving the default from max_zoom."""
        if self.label_spacing_at_max_zoom is None:
            return default_label_spacing(self.max_zoom)
        return float(self.label_spacing_at_max_zoom)

    def validate(self) -> bool:
        """Validate configuration parameters.

        Returns:
            True if configuration is valid.

        Raises:
            InvalidConfiguration: If any configuration parameter is invalid.
        """
        if not math.isfinite(self.contour_interval) or self.contour_interval <= 0:
            raise InvalidConfiguration(
                "contour_interval must be positive", "contour_interval", self.contour_interval
            )

        if len(self.contour_levels) > MAX_CONTOUR_LEVELS:
            raise InvalidConfiguration(
                f"contour_levels accepts at most {MAX_CONTOUR_LEVELS} levels",
                "contour_levels", len(self.contour_levels)
            )

        if self.chain_tolerance <= 0:
            raise InvalidConfiguration(
                "chain_tolerance must be positive", "chain_tolerance", self.chain_tolerance
            )

        if not isinstance(self.max_zoom, int) or self.max_zoom < 0:
            raise InvalidConfiguration(
                "max_zoom must be an integer >= 0", "max_zoom", self.max_zoom
            )

        if self.label_spacing_at_max_zoom is not None and self.label_spacing_at_max_zoom <= 0:
            raise InvalidConfiguration(
                "label_spacing_at_max_zoom must be positive",
                "label_spacing_at_max_zoom", self.label_spacing_at_max_zoom
            )

        if self.label_decimal_places is not None and (
            not isinstance(self.label_decimal_places, int) or self.label_decimal_places < 0
        ):
            raise InvalidConfiguration(
                "label_decimal_places must be an integer >= 0",
                "label_decimal_places", self.label_decimal_places
            )

        if self.spatial_index not in SPATIAL_INDEX_KINDS:
            raise InvalidConfiguration(
                f"spatial_index must be one of: {', '.join(SPATIAL_INDEX_KINDS)}",
                "spatial_index", self.spatial_index
            )

        base = self.thinning_base
        if not isinstance(base, int) or base < 1 or (base & (base - 1)) != 0:
            raise InvalidConfiguration(
                "thinning_base must be a power of two", "thinning_base", base
            )

        if len(self.texcoord_margins) != 2 or not all(
            0.0 <= float(m) < 0.5 for m in self.texcoord_margins
        ):
            raise InvalidConfiguration(
                "texcoord_margins must be two floats in [0.0, 0.5)",
                "texcoord_margins", str(self.texcoord_margins)
            )

        return True


def get_default_config() -> Config:
    """Get a Config instance with default settings.

    Returns:
        Config instance initialized with default values.
    """
    return Config()
