"""
Basic Geometry Generation Example

This example demonstrates how to turn a gridded field into render-ready
geometry with the field_geometry package. It builds a synthetic mean sea
level pressure field (one low, one high) on a lon/lat grid, contours it,
places zoom-thinned labels, tessellates the contour lines and thins the grid
for wind-barb billboards. A second run repeats the thinning and mesh build
for a Lambert conformal grid on a process pool.

Output: A compressed .npz file per buffer bundle under output/.
"""

from pathlib import Path

import numpy as np
import xarray as xr

from field_geometry import (
    Config,
    EmptyGrid,
    GeometryJobRunner,
    InvalidConfiguration,
    MeshJob,
    ProjProjection,
    ScalarGrid,
    ThinningJob,
    build_contour_layer,
    field_billboards,
)
from field_geometry.logging_config import setup_logging

OUTPUT_DIR = Path("output")


def synthetic_mslp(lon2d: np.ndarray, lat2d: np.ndarray) -> np.ndarray:
    """1012 hPa background with a 988 hPa low and a 1036 hPa high."""

    def gaussian(lon0, lat0, width):
        return np.exp(-((lon2d - lon0) ** 2 + (lat2d - lat0) ** 2) / (2 * width ** 2))

    return 1012.0 - 24.0 * gaussian(-95.0, 42.0, 5.0) + 24.0 * gaussian(-78.0, 33.0, 6.0)


def save_bundle(bundle, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, **bundle.as_dict())
    print(f"  Saved {bundle.n_vertices} vertices to: {path}")


def lonlat_example(config: Config) -> None:
    lons = np.arange(-125.0, -65.0 + 0.25, 0.25)
    lats = np.arange(20.0, 55.0 + 0.25, 0.25)
    mslp = xr.DataArray(
        synthetic_mslp(*np.meshgrid(lons, lats)),
        coords={"latitude": lats, "longitude": lons},
        dims=("latitude", "longitude"),
        name="mslp",
    )

    print("Building geometry for synthetic MSLP field:")
    print(f"  Grid: {lons.size} x {lats.size} points")
    print(f"  Contour interval: {config.contour_interval} hPa")
    print(f"  Label spacing at zoom {config.max_zoom}: {config.label_spacing()}")
    print()

    try:
        grid = ScalarGrid.from_dataarray(mslp)
        layer = build_contour_layer(grid, config)
        barbs = field_billboards(grid, config)
    except (InvalidConfiguration, EmptyGrid) as e:
        print(f"Error building geometry: {e}")
        print()
        print("Common issues:")
        print("  - Contour interval too small for the data range (max 40 levels)")
        print("  - Field holds no finite values")
        return

    print(f"Contoured {len(layer.contours)} levels: {[int(lvl) for lvl in layer.contours]}")
    for zoom in range(config.max_zoom + 1):
        visible = sum(1 for label in layer.labels if label.min_zoom <= zoom)
        print(f"  Labels visible at zoom {zoom}: {visible}")

    save_bundle(layer.lines, OUTPUT_DIR / "mslp_lines.npz")
    save_bundle(barbs, OUTPUT_DIR / "barbs.npz")


def projected_example() -> None:
    lcc = ProjProjection("+proj=lcc +lat_1=33 +lat_2=45 +lon_0=-96 +lat_0=39 +datum=WGS84")
    x = np.linspace(-2500e3, 2500e3, 201)
    y = np.linspace(-1500e3, 1500e3, 121)
    lcc_lon, lcc_lat = lcc.forward_transform(*np.meshgrid(x, y))
    lcc_grid = ScalarGrid(synthetic_mslp(lcc_lon, lcc_lat), x, y, projection=lcc)

    jobs = [
        ThinningJob("lcc-barbs", lcc_grid, thinning_base=8, max_zoom=6),
        MeshJob("lcc-mesh", lcc_grid, texcoord_margins=(0.5 / 201, 0.5 / 121)),
    ]
    result = GeometryJobRunner().run(jobs, parallel=True, max_workers=2, parallel_backend="process")

    print(f"Projected grid jobs finished in {result['total_time']:.2f}s")
    for key, bundle in result["results"].items():
        save_bundle(bundle, OUTPUT_DIR / f"{key}.npz")
    for key, error in result["failed"].items():
        print(f"  Job {key} failed: {error}")
        if error.parameter:
            print(f"    Offending parameter: {error.parameter}={error.value}")


if __name__ == "__main__":
    setup_logging(verbosity=0)

    # ========================================================================
    # Contour layer on a lon/lat grid
    # ========================================================================
    lonlat_example(Config(contour_interval=4.0, max_zoom=7, thinning_base=4))
    print()

    # ========================================================================
    # Thinning and mesh for a projected grid, off the calling thread
    # ========================================================================
    projected_example()
