"""
Swath regridding example: bin satellite-style pixel footprints onto a grid,
reusing one precomputed geometry for several fields.
"""

import time
import logging
import numpy as np

from map_projector import Lambert
from grid_regrid import (
    Grid,
    compute_swath_geometry,
    regrid_swath,
    quadrilaterals_from_centers,
    AGGREGATE_WEIGHTED,
)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("GRID_REGRID - SWATH BINNING EXAMPLE")
    print("=" * 60)

    lambert = Lambert(6370000.0, 6370000.0, 33.0, 45.0, -97.0, 40.0)
    grid = Grid(lambert, 200, 150, -1200000.0, -900000.0, 12000.0, 12000.0)
    print(f"Grid: {grid!r}")

    # Pixel centres on a regular lon/lat raster, about 0.05 degrees apart
    lon_centres, lat_centres = np.meshgrid(np.arange(-110.0, -84.0, 0.05), np.arange(32.0, 48.0, 0.05))
    corner_lons, corner_lats = quadrilaterals_from_centers(
        lon_centres.ravel(), lat_centres.ravel(), 0.025, 0.025
    )
    print(f"Footprints: {corner_lons.shape[0]:,}")

    print("\n--- Computing geometry ---")
    start = time.time()
    geometry = compute_swath_geometry(grid, corner_lons, corner_lats, weighted=True)
    print(f"Done in {time.time() - start:.2f}s")
    print(geometry)

    # Two fields over the same footprints share the geometry
    fields = {
        "column_no2": 1e15 * (1.0 + np.sin(np.radians(lon_centres.ravel()) * 8.0) ** 2),
        "cloud_fraction": np.clip(np.cos(np.radians(lat_centres.ravel()) * 6.0), 0.0, 1.0),
    }

    for name, data in fields.items():
        start = time.time()
        cells = regrid_swath(grid, AGGREGATE_WEIGHTED, 0.0, None, None, data, geometry=geometry)
        print(f"\n{name}: {len(cells):,} cells in {time.time() - start:.3f}s")
        print(f"  Range: {cells.means.min():.4g} - {cells.means.max():.4g}")
        print(f"  Footprints per cell: {cells.counts.min()} - {cells.counts.max()}")


if __name__ == "__main__":
    main()
