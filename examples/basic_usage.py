"""
Basic usage example: project points and regrid them onto an Albers grid
"""

import logging
import numpy as np

from map_projector import parse_projector
from grid_regrid import parse_grid, regrid, AGGREGATE_WEIGHTED


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Same options a regridding tool would receive on its command line
    arguments = (
        "-ellipsoid 6370000 6370000 "
        "-albers 33 45 -97 40 "
        "-grid 268 259 -2508000 -1716000 12000 12000"
    ).split()

    projector, index = parse_projector(arguments)
    grid, _ = parse_grid(arguments, projector, start=index)
    print(f"Projector: {projector!r}")
    print(f"Grid: {grid!r}")

    # Synthetic surface observations over the central US
    rng = np.random.default_rng(7)
    longitudes = rng.uniform(-105.0, -90.0, 5000)
    latitudes = rng.uniform(30.0, 45.0, 5000)
    values = 20.0 + 0.5 * (latitudes - 30.0) + rng.normal(scale=2.0, size=5000)
    values[rng.random(5000) < 0.05] = -9999.0  # missing
    notes = rng.choice(["KDFW", "KOKC", "KDEN", "KMSP"], size=5000).tolist()

    x, y = projector.project(longitudes[:3], latitudes[:3])
    print("\nFirst points projected (m):")
    for lon, lat, px, py in zip(longitudes[:3], latitudes[:3], x, y):
        print(f"  ({lon:9.4f}, {lat:8.4f}) -> ({px:12.1f}, {py:12.1f})")

    cells = regrid(grid, AGGREGATE_WEIGHTED, -900.0, longitudes, latitudes, values, notes=notes)

    print(f"\nRegridded {len(longitudes):,} points to {len(cells):,} cells")
    print(f"  Mean value: {cells.values.mean():.2f}")
    print(f"  Points per cell: {cells.counts.min()} - {cells.counts.max()}")
    print(f"  First cell: row={cells.rows[0]} column={cells.columns[0]} "
          f"({cells.longitudes[0]:.3f}, {cells.latitudes[0]:.3f}) notes={cells.notes[0]}")


if __name__ == "__main__":
    main()
