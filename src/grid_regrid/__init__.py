"""
grid_regrid - Map point and swath observations onto regular projected grids
"""

import logging

from .constants import AGGREGATE_NEAREST, AGGREGATE_MEAN, AGGREGATE_WEIGHTED
from .notes import append_note
from .vertical import VerticalType, VerticalGrid
from .grid import Grid, GriddedPoints, parse_grid
from .cache import CELL_CENTER_CACHE
from .aggregate import RegriddedCells, aggregate, regrid, surface_index
from .polygons import reorder_quadrilaterals, clip_polygon, clipped_area, signed_area
from .swath import (
    SwathGeometry,
    CellAccumulator,
    CompactCells,
    compute_swath_geometry,
    bin_quadrilateral_data,
    compute_cell_means,
    compact_cells,
    regrid_swath,
    quadrilaterals_from_centers,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Aggregation methods
    "AGGREGATE_NEAREST",
    "AGGREGATE_MEAN",
    "AGGREGATE_WEIGHTED",
    # Provenance notes
    "append_note",
    # Grid definition
    "VerticalType",
    "VerticalGrid",
    "Grid",
    "GriddedPoints",
    "parse_grid",
    "CELL_CENTER_CACHE",
    # Point aggregation
    "RegriddedCells",
    "aggregate",
    "regrid",
    "surface_index",
    # Swath binning
    "reorder_quadrilaterals",
    "clip_polygon",
    "clipped_area",
    "signed_area",
    "SwathGeometry",
    "CellAccumulator",
    "CompactCells",
    "compute_swath_geometry",
    "bin_quadrilateral_data",
    "compute_cell_means",
    "compact_cells",
    "regrid_swath",
    "quadrilaterals_from_centers",
]
