"""
Bin quadrilateral swath footprints onto a 2D grid.

A footprint's value goes to every grid cell its bounding box overlaps.
Unweighted ('mean') binning gives each such cell the full value. Weighted
binning scales it by the fraction of the footprint's area inside the cell.
The overlap mapping is precomputed once as a SwathGeometry, a CSR-style
sparse matrix from cells to footprints, so several fields measured over the
same footprints can be binned without re-projecting or re-clipping.
"""

import logging
import numpy as np
from dataclasses import dataclass
from scipy import sparse
from typing import Optional, Tuple

from map_projector.exceptions import InvalidParameterError
from map_projector.numerics import require_coordinates, require_finite, require_finite_array

from .constants import AGGREGATE_MEAN, AGGREGATE_WEIGHTED, AGGREGATE_NEAREST
from .grid import Grid
from .polygons import clipped_area, polygon_bounds, reorder_quadrilaterals, signed_area

logger = logging.getLogger(__name__)


@dataclass
class SwathGeometry:
    """
    Precomputed footprint-to-cell overlap mapping.

    Attributes
    ----------
    grid_shape : tuple of int
        (rows, columns) of the target grid
    grid_limits : tuple of tuples
        ((south_edge, north_edge), (west_edge, east_edge)) in grid units
    indptr : np.ndarray
        CSR-format index pointers, shape (rows * columns + 1,)
    quadrilateral_indices : np.ndarray
        Indices of footprints overlapping each cell, shape (n_pairs,)
    weights : np.ndarray
        Overlap weights, shape (n_pairs,): 1 for unweighted binning, the
        fraction of the footprint's area inside the cell otherwise
    n_quadrilaterals : int
        Number of footprints the geometry was computed for
    weighted : bool
        True if weights are area fractions

    Notes
    -----
    For cell i = row * columns + column the overlapping footprints are
        quadrilateral_indices[indptr[i]:indptr[i+1]]
    with weights
        weights[indptr[i]:indptr[i+1]]
    """

    grid_shape: Tuple[int, int]
    grid_limits: Tuple[Tuple[float, float], ...]
    indptr: np.ndarray
    quadrilateral_indices: np.ndarray
    weights: np.ndarray
    n_quadrilaterals: int
    weighted: bool = False

    def memory_usage_mb(self) -> float:
        """Return memory usage in megabytes."""
        return (self.indptr.nbytes + self.quadrilateral_indices.nbytes + self.weights.nbytes) / 1e6

    def n_cells(self) -> int:
        """Return total number of grid cells."""
        return int(np.prod(self.grid_shape))

    def n_pairs(self) -> int:
        """Return total number of (cell, footprint) pairs."""
        return len(self.quadrilateral_indices)

    def n_binned(self) -> int:
        """Return number of footprints overlapping at least one cell."""
        return int(np.unique(self.quadrilateral_indices).size)

    def __repr__(self) -> str:
        return (
            f"SwathGeometry(\n"
            f"  grid_shape={self.grid_shape},\n"
            f"  grid_limits={self.grid_limits},\n"
            f"  weighted={self.weighted},\n"
            f"  n_quadrilaterals={self.n_quadrilaterals:,},\n"
            f"  n_pairs={self.n_pairs():,},\n"
            f"  memory={self.memory_usage_mb():.1f} MB\n"
            f")"
        )


@dataclass
class CellAccumulator:
    """
    Per-cell sums of binned footprint values, shape (rows * columns,) each.

    counts[i] is the number of footprints binned into cell i, weights[i]
    the sum of their overlap weights and sums[i] the sum of weight * value.
    """

    grid_shape: Tuple[int, int]
    counts: np.ndarray
    weights: np.ndarray
    sums: np.ndarray


@dataclass
class CompactCells:
    """
    Populated cells only, in row-major order.

    Attributes
    ----------
    columns, rows : np.ndarray of int
        0-based cell indices
    longitudes, latitudes : np.ndarray
        Cell centre coordinates in degrees
    means : np.ndarray
        Cell mean value
    counts : np.ndarray of int
        Number of footprints that contributed to the cell
    """

    columns: np.ndarray
    rows: np.ndarray
    longitudes: np.ndarray
    latitudes: np.ndarray
    means: np.ndarray
    counts: np.ndarray

    def __len__(self) -> int:
        return len(self.means)


def quadrilaterals_from_centers(
    longitudes: np.ndarray,
    latitudes: np.ndarray,
    half_width: float,
    half_height: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Footprint corners of pixels given by centre and half-size in degrees.

    Returns
    -------
    corner_longitudes, corner_latitudes : np.ndarray
        Shape (n, 4) in SW, SE, NW, NE order, ready for
        compute_swath_geometry.
    """
    half_width = require_finite("half_width", half_width)
    half_height = require_finite("half_height", half_height)
    if not 0.0 < half_width <= 180.0 or not 0.0 < half_height <= 90.0:
        raise InvalidParameterError(
            "half size", (half_width, half_height), "must be in (0, 180] x (0, 90]"
        )
    lon, lat = require_coordinates(longitudes, latitudes)
    lon, lat = lon.ravel()[:, np.newaxis], lat.ravel()[:, np.newaxis]
    corner_longitudes = lon + np.array([-half_width, half_width, -half_width, half_width])
    corner_latitudes = lat + np.array([-half_height, -half_height, half_height, half_height])
    require_coordinates(corner_longitudes, corner_latitudes)
    return corner_longitudes, corner_latitudes


def _cell_ranges(grid: Grid, x_minimum, x_maximum, y_minimum, y_maximum):
    """First/last 0-based column and row each bounding box overlaps, clamped to the grid."""

    def first_last(low, high, edge, size, count):
        first = np.clip(np.floor((low - edge) / size), 0, count - 1).astype(np.int64)
        last = np.clip(np.floor((high - edge) / size), 0, count - 1).astype(np.int64)
        return first, np.maximum(last, first)

    first_column, last_column = first_last(x_minimum, x_maximum, grid.west_edge, grid.cell_width, grid.columns)
    first_row, last_row = first_last(y_minimum, y_maximum, grid.south_edge, grid.cell_height, grid.rows)
    return first_column, last_column, first_row, last_row


def compute_swath_geometry(
    grid: Grid,
    corner_longitudes: np.ndarray,
    corner_latitudes: np.ndarray,
    weighted: bool = False,
) -> SwathGeometry:
    """
    Compute the sparse cell-to-footprint overlap mapping.

    Parameters
    ----------
    grid : Grid
        Target grid (its layers are ignored)
    corner_longitudes, corner_latitudes : np.ndarray
        Footprint corners in degrees, shape (n, 4), in SW, SE, NW, NE order
    weighted : bool
        If True weights are the fraction of each footprint's area inside
        each cell; otherwise every overlapped cell gets weight 1.

    Returns
    -------
    SwathGeometry
        Mapping for grid.rows * grid.columns cells.

    Notes
    -----
    A footprint overlaps the cells spanned by its bounding box. Footprints
    that miss the grid contribute nothing. In weighted mode a footprint
    inside a single cell gives it weight 1, even when its area is zero;
    other footprints with zero area are skipped, and cells a footprint
    only touches get no entry.
    """
    lon, lat = require_coordinates(corner_longitudes, corner_latitudes)
    if lon.ndim != 2 or lon.shape[1] != 4:
        raise InvalidParameterError("corner shape", lon.shape, "expected (quadrilaterals, 4)")
    count = lon.shape[0]
    x, y = grid.to_xy(lon, lat)
    x, y = reorder_quadrilaterals(x, y)
    x_minimum, x_maximum, y_minimum, y_maximum = polygon_bounds(x, y)

    overlaps = (
        (x_minimum <= grid.east_edge) & (x_maximum >= grid.west_edge)
        & (y_minimum <= grid.north_edge) & (y_maximum >= grid.south_edge)
    )
    areas = signed_area(x, y)

    quads = np.flatnonzero(overlaps)
    first_column, last_column, first_row, last_row = _cell_ranges(
        grid, x_minimum[quads], x_maximum[quads], y_minimum[quads], y_maximum[quads]
    )
    widths = last_column - first_column + 1
    heights = last_row - first_row + 1

    # Expand each footprint into the cells of its bounding box
    spans = widths * heights
    pair_quads = np.repeat(quads, spans)
    pair_offsets = np.arange(spans.sum()) - np.repeat(np.cumsum(spans) - spans, spans)
    pair_rows = np.repeat(first_row, spans) + pair_offsets // np.repeat(widths, spans)
    pair_columns = np.repeat(first_column, spans) + pair_offsets % np.repeat(widths, spans)
    pair_weights = np.ones(pair_quads.size)

    if weighted:
        single = np.repeat(spans == 1, spans)
        cell_west = grid.west_edge + pair_columns * grid.cell_width
        cell_south = grid.south_edge + pair_rows * grid.cell_height
        # Footprints inside one cell keep weight 1 whatever their area;
        # the rest are clipped, and degenerate ones dropped
        contained = single & (
            (x_minimum[pair_quads] >= cell_west)
            & (x_maximum[pair_quads] <= cell_west + grid.cell_width)
            & (y_minimum[pair_quads] >= cell_south)
            & (y_maximum[pair_quads] <= cell_south + grid.cell_height)
        )
        for pair in np.flatnonzero(~contained):
            quad = pair_quads[pair]
            if areas[quad] <= 0.0:
                pair_weights[pair] = 0.0
                continue
            area = clipped_area(
                x[quad], y[quad],
                cell_west[pair], cell_south[pair],
                cell_west[pair] + grid.cell_width, cell_south[pair] + grid.cell_height,
            )
            pair_weights[pair] = area / areas[quad]
        keep = pair_weights > 0.0
        pair_quads, pair_rows, pair_columns = pair_quads[keep], pair_rows[keep], pair_columns[keep]
        pair_weights = pair_weights[keep]

    n_cells = grid.rows * grid.columns
    matrix = sparse.csr_matrix(
        (pair_weights, (pair_rows * grid.columns + pair_columns, pair_quads)),
        shape=(n_cells, count),
    )
    matrix.sort_indices()

    geometry = SwathGeometry(
        grid_shape=(grid.rows, grid.columns),
        grid_limits=((grid.south_edge, grid.north_edge), (grid.west_edge, grid.east_edge)),
        indptr=matrix.indptr.astype(np.int64),
        quadrilateral_indices=matrix.indices.astype(np.int64),
        weights=matrix.data.astype('float64'),
        n_quadrilaterals=count,
        weighted=weighted,
    )
    logger.info(
        f"Swath geometry: {geometry.n_binned():,} of {count:,} quadrilaterals overlap the grid "
        f"({geometry.n_pairs():,} cell pairs, weighted={weighted})"
    )
    return geometry


def bin_quadrilateral_data(geometry: SwathGeometry, data: np.ndarray) -> CellAccumulator:
    """
    Accumulate footprint values into cells.

    Parameters
    ----------
    geometry : SwathGeometry
        Mapping from compute_swath_geometry
    data : np.ndarray
        One value per footprint, shape (n_quadrilaterals,)

    Returns
    -------
    CellAccumulator
        counts, weights and weighted sums per cell.
    """
    data = require_finite_array("data", data).ravel()
    if data.size != geometry.n_quadrilaterals:
        raise InvalidParameterError(
            "data size", data.size, f"expected {geometry.n_quadrilaterals} quadrilateral values"
        )
    n_cells = geometry.n_cells()
    indptr = geometry.indptr
    weights = geometry.weights

    counts = np.diff(indptr)
    weight_sums = np.zeros(n_cells)
    value_sums = np.zeros(n_cells)

    # Segmented sums over non-empty cells
    non_empty = np.flatnonzero(counts > 0)
    if non_empty.size > 0:
        starts = indptr[:-1][non_empty]
        weighted_values = weights * data[geometry.quadrilateral_indices]
        weight_sums[non_empty] = np.add.reduceat(weights, starts)
        value_sums[non_empty] = np.add.reduceat(weighted_values, starts)

    logger.debug(f"Binned {geometry.n_pairs():,} pairs into {non_empty.size:,} cells")
    return CellAccumulator(geometry.grid_shape, counts.astype(np.int64), weight_sums, value_sums)


def compute_cell_means(
    accumulator: CellAccumulator,
    minimum_valid_value: float,
    minimum_weight: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert accumulated sums to per-cell means.

    Parameters
    ----------
    accumulator : CellAccumulator
        Output of bin_quadrilateral_data
    minimum_valid_value : float
        Cells whose mean is below this are discarded
    minimum_weight : float
        Cells whose total weight is not above this are discarded

    Returns
    -------
    means : np.ndarray
        sums / weights per cell, 0 for discarded cells
    counts : np.ndarray of int
        Contributing footprint count per cell, 0 for discarded cells
    """
    minimum_valid_value = require_finite("minimum_valid_value", minimum_valid_value)
    minimum_weight = require_finite("minimum_weight", minimum_weight)
    weights = accumulator.weights
    populated = (accumulator.counts > 0) & (weights > minimum_weight) & (weights > 0.0)
    means = np.zeros_like(accumulator.sums)
    means[populated] = accumulator.sums[populated] / weights[populated]
    keep = populated & (means >= minimum_valid_value)
    means[~keep] = 0.0
    counts = np.where(keep, accumulator.counts, 0)
    logger.debug(f"compute_cell_means: {int(keep.sum()):,} of {int(populated.sum()):,} cells valid")
    return means, counts


def compact_cells(grid: Grid, means: np.ndarray, counts: np.ndarray) -> CompactCells:
    """
    Keep only populated cells and attach their centre coordinates.

    Parameters
    ----------
    grid : Grid
        Grid the cells belong to
    means, counts : np.ndarray
        Per-cell output of compute_cell_means, shape (rows * columns,)

    Returns
    -------
    CompactCells
        Entries for cells with a non-zero count, in row-major order.
    """
    n_cells = grid.rows * grid.columns
    means = np.asarray(means, dtype='float64').ravel()
    counts = np.asarray(counts).ravel()
    if means.size != n_cells or counts.size != n_cells:
        raise InvalidParameterError("cell array size", (means.size, counts.size), f"expected {n_cells}")
    cells = np.flatnonzero(counts > 0)
    rows, columns = np.divmod(cells, grid.columns)
    longitudes, latitudes = grid.cell_centers(rows, columns)
    return CompactCells(
        columns=columns,
        rows=rows,
        longitudes=np.asarray(longitudes, dtype='float64'),
        latitudes=np.asarray(latitudes, dtype='float64'),
        means=means[cells],
        counts=counts[cells].astype(np.int64),
    )


def regrid_swath(
    grid: Grid,
    method: str,
    minimum_valid_value: float,
    corner_longitudes: np.ndarray,
    corner_latitudes: np.ndarray,
    data: np.ndarray,
    geometry: Optional[SwathGeometry] = None,
) -> CompactCells:
    """
    Bin swath footprints onto a grid and return the populated cells.

    Parameters
    ----------
    grid : Grid
        Target grid
    method : str
        'mean' (full value to every overlapped cell) or 'weighted'
        (area-fraction weights)
    minimum_valid_value : float
        Cells whose mean is below this are dropped
    corner_longitudes, corner_latitudes : np.ndarray
        Shape (n, 4) corners in SW, SE, NW, NE order
    data : np.ndarray
        One value per footprint
    geometry : SwathGeometry, optional
        Previously computed geometry for the same grid and footprints

    Returns
    -------
    CompactCells
    """
    name = str(method).lower()
    if name == AGGREGATE_NEAREST:
        raise InvalidParameterError("method", method, "nearest is not supported for swath data")
    if name not in (AGGREGATE_MEAN, AGGREGATE_WEIGHTED):
        raise InvalidParameterError("method", method, f"expected '{AGGREGATE_MEAN}' or '{AGGREGATE_WEIGHTED}'")
    weighted = name == AGGREGATE_WEIGHTED

    if geometry is None:
        geometry = compute_swath_geometry(grid, corner_longitudes, corner_latitudes, weighted)
    elif geometry.grid_shape != (grid.rows, grid.columns) or geometry.weighted != weighted:
        raise InvalidParameterError("geometry", geometry, f"does not match grid {grid.shape} / method {name}")

    accumulator = bin_quadrilateral_data(geometry, data)
    means, counts = compute_cell_means(accumulator, minimum_valid_value)
    result = compact_cells(grid, means, counts)
    logger.info(f"Regridded {geometry.n_quadrilaterals:,} quadrilaterals to {len(result):,} cells ({name})")
    return result

