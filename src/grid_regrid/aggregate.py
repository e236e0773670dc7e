"""
Reduce gridded point observations to one value per grid cell.

Points are grouped by (layer, row, column). Values below the minimum valid
value take part in gridding but not in the reduction. Cells without any
valid contribution are left out of the result.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence

from map_projector.constants import TOLERANCE
from map_projector.exceptions import InvalidParameterError
from map_projector.numerics import check_result, require_finite, require_finite_array

from .constants import (
    AGGREGATE_NEAREST,
    AGGREGATE_MEAN,
    AGGREGATE_WEIGHTED,
    AGGREGATE_METHODS,
    MINIMUM_RADIUS_SQUARED,
)
from .grid import Grid
from .notes import append_note

logger = logging.getLogger(__name__)


@dataclass
class RegriddedCells:
    """
    Sparse per-cell output of aggregate() and regrid().

    Cells are ordered by layer, then row, then column.

    Attributes
    ----------
    columns, rows, layers : np.ndarray of int
        0-based cell indices (layers are 0 on a grid without layers)
    longitudes, latitudes : np.ndarray
        Cell centre coordinates in degrees
    values : np.ndarray
        Reduced value per cell
    values2 : np.ndarray or None
        Reduced second component, when one was given
    counts : np.ndarray of int
        Number of valid inputs that contributed to each cell
    elevations : np.ndarray or None
        Mean layer-centre elevation (m above MSL) of the contributing points,
        for layered grids
    notes : list of str or None
        Merged provenance note per cell, when notes were given
    """

    columns: np.ndarray
    rows: np.ndarray
    layers: np.ndarray
    longitudes: np.ndarray
    latitudes: np.ndarray
    values: np.ndarray
    values2: Optional[np.ndarray]
    counts: np.ndarray
    elevations: Optional[np.ndarray] = None
    notes: Optional[List[str]] = None

    def __len__(self) -> int:
        return len(self.values)


def _require_method(method: str) -> str:
    name = str(method).lower()
    if name not in AGGREGATE_METHODS:
        raise InvalidParameterError("method", method, f"expected one of {AGGREGATE_METHODS}")
    return name


def _same_shape(name: str, array, shape, dtype='float64') -> np.ndarray:
    result = np.asarray(array, dtype=dtype)
    if result.shape != shape:
        raise InvalidParameterError(f"{name} shape", result.shape, f"expected {shape}")
    return result


def surface_index(elevations: np.ndarray) -> np.ndarray:
    """
    0-based index of the surface level of each profile.

    Parameters
    ----------
    elevations : np.ndarray
        Shape (points, levels), level elevations of each profile

    Returns
    -------
    np.ndarray of int
        Shape (points,). Leading levels with about-equal elevations are
        collapsed sub-surface points; the surface is the last of them.
        Profiles whose elevations are all equal, or that start with
        distinct elevations, use level 0.
    """
    elevations = np.asarray(elevations, dtype='float64')
    if elevations.shape[1] < 2:
        return np.zeros(elevations.shape[0], dtype=np.int64)
    collapsed = np.isclose(elevations[:, 1:], elevations[:, :-1], rtol=TOLERANCE, atol=TOLERANCE)
    first_distinct = np.argmax(~collapsed, axis=1)
    return np.where(np.any(~collapsed, axis=1), first_distinct, 0).astype(np.int64)


def aggregate(
    grid: Grid,
    method: str,
    minimum_valid_value: float,
    columns: np.ndarray,
    rows: np.ndarray,
    x_offsets: np.ndarray,
    y_offsets: np.ndarray,
    values: np.ndarray,
    values2: Optional[np.ndarray] = None,
    layers: Optional[np.ndarray] = None,
    z_offsets: Optional[np.ndarray] = None,
    layer_elevations: Optional[np.ndarray] = None,
    notes: Optional[Sequence[Optional[str]]] = None,
) -> RegriddedCells:
    """
    Aggregate already-gridded points into cells.

    Parameters
    ----------
    grid : Grid
        Grid the indices refer to
    method : str
        'nearest', 'mean' or 'weighted'
    minimum_valid_value : float
        Values below this are excluded from the reduction
    columns, rows : np.ndarray of int
        0-based cell indices per point; -1 marks a point that is not gridded
    x_offsets, y_offsets : np.ndarray
        Offsets from the cell centre in [-1, 1]
    values : np.ndarray
        Data value per point
    values2 : np.ndarray, optional
        Second data component, reduced with the same selection/weights
    layers, z_offsets : np.ndarray, optional
        0-based layer (-1 if not gridded) and vertical offset per point
    layer_elevations : np.ndarray, optional
        Layer-centre elevation per point, averaged into the output
    notes : sequence of str, optional
        Provenance note per point (None or '' for no note)

    Returns
    -------
    RegriddedCells
        One entry per cell that received at least one valid value.

    Notes
    -----
    The squared distance of a point from its cell centre is
    x_offset**2 + y_offset**2 + z_offset**2, floored at 1e-6.
    'nearest' keeps the value of the closest point, breaking ties by the
    smaller value. 'weighted' weights each value by the inverse squared
    distance. Points are reduced in a canonical order so the result does
    not depend on the order they are given in.
    """
    method = _require_method(method)
    minimum_valid_value = require_finite("minimum_valid_value", minimum_valid_value)
    values = require_finite_array("values", values).ravel()
    shape = values.shape
    columns = _same_shape("columns", np.ravel(columns), shape, np.int64)
    rows = _same_shape("rows", np.ravel(rows), shape, np.int64)
    x_offsets = _same_shape("x_offsets", np.ravel(x_offsets), shape)
    y_offsets = _same_shape("y_offsets", np.ravel(y_offsets), shape)
    if layers is None:
        layers = np.zeros(shape, dtype=np.int64)
    layers = _same_shape("layers", np.ravel(layers), shape, np.int64)
    z_offsets = np.zeros(shape) if z_offsets is None else _same_shape("z_offsets", np.ravel(z_offsets), shape)
    if values2 is not None:
        values2 = _same_shape("values2", require_finite_array("values2", values2).ravel(), shape)
    if layer_elevations is not None:
        layer_elevations = _same_shape("layer_elevations", np.ravel(layer_elevations), shape)
    if notes is not None and len(notes) != values.size:
        raise InvalidParameterError("notes length", len(notes), f"expected {values.size}")
    if np.any(layers >= grid.layers) or np.any(rows >= grid.rows) or np.any(columns >= grid.columns):
        raise InvalidParameterError("cell indices", None, f"must lie within grid shape {grid.shape}")

    valid = (columns >= 0) & (rows >= 0) & (layers >= 0) & (values >= minimum_valid_value)
    points = np.flatnonzero(valid)
    cell = (layers[points] * grid.rows + rows[points]) * grid.columns + columns[points]
    radius_squared = np.maximum(
        x_offsets[points] ** 2 + y_offsets[points] ** 2 + z_offsets[points] ** 2,
        MINIMUM_RADIUS_SQUARED,
    )
    second = values2[points] if values2 is not None else np.zeros(points.size)
    data = values[points]

    # Canonical order: by cell, then value, second value and distance
    order = np.lexsort((radius_squared, second, data, cell))
    points, cell, radius_squared = points[order], cell[order], radius_squared[order]
    data, second = data[order], second[order]

    cells, starts, inverse, counts = np.unique(
        cell, return_index=True, return_inverse=True, return_counts=True
    )

    if method == AGGREGATE_NEAREST:
        nearest = np.lexsort((second, data, radius_squared, inverse))
        first = np.searchsorted(inverse[nearest], np.arange(cells.size))
        chosen = nearest[first]
        reduced = data[chosen]
        reduced2 = second[chosen]
    else:
        weights = 1.0 / radius_squared if method == AGGREGATE_WEIGHTED else np.ones(points.size)
        total = np.bincount(inverse, weights=weights, minlength=cells.size)
        reduced = np.bincount(inverse, weights=weights * data, minlength=cells.size) / total
        reduced2 = np.bincount(inverse, weights=weights * second, minlength=cells.size) / total
        # A mean never falls below the smallest contributing value
        lowest = data[starts]
        reduced = np.maximum(reduced, lowest)

    check_result(f"aggregate {method}", reduced, reduced2)

    out_layers, remainder = np.divmod(cells, grid.rows * grid.columns)
    out_rows, out_columns = np.divmod(remainder, grid.columns)
    longitudes, latitudes = grid.cell_centers(out_rows, out_columns)

    elevations = None
    if layer_elevations is not None:
        sums = np.bincount(inverse, weights=layer_elevations[points], minlength=cells.size)
        elevations = sums / counts

    merged = None
    if notes is not None:
        merged = [""] * cells.size
        # Notes are merged in input order
        for index in np.argsort(points, kind='stable'):
            note = notes[points[index]]
            if note:
                merged[inverse[index]] = append_note(merged[inverse[index]], note)

    result = RegriddedCells(
        columns=out_columns,
        rows=out_rows,
        layers=out_layers,
        longitudes=np.asarray(longitudes, dtype='float64'),
        latitudes=np.asarray(latitudes, dtype='float64'),
        values=reduced,
        values2=reduced2 if values2 is not None else None,
        counts=counts,
        elevations=elevations,
        notes=merged,
    )
    logger.info(f"Aggregated {points.size} valid of {values.size} points into {len(result)} cells ({method})")
    return result


def regrid(
    grid: Grid,
    method: str,
    minimum_valid_value: float,
    longitudes: np.ndarray,
    latitudes: np.ndarray,
    values: np.ndarray,
    elevations: Optional[np.ndarray] = None,
    values2: Optional[np.ndarray] = None,
    notes: Optional[Sequence[Optional[str]]] = None,
    surface_elevations: Optional[np.ndarray] = None,
) -> RegriddedCells:
    """
    Project, grid and aggregate point or profile data in one call.

    Parameters
    ----------
    grid : Grid
        Target grid
    method : str
        'nearest', 'mean' or 'weighted'
    minimum_valid_value : float
        Values below this are ignored
    longitudes, latitudes : np.ndarray
        Point locations in degrees, shape (points,)
    values : np.ndarray
        Shape (points,) or (points, levels) for profiles
    elevations : np.ndarray, optional
        Meters above MSL, same shape as values. Required for grids with
        layers. On a grid without layers profiles are reduced to their
        surface level (see surface_index), chosen from these elevations
        when given and level 0 otherwise.
    values2 : np.ndarray, optional
        Second data component, same shape as values
    notes : sequence of str, optional
        One provenance note per point, shared by all levels of a profile
    surface_elevations : np.ndarray, optional
        Terrain height per point for terrain-following vertical types

    Returns
    -------
    RegriddedCells
        Sparse output: only cells with at least one valid value.
    """
    _require_method(method)
    values = require_finite_array("values", values)
    if values.ndim not in (1, 2):
        raise InvalidParameterError("values shape", values.shape, "expected (points,) or (points, levels)")
    count = values.shape[0]
    longitudes = _same_shape("longitudes", longitudes, (count,))
    latitudes = _same_shape("latitudes", latitudes, (count,))

    if values.ndim == 2 and grid.vertical is None:
        # Without layers only the surface value of each profile is gridded
        if elevations is not None:
            surface = surface_index(_same_shape("elevations", elevations, values.shape))
        else:
            surface = np.zeros(count, dtype=np.int64)
        points = np.arange(count)
        if values2 is not None:
            values2 = _same_shape("values2", values2, values.shape)[points, surface]
        values = values[points, surface]
        elevations = None

    levels = values.shape[1] if values.ndim == 2 else 1

    def per_level(array):
        array = np.asarray(array)
        return np.broadcast_to(array[:, np.newaxis], (count, levels)) if values.ndim == 2 else array

    gridded = grid.project_xy(longitudes, latitudes)
    layers = z_offsets = layer_elevations = None

    if grid.vertical is not None:
        if elevations is None:
            raise InvalidParameterError("elevations", None, "required for a grid with layers")
        elevations = _same_shape("elevations", elevations, values.shape)
        surface = None
        if surface_elevations is not None:
            surface = per_level(_same_shape("surface_elevations", surface_elevations, (count,)))
        layers, z_offsets, layer_elevations = grid.project_z(elevations, surface)

    point_notes = None
    if notes is not None:
        if len(notes) != count:
            raise InvalidParameterError("notes length", len(notes), f"expected {count}")
        point_notes = [note for note in notes for _ in range(levels)]

    return aggregate(
        grid,
        method,
        minimum_valid_value,
        per_level(gridded.columns),
        per_level(gridded.rows),
        per_level(gridded.x_offsets),
        per_level(gridded.y_offsets),
        values,
        values2=values2,
        layers=layers,
        z_offsets=z_offsets,
        layer_elevations=layer_elevations,
        notes=point_notes,
    )
