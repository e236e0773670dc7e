"""
Regular grids on a map projection with an optional vertical coordinate.

A Grid maps longitude/latitude points to 0-based (column, row) cells plus
offsets from the cell centre, and elevations to layers. Row 0 is the
southernmost row and column 0 the westernmost column.
"""

import logging
import numpy as np
from affine import Affine
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from map_projector.ellipsoid import latitude_sphere, latitude_wgs84
from map_projector.exceptions import InvalidParameterError
from map_projector.numerics import (
    about_equal,
    is_valid_longitude,
    is_valid_latitude,
    require_coordinates,
    require_finite_array,
    require_in_range,
)
from map_projector.projector import Projector
from map_projector.tokens import is_number, parse_numbers

from .cache import cached_centers
from .constants import (
    EDGE_RANGE,
    CELL_SIZE_RANGE,
    TOP_PRESSURE_RANGE,
    VERTICAL_CONSTANT_RANGES,
    MAXIMUM_LAYERS,
)
from .vertical import VerticalGrid, VerticalType

logger = logging.getLogger(__name__)


@dataclass
class GriddedPoints:
    """
    Result of Grid.project_xy.

    Attributes
    ----------
    columns, rows : np.ndarray of int
        0-based cell indices, -1 where the point is not gridded
    x_offsets, y_offsets : np.ndarray
        Offsets from the cell centre in [-1, 1), 0 where not gridded
    gridded : np.ndarray of bool
        True where the point falls inside the grid extent
    """

    columns: np.ndarray
    rows: np.ndarray
    x_offsets: np.ndarray
    y_offsets: np.ndarray
    gridded: np.ndarray

    def count(self) -> int:
        """Return number of gridded points."""
        return int(np.count_nonzero(self.gridded))


def _require_count(name: str, value, maximum: int) -> int:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise InvalidParameterError(name, value, "must be an integer")
    if not 1 <= value <= maximum:
        raise InvalidParameterError(name, value, f"must be in [1, {maximum}]")
    return int(value)


def _require_span(name: str, span, count: int) -> Tuple[int, int]:
    first, last = (int(index) for index in span)
    if not 0 <= first <= last < count:
        raise InvalidParameterError(name, (first, last), f"must lie within [0, {count - 1}]")
    return first, last


class Grid:
    """
    A columns x rows (x layers) grid of cells on a projected plane.

    Parameters
    ----------
    projector : Projector or None
        Map projection, shared with any other grid built on it. None means
        the plane is longitude/latitude in degrees.
    columns, rows : int
        Number of cells in x and y
    west_edge, south_edge : float
        Projected coordinates of the grid's south-west corner
    cell_width, cell_height : float
        Cell size in projected units
    vertical : VerticalGrid, optional
        Layer definition; a grid without one has a single layer.
    adjust_latitude : bool
        If True and the plane is spherical (a sphere projector or no
        projector), input latitudes are treated as WGS84 geodetic and
        converted to spherical latitude before gridding, and cell-centre
        latitudes are converted back. Default False.

    Raises
    ------
    InvalidParameterError
        If any parameter is out of range.

    Notes
    -----
    A point is gridded when west_edge <= x < east_edge and
    south_edge <= y < north_edge. Its column is floor((x - west_edge) /
    cell_width) and its x offset 2 * (fraction - column - 0.5), so -1 is the
    cell's west side, 0 its centre.
    """

    def __init__(
        self,
        projector: Optional[Projector],
        columns: int,
        rows: int,
        west_edge: float,
        south_edge: float,
        cell_width: float,
        cell_height: float,
        vertical: Optional[VerticalGrid] = None,
        adjust_latitude: bool = False,
    ):
        if projector is not None and not isinstance(projector, Projector):
            raise InvalidParameterError("projector", projector, "must be a Projector or None")
        if vertical is not None and not isinstance(vertical, VerticalGrid):
            raise InvalidParameterError("vertical", vertical, "must be a VerticalGrid or None")
        self._projector = projector
        self._columns = _require_count("columns", columns, np.iinfo(np.int64).max)
        self._rows = _require_count("rows", rows, np.iinfo(np.int64).max // self._columns)
        self._west_edge = require_in_range("west_edge", west_edge, *EDGE_RANGE)
        self._south_edge = require_in_range("south_edge", south_edge, *EDGE_RANGE)
        self._cell_width = require_in_range("cell_width", cell_width, *CELL_SIZE_RANGE)
        self._cell_height = require_in_range("cell_height", cell_height, *CELL_SIZE_RANGE)
        self._vertical = vertical
        self._adjust_latitude = bool(adjust_latitude)

        if projector is None:
            corners = ((self._west_edge, self._south_edge), (self.east_edge, self.north_edge))
            if not all(is_valid_longitude(lon) and is_valid_latitude(lat) for lon, lat in corners):
                raise InvalidParameterError(
                    "longitude-latitude grid", corners, "extent must lie within [-180, 180] x [-90, 90]"
                )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def projector(self) -> Optional[Projector]:
        return self._projector

    @property
    def vertical(self) -> Optional[VerticalGrid]:
        return self._vertical

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def adjust_latitude(self) -> bool:
        return self._adjust_latitude

    def _adjusts_latitude(self) -> bool:
        """True if latitudes are converted between WGS84 and the sphere."""
        return self._adjust_latitude and (self._projector is None or self._projector.ellipsoid.is_sphere)

    @property
    def layers(self) -> int:
        """Number of layers (1 for a grid without a vertical coordinate)."""
        return self._vertical.layers if self._vertical is not None else 1

    @property
    def west_edge(self) -> float:
        return self._west_edge

    @property
    def south_edge(self) -> float:
        return self._south_edge

    @property
    def cell_width(self) -> float:
        return self._cell_width

    @property
    def cell_height(self) -> float:
        return self._cell_height

    @property
    def east_edge(self) -> float:
        return self._west_edge + self._columns * self._cell_width

    @property
    def north_edge(self) -> float:
        return self._south_edge + self._rows * self._cell_height

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(layers, rows, columns)."""
        return (self.layers, self._rows, self._columns)

    @property
    def transform(self) -> Affine:
        """Affine transform from fractional (column, row) to projected (x, y)."""
        return Affine.translation(self._west_edge, self._south_edge) @ Affine.scale(
            self._cell_width, self._cell_height
        )

    # ------------------------------------------------------------------
    # Point mapping
    # ------------------------------------------------------------------

    def to_xy(self, longitudes, latitudes) -> Tuple[np.ndarray, np.ndarray]:
        """Project longitude/latitude to the grid plane."""
        lon, lat = require_coordinates(longitudes, latitudes)
        if self._adjusts_latitude():
            lat = np.asarray(latitude_sphere(lat))
        if self._projector is None:
            return lon, lat
        x, y = self._projector.project(lon, lat)
        return np.asarray(x), np.asarray(y)

    def to_lonlat(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        """Unproject grid-plane coordinates to longitude/latitude."""
        if self._projector is None:
            lon, lat = require_coordinates(x, y)
        else:
            lon, lat = self._projector.unproject(np.asarray(x, dtype='float64'), np.asarray(y, dtype='float64'))
            lon, lat = np.asarray(lon), np.asarray(lat)
        if self._adjusts_latitude():
            lat = np.asarray(latitude_wgs84(lat))
        return lon, lat

    def project_xy(self, longitudes, latitudes) -> GriddedPoints:
        """
        Map longitude/latitude points to cells.

        Parameters
        ----------
        longitudes, latitudes : float or np.ndarray
            Point coordinates in degrees (broadcast together)

        Returns
        -------
        GriddedPoints
            Cell indices and offsets; points outside the grid extent are
            flagged as not gridded rather than clamped.
        """
        x, y = self.to_xy(longitudes, latitudes)
        column_fraction = (x - self._west_edge) / self._cell_width
        row_fraction = (y - self._south_edge) / self._cell_height
        gridded = (
            (column_fraction >= 0.0) & (column_fraction < self._columns)
            & (row_fraction >= 0.0) & (row_fraction < self._rows)
        )
        columns = np.where(gridded, np.floor(column_fraction), -1).astype(np.int64)
        rows = np.where(gridded, np.floor(row_fraction), -1).astype(np.int64)
        x_offsets = np.where(gridded, 2.0 * (column_fraction - columns - 0.5), 0.0)
        y_offsets = np.where(gridded, 2.0 * (row_fraction - rows - 0.5), 0.0)
        result = GriddedPoints(columns, rows, x_offsets, y_offsets, gridded)
        logger.debug(f"project_xy: {result.count()} of {gridded.size} points inside {self._columns}x{self._rows} grid")
        return result

    def project_z(self, elevations, surface_elevations=None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Map elevations (m above MSL) to 0-based layers.

        See VerticalGrid.project_z for the returned (layers, offsets,
        layer_elevations) arrays.
        """
        if self._vertical is None:
            raise InvalidParameterError("vertical", None, "grid has no vertical coordinate")
        return self._vertical.project_z(elevations, surface_elevations)

    # ------------------------------------------------------------------
    # Cell centres
    # ------------------------------------------------------------------

    def cell_center_xy(self) -> Tuple[np.ndarray, np.ndarray]:
        """Projected cell centres, each of shape (rows, columns)."""
        column_centers, row_centers = np.meshgrid(
            np.arange(self._columns) + 0.5, np.arange(self._rows) + 0.5
        )
        x, y = self.transform @ (column_centers, row_centers)
        return x, y

    def cell_center_lonlat(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Longitude/latitude of every cell centre, each of shape (rows, columns).

        Results are cached per grid definition and returned read-only.
        Use cell_centers() when only some cells are needed.
        """
        return cached_centers(self._cache_key(), lambda: self.to_lonlat(*self.cell_center_xy()))

    def cell_centers(self, rows, columns) -> Tuple[np.ndarray, np.ndarray]:
        """
        Longitude/latitude of the centres of the given cells.

        Parameters
        ----------
        rows, columns : np.ndarray of int
            0-based cell indices (broadcast together)

        Returns
        -------
        longitudes, latitudes : np.ndarray
            Only the requested cells are unprojected.
        """
        rows = np.asarray(rows, dtype=np.int64)
        columns = np.asarray(columns, dtype=np.int64)
        if np.any((rows < 0) | (rows >= self._rows)) or np.any((columns < 0) | (columns >= self._columns)):
            raise InvalidParameterError(
                "cells", None, f"must lie within {self._rows} rows x {self._columns} columns"
            )
        x, y = self.transform @ (columns + 0.5, rows + 0.5)
        return self.to_lonlat(x, y)

    def _cache_key(self) -> tuple:
        if self._projector is None:
            projection = None
        else:
            projection = (self._projector.name(), tuple(self._projector.parameters().items()))
        return (
            projection,
            self._adjusts_latitude(),
            self._columns,
            self._rows,
            self._west_edge,
            self._south_edge,
            self._cell_width,
            self._cell_height,
        )

    def _require_cell(self, row: int, column: int) -> None:
        if not (0 <= row < self._rows and 0 <= column < self._columns):
            raise InvalidParameterError(
                "cell", (row, column), f"must lie within {self._rows} rows x {self._columns} columns"
            )

    def cell_center(self, row: int, column: int) -> Tuple[float, float]:
        """Longitude/latitude of one cell centre."""
        self._require_cell(row, column)
        lon, lat = self.cell_centers(row, column)
        return float(lon), float(lat)

    def longitude(self, row: int, column: int) -> float:
        """Longitude of the centre of cell (row, column)."""
        return self.cell_center(row, column)[0]

    def latitude(self, row: int, column: int) -> float:
        """Latitude of the centre of cell (row, column)."""
        return self.cell_center(row, column)[1]

    # ------------------------------------------------------------------
    # Vertical accessors
    # ------------------------------------------------------------------

    def level(self, index: int) -> float:
        """Level value index in [0, layers]."""
        if self._vertical is None:
            raise InvalidParameterError("vertical", None, "grid has no vertical coordinate")
        if not 0 <= index <= self.layers:
            raise InvalidParameterError("level", index, f"must be in [0, {self.layers}]")
        return self._vertical.levels[index]

    def elevation(self, layer: int) -> float:
        """Elevation (m above MSL) of the centre of a layer over zero terrain."""
        if self._vertical is None:
            raise InvalidParameterError("vertical", None, "grid has no vertical coordinate")
        if not 0 <= layer < self.layers:
            raise InvalidParameterError("layer", layer, f"must be in [0, {self.layers - 1}]")
        return float(self._vertical.layer_elevations(0.0)[layer])

    # ------------------------------------------------------------------
    # Comparison and derivation
    # ------------------------------------------------------------------

    def equal(self, other: "Grid") -> bool:
        """True if other has the same shape and about-equal geometry."""
        if (self._projector is None) != (other._projector is None):
            return False
        if self._projector is not None and not self._projector.equal(other._projector):
            return False
        if (self._vertical is None) != (other._vertical is None):
            return False
        if self._vertical is not None and not self._vertical.equal(other._vertical):
            return False
        return (
            self._columns == other._columns
            and self._rows == other._rows
            and about_equal(self._west_edge, other._west_edge)
            and about_equal(self._south_edge, other._south_edge)
            and about_equal(self._cell_width, other._cell_width)
            and about_equal(self._cell_height, other._cell_height)
            and self._adjust_latitude == other._adjust_latitude
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.equal(other)

    __hash__ = None

    def clone(self) -> "Grid":
        """Return a copy with its own copy of the projector."""
        projector = self._projector.clone() if self._projector is not None else None
        return Grid(
            projector, self._columns, self._rows, self._west_edge, self._south_edge,
            self._cell_width, self._cell_height, self._vertical, self._adjust_latitude,
        )

    def subset(
        self,
        layers: Optional[Sequence[int]] = None,
        rows: Optional[Sequence[int]] = None,
        columns: Optional[Sequence[int]] = None,
    ) -> "Grid":
        """
        Grid covering a block of this grid's cells.

        Parameters
        ----------
        layers, rows, columns : (first, last), optional
            Inclusive 0-based index ranges; None keeps the full range.

        Returns
        -------
        Grid
            A smaller grid sharing this grid's projector.
        """
        first_column, last_column = _require_span("columns", columns or (0, self._columns - 1), self._columns)
        first_row, last_row = _require_span("rows", rows or (0, self._rows - 1), self._rows)
        vertical = self._vertical
        if layers is not None:
            if vertical is None:
                raise InvalidParameterError("layers", layers, "grid has no vertical coordinate")
            vertical = vertical.subset(*_require_span("layers", layers, self.layers))
        return Grid(
            self._projector,
            last_column - first_column + 1,
            last_row - first_row + 1,
            self._west_edge + first_column * self._cell_width,
            self._south_edge + first_row * self._cell_height,
            self._cell_width,
            self._cell_height,
            vertical,
            self._adjust_latitude,
        )

    def __repr__(self) -> str:
        return (
            f"Grid(\n"
            f"  projector={self._projector!r},\n"
            f"  shape={self.shape},\n"
            f"  west_edge={self._west_edge}, south_edge={self._south_edge},\n"
            f"  cell_width={self._cell_width}, cell_height={self._cell_height},\n"
            f"  vertical={self._vertical!r},\n"
            f"  adjust_latitude={self._adjust_latitude}\n"
            f")"
        )


def parse_grid(
    tokens: Sequence[str],
    projector: Optional[Projector],
    start: int = 0,
    adjust_latitude: bool = False,
) -> Tuple[Grid, int]:
    """
    Parse a grid from command-line style tokens.

    Parameters
    ----------
    tokens : sequence of str
        '-grid columns rows west south width height' optionally followed by
        '-layers count type top level_0 ... level_count [g R A T0s P00]'
    projector : Projector or None
        Projection of the grid plane (None for longitude/latitude)
    start : int
        Index of the '-grid' token
    adjust_latitude : bool
        Passed to Grid

    Returns
    -------
    grid : Grid
    next_index : int
        Index of the first token not consumed
    """
    if start >= len(tokens) or tokens[start] != "-grid":
        raise InvalidParameterError("-grid", list(tokens[start:start + 1]), "expected '-grid'")
    values = parse_numbers(tokens, start + 1, 6, "-grid")
    index = start + 7
    vertical = None

    if index < len(tokens) and tokens[index] == "-layers":
        vertical, index = _parse_layers(tokens, index)

    grid = Grid(projector, values[0], values[1], *values[2:], vertical=vertical, adjust_latitude=adjust_latitude)
    logger.debug(f"Parsed grid {grid.shape} from tokens {start}..{index - 1}")
    return grid, index


def _parse_layers(tokens: Sequence[str], start: int) -> Tuple[VerticalGrid, int]:
    count, = parse_numbers(tokens, start + 1, 1, "-layers")
    if not count.is_integer() or not 1 <= count <= MAXIMUM_LAYERS:
        raise InvalidParameterError("-layers", count, f"layer count must be an integer in [1, {MAXIMUM_LAYERS}]")
    count = int(count)
    if start + 2 >= len(tokens):
        raise InvalidParameterError("-layers", list(tokens[start:]), "missing vertical type")
    vertical_type = VerticalType.parse(tokens[start + 2])
    top, = parse_numbers(tokens, start + 3, 1, "-layers")
    top = require_in_range("top", top, *TOP_PRESSURE_RANGE)
    levels = parse_numbers(tokens, start + 4, count + 1, "-layers")
    index = start + 4 + count + 1

    constants = {}
    names = tuple(VERTICAL_CONSTANT_RANGES)
    following = tokens[index:index + len(names)]
    if len(following) == len(names) and all(is_number(token) for token in following):
        for name, token in zip(names, following):
            constants[name] = require_in_range(name, float(token), *VERTICAL_CONSTANT_RANGES[name])
        index += len(names)

    levels = require_finite_array("levels", levels)
    vertical = VerticalGrid(type=vertical_type, levels=tuple(levels), top_pressure=top, **constants)
    return vertical, index
