"""
Vertical coordinate systems of gridded model output.

Converts the native levels of a grid (sigma-pressure, pressure, height...)
into elevations in meters above mean sea level and bins point elevations
into 0-based layers.
"""

import logging
import numpy as np
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

from map_projector.exceptions import InvalidParameterError
from map_projector.numerics import about_equal, check_result, require_finite_array

from .constants import (
    MAXIMUM_LAYERS,
    GRAVITY,
    GAS_CONSTANT,
    LAPSE_RATE,
    REFERENCE_TEMPERATURE,
    REFERENCE_PRESSURE,
    DEFAULT_TOP_PRESSURE,
    DEFAULT_SIGMA_LEVELS,
    SURFACE_PRESSURE_MB,
    PRESSURE_SCALE_HEIGHT,
)

logger = logging.getLogger(__name__)


class VerticalType(IntEnum):
    """Vertical coordinate types, numbered as in the I/O API (VGTYP) codes."""

    NONE = 0
    HYDROSTATIC_SIGMA_P = 1
    NONHYDROSTATIC_SIGMA_P = 2
    SIGMA_Z = 3
    PRESSURE = 4
    HEIGHT_ABOVE_SEA_LEVEL = 5
    HEIGHT_ABOVE_TERRAIN = 6
    WRF_SIGMA = 7

    @classmethod
    def parse(cls, value: Union[int, str, "VerticalType"]) -> "VerticalType":
        """Accept a VerticalType, its integer code or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            pass
        try:
            return cls[str(value).strip().upper().replace("-", "_")]
        except KeyError:
            raise InvalidParameterError(
                "vertical type", value, f"expected one of {[member.name for member in cls]}"
            )

    @property
    def is_sigma_pressure(self) -> bool:
        return self in SIGMA_PRESSURE_TYPES

    @property
    def is_terrain_following(self) -> bool:
        """True if layer elevations depend on the surface elevation."""
        return self in SIGMA_PRESSURE_TYPES or self in (
            VerticalType.SIGMA_Z, VerticalType.HEIGHT_ABOVE_TERRAIN
        )


SIGMA_PRESSURE_TYPES = (
    VerticalType.HYDROSTATIC_SIGMA_P,
    VerticalType.NONHYDROSTATIC_SIGMA_P,
    VerticalType.WRF_SIGMA,
)


@dataclass(frozen=True)
class VerticalGrid:
    """
    Layer boundaries of a 3D grid.

    Attributes
    ----------
    type : VerticalType
        How levels are interpreted
    levels : tuple of float
        layers + 1 level values: sigma in [0, 1] (decreasing for
        sigma-pressure types, increasing for SIGMA_Z), pressure in Pa
        (decreasing) or height in meters (increasing)
    top_pressure : float
        Model top: pressure in Pa for sigma-pressure types, height in meters
        for SIGMA_Z; unused otherwise
    gravity, gas_constant, lapse_rate, reference_temperature, reference_pressure : float
        Constants of the MM5 sigma-pressure to height relation

    Notes
    -----
    Sigma-pressure levels are converted with the MM5 reference-state formula

        H0s = R T0s / g
        s = sqrt(1 - 2 A Zs / (T0s H0s))
        q* = sigma + (1 - sigma) (Pt / P00) exp(2 Zs / (H0s s))
        z = Zs - H0s ln(q*) (A / (2 T0s) ln(q*) + s)

    where Zs is the surface elevation. Pressure levels use the Vis5d
    standard atmosphere z = -7200 ln(p / 1012.5 mb). NONE uses the level
    index itself as elevation.
    """

    type: VerticalType = VerticalType.HYDROSTATIC_SIGMA_P
    levels: Tuple[float, ...] = DEFAULT_SIGMA_LEVELS
    top_pressure: float = DEFAULT_TOP_PRESSURE
    gravity: float = GRAVITY
    gas_constant: float = GAS_CONSTANT
    lapse_rate: float = LAPSE_RATE
    reference_temperature: float = REFERENCE_TEMPERATURE
    reference_pressure: float = REFERENCE_PRESSURE

    def __post_init__(self):
        object.__setattr__(self, "type", VerticalType.parse(self.type))
        levels = tuple(float(level) for level in require_finite_array("levels", self.levels).ravel())
        object.__setattr__(self, "levels", levels)

        layers = len(levels) - 1
        if not 1 <= layers <= MAXIMUM_LAYERS:
            raise InvalidParameterError(
                "levels", levels, f"need 2 to {MAXIMUM_LAYERS + 1} levels"
            )
        for name in ("top_pressure", "gravity", "gas_constant", "lapse_rate",
                     "reference_temperature", "reference_pressure"):
            value = float(getattr(self, name))
            if not np.isfinite(value) or value <= 0.0:
                raise InvalidParameterError(name, value, "must be positive")
            object.__setattr__(self, name, value)

        self._validate_levels()
        boundaries = self.boundary_elevations()
        if not np.all(np.diff(boundaries) > 0.0):
            raise InvalidParameterError(
                "levels", levels, f"do not give increasing elevations: {boundaries}"
            )

    def _validate_levels(self) -> None:
        levels = np.array(self.levels)
        steps = np.diff(levels)
        kind = self.type
        if kind.is_sigma_pressure:
            ok = np.all(steps < 0.0) and levels.min() >= 0.0 and levels.max() <= 1.0
            rule = "sigma levels must decrease within [0, 1]"
        elif kind == VerticalType.SIGMA_Z:
            ok = np.all(steps > 0.0) and levels.min() >= 0.0 and levels.max() <= 1.0
            rule = "sigma-Z levels must increase within [0, 1]"
        elif kind == VerticalType.PRESSURE:
            ok = np.all(steps < 0.0) and levels.min() > 0.0
            rule = "pressure levels must be positive and decreasing"
        else:
            ok = bool(np.all(steps > 0.0))
            rule = "levels must increase"
        if not ok:
            raise InvalidParameterError("levels", self.levels, rule)

    @property
    def layers(self) -> int:
        return len(self.levels) - 1

    def boundary_elevations(self, surface_elevation=0.0) -> np.ndarray:
        """
        Elevations (m above MSL) of the layer boundaries.

        Parameters
        ----------
        surface_elevation : float or np.ndarray
            Terrain height(s) in meters, shape (n,) for per-point terrain

        Returns
        -------
        np.ndarray
            Shape (layers + 1,) for scalar terrain, (n, layers + 1) otherwise.
        """
        zs = np.asarray(surface_elevation, dtype='float64')[..., np.newaxis]
        levels = np.asarray(self.levels)
        kind = self.type

        if kind.is_sigma_pressure:
            h0s = self.gas_constant * self.reference_temperature / self.gravity
            with np.errstate(invalid='ignore'):
                sqrt_factor = np.sqrt(
                    1.0 - 2.0 * self.lapse_rate * zs / (self.reference_temperature * h0s)
                )
                q_factor = (self.top_pressure / self.reference_pressure) * np.exp(
                    2.0 * zs / h0s / sqrt_factor
                )
                q0 = levels + (1.0 - levels) * q_factor
                ln_q0 = np.log(q0)
            result = zs - h0s * ln_q0 * (
                self.lapse_rate / (2.0 * self.reference_temperature) * ln_q0 + sqrt_factor
            )
        elif kind == VerticalType.SIGMA_Z:
            result = zs + levels * (self.top_pressure - zs)
        elif kind == VerticalType.PRESSURE:
            result = -PRESSURE_SCALE_HEIGHT * np.log(levels / 100.0 / SURFACE_PRESSURE_MB)
            result = np.broadcast_to(result, zs.shape[:-1] + result.shape)
        elif kind == VerticalType.HEIGHT_ABOVE_SEA_LEVEL:
            result = np.broadcast_to(levels, zs.shape[:-1] + levels.shape)
        elif kind == VerticalType.HEIGHT_ABOVE_TERRAIN:
            result = zs + levels
        else:
            result = np.broadcast_to(
                np.arange(levels.size, dtype='float64'), zs.shape[:-1] + levels.shape
            )

        check_result(f"{kind.name} boundary elevations", result)
        return np.array(result, dtype='float64')

    def layer_elevations(self, surface_elevation=0.0) -> np.ndarray:
        """Elevations of layer centres: the mean of each layer's boundaries."""
        boundaries = self.boundary_elevations(surface_elevation)
        return 0.5 * (boundaries[..., :-1] + boundaries[..., 1:])

    def project_z(
        self,
        elevations: np.ndarray,
        surface_elevations: Optional[np.ndarray] = None,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Bin elevations into layers.

        Parameters
        ----------
        elevations : np.ndarray
            Point elevations in meters above mean sea level
        surface_elevations : np.ndarray, optional
            Terrain height under each point (default 0), used by
            terrain-following types

        Returns
        -------
        layers : np.ndarray of int
            0-based layer index, -1 where the point is below or above the grid
        offsets : np.ndarray
            Offset from the layer centre in [-1, 1] (0 where not gridded)
        layer_elevations : np.ndarray
            Centre elevation of the containing layer (0 where not gridded)

        Notes
        -----
        A point on the boundary between two layers goes to the lower one.
        """
        z = require_finite_array("elevations", elevations)
        if surface_elevations is None:
            surface = np.zeros_like(z)
        else:
            surface = np.broadcast_to(
                require_finite_array("surface_elevations", surface_elevations), z.shape
            )
        flat_z = z.ravel()
        boundaries = self.boundary_elevations(surface.ravel())

        inside = (flat_z >= boundaries[:, 0]) & (flat_z <= boundaries[:, -1])
        layer = np.sum(boundaries[:, 1:-1] < flat_z[:, np.newaxis], axis=1)
        rows = np.arange(flat_z.size)
        lower = boundaries[rows, layer]
        upper = boundaries[rows, layer + 1]
        offsets = 2.0 * (flat_z - lower) / (upper - lower) - 1.0
        centers = 0.5 * (lower + upper)

        layer = np.where(inside, layer, -1)
        offsets = np.where(inside, np.clip(offsets, -1.0, 1.0), 0.0)
        centers = np.where(inside, centers, 0.0)
        logger.debug(f"project_z: {int(inside.sum())} of {flat_z.size} elevations in {self.layers} layers")
        return layer.reshape(z.shape), offsets.reshape(z.shape), centers.reshape(z.shape)

    def equal(self, other: "VerticalGrid") -> bool:
        """True if type and layer count match and every value is about equal."""
        if self.type != other.type or len(self.levels) != len(other.levels):
            return False
        values = (self.top_pressure, self.gravity, self.gas_constant, self.lapse_rate,
                  self.reference_temperature, self.reference_pressure) + self.levels
        others = (other.top_pressure, other.gravity, other.gas_constant, other.lapse_rate,
                  other.reference_temperature, other.reference_pressure) + other.levels
        return all(about_equal(a, b) for a, b in zip(values, others))

    def subset(self, first_layer: int, last_layer: int) -> "VerticalGrid":
        """Vertical grid of layers first_layer..last_layer (0-based, inclusive)."""
        if not 0 <= first_layer <= last_layer < self.layers:
            raise InvalidParameterError(
                "layer range", (first_layer, last_layer), f"must lie within [0, {self.layers - 1}]"
            )
        return VerticalGrid(
            type=self.type,
            levels=self.levels[first_layer:last_layer + 2],
            top_pressure=self.top_pressure,
            gravity=self.gravity,
            gas_constant=self.gas_constant,
            lapse_rate=self.lapse_rate,
            reference_temperature=self.reference_temperature,
            reference_pressure=self.reference_pressure,
        )
