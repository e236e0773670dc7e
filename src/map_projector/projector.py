"""
Projector base class: the capability contract shared by all projections.

A projector is a value holding its public parameters plus the derived
terms computed from them. Derived terms are recomputed whenever a parameter
changes, and an update that fails validation leaves the projector as it was.
project() and unproject() are pure functions of that state, so one instance
can serve many threads as long as nobody is changing its parameters.
"""

import logging
import numpy as np
import pyproj
from abc import ABC, abstractmethod
from typing import Dict, Tuple, Union

from .constants import (
    PI_OVER_2,
    TWO_PI,
    SINGULARITY_NUDGE,
    LONGITUDE_RANGE,
    LATITUDE_RANGE,
    STANDARD_PARALLEL_RANGE,
    CONIC_CENTRAL_LATITUDE_RANGE,
)
from .ellipsoid import Ellipsoid
from .exceptions import InvalidParameterError
from .numerics import (
    about_equal,
    require_in_range,
    require_finite,
    require_coordinates,
    require_finite_array,
    check_result,
)

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


def _parameter(name: str, doc: str) -> property:
    """Property reading/validating/updating one projector parameter."""

    def getter(self):
        return self._parameters[name]

    def setter(self, value):
        self._update(**{name: value})

    return property(getter, setter, doc=doc)


class Projector(ABC):
    """
    Abstract forward/inverse map projection.

    Subclasses declare PARAMETER_NAMES (constructor order) and implement
    _validate, _initialize, _forward and _inverse. _forward receives the
    longitude offset from the central meridian and the latitude, both in
    radians, and returns coordinates in units of the major semiaxis with no
    false easting/northing applied. _inverse is its exact counterpart.
    """

    NAME = "Projector"
    PARAMETER_NAMES: Tuple[str, ...] = ()

    major_semiaxis = _parameter("major_semiaxis", "Equatorial radius in meters.")
    minor_semiaxis = _parameter("minor_semiaxis", "Polar radius in meters.")
    central_longitude = _parameter("central_longitude", "Central meridian in degrees.")
    false_easting = _parameter("false_easting", "Meters added to projected x.")
    false_northing = _parameter("false_northing", "Meters added to projected y.")

    def __init__(self, **parameters):
        self._parameters: Dict[str, float] = {}
        self._assign(parameters)

    # ------------------------------------------------------------------
    # Parameter handling
    # ------------------------------------------------------------------

    def _assign(self, parameters: Dict[str, float]) -> None:
        missing = [name for name in self.PARAMETER_NAMES if name not in parameters]
        unknown = [name for name in parameters if name not in self.PARAMETER_NAMES]
        if missing or unknown:
            raise TypeError(
                f"{self.NAME} parameters: missing {missing}, unexpected {unknown}"
            )
        validated = self._validate_common(parameters)
        validated = self._validate(validated)
        ellipsoid = Ellipsoid(validated["major_semiaxis"], validated["minor_semiaxis"])

        # Commit only after everything validated and derived terms computed
        previous = (self._parameters, getattr(self, "_ellipsoid", None))
        self._parameters = {name: validated[name] for name in self.PARAMETER_NAMES}
        self._ellipsoid = ellipsoid
        try:
            self._initialize()
        except Exception:
            self._parameters, self._ellipsoid = previous
            if previous[1] is not None:
                self._initialize()
            raise
        logger.debug(f"Initialized {self!r}")

    def _validate_common(self, parameters: Dict[str, float]) -> Dict[str, float]:
        result = dict(parameters)
        Ellipsoid(parameters["major_semiaxis"], parameters["minor_semiaxis"])
        result["major_semiaxis"] = float(parameters["major_semiaxis"])
        result["minor_semiaxis"] = float(parameters["minor_semiaxis"])
        result["central_longitude"] = require_in_range(
            "central_longitude", parameters["central_longitude"], *LONGITUDE_RANGE
        )
        result["false_easting"] = require_finite("false_easting", parameters["false_easting"])
        result["false_northing"] = require_finite("false_northing", parameters["false_northing"])
        return result

    def _update(self, **changes) -> None:
        parameters = dict(self._parameters)
        parameters.update(changes)
        self._assign(parameters)

    @abstractmethod
    def _validate(self, parameters: Dict[str, float]) -> Dict[str, float]:
        """Validate projection-specific parameters; return normalized copy."""

    @abstractmethod
    def _initialize(self) -> None:
        """Compute derived terms from self._parameters and self._ellipsoid."""

    @abstractmethod
    def _forward(self, lam: np.ndarray, phi: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Unit-scale projection of (longitude offset, latitude) radians."""

    @abstractmethod
    def _inverse(self, x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Unit-scale inverse returning (longitude offset, latitude) radians."""

    @abstractmethod
    def to_proj_dict(self) -> Dict[str, object]:
        """Return the equivalent PROJ parameter dictionary."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def ellipsoid(self) -> Ellipsoid:
        """The projector's Ellipsoid."""
        return self._ellipsoid

    @ellipsoid.setter
    def ellipsoid(self, value: Ellipsoid) -> None:
        self._update(major_semiaxis=value.major_semiaxis, minor_semiaxis=value.minor_semiaxis)

    def name(self) -> str:
        """Projection name, e.g. 'Albers'."""
        return self.NAME

    def parameters(self) -> Dict[str, float]:
        """Public parameters in constructor order."""
        return {name: self._parameters[name] for name in self.PARAMETER_NAMES}

    def equal(self, other: "Projector") -> bool:
        """True if other is the same kind of projection with about-equal parameters."""
        if type(other) is not type(self):
            return False
        return all(
            about_equal(self._parameters[name], other._parameters[name])
            for name in self.PARAMETER_NAMES
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Projector):
            return NotImplemented
        return self.equal(other)

    __hash__ = None

    def clone(self) -> "Projector":
        """Return an independent copy with the same parameters."""
        return type(self)(**self.parameters())

    def to_crs(self) -> pyproj.CRS:
        """Return a pyproj CRS describing this projection."""
        return pyproj.CRS.from_dict(self.to_proj_dict())

    def _proj_common(self) -> Dict[str, object]:
        return {
            "lon_0": self.central_longitude,
            "x_0": self.false_easting,
            "y_0": self.false_northing,
            "a": self.major_semiaxis,
            "b": self.minor_semiaxis,
            "units": "m",
        }

    def __repr__(self) -> str:
        arguments = ", ".join(f"{name}={value!r}" for name, value in self.parameters().items())
        return f"{self.NAME}({arguments})"

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def project(self, longitude: ArrayLike, latitude: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Project longitude/latitude (degrees) to x/y (meters).

        Parameters
        ----------
        longitude : float or np.ndarray
            Longitudes in [-180, 180]
        latitude : float or np.ndarray
            Latitudes in [-90, 90], broadcastable against longitude

        Returns
        -------
        x, y : float or np.ndarray
            Projected coordinates, floats for scalar input.

        Raises
        ------
        InvalidParameterError
            If a coordinate is out of range or NaN.
        DomainError
            If a point has no finite image under this projection.

        Notes
        -----
        Points closer than SINGULARITY_NUDGE degrees to a pole or to
        +/-180 longitude are moved to that distance first, so unproject()
        returns the original longitude instead of the central meridian.
        """
        lon, lat = require_coordinates(longitude, latitude)
        scalar = lon.ndim == 0
        lam, phi = self._prepare(lon, lat)
        with np.errstate(all='ignore'):
            x, y = self._forward(lam, phi)
        a = self.major_semiaxis
        x = np.asarray(x) * a + self.false_easting
        y = np.asarray(y) * a + self.false_northing
        check_result(f"{self.NAME}.project", x, y)
        return _restore(x, y, scalar)

    def unproject(self, x: ArrayLike, y: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Unproject x/y (meters) to longitude/latitude (degrees).

        Returns
        -------
        longitude, latitude : float or np.ndarray
            Longitude in [-180, 180] and latitude in [-90, 90].

        Raises
        ------
        DomainError
            If a point lies outside the region this projection can invert.
        """
        xs = require_finite_array("x", x)
        ys = require_finite_array("y", y)
        xs, ys = np.broadcast_arrays(xs, ys)
        scalar = xs.ndim == 0
        a = self.major_semiaxis
        xp = (xs - self.false_easting) / a
        yp = (ys - self.false_northing) / a
        with np.errstate(all='ignore'):
            lam, phi = self._inverse(xp, yp)
        longitude = np.degrees(np.asarray(lam) + self._lambda0)
        latitude = np.degrees(np.asarray(phi))
        check_result(f"{self.NAME}.unproject", longitude, latitude)
        outside = (longitude < LONGITUDE_RANGE[0]) | (longitude > LONGITUDE_RANGE[1])
        longitude = np.where(outside, np.mod(longitude + 180.0, 360.0) - 180.0, longitude)
        latitude = np.clip(latitude, *LATITUDE_RANGE)
        return _restore(longitude, latitude, scalar)

    @property
    def _lambda0(self) -> float:
        return np.radians(self.central_longitude)

    def _prepare(self, lon: np.ndarray, lat: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Nudge off singularities, convert to radians, wrap the meridian offset."""
        lat = np.where(
            90.0 - np.abs(lat) < SINGULARITY_NUDGE,
            np.copysign(90.0 - SINGULARITY_NUDGE, lat),
            lat,
        )
        lon = np.where(
            180.0 - np.abs(lon) < SINGULARITY_NUDGE,
            np.copysign(180.0 - SINGULARITY_NUDGE, lon),
            lon,
        )
        lam = np.radians(lon) - self._lambda0
        lam = np.where(lam > np.pi, lam - TWO_PI, lam)
        lam = np.where(lam <= -np.pi, lam + TWO_PI, lam)
        phi = np.radians(lat)
        return lam, phi


class ConicProjector(Projector):
    """Shared parameter validation of the two-standard-parallel conics."""

    lower_latitude = _parameter("lower_latitude", "Lower standard parallel in degrees.")
    upper_latitude = _parameter("upper_latitude", "Upper standard parallel in degrees.")
    central_latitude = _parameter("central_latitude", "Latitude of origin in degrees.")

    PARAMETER_NAMES = (
        "major_semiaxis",
        "minor_semiaxis",
        "lower_latitude",
        "upper_latitude",
        "central_longitude",
        "central_latitude",
        "false_easting",
        "false_northing",
    )

    def __init__(
        self,
        major_semiaxis: float,
        minor_semiaxis: float,
        lower_latitude: float,
        upper_latitude: float,
        central_longitude: float,
        central_latitude: float,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
    ):
        super().__init__(
            major_semiaxis=major_semiaxis,
            minor_semiaxis=minor_semiaxis,
            lower_latitude=lower_latitude,
            upper_latitude=upper_latitude,
            central_longitude=central_longitude,
            central_latitude=central_latitude,
            false_easting=false_easting,
            false_northing=false_northing,
        )

    def _validate(self, parameters):
        result = dict(parameters)
        result["central_latitude"] = require_in_range(
            "central_latitude", parameters["central_latitude"], *CONIC_CENTRAL_LATITUDE_RANGE
        )
        low, high = STANDARD_PARALLEL_RANGE
        lower = require_in_range("lower_latitude", parameters["lower_latitude"], -high, high)
        upper = require_in_range("upper_latitude", parameters["upper_latitude"], -high, high)
        if abs(lower) < low or abs(upper) < low:
            raise InvalidParameterError(
                "standard parallels", (lower, upper), f"magnitudes must be in [{low}, {high}]"
            )
        if lower > upper:
            raise InvalidParameterError("standard parallels", (lower, upper), "lower must be <= upper")
        if (lower < 0.0) != (upper < 0.0):
            raise InvalidParameterError("standard parallels", (lower, upper), "must have the same sign")
        result["lower_latitude"] = lower
        result["upper_latitude"] = upper
        return result

    def _standard_parallels(self) -> Tuple[float, float, float]:
        """(phi1, phi2, phi0) in radians."""
        return (
            np.radians(self.lower_latitude),
            np.radians(self.upper_latitude),
            np.radians(self.central_latitude),
        )

    def _proj_conic(self, proj: str) -> Dict[str, object]:
        result = {
            "proj": proj,
            "lat_1": self.lower_latitude,
            "lat_2": self.upper_latitude,
            "lat_0": self.central_latitude,
        }
        result.update(self._proj_common())
        return result


def _restore(x: np.ndarray, y: np.ndarray, scalar: bool):
    if scalar:
        return float(x), float(y)
    return x, y


def is_pole(phi: float, tolerance: float) -> bool:
    """True if |phi| (radians) is within tolerance of pi/2."""
    return abs(abs(phi) - PI_OVER_2) < tolerance
