"""
Ellipsoid model shared by all projections.
"""

import math
import numpy as np
from dataclasses import dataclass, field

from .constants import (
    NAMED_ELLIPSOIDS,
    ELLIPSOID_ALIASES,
    WGS84_AXIS_RATIO_SQUARED,
    INVERSE_WGS84_AXIS_RATIO_SQUARED,
)
from .exceptions import InvalidParameterError
from .numerics import is_valid_ellipsoid, is_valid_latitude, about_equal


@dataclass(frozen=True)
class Ellipsoid:
    """
    Planet approximation defined by its equatorial and polar semi-axes.

    Attributes
    ----------
    major_semiaxis : float
        Equatorial radius in meters
    minor_semiaxis : float
        Polar radius in meters, 0 < minor <= major
    eccentricity : float
        Derived, in [0, 1); 0 for a sphere
    eccentricity_squared : float
        Derived square of the eccentricity

    Notes
    -----
    Instances are immutable; a projector whose ellipsoid changes receives a
    new Ellipsoid and recomputes its derived terms.
    """

    major_semiaxis: float
    minor_semiaxis: float
    eccentricity: float = field(init=False, repr=False)
    eccentricity_squared: float = field(init=False, repr=False)

    def __post_init__(self):
        major = float(self.major_semiaxis)
        minor = float(self.minor_semiaxis)
        if not is_valid_ellipsoid(major, minor):
            raise InvalidParameterError(
                "ellipsoid", (self.major_semiaxis, self.minor_semiaxis),
                "axes must be finite, positive and major >= minor"
            )
        if major == minor:
            eccentricity = 0.0
        else:
            eccentricity = math.sqrt(major * major - minor * minor) / major
            eccentricity = min(eccentricity, 1.0)
        object.__setattr__(self, "major_semiaxis", major)
        object.__setattr__(self, "minor_semiaxis", minor)
        object.__setattr__(self, "eccentricity", eccentricity)
        object.__setattr__(self, "eccentricity_squared", eccentricity * eccentricity)

    @classmethod
    def from_name(cls, name: str) -> "Ellipsoid":
        """
        Look up a reference ellipsoid by name (case-insensitive).

        Parameters
        ----------
        name : str
            E.g. 'wgs_1984', 'WGS84', 'grs80', 'clarke_1866', 'wrf'

        Returns
        -------
        Ellipsoid
        """
        key = name.strip().lower().replace("-", "_").replace(" ", "_")
        key = ELLIPSOID_ALIASES.get(key.replace("_", ""), ELLIPSOID_ALIASES.get(key, key))
        if key not in NAMED_ELLIPSOIDS:
            raise InvalidParameterError(
                "ellipsoid name", name, f"known names: {', '.join(sorted(NAMED_ELLIPSOIDS))}"
            )
        return cls(*NAMED_ELLIPSOIDS[key])

    @classmethod
    def sphere(cls, radius: float) -> "Ellipsoid":
        """Return a sphere of the given radius."""
        return cls(radius, radius)

    @property
    def is_sphere(self) -> bool:
        """True if major and minor axes are identical."""
        return self.eccentricity == 0.0

    @property
    def flattening(self) -> float:
        """(major - minor) / major."""
        return (self.major_semiaxis - self.minor_semiaxis) / self.major_semiaxis

    def equal(self, other: "Ellipsoid") -> bool:
        """True if both axes are about equal."""
        return (
            about_equal(self.major_semiaxis, other.major_semiaxis)
            and about_equal(self.minor_semiaxis, other.minor_semiaxis)
        )


def _adjust_latitude(name: str, latitude, factor: float):
    if not is_valid_latitude(latitude):
        raise InvalidParameterError(name, latitude, "must be in [-90, 90]")
    values = np.asarray(latitude, dtype='float64')
    result = np.degrees(np.arctan(np.tan(np.radians(values)) * factor))
    # tan() does not reach infinity at the poles; keep them exact
    result = np.where(np.abs(values) == 90.0, values, result)
    return float(result) if result.ndim == 0 else result


def latitude_sphere(latitude):
    """
    Convert geodetic latitude on the WGS84 spheroid to latitude on a sphere.

    Parameters
    ----------
    latitude : float or np.ndarray
        Degrees in [-90, 90]

    Returns
    -------
    float or np.ndarray
        atan(tan(latitude) * (b/a)^2) in degrees. Unchanged at the equator
        and the poles; elsewhere shifted toward the equator by at most
        about 0.19 degrees.
    """
    return _adjust_latitude("latitude", latitude, WGS84_AXIS_RATIO_SQUARED)


def latitude_wgs84(latitude):
    """Convert latitude on a sphere to geodetic latitude on WGS84 (inverse of latitude_sphere)."""
    return _adjust_latitude("latitude", latitude, INVERSE_WGS84_AXIS_RATIO_SQUARED)
