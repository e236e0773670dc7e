"""
Mercator cylindrical conformal projection.
"""

import numpy as np

from .auxiliary import tsfn, phi2_iterate
from .projector import Projector


class Mercator(Projector):
    """
    Normal-aspect Mercator on a sphere or ellipsoid, true scale at the equator.

    Parameters
    ----------
    major_semiaxis, minor_semiaxis : float
        Ellipsoid axes in meters
    central_longitude : float
        Central meridian in degrees, [-180, 180]
    false_easting, false_northing : float, optional
        Meters added to projected coordinates (default 0)

    Notes
    -----
    y = -a ln(tsfn(phi)), which is a ln(tan(pi/4 + phi/2)) on the sphere.
    Poles project to infinity; latitudes within SINGULARITY_NUDGE degrees of
    a pole are nudged first, so y stays finite (about 19 a at the nudge).
    """

    NAME = "Mercator"
    PARAMETER_NAMES = (
        "major_semiaxis",
        "minor_semiaxis",
        "central_longitude",
        "false_easting",
        "false_northing",
    )

    def __init__(
        self,
        major_semiaxis: float,
        minor_semiaxis: float,
        central_longitude: float,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
    ):
        super().__init__(
            major_semiaxis=major_semiaxis,
            minor_semiaxis=minor_semiaxis,
            central_longitude=central_longitude,
            false_easting=false_easting,
            false_northing=false_northing,
        )

    def _validate(self, parameters):
        return dict(parameters)

    def _initialize(self) -> None:
        self._e = self.ellipsoid.eccentricity

    def _forward(self, lam, phi):
        x = np.asarray(lam, dtype='float64')
        y = -np.log(tsfn(phi, np.sin(phi), self._e))
        return x, y

    def _inverse(self, x, y):
        phi = phi2_iterate(np.exp(-y), self._e)
        return x, phi

    def to_proj_dict(self):
        result = {"proj": "merc"}
        result.update(self._proj_common())
        return result
