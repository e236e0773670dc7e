"""
Stereographic azimuthal conformal projection.

Polar, equatorial and oblique aspects on a sphere or ellipsoid, following
Snyder eqs. 21-1 to 21-45 as arranged in PROJ's `stere`. The ellipsoidal
expressions are used for the sphere too; with e = 0 the conformal latitude
X equals phi and they reduce to the spherical forms.
"""

import logging
import numpy as np
from typing import Dict

from .auxiliary import tsfn, ssfn
from .constants import (
    PI_OVER_2,
    PROJECTION_TOLERANCE,
    CONVERGENCE_TOLERANCE,
    MAXIMUM_ITERATIONS,
    LATITUDE_RANGE,
)
from .numerics import require_in_range, check_result
from .projector import Projector, _parameter, is_pole

logger = logging.getLogger(__name__)

NORTH_POLE = "north_pole"
SOUTH_POLE = "south_pole"
EQUATORIAL = "equatorial"
OBLIQUE = "oblique"


class Stereographic(Projector):
    """
    Stereographic projection centred on (central_longitude, central_latitude).

    Parameters
    ----------
    major_semiaxis, minor_semiaxis : float
        Ellipsoid axes in meters
    central_longitude : float
        Longitude of the centre in degrees, [-180, 180]
    central_latitude : float
        Latitude of the centre in degrees, [-90, 90]; +/-90 selects the
        polar aspect, 0 the equatorial one, anything else the oblique one
    secant_latitude : float
        Latitude of true scale in degrees, [-90, 90]. The scale factor at
        the centre is k0 = (1 + sin|secant_latitude|) / 2
    false_easting, false_northing : float, optional
        Meters added to projected coordinates (default 0)

    Notes
    -----
    The centre projects to (false_easting, false_northing). The point
    antipodal to the centre has no image and raises DomainError.
    """

    NAME = "Stereographic"
    PARAMETER_NAMES = (
        "major_semiaxis",
        "minor_semiaxis",
        "central_longitude",
        "central_latitude",
        "secant_latitude",
        "false_easting",
        "false_northing",
    )

    def __init__(
        self,
        major_semiaxis: float,
        minor_semiaxis: float,
        central_longitude: float,
        central_latitude: float,
        secant_latitude: float,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
    ):
        super().__init__(
            major_semiaxis=major_semiaxis,
            minor_semiaxis=minor_semiaxis,
            central_longitude=central_longitude,
            central_latitude=central_latitude,
            secant_latitude=secant_latitude,
            false_easting=false_easting,
            false_northing=false_northing,
        )

    central_latitude = _parameter("central_latitude", "Latitude of the projection centre in degrees.")
    secant_latitude = _parameter("secant_latitude", "Latitude of true scale in degrees.")

    @property
    def subtype(self) -> str:
        """One of 'north_pole', 'south_pole', 'equatorial', 'oblique'."""
        return self._subtype

    def _validate(self, parameters):
        result = dict(parameters)
        for name in ("central_latitude", "secant_latitude"):
            result[name] = require_in_range(name, parameters[name], *LATITUDE_RANGE)
        return result

    def _initialize(self) -> None:
        e = self.ellipsoid.eccentricity
        phits = abs(np.radians(self.secant_latitude))
        k0 = 0.5 * (1.0 + np.sin(phits))
        phi0 = np.radians(self.central_latitude)

        if is_pole(phi0, PROJECTION_TOLERANCE):
            subtype = SOUTH_POLE if phi0 < 0.0 else NORTH_POLE
        elif abs(phi0) > PROJECTION_TOLERANCE:
            subtype = OBLIQUE
        else:
            subtype = EQUATORIAL
            phi0 = 0.0

        sin_x1, cos_x1 = 0.0, 1.0
        if subtype in (NORTH_POLE, SOUTH_POLE):
            if is_pole(phits, PROJECTION_TOLERANCE):
                akm1 = 2.0 * k0 / np.sqrt(
                    np.power(1.0 + e, 1.0 + e) * np.power(1.0 - e, 1.0 - e)
                )
            else:
                t = np.sin(phits)
                akm1 = np.cos(phits) / float(tsfn(phits, t, e))
                akm1 /= np.sqrt(1.0 - (e * t) ** 2)
        else:
            t = np.sin(phi0)
            x1 = 2.0 * np.arctan(float(ssfn(phi0, t, e))) - PI_OVER_2
            sin_x1, cos_x1 = np.sin(x1), np.cos(x1)
            akm1 = 2.0 * k0 * np.cos(phi0) / np.sqrt(1.0 - (e * t) ** 2)

        check_result("Stereographic initialization", np.array([akm1, sin_x1, cos_x1]))
        self._e = e
        self._subtype = subtype
        self._akm1 = float(akm1)
        self._sin_x1 = float(sin_x1)
        self._cos_x1 = float(cos_x1)
        logger.debug(f"Stereographic subtype {subtype}, akm1 = {self._akm1}")

    def _forward(self, lam, phi):
        e = self._e
        sin_lam = np.sin(lam)
        cos_lam = np.cos(lam)
        sin_phi = np.sin(phi)

        if self._subtype == NORTH_POLE:
            rho = self._akm1 * tsfn(phi, sin_phi, e)
            return rho * sin_lam, -rho * cos_lam
        if self._subtype == SOUTH_POLE:
            rho = self._akm1 * tsfn(-phi, -sin_phi, e)
            return rho * sin_lam, rho * cos_lam

        chi = 2.0 * np.arctan(ssfn(phi, sin_phi, e)) - PI_OVER_2
        sin_chi = np.sin(chi)
        cos_chi = np.cos(chi)
        a = self._akm1 / (
            self._cos_x1
            * (1.0 + self._sin_x1 * sin_chi + self._cos_x1 * cos_chi * cos_lam)
        )
        x = a * cos_chi * sin_lam
        y = a * (self._cos_x1 * sin_chi - self._sin_x1 * cos_chi * cos_lam)
        return x, y

    def _inverse(self, x, y):
        e = self._e
        rho = np.hypot(x, y)

        if self._subtype in (NORTH_POLE, SOUTH_POLE):
            if self._subtype == NORTH_POLE:
                y = -y
            tp = -rho / self._akm1
            phi_l = PI_OVER_2 - 2.0 * np.arctan(tp)
            half_pi = -PI_OVER_2
            half_e = -0.5 * e
        else:
            tp = 2.0 * np.arctan2(rho * self._cos_x1, self._akm1)
            cos_tp = np.cos(tp)
            sin_tp = np.sin(tp)
            safe_rho = np.where(rho == 0.0, 1.0, rho)
            phi_l = np.arcsin(np.clip(
                cos_tp * self._sin_x1 + y * sin_tp * self._cos_x1 / safe_rho, -1.0, 1.0
            ))
            tp = np.tan(0.5 * (PI_OVER_2 + phi_l))
            x = x * sin_tp
            y = rho * self._cos_x1 * cos_tp - y * self._sin_x1 * sin_tp
            half_pi = PI_OVER_2
            half_e = 0.5 * e

        phi = phi_l
        active = np.ones(np.shape(phi), dtype=bool)
        for _ in range(MAXIMUM_ITERATIONS):
            con = e * np.sin(phi_l)
            phi = 2.0 * np.arctan(tp * np.power((1.0 + con) / (1.0 - con), half_e)) - half_pi
            phi = np.where(active, phi, phi_l)
            active = active & (np.abs(phi_l - phi) >= CONVERGENCE_TOLERANCE)
            phi_l = phi
            if not np.any(active):
                break

        if self._subtype == SOUTH_POLE:
            phi = -phi

        lam = np.where((x == 0.0) & (y == 0.0), 0.0, np.arctan2(x, y))
        return lam, phi

    def to_proj_dict(self) -> Dict[str, object]:
        result = {"proj": "stere", "lat_0": self.central_latitude}
        if self._subtype in (NORTH_POLE, SOUTH_POLE):
            result["lat_ts"] = abs(self.secant_latitude) * (-1.0 if self._subtype == SOUTH_POLE else 1.0)
        else:
            result["k_0"] = float(0.5 * (1.0 + np.sin(abs(np.radians(self.secant_latitude)))))
        result.update(self._proj_common())
        return result
