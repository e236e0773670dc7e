"""
Albers equal-area conic projection.

Formulas follow Snyder (USGS PP 1395) eqs. 14-1 to 14-21 in the form used
by PROJ's `aea`, for both the sphere and the ellipsoid.
"""

import numpy as np

from .auxiliary import msfn, qsfn, phi1_iterate
from .constants import PI_OVER_2, PROJECTION_TOLERANCE
from .numerics import check_result
from .projector import ConicProjector


class Albers(ConicProjector):
    """
    Albers equal-area conic, tangent or secant, on a sphere or ellipsoid.

    Parameters
    ----------
    major_semiaxis, minor_semiaxis : float
        Ellipsoid axes in meters
    lower_latitude, upper_latitude : float
        Standard parallels in degrees: same sign, |lat| in [1, 89],
        lower <= upper. Equal values give the tangent form.
    central_longitude : float
        Central meridian in degrees, [-180, 180]
    central_latitude : float
        Latitude of the projection origin in degrees, [-89, 89]
    false_easting, false_northing : float, optional
        Meters added to projected coordinates (default 0)

    Examples
    --------
    >>> albers = Albers(6370997.0, 6370997.0, 29.5, 45.5, -96.0, 23.0)
    >>> x, y = albers.project(-100.0, 40.0)
    >>> lon, lat = albers.unproject(x, y)  # (-100.0, 40.0) to ~1e-9 degrees
    """

    NAME = "Albers"

    def _initialize(self) -> None:
        ellipsoid = self.ellipsoid
        e = ellipsoid.eccentricity
        es = ellipsoid.eccentricity_squared
        one_es = 1.0 - es
        phi1, phi2, phi0 = self._standard_parallels()
        sin_phi1 = np.sin(phi1)
        cos_phi1 = np.cos(phi1)
        secant = abs(phi1 - phi2) >= PROJECTION_TOLERANCE
        n = sin_phi1

        if e > 0.0:
            m1 = float(msfn(sin_phi1, cos_phi1, es))
            ml1 = float(qsfn(sin_phi1, e, one_es))
            if secant:
                sin_phi2 = np.sin(phi2)
                m2 = float(msfn(sin_phi2, np.cos(phi2), es))
                ml2 = float(qsfn(sin_phi2, e, one_es))
                n = (m1 * m1 - m2 * m2) / (ml2 - ml1)
            self._ec = 1.0 - 0.5 * one_es * np.log((1.0 - e) / (1.0 + e)) / e
            self._c = m1 * m1 + n * ml1
        else:
            if secant:
                n = 0.5 * (n + np.sin(phi2))
            self._ec = 2.0
            self._c = cos_phi1 * cos_phi1 + 2.0 * n * sin_phi1

        self._n = float(n)
        self._dd = 1.0 / self._n
        self._e = e
        self._one_es = one_es
        self._rho0 = self._dd * np.sqrt(self._c - self._n * float(qsfn(np.sin(phi0), e, one_es)))
        check_result("Albers initialization", np.array([self._n, self._c, self._rho0]))

    def _forward(self, lam, phi):
        rho = self._c - self._n * qsfn(np.sin(phi), self._e, self._one_es)
        rho = self._dd * np.sqrt(rho)
        n_lam = self._n * lam
        x = rho * np.sin(n_lam)
        y = self._rho0 - rho * np.cos(n_lam)
        return x, y

    def _inverse(self, x, y):
        n = self._n
        y = self._rho0 - y
        rho = np.hypot(x, y)
        if n < 0.0:
            rho = -rho
            x = -x
            y = -y
        q = rho / self._dd
        q = (self._c - q * q) / n
        at_pole = np.abs(self._ec - np.abs(q)) <= PROJECTION_TOLERANCE
        pole = np.copysign(PI_OVER_2, q)

        if self._e > 0.0:
            # Beyond the pole the point has no preimage
            beyond = (np.abs(q) > self._ec) & ~at_pole
            interior = np.where(at_pole | beyond, 0.0, q)
            phi = np.where(at_pole, pole, phi1_iterate(interior, self._e, self._one_es))
            phi = np.where(beyond, np.nan, phi)
        else:
            half_q = 0.5 * q
            phi = np.where(np.abs(half_q) < 1.0, np.arcsin(np.clip(half_q, -1.0, 1.0)), pole)

        lam = np.arctan2(x, y) / n
        origin = rho == 0.0
        phi = np.where(origin, PI_OVER_2 if n > 0.0 else -PI_OVER_2, phi)
        lam = np.where(origin, 0.0, lam)
        return lam, phi

    def to_proj_dict(self):
        return self._proj_conic("aea")
