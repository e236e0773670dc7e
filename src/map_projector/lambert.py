"""
Lambert conformal conic projection.
"""

import numpy as np

from .auxiliary import msfn, tsfn, phi2_iterate
from .constants import PI_OVER_2, PROJECTION_TOLERANCE
from .numerics import check_result
from .projector import ConicProjector, is_pole


class Lambert(ConicProjector):
    """
    Lambert conformal conic, tangent or secant, on a sphere or ellipsoid.

    Parameters are those of Albers: ellipsoid axes, the two standard
    parallels, the central longitude/latitude and false easting/northing.

    Notes
    -----
    The cone constant n is sin(lower_latitude) in the tangent case and
    ln(m1 / m2) / ln(t1 / t2) in the secant case (Snyder eq. 15-8), where m
    and t are msfn and tsfn at the standard parallels. Since tsfn reduces to
    tan(pi/4 - phi/2) when e = 0 the same expressions serve the sphere.
    """

    NAME = "Lambert"

    def _initialize(self) -> None:
        ellipsoid = self.ellipsoid
        e = ellipsoid.eccentricity
        es = ellipsoid.eccentricity_squared
        phi1, phi2, phi0 = self._standard_parallels()
        sin_phi1 = np.sin(phi1)
        m1 = float(msfn(sin_phi1, np.cos(phi1), es))
        t1 = float(tsfn(phi1, sin_phi1, e))
        n = sin_phi1

        if abs(phi1 - phi2) >= PROJECTION_TOLERANCE:
            sin_phi2 = np.sin(phi2)
            m2 = float(msfn(sin_phi2, np.cos(phi2), es))
            t2 = float(tsfn(phi2, sin_phi2, e))
            n = np.log(m1 / m2) / np.log(t1 / t2)

        self._n = float(n)
        self._e = e
        self._c = m1 * np.power(t1, -self._n) / self._n

        if is_pole(phi0, PROJECTION_TOLERANCE):
            self._rho0 = 0.0
        else:
            self._rho0 = self._c * np.power(float(tsfn(phi0, np.sin(phi0), e)), self._n)

        check_result("Lambert initialization", np.array([self._n, self._c, self._rho0]))

    def _forward(self, lam, phi):
        rho = self._c * np.power(tsfn(phi, np.sin(phi), self._e), self._n)
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
        origin = rho == 0.0
        safe_rho = np.where(origin, self._c, rho)
        phi = phi2_iterate(np.power(safe_rho / self._c, 1.0 / n), self._e)
        lam = np.arctan2(x, y) / n
        phi = np.where(origin, PI_OVER_2 if n > 0.0 else -PI_OVER_2, phi)
        lam = np.where(origin, 0.0, lam)
        return lam, phi

    def to_proj_dict(self):
        return self._proj_conic("lcc")
