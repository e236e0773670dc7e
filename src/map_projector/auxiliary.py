"""
Auxiliary functions of ellipsoidal map-projection theory.

msfn, qsfn, tsfn and ssfn are the standard conformal/authalic helpers
(Snyder, "Map Projections - A Working Manual", USGS PP 1395, 1987).
phi1_iterate and phi2_iterate invert qsfn and tsfn for latitude.

All functions accept scalars or numpy arrays and return float64 arrays
(0-d for scalar input).
"""

import numpy as np

from .constants import (
    PI_OVER_2,
    PROJECTION_TOLERANCE,
    CONVERGENCE_TOLERANCE,
    MAXIMUM_ITERATIONS,
)
from .exceptions import InvalidParameterError
from .numerics import check_result


def _check_eccentricity(eccentricity: float) -> None:
    if not 0.0 <= eccentricity < 1.0:
        raise InvalidParameterError("eccentricity", eccentricity, "must be in [0, 1)")


def msfn(sin_phi, cos_phi, eccentricity_squared: float) -> np.ndarray:
    """
    Radius of the parallel divided by the major semiaxis.

    m = cos(phi) / sqrt(1 - e^2 sin^2(phi))
    """
    sin_phi = np.asarray(sin_phi, dtype='float64')
    cos_phi = np.asarray(cos_phi, dtype='float64')
    result = cos_phi / np.sqrt(1.0 - eccentricity_squared * sin_phi * sin_phi)
    check_result("msfn", result)
    return result


def qsfn(sin_phi, eccentricity: float, one_minus_es: float) -> np.ndarray:
    """
    Authalic (equal-area) function q of Snyder eq. 3-12.

    Parameters
    ----------
    sin_phi : array_like
        Sine of latitude, in [-1, 1]
    eccentricity : float
        Ellipsoid eccentricity in [0, 1)
    one_minus_es : float
        1 - eccentricity^2

    Returns
    -------
    np.ndarray
        q, equal to 2 sin(phi) on a sphere.
    """
    _check_eccentricity(eccentricity)
    sin_phi = np.asarray(sin_phi, dtype='float64')
    if eccentricity < PROJECTION_TOLERANCE:
        return sin_phi + sin_phi
    con = eccentricity * sin_phi
    result = one_minus_es * (
        sin_phi / (1.0 - con * con)
        - (0.5 / eccentricity) * np.log((1.0 - con) / (1.0 + con))
    )
    check_result("qsfn", result)
    return result


def tsfn(phi, sin_phi, eccentricity: float) -> np.ndarray:
    """
    Conformal function t of Snyder eq. 15-9.

    t = tan((pi/2 - phi) / 2) / ((1 - e sin(phi)) / (1 + e sin(phi)))^(e/2)
    """
    _check_eccentricity(eccentricity)
    phi = np.asarray(phi, dtype='float64')
    sin_phi = np.asarray(sin_phi, dtype='float64')
    con = eccentricity * sin_phi
    with np.errstate(divide='ignore', invalid='ignore'):
        result = np.tan(0.5 * (PI_OVER_2 - phi)) / np.power(
            (1.0 - con) / (1.0 + con), 0.5 * eccentricity
        )
    check_result("tsfn", result)
    return result


def ssfn(phi, sin_phi, eccentricity: float) -> np.ndarray:
    """
    Conformal function used by the oblique stereographic projection.

    s = tan((pi/2 + phi) / 2) * ((1 - e sin(phi)) / (1 + e sin(phi)))^(e/2)
    """
    _check_eccentricity(eccentricity)
    phi = np.asarray(phi, dtype='float64')
    sin_phi = np.asarray(sin_phi, dtype='float64')
    con = eccentricity * sin_phi
    result = np.tan(0.5 * (PI_OVER_2 + phi)) * np.power(
        (1.0 - con) / (1.0 + con), 0.5 * eccentricity
    )
    check_result("ssfn", result)
    return result


def phi1_iterate(qs, eccentricity: float, one_minus_es: float) -> np.ndarray:
    """
    Latitude (radians) whose authalic function qsfn equals qs.

    Parameters
    ----------
    qs : array_like
        Value of qsfn to invert
    eccentricity : float
        Ellipsoid eccentricity in [0, 1)
    one_minus_es : float
        1 - eccentricity^2

    Returns
    -------
    np.ndarray
        Latitude in radians.

    Notes
    -----
    Seeds with asin(qs / 2) and applies Snyder eq. 3-16 at most
    MAXIMUM_ITERATIONS times, stopping once every correction is below
    CONVERGENCE_TOLERANCE. Non-converged points keep their last estimate.
    """
    _check_eccentricity(eccentricity)
    qs = np.asarray(qs, dtype='float64')
    with np.errstate(invalid='ignore'):
        phi = np.arcsin(0.5 * qs)
    check_result("phi1_iterate", phi)

    if eccentricity > PROJECTION_TOLERANCE:
        active = np.ones(phi.shape, dtype=bool)
        with np.errstate(divide='ignore', invalid='ignore'):
            for _ in range(MAXIMUM_ITERATIONS):
                sin_phi = np.sin(phi)
                cos_phi = np.cos(phi)
                con = eccentricity * sin_phi
                com = 1.0 - con * con
                delta = 0.5 * com * com / cos_phi * (
                    qs / one_minus_es
                    - sin_phi / com
                    + 0.5 / eccentricity * np.log((1.0 - con) / (1.0 + con))
                )
                delta = np.where(active, delta, 0.0)
                phi = phi + delta
                active = active & (np.abs(delta) >= CONVERGENCE_TOLERANCE)
                if not np.any(active):
                    break

    check_result("phi1_iterate", phi)
    return phi


def phi2_iterate(ts, eccentricity: float) -> np.ndarray:
    """
    Latitude (radians) whose conformal function tsfn equals ts.

    Seeds with the spherical solution pi/2 - 2 atan(ts) and applies the
    fixed-point update of Snyder eq. 7-9 at most MAXIMUM_ITERATIONS times.
    """
    _check_eccentricity(eccentricity)
    ts = np.asarray(ts, dtype='float64')
    phi = PI_OVER_2 - 2.0 * np.arctan(ts)
    half_e = 0.5 * eccentricity

    if eccentricity > 0.0:
        active = np.ones(phi.shape, dtype=bool)
        for _ in range(MAXIMUM_ITERATIONS):
            con = eccentricity * np.sin(phi)
            delta = (
                PI_OVER_2
                - 2.0 * np.arctan(ts * np.power((1.0 - con) / (1.0 + con), half_e))
                - phi
            )
            delta = np.where(active, delta, 0.0)
            phi = phi + delta
            active = active & (np.abs(delta) >= CONVERGENCE_TOLERANCE)
            if not np.any(active):
                break

    check_result("phi2_iterate", phi)
    return phi
