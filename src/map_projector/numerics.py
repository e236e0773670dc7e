"""
Tolerant floating-point helpers shared by all projections.

These functions never let NaN leak silently: comparisons treat NaN by bit
pattern, and the validation helpers raise instead of returning a
plausible-looking wrong value.
"""

import math
import struct
import sys
import numpy as np
from typing import Tuple

from .constants import (
    TOLERANCE,
    MAXIMUM_TOLERANCE,
    LONGITUDE_RANGE,
    LATITUDE_RANGE,
)
from .exceptions import InvalidParameterError, DomainError

DBL_MAX = sys.float_info.max


def is_nan(x: float) -> bool:
    """Return True if x is unequal to itself (i.e., NaN)."""
    return x != x


def safe_difference(a: float, b: float) -> float:
    """Return a - b, or exactly 0.0 when a == b (no signed zero)."""
    if a == b:
        return 0.0
    return a - b


def safe_quotient(numerator: float, denominator: float) -> float:
    """
    Divide without introducing rounding noise on trivial cases.

    Parameters
    ----------
    numerator : float
        Dividend
    denominator : float
        Divisor, must be non-zero

    Returns
    -------
    float
        0.0 if numerator is 0, +/-1.0 if numerator is +/-denominator,
        +/-numerator if denominator is +/-1, otherwise numerator / denominator.

    Raises
    ------
    DomainError
        If denominator is zero.
    """
    if denominator == 0.0:
        raise DomainError("safe_quotient", "denominator is zero")
    if numerator == 0.0:
        return 0.0
    if denominator == 1.0:
        return float(numerator)
    if denominator == -1.0:
        return -float(numerator)
    if numerator == denominator:
        return 1.0
    if numerator == -denominator:
        return -1.0
    return numerator / denominator


def _same_bits(x: float, y: float) -> bool:
    return struct.pack("<d", x) == struct.pack("<d", y)


def within_tolerance(x: float, y: float, tolerance: float) -> bool:
    """
    Compare two values with a combined absolute/relative tolerance.

    Parameters
    ----------
    x, y : float
        Values to compare (NaN allowed)
    tolerance : float
        Tolerance in [0, 0.1]

    Returns
    -------
    bool
        True if x and y are considered equal.

    Notes
    -----
    The checks are applied in order:

    1. identical bit patterns (so a NaN equals the same NaN)
    2. absolute check around zero when either value is exactly zero
    3. absolute check of each value against the other
    4. relative check of the smaller magnitude over the larger one, which
       can neither overflow nor divide by zero

    The relation is symmetric but not transitive: with x = 0, y = -t and
    z = +t, x is within tolerance of both y and z but y is not within
    tolerance of z.
    """
    if is_nan(tolerance) or not 0.0 <= tolerance <= MAXIMUM_TOLERANCE:
        raise InvalidParameterError("tolerance", tolerance, f"must be in [0, {MAXIMUM_TOLERANCE}]")

    x = float(x)
    y = float(y)

    if _same_bits(x, y):
        return True
    if is_nan(x) or is_nan(y):
        return False
    if x == 0.0:
        return -tolerance <= y <= tolerance
    if y == 0.0:
        return -tolerance <= x <= tolerance
    if y - tolerance <= x <= y + tolerance:
        return True
    if x - tolerance <= y <= x + tolerance:
        return True

    ax = abs(x)
    ay = abs(y)
    if ax >= ay:
        smaller, larger = y, x
    else:
        smaller, larger = x, y
    if math.isinf(larger):
        return False
    ratio = smaller / larger  # |ratio| <= 1
    return 1.0 - tolerance <= ratio <= 1.0 + tolerance


def about_equal(x: float, y: float) -> bool:
    """within_tolerance with the default tolerance of 1e-6."""
    return within_tolerance(x, y, TOLERANCE)


def radians(the_degrees: float) -> float:
    """Convert degrees to radians."""
    return the_degrees * (math.pi / 180.0)


def degrees(the_radians: float) -> float:
    """Convert radians to degrees."""
    return the_radians * (180.0 / math.pi)


def is_valid_longitude(longitude) -> bool:
    """True if every longitude is a number in [-180, 180]."""
    values = np.asarray(longitude, dtype='float64')
    return bool(np.all((values >= LONGITUDE_RANGE[0]) & (values <= LONGITUDE_RANGE[1])))


def is_valid_latitude(latitude) -> bool:
    """True if every latitude is a number in [-90, 90]."""
    values = np.asarray(latitude, dtype='float64')
    return bool(np.all((values >= LATITUDE_RANGE[0]) & (values <= LATITUDE_RANGE[1])))


def is_valid_ellipsoid(major_semiaxis: float, minor_semiaxis: float) -> bool:
    """True if both axes are positive numbers and major >= minor."""
    return (
        not is_nan(major_semiaxis)
        and not is_nan(minor_semiaxis)
        and major_semiaxis > 0.0
        and minor_semiaxis > 0.0
        and major_semiaxis >= minor_semiaxis
        and math.isfinite(major_semiaxis)
    )


def require_in_range(name: str, value: float, low: float, high: float) -> float:
    """Return float(value) or raise InvalidParameterError if outside [low, high]."""
    value = float(value)
    if is_nan(value) or not low <= value <= high:
        raise InvalidParameterError(name, value, f"must be in [{low}, {high}]")
    return value


def require_finite(name: str, value: float) -> float:
    """Return float(value) or raise InvalidParameterError if NaN/inf."""
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameterError(name, value, "must be finite")
    return value


def require_coordinates(longitude, latitude) -> Tuple[np.ndarray, np.ndarray]:
    """
    Broadcast and validate longitude/latitude inputs.

    Raises
    ------
    InvalidParameterError
        If shapes cannot be broadcast or any value is out of range or NaN.
    """
    try:
        lon, lat = np.broadcast_arrays(
            np.asarray(longitude, dtype='float64'),
            np.asarray(latitude, dtype='float64'),
        )
    except ValueError as exc:
        raise InvalidParameterError("coordinate shapes", (np.shape(longitude), np.shape(latitude)), str(exc))
    if not is_valid_longitude(lon):
        raise InvalidParameterError("longitude", _first_bad(lon, *LONGITUDE_RANGE), "must be in [-180, 180]")
    if not is_valid_latitude(lat):
        raise InvalidParameterError("latitude", _first_bad(lat, *LATITUDE_RANGE), "must be in [-90, 90]")
    return lon, lat


def require_finite_array(name: str, values) -> np.ndarray:
    """Return values as a float64 array or raise if any is NaN/inf."""
    array = np.asarray(values, dtype='float64')
    if not np.all(np.isfinite(array)):
        raise InvalidParameterError(name, _first_bad(array, -DBL_MAX, DBL_MAX), "must be finite")
    return array


def check_result(operation: str, *arrays: np.ndarray) -> None:
    """Raise DomainError if any result value is NaN or infinite."""
    for array in arrays:
        if not np.all(np.isfinite(array)):
            raise DomainError(operation, "result is not finite")


def _first_bad(values: np.ndarray, low: float, high: float) -> float:
    flat = np.ravel(values)
    bad = ~((flat >= low) & (flat <= high))
    index = int(np.argmax(bad))
    return float(flat[index]) if flat.size else float('nan')
