"""
Constants for tolerances, coordinate ranges and reference ellipsoids.
"""

import math

# Default relative/absolute tolerance for aboutEqual-style comparisons
TOLERANCE = 1e-6

# Distance (radians) under which a value is considered to be on a singularity
PROJECTION_TOLERANCE = 1e-10

# Iterative inverse-latitude solvers
CONVERGENCE_TOLERANCE = 1e-12
MAXIMUM_ITERATIONS = 15

# Amount (degrees) a coordinate on a pole or on the antimeridian is moved
SINGULARITY_NUDGE = 1e-6

PI_OVER_2 = 0.5 * math.pi
PI_OVER_4 = 0.25 * math.pi
TWO_PI = 2.0 * math.pi

LONGITUDE_RANGE = (-180.0, 180.0)
LATITUDE_RANGE = (-90.0, 90.0)

# Conic forms: magnitude limits of standard parallels and central latitude
STANDARD_PARALLEL_RANGE = (1.0, 89.0)
CONIC_CENTRAL_LATITUDE_RANGE = (-89.0, 89.0)

# Upper bound on |withinTolerance| tolerance argument
MAXIMUM_TOLERANCE = 0.1

# Reference ellipsoids: (major semiaxis, minor semiaxis) in meters
NAMED_ELLIPSOIDS = {
    "clarke_1866": (6378206.4, 6356583.8),
    "clarke_1880": (6378249.145, 6356514.86955),
    "bessel_1841": (6377397.155, 6356078.96284),
    "airy_1830": (6377563.396, 6356256.91),
    "international_1909": (6378388.0, 6356911.94613),
    "krassovsky_1942": (6378245.0, 6356863.0188),
    "wgs_1972": (6378135.0, 6356750.519915),
    "grs_1980": (6378137.0, 6356752.31414),
    "wgs_1984": (6378137.0, 6356752.314245),
    "sphere_6370997": (6370997.0, 6370997.0),  # USGS / NCAR
    "sphere_6370000": (6370000.0, 6370000.0),  # MM5 / WRF
}

# Alternative spellings accepted by Ellipsoid.from_name
ELLIPSOID_ALIASES = {
    "clarke1866": "clarke_1866",
    "nad27": "clarke_1866",
    "grs80": "grs_1980",
    "nad83": "grs_1980",
    "wgs84": "wgs_1984",
    "wgs72": "wgs_1972",
    "hayford": "international_1909",
    "intl": "international_1909",
    "usgs": "sphere_6370997",
    "wrf": "sphere_6370000",
    "mm5": "sphere_6370000",
}

# Squared minor/major axis ratio of WGS84, for geodetic <-> spherical latitude
WGS84_AXIS_RATIO_SQUARED = 0.9933056199957391
INVERSE_WGS84_AXIS_RATIO_SQUARED = 1.006739496756587
