"""
map_projector - Forward/inverse map projections on spheres and ellipsoids
"""

import logging

from .exceptions import ProjectionError, InvalidParameterError, DomainError
from .numerics import (
    is_nan,
    safe_difference,
    safe_quotient,
    within_tolerance,
    about_equal,
    radians,
    degrees,
    is_valid_longitude,
    is_valid_latitude,
    is_valid_ellipsoid,
)
from .ellipsoid import Ellipsoid, latitude_sphere, latitude_wgs84
from .auxiliary import msfn, qsfn, tsfn, ssfn, phi1_iterate, phi2_iterate
from .projector import Projector, ConicProjector
from .albers import Albers
from .lambert import Lambert
from .mercator import Mercator
from .stereographic import Stereographic
from .tokens import parse_projector

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ProjectionError",
    "InvalidParameterError",
    "DomainError",
    # Tolerant numerics
    "is_nan",
    "safe_difference",
    "safe_quotient",
    "within_tolerance",
    "about_equal",
    "radians",
    "degrees",
    "is_valid_longitude",
    "is_valid_latitude",
    "is_valid_ellipsoid",
    # Ellipsoid and auxiliary formulas
    "Ellipsoid",
    "latitude_sphere",
    "latitude_wgs84",
    "msfn",
    "qsfn",
    "tsfn",
    "ssfn",
    "phi1_iterate",
    "phi2_iterate",
    # Projectors
    "Projector",
    "ConicProjector",
    "Albers",
    "Lambert",
    "Mercator",
    "Stereographic",
    # Token parsing
    "parse_projector",
]
