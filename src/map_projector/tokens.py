"""
Build projectors from command-line style tokens.

Accepted options, in any order:

    -ellipsoid major_semiaxis minor_semiaxis   (or -ellipsoid <name>)
    -lambert lower upper central_longitude central_latitude
    -albers lower upper central_longitude central_latitude
    -mercator central_longitude
    -stereographic central_longitude central_latitude secant_latitude
    -false_easting_northing false_easting false_northing

-ellipsoid and exactly one projection option are required.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from .albers import Albers
from .ellipsoid import Ellipsoid
from .exceptions import InvalidParameterError
from .lambert import Lambert
from .mercator import Mercator
from .projector import Projector
from .stereographic import Stereographic

logger = logging.getLogger(__name__)

# option -> (projector class, names of the values that follow it)
PROJECTION_OPTIONS = {
    "-lambert": (Lambert, ("lower_latitude", "upper_latitude", "central_longitude", "central_latitude")),
    "-albers": (Albers, ("lower_latitude", "upper_latitude", "central_longitude", "central_latitude")),
    "-mercator": (Mercator, ("central_longitude",)),
    "-stereographic": (Stereographic, ("central_longitude", "central_latitude", "secant_latitude")),
}


def is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def parse_numbers(tokens: Sequence[str], start: int, count: int, option: str) -> List[float]:
    """Parse count floats following tokens[start - 1] (the option name)."""
    values = tokens[start:start + count]
    if len(values) != count:
        raise InvalidParameterError(option, list(values), f"expected {count} numeric values")
    try:
        return [float(value) for value in values]
    except ValueError:
        raise InvalidParameterError(option, list(values), "values must be numbers")


def parse_projector(tokens: Sequence[str], start: int = 0) -> Tuple[Projector, int]:
    """
    Parse a projector from tokens beginning at index start.

    Parameters
    ----------
    tokens : sequence of str
        E.g. ['-ellipsoid', '6370000', '6370000', '-lambert', '33', '45', '-97', '40']
    start : int
        Index of the first token to read

    Returns
    -------
    projector : Projector
        The constructed projector
    next_index : int
        Index of the first token not consumed; parsing stops at the first
        token that is not one of the projection options.

    Raises
    ------
    InvalidParameterError
        On missing, repeated or malformed options, or invalid parameters.
    """
    index = start
    ellipsoid = None
    projection = None
    parameters: Dict[str, float] = {}
    offsets = (0.0, 0.0)

    while index < len(tokens):
        option = tokens[index]
        if option == "-ellipsoid":
            if ellipsoid is not None:
                raise InvalidParameterError(option, tokens[index:], "given more than once")
            following = tokens[index + 1:index + 2]
            if following and not is_number(following[0]):
                ellipsoid = Ellipsoid.from_name(following[0])
                index += 2
            else:
                major, minor = parse_numbers(tokens, index + 1, 2, option)
                ellipsoid = Ellipsoid(major, minor)
                index += 3
        elif option in PROJECTION_OPTIONS:
            if projection is not None:
                raise InvalidParameterError(option, projection.NAME, "only one projection may be given")
            projection, names = PROJECTION_OPTIONS[option]
            parameters = dict(zip(names, parse_numbers(tokens, index + 1, len(names), option)))
            index += 1 + len(names)
        elif option == "-false_easting_northing":
            offsets = tuple(parse_numbers(tokens, index + 1, 2, option))
            index += 3
        else:
            break

    if ellipsoid is None or projection is None:
        raise InvalidParameterError(
            "projection tokens", list(tokens[start:index]),
            "-ellipsoid and one of " + ", ".join(PROJECTION_OPTIONS) + " are required"
        )

    projector = projection(
        major_semiaxis=ellipsoid.major_semiaxis,
        minor_semiaxis=ellipsoid.minor_semiaxis,
        false_easting=offsets[0],
        false_northing=offsets[1],
        **parameters,
    )
    logger.debug(f"Parsed {projector!r} from tokens {start}..{index - 1}")
    return projector, index
