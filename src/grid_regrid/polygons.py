"""
Planar polygon helpers for swath footprints.

Quadrilaterals are stored as (n, 4) vertex arrays in counter-clockwise
order. Clipping against an axis-aligned rectangle uses Sutherland-Hodgman;
areas use the shoelace formula.
"""

import numpy as np
from typing import List, Tuple

# Input corner order SW, SE, NW, NE -> counter-clockwise SW, SE, NE, NW
CORNER_ORDER = (0, 1, 3, 2)


def _cross2(ax, ay, bx, by):
    """2D cross product: ax*by - ay*bx."""
    return ax * by - ay * bx


def signed_area(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Signed shoelace area of polygons along the last axis.

    Positive for counter-clockwise vertex order.
    """
    x = np.asarray(x, dtype='float64')
    y = np.asarray(y, dtype='float64')
    return 0.5 * np.sum(_cross2(x, y, np.roll(x, -1, axis=-1), np.roll(y, -1, axis=-1)), axis=-1)


def reorder_quadrilaterals(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reorder quadrilateral corners into simple counter-clockwise polygons.

    Parameters
    ----------
    x, y : np.ndarray
        Corner coordinates, shape (n, 4), in SW, SE, NW, NE order

    Returns
    -------
    x, y : np.ndarray
        Shape (n, 4), counter-clockwise starting from the SW corner.

    Notes
    -----
    Corners are sorted by angle around the vertex centroid, which untangles
    footprints whose corners were swapped (bow-ties) and fixes clockwise
    winding. Rotation keeps the SW corner first.
    """
    x = np.asarray(x, dtype='float64')[:, CORNER_ORDER]
    y = np.asarray(y, dtype='float64')[:, CORNER_ORDER]
    center_x = x.mean(axis=1, keepdims=True)
    center_y = y.mean(axis=1, keepdims=True)
    angles = np.arctan2(y - center_y, x - center_x)
    # Angles relative to the SW corner so it stays first
    relative = np.mod(angles - angles[:, :1], 2.0 * np.pi)
    order = np.argsort(relative, axis=1, kind='stable')
    return np.take_along_axis(x, order, axis=1), np.take_along_axis(y, order, axis=1)


def polygon_bounds(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """(x_minimum, x_maximum, y_minimum, y_maximum) of each polygon row."""
    return x.min(axis=-1), x.max(axis=-1), y.min(axis=-1), y.max(axis=-1)


def clip_polygon(
    x: np.ndarray,
    y: np.ndarray,
    x_minimum: float,
    y_minimum: float,
    x_maximum: float,
    y_maximum: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Clip one polygon to a rectangle.

    Parameters
    ----------
    x, y : np.ndarray
        Vertices of the polygon, shape (vertices,)
    x_minimum, y_minimum, x_maximum, y_maximum : float
        Clip rectangle

    Returns
    -------
    x, y : np.ndarray
        Vertices of the clipped polygon; empty if fewer than 3 remain.
    """
    points: List[Tuple[float, float]] = list(zip(np.asarray(x, dtype=float), np.asarray(y, dtype=float)))

    # (axis, bound, keep points with coordinate >= bound?)
    edges = (
        (0, x_minimum, True),
        (0, x_maximum, False),
        (1, y_minimum, True),
        (1, y_maximum, False),
    )

    for axis, bound, keep_above in edges:
        if not points:
            break

        def inside(point):
            return point[axis] >= bound if keep_above else point[axis] <= bound

        def crossing(start, end):
            t = (bound - start[axis]) / (end[axis] - start[axis])
            return (start[0] + t * (end[0] - start[0]), start[1] + t * (end[1] - start[1]))

        clipped = []
        previous = points[-1]
        for current in points:
            if inside(current):
                if not inside(previous):
                    clipped.append(crossing(previous, current))
                clipped.append(current)
            elif inside(previous):
                clipped.append(crossing(previous, current))
            previous = current
        points = clipped

    if len(points) < 3:
        return np.empty(0), np.empty(0)
    result = np.array(points)
    return result[:, 0], result[:, 1]


def clipped_area(
    x: np.ndarray,
    y: np.ndarray,
    x_minimum: float,
    y_minimum: float,
    x_maximum: float,
    y_maximum: float,
) -> float:
    """Area of the part of a polygon inside a rectangle."""
    clipped_x, clipped_y = clip_polygon(x, y, x_minimum, y_minimum, x_maximum, y_maximum)
    if clipped_x.size == 0:
        return 0.0
    return float(abs(signed_area(clipped_x, clipped_y)))
