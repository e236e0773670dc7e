"""
Unit tests for grid_regrid.polygons module.
"""

import pytest
import numpy as np

from grid_regrid.polygons import (
    signed_area,
    reorder_quadrilaterals,
    polygon_bounds,
    clip_polygon,
    clipped_area,
)

SQUARE_X = np.array([0.0, 2.0, 2.0, 0.0])
SQUARE_Y = np.array([0.0, 0.0, 2.0, 2.0])


class TestSignedArea:
    """Test the shoelace area."""

    def test_winding_sign(self):
        assert signed_area(SQUARE_X, SQUARE_Y) == pytest.approx(4.0)
        assert signed_area(SQUARE_X[::-1], SQUARE_Y[::-1]) == pytest.approx(-4.0)

    def test_many_polygons(self):
        x = np.vstack([SQUARE_X, 0.5 * SQUARE_X])
        y = np.vstack([SQUARE_Y, 0.5 * SQUARE_Y])
        np.testing.assert_allclose(signed_area(x, y), [4.0, 1.0])


class TestReorderQuadrilaterals:
    """Test conversion of SW, SE, NW, NE corners to counter-clockwise order."""

    def test_regular_order(self):
        x, y = reorder_quadrilaterals(np.array([[0.0, 1.0, 0.0, 1.0]]), np.array([[0.0, 0.0, 1.0, 1.0]]))
        np.testing.assert_array_equal(x, [[0.0, 1.0, 1.0, 0.0]])
        np.testing.assert_array_equal(y, [[0.0, 0.0, 1.0, 1.0]])

    def test_bow_tie_is_untangled(self):
        # NW and NE swapped
        x, y = reorder_quadrilaterals(np.array([[0.0, 1.0, 1.0, 0.0]]), np.array([[0.0, 0.0, 1.0, 1.0]]))
        assert signed_area(x, y)[0] == pytest.approx(1.0)
        assert (x[0, 0], y[0, 0]) == (0.0, 0.0)

    def test_clockwise_becomes_counter_clockwise(self):
        # East and west swapped (mirrored footprint)
        x, y = reorder_quadrilaterals(np.array([[1.0, 0.0, 1.0, 0.0]]), np.array([[0.0, 0.0, 1.0, 1.0]]))
        assert signed_area(x, y)[0] == pytest.approx(1.0)

    def test_rotated_footprint(self):
        # Diamond with corners given in SW, SE, NW, NE order
        x, y = reorder_quadrilaterals(np.array([[0.0, 1.0, -1.0, 0.0]]), np.array([[-1.0, 0.0, 0.0, 1.0]]))
        assert signed_area(x, y)[0] == pytest.approx(2.0)

    def test_bounds(self):
        x = np.array([[0.0, 1.0, 1.5, -0.5]])
        y = np.array([[0.0, 0.2, 1.0, 0.8]])
        x_min, x_max, y_min, y_max = polygon_bounds(x, y)
        assert (x_min[0], x_max[0], y_min[0], y_max[0]) == (-0.5, 1.5, 0.0, 1.0)


class TestClipping:
    """Test Sutherland-Hodgman clipping to a rectangle."""

    def test_partial_overlap(self):
        assert clipped_area(SQUARE_X, SQUARE_Y, 1.0, 1.0, 3.0, 3.0) == pytest.approx(1.0)

    def test_fully_inside(self):
        assert clipped_area(SQUARE_X, SQUARE_Y, -1.0, -1.0, 5.0, 5.0) == pytest.approx(4.0)

    def test_no_overlap(self):
        x, y = clip_polygon(SQUARE_X, SQUARE_Y, 3.0, 3.0, 4.0, 4.0)
        assert x.size == 0 and y.size == 0
        assert clipped_area(SQUARE_X, SQUARE_Y, 3.0, 3.0, 4.0, 4.0) == 0.0

    def test_touching_edge_has_no_area(self):
        assert clipped_area(SQUARE_X, SQUARE_Y, 2.0, 0.0, 3.0, 2.0) == pytest.approx(0.0)

    def test_diamond_corner(self):
        x = np.array([1.0, 2.0, 1.0, 0.0])
        y = np.array([0.0, 1.0, 2.0, 1.0])
        assert clipped_area(x, y, 0.0, 0.0, 1.0, 1.0) == pytest.approx(0.5)

    def test_clipped_vertices_inside_rectangle(self):
        x = np.array([0.2, 1.8, 1.4, -0.3])
        y = np.array([-0.4, 0.3, 1.6, 0.9])
        clipped_x, clipped_y = clip_polygon(x, y, 0.0, 0.0, 1.0, 1.0)
        assert clipped_x.size >= 3
        assert np.all((clipped_x >= -1e-12) & (clipped_x <= 1.0 + 1e-12))
        assert np.all((clipped_y >= -1e-12) & (clipped_y <= 1.0 + 1e-12))
