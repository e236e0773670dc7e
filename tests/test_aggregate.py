"""
Unit tests for grid_regrid.aggregate module.

Tests the nearest/mean/weighted reductions, sparse output, provenance
notes, layered grids and profile input.
"""

import pytest
import numpy as np

from map_projector import InvalidParameterError
from grid_regrid import Grid, aggregate, regrid, surface_index, AGGREGATE_MEAN, AGGREGATE_NEAREST, AGGREGATE_WEIGHTED
from grid_regrid.cache import CELL_CENTER_CACHE

MISSING = -9999.0

# Two valid points in cell (0, 0), one in cell (2, 3), one outside the grid
# and one missing value in cell (0, 0).
LONGITUDES = np.array([-99.9, -99.75, -98.2, -101.0, -99.6])
LATITUDES = np.array([30.1, 30.25, 31.3, 30.5, 30.4])
VALUES = np.array([1.0, 3.0, 5.0, 100.0, MISSING])


class TestReductions:
    """Test the three aggregation methods on a small lon/lat grid."""

    def test_mean(self, lonlat_grid):
        cells = regrid(lonlat_grid, AGGREGATE_MEAN, 0.0, LONGITUDES, LATITUDES, VALUES)
        assert len(cells) == 2
        np.testing.assert_array_equal(cells.rows, [0, 2])
        np.testing.assert_array_equal(cells.columns, [0, 3])
        np.testing.assert_array_equal(cells.layers, [0, 0])
        np.testing.assert_allclose(cells.values, [2.0, 5.0])
        np.testing.assert_array_equal(cells.counts, [2, 1])
        np.testing.assert_allclose(cells.longitudes, [-99.75, -98.25])
        np.testing.assert_allclose(cells.latitudes, [30.25, 31.25])
        assert cells.values2 is None
        assert cells.notes is None
        assert cells.elevations is None

    def test_nearest(self, lonlat_grid):
        cells = regrid(lonlat_grid, AGGREGATE_NEAREST, 0.0, LONGITUDES, LATITUDES, VALUES)
        np.testing.assert_allclose(cells.values, [3.0, 5.0])
        np.testing.assert_array_equal(cells.counts, [2, 1])

    def test_weighted(self, lonlat_grid):
        cells = regrid(lonlat_grid, AGGREGATE_WEIGHTED, 0.0, LONGITUDES, LATITUDES, VALUES)
        far = 1.0 / 0.72
        near = 1.0 / 1e-6
        expected = (far * 1.0 + near * 3.0) / (far + near)
        assert cells.values[0] == pytest.approx(expected, rel=1e-9)
        assert cells.values[1] == pytest.approx(5.0)

    def test_method_names_case_insensitive(self, lonlat_grid):
        cells = regrid(lonlat_grid, "MEAN", 0.0, LONGITUDES, LATITUDES, VALUES)
        assert len(cells) == 2

    def test_nearest_tie_takes_smaller_value(self, lonlat_grid):
        cells = regrid(
            lonlat_grid, AGGREGATE_NEAREST, 0.0,
            np.array([-99.75, -99.75]), np.array([30.25, 30.25]), np.array([8.0, 4.0]),
        )
        np.testing.assert_allclose(cells.values, [4.0])

    def test_all_missing_gives_empty_result(self, lonlat_grid):
        cells = regrid(lonlat_grid, AGGREGATE_WEIGHTED, 0.0, LONGITUDES, LATITUDES, np.full(5, MISSING))
        assert len(cells) == 0
        assert cells.columns.size == 0

    def test_minimum_valid_value_filters(self, lonlat_grid):
        cells = regrid(lonlat_grid, AGGREGATE_MEAN, 2.0, LONGITUDES, LATITUDES, VALUES)
        np.testing.assert_allclose(cells.values, [3.0, 5.0])
        np.testing.assert_array_equal(cells.counts, [1, 1])


class TestOrderIndependence:
    """Results do not depend on the order points are given in."""

    @pytest.mark.parametrize("method", [AGGREGATE_NEAREST, AGGREGATE_MEAN, AGGREGATE_WEIGHTED])
    def test_permutation(self, albers_grid, rng, method):
        longitudes = rng.uniform(-97.2, -94.8, 400)
        latitudes = rng.uniform(22.5, 23.5, 400)
        values = rng.integers(0, 5, 400).astype(float)
        values2 = rng.normal(size=400)
        permutation = rng.permutation(400)

        first = regrid(albers_grid, method, 0.0, longitudes, latitudes, values, values2=values2)
        second = regrid(
            albers_grid, method, 0.0, longitudes[permutation], latitudes[permutation],
            values[permutation], values2=values2[permutation],
        )
        assert len(first) > 10
        np.testing.assert_array_equal(first.rows, second.rows)
        np.testing.assert_array_equal(first.columns, second.columns)
        np.testing.assert_array_equal(first.values, second.values)
        np.testing.assert_array_equal(first.values2, second.values2)
        np.testing.assert_array_equal(first.counts, second.counts)


class TestSecondComponentAndNotes:
    """Test values2 and provenance notes."""

    def test_values2(self, lonlat_grid):
        values2 = np.array([10.0, 30.0, 50.0, 0.0, 0.0])
        cells = regrid(lonlat_grid, AGGREGATE_MEAN, 0.0, LONGITUDES, LATITUDES, VALUES, values2=values2)
        np.testing.assert_allclose(cells.values2, [20.0, 50.0])

        nearest = regrid(lonlat_grid, AGGREGATE_NEAREST, 0.0, LONGITUDES, LATITUDES, VALUES, values2=values2)
        np.testing.assert_allclose(nearest.values2, [30.0, 50.0])

    def test_notes_merged_in_input_order(self, lonlat_grid):
        notes = ["A", "B", None, "C", "D"]
        cells = regrid(lonlat_grid, AGGREGATE_MEAN, 0.0, LONGITUDES, LATITUDES, VALUES, notes=notes)
        assert cells.notes == ["A,B", ""]

    def test_repeated_note_kept_once(self, lonlat_grid):
        notes = ["A", "A", "C", "D", "E"]
        cells = regrid(lonlat_grid, AGGREGATE_WEIGHTED, 0.0, LONGITUDES, LATITUDES, VALUES, notes=notes)
        assert cells.notes == ["A", "C"]

    def test_notes_length_checked(self, lonlat_grid):
        with pytest.raises(InvalidParameterError):
            regrid(lonlat_grid, AGGREGATE_MEAN, 0.0, LONGITUDES, LATITUDES, VALUES, notes=["A"])


class TestLayersAndProfiles:
    """Test aggregation on grids with a vertical coordinate."""

    @pytest.fixture
    def layered_grid(self, height_levels):
        return Grid(None, 4, 3, -100.0, 30.0, 0.5, 0.5, vertical=height_levels)

    def test_points_in_different_layers(self, layered_grid):
        cells = regrid(
            layered_grid, AGGREGATE_MEAN, 0.0,
            np.array([-99.75, -99.75, -99.75]), np.array([30.25, 30.25, 30.25]),
            np.array([1.0, 2.0, 4.0]),
            elevations=np.array([50.0, 700.0, 5000.0]),
        )
        np.testing.assert_array_equal(cells.layers, [0, 2])
        np.testing.assert_allclose(cells.values, [1.0, 2.0])
        np.testing.assert_allclose(cells.elevations, [50.0, 750.0])

    def test_weighted_uses_vertical_offset(self, layered_grid):
        cells = regrid(
            layered_grid, AGGREGATE_WEIGHTED, 0.0,
            np.array([-99.75, -99.75]), np.array([30.25, 30.25]),
            np.array([1.0, 3.0]),
            elevations=np.array([50.0, 90.0]),
        )
        near = 1.0 / 1e-6
        far = 1.0 / 0.64
        assert cells.values[0] == pytest.approx((near * 1.0 + far * 3.0) / (near + far), rel=1e-9)

    def test_elevations_required(self, layered_grid):
        with pytest.raises(InvalidParameterError):
            regrid(layered_grid, AGGREGATE_MEAN, 0.0, LONGITUDES, LATITUDES, VALUES)

    def test_profiles(self, layered_grid):
        values = np.array([[1.0, 2.0, 3.0], [5.0, 6.0, 7.0]])
        elevations = np.array([[50.0, 300.0, 1500.0], [50.0, 300.0, 9000.0]])
        cells = regrid(
            layered_grid, AGGREGATE_MEAN, 0.0,
            np.array([-99.75, -98.25]), np.array([30.25, 31.25]),
            values, elevations=elevations, notes=["north", "south"],
        )
        np.testing.assert_array_equal(cells.layers, [0, 0, 1, 1, 3])
        np.testing.assert_array_equal(cells.rows, [0, 2, 0, 2, 0])
        np.testing.assert_allclose(cells.values, [1.0, 5.0, 2.0, 6.0, 3.0])
        assert cells.notes == ["north", "south", "north", "south", "north"]

    def test_profile_elevation_shape_checked(self, layered_grid):
        with pytest.raises(InvalidParameterError):
            regrid(
                layered_grid, AGGREGATE_MEAN, 0.0,
                np.array([-99.75]), np.array([30.25]),
                np.array([[1.0, 2.0]]), elevations=np.array([50.0]),
            )


class TestAggregateValidation:
    """Test argument checking of aggregate()."""

    def test_unknown_method(self, lonlat_grid):
        with pytest.raises(InvalidParameterError):
            regrid(lonlat_grid, "median", 0.0, LONGITUDES, LATITUDES, VALUES)

    def test_indices_outside_grid(self, lonlat_grid):
        with pytest.raises(InvalidParameterError):
            aggregate(lonlat_grid, AGGREGATE_MEAN, 0.0, [4], [0], [0.0], [0.0], [1.0])

    def test_mismatched_lengths(self, lonlat_grid):
        with pytest.raises(InvalidParameterError):
            aggregate(lonlat_grid, AGGREGATE_MEAN, 0.0, [0, 1], [0], [0.0], [0.0], [1.0])

    def test_non_finite_values(self, lonlat_grid):
        with pytest.raises(InvalidParameterError):
            aggregate(lonlat_grid, AGGREGATE_MEAN, 0.0, [0], [0], [0.0], [0.0], [np.nan])

    def test_ungridded_points_skipped(self, lonlat_grid):
        cells = aggregate(
            lonlat_grid, AGGREGATE_MEAN, 0.0,
            [-1, 1, 1], [-1, 2, 2], [0.0, 0.5, -0.5], [0.0, 0.0, 0.0], [7.0, 2.0, 4.0],
        )
        np.testing.assert_array_equal(cells.rows, [2])
        np.testing.assert_array_equal(cells.columns, [1])
        np.testing.assert_allclose(cells.values, [3.0])


class TestProfilesWithoutLayers:
    """Profiles on a grid without layers contribute their surface value only."""

    def test_surface_level_used(self, albers_grid):
        lon, lat = albers_grid.cell_center(5, 10)
        cells = regrid(
            albers_grid, AGGREGATE_MEAN, 0.0,
            np.array([lon]), np.array([lat]), np.array([[1.0, 100.0, 100.0]]),
        )
        np.testing.assert_allclose(cells.values, [1.0])
        np.testing.assert_array_equal(cells.counts, [1])
        np.testing.assert_array_equal(cells.layers, [0])
        assert cells.elevations is None

    def test_collapsed_levels_skipped(self, lonlat_grid):
        values = np.array([[7.0, 1.0, 100.0], [4.0, 9.0, 9.0]])
        values2 = np.array([[-7.0, -1.0, -100.0], [-4.0, -9.0, -9.0]])
        elevations = np.array([[10.0, 10.0, 500.0], [0.0, 300.0, 900.0]])
        cells = regrid(
            lonlat_grid, AGGREGATE_NEAREST, 0.0,
            np.array([-99.75, -98.25]), np.array([30.25, 31.25]),
            values, elevations=elevations, values2=values2, notes=["a", "b"],
        )
        np.testing.assert_allclose(cells.values, [1.0, 4.0])
        np.testing.assert_allclose(cells.values2, [-1.0, -4.0])
        assert cells.notes == ["a", "b"]

    def test_missing_surface_value_drops_point(self, lonlat_grid):
        cells = regrid(
            lonlat_grid, AGGREGATE_MEAN, 0.0,
            np.array([-99.75]), np.array([30.25]), np.array([[MISSING, 5.0]]),
        )
        assert len(cells) == 0

    def test_surface_index(self):
        elevations = np.array([
            [0.0, 100.0, 200.0],
            [5.0, 5.0, 5.0],
            [5.0, 5.0, 80.0],
            [-3.0, -3.0, -3.0 + 1e-9],
        ])
        np.testing.assert_array_equal(surface_index(elevations), [0, 0, 1, 0])
        np.testing.assert_array_equal(surface_index(np.zeros((2, 1))), [0, 0])


class TestCellCentresOfOutput:
    """Output cell centres are computed for populated cells only."""

    def test_full_grid_not_computed(self, albers_grid):
        lon, lat = albers_grid.cell_center(9, 19)
        cells = regrid(albers_grid, AGGREGATE_MEAN, 0.0, np.array([lon]), np.array([lat]), np.array([2.0]))
        assert len(CELL_CENTER_CACHE) == 0
        assert cells.longitudes[0] == pytest.approx(lon)
        assert cells.latitudes[0] == pytest.approx(lat)
