"""
Unit tests for the Albers, Lambert, Mercator and Stereographic projectors.

Covers round trips, published worked examples (Snyder, USGS PP 1395),
agreement with PROJ through pyproj, singularities and parameter handling.
"""

import pytest
import numpy as np
import pyproj

from map_projector import (
    Albers,
    Lambert,
    Mercator,
    Stereographic,
    Ellipsoid,
    InvalidParameterError,
    DomainError,
)

CLARKE_1866 = (6378206.4, 6356583.8)
UNIT_SPHERE = (1.0, 1.0)

LONGITUDES = np.array([-120.0, -100.0, -97.0, -80.0, -70.0])
LATITUDES = np.array([25.0, 35.0, 40.0, 45.0, 50.0])


class TestWorkedExamples:
    """Compare against the numerical examples of Snyder (1987)."""

    def test_albers_sphere(self):
        albers = Albers(*UNIT_SPHERE, 29.5, 45.5, -96.0, 23.0)
        x, y = albers.project(-75.0, 35.0)
        assert x == pytest.approx(0.2952720, abs=1e-7)
        assert y == pytest.approx(0.2416774, abs=1e-7)

    def test_albers_ellipsoid(self):
        albers = Albers(*CLARKE_1866, 29.5, 45.5, -96.0, 23.0)
        x, y = albers.project(-75.0, 35.0)
        assert x == pytest.approx(1885472.7, abs=0.5)
        assert y == pytest.approx(1535925.0, abs=0.5)

    def test_lambert_sphere(self):
        lambert = Lambert(*UNIT_SPHERE, 33.0, 45.0, -96.0, 23.0)
        x, y = lambert.project(-75.0, 35.0)
        assert x == pytest.approx(0.2966785, abs=1e-7)
        assert y == pytest.approx(0.2462112, abs=1e-7)

    def test_lambert_ellipsoid(self):
        lambert = Lambert(*CLARKE_1866, 33.0, 45.0, -96.0, 23.0)
        x, y = lambert.project(-75.0, 35.0)
        assert x == pytest.approx(1894410.9, abs=0.5)
        assert y == pytest.approx(1564649.5, abs=0.5)

    def test_mercator_sphere(self):
        mercator = Mercator(*UNIT_SPHERE, -180.0)
        x, y = mercator.project(-75.0, 35.0)
        assert x == pytest.approx(np.radians(105.0), abs=1e-12)
        assert y == pytest.approx(np.log(np.tan(np.radians(62.5))), abs=1e-12)

    def test_albers_reference_scenario(self, albers_sphere):
        x, y = albers_sphere.project(-100.0, 40.0)
        lon, lat = albers_sphere.unproject(x, y)
        assert lon == pytest.approx(-100.0, abs=1e-6)
        assert lat == pytest.approx(40.0, abs=1e-6)


class TestAgainstProj:
    """Forward projections agree with PROJ to the millimeter."""

    @staticmethod
    def _compare(projector, lons, lats):
        proj = pyproj.Proj(projector.to_proj_dict())
        expected_x, expected_y = proj(lons, lats)
        x, y = projector.project(lons, lats)
        np.testing.assert_allclose(x, expected_x, rtol=0, atol=1e-3)
        np.testing.assert_allclose(y, expected_y, rtol=0, atol=1e-3)

    def test_albers(self, albers_sphere, albers_wgs84):
        self._compare(albers_sphere, LONGITUDES, LATITUDES)
        self._compare(albers_wgs84, LONGITUDES, LATITUDES)

    def test_lambert(self, lambert_wgs84, lambert_tangent):
        self._compare(lambert_wgs84, LONGITUDES, LATITUDES)
        self._compare(lambert_tangent, LONGITUDES, LATITUDES)

    def test_mercator(self, mercator_wgs84):
        self._compare(mercator_wgs84, LONGITUDES, np.array([-60.0, -10.0, 0.0, 30.0, 75.0]))

    def test_north_polar_stereographic(self, stereographic_north):
        self._compare(stereographic_north, LONGITUDES, np.array([50.0, 60.0, 70.0, 80.0, 85.0]))

    def test_south_polar_stereographic(self):
        stereographic = Stereographic(6378388.0, 6356911.94613, -100.0, -90.0, -71.0)
        self._compare(stereographic, np.array([150.0, -100.0, 0.0]), np.array([-75.0, -60.0, -85.0]))

    def test_oblique_stereographic(self):
        stereographic = Stereographic(6378137.0, 6356752.314245, -98.0, 45.0, 45.0)
        self._compare(stereographic, LONGITUDES, LATITUDES)

    def test_false_easting_northing(self):
        lambert = Lambert(6370000.0, 6370000.0, 33.0, 45.0, -97.0, 40.0, 500000.0, -250000.0)
        self._compare(lambert, LONGITUDES, LATITUDES)

    def test_to_crs(self, albers_wgs84):
        crs = albers_wgs84.to_crs()
        assert isinstance(crs, pyproj.CRS)
        assert crs.is_projected


class TestRoundTrip:
    """unproject(project(p)) returns p everywhere the projection is defined."""

    def test_round_trip(self, projectors):
        lons, lats = np.meshgrid(np.linspace(-170.0, 170.0, 18), np.linspace(-50.0, 80.0, 14))
        for projector in projectors:
            x, y = projector.project(lons, lats)
            lon, lat = projector.unproject(x, y)
            np.testing.assert_allclose(lon, lons, atol=1e-6, err_msg=projector.name())
            np.testing.assert_allclose(lat, lats, atol=1e-6, err_msg=projector.name())

    @pytest.mark.parametrize("longitude", [-180.0, 180.0])
    def test_antimeridian_keeps_side(self, projectors, longitude):
        for projector in projectors:
            x, y = projector.project(longitude, 40.0)
            lon, lat = projector.unproject(x, y)
            assert lon == pytest.approx(longitude, abs=1.5e-6), projector.name()
            assert lat == pytest.approx(40.0, abs=1e-6), projector.name()

    def test_north_pole_keeps_longitude(self, projectors):
        for projector in projectors:
            x, y = projector.project(-60.0, 90.0)
            lon, lat = projector.unproject(x, y)
            assert lat == pytest.approx(90.0, abs=1.5e-6), projector.name()
            assert lon == pytest.approx(-60.0, abs=1e-4), projector.name()

    def test_scalar_and_array_results(self, lambert_wgs84):
        x, y = lambert_wgs84.project(-97.0, 40.0)
        assert isinstance(x, float) and isinstance(y, float)
        assert x == pytest.approx(0.0, abs=1e-6)
        assert y == pytest.approx(0.0, abs=1e-6)

        x, y = lambert_wgs84.project(LONGITUDES.reshape(1, 5), 40.0)
        assert x.shape == (1, 5)
        assert y.shape == (1, 5)

    def test_unproject_wraps_longitude(self, mercator_wgs84):
        """x beyond the antimeridian comes back as a longitude in range."""
        a = mercator_wgs84.major_semiaxis
        lon, lat = mercator_wgs84.unproject(-np.radians(100.0) * a, 0.0)
        assert lon == pytest.approx(160.0, abs=1e-9)
        assert lat == pytest.approx(0.0, abs=1e-12)


class TestSingularities:
    """Points and parameters the projections cannot handle."""

    def test_out_of_range_coordinates(self, albers_sphere):
        with pytest.raises(InvalidParameterError):
            albers_sphere.project(181.0, 0.0)
        with pytest.raises(InvalidParameterError):
            albers_sphere.project(0.0, -91.0)
        with pytest.raises(InvalidParameterError):
            albers_sphere.unproject(float('nan'), 0.0)

    def test_albers_ellipsoid_beyond_pole(self, albers_wgs84):
        with pytest.raises(DomainError):
            albers_wgs84.unproject(0.0, 4.0e7)

    def test_mercator_pole_is_finite(self, mercator_wgs84):
        x, y = mercator_wgs84.project(0.0, 90.0)
        assert np.isfinite(y)
        assert y > 15.0 * mercator_wgs84.major_semiaxis

    def test_stereographic_subtypes(self):
        assert Stereographic(*UNIT_SPHERE, 0.0, 90.0, 90.0).subtype == "north_pole"
        assert Stereographic(*UNIT_SPHERE, 0.0, -90.0, -90.0).subtype == "south_pole"
        assert Stereographic(*UNIT_SPHERE, 0.0, 0.0, 0.0).subtype == "equatorial"
        assert Stereographic(*UNIT_SPHERE, 0.0, 45.0, 45.0).subtype == "oblique"

    @pytest.mark.parametrize("central_latitude", [0.0, 45.0, -30.0])
    def test_stereographic_centre_maps_to_offsets(self, central_latitude):
        stereographic = Stereographic(6378137.0, 6356752.314245, -98.0, central_latitude, 60.0,
                                      1000.0, 2000.0)
        x, y = stereographic.project(-98.0, central_latitude)
        assert x == pytest.approx(1000.0, abs=1e-3)
        assert y == pytest.approx(2000.0, abs=1e-3)

    def test_equatorial_scale_at_centre(self):
        """A secant latitude of 90 gives unit scale at the centre."""
        stereographic = Stereographic(*UNIT_SPHERE, 0.0, 0.0, 90.0)
        x, y = stereographic.project(1e-4, 0.0)
        assert x == pytest.approx(np.radians(1e-4), rel=1e-6)
        assert y == pytest.approx(0.0, abs=1e-15)


class TestParameters:
    """Construction, validation, setters, equality and cloning."""

    @pytest.mark.parametrize("parallels", [
        (-30.0, 45.0),
        (45.0, 30.0),
        (0.5, 45.0),
        (30.0, 89.5),
    ])
    def test_invalid_parallels(self, parallels):
        with pytest.raises(InvalidParameterError):
            Albers(6370997.0, 6370997.0, *parallels, -96.0, 23.0)
        with pytest.raises(InvalidParameterError):
            Lambert(6370997.0, 6370997.0, *parallels, -96.0, 23.0)

    def test_southern_parallels(self):
        albers = Albers(6370997.0, 6370997.0, -45.5, -29.5, 135.0, -23.0)
        x, y = albers.project(135.0, -23.0)
        assert x == pytest.approx(0.0, abs=1e-6)
        assert y == pytest.approx(0.0, abs=1e-6)

    def test_invalid_common_parameters(self):
        with pytest.raises(InvalidParameterError):
            Mercator(6356752.0, 6378137.0, 0.0)
        with pytest.raises(InvalidParameterError):
            Mercator(6378137.0, 6378137.0, 190.0)
        with pytest.raises(InvalidParameterError):
            Mercator(6378137.0, 6378137.0, 0.0, float('inf'))
        with pytest.raises(InvalidParameterError):
            Lambert(6378137.0, 6378137.0, 33.0, 45.0, -97.0, 89.5)
        with pytest.raises(InvalidParameterError):
            Stereographic(6378137.0, 6378137.0, -98.0, 95.0, 60.0)

    def test_setter_updates_projection(self, lambert_wgs84):
        lambert_wgs84.central_longitude = -90.0
        x, y = lambert_wgs84.project(-90.0, 40.0)
        assert lambert_wgs84.central_longitude == -90.0
        assert x == pytest.approx(0.0, abs=1e-6)

    def test_failed_setter_leaves_projector_unchanged(self, albers_wgs84):
        before_parameters = albers_wgs84.parameters()
        before = albers_wgs84.project(LONGITUDES, LATITUDES)
        with pytest.raises(InvalidParameterError):
            albers_wgs84.lower_latitude = -10.0
        with pytest.raises(InvalidParameterError):
            albers_wgs84.minor_semiaxis = 7.0e6
        assert albers_wgs84.parameters() == before_parameters
        after = albers_wgs84.project(LONGITUDES, LATITUDES)
        np.testing.assert_array_equal(after[0], before[0])
        np.testing.assert_array_equal(after[1], before[1])

    def test_ellipsoid_setter(self, lambert_tangent):
        lambert_tangent.ellipsoid = Ellipsoid.from_name("wgs84")
        assert lambert_tangent.major_semiaxis == 6378137.0
        assert lambert_tangent.ellipsoid.eccentricity > 0.0

    def test_parameters_in_constructor_order(self, stereographic_north):
        assert list(stereographic_north.parameters()) == [
            "major_semiaxis", "minor_semiaxis", "central_longitude", "central_latitude",
            "secant_latitude", "false_easting", "false_northing",
        ]

    def test_equal_and_clone(self, albers_wgs84, lambert_wgs84):
        copy = albers_wgs84.clone()
        assert copy is not albers_wgs84
        assert copy.equal(albers_wgs84)
        assert copy == albers_wgs84

        copy.central_latitude = 30.0
        assert not copy.equal(albers_wgs84)
        assert albers_wgs84.central_latitude == 23.0

        nearly = Albers(6378137.0 + 1.0, 6356752.314245, 29.5, 45.5, -96.0, 23.0)
        assert nearly.equal(albers_wgs84)

        same_numbers = Lambert(6378137.0, 6356752.314245, 29.5, 45.5, -96.0, 23.0)
        assert not same_numbers.equal(albers_wgs84)
        assert lambert_wgs84 != albers_wgs84

    def test_name_and_repr(self, mercator_wgs84):
        assert mercator_wgs84.name() == "Mercator"
        assert repr(mercator_wgs84).startswith("Mercator(major_semiaxis=6378137.0")
