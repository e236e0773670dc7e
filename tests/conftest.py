"""
Pytest configuration and fixtures.
"""
import pytest
import numpy as np

from map_projector import Albers, Lambert, Mercator, Stereographic
from grid_regrid import Grid, VerticalGrid, VerticalType


SPHERE = (6370997.0, 6370997.0)
WGS84 = (6378137.0, 6356752.314245)


@pytest.fixture
def albers_sphere():
    """Albers on the USGS sphere used by the reference scenario."""
    return Albers(*SPHERE, 29.5, 45.5, -96.0, 23.0)


@pytest.fixture
def albers_wgs84():
    """Albers on WGS84 with the CONUS parallels."""
    return Albers(*WGS84, 29.5, 45.5, -96.0, 23.0)


@pytest.fixture
def lambert_wgs84():
    """Secant Lambert on WGS84."""
    return Lambert(*WGS84, 33.0, 45.0, -97.0, 40.0)


@pytest.fixture
def lambert_tangent():
    """Tangent Lambert on a sphere."""
    return Lambert(6370000.0, 6370000.0, 40.0, 40.0, -100.0, 40.0)


@pytest.fixture
def mercator_wgs84():
    """Mercator on WGS84."""
    return Mercator(*WGS84, -100.0)


@pytest.fixture
def stereographic_north():
    """North-polar stereographic, true scale at 60N."""
    return Stereographic(*WGS84, -98.0, 90.0, 60.0)


@pytest.fixture
def projectors(albers_sphere, albers_wgs84, lambert_wgs84, lambert_tangent,
               mercator_wgs84, stereographic_north):
    """One instance of every projection."""
    return [albers_sphere, albers_wgs84, lambert_wgs84, lambert_tangent,
            mercator_wgs84, stereographic_north]


@pytest.fixture
def lonlat_grid():
    """4 x 3 half-degree longitude/latitude grid with no projector."""
    return Grid(None, 4, 3, -100.0, 30.0, 0.5, 0.5)


@pytest.fixture
def unit_grid():
    """4 x 4 one-degree longitude/latitude grid starting at (0, 0)."""
    return Grid(None, 4, 4, 0.0, 0.0, 1.0, 1.0)


@pytest.fixture
def height_levels():
    """Four layers of height above sea level."""
    return VerticalGrid(VerticalType.HEIGHT_ABOVE_SEA_LEVEL, (0.0, 100.0, 500.0, 1000.0, 2000.0))


@pytest.fixture
def albers_grid(albers_sphere):
    """12 km CONUS-like Albers grid centred on the projection origin."""
    return Grid(albers_sphere, 20, 10, -120000.0, -60000.0, 12000.0, 12000.0)


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(20240115)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear caches before and after each test."""
    from grid_regrid.cache import CELL_CENTER_CACHE
    CELL_CENTER_CACHE.clear()
    yield
    CELL_CENTER_CACHE.clear()
