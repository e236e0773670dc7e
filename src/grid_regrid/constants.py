"""
Constants for vertical grids, aggregation and provenance notes.
"""

# Vertical grid limits
MAXIMUM_LAYERS = 100

# Default physical constants of the sigma-pressure vertical coordinate
GRAVITY = 9.81               # m/s^2
GAS_CONSTANT = 287.04        # J/kg/K
LAPSE_RATE = 50.0            # K, MM5 reference lapse-rate parameter A
REFERENCE_TEMPERATURE = 290.0    # K, T0s
REFERENCE_PRESSURE = 100000.0    # Pa, P00
DEFAULT_TOP_PRESSURE = 10000.0   # Pa
DEFAULT_SIGMA_LEVELS = (1.0, 0.995)

# Standard atmosphere used for pressure levels (Vis5d scale-height formula)
SURFACE_PRESSURE_MB = 1012.5
PRESSURE_SCALE_HEIGHT = 7200.0   # m

# Accepted ranges of the vertical constants and levels when parsing tokens
VERTICAL_CONSTANT_RANGES = {
    "gravity": (0.01, 1e2),
    "gas_constant": (0.01, 1e4),
    "lapse_rate": (0.01, 1e4),
    "reference_temperature": (0.01, 1e4),
    "reference_pressure": (0.01, 1e6),
}
TOP_PRESSURE_RANGE = (0.01, 1e8)
HEIGHT_LEVEL_RANGE = (-1000.0, 100000.0)
MINIMUM_LEVEL_DIFFERENCE = 1e-6

# Grid geometry limits accepted when parsing tokens
EDGE_RANGE = (-1e8, 1e8)
CELL_SIZE_RANGE = (0.001, 1e6)

# Aggregation methods
AGGREGATE_NEAREST = "nearest"
AGGREGATE_MEAN = "mean"
AGGREGATE_WEIGHTED = "weighted"
AGGREGATE_METHODS = (AGGREGATE_NEAREST, AGGREGATE_MEAN, AGGREGATE_WEIGHTED)

# Squared normalized radius below which a point counts as on the cell centre
MINIMUM_RADIUS_SQUARED = 1e-6

# Provenance note capacities (bytes of UTF-8)
NOTE_LENGTH = 79
REGRIDDED_NOTE_LENGTH = 255
NOTE_SEPARATOR = ","

# Cell-centre cache: 64 MB of longitude/latitude arrays
CELL_CENTER_CACHE_BYTES = 64 * 1024 * 1024
