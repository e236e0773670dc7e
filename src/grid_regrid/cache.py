"""
LRU cache of grid cell-centre longitude/latitude arrays.
"""
from cachetools import LRUCache

from .constants import CELL_CENTER_CACHE_BYTES


def _nbytes_centers(centers) -> int:
    """Calculate byte size of a (longitudes, latitudes) cache entry."""
    return sum(getattr(a, "nbytes", 0) for a in centers)


# Cell centres of recently used grids, bounded by total array bytes
CELL_CENTER_CACHE = LRUCache(maxsize=CELL_CENTER_CACHE_BYTES, getsizeof=_nbytes_centers)


def cached_centers(key, compute):
    """
    Return the cache entry for key, computing and storing it on a miss.

    Arrays larger than the whole cache are returned without being stored.
    Stored arrays are made read-only so callers cannot corrupt the cache.
    """
    centers = CELL_CENTER_CACHE.get(key)
    if centers is None:
        centers = tuple(compute())
        for array in centers:
            array.setflags(write=False)
        if _nbytes_centers(centers) <= CELL_CENTER_CACHE.maxsize:
            CELL_CENTER_CACHE[key] = centers
    return centers
