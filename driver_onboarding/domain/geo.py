"""
Geo helpers for the driver roster.

* Great-circle (Haversine) distance instead of a routing engine; the
  roster only needs "how far away is this driver", not a road route.
* H3 hexagons (resolution 7, ~5.16 km²) bin online drivers so a nearby
  lookup scans a handful of cells instead of every driver.
* ``jitter`` produces the small random walk used to simulate a moving
  driver while they are online.
"""

from __future__ import annotations

import math
import random
from typing import Optional

import h3

from .entities import Location

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def driver_h3_cell(lat: float, lng: float, resolution: int = 7) -> str:
    return h3.latlng_to_cell(lat, lng, resolution)


def nearby_cells(lat: float, lng: float, resolution: int = 7, rings: int = 1) -> set[str]:
    """The cell containing the point plus *rings* of neighbours around it."""
    return set(h3.grid_disk(driver_h3_cell(lat, lng, resolution), rings))


def jitter(
    location: Location, width: float, rng: Optional[random.Random] = None
) -> Location:
    """Move *location* by up to ``width / 2`` degrees on each axis."""
    rng = rng or random
    return Location(
        latitude=location.latitude + (rng.random() - 0.5) * width,
        longitude=location.longitude + (rng.random() - 0.5) * width,
    )
