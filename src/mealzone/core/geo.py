from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Protocol, Sequence

"""
Geospatial helpers.

A tiny geometry layer so checkout code can do distance and zone-membership checks
without pulling in heavier GIS dependencies. Inputs are anything exposing `lat`/`lng`
in decimal degrees (e.g. `mealzone.domain.models.Coordinate`).
"""

EARTH_RADIUS_KM = 6371.0


class LatLng(Protocol):
    lat: float
    lng: float


def distance_km(a: LatLng, b: LatLng) -> float:
    """Great-circle (haversine) distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lng)
    lat2 = radians(b.lat)
    lon2 = radians(b.lng)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding noise can push h a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * asin(sqrt(min(1.0, h)))


def point_in_polygon(point: LatLng, polygon: Sequence[LatLng]) -> bool:
    """Ray-casting parity test (longitude as x, latitude as y).

    The ring is implicitly closed. Fewer than 3 vertices never contains anything.

    Boundary points use the half-open crossing rule: an edge counts when one endpoint is
    strictly above the ray and the other is on or below it, and a crossing counts only
    when it is strictly east of the point. For an axis-aligned box that puts the
    western and southern edges inside and the eastern and northern edges outside.
    """
    n = len(polygon)
    if n < 3:
        return False

    x = point.lng
    y = point.lat
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].lng, polygon[i].lat
        xj, yj = polygon[j].lng, polygon[j].lat
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside
