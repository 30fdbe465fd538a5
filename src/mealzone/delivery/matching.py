"""
Fulfillment-point matching and delivery distance.

`nearest` picks the closest active restaurant by great-circle distance (linear scan;
the first point reaching the minimum wins, so results are stable for a stable input
order). `DistancePolicy` decides which distance feeds fee/ETA estimation: a
map-provider driving distance when one arrived with the signal, else the haversine
distance to the matched point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from mealzone.config.settings import DistanceStrategy
from mealzone.core.geo import distance_km
from mealzone.domain.models import Coordinate, DistanceSource, FulfillmentPoint


@dataclass(frozen=True)
class Match:
    point: FulfillmentPoint
    distance_km: float


def nearest(coordinate: Coordinate | None, points: Sequence[FulfillmentPoint]) -> Match | None:
    """Return the nearest active point to `coordinate`, or None."""
    if coordinate is None:
        return None

    best: Match | None = None
    for point in points:
        if not point.active:
            continue
        d = distance_km(coordinate, point.location)
        if best is None or d < best.distance_km:
            best = Match(point=point, distance_km=d)
    return best


@dataclass(frozen=True)
class RestaurantMatcher:
    points: tuple[FulfillmentPoint, ...]

    def nearest(self, coordinate: Coordinate | None) -> Match | None:
        return nearest(coordinate, self.points)


@dataclass(frozen=True)
class DistancePolicy:
    strategy: DistanceStrategy = "provider_then_haversine"

    def resolve(
        self, *, match: Match | None, provider_distance_meters: float | None
    ) -> tuple[float | None, DistanceSource | None]:
        """Return `(distance_km, source)`; `(None, None)` when no distance is known."""
        if self.strategy == "provider_then_haversine" and provider_distance_meters is not None:
            return float(provider_distance_meters) / 1000.0, "provider"
        if match is not None:
            return match.distance_km, "haversine"
        return None, None
