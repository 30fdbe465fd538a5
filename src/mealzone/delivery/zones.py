"""
Delivery-zone resolution.

Decides whether a customer location is deliverable given the session's zone snapshot.
Zones are either polygon-bounded or name-only (an administrative label such as a
barangay, matched against the customer's area field).

Strategies (`delivery.zone_strategy`):
- `polygon_then_area`: active polygon zones win; with none configured, fall back to an
  exact area-name match against active zone names.
- `polygon_only`: polygon membership only.
- `area_only`: area-name match only, polygons ignored.

Every strategy fails open when no active zone is configured, so a missing or broken
zone table never blocks checkout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from mealzone.config.settings import DeliverySettings, ZoneStrategy
from mealzone.core.geo import point_in_polygon
from mealzone.domain.models import Coordinate, DeliveryZone

logger = logging.getLogger(__name__)


def _active(zones: Sequence[DeliveryZone]) -> list[DeliveryZone]:
    return [z for z in zones if z.active]


def _polygon_zones(zones: Sequence[DeliveryZone]) -> list[DeliveryZone]:
    return [z for z in zones if z.polygon is not None]


def _area_match(area_name: str | None, zones: Sequence[DeliveryZone]) -> bool:
    if not area_name:
        return False
    return area_name in {z.name for z in zones}


def is_serviceable(
    *,
    coordinate: Coordinate | None,
    area_name: str | None,
    zones: Sequence[DeliveryZone],
    strategy: ZoneStrategy = "polygon_then_area",
    pending_coordinate_serviceable: bool = True,
) -> bool:
    """Return True when the location is inside the serviceable delivery area."""
    active = _active(zones)
    if not active:
        return True

    if strategy == "area_only":
        return _area_match(area_name, active)

    polygons = _polygon_zones(active)
    if polygons:
        if coordinate is None:
            return pending_coordinate_serviceable
        return any(point_in_polygon(coordinate, z.polygon) for z in polygons)

    if strategy == "polygon_only":
        return True
    return _area_match(area_name, active)


@dataclass(frozen=True)
class ZoneResolver:
    """Zone check bound to a zone snapshot and the configured strategy."""

    zones: tuple[DeliveryZone, ...]
    strategy: ZoneStrategy = "polygon_then_area"
    pending_coordinate_serviceable: bool = True

    @classmethod
    def from_settings(cls, zones: Sequence[DeliveryZone], settings: DeliverySettings) -> "ZoneResolver":
        return cls(
            zones=tuple(zones),
            strategy=settings.zone_strategy,
            pending_coordinate_serviceable=settings.pending_coordinate_serviceable,
        )

    def is_serviceable(self, *, coordinate: Coordinate | None, area_name: str | None) -> bool:
        result = is_serviceable(
            coordinate=coordinate,
            area_name=area_name,
            zones=self.zones,
            strategy=self.strategy,
            pending_coordinate_serviceable=self.pending_coordinate_serviceable,
        )
        logger.debug(
            "Zone check strategy=%s coordinate=%s area=%r -> %s", self.strategy, coordinate, area_name, result
        )
        return result
