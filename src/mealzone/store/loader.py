"""
Service snapshot loading.

Zones and fulfillment points are read once per checkout session, either from the row
store or from local JSON files (`catalog.source`). Raw rows are loosely shaped:

    zone:  {"name" | "barangay_name", "polygon_points": [{"lat", "lng"}, ...]?, "active" | "is_active"}
    point: {"id", "name", "lat", "lng", "active" | "is_active"}   (lat/lng may be text)

Rows that cannot be parsed are skipped with a warning rather than failing the session.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from mealzone.config.settings import Settings
from mealzone.core.env import resolve_project_path
from mealzone.domain.models import Coordinate, DeliveryZone, FulfillmentPoint, ServiceSnapshot
from mealzone.store.client import StoreClient

logger = logging.getLogger(__name__)


def _flag(row: dict[str, Any], *keys: str, default: bool = True) -> bool:
    for key in keys:
        if key in row and row[key] is not None:
            value = row[key]
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "t", "yes", "y"}
            return bool(value)
    return default


def _coordinate(lat: Any, lng: Any) -> Coordinate:
    return Coordinate(lat=float(str(lat).strip()), lng=float(str(lng).strip()))


def parse_zone_row(row: dict[str, Any]) -> DeliveryZone:
    name = row.get("name") or row.get("barangay_name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("zone row has no name")

    raw_points = row.get("polygon_points")
    if isinstance(raw_points, str):
        raw_points = json.loads(raw_points)
    polygon: tuple[Coordinate, ...] | None = None
    if raw_points:
        polygon = tuple(_coordinate(p["lat"], p.get("lng", p.get("lon"))) for p in raw_points)

    return DeliveryZone(name=name.strip(), polygon=polygon, active=_flag(row, "active", "is_active"))


def parse_point_row(row: dict[str, Any]) -> FulfillmentPoint:
    return FulfillmentPoint(
        id=str(row["id"]),
        name=str(row.get("name") or row["id"]),
        location=_coordinate(row["lat"], row.get("lng", row.get("lon"))),
        active=_flag(row, "active", "is_active"),
    )


def _parse_rows(rows: Iterable[Any], parser, kind: str) -> list:
    out = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping non-object %s row: %r", kind, row)
            continue
        try:
            out.append(parser(row))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning("Skipping invalid %s row %r: %s", kind, row.get("id") or row.get("name") or row.get("barangay_name"), e)
    return out


def parse_zones(rows: Iterable[Any]) -> list[DeliveryZone]:
    return _parse_rows(rows, parse_zone_row, "zone")


def parse_points(rows: Iterable[Any]) -> list[FulfillmentPoint]:
    return _parse_rows(rows, parse_point_row, "fulfillment point")


def _read_rows(path: str | Path) -> list[Any]:
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"{resolved} must contain a JSON array")
    return payload


def load_snapshot_from_files(*, zones_path: str | Path, points_path: str | Path) -> ServiceSnapshot:
    """Load a snapshot from local JSON files (missing files count as empty)."""
    zones_rows = _read_rows(zones_path) if resolve_project_path(zones_path).is_file() else []
    points_rows = _read_rows(points_path) if resolve_project_path(points_path).is_file() else []
    return ServiceSnapshot(zones=tuple(parse_zones(zones_rows)), points=tuple(parse_points(points_rows)))


async def load_snapshot_from_store(store: StoreClient) -> ServiceSnapshot:
    zones_rows = await store.fetch_zones()
    points_rows = await store.fetch_fulfillment_points()
    return ServiceSnapshot(zones=tuple(parse_zones(zones_rows)), points=tuple(parse_points(points_rows)))


async def load_snapshot(settings: Settings, *, store: StoreClient | None = None) -> ServiceSnapshot:
    """Load the session snapshot from the configured catalog source."""
    if settings.catalog.source == "store":
        snapshot = await load_snapshot_from_store(store or StoreClient(settings))
    else:
        snapshot = load_snapshot_from_files(
            zones_path=settings.catalog.zones_path, points_path=settings.catalog.points_path
        )
    logger.info("Loaded service snapshot: %d zones, %d fulfillment points", len(snapshot.zones), len(snapshot.points))
    return snapshot
