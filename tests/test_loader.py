import asyncio
import json

import pytest

from mealzone.config.settings import get_settings
from mealzone.delivery.zones import is_serviceable
from mealzone.domain.models import Coordinate
from mealzone.store.loader import (
    load_snapshot,
    load_snapshot_from_files,
    parse_point_row,
    parse_points,
    parse_zone_row,
    parse_zones,
)


def test_point_row_parses_text_coordinates():
    point = parse_point_row({"id": 5, "name": "Tubod Eats", "lat": " 8.2130 ", "lng": "124.2360", "is_active": "true"})
    assert point.id == "5"
    assert point.location.lat == 8.213
    assert point.location.lng == 124.236
    assert point.active is True


def test_zone_row_accepts_barangay_name_and_polygon_points():
    zone = parse_zone_row(
        {
            "barangay_name": "Tibanga",
            "is_active": False,
            "polygon_points": [{"lat": 0, "lng": 0}, {"lat": 0, "lng": 1}, {"lat": 1, "lng": 1}],
        }
    )
    assert zone.name == "Tibanga"
    assert zone.active is False
    assert len(zone.polygon) == 3


def test_zone_row_polygon_points_as_json_text():
    zone = parse_zone_row({"name": "A", "polygon_points": json.dumps([{"lat": 1, "lng": 2}] * 3)})
    assert zone.polygon[0].lng == 2


def test_name_only_zone_has_no_polygon():
    assert parse_zone_row({"name": "Poblacion"}).polygon is None


def test_invalid_rows_are_skipped():
    points = parse_points(
        [
            {"id": "ok", "lat": "8.2", "lng": "124.2"},
            {"id": "bad-lat", "lat": "north", "lng": "124.2"},
            {"id": "out-of-range", "lat": "95", "lng": "124.2"},
            {"id": "no-lng", "lat": "8.2"},
            "not a row",
        ]
    )
    assert [p.id for p in points] == ["ok"]
    assert parse_zones([{"is_active": True}, {"name": "A"}])[0].name == "A"


def test_load_snapshot_from_files(tmp_path):
    zones = tmp_path / "zones.json"
    points = tmp_path / "points.json"
    zones.write_text(json.dumps([{"barangay_name": "Poblacion", "is_active": True}]), encoding="utf-8")
    points.write_text(json.dumps([{"id": "r-1", "name": "Grill", "lat": "8.2", "lng": "124.2"}]), encoding="utf-8")

    snapshot = load_snapshot_from_files(zones_path=zones, points_path=points)
    assert [z.name for z in snapshot.zones] == ["Poblacion"]
    assert [p.id for p in snapshot.points] == ["r-1"]


def test_missing_files_give_empty_snapshot(tmp_path):
    snapshot = load_snapshot_from_files(zones_path=tmp_path / "nope.json", points_path=tmp_path / "nope2.json")
    assert snapshot.zones == ()
    assert snapshot.points == ()


class _StubStore:
    async def fetch_zones(self):
        return [{"name": "A", "is_active": True}]

    async def fetch_fulfillment_points(self):
        return [{"id": "r-1", "name": "Grill", "lat": "8.2", "lng": "124.2", "is_active": True}]


def test_load_snapshot_from_store_source():
    settings = get_settings()
    settings = settings.model_copy(update={"catalog": settings.catalog.model_copy(update={"source": "store"})})
    snapshot = asyncio.run(load_snapshot(settings, store=_StubStore()))
    assert snapshot.zones[0].name == "A"
    assert snapshot.points[0].location.lat == 8.2


def test_degenerate_polygon_row_is_skipped():
    rows = [
        {"barangay_name": "Poblacion", "is_active": True},
        {"barangay_name": "Broken", "is_active": True, "polygon_points": [{"lat": 8.2, "lng": 124.2}, {"lat": 8.3, "lng": 124.3}]},
    ]
    zones = parse_zones(rows)
    assert [z.name for z in zones] == ["Poblacion"]
    # Only name-based zones remain, so the area name decides.
    assert is_serviceable(coordinate=Coordinate(lat=8.23, lng=124.24), area_name="Poblacion", zones=zones)


def test_zone_row_with_two_points_is_invalid():
    with pytest.raises(ValueError, match="at least 3 points"):
        parse_zone_row({"name": "Line", "polygon_points": [{"lat": 0, "lng": 0}, {"lat": 1, "lng": 1}]})
