from mealzone.delivery.zones import ZoneResolver, is_serviceable
from mealzone.config.settings import DeliverySettings
from mealzone.domain.models import Coordinate, DeliveryZone

SQUARE = (
    Coordinate(lat=0, lng=0),
    Coordinate(lat=0, lng=1),
    Coordinate(lat=1, lng=1),
    Coordinate(lat=1, lng=0),
)
INSIDE = Coordinate(lat=0.5, lng=0.5)
OUTSIDE = Coordinate(lat=2, lng=2)


def test_area_name_zone_matches_exactly():
    zones = [DeliveryZone(name="A", polygon=None, active=True)]
    assert is_serviceable(coordinate=None, area_name="A", zones=zones) is True
    assert is_serviceable(coordinate=None, area_name="B", zones=zones) is False
    assert is_serviceable(coordinate=None, area_name="a", zones=zones) is False
    assert is_serviceable(coordinate=None, area_name=None, zones=zones) is False


def test_no_zones_fails_open():
    assert is_serviceable(coordinate=None, area_name=None, zones=[]) is True
    assert is_serviceable(coordinate=OUTSIDE, area_name="anything", zones=[]) is True


def test_only_inactive_zones_fails_open():
    zones = [DeliveryZone(name="A", active=False)]
    assert is_serviceable(coordinate=None, area_name="B", zones=zones) is True


def test_inactive_area_zone_does_not_match():
    zones = [DeliveryZone(name="A"), DeliveryZone(name="B", active=False)]
    assert is_serviceable(coordinate=None, area_name="B", zones=zones) is False


def test_polygon_zones_take_precedence_over_area_names():
    zones = [DeliveryZone(name="Square", polygon=SQUARE), DeliveryZone(name="Named")]
    assert is_serviceable(coordinate=INSIDE, area_name=None, zones=zones) is True
    # Matching area name does not rescue a coordinate outside every polygon.
    assert is_serviceable(coordinate=OUTSIDE, area_name="Named", zones=zones) is False


def test_polygon_zones_without_coordinate_follow_pending_policy():
    zones = [DeliveryZone(name="Square", polygon=SQUARE)]
    assert is_serviceable(coordinate=None, area_name=None, zones=zones) is True
    assert (
        is_serviceable(coordinate=None, area_name=None, zones=zones, pending_coordinate_serviceable=False)
        is False
    )


def test_inactive_polygon_is_ignored():
    zones = [DeliveryZone(name="Square", polygon=SQUARE, active=False), DeliveryZone(name="Named")]
    assert is_serviceable(coordinate=INSIDE, area_name="Named", zones=zones) is True
    assert is_serviceable(coordinate=INSIDE, area_name="Other", zones=zones) is False


def test_area_only_strategy_ignores_polygons():
    zones = [DeliveryZone(name="Square", polygon=SQUARE)]
    assert is_serviceable(coordinate=INSIDE, area_name="Other", zones=zones, strategy="area_only") is False
    assert is_serviceable(coordinate=OUTSIDE, area_name="Square", zones=zones, strategy="area_only") is True


def test_polygon_only_strategy_never_checks_names():
    zones = [DeliveryZone(name="Named")]
    assert is_serviceable(coordinate=None, area_name="Other", zones=zones, strategy="polygon_only") is True


def test_resolver_from_settings():
    resolver = ZoneResolver.from_settings(
        [DeliveryZone(name="Square", polygon=SQUARE)],
        DeliverySettings(zone_strategy="polygon_then_area", pending_coordinate_serviceable=False),
    )
    assert resolver.is_serviceable(coordinate=INSIDE, area_name=None) is True
    assert resolver.is_serviceable(coordinate=None, area_name=None) is False
