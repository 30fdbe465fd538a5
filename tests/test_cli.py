import json

from mealzone import cli
from mealzone.domain.models import Coordinate, DeliveryZone, FulfillmentPoint, ServiceSnapshot

SNAPSHOT = ServiceSnapshot(
    zones=(DeliveryZone(name="Poblacion"),),
    points=(FulfillmentPoint(id="r-001", name="Poblacion Grill", location=Coordinate(lat=8.2289, lng=124.2370)),),
)


async def _fake_snapshot(settings, *, store=None):
    return SNAPSHOT


def test_quote_json(monkeypatch, capsys):
    monkeypatch.setattr(cli, "load_snapshot", _fake_snapshot)
    code = cli.main(["quote", "--lat", "8.235", "--lng", "124.24", "--area", "Poblacion", "--json"])
    out = json.loads(capsys.readouterr().out)
    assert code == 0
    assert out["in_service_area"] is True
    assert out["assigned_fulfillment_point"]["id"] == "r-001"


def test_quote_out_of_area_exit_code(monkeypatch, capsys):
    monkeypatch.setattr(cli, "load_snapshot", _fake_snapshot)
    code = cli.main(["quote", "--lat", "8.235", "--lng", "124.24", "--area", "Elsewhere"])
    assert code == 2
    assert "Serviceable: no" in capsys.readouterr().out
