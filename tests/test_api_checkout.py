from starlette.testclient import TestClient

from mealzone.api.app import app
from mealzone.checkout.errors import PersistenceError
from mealzone.domain.models import Coordinate, DeliveryZone, FulfillmentPoint, ServiceSnapshot

SNAPSHOT = ServiceSnapshot(
    zones=(DeliveryZone(name="Poblacion"), DeliveryZone(name="Tibanga")),
    points=(FulfillmentPoint(id="r-001", name="Poblacion Grill", location=Coordinate(lat=8.2289, lng=124.2370)),),
)


class _StubStore:
    def __init__(self, *, fail_items: bool = False, order_status: str = "Pending"):
        self.fail_items = fail_items
        self.order_status = order_status
        self.deleted: list[str] = []
        self.updated: list[tuple[str, str]] = []

    async def insert_order(self, row):
        return {"id": "ord-1", "status": row["status"]}

    async def insert_order_items(self, rows):
        if self.fail_items:
            raise PersistenceError("order_items", "row-level security violation")

    async def delete_order(self, order_id):
        self.deleted.append(order_id)

    async def fetch_order(self, order_id):
        if order_id == "missing":
            return None
        return {"id": order_id, "status": self.order_status}

    async def update_order_status(self, order_id, status):
        self.updated.append((order_id, status))

    async def fetch_orders_for_restaurant(self, restaurant_id):
        return [{"id": "a", "status": "Pending"}, {"id": "b", "status": "Delivered"}]


class _NoGeocoder:
    async def forward(self, text):
        raise AssertionError("geocoder should not be called when a coordinate is supplied")


def _patch(monkeypatch, store: _StubStore) -> None:
    import mealzone.api.routes as routes

    async def fake_snapshot():
        return SNAPSHOT

    monkeypatch.setattr(routes, "_snapshot", fake_snapshot)
    monkeypatch.setattr(routes, "_store", lambda: store)
    monkeypatch.setattr(routes, "_geocoder", lambda: _NoGeocoder())


CHECKOUT = {
    "user_id": "u-1",
    "contact_name": "Maria Santos",
    "contact_phone": "09171234567",
    "street_detail": "123 Quezon Ave",
    "area_name": "Poblacion",
    "signals": [
        {"coordinate": {"lat": 8.235, "lng": 124.24}, "provider_distance_meters": 3200, "source": "distance_matrix"}
    ],
    "cart": [
        {"food_item_id": "f-1", "name": "Chicken Inasal", "price": 100, "quantity": 2},
        {"food_item_id": "f-2", "name": "Halo-halo", "price": 50, "quantity": 1},
    ],
}


def test_quote_endpoint(monkeypatch):
    _patch(monkeypatch, _StubStore())
    with TestClient(app) as c:
        resp = c.post(
            "/api/delivery/quote",
            json={"signal": {"coordinate": {"lat": 8.235, "lng": 124.24}}, "area_name": "Tibanga"},
        )
    assert resp.status_code == 200
    data = resp.json()
    assert data["in_service_area"] is True
    assert data["assigned_fulfillment_point"]["id"] == "r-001"
    assert data["delivery_fee"] == 30


def test_checkout_success(monkeypatch):
    _patch(monkeypatch, _StubStore())
    with TestClient(app) as c:
        resp = c.post("/api/checkout", json=CHECKOUT)
    assert resp.status_code == 200
    data = resp.json()
    assert data["order_id"] == "ord-1"
    assert data["submission"]["total"] == 300
    assert data["submission"]["eta_minutes"] == 8
    assert data["restaurant_name"] == "Poblacion Grill"


def test_checkout_out_of_area_is_400(monkeypatch):
    _patch(monkeypatch, _StubStore())
    with TestClient(app) as c:
        resp = c.post("/api/checkout", json={**CHECKOUT, "area_name": "Santiago"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "OUT_OF_SERVICE_AREA"


def test_checkout_missing_fields_listed(monkeypatch):
    _patch(monkeypatch, _StubStore())
    with TestClient(app) as c:
        resp = c.post("/api/checkout", json={**CHECKOUT, "contact_phone": ""})
    assert resp.status_code == 400
    assert resp.json()["detail"]["fields"] == ["contact_phone"]


def test_checkout_item_failure_is_retryable_502(monkeypatch):
    store = _StubStore(fail_items=True)
    _patch(monkeypatch, store)
    with TestClient(app) as c:
        resp = c.post("/api/checkout", json=CHECKOUT)
    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["retryable"] is True
    assert "row-level security" in detail["message"]
    assert store.deleted == ["ord-1"]


def test_status_update_follows_pipeline(monkeypatch):
    store = _StubStore(order_status="Pending")
    _patch(monkeypatch, store)
    with TestClient(app) as c:
        ok = c.post("/api/orders/ord-1/status", json={"status": "Preparing"})
        skip = c.post("/api/orders/ord-1/status", json={"status": "Delivered"})
        missing = c.post("/api/orders/missing/status", json={"status": "Preparing"})
    assert ok.status_code == 200
    assert store.updated == [("ord-1", "Preparing")]
    assert skip.status_code == 409
    assert missing.status_code == 404


def test_restaurant_orders_status_filter(monkeypatch):
    _patch(monkeypatch, _StubStore())
    with TestClient(app) as c:
        all_orders = c.get("/api/restaurants/r-001/orders")
        delivered = c.get("/api/restaurants/r-001/orders", params={"status_filter": "Delivered"})
        bad = c.get("/api/restaurants/r-001/orders", params={"status_filter": "Shipped"})
    assert [o["id"] for o in all_orders.json()["orders"]] == ["a", "b"]
    assert [o["id"] for o in delivered.json()["orders"]] == ["b"]
    assert bad.status_code == 400
