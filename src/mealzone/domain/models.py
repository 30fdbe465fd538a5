"""
Domain models (Pydantic).

These types are the stable "contract" between layers:
- snapshot entities loaded once per checkout session (`DeliveryZone`, `FulfillmentPoint`)
- transient location input (`LocationSignal`)
- derived checkout state (`DeliveryAssessment`, `OrderDraft`)
- submission output (`OrderSubmission`, `OrderConfirmation`)

Keeping them in one place gives early validation and consistent JSON across CLI/API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    """A geographic point in decimal degrees (immutable)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class DeliveryZone(BaseModel):
    """A serviceable area: polygon-bounded, or identified only by its name."""

    model_config = ConfigDict(frozen=True)

    name: str
    polygon: tuple[Coordinate, ...] | None = None
    active: bool = True

    @field_validator("polygon")
    @classmethod
    def _polygon_has_area(cls, value: tuple[Coordinate, ...] | None) -> tuple[Coordinate, ...] | None:
        if value is not None and len(value) < 3:
            raise ValueError(f"polygon needs at least 3 points, got {len(value)}")
        return value


class FulfillmentPoint(BaseModel):
    """A restaurant/kitchen that orders can be assigned to."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: Coordinate
    active: bool = True


class ServiceSnapshot(BaseModel):
    """Zones + fulfillment points fetched once for a checkout session."""

    model_config = ConfigDict(frozen=True)

    zones: tuple[DeliveryZone, ...] = ()
    points: tuple[FulfillmentPoint, ...] = ()


SignalSource = Literal[
    "typed",
    "autocomplete",
    "reverse_geocode",
    "forward_geocode",
    "gps",
    "marker_drag",
    "distance_matrix",
]


class LocationSignal(BaseModel):
    """One incoming event carrying partial location information."""

    coordinate: Coordinate | None = None
    formatted_address: str | None = None
    area_name: str | None = None
    provider_distance_meters: float | None = Field(default=None, ge=0)
    provider_duration_text: str | None = None
    source: SignalSource = "typed"


DistanceSource = Literal["provider", "haversine"]


class DeliveryAssessment(BaseModel):
    """Derived delivery state, recomputed on every location signal."""

    coordinate: Coordinate | None = None
    distance_km: float | None = None
    eta_minutes: int | None = None
    delivery_fee: float
    in_service_area: bool
    assigned_fulfillment_point: FulfillmentPoint | None = None
    distance_source: DistanceSource | None = None
    provider_duration_text: str | None = None


class CartLineItem(BaseModel):
    food_item_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class OrderDraft(BaseModel):
    """Mutable checkout form state owned by one `CheckoutOrchestrator`."""

    model_config = ConfigDict(validate_assignment=True)

    contact_name: str = ""
    contact_phone: str = ""
    street_detail: str = ""
    area_name: str = ""
    payment_method: str = "COD"
    formatted_address: str | None = None
    assessment: DeliveryAssessment

    @field_validator("contact_name", "contact_phone", "street_detail", "area_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class OrderSubmission(BaseModel):
    """Pure payload assembled from the draft + cart at submission time."""

    subtotal: float
    delivery_fee: float
    total: float
    shipping_address_text: str
    contact_name: str
    contact_phone: str
    payment_method: str
    coordinate: Coordinate | None = None
    distance_km: float | None = None
    eta_minutes: int | None = None
    assigned_fulfillment_point_id: str | None = None
    line_items: list[CartLineItem]


class OrderConfirmation(BaseModel):
    order_id: str
    status: str
    submission: OrderSubmission
    restaurant_name: str | None = None
