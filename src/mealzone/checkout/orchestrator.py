"""
Checkout orchestration.

One `CheckoutOrchestrator` owns the `OrderDraft` and its `DeliveryAssessment` for a single
checkout session. It is driven by two kinds of events:

- `on_location_signal`: location input from any channel (typed search, autocomplete,
  reverse geocode, GPS fix, marker drag, provider distance callback)
- `on_field_change`: edits to the contact/address form

Every coordinate triggers the same pipeline:

    coordinate -> nearest fulfillment point -> distance (provider or haversine)
               -> fee + ETA -> zone check

Submission is a manual two-step write: insert the order header, then its line items; if
the line items fail, the header is deleted again and the line-item error is reported.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from mealzone.checkout.errors import (
    EmptyCart,
    GeocodingUnavailable,
    MissingField,
    OutOfServiceArea,
    SubmissionError,
)
from mealzone.config.settings import Settings
from mealzone.delivery.fees import FeeEstimator
from mealzone.delivery.matching import DistancePolicy, RestaurantMatcher
from mealzone.delivery.zones import ZoneResolver
from mealzone.domain.models import (
    CartLineItem,
    Coordinate,
    DeliveryAssessment,
    LocationSignal,
    OrderConfirmation,
    OrderDraft,
    OrderSubmission,
    ServiceSnapshot,
)
from mealzone.ingestion.geocoder import NominatimGeocoder
from mealzone.orders.status import OrderStatus
from mealzone.store.client import StoreClient

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("contact_name", "contact_phone", "street_detail", "area_name", "payment_method")
REQUIRED_FIELDS = ("contact_name", "contact_phone", "area_name", "street_detail")


class CheckoutOrchestrator:
    """Owns one session's order draft and keeps its delivery assessment current."""

    def __init__(
        self,
        *,
        snapshot: ServiceSnapshot,
        cart: Sequence[CartLineItem],
        settings: Settings,
        store: StoreClient | None = None,
        geocoder: NominatimGeocoder | None = None,
        user_id: str | None = None,
    ):
        self._settings = settings
        self._store = store
        self._geocoder = geocoder
        self._user_id = user_id
        self._cart: tuple[CartLineItem, ...] = tuple(cart)

        self._zones = ZoneResolver.from_settings(snapshot.zones, settings.delivery)
        self._matcher = RestaurantMatcher(points=snapshot.points)
        self._distance = DistancePolicy(strategy=settings.delivery.distance_strategy)
        self._estimator = FeeEstimator(fees=settings.delivery.fees, eta=settings.delivery.eta)

        self._draft = OrderDraft(
            payment_method=settings.checkout.default_payment_method,
            assessment=DeliveryAssessment(
                delivery_fee=self._estimator.delivery_fee(None),
                in_service_area=self._zones.is_serviceable(coordinate=None, area_name=None),
            ),
        )

    @property
    def draft(self) -> OrderDraft:
        return self._draft.model_copy(deep=True)

    @property
    def assessment(self) -> DeliveryAssessment:
        return self._draft.assessment

    @property
    def cart(self) -> tuple[CartLineItem, ...]:
        return self._cart

    # -- events -------------------------------------------------------------

    def on_location_signal(self, signal: LocationSignal) -> DeliveryAssessment:
        """Fold one location event into the draft and return the refreshed assessment."""
        if signal.formatted_address:
            self._draft.formatted_address = signal.formatted_address

        area_changed = False
        if signal.area_name is not None and signal.area_name.strip() != self._draft.area_name:
            self._draft.area_name = signal.area_name
            area_changed = True

        if signal.coordinate is not None:
            self._assess(signal.coordinate, signal)
        elif signal.provider_distance_meters is not None and self._draft.assessment.coordinate is not None:
            # Distance-matrix results arrive after the coordinate they were computed for.
            self._assess(self._draft.assessment.coordinate, signal)
        elif area_changed:
            self._refresh_service_area()
        return self._draft.assessment

    def on_field_change(self, field: str, value: str) -> DeliveryAssessment:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown checkout field: {field!r}")
        if field == "payment_method" and value not in self._settings.checkout.payment_methods:
            raise ValueError(f"Unsupported payment method: {value!r}")

        setattr(self._draft, field, value)
        if field == "area_name":
            self._refresh_service_area()
        return self._draft.assessment

    async def locate_address(self, text: str) -> DeliveryAssessment:
        """Forward-geocode typed address text; geocoding failures keep the prior assessment."""
        if self._geocoder is None:
            logger.info("No geocoder configured; keeping address text only")
            return self.on_location_signal(LocationSignal(formatted_address=text, source="typed"))
        try:
            signal = await self._geocoder.forward(text)
        except GeocodingUnavailable as e:
            logger.warning("Geocoding unavailable for typed address: %s", e)
            return self.on_location_signal(LocationSignal(formatted_address=text, source="typed"))
        return self.on_location_signal(signal)

    async def on_gps_fix(self, coordinate: Coordinate) -> DeliveryAssessment:
        """Assess a device GPS fix, then best-effort fill the address from reverse geocoding."""
        self.on_location_signal(LocationSignal(coordinate=coordinate, source="gps"))
        if self._geocoder is None:
            return self._draft.assessment
        try:
            found = await self._geocoder.reverse(coordinate)
        except GeocodingUnavailable as e:
            logger.warning("Reverse geocoding unavailable: %s", e)
            return self._draft.assessment
        # The coordinate is already assessed; only fold in the address text.
        return self.on_location_signal(
            LocationSignal(
                formatted_address=found.formatted_address, area_name=found.area_name, source="reverse_geocode"
            )
        )

    def _assess(self, coordinate: Coordinate, signal: LocationSignal) -> None:
        match = self._matcher.nearest(coordinate)
        distance_km, source = self._distance.resolve(
            match=match, provider_distance_meters=signal.provider_distance_meters
        )
        self._draft.assessment = DeliveryAssessment(
            coordinate=coordinate,
            distance_km=distance_km,
            eta_minutes=self._estimator.eta_minutes(distance_km),
            delivery_fee=self._estimator.delivery_fee(distance_km),
            in_service_area=self._zones.is_serviceable(coordinate=coordinate, area_name=self._draft.area_name),
            assigned_fulfillment_point=match.point if match else None,
            distance_source=source,
            provider_duration_text=signal.provider_duration_text,
        )
        logger.debug(
            "Assessed %s: point=%s distance_km=%s fee=%s serviceable=%s",
            coordinate,
            match.point.id if match else None,
            distance_km,
            self._draft.assessment.delivery_fee,
            self._draft.assessment.in_service_area,
        )

    def _refresh_service_area(self) -> None:
        current = self._draft.assessment
        self._draft.assessment = current.model_copy(
            update={
                "in_service_area": self._zones.is_serviceable(
                    coordinate=current.coordinate, area_name=self._draft.area_name
                )
            }
        )

    # -- submission ---------------------------------------------------------

    def validate_for_submission(self) -> None:
        """Raise a `CheckoutValidationError` if the draft cannot be submitted."""
        missing = [f for f in REQUIRED_FIELDS if not getattr(self._draft, f)]
        if missing:
            raise MissingField(missing)
        if not self._cart:
            raise EmptyCart()
        if not self._draft.assessment.in_service_area:
            raise OutOfServiceArea()

    def shipping_address_text(self) -> str:
        return self._settings.checkout.address_format.format(
            area_name=self._draft.area_name, street_detail=self._draft.street_detail
        )

    def build_order_payload(self) -> OrderSubmission:
        """Assemble the submission payload from the current draft and cart (no I/O)."""
        draft = self._draft
        assessment = draft.assessment
        subtotal = round(sum(item.line_total for item in self._cart), 2)
        point = assessment.assigned_fulfillment_point
        return OrderSubmission(
            subtotal=subtotal,
            delivery_fee=assessment.delivery_fee,
            total=round(subtotal + assessment.delivery_fee, 2),
            shipping_address_text=self.shipping_address_text(),
            contact_name=draft.contact_name,
            contact_phone=draft.contact_phone,
            payment_method=draft.payment_method,
            coordinate=assessment.coordinate,
            distance_km=assessment.distance_km,
            eta_minutes=assessment.eta_minutes,
            assigned_fulfillment_point_id=point.id if point else None,
            line_items=[item.model_copy() for item in self._cart],
        )

    def _order_row(self, payload: OrderSubmission) -> dict[str, Any]:
        return {
            "user_id": self._user_id,
            "subtotal": payload.subtotal,
            "delivery_fee": payload.delivery_fee,
            "total": payload.total,
            "shipping_address": payload.shipping_address_text,
            "contact_name": payload.contact_name,
            "contact_phone": payload.contact_phone,
            "payment_method": payload.payment_method,
            "status": OrderStatus.PENDING.value,
            "latitude": payload.coordinate.lat if payload.coordinate else None,
            "longitude": payload.coordinate.lng if payload.coordinate else None,
            "distance_km": payload.distance_km,
            "eta_minutes": payload.eta_minutes,
            "restaurant_id": payload.assigned_fulfillment_point_id,
        }

    async def submit(self) -> OrderConfirmation:
        """Validate, then write the order header and its line items.

        Raises:
            CheckoutValidationError: before any network call.
            PersistenceError / NetworkError: when a write fails. A line-item failure
                deletes the header first and still raises the line-item error.
        """
        self.validate_for_submission()
        if self._store is None:
            raise RuntimeError("CheckoutOrchestrator.submit() requires a StoreClient")

        payload = self.build_order_payload()
        created = await self._store.insert_order(self._order_row(payload))
        order_id = str(created["id"])

        item_rows = [
            {
                "order_id": order_id,
                "food_item_id": item.food_item_id,
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
            }
            for item in payload.line_items
        ]
        try:
            await self._store.insert_order_items(item_rows)
        except SubmissionError as items_error:
            logger.error("Failed to insert items for order %s, rolling back: %s", order_id, items_error)
            try:
                await self._store.delete_order(order_id)
            except SubmissionError as rollback_error:
                logger.error("Rollback of order %s failed; header left without items: %s", order_id, rollback_error)
                items_error.orphaned_order_id = order_id
            raise items_error

        logger.info("Placed order %s total=%.2f", order_id, payload.total)
        return OrderConfirmation(
            order_id=order_id,
            status=str(created.get("status") or OrderStatus.PENDING.value),
            submission=payload,
            restaurant_name=await self._restaurant_name(payload),
        )

    async def _restaurant_name(self, payload: OrderSubmission) -> str | None:
        point = self._draft.assessment.assigned_fulfillment_point
        if point is not None:
            return point.name
        if not payload.line_items or self._store is None:
            return None
        try:
            return await self._store.fetch_restaurant_name(payload.line_items[0].food_item_id)
        except SubmissionError as e:
            logger.warning("Could not look up restaurant for order tracking: %s", e)
            return None
