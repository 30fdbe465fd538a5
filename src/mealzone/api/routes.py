"""
API routes.

Endpoints:
- GET  `/api/zones`: the current service snapshot (zones + fulfillment points).
- POST `/api/delivery/quote`: assess a location (fee, ETA, assigned restaurant, serviceability).
- POST `/api/checkout`: validate and place an order.
- GET  `/api/restaurants/{restaurant_id}/orders`: owner dashboard listing with status filter.
- POST `/api/orders/{order_id}/status`: move an order along its status pipeline.

Each request is its own checkout session: the snapshot is loaded once per request and
discarded afterwards.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from mealzone.checkout.errors import CheckoutValidationError, MissingField, SubmissionError
from mealzone.checkout.orchestrator import CheckoutOrchestrator
from mealzone.config.settings import get_settings
from mealzone.domain.models import (
    CartLineItem,
    DeliveryAssessment,
    LocationSignal,
    OrderConfirmation,
    ServiceSnapshot,
)
from mealzone.ingestion.geocoder import NominatimGeocoder
from mealzone.orders.status import DashboardPreferences, InvalidStatusTransition, filter_orders, transition
from mealzone.store.client import StoreClient
from mealzone.store.loader import load_snapshot

router = APIRouter()


class QuoteRequest(BaseModel):
    signal: LocationSignal
    area_name: str | None = None


class CheckoutRequest(BaseModel):
    user_id: str | None = None
    contact_name: str = ""
    contact_phone: str = ""
    street_detail: str = ""
    area_name: str = ""
    payment_method: str | None = None
    address_text: str | None = None
    signals: list[LocationSignal] = Field(default_factory=list)
    cart: list[CartLineItem] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: str


@lru_cache
def _store() -> StoreClient:
    return StoreClient(get_settings())


@lru_cache
def _geocoder() -> NominatimGeocoder:
    return NominatimGeocoder(get_settings())


async def _snapshot() -> ServiceSnapshot:
    return await load_snapshot(get_settings(), store=_store())


def _validation_error(e: CheckoutValidationError) -> HTTPException:
    detail = {"code": e.code, "message": str(e)}
    if isinstance(e, MissingField):
        detail["fields"] = e.fields
    return HTTPException(status_code=400, detail=detail)


def _submission_error(e: SubmissionError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"code": e.code, "message": e.message, "retryable": e.retryable},
    )


@router.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@router.get("/api/zones")
async def get_zones() -> dict:
    """Return the zones and fulfillment points a checkout session would see."""
    try:
        snapshot = await _snapshot()
    except SubmissionError as e:
        raise _submission_error(e) from e
    return snapshot.model_dump(mode="json")


@router.post("/api/delivery/quote", response_model=DeliveryAssessment)
async def post_quote(req: QuoteRequest) -> DeliveryAssessment:
    """Run one location signal through zone/matching/fee estimation."""
    try:
        snapshot = await _snapshot()
    except SubmissionError as e:
        raise _submission_error(e) from e
    checkout = CheckoutOrchestrator(snapshot=snapshot, cart=[], settings=get_settings())
    if req.area_name is not None:
        checkout.on_field_change("area_name", req.area_name)
    return checkout.on_location_signal(req.signal)


@router.post("/api/checkout", response_model=OrderConfirmation)
async def post_checkout(req: CheckoutRequest) -> OrderConfirmation:
    """Replay the submitted form + location signals into a fresh session and place the order."""
    settings = get_settings()
    try:
        snapshot = await _snapshot()
        checkout = CheckoutOrchestrator(
            snapshot=snapshot,
            cart=req.cart,
            settings=settings,
            store=_store(),
            geocoder=_geocoder(),
            user_id=req.user_id,
        )
        for field in ("contact_name", "contact_phone", "street_detail", "area_name"):
            checkout.on_field_change(field, getattr(req, field))
        if req.payment_method:
            checkout.on_field_change("payment_method", req.payment_method)
        if req.address_text and not any(s.coordinate for s in req.signals):
            await checkout.locate_address(req.address_text)
        for signal in req.signals:
            checkout.on_location_signal(signal)
        return await checkout.submit()
    except CheckoutValidationError as e:
        raise _validation_error(e) from e
    except SubmissionError as e:
        raise _submission_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e


@router.get("/api/restaurants/{restaurant_id}/orders")
async def get_restaurant_orders(restaurant_id: str, status_filter: str | None = None) -> dict:
    """Owner dashboard listing; the filter falls back to `dashboard.default_status_filter`."""
    try:
        prefs = DashboardPreferences(status_filter=status_filter or get_settings().dashboard.default_status_filter)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    try:
        orders = await _store().fetch_orders_for_restaurant(restaurant_id)
    except SubmissionError as e:
        raise _submission_error(e) from e
    return {"status_filter": prefs.status_filter, "orders": filter_orders(orders, prefs)}


@router.post("/api/orders/{order_id}/status")
async def post_order_status(order_id: str, req: StatusUpdateRequest) -> dict:
    """Apply one validated status transition."""
    store = _store()
    try:
        order = await store.fetch_order(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": f"Order {order_id} not found"})
        new_status = transition(order.get("status", ""), req.status)
        await store.update_order_status(order_id, new_status.value)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail={"code": "INVALID_TRANSITION", "message": str(e)}) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    except SubmissionError as e:
        raise _submission_error(e) from e
    return {"order_id": order_id, "status": new_status.value}
