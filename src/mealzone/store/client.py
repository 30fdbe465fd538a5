"""
Row-store client (PostgREST table API).

The hosted backend exposes each table at `{base_url}{rest_path}/{table}` and enforces
row-level security itself; this client only forwards the project API key.

All calls are sequential and carry an explicit timeout. HTTP failures are translated into
the checkout error taxonomy:
- non-2xx response        -> `PersistenceError(stage, <server message>)`
- timeout / connect error -> `NetworkError(stage, ...)`
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from mealzone.checkout.errors import NetworkError, PersistenceError
from mealzone.config.settings import Settings
from mealzone.core.http import request_json

logger = logging.getLogger(__name__)


def _error_message(exc: httpx.HTTPStatusError) -> str:
    try:
        body = exc.response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {exc.response.status_code}"


@asynccontextmanager
async def store_call(stage: str) -> AsyncIterator[None]:
    """Translate httpx failures raised inside the block for `stage`."""
    try:
        yield
    except httpx.HTTPStatusError as e:
        raise PersistenceError(stage, _error_message(e)) from e
    except httpx.TimeoutException as e:
        raise NetworkError(stage, "request timed out") from e
    except httpx.TransportError as e:
        raise NetworkError(stage, str(e) or e.__class__.__name__) from e


class StoreClient:
    """Thin async adapter over the store's table endpoints."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    @property
    def tables(self):
        return self._settings.store.tables

    def _url(self, table: str) -> str:
        cfg = self._settings.store
        return f"{cfg.base_url.rstrip('/')}{cfg.rest_path}/{table}"

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        key = self._settings.store.api_key
        if key:
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        return await request_json(
            method,
            self._url(table),
            params=params,
            json=json,
            headers=self._headers({"Prefer": prefer} if prefer else None),
            timeout_seconds=self._settings.store.timeout_seconds,
            transport=self._transport,
        )

    async def fetch_zones(self) -> list[dict[str, Any]]:
        async with store_call("delivery_zones"):
            rows = await self._request(
                "GET", self.tables.delivery_zones, params={"select": "*", "is_active": "eq.true"}
            )
        return list(rows or [])

    async def fetch_fulfillment_points(self) -> list[dict[str, Any]]:
        async with store_call("restaurants"):
            rows = await self._request(
                "GET", self.tables.restaurants, params={"select": "*", "is_active": "eq.true"}
            )
        return list(rows or [])

    async def insert_order(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert an order header and return the stored row (including its generated id)."""
        async with store_call("order"):
            rows = await self._request("POST", self.tables.orders, json=row, prefer="return=representation")
        if isinstance(rows, list):
            rows = rows[0] if rows else None
        if not isinstance(rows, dict) or rows.get("id") is None:
            raise PersistenceError("order", "Failed to create order, no data returned.")
        return rows

    async def insert_order_items(self, rows: list[dict[str, Any]]) -> None:
        async with store_call("order_items"):
            await self._request("POST", self.tables.order_items, json=rows, prefer="return=minimal")

    async def delete_order(self, order_id: str) -> None:
        async with store_call("order_rollback"):
            await self._request("DELETE", self.tables.orders, params={"id": f"eq.{order_id}"})

    async def fetch_order(self, order_id: str) -> dict[str, Any] | None:
        async with store_call("order"):
            rows = await self._request("GET", self.tables.orders, params={"select": "*", "id": f"eq.{order_id}"})
        return rows[0] if rows else None

    async def fetch_orders_for_restaurant(self, restaurant_id: str) -> list[dict[str, Any]]:
        async with store_call("orders"):
            rows = await self._request(
                "GET",
                self.tables.orders,
                params={"select": "*", "restaurant_id": f"eq.{restaurant_id}", "order": "created_at.desc"},
            )
        return list(rows or [])

    async def update_order_status(self, order_id: str, status: str) -> None:
        async with store_call("order_status"):
            await self._request(
                "PATCH",
                self.tables.orders,
                params={"id": f"eq.{order_id}"},
                json={"status": status},
                prefer="return=minimal",
            )

    async def fetch_restaurant_name(self, food_item_id: str) -> str | None:
        """Look up the restaurant that sells `food_item_id` (two sequential reads)."""
        async with store_call("food_items"):
            items = await self._request(
                "GET",
                self.tables.food_items,
                params={"select": "restaurant_id", "food_item_id": f"eq.{food_item_id}"},
            )
            if not items or items[0].get("restaurant_id") is None:
                return None
            restaurants = await self._request(
                "GET",
                self.tables.restaurants,
                params={"select": "name", "id": f"eq.{items[0]['restaurant_id']}"},
            )
        if not restaurants:
            return None
        return restaurants[0].get("name")
