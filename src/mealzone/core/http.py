"""
HTTP helpers.

This module centralizes the small amount of HTTP client logic used by the store and
geocoding adapters.

Design goals:
- Small surface area (GET / POST / PATCH / DELETE with JSON bodies).
- Explicit timeouts on every call + a deterministic User-Agent.
- Raise on non-2xx so callers decide how to fail (fail-open for geocoding,
  compensate-and-report for order submission).
"""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_USER_AGENT = "mealzone/0.1.0 (+https://local)"


def _headers(headers: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return request_headers


def _decode(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    return resp.json()


async def request_json(
    method: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 10,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """Send a request and return the decoded JSON body (None for empty bodies).

    Raises:
        httpx.HTTPStatusError: On non-2xx status codes.
        httpx.TransportError: On connection failures and timeouts.
        ValueError: If a non-empty response body is not valid JSON.
    """
    async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
        resp = await client.request(method, url, params=params, json=json, headers=_headers(headers))
        resp.raise_for_status()
        return _decode(resp)


async def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 10,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response."""
    return await request_json(
        "GET", url, params=params, headers=headers, timeout_seconds=timeout_seconds, transport=transport
    )
