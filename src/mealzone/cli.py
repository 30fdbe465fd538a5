"""
mealzone CLI entrypoint.

Intended for quick local checks of zone/fee configuration without the web frontend.
It delegates all logic to `mealzone.checkout.orchestrator.CheckoutOrchestrator`.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from mealzone.config.settings import get_settings
from mealzone.core.logging import configure_logging
from mealzone.checkout.orchestrator import CheckoutOrchestrator
from mealzone.domain.models import Coordinate, LocationSignal
from mealzone.store.loader import load_snapshot


def _cmd_quote(args: argparse.Namespace) -> int:
    """Handle the `quote` subcommand."""
    settings = get_settings()
    snapshot = asyncio.run(load_snapshot(settings))

    checkout = CheckoutOrchestrator(snapshot=snapshot, cart=[], settings=settings)
    if args.area:
        checkout.on_field_change("area_name", args.area)
    assessment = checkout.on_location_signal(
        LocationSignal(
            coordinate=Coordinate(lat=float(args.lat), lng=float(args.lng)),
            provider_distance_meters=args.provider_distance_m,
            source="typed",
        )
    )

    if args.json:
        print(json.dumps(assessment.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    point = assessment.assigned_fulfillment_point
    distance = f"{assessment.distance_km:.2f} km ({assessment.distance_source})" if assessment.distance_km is not None else "unknown"
    print(f"Serviceable: {'yes' if assessment.in_service_area else 'no'}")
    print(f"Restaurant:  {point.name + ' [' + point.id + ']' if point else '-'}")
    print(f"Distance:    {distance}")
    print(f"Fee:         {assessment.delivery_fee:.2f}")
    print(f"ETA:         {assessment.eta_minutes if assessment.eta_minutes is not None else '-'} min")
    return 0 if assessment.in_service_area else 2


def _cmd_zones(_: argparse.Namespace) -> int:
    settings = get_settings()
    snapshot = asyncio.run(load_snapshot(settings))
    for zone in snapshot.zones:
        kind = f"polygon({len(zone.polygon)})" if zone.polygon else "area"
        print(f"{zone.name:<24} {kind:<12} {'active' if zone.active else 'inactive'}")
    for point in snapshot.points:
        print(f"{point.id:<8} {point.name:<24} {point.location.lat:.5f},{point.location.lng:.5f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the mealzone CLI."""
    parser = argparse.ArgumentParser(prog="mealzone")
    sub = parser.add_subparsers(dest="command", required=True)

    q = sub.add_parser("quote", help="Assess a delivery location (zone, restaurant, fee, ETA).")
    q.add_argument("--lat", required=True, type=float)
    q.add_argument("--lng", required=True, type=float)
    q.add_argument("--area", type=str, default=None, help="Area/barangay name typed by the customer")
    q.add_argument(
        "--provider-distance-m", type=float, default=None, help="Driving distance reported by a map provider"
    )
    q.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    q.set_defaults(func=_cmd_quote)

    z = sub.add_parser("zones", help="List configured delivery zones and restaurants.")
    z.set_defaults(func=_cmd_zones)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m mealzone.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
