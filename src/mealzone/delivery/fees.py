"""
Delivery fee + ETA estimation.

Both functions take the (possibly unknown) delivery distance and apply the banded rules
configured under `delivery.fees` / `delivery.eta`:

    unknown distance  -> unknown_fee, no ETA
    d <= tier1_max    -> tier1_fee
    d <= tier2_max    -> tier2_fee
    otherwise         -> tier3_fee

    eta = max(minimum_minutes, ceil(d / average_speed_kmph * 60))
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from mealzone.config.settings import EtaSettings, FeeSettings


def _check_distance(distance_km: float) -> float:
    d = float(distance_km)
    if d < 0 or math.isnan(d):
        raise ValueError(f"distance_km must be a non-negative number, got {distance_km!r}")
    return d


def delivery_fee(distance_km: float | None, *, fees: FeeSettings | None = None) -> float:
    """Return the delivery fee for a distance in km (None = unknown distance)."""
    cfg = fees or FeeSettings()
    if distance_km is None:
        return float(cfg.unknown_fee)
    d = _check_distance(distance_km)
    if d <= cfg.tier1_max:
        return float(cfg.tier1_fee)
    if d <= cfg.tier2_max:
        return float(cfg.tier2_fee)
    return float(cfg.tier3_fee)


def eta_minutes(distance_km: float | None, *, eta: EtaSettings | None = None) -> int | None:
    """Return the estimated transit time in whole minutes, or None when distance is unknown."""
    if distance_km is None:
        return None
    cfg = eta or EtaSettings()
    d = _check_distance(distance_km)
    # Multiply first and round away float noise so e.g. 2.5 km @ 25 km/h is exactly 6.
    minutes = round(d * 60.0 / cfg.average_speed_kmph, 9)
    return max(int(cfg.minimum_minutes), int(math.ceil(minutes)))


@dataclass(frozen=True)
class FeeEstimator:
    """Fee/ETA rules bound to one configuration."""

    fees: FeeSettings
    eta: EtaSettings

    def delivery_fee(self, distance_km: float | None) -> float:
        return delivery_fee(distance_km, fees=self.fees)

    def eta_minutes(self, distance_km: float | None) -> int | None:
        return eta_minutes(distance_km, eta=self.eta)
