# src/mealzone/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/mealzone/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `MEALZONE_CONFIG_PATH`
- environment variables (e.g., `MEALZONE_STORE_URL`, `MEALZONE_STORE_KEY`)

Design rule:
- Fee bands, speeds and strategy choices live in YAML, not hard-coded in checkout logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from mealzone.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `mealzone.config`."""
    text = resources.files("mealzone.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "mealzone"
    log_level: str = "INFO"


class StoreTables(BaseModel):
    orders: str = "orders"
    order_items: str = "order_items"
    delivery_zones: str = "delivery_zones"
    restaurants: str = "restaurants"
    food_items: str = "food_items"


class StoreSettings(BaseModel):
    base_url: str = "http://localhost:54321"
    rest_path: str = "/rest/v1"
    api_key: str | None = None
    timeout_seconds: float = Field(10, gt=0)
    tables: StoreTables = Field(default_factory=StoreTables)


class GeocodingSettings(BaseModel):
    enabled: bool = True
    base_url: str = "https://nominatim.openstreetmap.org"
    timeout_seconds: float = Field(8, gt=0)
    country_codes: list[str] = Field(default_factory=list)
    # Reverse-geocode address keys checked in order for the administrative area name.
    area_fields: list[str] = Field(
        default_factory=lambda: ["quarter", "suburb", "village", "neighbourhood", "city_district"]
    )


class FeeSettings(BaseModel):
    unknown_fee: float = Field(50, ge=0)
    tier1_max: float = Field(2, gt=0)
    tier1_fee: float = Field(30, ge=0)
    tier2_max: float = Field(5, gt=0)
    tier2_fee: float = Field(50, ge=0)
    tier3_fee: float = Field(70, ge=0)

    @model_validator(mode="after")
    def _validate_bands(self) -> "FeeSettings":
        if self.tier2_max <= self.tier1_max:
            raise ValueError("fees.tier2_max must be greater than fees.tier1_max")
        return self


class EtaSettings(BaseModel):
    average_speed_kmph: float = Field(25, gt=0)
    minimum_minutes: int = Field(5, ge=0)


ZoneStrategy = Literal["polygon_then_area", "polygon_only", "area_only"]
DistanceStrategy = Literal["provider_then_haversine", "haversine_only"]


class DeliverySettings(BaseModel):
    zone_strategy: ZoneStrategy = "polygon_then_area"
    distance_strategy: DistanceStrategy = "provider_then_haversine"
    # Serviceability while polygon zones exist but no coordinate has been resolved yet.
    pending_coordinate_serviceable: bool = True
    fees: FeeSettings = Field(default_factory=FeeSettings)
    eta: EtaSettings = Field(default_factory=EtaSettings)


class CheckoutSettings(BaseModel):
    address_format: str = "{area_name} • {street_detail}"
    default_payment_method: str = "COD"
    payment_methods: list[str] = Field(default_factory=lambda: ["COD"])

    @model_validator(mode="after")
    def _validate_payment(self) -> "CheckoutSettings":
        if self.default_payment_method not in self.payment_methods:
            raise ValueError("checkout.default_payment_method must be listed in checkout.payment_methods")
        return self


class CatalogSettings(BaseModel):
    source: Literal["store", "file"] = "file"
    zones_path: str = "data/delivery_zones.json"
    points_path: str = "data/restaurants.json"


class DashboardSettings(BaseModel):
    default_status_filter: str = "all"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: only a small whitelist is honoured; everything else belongs in YAML.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("MEALZONE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    store_url = os.getenv("MEALZONE_STORE_URL")
    store_key = os.getenv("MEALZONE_STORE_KEY")
    if store_url:
        data.setdefault("store", {})["base_url"] = store_url
    if store_key:
        data.setdefault("store", {})["api_key"] = store_key

    catalog_source = os.getenv("MEALZONE_CATALOG_SOURCE")
    if catalog_source:
        data.setdefault("catalog", {})["source"] = catalog_source

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("MEALZONE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
