"""
Order status progression.

Orders move forward one step at a time through a fixed pipeline and may be cancelled
only before a driver is assigned:

    Pending -> Preparing -> Driver Assigned -> Out for Delivery -> Delivered -> Completed
    Pending | Preparing -> Cancelled

The owner dashboard's status filter is modelled as `DashboardPreferences` and passed in
explicitly by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    DRIVER_ASSIGNED = "Driver Assigned"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.DRIVER_ASSIGNED,
    OrderStatus.DRIVER_ASSIGNED: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: OrderStatus.COMPLETED,
}

CANCELLABLE: frozenset[OrderStatus] = frozenset({OrderStatus.PENDING, OrderStatus.PREPARING})


class InvalidStatusTransition(ValueError):
    def __init__(self, current: OrderStatus, target: OrderStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from '{current.value}' to '{target.value}'")


def parse_status(value: str | OrderStatus) -> OrderStatus:
    """Parse a status label as stored in the orders table."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Unknown order status: {value!r}") from e


def next_status(current: str | OrderStatus) -> OrderStatus | None:
    return NEXT_STATUS.get(parse_status(current))


def can_transition(current: str | OrderStatus, target: str | OrderStatus) -> bool:
    cur = parse_status(current)
    tgt = parse_status(target)
    if tgt is OrderStatus.CANCELLED:
        return cur in CANCELLABLE
    return NEXT_STATUS.get(cur) is tgt


def transition(current: str | OrderStatus, target: str | OrderStatus) -> OrderStatus:
    """Validate a status change and return the new status."""
    cur = parse_status(current)
    tgt = parse_status(target)
    if not can_transition(cur, tgt):
        raise InvalidStatusTransition(cur, tgt)
    return tgt


@dataclass(frozen=True)
class DashboardPreferences:
    """Owner-dashboard view state ("all" or one status label)."""

    status_filter: str = "all"

    def __post_init__(self) -> None:
        if self.status_filter != "all":
            parse_status(self.status_filter)


def filter_orders(orders: Iterable[Mapping[str, Any]], prefs: DashboardPreferences) -> list[Mapping[str, Any]]:
    """Return the orders visible under the dashboard's status filter."""
    if prefs.status_filter == "all":
        return list(orders)
    return [o for o in orders if o.get("status") == prefs.status_filter]
