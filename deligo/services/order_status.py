"""Order state machine: allowed events, actor guards and status timestamps."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from deligo.models.enums import OrderEvent, OrderStatus
from deligo.models.order import Order
from deligo.models.user import User
from deligo.services.errors import InvalidTransitionError, UnauthorizedError

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# driver_id is set exactly when the order is in one of these states.
DRIVER_BOUND_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.ASSIGNED_DRIVER,
        OrderStatus.DRIVER_ACCEPTED,
        OrderStatus.PICKED_UP,
        OrderStatus.DELIVERING,
        OrderStatus.DELIVERED,
    }
)

ALLOWED_TRANSITIONS: dict[OrderStatus, dict[OrderEvent, OrderStatus]] = {
    OrderStatus.PENDING: {
        OrderEvent.ASSIGN_DRIVER: OrderStatus.ASSIGNED_DRIVER,
        OrderEvent.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.ASSIGNED_DRIVER: {
        OrderEvent.DRIVER_ACCEPT: OrderStatus.DRIVER_ACCEPTED,
        OrderEvent.DRIVER_REJECT: OrderStatus.PENDING,
        OrderEvent.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.DRIVER_ACCEPTED: {
        OrderEvent.PICK_UP: OrderStatus.PICKED_UP,
        OrderEvent.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.PICKED_UP: {
        OrderEvent.START_DELIVERY: OrderStatus.DELIVERING,
        OrderEvent.DELIVER: OrderStatus.DELIVERED,
        OrderEvent.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.DELIVERING: {
        OrderEvent.DELIVER: OrderStatus.DELIVERED,
        OrderEvent.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.DELIVERED: {},
    OrderStatus.CANCELLED: {},
}

DRIVER_EVENTS: frozenset[OrderEvent] = frozenset(
    {
        OrderEvent.DRIVER_ACCEPT,
        OrderEvent.DRIVER_REJECT,
        OrderEvent.PICK_UP,
        OrderEvent.START_DELIVERY,
        OrderEvent.DELIVER,
    }
)


def allowed_events(current: OrderStatus) -> set[OrderEvent]:
    """Return the events accepted from ``current``."""
    return set(ALLOWED_TRANSITIONS.get(current, {}))


def can_transition(current: OrderStatus, event: OrderEvent) -> bool:
    """Return whether ``event`` is allowed from ``current``."""
    return event in ALLOWED_TRANSITIONS.get(current, {})


def next_status(current: OrderStatus, event: OrderEvent) -> OrderStatus:
    """Resolve the target state or raise ``InvalidTransitionError``."""
    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Order is {current.value}; no further transitions are permitted")
    target = ALLOWED_TRANSITIONS.get(current, {}).get(event)
    if target is None:
        raise InvalidTransitionError(f"Event {event.value} is not allowed from {current.value}")
    return target


def owns_restaurant(actor: User, order: Order) -> bool:
    return actor.role == "RESTAURANT" and actor.restaurant_id is not None and actor.restaurant_id == order.restaurant_id


def ensure_actor_allowed(order: Order, event: OrderEvent, actor: User, driver_user_id: int | None = None) -> None:
    """Check role and identity guards for ``event``; raise ``UnauthorizedError``."""
    if event is OrderEvent.ASSIGN_DRIVER:
        if actor.role == "ADMIN" or owns_restaurant(actor, order):
            return
        if actor.role == "DRIVER" and driver_user_id == actor.id:
            return
        raise UnauthorizedError("Only an admin, the order's restaurant or the claiming driver can assign a driver")

    if event in DRIVER_EVENTS:
        if actor.role != "DRIVER" or order.driver_id is None or order.driver_id != actor.id:
            raise UnauthorizedError("Only the assigned driver can perform this action")
        return

    if event is OrderEvent.CANCEL:
        if actor.role == "ADMIN" or owns_restaurant(actor, order):
            return
        raise UnauthorizedError("Only an admin or the order's restaurant can cancel")


def status_changes(new_status: OrderStatus, now: datetime) -> dict[str, Any]:
    """Return status and timestamp column updates for ``new_status``."""
    changes: dict[str, Any] = {"status": new_status.value, "updated_at": now}

    if new_status is OrderStatus.ASSIGNED_DRIVER:
        changes["assigned_at"] = now
    elif new_status is OrderStatus.DRIVER_ACCEPTED:
        changes["accepted_at"] = now
    elif new_status is OrderStatus.PICKED_UP:
        changes["picked_up_at"] = now
    elif new_status is OrderStatus.DELIVERED:
        changes["delivered_at"] = now
    elif new_status is OrderStatus.CANCELLED:
        changes["cancelled_at"] = now
    elif new_status is OrderStatus.PENDING:
        changes["assigned_at"] = None
    return changes
