"""Order placement, lookup and lifecycle transitions."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.models import DriverProfile, Order, OrderItem, Restaurant, User
from deligo.models.enums import DeliveryOption, OrderEvent, OrderStatus
from deligo.schemas.order import OrderCreate
from deligo.services.audit_service import log_action, order_snapshot
from deligo.services.errors import ConflictError, InvalidTransitionError, NotFoundError, UnauthorizedError
from deligo.services.notification_service import NotificationSender, notify_order_event
from deligo.services.order_status import (
    ensure_actor_allowed,
    next_status,
    owns_restaurant,
    status_changes,
)
from deligo.utils.time import utcnow

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a monetary amount to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int, customizations: Iterable[dict[str, Any]] | None) -> Decimal:
    """Return ``quantity * (unit_price + selected customization prices)``."""
    extras = Decimal("0.00")
    for selection in customizations or []:
        for selected in selection.get("selected_items", []):
            extras += Decimal(str(selected.get("price", 0)))
    return money((Decimal(str(unit_price)) + extras) * quantity)


def order_total(subtotal: Decimal, delivery_fee: Decimal, tip: Decimal) -> Decimal:
    return money(money(subtotal) + money(delivery_fee) + money(tip))


def place_order(db: Session, *, customer: User, payload: OrderCreate) -> Order:
    """Create a new ``pending`` order for ``customer``."""
    if customer.role != "CUSTOMER":
        raise UnauthorizedError("Only customers can place orders")

    restaurant = db.get(Restaurant, payload.restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise NotFoundError(f"Restaurant {payload.restaurant_id} not found")

    items: list[OrderItem] = []
    subtotal = Decimal("0.00")
    for position, line in enumerate(payload.items):
        customizations = [selection.model_dump(mode="json") for selection in line.customizations]
        total_for_line = line_total(line.unit_price, line.quantity, customizations)
        subtotal += total_for_line
        items.append(
            OrderItem(
                position=position,
                menu_item_id=line.menu_item_id,
                name=line.name,
                unit_price=money(line.unit_price),
                quantity=line.quantity,
                customizations=customizations or None,
                special_instructions=line.special_instructions,
                line_total=total_for_line,
            )
        )

    if payload.delivery_option is DeliveryOption.PICKUP:
        delivery_fee = Decimal("0.00")
    elif payload.delivery_fee is not None:
        delivery_fee = money(payload.delivery_fee)
    else:
        delivery_fee = money(settings.default_delivery_fee)
    tip = money(payload.tip)
    subtotal = money(subtotal)

    now = utcnow()
    order = Order(
        restaurant_id=restaurant.id,
        customer_id=customer.id,
        status=OrderStatus.PENDING.value,
        version=1,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        tip=tip,
        total=order_total(subtotal, delivery_fee, tip),
        delivery_option=payload.delivery_option.value,
        delivery_address=payload.delivery_address.model_dump() if payload.delivery_address else None,
        payment_method=payload.payment_method,
        notes=payload.notes,
        created_at=now,
        updated_at=now,
        items=items,
    )
    db.add(order)
    db.flush()
    log_action(db, actor=customer, action_type="order.placed", order_id=order.id, after_snapshot=order_snapshot(order))
    db.commit()
    db.refresh(order)
    logger.info("[ORDER] Placed order_id=%s customer_id=%s total=%s", order.id, customer.id, order.total)
    return order


def get_order(db: Session, order_id: str) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def can_view_order(actor: User, order: Order) -> bool:
    if actor.role == "ADMIN":
        return True
    if actor.role == "CUSTOMER":
        return order.customer_id == actor.id
    if actor.role == "RESTAURANT":
        return owns_restaurant(actor, order)
    if actor.role == "DRIVER":
        # Unclaimed orders are visible to every driver so they can be claimed.
        return order.driver_id == actor.id or (order.driver_id is None and order.status == OrderStatus.PENDING.value)
    return False


def get_order_for(db: Session, order_id: str, actor: User) -> Order:
    """Load an order the actor may see; others get ``NotFoundError`` to avoid leaking ids."""
    order = get_order(db, order_id)
    if not can_view_order(actor, order):
        raise NotFoundError(f"Order {order_id} not found")
    return order


def list_orders_for(db: Session, actor: User, status: OrderStatus | None = None) -> list[Order]:
    """Return the orders visible to ``actor``, newest first."""
    query = select(Order)
    if actor.role == "CUSTOMER":
        query = query.where(Order.customer_id == actor.id)
    elif actor.role == "RESTAURANT":
        if actor.restaurant_id is None:
            return []
        query = query.where(Order.restaurant_id == actor.restaurant_id)
    elif actor.role == "DRIVER":
        query = query.where(Order.driver_id == actor.id)
    elif actor.role != "ADMIN":
        return []
    if status is not None:
        query = query.where(Order.status == status.value)
    return list(db.scalars(query.order_by(Order.created_at.desc(), Order.id.asc())).all())


def _claim_driver(db: Session, driver: DriverProfile, order_id: str) -> None:
    result = db.execute(
        update(DriverProfile)
        .where(DriverProfile.user_id == driver.user_id, DriverProfile.current_order_id.is_(None))
        .values(current_order_id=order_id, is_available=False)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Driver was assigned to another order concurrently")


def _release_driver(db: Session, driver_user_id: int, order_id: str, **counters: Any) -> None:
    db.execute(
        update(DriverProfile)
        .where(DriverProfile.user_id == driver_user_id, DriverProfile.current_order_id == order_id)
        .values(current_order_id=None, is_available=True)
        .execution_options(synchronize_session=False)
    )
    if counters:
        db.execute(
            update(DriverProfile)
            .where(DriverProfile.user_id == driver_user_id)
            .values(**{name: getattr(DriverProfile, name) + amount for name, amount in counters.items()})
            .execution_options(synchronize_session=False)
        )


def _resolve_assignee(db: Session, order: Order, driver_user_id: int | None) -> DriverProfile:
    if order.driver_id is not None:
        raise InvalidTransitionError("Order already has a driver")
    if driver_user_id is None:
        raise InvalidTransitionError("driver_id is required to assign a driver")
    driver = db.get(DriverProfile, driver_user_id)
    if driver is None:
        raise NotFoundError(f"Driver {driver_user_id} not found")
    if driver.current_order_id is not None:
        raise InvalidTransitionError("Driver already has an active order")
    if not driver.is_available:
        raise InvalidTransitionError("Driver is not available")
    return driver


def transition_order(
    db: Session,
    *,
    order_id: str,
    event: OrderEvent,
    actor: User,
    driver_user_id: int | None = None,
    expected_version: int | None = None,
    notifier: NotificationSender | None = None,
) -> Order:
    """Apply ``event`` to the order atomically.

    The order row is updated with a compare-and-set on ``version``; the driver
    side effects and the audit entry share the same transaction. A failed
    guard leaves the stored order untouched. Notifications go out after
    commit and never fail the transition.
    """
    order = get_order(db, order_id)
    if expected_version is not None and order.version != expected_version:
        raise ConflictError(f"Order {order_id} is at version {order.version}, expected {expected_version}")

    if event is OrderEvent.ASSIGN_DRIVER and actor.role == "DRIVER" and driver_user_id is None:
        driver_user_id = actor.id

    current = order.state
    target = next_status(current, event)
    ensure_actor_allowed(order, event, actor, driver_user_id)

    before = order_snapshot(order)
    changes = status_changes(target, utcnow())
    previous_driver_id = order.driver_id
    assignee: DriverProfile | None = None

    if event is OrderEvent.ASSIGN_DRIVER:
        assignee = _resolve_assignee(db, order, driver_user_id)
        changes.update(driver_id=assignee.user_id, driver_name=assignee.name)
    elif event is OrderEvent.DRIVER_REJECT or (event is OrderEvent.CANCEL and previous_driver_id is not None):
        changes.update(driver_id=None, driver_name=None)

    loaded_version = order.version
    result = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.version == loaded_version)
        .values(**changes, version=loaded_version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.info("[ORDER] Conflict on order_id=%s event=%s version=%s", order_id, event.value, loaded_version)
        raise ConflictError(f"Order {order_id} was modified concurrently; reload and retry")

    try:
        if assignee is not None:
            _claim_driver(db, assignee, order.id)
        elif event is OrderEvent.DRIVER_REJECT and previous_driver_id is not None:
            _release_driver(db, previous_driver_id, order.id, rejected_orders_count=1)
        elif event is OrderEvent.DELIVER and previous_driver_id is not None:
            _release_driver(db, previous_driver_id, order.id, total_deliveries=1)
        elif event is OrderEvent.CANCEL and previous_driver_id is not None:
            _release_driver(db, previous_driver_id, order.id)
    except ConflictError:
        db.rollback()
        raise

    after = dict(before, status=target.value, version=loaded_version + 1)
    after.update({key: changes[key] for key in ("driver_id", "driver_name") if key in changes})
    log_action(
        db,
        actor=actor,
        action_type=f"order.{event.value}",
        order_id=order.id,
        before_snapshot=before,
        after_snapshot=after,
    )
    db.commit()
    db.refresh(order)
    logger.info(
        "[ORDER] %s order_id=%s %s -> %s by user_id=%s",
        event.value,
        order.id,
        current.value,
        order.status,
        actor.id,
    )

    if notifier is not None:
        restaurant = db.get(Restaurant, order.restaurant_id)
        notify_order_event(notifier, order, event, restaurant.name if restaurant else "the restaurant")
    return order
