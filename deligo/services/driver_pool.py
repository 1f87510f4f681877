"""Driver-facing order pool: what a driver can claim and what they hold."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from deligo.models import DriverProfile, Order, User
from deligo.models.enums import OrderEvent, OrderStatus
from deligo.schemas.driver import DeliveryEarning, DriverEarningsResponse
from deligo.services.errors import InvalidTransitionError, NotFoundError, UnauthorizedError
from deligo.services.notification_service import NotificationSender
from deligo.services.order_service import money, transition_order
from deligo.services.order_status import TERMINAL_STATUSES

logger = logging.getLogger(__name__)


def _require_driver(db: Session, actor: User) -> DriverProfile:
    if actor.role != "DRIVER":
        raise UnauthorizedError("Only drivers can use the driver pool")
    profile = db.get(DriverProfile, actor.id)
    if profile is None:
        raise NotFoundError(f"Driver profile for user {actor.id} not found")
    return profile


def get_driver_profile(db: Session, actor: User) -> DriverProfile:
    return _require_driver(db, actor)


def available_orders(db: Session, actor: User) -> list[Order]:
    """Pending orders without a driver, oldest first."""
    _require_driver(db, actor)
    query = (
        select(Order)
        .where(Order.status == OrderStatus.PENDING.value, Order.driver_id.is_(None))
        .order_by(Order.created_at.asc(), Order.id.asc())
    )
    return list(db.scalars(query).all())


def my_orders(db: Session, actor: User, active_only: bool = False) -> list[Order]:
    """Orders bound to the driver, newest first."""
    _require_driver(db, actor)
    query = select(Order).where(Order.driver_id == actor.id)
    if active_only:
        query = query.where(Order.status.not_in([status.value for status in TERMINAL_STATUSES]))
    return list(db.scalars(query.order_by(Order.created_at.desc(), Order.id.asc())).all())


def claim_order(
    db: Session,
    *,
    order_id: str,
    actor: User,
    expected_version: int | None = None,
    notifier: NotificationSender | None = None,
) -> Order:
    """Move a pooled order to the calling driver.

    Two drivers racing for the same order: one wins, the other gets a
    retryable ``ConflictError``.
    """
    _require_driver(db, actor)
    return transition_order(
        db,
        order_id=order_id,
        event=OrderEvent.ASSIGN_DRIVER,
        actor=actor,
        driver_user_id=actor.id,
        expected_version=expected_version,
        notifier=notifier,
    )


def set_availability(db: Session, actor: User, is_available: bool) -> DriverProfile:
    profile = _require_driver(db, actor)
    if is_available and profile.current_order_id is not None:
        raise InvalidTransitionError("Finish the active order before going available")
    profile.is_available = is_available
    db.commit()
    db.refresh(profile)
    logger.info("[ORDER] Driver user_id=%s availability=%s", actor.id, is_available)
    return profile


def earnings(db: Session, actor: User, since: datetime | None = None) -> DriverEarningsResponse:
    """Sum delivery fees and tips over the driver's delivered orders.

    ``since`` limits the window by ``delivered_at``; deliveries are listed
    newest first.
    """
    _require_driver(db, actor)
    query = select(Order).where(Order.driver_id == actor.id, Order.status == OrderStatus.DELIVERED.value)
    if since is not None:
        query = query.where(Order.delivered_at >= since)
    orders = db.scalars(query.order_by(Order.delivered_at.desc(), Order.id.asc())).all()

    deliveries = [
        DeliveryEarning(
            order_id=order.id,
            delivered_at=order.delivered_at,
            delivery_fee=money(order.delivery_fee),
            tip=money(order.tip),
            total=money(order.delivery_fee + order.tip),
        )
        for order in orders
    ]
    delivery_fees = money(sum((entry.delivery_fee for entry in deliveries), Decimal("0.00")))
    tips = money(sum((entry.tip for entry in deliveries), Decimal("0.00")))
    return DriverEarningsResponse(
        delivery_count=len(deliveries),
        delivery_fees=delivery_fees,
        tips=tips,
        total=money(delivery_fees + tips),
        deliveries=deliveries,
    )
