"""Ratings for delivered orders."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deligo.models import DriverProfile, Order, Rating, Restaurant, User
from deligo.models.enums import OrderStatus, RatingTarget
from deligo.services.errors import InvalidTransitionError, NotFoundError, UnauthorizedError
from deligo.services.order_service import get_order

logger = logging.getLogger(__name__)


def _target_id(order: Order, target: RatingTarget) -> int:
    if target is RatingTarget.RESTAURANT:
        return order.restaurant_id
    if order.driver_id is None:
        raise InvalidTransitionError("Order has no driver to rate")
    return order.driver_id


def submit_rating(
    db: Session,
    *,
    order_id: str,
    author: User,
    target: RatingTarget,
    score: int,
    comment: str | None = None,
) -> Rating:
    """Store one immutable rating per (order, target)."""
    order = get_order(db, order_id)
    if author.role != "CUSTOMER" or order.customer_id != author.id:
        raise UnauthorizedError("Only the order's customer can rate it")
    if order.state is not OrderStatus.DELIVERED:
        raise InvalidTransitionError("Only delivered orders can be rated")

    existing = db.scalar(select(Rating).where(Rating.order_id == order.id, Rating.target == target.value).limit(1))
    if existing is not None:
        raise InvalidTransitionError(f"Order {order.id} already has a {target.value} rating")

    rating = Rating(
        order_id=order.id,
        author_id=author.id,
        target=target.value,
        target_id=_target_id(order, target),
        score=score,
        comment=comment,
    )
    db.add(rating)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidTransitionError(f"Order {order.id} already has a {target.value} rating") from exc
    db.refresh(rating)
    logger.info("[ORDER] Rated order_id=%s target=%s score=%s", order.id, target.value, score)
    return rating


def rating_summary(db: Session, target: RatingTarget, target_id: int) -> dict[str, object]:
    count, average = db.execute(
        select(func.count(Rating.id), func.avg(Rating.score)).where(
            Rating.target == target.value, Rating.target_id == target_id
        )
    ).one()
    if not count:
        return {"target": target, "target_id": target_id, "count": 0, "average": None}
    rounded = Decimal(str(average)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return {"target": target, "target_id": target_id, "count": count, "average": rounded}


def ensure_rating_target_exists(db: Session, target: RatingTarget, target_id: int) -> None:
    model = Restaurant if target is RatingTarget.RESTAURANT else DriverProfile
    if db.get(model, target_id) is None:
        raise NotFoundError(f"{target.value.capitalize()} {target_id} not found")
