"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from deligo.models import AuditLog, Order, User


def order_snapshot(order: Order) -> dict[str, Any]:
    """Return the JSON-safe lifecycle fields of ``order``."""
    return {
        "status": order.status,
        "version": order.version,
        "driver_id": order.driver_id,
        "driver_name": order.driver_name,
        "total": str(order.total),
    }


def log_action(
    db: Session,
    *,
    actor: User | None,
    action_type: str,
    order_id: str | None = None,
    before_snapshot: dict[str, Any] | None = None,
    after_snapshot: dict[str, Any] | None = None,
) -> None:
    actor_identifier = "system"
    actor_id = None
    if actor is not None:
        actor_id = actor.id
        actor_identifier = actor.email or actor.username

    db.add(
        AuditLog(
            actor_user_id=actor_id,
            actor_identifier=actor_identifier,
            action_type=action_type,
            order_id=order_id,
            before_snapshot=before_snapshot,
            after_snapshot=after_snapshot,
        )
    )
