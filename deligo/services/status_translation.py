"""Translate legacy order documents into the canonical order model.

Older clients wrote two status fields (a coarse ``status`` and a finer
``order_status``) using several vocabularies, and used camelCase field
names. Everything is collapsed into ``OrderStatus`` here, at the data-access
boundary, so nothing downstream sees the legacy shapes.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from deligo.models import DriverProfile, Order, OrderItem, Restaurant, User
from deligo.models.enums import DeliveryOption, OrderStatus
from deligo.schemas.order import LegacyImportResponse
from deligo.services.audit_service import log_action, order_snapshot
from deligo.services.order_service import line_total, money, order_total
from deligo.services.order_status import TERMINAL_STATUSES
from deligo.utils.time import from_epoch, utcnow

logger = logging.getLogger(__name__)

STATUS_ALIASES: dict[str, OrderStatus] = {
    "pending": OrderStatus.PENDING,
    "assigned_driver": OrderStatus.ASSIGNED_DRIVER,
    "driver_accepted": OrderStatus.DRIVER_ACCEPTED,
    "picked_up": OrderStatus.PICKED_UP,
    "on_the_way": OrderStatus.DELIVERING,
    "delivering": OrderStatus.DELIVERING,
    "delivered": OrderStatus.DELIVERED,
    "completed": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
    "canceled": OrderStatus.CANCELLED,
    "rejected": OrderStatus.CANCELLED,
}

# Restaurant-side progress values; the driver decides where they land.
KITCHEN_STATUSES = frozenset({"accepted", "preparing", "ready", "ready_for_pickup"})

# Coarse values that carry no information beyond the fine field.
DEFERRED_STATUSES = frozenset({"in_progress", ""})

NEEDS_DRIVER = frozenset({OrderStatus.PICKED_UP, OrderStatus.DELIVERING, OrderStatus.DELIVERED})


def _clean(value: Any) -> str:
    return str(value or "").strip().lower().replace("-", "_").replace(" ", "_")


def canonical_status(status: Any = None, order_status: Any = None, driver_id: Any = None) -> OrderStatus:
    """Collapse a legacy ``status``/``order_status`` pair into one ``OrderStatus``.

    The fine-grained ``order_status`` wins whenever it is set. Raises
    ``ValueError`` for unknown values or for states that require a driver
    when none is recorded.
    """
    fine = _clean(order_status)
    coarse = _clean(status)
    raw = fine if fine not in DEFERRED_STATUSES else coarse
    if raw in DEFERRED_STATUSES:
        if coarse == "in_progress":
            raw = "driver_accepted" if driver_id else "pending"
        else:
            raw = "pending"

    has_driver = driver_id not in (None, "")
    if raw in KITCHEN_STATUSES:
        return OrderStatus.DRIVER_ACCEPTED if has_driver else OrderStatus.PENDING

    resolved = STATUS_ALIASES.get(raw)
    if resolved is None:
        raise ValueError(f"Unknown legacy order status: {status!r}/{order_status!r}")

    if resolved in (OrderStatus.ASSIGNED_DRIVER, OrderStatus.DRIVER_ACCEPTED) and not has_driver:
        return OrderStatus.PENDING
    if resolved is OrderStatus.PENDING and has_driver:
        return OrderStatus.ASSIGNED_DRIVER
    if resolved in NEEDS_DRIVER and not has_driver:
        raise ValueError(f"Legacy status {raw!r} requires a driver")
    return resolved


def _first(doc: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in doc and doc[key] is not None:
            return doc[key]
    return default


def _translate_customizations(raw: Any) -> list[dict[str, Any]]:
    if not raw:
        return []
    # Legacy documents keyed selections by option id.
    entries = list(raw.items()) if isinstance(raw, dict) else [(None, entry) for entry in raw]
    result: list[dict[str, Any]] = []
    for option_key, entry in entries:
        selected = _first(entry, "selected_items", "selectedItems", default=[]) or []
        result.append(
            {
                "option_id": str(_first(entry, "option_id", "optionId", "id", default=option_key or "")),
                "option_name": str(_first(entry, "option_name", "optionName", "name", default="")),
                "selected_items": [
                    {
                        "id": str(_first(item, "id", default="")),
                        "name": str(_first(item, "name", default="")),
                        "price": str(money(_first(item, "price", default=0))),
                    }
                    for item in selected
                ],
            }
        )
    return result


def _translate_address(raw: Any) -> dict[str, Any] | None:
    if not raw:
        return None
    if isinstance(raw, str):
        return {"street": raw, "unit": None, "city": "", "state": "", "postal_code": "", "instructions": None}
    return {
        "street": _first(raw, "street", "streetAddress", "address", default=""),
        "unit": _first(raw, "unit", "apartment"),
        "city": _first(raw, "city", default=""),
        "state": _first(raw, "state", default=""),
        "postal_code": str(_first(raw, "postal_code", "zipCode", "zip_code", default="")),
        "instructions": _first(raw, "instructions", "deliveryInstructions"),
    }


def translate_legacy_order(doc: dict[str, Any]) -> dict[str, Any]:
    """Map one legacy order document onto canonical order fields.

    ``total`` is recomputed from the items, delivery fee and tip; a stored
    legacy total is ignored.
    """
    driver_id = _first(doc, "driver_id", "driverId")
    status = canonical_status(
        _first(doc, "status"),
        _first(doc, "order_status", "orderStatus"),
        driver_id,
    )

    items: list[dict[str, Any]] = []
    for position, raw_item in enumerate(_first(doc, "items", default=[]) or []):
        quantity = int(_first(raw_item, "quantity", default=1))
        if quantity < 1:
            raise ValueError(f"Item {position} has quantity {quantity}; at least 1 is required")
        unit_price = money(_first(raw_item, "unit_price", "price", default=0))
        customizations = _translate_customizations(_first(raw_item, "customizations"))
        items.append(
            {
                "position": position,
                "menu_item_id": str(_first(raw_item, "menu_item_id", "menuItemId", "id", default="")),
                "name": str(_first(raw_item, "name", default="")),
                "quantity": quantity,
                "unit_price": unit_price,
                "customizations": customizations or None,
                "special_instructions": _first(raw_item, "special_instructions", "specialInstructions"),
                "line_total": line_total(unit_price, quantity, customizations),
            }
        )

    subtotal = money(sum((item["line_total"] for item in items), Decimal("0.00")))
    delivery_fee = money(_first(doc, "delivery_fee", "deliveryFee", default=0))
    tip = money(_first(doc, "tip", "tipAmount", default=0))
    if delivery_fee < 0 or tip < 0:
        raise ValueError("Delivery fee and tip must not be negative")
    created_at = _first(doc, "created_at", "createdAt")

    return {
        "id": _first(doc, "id", "orderId"),
        "customer_ref": _first(doc, "customer_id", "userId", "customerId"),
        "restaurant_ref": _first(doc, "restaurant_id", "restaurantId"),
        "driver_ref": driver_id,
        "driver_name": _first(doc, "driver_name", "driverName"),
        "status": status,
        "items": items,
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "tip": tip,
        "total": order_total(subtotal, delivery_fee, tip),
        "delivery_option": DeliveryOption(_clean(_first(doc, "delivery_option", "deliveryOption", default="delivery"))),
        "delivery_address": _translate_address(_first(doc, "delivery_address", "deliveryAddress", "address")),
        "payment_method": str(_first(doc, "payment_method", "paymentMethod", default="unknown")),
        "notes": _first(doc, "notes"),
        "created_at": from_epoch(created_at) if isinstance(created_at, (int, float)) else utcnow(),
    }


def _resolve(db: Session, model: type[User] | type[Restaurant], ref: Any) -> int | None:
    if ref in (None, ""):
        return None
    if isinstance(ref, int) or (isinstance(ref, str) and ref.isdigit()):
        found = db.get(model, int(ref))
        if found is not None:
            return found.id
    found = db.scalar(select(model).where(model.legacy_uid == str(ref)).limit(1))
    return found.id if found is not None else None


def import_legacy_orders(db: Session, documents: list[dict[str, Any]], actor: User | None = None) -> LegacyImportResponse:
    """Import legacy documents as canonical orders.

    Documents whose id already exists are skipped, so re-running an import is
    harmless. Each rejected document is reported with its reason.
    """
    imported: list[str] = []
    skipped: dict[str, str] = {}

    for index, doc in enumerate(documents):
        label = str(doc.get("id") or doc.get("orderId") or f"#{index}")
        try:
            fields = translate_legacy_order(doc)
        except (ValueError, TypeError, ArithmeticError) as exc:
            skipped[label] = str(exc)
            continue

        order_id = str(fields["id"]) if fields["id"] else None
        if order_id and db.get(Order, order_id) is not None:
            skipped[label] = "already imported"
            continue

        customer_id = _resolve(db, User, fields["customer_ref"])
        restaurant_id = _resolve(db, Restaurant, fields["restaurant_ref"])
        driver_id = _resolve(db, User, fields["driver_ref"])
        if customer_id is None or restaurant_id is None:
            skipped[label] = "unknown customer or restaurant"
            continue
        if fields["driver_ref"] not in (None, "") and driver_id is None:
            skipped[label] = "unknown driver"
            continue

        status: OrderStatus = fields["status"]
        if status in (OrderStatus.PENDING, OrderStatus.CANCELLED):
            driver_id = None
        order = Order(
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            driver_id=driver_id,
            driver_name=fields["driver_name"] if driver_id else None,
            status=status.value,
            version=1,
            subtotal=fields["subtotal"],
            delivery_fee=fields["delivery_fee"],
            tip=fields["tip"],
            total=fields["total"],
            delivery_option=fields["delivery_option"].value,
            delivery_address=fields["delivery_address"],
            payment_method=fields["payment_method"],
            notes=fields["notes"],
            created_at=fields["created_at"],
            updated_at=utcnow(),
            items=[OrderItem(**item) for item in fields["items"]],
        )
        if order_id:
            order.id = order_id
        db.add(order)
        db.flush()
        log_action(db, actor=actor, action_type="order.imported", order_id=order.id, after_snapshot=order_snapshot(order))
        if driver_id is not None and status not in TERMINAL_STATUSES:
            profile = db.get(DriverProfile, driver_id)
            if profile is not None and profile.current_order_id is None:
                profile.current_order_id = order.id
                profile.is_available = False
        imported.append(order.id)

    db.commit()
    logger.info("[ORDER] Legacy import: %s imported, %s skipped", len(imported), len(skipped))
    return LegacyImportResponse(imported=imported, skipped=skipped)
