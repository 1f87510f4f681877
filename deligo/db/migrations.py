"""Lightweight schema migrations for SQLite databases."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from deligo.models.enums import OrderStatus
from deligo.services.order_status import DRIVER_BOUND_STATUSES, TERMINAL_STATUSES
from deligo.services.status_translation import canonical_status

logger = logging.getLogger(__name__)

UNASSIGNED_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED})
ACTIVE_DRIVER_STATUSES = DRIVER_BOUND_STATUSES - TERMINAL_STATUSES

# table -> column -> DDL fragment for columns added after the first release.
ADDED_COLUMNS: dict[str, dict[str, str]] = {
    "users": {
        "display_name": "VARCHAR(255)",
        "restaurant_id": "INTEGER",
        "legacy_uid": "VARCHAR(128)",
    },
    "restaurants": {
        "owner_user_id": "INTEGER",
        "legacy_uid": "VARCHAR(128)",
    },
    "orders": {
        "version": "INTEGER NOT NULL DEFAULT 1",
        "driver_name": "VARCHAR(255)",
        "tip": "NUMERIC(10, 2) NOT NULL DEFAULT 0",
        "assigned_at": "DATETIME",
        "accepted_at": "DATETIME",
        "picked_up_at": "DATETIME",
        "delivered_at": "DATETIME",
        "cancelled_at": "DATETIME",
    },
    "drivers": {
        "rejected_orders_count": "INTEGER NOT NULL DEFAULT 0",
        "total_deliveries": "INTEGER NOT NULL DEFAULT 0",
    },
}


def _sqlite_column_names(connection: Connection, table_name: str) -> set[str]:
    """Return column names for a SQLite table using PRAGMA table_info."""
    rows = connection.execute(text(f"PRAGMA table_info({table_name});")).mappings().all()
    return {str(row["name"]) for row in rows}


def _normalize_order_statuses(connection: Connection, order_columns: set[str], has_drivers: bool) -> int:
    """Rewrite legacy status strings in ``orders.status`` to canonical values.

    Pending and cancelled rows lose their driver. Active driver-bound rows
    become the driver's current order when the driver has none. Rows that
    cannot be translated are left untouched and logged.
    """
    has_fine_status = "order_status" in order_columns
    select_sql = (
        "SELECT id, status, order_status, driver_id FROM orders"
        if has_fine_status
        else "SELECT id, status, NULL AS order_status, driver_id FROM orders"
    )
    updated = 0
    for order_id, status, order_status, driver_id in connection.execute(text(select_sql)).all():
        try:
            canonical = canonical_status(status, order_status, driver_id)
        except ValueError as exc:
            logger.warning("[BOOTSTRAP] Leaving order %s with status %r: %s", order_id, status, exc)
            continue

        clears_driver = canonical in UNASSIGNED_STATUSES and driver_id is not None
        if canonical.value != status or clears_driver:
            connection.execute(
                text(
                    """
                    UPDATE orders
                    SET status = :status,
                        driver_id = CASE WHEN :clear THEN NULL ELSE driver_id END,
                        driver_name = CASE WHEN :clear THEN NULL ELSE driver_name END
                    WHERE id = :order_id
                    """
                ),
                {"status": canonical.value, "clear": clears_driver, "order_id": order_id},
            )
            updated += 1

        if has_drivers and driver_id is not None and canonical in ACTIVE_DRIVER_STATUSES:
            claimed = connection.execute(
                text(
                    """
                    UPDATE drivers
                    SET current_order_id = :order_id, is_available = 0
                    WHERE user_id = :driver_id AND current_order_id IS NULL
                    """
                ),
                {"order_id": order_id, "driver_id": driver_id},
            )
            if claimed.rowcount == 0:
                current = connection.execute(
                    text("SELECT current_order_id FROM drivers WHERE user_id = :driver_id"),
                    {"driver_id": driver_id},
                ).scalar()
                if current is not None and current != order_id:
                    logger.warning(
                        "[BOOTSTRAP] Order %s names driver %s, who is already on order %s",
                        order_id,
                        driver_id,
                        current,
                    )
    return updated


def ensure_sqlite_schema(engine: Engine) -> None:
    """Apply lightweight schema updates for legacy SQLite databases."""
    if engine.dialect.name != "sqlite":
        return

    with engine.begin() as connection:
        table_rows = connection.execute(text("SELECT name FROM sqlite_master WHERE type='table';")).all()
        table_names: set[str] = {str(row[0]) for row in table_rows}

        for table_name, columns in ADDED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = _sqlite_column_names(connection, table_name)
            for column_name, ddl in columns.items():
                if column_name not in existing:
                    connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl}"))

        if "users" in table_names:
            connection.execute(
                text(
                    """
                    UPDATE users
                    SET role = UPPER(TRIM(role))
                    WHERE role IS NOT NULL AND role != UPPER(TRIM(role))
                    """
                )
            )

        if "orders" in table_names:
            updated = _normalize_order_statuses(
                connection, _sqlite_column_names(connection, "orders"), "drivers" in table_names
            )
            if updated:
                logger.info("[BOOTSTRAP] Normalized %s legacy order statuses", updated)
