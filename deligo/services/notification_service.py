"""Best-effort push notifications for order lifecycle events."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from deligo.core.config import settings
from deligo.models.enums import OrderEvent
from deligo.models.order import Order

logger = logging.getLogger(__name__)

# event -> (title, body template, notification type); body receives restaurant_name.
ORDER_EVENT_MESSAGES: dict[OrderEvent, tuple[str, str, str]] = {
    OrderEvent.DRIVER_ACCEPT: (
        "Order Accepted!",
        "Your order from {restaurant_name} has been accepted by the driver.",
        "order_accepted",
    ),
    OrderEvent.PICK_UP: (
        "Order Picked Up!",
        "Your order from {restaurant_name} has been picked up and is on its way to you.",
        "order_picked_up",
    ),
    OrderEvent.START_DELIVERY: (
        "Order On The Way",
        "Your driver is heading to you with your order from {restaurant_name}.",
        "order_delivering",
    ),
    OrderEvent.DELIVER: (
        "Order Delivered!",
        "Your order from {restaurant_name} has been delivered. Enjoy your meal!",
        "order_delivered",
    ),
    OrderEvent.CANCEL: (
        "Order Cancelled",
        "Your order from {restaurant_name} has been cancelled.",
        "order_cancelled",
    ),
}


class NotificationSender(ABC):
    """Delivers a notification to one user."""

    @abstractmethod
    def send(self, user_id: int, title: str, body: str, payload: dict[str, str]) -> None:
        """Send the notification. Implementations may raise on transport errors."""


class LogNotificationSender(NotificationSender):
    """Sender used when no push endpoint is configured."""

    def send(self, user_id: int, title: str, body: str, payload: dict[str, str]) -> None:
        logger.info("[PUSH] (log only) user_id=%s title=%r payload=%s", user_id, title, payload)


class PushNotificationSender(NotificationSender):
    """Posts notifications as JSON to an HTTP push gateway."""

    def __init__(
        self,
        endpoint_url: str,
        server_key: str = "",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.server_key = server_key
        self.timeout = timeout
        self.transport = transport

    def send(self, user_id: int, title: str, body: str, payload: dict[str, str]) -> None:
        message = {
            "to": str(user_id),
            "notification": {"title": title, "body": body, "sound": "default"},
            "data": payload,
            "priority": "high",
        }
        headers = {"Content-Type": "application/json"}
        if self.server_key:
            headers["Authorization"] = f"key={self.server_key}"

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(self.endpoint_url, json=message, headers=headers)
            response.raise_for_status()
        logger.debug("[PUSH] Delivered to user_id=%s status=%s", user_id, response.status_code)


def get_notification_sender() -> NotificationSender:
    """Build the configured sender; used as a FastAPI dependency."""
    if settings.push_endpoint_url:
        return PushNotificationSender(
            settings.push_endpoint_url,
            server_key=settings.push_server_key,
            timeout=settings.push_timeout_seconds,
        )
    return LogNotificationSender()


def safe_send(sender: NotificationSender, user_id: int, title: str, body: str, payload: dict[str, str]) -> bool:
    """Send without letting delivery failures reach the caller."""
    try:
        sender.send(user_id, title, body, payload)
    except httpx.HTTPError as exc:
        logger.warning("[PUSH] Delivery failed for user_id=%s: %s", user_id, exc)
        return False
    except Exception:
        logger.exception("[PUSH] Unexpected sender failure for user_id=%s", user_id)
        return False
    return True


def notify_order_event(sender: NotificationSender, order: Order, event: OrderEvent, restaurant_name: str) -> bool:
    """Notify the people affected by an accepted transition."""
    if event is OrderEvent.ASSIGN_DRIVER:
        if order.driver_id is None:
            return False
        return safe_send(
            sender,
            order.driver_id,
            "New Delivery Assigned",
            f"You have a new delivery from {restaurant_name}.",
            {"orderId": order.id, "status": order.status, "type": "order_assigned"},
        )

    message = ORDER_EVENT_MESSAGES.get(event)
    if message is None:
        return False
    title, body, kind = message
    return safe_send(
        sender,
        order.customer_id,
        title,
        body.format(restaurant_name=restaurant_name),
        {"orderId": order.id, "status": order.status, "type": kind},
    )
