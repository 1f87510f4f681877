"""Notification sender tests."""

import logging
from types import SimpleNamespace

import httpx
from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.main import app
from deligo.models import Order
from deligo.models.enums import OrderEvent
from deligo.services.notification_service import (
    LogNotificationSender,
    NotificationSender,
    PushNotificationSender,
    get_notification_sender,
    notify_order_event,
    safe_send,
)


def _order(**overrides) -> SimpleNamespace:
    values = {"id": "order-1", "customer_id": 3, "driver_id": 7, "status": "driver_accepted"}
    values.update(overrides)
    return SimpleNamespace(**values)


def test_push_sender_posts_json_payload() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"success": 1})

    sender = PushNotificationSender(
        "https://push.example.test/send",
        server_key="server-key",
        transport=httpx.MockTransport(handler),
    )
    assert notify_order_event(sender, _order(), OrderEvent.DRIVER_ACCEPT, "Luigi's") is True

    assert len(captured) == 1
    assert captured[0].headers["Authorization"] == "key=server-key"
    body = captured[0].read().decode()
    assert '"to":"3"' in body.replace(" ", "")
    assert "Luigi's" in body
    assert "order_accepted" in body


def test_push_failure_is_logged_not_raised(caplog) -> None:
    sender = PushNotificationSender(
        "https://push.example.test/send",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )

    with caplog.at_level(logging.WARNING, logger="deligo.services.notification_service"):
        delivered = safe_send(sender, 3, "Title", "Body", {"type": "order_accepted"})

    assert delivered is False
    assert "[PUSH] Delivery failed for user_id=3" in caplog.text


def test_unexpected_sender_error_is_logged(caplog) -> None:
    class BrokenSender(NotificationSender):
        def send(self, user_id, title, body, payload) -> None:
            raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger="deligo.services.notification_service"):
        assert safe_send(BrokenSender(), 3, "Title", "Body", {}) is False
    assert "Unexpected sender failure" in caplog.text


def test_assignment_notifies_driver() -> None:
    recorded: list[int] = []

    class Recorder(NotificationSender):
        def send(self, user_id, title, body, payload) -> None:
            recorded.append(user_id)

    notify_order_event(Recorder(), _order(status="assigned_driver"), OrderEvent.ASSIGN_DRIVER, "Luigi's")
    notify_order_event(Recorder(), _order(status="pending", driver_id=None), OrderEvent.DRIVER_REJECT, "Luigi's")

    assert recorded == [7]


def test_log_sender_used_without_endpoint(monkeypatch) -> None:
    monkeypatch.setattr(settings, "push_endpoint_url", "")
    assert isinstance(get_notification_sender(), LogNotificationSender)

    monkeypatch.setattr(settings, "push_endpoint_url", "https://push.example.test/send")
    assert isinstance(get_notification_sender(), PushNotificationSender)


def test_transition_succeeds_when_push_fails(client, login, order_payload: dict, db: Session) -> None:
    failing = PushNotificationSender(
        "https://push.example.test/send",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    app.dependency_overrides[get_notification_sender] = lambda: failing

    order_id = client.post("/api/v1/orders", json=order_payload, headers=login("carla@example.com")).json()["id"]
    response = client.post(f"/api/v1/drivers/me/orders/{order_id}/claim", headers=login("dino@example.com"))

    assert response.status_code == 200
    assert db.get(Order, order_id).status == "assigned_driver"
